"""
Setup script for kinesampler package.

Installation:
    pip install -e .
"""

from setuptools import setup, find_packages

setup(
    name="kinesampler",
    version="0.1.0",
    description="Rejection sampling of quasi-elastic lepton-nucleon scattering kinematics",
    author="William Comaskey",
    packages=find_packages(exclude=["tests*", "examples*", "scripts*"]),
    python_requires=">=3.10",
    install_requires=[
        "numpy>=1.24",
        "matplotlib>=3.7",
        "numba>=0.58",
        "pyyaml>=6.0",
        "tqdm>=4.65",
    ],
    extras_require={
        "dev": ["pytest>=7.3", "black>=23.0", "mypy>=1.3", "ipython>=8.12"],
    },
)
