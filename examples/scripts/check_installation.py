#!/usr/bin/env python3
"""
Quick script to verify installation.

Run this after setting up the environment to check everything works.
"""

import sys
import time

print("="*70)
print("kinesampler Installation Check")
print("="*70)

# 1: third-party stack
print("\n1. Checking imports...")
try:
    import numpy as np
    print("   ✓ NumPy:", np.__version__)
    import numba
    print("   ✓ Numba:", numba.__version__)
    import yaml
    print("   ✓ PyYAML:", yaml.__version__)
except ImportError as e:
    print(f"   ✗ Import failed: {e}")
    sys.exit(1)

# 2: package
print("\n2. Checking kinesampler imports...")
try:
    from kinesampler import (PhysicalConfiguration, RejectionSampler, SamplerConfig,
                             FermiGasSampler, FermiGasExclusion)
    print("   ✓ kinesampler imported")
except ImportError as e:
    print(f"   ✗ Failed: {e}")
    sys.exit(1)

# 3: JIT compilation and one event
print("\n3. Generating one event (triggers Numba compilation)...")


def forward_peaked(config, sample, cos_theta, phi):
    return 1.0 + cos_theta


qel = RejectionSampler(forward_peaked, SamplerConfig(max_xsec_nucleon_throws=100),
                       sampler=FermiGasSampler(), exclusion=FermiGasExclusion())
event = PhysicalConfiguration(14, 1.5, 1000060120, 2112, 'CC')
rng = np.random.default_rng(0)

start = time.time()
result = qel.generate(event, rng)
print(f"   ✓ First event: {result.status.name} in {time.time() - start:.2f} s")

start = time.time()
for _ in range(100):
    qel.generate(event, rng)
elapsed = (time.time() - start) / 100
print(f"   ✓ Warm event: {elapsed*1000:.2f} ms")

print("\n" + "="*70)
print("Installation check complete!")
print("="*70)
