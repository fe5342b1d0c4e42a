"""
Collaborator protocols.

The sampler never looks inside these: the rate model is an expensive black
box, the nuclear model is a source of (momentum, removal energy) draws, and
the exclusion check decides Pauli blocking for the recoil nucleon.
"""

from typing import Protocol, runtime_checkable

import numpy as np

from kinesampler.core.event import BoundParticleSample, PhysicalConfiguration


@runtime_checkable
class RateModel(Protocol):
    """Differential rate (cross section) at a kinematic point, >= 0."""

    def __call__(self, config: PhysicalConfiguration, sample: BoundParticleSample,
                 cos_theta: float, phi: float) -> float:
        ...


@runtime_checkable
class ConfigurationSampler(Protocol):
    """Nuclear model: draws a hit-nucleon state at a radius [fm]."""

    def draw(self, config: PhysicalConfiguration, radius: float,
             rng: np.random.Generator) -> BoundParticleSample:
        ...


@runtime_checkable
class ExclusionCheck(Protocol):
    """Pauli blocking of the recoil nucleon."""

    def is_excluded(self, momentum: float, config: PhysicalConfiguration,
                    skip_check: bool = False) -> bool:
        ...
