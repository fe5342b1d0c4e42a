"""Shared fixtures and fake collaborators."""

import numpy as np
import pytest

from kinesampler.core.event import BoundParticleSample, PhysicalConfiguration


class CountingRate:
    """Rate model wrapper counting evaluations."""

    def __init__(self, fn):
        self.fn = fn
        self.calls = 0

    def __call__(self, config, sample, cos_theta, phi):
        self.calls += 1
        return self.fn(config, sample, cos_theta, phi)


def constant_rate(value):
    return CountingRate(lambda config, sample, cos_theta, phi: value)


def forward_rate(config, sample, cos_theta, phi):
    return 1.0 + cos_theta


class FixedSampler:
    """Nuclear model returning a fixed sequence of samples (cycled)."""

    def __init__(self, samples):
        self.samples = list(samples)
        self.calls = 0

    def draw(self, config, radius, rng):
        sample = self.samples[self.calls % len(self.samples)]
        self.calls += 1
        return sample


class ThresholdExclusion:
    """Pauli blocker with a fixed momentum threshold."""

    def __init__(self, kf):
        self.kf = kf

    def is_excluded(self, momentum, config, skip_check=False):
        return not skip_check and momentum < self.kf


@pytest.fixture
def free_config():
    """nu_mu CC on a free neutron at 1 GeV."""
    return PhysicalConfiguration(14, 1.0, 2112, 2112, 'CC')


@pytest.fixture
def carbon_config():
    """nu_mu CC on a neutron bound in C-12 at 2 GeV."""
    return PhysicalConfiguration(14, 2.0, 1000060120, 2112, 'CC')


@pytest.fixture
def rng():
    return np.random.default_rng(12345)


@pytest.fixture
def sample_at_rest():
    return BoundParticleSample.at_rest()
