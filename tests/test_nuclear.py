import numpy as np
import pytest

from kinesampler.core.event import PhysicalConfiguration
from kinesampler.physics.interfaces import ConfigurationSampler, ExclusionCheck
from kinesampler.physics.nuclear import FERMI_MOMENTUM, FermiGasExclusion, FermiGasSampler


class TestFermiGasSampler:

    def test_protocol(self):
        assert isinstance(FermiGasSampler(), ConfigurationSampler)
        assert isinstance(FermiGasExclusion(), ExclusionCheck)

    def test_free_target_at_rest(self, free_config, rng):
        sample = FermiGasSampler().draw(free_config, 0.0, rng)
        assert sample.momentum_magnitude == 0.0
        assert sample.removal_energy == 0.0

    def test_momenta_inside_fermi_sphere(self, carbon_config, rng):
        nucl = FermiGasSampler()
        p = np.array([nucl.draw(carbon_config, 0.0, rng).momentum_magnitude
                      for _ in range(2000)])
        kf = FERMI_MOMENTUM[1000060120]
        assert np.all(p <= kf)
        # <|p|> = 3/4 kF for a uniformly filled sphere
        assert p.mean() == pytest.approx(0.75 * kf, rel=0.05)

    def test_default_for_unlisted_target(self, rng):
        config = PhysicalConfiguration(14, 1.0, 1000250550, 2112, 'CC')
        nucl = FermiGasSampler(default_fermi_momentum=0.3, default_removal_energy=0.04)
        sample = nucl.draw(config, 0.0, rng)
        assert sample.momentum_magnitude <= 0.3
        assert sample.removal_energy == 0.04


class TestFermiGasExclusion:

    def test_blocking(self, carbon_config):
        pauli = FermiGasExclusion()
        assert pauli.is_excluded(0.1, carbon_config)
        assert not pauli.is_excluded(0.5, carbon_config)

    def test_skip_check(self, carbon_config):
        assert not FermiGasExclusion().is_excluded(0.1, carbon_config, skip_check=True)

    def test_free_target_never_blocked(self, free_config):
        assert not FermiGasExclusion().is_excluded(0.0, free_config)
