import numpy as np
import pytest

from kinesampler.core.event import BoundParticleSample, KinematicPoint, PhysicalConfiguration
from kinesampler.errors import ConfigurationError
from kinesampler.physics import phase_space
from kinesampler.physics.binding import BindingMode, bind_hit_nucleon
from kinesampler.physics.nuclear import FermiGasExclusion
from kinesampler.sampling.correction import KinematicsCorrector

from conftest import ThresholdExclusion


def uncorrected_state(config, sample, point):
    hit_p4, _ = bind_hit_nucleon(config, sample, BindingMode.ON_SHELL_WITH_CORRECTION)
    return phase_space.final_state(config, hit_p4, point)


@pytest.fixture
def sample():
    return BoundParticleSample(np.array([0.05, -0.1, 0.12]), 0.025)


@pytest.fixture
def point():
    return KinematicPoint(0.2, 1.3)


class TestKinematicsCorrector:

    def test_accepted_correction_is_off_shell(self, carbon_config, sample, point):
        corrector = KinematicsCorrector(FermiGasExclusion())
        outcome = corrector.correct(carbon_config, sample, point,
                                    uncorrected_state(carbon_config, sample, point))
        assert outcome.accepted and not outcome.retry
        expected, _ = bind_hit_nucleon(carbon_config, sample, BindingMode.USE_NUCLEAR_MODEL)
        np.testing.assert_allclose(outcome.hit_p4, expected)
        assert outcome.removal_energy == 0.025
        q2_min, q2_max = outcome.q2_range
        assert q2_min <= outcome.final_state.Q2 <= q2_max

    def test_binding_below_threshold(self):
        config = PhysicalConfiguration(14, 0.3, 1000060120, 2112, 'CC')
        deep = BoundParticleSample(np.zeros(3), 0.2)
        point = KinematicPoint(0.0, 0.0)
        uncorrected = uncorrected_state(config, deep, point)
        assert uncorrected is not None

        outcome = KinematicsCorrector(FermiGasExclusion()).correct(config, deep, point, uncorrected)
        assert outcome.retry
        assert outcome.reason == 'threshold'

    def test_q2_outside_range(self, carbon_config, sample, point, monkeypatch):
        uncorrected = uncorrected_state(carbon_config, sample, point)
        monkeypatch.setattr(phase_space, 'q2_limits', lambda config, hit_p4: (100.0, 200.0))
        outcome = KinematicsCorrector(FermiGasExclusion()).correct(
            carbon_config, sample, point, uncorrected)
        assert outcome.retry
        assert outcome.reason == 'q2_range'

    def test_min_angle_em(self, sample):
        em = PhysicalConfiguration(11, 1.0, 1000060120, 2212, 'EM')
        forward = KinematicPoint(1.0, 0.0)
        uncorrected = uncorrected_state(em, sample, forward)

        strict = KinematicsCorrector(FermiGasExclusion(), min_angle_em=179.0)
        outcome = strict.correct(em, sample, forward, uncorrected)
        assert outcome.reason == 'min_angle'

        loose = KinematicsCorrector(FermiGasExclusion(), min_angle_em=0.0)
        assert loose.correct(em, sample, forward, uncorrected).reason != 'min_angle'

    def test_exclusion_override(self, carbon_config, sample, point):
        uncorrected = uncorrected_state(carbon_config, sample, point)
        corrected_p4, _ = bind_hit_nucleon(carbon_config, sample, BindingMode.USE_NUCLEAR_MODEL)
        corrected = phase_space.final_state(carbon_config, corrected_p4, point)

        p_unc = float(np.linalg.norm(uncorrected.recoil_p4[:3]))
        p_cor = float(np.linalg.norm(corrected.recoil_p4[:3]))
        assert p_unc != p_cor

        # Threshold between the two recoil momenta
        exclusion = ThresholdExclusion(0.5 * (p_unc + p_cor))
        outcome = KinematicsCorrector(exclusion).correct(carbon_config, sample, point, uncorrected)
        assert outcome.accepted
        assert outcome.skip_exclusion_check is (p_cor < p_unc)

    def test_no_override_when_both_blocked(self, carbon_config, sample, point):
        uncorrected = uncorrected_state(carbon_config, sample, point)
        outcome = KinematicsCorrector(ThresholdExclusion(100.0)).correct(
            carbon_config, sample, point, uncorrected)
        assert outcome.accepted
        assert not outcome.skip_exclusion_check

    def test_needs_exclusion(self):
        with pytest.raises(ConfigurationError):
            KinematicsCorrector(None)
