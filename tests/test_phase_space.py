import numpy as np
import pytest

from kinesampler.core.event import BoundParticleSample, KinematicPoint, PhysicalConfiguration
from kinesampler.core.kinematics import four_vector, mass2
from kinesampler.physics import phase_space
from kinesampler.physics.binding import BindingMode, bind_hit_nucleon
from kinesampler.physics.nuclear import FermiGasSampler

M_NEUTRON = 0.9395654
M_PROTON = 0.9382720


class TestBinding:

    def test_free_nucleon_on_shell(self, free_config, sample_at_rest):
        p4, e_b = bind_hit_nucleon(free_config, sample_at_rest, BindingMode.USE_NUCLEAR_MODEL)
        np.testing.assert_allclose(p4, [0.0, 0.0, 0.0, M_NEUTRON])
        assert e_b == 0.0

    def test_off_shell_energy(self, carbon_config):
        sample = BoundParticleSample(np.array([0.0, 0.1, 0.2]), 0.025)
        p4, e_b = bind_hit_nucleon(carbon_config, sample, BindingMode.USE_NUCLEAR_MODEL)
        m_a = 11.174862
        expected = m_a - np.sqrt((m_a - M_NEUTRON + 0.025) ** 2 + 0.05)
        assert p4[3] == pytest.approx(expected)
        assert e_b == 0.025
        assert mass2(p4) < M_NEUTRON ** 2

    @pytest.mark.parametrize("mode", [BindingMode.ON_SHELL, BindingMode.ON_SHELL_WITH_CORRECTION])
    def test_on_shell_modes(self, carbon_config, mode):
        sample = BoundParticleSample(np.array([0.0, 0.1, 0.2]), 0.025)
        p4, e_b = bind_hit_nucleon(carbon_config, sample, mode)
        assert mass2(p4) == pytest.approx(M_NEUTRON ** 2)
        assert e_b == 0.0

    def test_mode_parsing(self):
        assert BindingMode.from_string('OnShell') is BindingMode.ON_SHELL
        assert BindingMode.from_string('use_nuclear_model') is BindingMode.USE_NUCLEAR_MODEL
        assert (BindingMode.from_string('ON_SHELL_WITH_CORRECTION')
                is BindingMode.ON_SHELL_WITH_CORRECTION)


class TestCosThetaMax:
    """Upper edge of the COM angular range."""

    def test_below_threshold_is_degenerate(self):
        slow = PhysicalConfiguration(14, 0.05, 2112, 2112, 'CC')
        hit = four_vector(0.0, 0.0, 0.0, M_NEUTRON)
        assert phase_space.cos_theta_max(slow, hit) == phase_space.DEGENERATE

    def test_energy_transfer_vanishes_at_edge(self, free_config):
        # Fast upstream nucleon: forward leptons can gain energy
        hit = four_vector(0.0, 0.0, -0.8, np.sqrt(0.64 + M_NEUTRON ** 2))
        cos_max = phase_space.cos_theta_max(free_config, hit)
        assert -1.0 < cos_max < 1.0

        edge = phase_space.final_state(free_config, hit, KinematicPoint(cos_max, 0.3))
        assert edge.q_p4[3] == pytest.approx(0.0, abs=1e-9)
        inside = phase_space.final_state(free_config, hit, KinematicPoint(cos_max - 0.1, 0.3))
        assert inside.q_p4[3] > 0.0

    def test_energy_transfer_non_negative_in_range(self, free_config):
        hit = four_vector(0.0, 0.0, 0.0, M_NEUTRON)
        upper = min(1.0, phase_space.cos_theta_max(free_config, hit))
        for cos_theta in np.linspace(-1.0, upper, 25):
            fs = phase_space.final_state(free_config, hit, KinematicPoint(cos_theta, 1.0))
            assert fs.q_p4[3] >= -1e-9


class TestQ2Limits:

    def test_free_nucleon_range_ordered(self, free_config):
        q2_min, q2_max = phase_space.q2_limits(free_config, four_vector(0, 0, 0, M_NEUTRON))
        assert 0.0 <= q2_min < q2_max

    @pytest.mark.parametrize("mode", list(BindingMode))
    def test_sampled_points_inside_range(self, carbon_config, rng, mode):
        nucl = FermiGasSampler()
        for _ in range(200):
            sample = nucl.draw(carbon_config, 0.0, rng)
            hit_p4, _ = bind_hit_nucleon(carbon_config, sample, mode)
            cos_max = min(1.0, phase_space.cos_theta_max(carbon_config, hit_p4))
            if cos_max <= -1.0:
                continue
            point = KinematicPoint(rng.uniform(-1.0, cos_max), rng.uniform(0.0, 2 * np.pi))
            fs = phase_space.final_state(carbon_config, hit_p4, point)
            q2_min, q2_max = phase_space.q2_limits(carbon_config, hit_p4)
            assert q2_min - 1e-9 <= fs.Q2 <= q2_max + 1e-9

    def test_below_threshold_final_state_is_none(self):
        slow = PhysicalConfiguration(14, 0.05, 2112, 2112, 'CC')
        fs = phase_space.final_state(slow, four_vector(0, 0, 0, M_NEUTRON), KinematicPoint(0.0, 0.0))
        assert fs is None


def test_elastic_x_is_one():
    x, y = phase_space.wq2_to_xy(2.0, M_PROTON, M_PROTON, 0.5)
    assert x == pytest.approx(1.0)
    assert y == pytest.approx(0.5 / (2.0 * M_PROTON * 2.0))
