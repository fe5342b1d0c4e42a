import numpy as np
import pytest

from kinesampler.core import kinematics as kin


def test_mass2_of_particle_at_rest():
    p4 = kin.four_vector(0.0, 0.0, 0.0, 0.938)
    assert kin.mass2(p4) == pytest.approx(0.938 ** 2)


def test_boost_preserves_mass_and_inverts():
    p4 = kin.four_vector(0.1, -0.2, 0.3, 1.2)
    beta = np.array([0.2, 0.1, -0.4])
    boosted = kin.lorentz_boost(p4, beta)
    assert kin.mass2(boosted) == pytest.approx(kin.mass2(p4), rel=1e-10)
    back = kin.lorentz_boost(boosted, -beta)
    np.testing.assert_allclose(back, p4, atol=1e-12)


def test_boost_to_rest_frame():
    p4 = kin.four_vector(0.3, 0.0, 0.4, 1.5)
    rest = kin.lorentz_boost(p4, -kin.boost_vector(p4))
    np.testing.assert_allclose(rest[:3], 0.0, atol=1e-12)
    assert rest[3] == pytest.approx(np.sqrt(kin.mass2(p4)))


@pytest.mark.parametrize("axis", [
    [1.0, 0.0, 0.0],
    [0.3, -0.5, 0.8],
    [0.0, 0.0, 2.0],
    [0.0, 0.0, -1.0],
])
def test_rotate_z_onto_axis(axis):
    axis = np.array(axis)
    rotated = kin.rotate_z_onto(np.array([0.0, 0.0, 1.0]), axis)
    np.testing.assert_allclose(rotated, axis / np.linalg.norm(axis), atol=1e-12)


def test_rotation_preserves_length():
    vec = kin.spherical_vector(0.7, 0.2, 1.3)
    rotated = kin.rotate_z_onto(vec, np.array([0.4, 0.4, -0.2]))
    assert np.linalg.norm(rotated) == pytest.approx(0.7)


def test_spherical_vector():
    v = kin.spherical_vector(2.0, 0.0, 0.0)
    np.testing.assert_allclose(v, [2.0, 0.0, 0.0], atol=1e-12)
    assert kin.polar_angle(np.append(v, 2.0)) == pytest.approx(np.pi / 2)


class TestTwoBodyFinalState:
    """probe + hit -> lepton + recoil."""

    probe = kin.four_vector(0.0, 0.0, 1.0, 1.0)
    hit = kin.four_vector(0.1, 0.05, -0.15, 0.90)   # off-shell nucleon

    def test_four_momentum_conservation(self):
        ok, lepton, recoil = kin.two_body_final_state(
            self.probe, self.hit, 0.1056584, 0.938272, 0.3, 2.0)
        assert ok
        np.testing.assert_allclose(lepton + recoil, self.probe + self.hit, atol=1e-10)

    def test_products_on_shell(self):
        ok, lepton, recoil = kin.two_body_final_state(
            self.probe, self.hit, 0.1056584, 0.938272, -0.7, 5.0)
        assert ok
        assert np.sqrt(kin.mass2(lepton)) == pytest.approx(0.1056584, rel=1e-6)
        assert np.sqrt(kin.mass2(recoil)) == pytest.approx(0.938272, rel=1e-9)

    def test_below_threshold(self):
        slow = kin.four_vector(0.0, 0.0, 0.05, 0.05)
        at_rest = kin.four_vector(0.0, 0.0, 0.0, 0.9395654)
        ok, _, _ = kin.two_body_final_state(slow, at_rest, 0.1056584, 0.938272, 0.0, 0.0)
        assert not ok
