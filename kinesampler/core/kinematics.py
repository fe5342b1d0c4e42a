"""
Relativistic kinematics kernels.

Four-vectors are float64 arrays (px, py, pz, E); three-vectors are
float64 arrays (x, y, z). All kernels are Numba-compiled and allocate
their outputs, so inputs are never modified.
"""

import numpy as np
import numba
from typing import Tuple

SMALL = 1e-12


@numba.njit(fastmath=True, cache=True)
def mass2(p4: np.ndarray) -> float:
    """Invariant mass squared E^2 - |p|^2."""
    return p4[3] * p4[3] - p4[0] * p4[0] - p4[1] * p4[1] - p4[2] * p4[2]


@numba.njit(fastmath=True, cache=True)
def momentum_magnitude(p4: np.ndarray) -> float:
    """|p| of a four-vector (or three-vector)."""
    return np.sqrt(p4[0] * p4[0] + p4[1] * p4[1] + p4[2] * p4[2])


@numba.njit(fastmath=True, cache=True)
def boost_vector(p4: np.ndarray) -> np.ndarray:
    """Velocity β = p/E of the frame in which p4 is at rest."""
    beta = np.empty(3, dtype=np.float64)
    beta[0] = p4[0] / p4[3]
    beta[1] = p4[1] / p4[3]
    beta[2] = p4[2] / p4[3]
    return beta


@numba.njit(fastmath=True, cache=True)
def lorentz_boost(p4: np.ndarray, beta: np.ndarray) -> np.ndarray:
    """
    Boost a four-vector by velocity beta.

    Parameters:
        p4: Four-momentum (px, py, pz, E)
        beta: Boost velocity [c], |beta| < 1

    Returns:
        Boosted four-momentum
    """
    b2 = beta[0] * beta[0] + beta[1] * beta[1] + beta[2] * beta[2]
    result = p4.copy()
    if b2 < SMALL * SMALL:
        return result

    gamma = 1.0 / np.sqrt(1.0 - b2)
    bp = beta[0] * p4[0] + beta[1] * p4[1] + beta[2] * p4[2]
    gamma2 = (gamma - 1.0) / b2

    result[0] = p4[0] + gamma2 * bp * beta[0] + gamma * beta[0] * p4[3]
    result[1] = p4[1] + gamma2 * bp * beta[1] + gamma * beta[1] * p4[3]
    result[2] = p4[2] + gamma2 * bp * beta[2] + gamma * beta[2] * p4[3]
    result[3] = gamma * (p4[3] + bp)
    return result


@numba.njit(fastmath=True, cache=True)
def spherical_vector(magnitude: float, cos_theta: float, phi: float) -> np.ndarray:
    """Three-vector with the given length and polar/azimuthal angles about +z."""
    sin_theta = np.sqrt(max(0.0, 1.0 - cos_theta * cos_theta))
    v = np.empty(3, dtype=np.float64)
    v[0] = magnitude * sin_theta * np.cos(phi)
    v[1] = magnitude * sin_theta * np.sin(phi)
    v[2] = magnitude * cos_theta
    return v


@numba.njit(fastmath=True, cache=True)
def rotate_z_onto(vec: np.ndarray, axis: np.ndarray) -> np.ndarray:
    """
    Rotate vec by the rotation that takes +z onto the direction of axis.

    Uses Rodrigues' formula about k = z × axis:
        v_rot = v*cos(θ) + (k × v)*sin(θ) + k*(k·v)*(1-cos(θ))

    A zero axis leaves vec unchanged; an axis along -z flips y and z
    (rotation by π about x).
    """
    ax, ay, az = axis[0], axis[1], axis[2]
    a_norm = np.sqrt(ax * ax + ay * ay + az * az)
    result = vec.copy()
    if a_norm < SMALL:
        return result
    ax /= a_norm
    ay /= a_norm
    az /= a_norm

    # k = z × axis
    kx = -ay
    ky = ax
    k_norm = np.sqrt(kx * kx + ky * ky)

    if k_norm < SMALL:
        if az < 0.0:
            result[1] = -vec[1]
            result[2] = -vec[2]
        return result

    kx /= k_norm
    ky /= k_norm
    cos_t = az
    sin_t = k_norm

    vx, vy, vz = vec[0], vec[1], vec[2]
    # k × v with kz = 0
    cross_x = ky * vz
    cross_y = -kx * vz
    cross_z = kx * vy - ky * vx
    dot = kx * vx + ky * vy
    one_minus_cos = 1.0 - cos_t

    result[0] = vx * cos_t + cross_x * sin_t + kx * dot * one_minus_cos
    result[1] = vy * cos_t + cross_y * sin_t + ky * dot * one_minus_cos
    result[2] = vz * cos_t + cross_z * sin_t
    return result


@numba.njit(fastmath=True, cache=True)
def polar_angle(p4: np.ndarray) -> float:
    """Polar angle of the three-momentum with respect to +z [radians]."""
    p = momentum_magnitude(p4)
    if p < SMALL:
        return 0.0
    return np.arccos(min(1.0, max(-1.0, p4[2] / p)))


@numba.njit(fastmath=True, cache=True)
def two_body_final_state(p4_probe: np.ndarray, p4_hit: np.ndarray,
                         m_lepton: float, m_recoil: float,
                         cos_theta: float, phi: float) -> Tuple[bool, np.ndarray, np.ndarray]:
    """
    Two-body final state of probe + hit nucleon -> lepton + recoil.

    The lepton direction is given in the COM frame relative to the COM
    velocity as seen in the lab; both particles are on the mass shell in the
    COM frame and are boosted back to the lab.

    Parameters:
        p4_probe: Lab four-momentum of the probe
        p4_hit: Lab four-momentum of the (possibly off-shell) hit nucleon
        m_lepton: Outgoing lepton mass [GeV]
        m_recoil: Outgoing nucleon mass [GeV]
        cos_theta: COM polar angle cosine of the lepton
        phi: COM azimuth of the lepton [radians]

    Returns:
        (ok, lepton_p4, recoil_p4); ok is False below threshold
    """
    p4_tot = p4_probe + p4_hit
    lepton = np.zeros(4, dtype=np.float64)
    recoil = np.zeros(4, dtype=np.float64)

    s = mass2(p4_tot)
    if s <= 0.0:
        return False, lepton, recoil
    sqrt_s = np.sqrt(s)
    if sqrt_s < m_lepton + m_recoil:
        return False, lepton, recoil

    e_lep = (s - m_recoil * m_recoil + m_lepton * m_lepton) / (2.0 * sqrt_s)
    p2 = e_lep * e_lep - m_lepton * m_lepton
    if p2 < 0.0:
        return False, lepton, recoil
    p_cm = np.sqrt(p2)

    beta = boost_vector(p4_tot)
    l3 = rotate_z_onto(spherical_vector(p_cm, cos_theta, phi), beta)

    lepton[0] = l3[0]
    lepton[1] = l3[1]
    lepton[2] = l3[2]
    lepton[3] = e_lep
    recoil[0] = -l3[0]
    recoil[1] = -l3[1]
    recoil[2] = -l3[2]
    recoil[3] = np.sqrt(p_cm * p_cm + m_recoil * m_recoil)

    return True, lorentz_boost(lepton, beta), lorentz_boost(recoil, beta)


def four_vector(px: float, py: float, pz: float, E: float) -> np.ndarray:
    """Convenience constructor."""
    return np.array([px, py, pz, E], dtype=np.float64)
