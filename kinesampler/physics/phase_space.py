"""
Quasi-elastic phase space.

The sampled variables are the COM lepton angles (cos θ0, φ0) measured
relative to the velocity of the probe + hit nucleon COM frame in the lab.
This module computes the allowed cos θ0 range, the allowed Q2 range, and
the lab-frame final state for a point.
"""

from typing import NamedTuple, Optional, Tuple

import numpy as np
import numba

from kinesampler.core.event import BoundParticleSample, KinematicPoint, PhysicalConfiguration
from kinesampler.core.kinematics import SMALL, mass2, momentum_magnitude, two_body_final_state
from kinesampler.physics.binding import BindingMode, bind_hit_nucleon

# Returned when no physical solution exists
DEGENERATE = -2.0


class FinalState(NamedTuple):
    lepton_p4: np.ndarray
    recoil_p4: np.ndarray
    q_p4: np.ndarray
    Q2: float


@numba.njit(fastmath=True, cache=True)
def cos_theta0_max_kernel(p4_probe: np.ndarray, p4_hit: np.ndarray,
                          m_lepton: float, m_recoil: float) -> float:
    """
    Largest COM cos θ0 with non-negative lab energy transfer.

    The lab lepton energy is γ (E*_l + β p*_l cos θ0); requiring it not to
    exceed the probe energy bounds cos θ0 from above. Below the two-body
    threshold DEGENERATE is returned.
    """
    p4_tot = p4_probe + p4_hit
    s = mass2(p4_tot)
    if s <= 0.0 or p4_tot[3] <= 0.0:
        return DEGENERATE
    sqrt_s = np.sqrt(s)
    if sqrt_s < m_lepton + m_recoil:
        return DEGENERATE

    e_lep = (s - m_recoil * m_recoil + m_lepton * m_lepton) / (2.0 * sqrt_s)
    p2 = e_lep * e_lep - m_lepton * m_lepton
    if p2 < 0.0:
        return DEGENERATE
    p_cm = np.sqrt(p2)

    gamma = p4_tot[3] / sqrt_s
    beta = momentum_magnitude(p4_tot) / p4_tot[3]

    numer = p4_probe[3] / gamma - e_lep
    denom = beta * p_cm
    if denom < SMALL:
        if numer >= 0.0:
            return 1.0
        return DEGENERATE
    return numer / denom


def cos_theta_max(config: PhysicalConfiguration, hit_p4: np.ndarray) -> float:
    """Upper edge of the cos θ0 range (may exceed 1 or fall below -1)."""
    return float(cos_theta0_max_kernel(config.probe_p4, hit_p4,
                                       config.lepton_mass, config.recoil_mass))


def angular_limit(config: PhysicalConfiguration, sample: BoundParticleSample,
                  binding_mode: BindingMode) -> float:
    """Bind the sample with binding_mode, then return cos_theta_max."""
    hit_p4, _ = bind_hit_nucleon(config, sample, binding_mode)
    return cos_theta_max(config, hit_p4)


def minkowski_dot(a: np.ndarray, b: np.ndarray) -> float:
    return float(a[3] * b[3] - a[0] * b[0] - a[1] * b[1] - a[2] * b[2])


def probe_energy_in_hit_rest_frame(config: PhysicalConfiguration, hit_p4: np.ndarray) -> float:
    """Probe energy seen by the (possibly off-shell) hit nucleon."""
    m = np.sqrt(max(mass2(hit_p4), 0.0))
    if m <= 0.0:
        return 0.0
    return minkowski_dot(config.probe_p4, hit_p4) / m


def q2_limits(config: PhysicalConfiguration, hit_p4: np.ndarray) -> Tuple[float, float]:
    """
    Allowed Q2 range for a final hadronic system of fixed mass W.

    Parameters:
        config: Physical configuration (W is the on-shell recoil mass)
        hit_p4: Hit-nucleon four-momentum

    Returns:
        (Q2_min, Q2_max) [GeV^2], both clipped at 0
    """
    M2 = max(mass2(hit_p4), 0.0)
    M = np.sqrt(M2)
    if M <= 0.0:
        return 0.0, 0.0
    Ev = probe_energy_in_hit_rest_frame(config, hit_p4)
    ml2 = config.lepton_mass ** 2
    W2 = config.recoil_mass ** 2

    s = M2 + 2.0 * M * Ev
    if s <= 0.0:
        return 0.0, 0.0
    aux_c = 0.5 * (s - M2) / s
    aux1 = s + ml2 - W2
    aux2 = max(aux1 * aux1 - 4.0 * s * ml2, 0.0)
    sq = np.sqrt(aux2)

    q2_max = -ml2 + aux_c * (aux1 + sq)
    q2_min = -ml2 + aux_c * (aux1 - sq)
    return max(0.0, q2_min), max(0.0, q2_max)


def final_state(config: PhysicalConfiguration, hit_p4: np.ndarray,
                point: KinematicPoint) -> Optional[FinalState]:
    """
    Lab-frame lepton and recoil for a sampled point.

    Returns:
        FinalState, or None below the two-body threshold
    """
    probe = config.probe_p4
    ok, lepton, recoil = two_body_final_state(
        probe, hit_p4, config.lepton_mass, config.recoil_mass,
        float(point.cos_theta), float(point.phi)
    )
    if not ok:
        return None
    q = probe - lepton
    return FinalState(lepton, recoil, q, -float(mass2(q)))


def wq2_to_xy(Ev: float, M: float, W: float, Q2: float) -> Tuple[float, float]:
    """(W, Q2) -> Bjorken x and inelasticity y."""
    nu2M = W * W - M * M + Q2
    x = Q2 / nu2M if nu2M != 0.0 else 0.0
    y = nu2M / (2.0 * M * Ev) if M * Ev != 0.0 else 0.0
    return x, y
