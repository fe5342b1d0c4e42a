"""
Hit-nucleon binding treatments.

The accept/reject loop evaluates the rate with the hit nucleon put on or off
the mass shell according to BindingMode. ON_SHELL_WITH_CORRECTION samples
on-shell and repairs the kinematics after acceptance
(see kinesampler.sampling.correction).
"""

from enum import Enum
from typing import Tuple, Union

import numpy as np

from kinesampler.core.event import BoundParticleSample, PhysicalConfiguration
from kinesampler.errors import ConfigurationError


class BindingMode(Enum):
    USE_NUCLEAR_MODEL = 'UseNuclearModel'
    ON_SHELL = 'OnShell'
    ON_SHELL_WITH_CORRECTION = 'OnShellWithCorrection'

    @classmethod
    def from_string(cls, value: Union[str, 'BindingMode']) -> 'BindingMode':
        """Accept 'UseNuclearModel', 'use_nuclear_model', 'USE_NUCLEAR_MODEL', ..."""
        if isinstance(value, cls):
            return value
        normalized = str(value).replace('_', '').replace('-', '').lower()
        for mode in cls:
            if normalized in (mode.value.lower(), mode.name.replace('_', '').lower()):
                return mode
        raise ConfigurationError(
            f"Unknown hit nucleon binding mode '{value}'. "
            f"Available: {[m.value for m in cls]}"
        )


def bind_hit_nucleon(config: PhysicalConfiguration, sample: BoundParticleSample,
                     mode: BindingMode) -> Tuple[np.ndarray, float]:
    """
    Build the lab four-momentum of the hit nucleon.

    With USE_NUCLEAR_MODEL a bound nucleon is taken off-shell so that the
    remnant nucleus (mass M_A - m_N + E_rm) recoils on-shell:
        E = M_A - sqrt((M_A - m_N + E_rm)^2 + p^2)
    Otherwise the nucleon is on-shell, E = sqrt(p^2 + m_N^2).

    Parameters:
        config: Physical configuration
        sample: Nuclear-model draw (3-momentum, removal energy)
        mode: Binding treatment

    Returns:
        (p4, binding_energy): hit-nucleon four-momentum and the removal
        energy actually applied (0 for on-shell treatments)
    """
    p3 = np.asarray(sample.momentum, dtype=np.float64)
    p2 = float(p3 @ p3)
    m_n = config.hit_nucleon_mass

    if config.is_bound and mode is BindingMode.USE_NUCLEAR_MODEL:
        m_target = config.target_mass
        e_rm = sample.removal_energy
        m_remnant = m_target - m_n + e_rm
        energy = m_target - np.sqrt(m_remnant * m_remnant + p2)
        binding = e_rm
    else:
        energy = np.sqrt(p2 + m_n * m_n)
        binding = 0.0

    return np.array([p3[0], p3[1], p3[2], energy], dtype=np.float64), binding
