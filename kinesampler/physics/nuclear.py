"""
Relativistic Fermi gas nuclear model and Pauli blocker.

Reference implementations of the ConfigurationSampler and ExclusionCheck
protocols. Hit nucleons are uniform inside the Fermi sphere with a fixed
removal energy per nucleus; recoil nucleons below the Fermi momentum are
Pauli blocked.
"""

from typing import Dict, Optional

import numpy as np

from kinesampler.core.event import BoundParticleSample, PhysicalConfiguration

# Fermi momenta [GeV/c] and removal energies [GeV] by target PDG code
FERMI_MOMENTUM: Dict[int, float] = {
    1000010020: 0.088,
    1000020040: 0.169,
    1000060120: 0.221,
    1000080160: 0.225,
    1000180400: 0.251,
    1000260560: 0.251,
}

REMOVAL_ENERGY: Dict[int, float] = {
    1000010020: 0.0022,
    1000020040: 0.0200,
    1000060120: 0.0250,
    1000080160: 0.0270,
    1000180400: 0.0295,
    1000260560: 0.0360,
}


class FermiGasSampler:
    """
    Draw hit-nucleon states from a relativistic Fermi gas.

    Usage:
        nucl = FermiGasSampler()
        sample = nucl.draw(config, radius=0.0, rng=rng)
    """

    def __init__(self, fermi_momentum: Optional[Dict[int, float]] = None,
                 removal_energy: Optional[Dict[int, float]] = None,
                 default_fermi_momentum: float = 0.25,
                 default_removal_energy: float = 0.025):
        """
        Parameters:
            fermi_momentum: Target PDG -> k_F [GeV/c] (FERMI_MOMENTUM if None)
            removal_energy: Target PDG -> E_rm [GeV] (REMOVAL_ENERGY if None)
            default_fermi_momentum: k_F for targets missing from the table
            default_removal_energy: E_rm for targets missing from the table
        """
        self.fermi_momentum = dict(FERMI_MOMENTUM if fermi_momentum is None else fermi_momentum)
        self.removal_energy = dict(REMOVAL_ENERGY if removal_energy is None else removal_energy)
        self.default_fermi_momentum = default_fermi_momentum
        self.default_removal_energy = default_removal_energy

    def kf(self, target_pdg: int) -> float:
        return self.fermi_momentum.get(target_pdg, self.default_fermi_momentum)

    def draw(self, config: PhysicalConfiguration, radius: float,
             rng: np.random.Generator) -> BoundParticleSample:
        """
        Sample a hit nucleon.

        The global Fermi gas has no radial dependence, so radius is unused.
        """
        if not config.is_bound:
            return BoundParticleSample.at_rest()

        # |p| ~ p^2 on [0, kF]
        p = self.kf(config.target_pdg) * rng.random() ** (1.0 / 3.0)
        cos_theta = rng.uniform(-1.0, 1.0)
        phi = rng.uniform(0.0, 2.0 * np.pi)
        sin_theta = np.sqrt(1.0 - cos_theta * cos_theta)
        momentum = p * np.array([sin_theta * np.cos(phi),
                                 sin_theta * np.sin(phi),
                                 cos_theta])
        e_rm = self.removal_energy.get(config.target_pdg, self.default_removal_energy)
        return BoundParticleSample(momentum, e_rm)


class FermiGasExclusion:
    """Pauli blocker: recoil nucleons with |p| < k_F are excluded."""

    def __init__(self, fermi_momentum: Optional[Dict[int, float]] = None,
                 default_fermi_momentum: float = 0.25):
        self.fermi_momentum = dict(FERMI_MOMENTUM if fermi_momentum is None else fermi_momentum)
        self.default_fermi_momentum = default_fermi_momentum

    def fermi_momentum_for(self, config: PhysicalConfiguration) -> float:
        return self.fermi_momentum.get(config.target_pdg, self.default_fermi_momentum)

    def is_excluded(self, momentum: float, config: PhysicalConfiguration,
                    skip_check: bool = False) -> bool:
        """
        Parameters:
            momentum: Recoil nucleon |p| [GeV/c]
            config: Physical configuration of the event
            skip_check: Bypass blocking for this call only

        Returns:
            True if the recoil nucleon is Pauli blocked
        """
        if skip_check or not config.is_bound:
            return False
        return momentum < self.fermi_momentum_for(config)
