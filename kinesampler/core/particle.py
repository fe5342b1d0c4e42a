"""
Particle property lookup.

PDG Monte Carlo codes are used throughout. Nuclei follow the 10LZZZAAAI
convention (1000060120 = C-12); A = 1 ions map onto the proton and neutron.
Masses are in GeV.
"""

from dataclasses import dataclass
from typing import Dict, Tuple

from kinesampler.errors import ConfigurationError

PROTON = 2212
NEUTRON = 2112
ELECTRON = 11
MUON = 13
TAU = 15
NU_E = 12
NU_MU = 14
NU_TAU = 16

ION_BASE = 1000000000


@dataclass(frozen=True)
class ParticleProperties:
    """Static properties of one particle species."""
    pdg: int
    name: str
    mass: float    # GeV
    charge: float  # units of e


def ion_pdg_code(A: int, Z: int) -> int:
    """
    Build the PDG code of a nucleus.

    Parameters:
        A: Mass number
        Z: Atomic number

    Returns:
        PDG code (proton/neutron codes for A = 1)
    """
    if A == 1 and Z == 1:
        return PROTON
    if A == 1 and Z == 0:
        return NEUTRON
    return ION_BASE + 10000 * Z + 10 * A


def ion_A(pdg: int) -> int:
    """Mass number encoded in a PDG code (1 for nucleons, 0 otherwise)."""
    if pdg in (PROTON, NEUTRON):
        return 1
    if pdg > ION_BASE:
        return (pdg // 10) % 1000
    return 0


def ion_Z(pdg: int) -> int:
    """Atomic number encoded in a PDG code."""
    if pdg == PROTON:
        return 1
    if pdg > ION_BASE:
        return (pdg // 10000) % 1000
    return 0


def is_nucleus(pdg: int) -> bool:
    """True for composite nuclei (A > 1)."""
    return ion_A(pdg) > 1


def is_neutrino(pdg: int) -> bool:
    return abs(pdg) in (NU_E, NU_MU, NU_TAU)


def is_charged_lepton(pdg: int) -> bool:
    return abs(pdg) in (ELECTRON, MUON, TAU)


class ParticleTable:
    """
    Particle property table with name aliases.

    Usage:
        table = ParticleTable()
        m_p = table.mass(2212)
        pdg = table.pdg_code('C-12')
    """

    # pdg: (name, mass [GeV], charge)
    PARTICLES: Dict[int, Tuple[str, float, float]] = {
        ELECTRON: ('e-', 0.000510999, -1.0),
        -ELECTRON: ('e+', 0.000510999, 1.0),
        MUON: ('mu-', 0.1056584, -1.0),
        -MUON: ('mu+', 0.1056584, 1.0),
        TAU: ('tau-', 1.77686, -1.0),
        -TAU: ('tau+', 1.77686, 1.0),
        NU_E: ('nu_e', 0.0, 0.0),
        -NU_E: ('nu_e_bar', 0.0, 0.0),
        NU_MU: ('nu_mu', 0.0, 0.0),
        -NU_MU: ('nu_mu_bar', 0.0, 0.0),
        NU_TAU: ('nu_tau', 0.0, 0.0),
        -NU_TAU: ('nu_tau_bar', 0.0, 0.0),
        PROTON: ('proton', 0.9382720, 1.0),
        NEUTRON: ('neutron', 0.9395654, 0.0),
        1000010020: ('H-2', 1.875613, 1.0),
        1000010030: ('H-3', 2.808921, 1.0),
        1000020030: ('He-3', 2.808391, 2.0),
        1000020040: ('He-4', 3.727379, 2.0),
        1000050110: ('B-11', 10.252548, 5.0),
        1000060110: ('C-11', 10.254018, 6.0),
        1000060120: ('C-12', 11.174862, 6.0),
        1000070150: ('N-15', 13.968935, 7.0),
        1000080150: ('O-15', 13.971178, 8.0),
        1000080160: ('O-16', 14.895080, 8.0),
        1000170390: ('Cl-39', 36.294470, 17.0),
        1000180390: ('Ar-39', 36.293780, 18.0),
        1000180400: ('Ar-40', 37.215523, 18.0),
        1000250550: ('Mn-55', 51.161990, 25.0),
        1000260550: ('Fe-55', 51.163800, 26.0),
        1000260560: ('Fe-56', 52.089776, 26.0),
    }

    ALIASES: Dict[str, int] = {
        'p': PROTON,
        'H-1': PROTON,
        'n': NEUTRON,
        'deuteron': 1000010020,
        'triton': 1000010030,
        'alpha': 1000020040,
        'electron': ELECTRON,
        'muon': MUON,
    }

    def __init__(self):
        self._by_name = {name: pdg for pdg, (name, _, _) in self.PARTICLES.items()}
        self._by_name.update(self.ALIASES)

    def find(self, pdg: int) -> ParticleProperties:
        """
        Look up a particle.

        Raises:
            ConfigurationError: if the code is not in the table
        """
        try:
            name, mass, charge = self.PARTICLES[int(pdg)]
        except KeyError:
            raise ConfigurationError(
                f"No particle with pdgc = {pdg} in the particle table "
                f"[A = {ion_A(pdg)}, Z = {ion_Z(pdg)}]"
            ) from None
        return ParticleProperties(int(pdg), name, mass, charge)

    def mass(self, pdg: int) -> float:
        """Rest mass [GeV]."""
        return self.find(pdg).mass

    def pdg_code(self, name: str) -> int:
        """Parse 'C-12' / 'nu_mu' / 'proton' -> PDG code."""
        try:
            return self._by_name[name]
        except KeyError:
            raise ConfigurationError(
                f"Unknown particle '{name}'. Available: {sorted(self._by_name)}"
            ) from None

    def __contains__(self, pdg: int) -> bool:
        return int(pdg) in self.PARTICLES


PARTICLE_TABLE = ParticleTable()


# ============================================================================
# Derived identities for quasi-elastic scattering
# ============================================================================

def final_state_lepton(probe_pdg: int, process: str) -> int:
    """
    Outgoing primary lepton.

    Charged-current neutrino scattering produces the charged partner of the
    probe; neutral-current and electromagnetic scattering keep the probe.
    """
    if process == 'CC':
        if not is_neutrino(probe_pdg):
            raise ConfigurationError(f"CC scattering needs a neutrino probe, got {probe_pdg}")
        sign = 1 if probe_pdg > 0 else -1
        return sign * (abs(probe_pdg) - 1)
    return probe_pdg


def recoil_nucleon(probe_pdg: int, hit_nucleon_pdg: int, process: str) -> int:
    """
    Outgoing nucleon.

    CC neutrinos convert n -> p, CC antineutrinos p -> n.
    """
    if hit_nucleon_pdg not in (PROTON, NEUTRON):
        raise ConfigurationError(f"Hit particle {hit_nucleon_pdg} is not a nucleon")
    if process != 'CC':
        return hit_nucleon_pdg
    if probe_pdg > 0:
        if hit_nucleon_pdg != NEUTRON:
            raise ConfigurationError("CC neutrino scattering requires a struck neutron")
        return PROTON
    if hit_nucleon_pdg != PROTON:
        raise ConfigurationError("CC antineutrino scattering requires a struck proton")
    return NEUTRON


def remnant_nucleus(target_pdg: int, hit_nucleon_pdg: int,
                    table: ParticleTable = PARTICLE_TABLE) -> int:
    """
    Nucleus left behind after removing the hit nucleon.

    Raises:
        ConfigurationError: if the remnant is not in the particle table
    """
    A = ion_A(target_pdg) - 1
    Z = ion_Z(target_pdg) - (1 if hit_nucleon_pdg == PROTON else 0)
    if A < 1 or Z < 0 or Z > A:
        raise ConfigurationError(
            f"Cannot remove nucleon {hit_nucleon_pdg} from target {target_pdg}"
        )
    pdg = ion_pdg_code(A, Z)
    table.find(pdg)
    return pdg
