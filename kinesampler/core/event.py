"""
Event-level data model: physical configuration in, kinematics out.

PhysicalConfiguration is immutable for the duration of one event and
derives the cache fingerprint. BoundParticleSample is one draw from the
nuclear model. AcceptedKinematics is only ever built from a validated draw.
"""

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Optional, Tuple

import numpy as np

from kinesampler.core import particle
from kinesampler.core.particle import PARTICLE_TABLE
from kinesampler.errors import KineGenError


class ProcessType(str, Enum):
    """Interaction type of the quasi-elastic process."""
    CC = 'CC'
    NC = 'NC'
    EM = 'EM'


class SamplerState(Enum):
    """States of the accept/reject loop."""
    SAMPLING = 'sampling'
    ACCEPTED = 'accepted'
    EXHAUSTED = 'exhausted'


@dataclass(frozen=True)
class PhysicalConfiguration:
    """
    Probe, target and struck nucleon of one event.

    Parameters:
        probe_pdg: PDG code of the probe
        probe_energy: Lab-frame probe energy [GeV]
        target_pdg: PDG code of the target (nucleus or free nucleon)
        hit_nucleon_pdg: PDG code of the struck nucleon
        process: CC, NC or EM
        hit_nucleon_radius: Radial position of the hit nucleon [fm]
    """
    probe_pdg: int
    probe_energy: float
    target_pdg: int
    hit_nucleon_pdg: int
    process: ProcessType = ProcessType.CC
    hit_nucleon_radius: float = 0.0

    def __post_init__(self):
        object.__setattr__(self, 'process', ProcessType(self.process))

    @property
    def is_bound(self) -> bool:
        """True when the struck nucleon sits inside a composite nucleus."""
        return particle.is_nucleus(self.target_pdg)

    @property
    def fingerprint(self) -> str:
        """Canonical cache key (energy excluded)."""
        return (f"nu:{self.probe_pdg};tgt:{self.target_pdg};"
                f"N:{self.hit_nucleon_pdg};proc:{self.process.value},QES;")

    @property
    def final_lepton_pdg(self) -> int:
        return particle.final_state_lepton(self.probe_pdg, self.process.value)

    @property
    def recoil_pdg(self) -> int:
        return particle.recoil_nucleon(self.probe_pdg, self.hit_nucleon_pdg, self.process.value)

    @property
    def remnant_pdg(self) -> Optional[int]:
        """Remnant nucleus PDG code, None for free targets."""
        if not self.is_bound:
            return None
        return particle.remnant_nucleus(self.target_pdg, self.hit_nucleon_pdg)

    @property
    def probe_mass(self) -> float:
        return PARTICLE_TABLE.mass(self.probe_pdg)

    @property
    def lepton_mass(self) -> float:
        return PARTICLE_TABLE.mass(self.final_lepton_pdg)

    @property
    def recoil_mass(self) -> float:
        return PARTICLE_TABLE.mass(self.recoil_pdg)

    @property
    def hit_nucleon_mass(self) -> float:
        return PARTICLE_TABLE.mass(self.hit_nucleon_pdg)

    @property
    def target_mass(self) -> float:
        return PARTICLE_TABLE.mass(self.target_pdg)

    @property
    def probe_p4(self) -> np.ndarray:
        """Lab four-momentum of the probe, moving along +z."""
        m = self.probe_mass
        pz = np.sqrt(max(0.0, self.probe_energy ** 2 - m * m))
        return np.array([0.0, 0.0, pz, self.probe_energy], dtype=np.float64)

    def with_energy(self, energy: float) -> 'PhysicalConfiguration':
        return replace(self, probe_energy=float(energy))

    def resolve(self) -> None:
        """
        Resolve every derived particle identity.

        Raises:
            ConfigurationError: if an identity is missing from the table
        """
        PARTICLE_TABLE.find(self.probe_pdg)
        PARTICLE_TABLE.find(self.target_pdg)
        PARTICLE_TABLE.find(self.final_lepton_pdg)
        PARTICLE_TABLE.find(self.recoil_pdg)
        _ = self.remnant_pdg

    def __str__(self) -> str:
        return f"{self.fingerprint} E={self.probe_energy:.4g} GeV"


@dataclass(frozen=True, eq=False)
class BoundParticleSample:
    """Hit-nucleon 3-momentum [GeV/c] and removal energy [GeV] from the nuclear model."""
    momentum: np.ndarray
    removal_energy: float = 0.0

    @classmethod
    def at_rest(cls) -> 'BoundParticleSample':
        """Unbound nucleon at rest in the lab."""
        return cls(np.zeros(3, dtype=np.float64), 0.0)

    @property
    def momentum_magnitude(self) -> float:
        return float(np.linalg.norm(self.momentum))

    def pointing_upstream(self) -> 'BoundParticleSample':
        """Same |p| and removal energy, with the momentum along -z (towards the probe)."""
        return BoundParticleSample(
            np.array([0.0, 0.0, -self.momentum_magnitude], dtype=np.float64),
            self.removal_energy,
        )


@dataclass(frozen=True)
class KinematicPoint:
    """COM lepton angles relative to the COM velocity in the lab."""
    cos_theta: float
    phi: float


@dataclass(frozen=True, eq=False)
class AcceptedKinematics:
    """Validated final-state kinematics of one event."""
    lepton_p4: np.ndarray
    recoil_p4: np.ndarray
    hit_nucleon_p4: np.ndarray
    q_p4: np.ndarray
    Q2: float
    W: float
    x: float
    y: float
    removal_energy: float
    rate: float
    point: KinematicPoint
    q2_range: Tuple[float, float]
    weight: float = 1.0
    remnant_pdg: Optional[int] = None
    remnant_p4: Optional[np.ndarray] = None
    skip_exclusion_check: bool = False

    @property
    def q0(self) -> float:
        """Energy transfer [GeV]."""
        return float(self.q_p4[3])

    @property
    def q3(self) -> float:
        """Magnitude of the 3-momentum transfer [GeV/c]."""
        return float(np.linalg.norm(self.q_p4[:3]))

    @property
    def recoil_momentum(self) -> float:
        return float(np.linalg.norm(self.recoil_p4[:3]))


@dataclass
class GenerationResult:
    """Outcome of one RejectionSampler.generate call."""
    status: SamplerState
    kinematics: Optional[AcceptedKinematics] = None
    iterations: int = 0
    rate_bound: Optional[float] = None
    bound_violations: int = 0
    corrector_rejections: int = 0
    message: str = field(default='')

    @property
    def ok(self) -> bool:
        return self.status is SamplerState.ACCEPTED

    @property
    def kine_gen_err(self) -> bool:
        """Event flag: kinematics could not be selected."""
        return self.status is SamplerState.EXHAUSTED

    def unwrap(self) -> AcceptedKinematics:
        """
        Return the kinematics or raise.

        Raises:
            KineGenError: if the iteration budget was exhausted
        """
        if not self.ok:
            raise KineGenError(self.message or "Couldn't select kinematics", self.iterations)
        return self.kinematics
