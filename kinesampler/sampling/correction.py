"""
Binding-energy correction applied after acceptance.

In OnShellWithCorrection mode the accept/reject loop samples angles with
an on-shell hit nucleon. Once a point is accepted the nucleon is put back
off-shell with the nuclear-model removal energy and the two-body final
state is recomputed at the same COM angles. Draws the correction pushes out
of the physical region are sent back to the sampling loop.
"""

import logging
from dataclasses import dataclass
from typing import Optional, Tuple

import numpy as np

from kinesampler.core.event import (BoundParticleSample, KinematicPoint, PhysicalConfiguration,
                                    ProcessType)
from kinesampler.core.kinematics import polar_angle
from kinesampler.errors import ConfigurationError
from kinesampler.physics import phase_space
from kinesampler.physics.binding import BindingMode, bind_hit_nucleon
from kinesampler.physics.interfaces import ExclusionCheck
from kinesampler.physics.phase_space import FinalState

logger = logging.getLogger(__name__)


@dataclass(frozen=True, eq=False)
class CorrectionOutcome:
    """Result of KinematicsCorrector.correct; retry when accepted is False."""
    accepted: bool
    reason: str = ''
    final_state: Optional[FinalState] = None
    hit_p4: Optional[np.ndarray] = None
    removal_energy: float = 0.0
    q2_range: Tuple[float, float] = (0.0, 0.0)
    skip_exclusion_check: bool = False

    @property
    def retry(self) -> bool:
        return not self.accepted


class KinematicsCorrector:
    """
    Re-derive on-shell final-state kinematics with binding energy applied.

    Checks, in order:
        1. invariant mass above the lepton + recoil threshold
        2. lepton lab angle above min_angle_em (EM scattering only)
        3. Q2 inside the allowed range
    and finally decides whether Pauli blocking must be skipped for the event.
    """

    def __init__(self, exclusion: ExclusionCheck, min_angle_em: float = 0.0):
        """
        Parameters:
            exclusion: Pauli blocker consulted for the override decision
            min_angle_em: Minimum lepton lab angle for EM events [degrees]
        """
        if exclusion is None:
            raise ConfigurationError("KinematicsCorrector needs a Pauli exclusion check")
        self.exclusion = exclusion
        self.min_angle_em = float(min_angle_em)

    def correct(self, config: PhysicalConfiguration, sample: BoundParticleSample,
                point: KinematicPoint, uncorrected: FinalState) -> CorrectionOutcome:
        """
        Apply the correction to an accepted draw.

        Parameters:
            config: Physical configuration
            sample: Nuclear-model state of the accepted draw
            point: Accepted COM angles
            uncorrected: Final state computed with the on-shell nucleon

        Returns:
            CorrectionOutcome (retry if a check failed)
        """
        hit_p4, e_b = bind_hit_nucleon(config, sample, BindingMode.USE_NUCLEAR_MODEL)

        corrected = phase_space.final_state(config, hit_p4, point)
        if corrected is None:
            logger.debug("Rejecting current throw, binding energy corrections "
                         "move event below threshold")
            return CorrectionOutcome(False, 'threshold')

        if config.process is ProcessType.EM and self.min_angle_em > 0.0:
            angle_deg = np.degrees(polar_angle(corrected.lepton_p4))
            if angle_deg < self.min_angle_em:
                logger.debug("Rejecting current throw, lepton angle %.3f deg below %.3f deg",
                             angle_deg, self.min_angle_em)
                return CorrectionOutcome(False, 'min_angle')

        q2_min, q2_max = phase_space.q2_limits(config, hit_p4)
        if corrected.Q2 < q2_min or corrected.Q2 > q2_max:
            logger.debug("Rejecting current throw, binding energy corrections "
                         "move Q2 = %g outside [%g, %g]", corrected.Q2, q2_min, q2_max)
            return CorrectionOutcome(False, 'q2_range')

        # Blocked only because of the approximate correction: let it through
        p_corrected = float(np.linalg.norm(corrected.recoil_p4[:3]))
        p_uncorrected = float(np.linalg.norm(uncorrected.recoil_p4[:3]))
        skip = (self.exclusion.is_excluded(p_corrected, config)
                and not self.exclusion.is_excluded(p_uncorrected, config))
        if skip:
            logger.debug("Corrected recoil |p| = %g blocked, uncorrected %g not; "
                         "skipping Pauli check for this event", p_corrected, p_uncorrected)

        return CorrectionOutcome(True, '', corrected, hit_p4, e_b, (q2_min, q2_max), skip)
