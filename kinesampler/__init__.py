"""
kinesampler: quasi-elastic scattering kinematics sampler

Draws final-state kinematics of a probe striking a free or bound nucleon by
accept/reject sampling against an externally supplied differential rate.

Modules:
    core: Event data model, particle table, kinematics kernels, RNG helpers
    physics: Binding treatments, phase space, nuclear model, collaborator protocols
    sampling: Maximum search, rate cache, rejection sampler, corrector, driver
"""

__version__ = "0.1.0"

from kinesampler.config import SamplerConfig
from kinesampler.core.event import (AcceptedKinematics, BoundParticleSample, GenerationResult,
                                    KinematicPoint, PhysicalConfiguration, ProcessType,
                                    SamplerState)
from kinesampler.errors import ConfigurationError, KineGenError, KinesamplerError
from kinesampler.physics.binding import BindingMode
from kinesampler.physics.nuclear import FermiGasExclusion, FermiGasSampler
from kinesampler.sampling.cache import MaxRateCache
from kinesampler.sampling.correction import KinematicsCorrector
from kinesampler.sampling.driver import generate_events
from kinesampler.sampling.max_search import AdaptiveMaximumSearch
from kinesampler.sampling.rejection import RejectionSampler

__all__ = [
    "SamplerConfig",
    "AcceptedKinematics",
    "BoundParticleSample",
    "GenerationResult",
    "KinematicPoint",
    "PhysicalConfiguration",
    "ProcessType",
    "SamplerState",
    "ConfigurationError",
    "KineGenError",
    "KinesamplerError",
    "BindingMode",
    "FermiGasSampler",
    "FermiGasExclusion",
    "MaxRateCache",
    "KinematicsCorrector",
    "generate_events",
    "AdaptiveMaximumSearch",
    "RejectionSampler",
]
