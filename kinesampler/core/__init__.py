"""Core module: event data model, particle table, kinematics."""

from kinesampler.core.event import PhysicalConfiguration, BoundParticleSample, AcceptedKinematics
from kinesampler.core.particle import ParticleTable, PARTICLE_TABLE

__all__ = ["PhysicalConfiguration", "BoundParticleSample", "AcceptedKinematics",
           "ParticleTable", "PARTICLE_TABLE"]
