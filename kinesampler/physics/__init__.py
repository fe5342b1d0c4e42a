"""Physics module: binding treatments, phase space, nuclear model."""

from kinesampler.physics.binding import BindingMode, bind_hit_nucleon
from kinesampler.physics.nuclear import FermiGasSampler, FermiGasExclusion

__all__ = ["BindingMode", "bind_hit_nucleon", "FermiGasSampler", "FermiGasExclusion"]
