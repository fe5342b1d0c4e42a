"""
Sampler configuration.

Defaults reproduce the standard quasi-elastic generator tune. Settings can
be built from a dict or a YAML file:

    safety_factor: 1.6
    cache_min_energy: 1.0
    binding_mode: OnShellWithCorrection
"""

from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Any, Dict, Union

import yaml

from kinesampler.errors import ConfigurationError
from kinesampler.physics.binding import BindingMode


@dataclass
class SamplerConfig:
    """
    Tunable parameters of the kinematics sampler.

    Parameters:
        safety_factor: Scale applied to the estimated maximum rate (>= 1)
        cache_min_energy: Probe energy [GeV] below which maxima are never cached
        max_diff_tolerance: Largest fractional excess of a rate over the cached
            bound before the cache entry is dropped
        uniform_over_phase_space: Accept every non-degenerate draw with a weight
        min_angle_em: Minimum lepton lab angle [degrees] for EM scattering
        binding_mode: Hit-nucleon binding treatment
        max_xsec_nucleon_throws: Nuclear-model throws seeding the maximum search
        max_iterations: Accept/reject iterations per event
        acceptable_fraction: Fraction of (safety_factor - 1) below which the
            grid refinement is considered converged
        max_search_layers: Cap on grid refinement layers
        n_theta: Grid points along cos θ per layer
        n_phi: Grid points along φ per layer
    """
    safety_factor: float = 1.6
    cache_min_energy: float = 1.0
    max_diff_tolerance: float = 999999.0
    uniform_over_phase_space: bool = False
    min_angle_em: float = 0.0
    binding_mode: BindingMode = BindingMode.USE_NUCLEAR_MODEL
    max_xsec_nucleon_throws: int = 800
    max_iterations: int = 1000
    acceptable_fraction: float = 0.2
    max_search_layers: int = 100
    n_theta: int = 10
    n_phi: int = 10

    def __post_init__(self):
        self.binding_mode = BindingMode.from_string(self.binding_mode)
        self.validate()

    def validate(self) -> None:
        """
        Raises:
            ConfigurationError: on any out-of-range value
        """
        if self.safety_factor < 1.0:
            raise ConfigurationError(f"safety_factor must be >= 1, got {self.safety_factor}")
        if self.max_diff_tolerance < 0.0:
            raise ConfigurationError("max_diff_tolerance must be non-negative")
        if self.cache_min_energy < 0.0:
            raise ConfigurationError("cache_min_energy must be non-negative")
        if self.min_angle_em < 0.0:
            raise ConfigurationError("min_angle_em must be non-negative")
        for name in ('max_xsec_nucleon_throws', 'max_iterations', 'max_search_layers',
                     'n_theta', 'n_phi'):
            if int(getattr(self, name)) < 1:
                raise ConfigurationError(f"{name} must be a positive integer")
        if not 0.0 <= self.acceptable_fraction:
            raise ConfigurationError("acceptable_fraction must be non-negative")

    @classmethod
    def from_dict(cls, values: Dict[str, Any]) -> 'SamplerConfig':
        """Build from a mapping; unknown keys are an error."""
        known = {f.name for f in fields(cls)}
        unknown = set(values) - known
        if unknown:
            raise ConfigurationError(
                f"Unknown sampler settings {sorted(unknown)}. Available: {sorted(known)}"
            )
        return cls(**values)

    @classmethod
    def from_yaml(cls, path: Union[str, Path]) -> 'SamplerConfig':
        """Load settings from a YAML file (missing keys keep their defaults)."""
        path = Path(path)
        if not path.exists():
            raise ConfigurationError(f"Sampler config file not found: {path}")
        with open(path, 'r', encoding='utf-8') as f:
            values = yaml.safe_load(f) or {}
        if not isinstance(values, dict):
            raise ConfigurationError(f"{path}: expected a mapping at top level")
        return cls.from_dict(values)

    def to_dict(self) -> Dict[str, Any]:
        values = asdict(self)
        values['binding_mode'] = self.binding_mode.value
        return values
