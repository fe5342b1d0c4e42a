"""
Adaptive grid search for the maximum rate over (cos θ0, φ0).

The estimate does not need to be the exact maximum: the value used in the
rejection method is scaled up by a safety factor. It needs to be fast.

Algorithm:
    1. Throw hit nucleons from the nuclear model at r = 0. Among the throws
       with a non-degenerate angular range keep the largest |p| and the
       smallest removal energy; point that momentum at the probe (-z).
    2. Scan an n_theta x n_phi grid over the allowed angles, shrink the
       rectangle to one cell width either side of the best point, repeat.
    3. Stop once a layer improves the maximum by less than
       acceptable_fraction * (safety_factor - 1), or after max_layers.
"""

import logging
from typing import Callable, NamedTuple, Optional

import numpy as np

from kinesampler.config import SamplerConfig
from kinesampler.core.event import BoundParticleSample, KinematicPoint, PhysicalConfiguration
from kinesampler.core.rng import ensure_rng
from kinesampler.errors import ConfigurationError
from kinesampler.physics import phase_space
from kinesampler.physics.binding import BindingMode
from kinesampler.physics.interfaces import ConfigurationSampler, RateModel

logger = logging.getLogger(__name__)

AngularLimit = Callable[[PhysicalConfiguration, BoundParticleSample], float]


class SearchResult(NamedTuple):
    rate_max: float
    point: Optional[KinematicPoint]
    layers: int


class AdaptiveMaximumSearch:
    """
    Estimate the maximum of a rate model over the angular phase space.

    Usage:
        search = AdaptiveMaximumSearch(rate_model, nuclear_model)
        rate_max = search.estimate(config)
    """

    def __init__(self, rate_model: RateModel,
                 sampler: Optional[ConfigurationSampler] = None,
                 binding_mode: BindingMode = BindingMode.USE_NUCLEAR_MODEL,
                 num_samples: int = 800,
                 safety_factor: float = 1.6,
                 acceptable_fraction: float = 0.2,
                 max_layers: int = 100,
                 n_theta: int = 10,
                 n_phi: int = 10,
                 angular_limit: Optional[AngularLimit] = None,
                 rng: Optional[np.random.Generator] = None):
        """
        Parameters:
            rate_model: Rate to maximise
            sampler: Nuclear model (required for bound targets)
            binding_mode: Binding treatment used while sampling
            num_samples: Nuclear-model throws
            safety_factor: Safety factor the result will be scaled by
            acceptable_fraction: Convergence fraction of (safety_factor - 1)
            max_layers: Refinement layer cap
            n_theta, n_phi: Grid size per layer
            angular_limit: Override for cos θ0_max(config, sample)
            rng: Default random generator for the nuclear-model throws
        """
        if rate_model is None:
            raise ConfigurationError("AdaptiveMaximumSearch needs a rate model")
        self.rate_model = rate_model
        self.sampler = sampler
        self.binding_mode = BindingMode.from_string(binding_mode)
        self.num_samples = int(num_samples)
        self.safety_factor = float(safety_factor)
        self.acceptable_fraction = float(acceptable_fraction)
        self.max_layers = int(max_layers)
        self.n_theta = int(n_theta)
        self.n_phi = int(n_phi)
        self.angular_limit = angular_limit or self._default_angular_limit
        self.rng = rng

    @classmethod
    def from_config(cls, rate_model: RateModel, sampler: Optional[ConfigurationSampler],
                    config: SamplerConfig, angular_limit: Optional[AngularLimit] = None,
                    rng: Optional[np.random.Generator] = None) -> 'AdaptiveMaximumSearch':
        return cls(rate_model, sampler,
                   binding_mode=config.binding_mode,
                   num_samples=config.max_xsec_nucleon_throws,
                   safety_factor=config.safety_factor,
                   acceptable_fraction=config.acceptable_fraction,
                   max_layers=config.max_search_layers,
                   n_theta=config.n_theta,
                   n_phi=config.n_phi,
                   angular_limit=angular_limit,
                   rng=rng)

    def _default_angular_limit(self, config: PhysicalConfiguration,
                               sample: BoundParticleSample) -> float:
        return phase_space.angular_limit(config, sample, self.binding_mode)

    def __call__(self, config: PhysicalConfiguration) -> float:
        return self.estimate(config)

    def select_sample(self, config: PhysicalConfiguration, num_samples: int,
                      rng: np.random.Generator) -> Optional[BoundParticleSample]:
        """
        Pick the hit-nucleon state most likely to maximise the rate.

        Returns:
            Upstream-pointing sample with max |p| and min removal energy, or
            None if every throw had a vanishing angular range
        """
        if not config.is_bound:
            sample = BoundParticleSample.at_rest()
            return sample if self.angular_limit(config, sample) > -1.0 else None

        if self.sampler is None:
            raise ConfigurationError(
                f"A nuclear model is required for bound target {config.target_pdg}"
            )

        min_energy = np.inf
        max_momentum = -np.inf
        one_nucleon_ok = False

        for _ in range(num_samples):
            thrown = self.sampler.draw(config, 0.0, rng).pointing_upstream()
            cos_max = self.angular_limit(config, thrown)
            logger.debug("cos_theta0_max = %g", cos_max)
            if cos_max > -1.0:
                min_energy = min(min_energy, thrown.removal_energy)
                max_momentum = max(max_momentum, thrown.momentum_magnitude)
                one_nucleon_ok = True

        if not one_nucleon_ok:
            return None
        return BoundParticleSample(np.array([0.0, 0.0, -max_momentum]), float(min_energy))

    def refine(self, config: PhysicalConfiguration, sample: BoundParticleSample) -> SearchResult:
        """
        Iterative grid refinement for one hit-nucleon state.

        Returns:
            SearchResult with the largest rate found (unscaled, 0 if the
            angular range vanishes), where it was found and the layers used
        """
        cos_upper = min(1.0, self.angular_limit(config, sample))
        if cos_upper <= -1.0:
            return SearchResult(0.0, None, 0)

        costh_min, costh_max = -1.0, cos_upper
        phi_min, phi_max = 0.0, 2.0 * np.pi
        costh_at_max, phi_at_max = 0.0, -1.0
        rate_max = -1.0
        threshold = self.acceptable_fraction * (self.safety_factor - 1.0)

        layers = 0
        for layer in range(self.max_layers):
            last_layer_max = rate_max
            costh_inc = (costh_max - costh_min) / self.n_theta
            phi_inc = (phi_max - phi_min) / self.n_phi

            for itheta in range(self.n_theta):
                costh = costh_min + itheta * costh_inc
                for iphi in range(self.n_phi):
                    phi = phi_min + iphi * phi_inc
                    rate = self.rate_model(config, sample, costh, phi)
                    if rate > rate_max:
                        costh_at_max = costh
                        phi_at_max = phi
                        rate_max = rate

            layers = layer + 1

            # Next layer: one cell either side of the maximum. cos θ is clamped to the
            # physical range, so a maximum near an edge gets an off-centre rectangle.
            costh_min = max(-1.0, costh_at_max - costh_inc)
            costh_max = min(cos_upper, costh_at_max + costh_inc)
            phi_min = phi_at_max - phi_inc
            phi_max = phi_at_max + phi_inc

            if layer > 0 and self._improvement(rate_max, last_layer_max) < threshold:
                break

        point = KinematicPoint(costh_at_max, phi_at_max % (2.0 * np.pi))
        return SearchResult(max(rate_max, 0.0), point, layers)

    @staticmethod
    def _improvement(current: float, previous: float) -> float:
        """Fractional improvement current/previous - 1 (0 when nothing changed)."""
        if previous > 0.0:
            return current / previous - 1.0
        return np.inf if current > previous else 0.0

    def estimate(self, config: PhysicalConfiguration, num_samples: Optional[int] = None,
                 rng: Optional[np.random.Generator] = None) -> float:
        """
        Estimate the maximum rate for a configuration.

        Parameters:
            config: Physical configuration
            num_samples: Nuclear-model throws (default self.num_samples)
            rng: Random generator for the throws

        Returns:
            Unscaled maximum rate; 0 if no throw gave a physical angular range
        """
        logger.info("Computing maximum rate to throw against for %s", config)
        rng = ensure_rng(rng if rng is not None else self.rng)
        n = self.num_samples if num_samples is None else int(num_samples)

        sample = self.select_sample(config, n, rng)
        if sample is None:
            logger.warning("Failed to find a nonzero maximum rate after sampling %d "
                           "nucleons from the nuclear model", n)
            return 0.0

        result = self.refine(config, sample)
        logger.info("Best estimate for the maximum rate = %g (%d layers)",
                    result.rate_max, result.layers)
        return result.rate_max

