"""
Accept/reject selection of quasi-elastic kinematics.

Each iteration samples
    - the hit nucleon 3-momentum and removal energy (nuclear model),
    - the lepton COM angles (cos θ0, φ0) uniformly over the allowed range,
evaluates the rate model and accepts against the cached maximum rate.
Accepted draws in OnShellWithCorrection mode pass through the
KinematicsCorrector, which may send the loop back to sampling.

State machine: SAMPLING -> ACCEPTED | EXHAUSTED. Exhaustion is an
event-level failure (kine_gen_err) reported in the GenerationResult; only a
misconfigured generator raises.
"""

import logging
from typing import Optional, Tuple

import numpy as np

from kinesampler.config import SamplerConfig
from kinesampler.core.event import (AcceptedKinematics, BoundParticleSample, GenerationResult,
                                    KinematicPoint, PhysicalConfiguration, SamplerState)
from kinesampler.core.kinematics import mass2
from kinesampler.core.rng import ensure_rng
from kinesampler.errors import ConfigurationError
from kinesampler.physics import phase_space
from kinesampler.physics.binding import BindingMode, bind_hit_nucleon
from kinesampler.physics.interfaces import ConfigurationSampler, ExclusionCheck, RateModel
from kinesampler.sampling.cache import MaxRateCache
from kinesampler.sampling.correction import KinematicsCorrector
from kinesampler.sampling.max_search import AdaptiveMaximumSearch, AngularLimit

logger = logging.getLogger(__name__)

TWO_PI = 2.0 * np.pi


class RejectionSampler:
    """
    Quasi-elastic kinematics generator.

    Usage:
        qel = RejectionSampler(rate_model, SamplerConfig(),
                               sampler=FermiGasSampler(),
                               exclusion=FermiGasExclusion())
        result = qel.generate(config, rng)
        if result.ok:
            kine = result.kinematics
    """

    def __init__(self, rate_model: RateModel,
                 config: Optional[SamplerConfig] = None,
                 sampler: Optional[ConfigurationSampler] = None,
                 exclusion: Optional[ExclusionCheck] = None,
                 cache: Optional[MaxRateCache] = None,
                 angular_limit: Optional[AngularLimit] = None,
                 name: str = 'qel-kinematics'):
        """
        Parameters:
            rate_model: Differential rate (cross section) model
            config: Sampler settings (defaults if None)
            sampler: Nuclear model; required for bound targets
            exclusion: Pauli blocker; required in OnShellWithCorrection mode
            cache: Shared maximum-rate cache (a private one if None)
            angular_limit: Override for cos θ0_max(config, sample)
            name: Cache namespace of this generator
        """
        if rate_model is None:
            raise ConfigurationError("RejectionSampler needs a rate model")
        self.config = config if config is not None else SamplerConfig()
        self.binding_mode = self.config.binding_mode
        if self.binding_mode is BindingMode.ON_SHELL_WITH_CORRECTION and exclusion is None:
            raise ConfigurationError(
                "OnShellWithCorrection binding mode needs a Pauli exclusion check"
            )

        self.rate_model = rate_model
        self.sampler = sampler
        self.exclusion = exclusion
        self.name = name
        self.cache = cache if cache is not None else MaxRateCache.from_config(self.config)
        self.angular_limit = angular_limit or self._default_angular_limit
        self.search = AdaptiveMaximumSearch.from_config(
            rate_model, sampler, self.config, angular_limit=self.angular_limit
        )
        self.corrector = None
        if self.binding_mode is BindingMode.ON_SHELL_WITH_CORRECTION:
            self.corrector = KinematicsCorrector(exclusion, self.config.min_angle_em)

    def _default_angular_limit(self, config: PhysicalConfiguration,
                               sample: BoundParticleSample) -> float:
        return phase_space.angular_limit(config, sample, self.binding_mode)

    def rate_bound(self, config: PhysicalConfiguration,
                   rng: Optional[np.random.Generator] = None) -> float:
        """Scaled maximum rate from the cache (computed on a miss)."""
        return self.cache.get(config,
                              lambda c: self.search.estimate(c, rng=rng),
                              namespace=self.name)

    def _draw_sample(self, config: PhysicalConfiguration,
                     rng: np.random.Generator) -> BoundParticleSample:
        if not config.is_bound:
            return BoundParticleSample.at_rest()
        return self.sampler.draw(config, config.hit_nucleon_radius, rng)

    def generate(self, config: PhysicalConfiguration,
                 rng: Optional[np.random.Generator] = None) -> GenerationResult:
        """
        Select kinematics for one event.

        Parameters:
            config: Physical configuration of the event
            rng: Uniform variate source (fresh generator if None)

        Returns:
            GenerationResult in state ACCEPTED or EXHAUSTED

        Raises:
            ConfigurationError: missing nuclear model or unresolvable particle
        """
        rng = ensure_rng(rng)
        config.resolve()
        if config.is_bound and self.sampler is None:
            raise ConfigurationError(
                f"No nuclear model configured for bound target {config.target_pdg}"
            )
        logger.debug("Generating QE event kinematics for %s", config)

        uniform = self.config.uniform_over_phase_space
        rate_bound = None if uniform else self.rate_bound(config, rng)
        if rate_bound is not None and rate_bound <= 0.0:
            logger.warning("Zero maximum rate for %s: no draw can be accepted", config)

        result = GenerationResult(SamplerState.SAMPLING, rate_bound=rate_bound)
        max_iterations = self.config.max_iterations
        iteration = 0

        while result.status is SamplerState.SAMPLING:
            iteration += 1
            if iteration > max_iterations:
                result.status = SamplerState.EXHAUSTED
                break

            sample = self._draw_sample(config, rng)

            # Vanishing angular range: the rate would be zero
            cos_max = min(1.0, self.angular_limit(config, sample))
            if cos_max <= -1.0:
                continue
            if rate_bound is not None and rate_bound <= 0.0:
                continue

            point = KinematicPoint(rng.uniform(-1.0, cos_max), rng.uniform(0.0, TWO_PI))
            rate = self.rate_model(config, sample, point.cos_theta, point.phi)

            if uniform:
                accept = True
                weight = rate * (cos_max + 1.0) * TWO_PI
            else:
                if rate > rate_bound:
                    result.bound_violations += 1
                    self._report_violation(config, point, rate, rate_bound)
                t = rate_bound * rng.random()
                logger.debug("rate = %g, Rnd = %g", rate, t)
                accept = t < rate
                weight = 1.0

            if not accept:
                continue

            result.status = SamplerState.ACCEPTED
            kinematics, reason = self._finalize(config, sample, point, rate, weight)
            if kinematics is None:
                logger.debug("Accepted throw rejected by correction (%s), resampling", reason)
                result.corrector_rejections += 1
                result.status = SamplerState.SAMPLING
                continue
            result.kinematics = kinematics

        result.iterations = min(iteration, max_iterations)
        if result.status is SamplerState.EXHAUSTED:
            result.message = (f"Couldn't select a valid (pNi, Eb, cos_theta_0, phi_0) tuple "
                              f"after {max_iterations} iterations")
            logger.warning("%s for %s", result.message, config)
        else:
            logger.info("Selected Q^2 = %g GeV^2 after %d iterations",
                        result.kinematics.Q2, result.iterations)
        return result

    def _report_violation(self, config: PhysicalConfiguration, point: KinematicPoint,
                          rate: float, rate_bound: float) -> None:
        logger.warning("rate = %g exceeds max rate = %g at cos_theta_0 = %g, phi_0 = %g (%s)",
                       rate, rate_bound, point.cos_theta, point.phi, config)
        if self.cache.exceeds_tolerance(rate, rate_bound):
            logger.warning("Excess beyond tolerance %g, dropping cached maximum for %s",
                           self.cache.max_diff_tolerance, config.fingerprint)
            self.cache.invalidate(config, self.name)

    def _finalize(self, config: PhysicalConfiguration, sample: BoundParticleSample,
                  point: KinematicPoint, rate: float,
                  weight: float) -> Tuple[Optional[AcceptedKinematics], str]:
        """
        Build the kinematics of an accepted draw.

        Returns:
            (kinematics, '') or (None, reason) if the draw must be resampled
        """
        hit_p4, e_b = bind_hit_nucleon(config, sample, self.binding_mode)
        final = phase_space.final_state(config, hit_p4, point)
        if final is None:
            return None, 'threshold'

        q2_range = phase_space.q2_limits(config, hit_p4)
        skip_exclusion = False

        if self.corrector is not None and config.is_bound:
            outcome = self.corrector.correct(config, sample, point, final)
            if outcome.retry:
                return None, outcome.reason
            final = outcome.final_state
            hit_p4 = outcome.hit_p4
            e_b = outcome.removal_energy
            q2_range = outcome.q2_range
            skip_exclusion = outcome.skip_exclusion_check

        # W is the on-shell recoil mass
        W = config.recoil_mass
        M = float(np.sqrt(max(mass2(hit_p4), 0.0)))
        Ev = phase_space.probe_energy_in_hit_rest_frame(config, hit_p4)
        x, y = phase_space.wq2_to_xy(Ev, M, W, final.Q2)

        remnant_pdg = None
        remnant_p4 = None
        if config.is_bound:
            remnant_pdg = config.remnant_pdg
            remnant_p4 = np.array([-hit_p4[0], -hit_p4[1], -hit_p4[2],
                                   config.target_mass - hit_p4[3]])

        kinematics = AcceptedKinematics(
            lepton_p4=final.lepton_p4,
            recoil_p4=final.recoil_p4,
            hit_nucleon_p4=hit_p4,
            q_p4=final.q_p4,
            Q2=final.Q2,
            W=W,
            x=x,
            y=y,
            removal_energy=e_b,
            rate=rate,
            point=point,
            q2_range=q2_range,
            weight=weight,
            remnant_pdg=remnant_pdg,
            remnant_p4=remnant_p4,
            skip_exclusion_check=skip_exclusion,
        )
        return kinematics, ''


# ============================================================================
# Example Usage
# ============================================================================

if __name__ == "__main__":
    from kinesampler.logging_config import setup_logging
    from kinesampler.physics.nuclear import FermiGasExclusion, FermiGasSampler

    setup_logging(logging.INFO)

    def forward_peaked(config, sample, cos_theta, phi):
        return 1.0 + cos_theta

    qel = RejectionSampler(forward_peaked,
                           SamplerConfig(binding_mode='OnShellWithCorrection',
                                         max_xsec_nucleon_throws=100),
                           sampler=FermiGasSampler(),
                           exclusion=FermiGasExclusion())
    event = PhysicalConfiguration(14, 2.0, 1000060120, 2112, 'CC')
    result = qel.generate(event, np.random.default_rng(1))
    kine = result.unwrap()
    print(f"\nnu_mu C-12 @ 2 GeV: Q2 = {kine.Q2:.4f} GeV^2, x = {kine.x:.3f}, "
          f"y = {kine.y:.3f}, iterations = {result.iterations}")
