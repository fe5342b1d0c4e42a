"""Sampling module: maximum search, rate cache, rejection sampler."""

from kinesampler.sampling.cache import MaxRateCache
from kinesampler.sampling.max_search import AdaptiveMaximumSearch
from kinesampler.sampling.rejection import RejectionSampler

__all__ = ["MaxRateCache", "AdaptiveMaximumSearch", "RejectionSampler"]
