"""
Cache of estimated maximum rates.

Maxima are stored per configuration fingerprint (energy excluded) as a
branch of (energy, max_rate) points. A query energy is covered only by
stored points close to it: within min(0.25 GeV, 5% of E) the nearest point
is reused, and the maximum is interpolated linearly when both neighbours are
that close (or the branch is dense). Anything else is a miss. The returned
bound is the stored maximum times the safety factor, which absorbs the
small reuse error.

One cache instance can be shared by generators running on several threads.
Branch reads and writes are serialised by a lock; estimation runs outside
it, so two threads may compute the same missing entry (both results are
valid, the last write wins).
"""

import bisect
import logging
import threading
from typing import Callable, Dict, List, NamedTuple, Optional

import numpy as np

from kinesampler.config import SamplerConfig
from kinesampler.core.event import PhysicalConfiguration
from kinesampler.errors import ConfigurationError

logger = logging.getLogger(__name__)

Estimator = Callable[[PhysicalConfiguration], float]

# Relative energy difference treated as the same point
ENERGY_MATCH_TOLERANCE = 1e-9

# Largest energy distance [GeV, fraction of E] over which a maximum is reused
REUSE_WINDOW_MAX = 0.25
REUSE_WINDOW_FRACTION = 0.05

# Branch size from which neighbours are interpolated regardless of distance
DENSE_BRANCH_SIZE = 40


def reuse_window(energy: float) -> float:
    return min(REUSE_WINDOW_MAX, REUSE_WINDOW_FRACTION * abs(energy))


class CacheEntry(NamedTuple):
    energy: float
    max_rate: float
    safety_factor: float


class CacheBranch:
    """Energy-ordered maxima for one fingerprint."""

    def __init__(self, key: str):
        self.key = key
        self.entries: List[CacheEntry] = []

    def __len__(self) -> int:
        return len(self.entries)

    @property
    def energies(self) -> List[float]:
        return [e.energy for e in self.entries]

    def _match(self, energy: float) -> Optional[int]:
        energies = self.energies
        i = bisect.bisect_left(energies, energy)
        for j in (i - 1, i):
            if 0 <= j < len(energies):
                if abs(energies[j] - energy) <= ENERGY_MATCH_TOLERANCE * max(abs(energy), 1.0):
                    return j
        return None

    def lookup(self, energy: float) -> Optional[float]:
        """
        Stored maximum at energy, or None if energy is not covered.

        Neighbours further than reuse_window(energy) away are ignored
        unless the branch holds at least DENSE_BRANCH_SIZE points.
        """
        if not self.entries:
            return None
        j = self._match(energy)
        if j is not None:
            return self.entries[j].max_rate

        energies = self.energies
        i = bisect.bisect_left(energies, energy)
        window = reuse_window(energy)
        near = [k for k in (i - 1, i)
                if 0 <= k < len(energies) and abs(energies[k] - energy) < window]

        if 0 < i < len(energies) and (len(near) == 2 or len(energies) >= DENSE_BRANCH_SIZE):
            lo, hi = self.entries[i - 1], self.entries[i]
            return float(np.interp(energy, [lo.energy, hi.energy], [lo.max_rate, hi.max_rate]))
        if near:
            k = min(near, key=lambda k: abs(energies[k] - energy))
            return self.entries[k].max_rate
        return None

    def insert(self, entry: CacheEntry) -> None:
        j = self._match(entry.energy)
        if j is not None:
            self.entries[j] = entry
            return
        i = bisect.bisect_left(self.energies, entry.energy)
        self.entries.insert(i, entry)


class MaxRateCache:
    """
    Thread-safe cache of maximum rates used as rejection bounds.

    Usage:
        cache = MaxRateCache(safety_factor=1.6)
        bound = cache.get(config, search.estimate)
    """

    def __init__(self, safety_factor: float = 1.6, min_energy: float = 1.0,
                 max_diff_tolerance: float = 999999.0):
        """
        Parameters:
            safety_factor: Scale applied to stored maxima (>= 1)
            min_energy: Probe energy [GeV] below which nothing is cached
            max_diff_tolerance: Allowed fractional excess of an observed rate
                over the bound before the branch is dropped
        """
        if safety_factor < 1.0:
            raise ConfigurationError(f"safety_factor must be >= 1, got {safety_factor}")
        if max_diff_tolerance < 0.0:
            raise ConfigurationError("max_diff_tolerance must be non-negative")
        self.safety_factor = float(safety_factor)
        self.min_energy = float(min_energy)
        self.max_diff_tolerance = float(max_diff_tolerance)

        self._branches: Dict[str, CacheBranch] = {}
        self._lock = threading.Lock()
        self.hits = 0
        self.misses = 0

    @classmethod
    def from_config(cls, config: SamplerConfig) -> 'MaxRateCache':
        return cls(safety_factor=config.safety_factor,
                   min_energy=config.cache_min_energy,
                   max_diff_tolerance=config.max_diff_tolerance)

    @staticmethod
    def key(config: PhysicalConfiguration, namespace: str = '') -> str:
        """Branch key: generator namespace + configuration fingerprint."""
        return f"{namespace}/{config.fingerprint}" if namespace else config.fingerprint

    def __len__(self) -> int:
        with self._lock:
            return sum(len(b) for b in self._branches.values())

    def get(self, config: PhysicalConfiguration, estimate: Estimator,
            namespace: str = '') -> float:
        """
        Rejection bound for a configuration.

        Parameters:
            config: Physical configuration (energy taken from probe_energy)
            estimate: Computes the unscaled maximum on a miss
            namespace: Separates generators sharing one cache

        Returns:
            max_rate * safety_factor; 0 means no physical phase space
        """
        energy = config.probe_energy

        if energy < self.min_energy:
            logger.debug("E = %g below cache threshold %g, computing maximum",
                         energy, self.min_energy)
            return self._scaled(estimate(config))

        key = self.key(config, namespace)
        with self._lock:
            branch = self._branches.get(key)
            max_rate = branch.lookup(energy) if branch is not None else None
            if max_rate is not None and max_rate > 0.0:
                self.hits += 1
                return max_rate * self.safety_factor
            self.misses += 1

        max_rate = estimate(config)
        if max_rate > 0.0:
            self.store(config, max_rate, namespace)
        else:
            logger.warning("Non-positive maximum rate for %s: no physical phase space", config)
        return self._scaled(max_rate)

    def store(self, config: PhysicalConfiguration, max_rate: float, namespace: str = '') -> None:
        """Record an unscaled maximum (ignored below min_energy or if not positive)."""
        energy = config.probe_energy
        if energy < self.min_energy or max_rate <= 0.0:
            return
        key = self.key(config, namespace)
        with self._lock:
            branch = self._branches.get(key)
            if branch is None:
                branch = self._branches[key] = CacheBranch(key)
            branch.insert(CacheEntry(energy, float(max_rate), self.safety_factor))

    def exceeds_tolerance(self, rate: float, bound: float) -> bool:
        """True if rate overshoots bound by more than max_diff_tolerance."""
        if bound <= 0.0:
            return rate > 0.0
        return (rate - bound) / bound > self.max_diff_tolerance

    def invalidate(self, config: PhysicalConfiguration, namespace: str = '') -> bool:
        """Drop the branch of a configuration. Returns True if one existed."""
        with self._lock:
            return self._branches.pop(self.key(config, namespace), None) is not None

    def entries(self, config: PhysicalConfiguration, namespace: str = '') -> List[CacheEntry]:
        with self._lock:
            branch = self._branches.get(self.key(config, namespace))
            return list(branch.entries) if branch is not None else []

    def clear(self) -> None:
        with self._lock:
            self._branches.clear()
            self.hits = 0
            self.misses = 0

    def _scaled(self, max_rate: float) -> float:
        return max(float(max_rate), 0.0) * self.safety_factor

    def __repr__(self) -> str:
        return (f"MaxRateCache(branches={len(self._branches)}, "
                f"hits={self.hits}, misses={self.misses}, "
                f"safety_factor={self.safety_factor})")
