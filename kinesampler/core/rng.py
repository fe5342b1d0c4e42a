"""Random generator helpers (numpy Generator everywhere, no global state)."""

from typing import List, Optional

import numpy as np


def make_rng(seed: Optional[int]) -> np.random.Generator:
    """Create a Generator from an optional seed."""
    return np.random.default_rng(None if seed is None else int(seed))


def ensure_rng(rng: Optional[np.random.Generator],
               seed: Optional[int] = None) -> np.random.Generator:
    """Return rng if provided, otherwise create one from seed."""
    return rng if rng is not None else make_rng(seed)


def spawn_rngs(rng: np.random.Generator, n: int) -> List[np.random.Generator]:
    """Spawn independent child generators from a parent RNG."""
    n = int(n)
    if n <= 0:
        return []
    seed = rng.integers(0, 2**32 - 1, dtype=np.uint32)
    ss = np.random.SeedSequence(int(seed))
    return [np.random.default_rng(child) for child in ss.spawn(n)]
