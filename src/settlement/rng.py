"""Seeded pseudo-random sequencing."""

from typing import Iterable, TypeVar

import numpy as np

from .exceptions import ConfigurationError

T = TypeVar("T")


def _check_seed(seed: int) -> int:
    if isinstance(seed, bool) or not isinstance(seed, (int, np.integer)):
        raise ConfigurationError(f"Seed must be an integer, got {type(seed).__name__}")
    return int(seed)


class Sequencer:
    """Reproducible stream of integers and fractions for a single seed.

    Wraps a PCG64 numpy Generator. For a fixed seed and a fixed sequence of
    calls the outputs are identical across runs and platforms.
    """

    def __init__(self, seed: int):
        self.seed = _check_seed(seed)
        # Negative seeds share the stream of their absolute value.
        self._rng = np.random.default_rng(abs(self.seed))

    def next_int(self, lo: int, hi: int) -> int:
        """Uniform integer in [lo, hi). Returns lo when the range is empty."""
        if hi <= lo:
            return lo
        return int(self._rng.integers(lo, hi))

    def next_fraction(self) -> float:
        """Uniform float in [0, 1)."""
        return float(self._rng.random())

    def lerp(self, lo: float, hi: float) -> float:
        """Uniform float between lo and hi."""
        return lo + (hi - lo) * self.next_fraction()


def shuffle_seeded(seed: int, items: Iterable[T]) -> list[T]:
    """Fisher-Yates shuffle driven by a freshly seeded stream.

    The input is not modified. The same seed and the same input sequence
    always produce the same permutation, independent of any other stream.
    """
    rng = Sequencer(seed)
    result = list(items)
    n = len(result)

    for i in range(n - 1):
        j = rng.next_int(i, n)
        result[i], result[j] = result[j], result[i]

    return result
