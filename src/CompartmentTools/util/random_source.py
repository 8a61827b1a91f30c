from typing import List, Optional, Sequence

import numpy as np
from monty.json import MSONable


class RandomSource(MSONable):
    """
    Uniform random number source shared by all sampling routines.

    The only primitive the geometry relies on is a uniform double in [0, 1);
    everything else (ranges, weighted choices) is derived from it here so that
    a body never touches the generator directly.

    A RandomSource is not safe for concurrent use. Give each worker its own
    source, e.g. with `spawn`, which derives independent child streams from
    this source's seed.

    Args:
        seed (int, None): Seed of the generator. If None, fresh entropy is
            drawn from the OS and the stream is not reproducible.
    """

    def __init__(self, seed: Optional[int] = None):
        self.seed = seed

        self._seed_sequence = None
        self._rng = None

    @property
    def seed_sequence(self) -> np.random.SeedSequence:
        if self._seed_sequence is None:
            self._seed_sequence = np.random.SeedSequence(self.seed)
        return self._seed_sequence

    @property
    def rng(self) -> np.random.Generator:
        if self._rng is None:
            self._rng = np.random.default_rng(self.seed_sequence)
        return self._rng

    def uniform(self, size: Optional[int | tuple] = None) -> float | np.ndarray:
        """
        Draws uniform doubles in [0, 1).

        Args:
            size (int, tuple, None): Shape of the output. If None a single
                float is returned.
        """
        if size is None:
            return float(self.rng.random())
        return self.rng.random(size)

    def uniform_range(self,
                      low: float | np.ndarray,
                      high: float | np.ndarray,
                      size: Optional[int | tuple] = None) -> float | np.ndarray:
        """
        Draws uniform values in [low, high), clipped to [low, high] so that
        rounding in the affine map can never leave the closed interval.
        """
        u = self.uniform(size)
        values = np.clip(low + (np.subtract(high, low)) * u, low, high)
        if size is None and np.ndim(values) == 0:
            return float(values)
        return values

    def weighted_index(self, weights: Sequence[float],
                       size: int) -> np.ndarray:
        """
        Picks indices into `weights` with probability proportional to each
        weight.

        Args:
            weights (Sequence[float]): Non-negative weights, at least one of
                which is positive.
            size (int): Number of indices to draw.

        Returns:
            np.ndarray: Integer array of length `size`
        """
        cumulative = np.cumsum(weights, dtype=float)
        total = cumulative[-1]
        if total <= 0:
            raise ValueError('At least one weight must be positive')
        targets = self.uniform(size) * total
        indices = np.searchsorted(cumulative, targets, side='right')
        # u * total can round up to total for u just below 1
        return np.minimum(indices, len(cumulative) - 1)

    def spawn(self, n: int) -> List['RandomSource']:
        """
        Creates `n` independent random sources derived from this one, e.g.
        one per worker thread.
        """
        children = self.seed_sequence.spawn(n)
        return [
            RandomSource(int(child.generate_state(1, dtype=np.uint64)[0]))
            for child in children
        ]

    def __str__(self) -> str:
        return f"RandomSource(seed={self.seed})"

    def __repr__(self) -> str:
        return self.__str__()
