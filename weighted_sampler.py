from __future__ import annotations

from typing import Generic, Sequence, TypeVar

import numpy as np

from errors import InvalidArgumentError

T = TypeVar("T")


class WeightedSampler(Generic[T]):
    """Draws items with probability proportional to their weight.

    ``prepare`` builds the cumulative relative frequency of the non-zero
    weights in O(n); every ``draw`` after that is a binary search, O(log n).
    The preparation belongs to one weight vector: call ``discard`` before
    sampling again with different weights.
    """

    def __init__(self) -> None:
        self._items: list[T] | None = None
        self._kept: list[T] | None = None
        self._cum_freq: np.ndarray | None = None

    @property
    def is_ready(self) -> bool:
        return self._cum_freq is not None

    @property
    def cumulative_frequencies(self) -> np.ndarray:
        if self._cum_freq is None:
            raise RuntimeError("Sampler must be prepared before use")
        return self._cum_freq.copy()

    def prepare(self, items: Sequence[T], weights: Sequence[float] | np.ndarray) -> None:
        items = list(items)
        weights = np.asarray(weights, dtype=np.float64)
        if len(items) == 0:
            raise InvalidArgumentError("items must contain at least 1 element")
        if weights.ndim != 1 or weights.shape[0] != len(items):
            raise InvalidArgumentError("weights must be a 1D array with one weight per item")
        if not np.all(np.isfinite(weights)):
            raise InvalidArgumentError("weights must be finite")
        if np.any(weights < 0.0):
            raise InvalidArgumentError("weights can't be negative")

        # Zero-weight items are left out entirely, they can never be drawn.
        nonzero = np.flatnonzero(weights != 0.0)
        cum_freq = np.zeros(nonzero.size + 1, dtype=np.float64)
        if nonzero.size > 0:
            kept_weights = weights[nonzero]
            # Clamp before pinning the last entry so that rounding drift above
            # 1.0 can't make the sequence decrease.
            cum_freq[1:] = np.minimum(np.cumsum(kept_weights / kept_weights.sum()), 1.0)
            cum_freq[-1] = 1.0

        self._items = items
        self._kept = [items[i] for i in nonzero]
        self._cum_freq = cum_freq

    def draw(self, u: float) -> T:
        """Return the item whose cumulative interval contains ``u`` in [0, 1)."""
        if self._cum_freq is None:
            raise RuntimeError("Sampler must be prepared before use")
        if not 0.0 <= u < 1.0:
            raise InvalidArgumentError("u must be in [0, 1)")

        assert self._items is not None and self._kept is not None
        if not self._kept:
            # Every weight is zero: uniform choice over the original items.
            return self._items[int(u * len(self._items))]

        return self._kept[self._floor_index(u)]

    def draw_many(self, size: int, rng: np.random.Generator) -> list[T]:
        if self._cum_freq is None:
            raise RuntimeError("Sampler must be prepared before use")
        if size < 0:
            raise InvalidArgumentError("size can't be negative")

        assert self._items is not None and self._kept is not None
        u = rng.random(size)
        if not self._kept:
            positions = (u * len(self._items)).astype(np.int64)
            return [self._items[p] for p in positions]

        positions = np.searchsorted(self._cum_freq, u, side="right") - 1
        positions = np.minimum(positions, len(self._kept) - 1)
        return [self._kept[p] for p in positions]

    def sample(
        self,
        items: Sequence[T],
        weights: Sequence[float] | np.ndarray,
        rng: np.random.Generator,
    ) -> T:
        if not self.is_ready:
            self.prepare(items, weights)
        return self.draw(float(rng.random()))

    def discard(self) -> None:
        self._items = None
        self._kept = None
        self._cum_freq = None

    def _floor_index(self, u: float) -> int:
        # Greatest index whose cumulative frequency is <= u.
        assert self._cum_freq is not None and self._kept is not None
        index = int(np.searchsorted(self._cum_freq, u, side="right")) - 1
        return min(index, len(self._kept) - 1)
