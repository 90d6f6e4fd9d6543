from __future__ import annotations

from dataclasses import dataclass, field
import time
from typing import TYPE_CHECKING, Any, Hashable, Sequence

import numpy as np

from errors import InvalidArgumentError, SplitRangeError
from records import FeatureType

if TYPE_CHECKING:
    from record_table import RecordTable


@dataclass(frozen=True)
class SplitRange:
    """One side of a binary threshold split on a continuous attribute.

    ``above=False`` is the closed-above interval (-inf, threshold] and
    ``above=True`` its complement (threshold, +inf).
    """

    threshold: float
    above: bool

    def contains(self, value: float) -> bool:
        if self.above:
            return value > self.threshold
        return value <= self.threshold

    def mask(self, values: np.ndarray) -> np.ndarray:
        values = np.asarray(values, dtype=np.float64)
        if self.above:
            return values > self.threshold
        return values <= self.threshold

    def complement(self) -> SplitRange:
        return SplitRange(threshold=self.threshold, above=not self.above)

    def __str__(self) -> str:
        return f"> {self.threshold:g}" if self.above else f"<= {self.threshold:g}"


def split_ranges(threshold: float) -> tuple[SplitRange, SplitRange]:
    threshold = float(threshold)
    return SplitRange(threshold, above=False), SplitRange(threshold, above=True)


@dataclass(frozen=True)
class ThresholdSearchResult:
    threshold: float
    gain: float
    n_candidates: int


@dataclass
class SplitSearchMetrics:
    n_attributes_evaluated: int = 0
    time_spent_sec: float = 0.0


@dataclass
class SplitSearchResult:
    attribute: str | None
    gain: float
    gains: dict[str, float] = field(default_factory=dict)
    metrics: SplitSearchMetrics = field(default_factory=SplitSearchMetrics)


def encode_targets(targets: Sequence[Hashable]) -> tuple[np.ndarray, list[Hashable]]:
    """Map targets to integer codes, labels numbered in first-encountered order."""
    index: dict[Hashable, int] = {}
    codes = np.empty(len(targets), dtype=np.int64)
    for i, target in enumerate(targets):
        codes[i] = index.setdefault(target, len(index))
    return codes, list(index)


def class_weights(codes: np.ndarray, weights: np.ndarray, n_classes: int) -> np.ndarray:
    return np.bincount(codes, weights=weights, minlength=n_classes).astype(np.float64)


def entropy_rows(dist: np.ndarray) -> np.ndarray:
    """Base-2 entropy of every row of a (n_rows, n_classes) weight matrix."""
    dist = np.atleast_2d(np.asarray(dist, dtype=np.float64))
    totals = dist.sum(axis=1, keepdims=True)
    with np.errstate(divide="ignore", invalid="ignore"):
        p = np.where(totals > 0.0, dist / totals, 0.0)
        terms = np.where(p > 0.0, p * np.log2(p), 0.0)
    return np.maximum(-terms.sum(axis=1), 0.0)


def weighted_entropy(targets: Sequence[Hashable], weights: Sequence[float] | np.ndarray) -> float:
    weights = np.asarray(weights, dtype=np.float64)
    codes, labels = encode_targets(targets)
    if len(labels) == 0:
        return 0.0
    return float(entropy_rows(class_weights(codes, weights, len(labels)))[0])


def entropy(targets: Sequence[Hashable]) -> float:
    return weighted_entropy(targets, np.ones(len(targets), dtype=np.float64))


def weighted_frequency(weights: np.ndarray, mask: np.ndarray) -> float:
    """Share of the total weight carried by the masked records (0.0 if none)."""
    weights = np.asarray(weights, dtype=np.float64)
    total = float(weights.sum())
    if total <= 0.0:
        return 0.0
    return float(weights[mask].sum()) / total


def weighted_majority(targets: Sequence[Hashable], weights: Sequence[float] | np.ndarray) -> Hashable:
    """Target with the greatest summed weight; ties go to the first encountered."""
    if len(targets) == 0:
        raise InvalidArgumentError("targets must contain at least 1 element")
    codes, labels = encode_targets(targets)
    dist = class_weights(codes, np.asarray(weights, dtype=np.float64), len(labels))
    return labels[int(np.argmax(dist))]


def information_gain(
    targets: Sequence[Hashable],
    weights: Sequence[float] | np.ndarray,
    partition_masks: Sequence[np.ndarray],
) -> float:
    weights = np.asarray(weights, dtype=np.float64)
    codes, labels = encode_targets(targets)
    n_classes = len(labels)
    if n_classes == 0 or float(weights.sum()) <= 0.0:
        return 0.0

    gain = float(entropy_rows(class_weights(codes, weights, n_classes))[0])
    for mask in partition_masks:
        share = weighted_frequency(weights, mask)
        if share == 0.0:
            continue
        dist = class_weights(codes[mask], weights[mask], n_classes)
        gain -= share * float(entropy_rows(dist)[0])

    # Gain is non-negative; only rounding can push it below zero.
    return max(gain, 0.0)


def group_indices(values: Sequence[Any]) -> dict[Any, np.ndarray]:
    """Row indices of every observed value, in first-encountered order."""
    groups: dict[Any, list[int]] = {}
    for i, value in enumerate(values):
        groups.setdefault(value, []).append(i)
    return {value: np.asarray(rows, dtype=np.int64) for value, rows in groups.items()}


def partition_masks(
    values: Sequence[Any],
    kind: FeatureType,
    ranges: tuple[SplitRange, SplitRange] | None = None,
) -> dict[Any, np.ndarray]:
    n = len(values)
    if kind is FeatureType.CONTINUOUS:
        if ranges is None:
            raise SplitRangeError("continuous attribute has no split ranges")
        column = np.asarray(values, dtype=np.float64)
        return {split_range: split_range.mask(column) for split_range in ranges}

    masks: dict[Any, np.ndarray] = {}
    for value, rows in group_indices(values).items():
        mask = np.zeros(n, dtype=bool)
        mask[rows] = True
        masks[value] = mask
    return masks


def attribute_gain(
    values: Sequence[Any],
    targets: Sequence[Hashable],
    weights: Sequence[float] | np.ndarray,
    kind: FeatureType,
    ranges: tuple[SplitRange, SplitRange] | None = None,
) -> float:
    masks = partition_masks(values, kind, ranges)
    return information_gain(targets, weights, list(masks.values()))


def best_threshold(
    values: Sequence[float] | np.ndarray,
    targets: Sequence[Hashable],
    weights: Sequence[float] | np.ndarray,
) -> ThresholdSearchResult:
    """Observed value whose "<= v" / "> v" split has the highest weighted gain.

    Every distinct observed value is a candidate. Sorting once and taking
    prefix sums of per-class weights gives both sides of every candidate
    split at once. Ties go to the value encountered first in record order.
    """
    values = np.asarray(values, dtype=np.float64)
    weights = np.asarray(weights, dtype=np.float64)
    n = values.shape[0]
    if n == 0:
        raise InvalidArgumentError("values must contain at least 1 element")
    if weights.shape[0] != n or len(targets) != n:
        raise InvalidArgumentError("values, targets and weights must have the same length")

    codes, labels = encode_targets(targets)
    n_classes = len(labels)

    uniques, first_index = np.unique(values, return_index=True)
    order = np.argsort(values, kind="stable")
    sorted_values = values[order]

    per_class = np.zeros((n, n_classes), dtype=np.float64)
    per_class[np.arange(n), codes] = weights
    prefix = np.cumsum(per_class[order], axis=0)

    last = np.searchsorted(sorted_values, uniques, side="right") - 1
    left = prefix[last]
    total = prefix[-1]
    right = total[None, :] - left

    total_weight = float(total.sum())
    if total_weight <= 0.0:
        gains = np.zeros(uniques.size, dtype=np.float64)
    else:
        parent = float(entropy_rows(total)[0])
        left_share = left.sum(axis=1) / total_weight
        right_share = right.sum(axis=1) / total_weight
        gains = parent - left_share * entropy_rows(left) - right_share * entropy_rows(right)
        gains = np.maximum(gains, 0.0)

    encounter = np.argsort(first_index, kind="stable")
    best = int(encounter[int(np.argmax(gains[encounter]))])
    return ThresholdSearchResult(
        threshold=float(uniques[best]),
        gain=float(gains[best]),
        n_candidates=int(uniques.size),
    )


class SplitSearch:
    """Exhaustive search for the attribute with the highest weighted gain."""

    def __init__(
        self,
        table: RecordTable,
        candidate_attributes: Sequence[str] | None = None,
    ) -> None:
        self.table = table
        if candidate_attributes is None:
            candidate_attributes = list(table.attribute_kinds)
        self.candidate_attributes = list(candidate_attributes)

    def search(self) -> SplitSearchResult:
        start = time.perf_counter()
        metrics = SplitSearchMetrics()

        best_attribute = None
        best_gain = -float("inf")
        gains: dict[str, float] = {}
        for attribute in self.candidate_attributes:
            gain = self.table.information_gain(attribute)
            gains[attribute] = gain
            metrics.n_attributes_evaluated += 1
            if gain > best_gain:
                best_attribute = attribute
                best_gain = gain

        metrics.time_spent_sec = time.perf_counter() - start
        return SplitSearchResult(best_attribute, best_gain, gains, metrics)
