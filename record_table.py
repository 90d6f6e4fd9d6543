from __future__ import annotations

from typing import Any, Hashable, Iterable, Iterator, Sequence

import numpy as np

from errors import InvalidArgumentError, MissingTargetError
from records import FeatureType, Record
from split_evaluator import (
    SplitRange,
    SplitSearch,
    attribute_gain,
    best_threshold,
    group_indices,
    split_ranges,
    weighted_entropy,
    weighted_majority,
)


class RecordTable:
    """Immutable weighted view over a non-empty list of labelled records.

    Weights live in a vector parallel to the records, so boosting can hand a
    new distribution to every round without touching the records. The
    attribute kinds come from the first record and are not cross-checked
    against the others. Every continuous attribute gets its best threshold,
    stored as two complementary ``SplitRange``s, when the table is built.
    """

    def __init__(
        self,
        records: Iterable[Record],
        weights: Sequence[float] | np.ndarray | None = None,
    ) -> None:
        records = tuple(records)
        if len(records) == 0:
            raise InvalidArgumentError("records must contain at least 1 element")
        for record in records:
            if not record.has_target:
                raise MissingTargetError("all records must contain a non-null target")

        if weights is None:
            weights = np.fromiter((r.weight for r in records), dtype=np.float64, count=len(records))
        else:
            weights = np.array(weights, dtype=np.float64)
        if weights.ndim != 1 or weights.shape[0] != len(records):
            raise InvalidArgumentError("weights must be a 1D array with one weight per record")
        if not np.all(np.isfinite(weights)):
            raise InvalidArgumentError("weights must be finite")
        if np.any(weights < 0.0):
            raise InvalidArgumentError("weights can't be negative")
        weights.setflags(write=False)

        self._records = records
        self._weights = weights
        self._targets = tuple(r.target for r in records)

        template = records[0]
        self._kinds: dict[str, FeatureType] = {
            title: feature.type for title, feature in template.features.items()
        }
        self._columns: dict[str, tuple[Any, ...]] = {
            title: tuple(r.value(title) for r in records) for title in self._kinds
        }

        self._ranges: dict[str, tuple[SplitRange, SplitRange]] = {}
        for title, kind in self._kinds.items():
            if kind is not FeatureType.CONTINUOUS:
                continue
            result = best_threshold(self._columns[title], self._targets, self._weights)
            self._ranges[title] = split_ranges(result.threshold)

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self) -> Iterator[Record]:
        return iter(self._records)

    @property
    def records(self) -> tuple[Record, ...]:
        return self._records

    @property
    def weights(self) -> np.ndarray:
        return self._weights

    @property
    def targets(self) -> tuple[Hashable, ...]:
        return self._targets

    @property
    def attribute_kinds(self) -> dict[str, FeatureType]:
        return dict(self._kinds)

    @property
    def ranges(self) -> dict[str, tuple[SplitRange, SplitRange]]:
        return dict(self._ranges)

    def column(self, title: str) -> tuple[Any, ...]:
        return self._columns[title]

    def total_weight(self) -> float:
        return float(self._weights.sum())

    def attribute_values(self, title: str) -> list[Any]:
        if title in self._ranges:
            return list(self._ranges[title])
        return list(group_indices(self._columns[title]))

    def entropy(self) -> float:
        return weighted_entropy(self._targets, self._weights)

    def information_gain(self, title: str) -> float:
        return attribute_gain(
            self._columns[title],
            self._targets,
            self._weights,
            self._kinds[title],
            self._ranges.get(title),
        )

    def best_attribute(self) -> str:
        result = SplitSearch(self).search()
        assert result.attribute is not None
        return result.attribute

    def majority_target(self) -> Hashable:
        return weighted_majority(self._targets, self._weights)

    def is_pure(self) -> bool:
        first = self._targets[0]
        return all(target == first for target in self._targets)

    def subset(self, rows: Sequence[int] | np.ndarray) -> RecordTable:
        rows = np.asarray(rows, dtype=np.int64)
        return RecordTable([self._records[i] for i in rows], self._weights[rows])

    def with_weights(self, weights: Sequence[float] | np.ndarray) -> RecordTable:
        return RecordTable(self._records, weights)

    def split(self, title: str, min_size: int = 1) -> dict[Any, RecordTable]:
        """Child tables keyed by discrete value or by ``SplitRange``.

        Children smaller than ``min_size`` are dropped, and so are empty ones.
        An empty mapping means the table itself is below ``min_size``.
        """
        if len(self._records) < min_size:
            return {}

        if title in self._ranges:
            column = np.asarray(self._columns[title], dtype=np.float64)
            groups = {
                split_range: np.flatnonzero(split_range.mask(column))
                for split_range in self._ranges[title]
            }
        else:
            groups = group_indices(self._columns[title])

        children: dict[Any, RecordTable] = {}
        for key, rows in groups.items():
            if rows.size == 0 or rows.size < min_size:
                continue
            children[key] = self.subset(rows)
        return children
