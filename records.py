from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
import math
import numbers
from typing import Any, Hashable, Iterable, Mapping

from errors import InvalidArgumentError


class FeatureType(Enum):
    DISCRETE = "discrete"
    CONTINUOUS = "continuous"


@dataclass(frozen=True)
class Feature:
    """A named attribute value tagged with its kind."""

    title: str
    value: Any
    type: FeatureType = FeatureType.DISCRETE

    def __post_init__(self) -> None:
        if self.type is FeatureType.CONTINUOUS:
            if isinstance(self.value, bool) or not isinstance(self.value, numbers.Real):
                raise InvalidArgumentError(
                    f"continuous feature {self.title!r} must hold a real number"
                )
            if not math.isfinite(float(self.value)):
                raise InvalidArgumentError(
                    f"continuous feature {self.title!r} must be finite"
                )

    @classmethod
    def discrete(cls, title: str, value: Hashable) -> Feature:
        return cls(title=title, value=value, type=FeatureType.DISCRETE)

    @classmethod
    def continuous(cls, title: str, value: float) -> Feature:
        return cls(title=title, value=value, type=FeatureType.CONTINUOUS)

    @property
    def is_continuous(self) -> bool:
        return self.type is FeatureType.CONTINUOUS


def _check_weight(weight: float) -> float:
    weight = float(weight)
    if not math.isfinite(weight):
        raise InvalidArgumentError("weight must be finite")
    if weight < 0.0:
        raise InvalidArgumentError("weight can't be negative")
    return weight


class Record:
    """One row of tabular data: features, an optional target and a weight.

    Records are immutable once built. Two records with equal features are
    still different records; equality and hashing use object identity.
    """

    __slots__ = ("_features", "_target", "_weight")

    def __init__(
        self,
        features: Iterable[Feature] | Mapping[str, Feature],
        target: Hashable | None = None,
        weight: float = 1.0,
    ) -> None:
        if isinstance(features, Mapping):
            features = features.values()

        feature_map: dict[str, Feature] = {}
        for feature in features:
            if feature.title in feature_map:
                raise InvalidArgumentError(f"duplicate feature title {feature.title!r}")
            feature_map[feature.title] = feature
        if not feature_map:
            raise InvalidArgumentError("features must contain at least 1 element")

        object.__setattr__(self, "_features", feature_map)
        object.__setattr__(self, "_target", target)
        object.__setattr__(self, "_weight", _check_weight(weight))

    def __setattr__(self, name: str, value: Any) -> None:
        raise AttributeError("Record is immutable")

    @classmethod
    def from_values(
        cls,
        values: Mapping[str, Any],
        target: Hashable | None = None,
        continuous: Iterable[str] = (),
        weight: float = 1.0,
    ) -> Record:
        continuous = set(continuous)
        features = [
            Feature.continuous(title, value)
            if title in continuous
            else Feature.discrete(title, value)
            for title, value in values.items()
        ]
        return cls(features, target=target, weight=weight)

    @property
    def features(self) -> Mapping[str, Feature]:
        return dict(self._features)

    @property
    def titles(self) -> tuple[str, ...]:
        return tuple(self._features)

    @property
    def target(self) -> Hashable | None:
        return self._target

    @property
    def has_target(self) -> bool:
        return self._target is not None

    @property
    def weight(self) -> float:
        return self._weight

    def feature(self, title: str) -> Feature | None:
        return self._features.get(title)

    def value(self, title: str) -> Any:
        return self._features[title].value

    def with_weight(self, weight: float) -> Record:
        return Record(self._features, target=self._target, weight=weight)

    def __repr__(self) -> str:
        values = ", ".join(f"{t}={f.value!r}" for t, f in self._features.items())
        return f"Record({values}, target={self._target!r}, weight={self._weight})"
