from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Callable, Hashable, Iterable, Union

from errors import InvalidArgumentError, MissingTargetError
from record_table import RecordTable
from records import Record


class Classifier(ABC):
    """A trained model that predicts the target of a record."""

    @abstractmethod
    def predict(self, record: Record) -> Hashable:
        raise NotImplementedError

    def predict_batch(self, records: Iterable[Record]) -> list[Hashable]:
        return [self.predict(record) for record in records]

    def is_correct(self, record: Record) -> bool:
        if not record.has_target:
            raise MissingTargetError("record must contain a target to be scored")
        return self.predict(record) == record.target

    def success_rate(self, records: Iterable[Record]) -> float:
        """Fraction of ``records`` predicted correctly, in [0, 1].

        Raises ``MissingTargetError`` before predicting anything if any
        record lacks a target.
        """
        records = list(records)
        if not records:
            raise InvalidArgumentError("records must contain at least 1 element")
        if any(not record.has_target for record in records):
            raise MissingTargetError("all records must contain a non-null target")

        correct = sum(1 for record in records if self.predict(record) == record.target)
        return correct / len(records)


class ClassifierGenerator(ABC):
    """Trains a fresh classifier from a weighted record table."""

    @abstractmethod
    def generate(self, table: RecordTable) -> Classifier:
        raise NotImplementedError

    def __call__(self, table: RecordTable) -> Classifier:
        return self.generate(table)


GeneratorLike = Union[ClassifierGenerator, Callable[[RecordTable], Classifier]]


def as_generator_fn(generator: GeneratorLike) -> Callable[[RecordTable], Classifier]:
    if isinstance(generator, ClassifierGenerator):
        return generator.generate
    if callable(generator):
        return generator
    raise InvalidArgumentError("generator must be a ClassifierGenerator or a callable")
