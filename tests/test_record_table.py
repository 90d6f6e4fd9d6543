import numpy as np
import pytest

from errors import InvalidArgumentError, MissingTargetError
from record_table import RecordTable
from records import Feature, FeatureType, Record
from split_evaluator import SplitRange


def _record(color, size, target, weight=1.0):
    return Record(
        [Feature.discrete("color", color), Feature.continuous("size", size)],
        target=target,
        weight=weight,
    )


def test_record_validates_features_and_weight():
    with pytest.raises(InvalidArgumentError):
        Record([], target=1)
    with pytest.raises(InvalidArgumentError):
        Record.from_values({"a": 1}, target=1, weight=-1.0)
    with pytest.raises(InvalidArgumentError):
        Record.from_values({"a": 1}, target=1, weight=float("inf"))
    with pytest.raises(InvalidArgumentError):
        Feature.continuous("size", "large")
    with pytest.raises(InvalidArgumentError):
        Feature.continuous("size", float("nan"))
    with pytest.raises(InvalidArgumentError):
        Record([Feature.discrete("color", "red"), Feature.discrete("color", "blue")], target=1)


def test_records_are_immutable_and_compared_by_identity():
    first = Record.from_values({"a": "x"}, target=0)
    second = Record.from_values({"a": "x"}, target=0)

    assert first != second
    assert len({first, second}) == 2
    with pytest.raises(AttributeError):
        first.weight = 2.0

    reweighted = first.with_weight(0.5)
    assert reweighted is not first
    assert reweighted.weight == 0.5
    assert first.weight == 1.0
    assert reweighted.value("a") == "x"


def test_from_values_tags_continuous_features():
    record = Record.from_values({"a": "x", "b": 2.5}, target=None, continuous=["b"])
    assert record.feature("a").type is FeatureType.DISCRETE
    assert record.feature("b").is_continuous
    assert not record.has_target
    assert record.titles == ("a", "b")


def test_table_rejects_empty_and_unlabelled_records():
    with pytest.raises(InvalidArgumentError):
        RecordTable([])
    with pytest.raises(MissingTargetError):
        RecordTable([_record("red", 1.0, None)])


def test_table_rejects_bad_weight_vectors():
    records = [_record("red", 1.0, 0), _record("blue", 2.0, 1)]
    with pytest.raises(InvalidArgumentError):
        RecordTable(records, weights=[1.0])
    with pytest.raises(InvalidArgumentError):
        RecordTable(records, weights=[1.0, -1.0])
    with pytest.raises(InvalidArgumentError):
        RecordTable(records, weights=[1.0, float("nan")])


def test_table_keeps_weights_apart_from_records():
    records = [_record("red", 1.0, 0, weight=3.0), _record("blue", 2.0, 1)]
    table = RecordTable(records)
    assert np.array_equal(table.weights, [3.0, 1.0])

    reweighted = table.with_weights([0.5, 0.5])
    assert np.array_equal(reweighted.weights, [0.5, 0.5])
    assert records[0].weight == 3.0
    with pytest.raises(ValueError):
        reweighted.weights[0] = 1.0


def test_table_computes_ranges_for_continuous_attributes_only():
    records = [
        _record("red", 1.0, "small"),
        _record("red", 2.0, "small"),
        _record("blue", 8.0, "large"),
        _record("blue", 9.0, "large"),
    ]
    table = RecordTable(records)

    assert set(table.ranges) == {"size"}
    low, high = table.ranges["size"]
    assert low == SplitRange(2.0, above=False)
    assert high == low.complement()
    assert table.attribute_values("size") == [low, high]
    assert table.attribute_values("color") == ["red", "blue"]
    assert np.isclose(table.information_gain("size"), 1.0)
    assert np.isclose(table.information_gain("color"), 1.0)
    # Equal gains: the first attribute of the template record wins.
    assert table.best_attribute() == "color"


def test_split_drops_small_children():
    records = [
        _record("red", 1.0, 0),
        _record("red", 2.0, 0),
        _record("red", 3.0, 1),
        _record("blue", 4.0, 1),
    ]
    table = RecordTable(records)

    children = table.split("color", min_size=1)
    assert list(children) == ["red", "blue"]
    assert len(children["red"]) == 3

    children = table.split("color", min_size=2)
    assert list(children) == ["red"]

    assert table.split("color", min_size=5) == {}


def test_continuous_split_follows_ranges():
    records = [
        _record("red", 1.0, 0),
        _record("red", 2.0, 0),
        _record("red", 3.0, 1),
        _record("blue", 4.0, 1),
    ]
    table = RecordTable(records)
    low, high = table.ranges["size"]
    children = table.split("size")

    assert all(low.contains(r.value("size")) for r in children[low])
    assert all(high.contains(r.value("size")) for r in children[high])
    assert len(children[low]) + len(children[high]) == len(table)


def test_majority_target_uses_weights():
    records = [_record("red", 1.0, "a"), _record("red", 1.0, "b"), _record("red", 1.0, "b")]
    assert RecordTable(records).majority_target() == "b"
    assert RecordTable(records, weights=[3.0, 1.0, 1.0]).majority_target() == "a"
    assert RecordTable(records, weights=[1.0, 0.5, 0.5]).majority_target() == "a"
    assert not RecordTable(records).is_pure()
