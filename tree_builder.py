from __future__ import annotations

from dataclasses import dataclass, field
import logging
from typing import Any, Hashable, Iterable

from classifier import Classifier, ClassifierGenerator
from errors import InvalidArgumentError
from record_table import RecordTable
from records import FeatureType, Record
from split_evaluator import SplitRange, SplitSearch, SplitSearchResult

logger = logging.getLogger(__name__)


@dataclass
class TreeNode:
    depth: int
    # Weighted-majority target of the records that reached this node. Leaves
    # predict it; internal nodes fall back to it for unseen values.
    label: Hashable
    n_records: int
    # Total training weight of those records.
    weight: float = 0.0
    is_leaf: bool = True
    split_attribute: str | None = None
    split_kind: FeatureType | None = None
    gain: float = 0.0
    children: dict[Any, TreeNode] = field(default_factory=dict)


@dataclass
class TreeBuildMetrics:
    nodes_visited: int = 0
    nodes_split: int = 0
    leaves: int = 0
    max_depth_reached: int = 0
    split_search_time_sec: float = 0.0


@dataclass
class TreeBuilderParams:
    max_depth: int = 3
    min_leaf_size: int = 1
    # A split is admissible only when its gain is above this.
    min_gain: float = 1e-12

    def __post_init__(self) -> None:
        if self.max_depth < 0:
            raise InvalidArgumentError("max_depth must be >= 0")
        if self.min_leaf_size < 1:
            raise InvalidArgumentError("min_leaf_size must be >= 1")
        if self.min_gain < 0.0:
            raise InvalidArgumentError("min_gain must be >= 0")


class DecisionTree(Classifier):
    def __init__(self, root: TreeNode, metrics: TreeBuildMetrics | None = None) -> None:
        self.root = root
        self.metrics = metrics if metrics is not None else TreeBuildMetrics()

    @staticmethod
    def _child_for(node: TreeNode, record: Record) -> TreeNode | None:
        assert node.split_attribute is not None
        feature = record.feature(node.split_attribute)
        if feature is None:
            return None

        if node.split_kind is FeatureType.CONTINUOUS:
            value = float(feature.value)
            for split_range, child in node.children.items():
                if split_range.contains(value):
                    return child
            return None

        return node.children.get(feature.value)

    def predict(self, record: Record) -> Hashable:
        node = self.root
        while not node.is_leaf:
            child = self._child_for(node, record)
            if child is None:
                return node.label
            node = child
        return node.label

    def depth(self) -> int:
        def _depth(node: TreeNode) -> int:
            if node.is_leaf:
                return 0
            return 1 + max(_depth(child) for child in node.children.values())

        return _depth(self.root)

    def count_nodes(self) -> int:
        def _count(node: TreeNode) -> int:
            return 1 + sum(_count(child) for child in node.children.values())

        return _count(self.root)

    def count_leaves(self) -> int:
        def _leaves(node: TreeNode) -> int:
            if node.is_leaf:
                return 1
            return sum(_leaves(child) for child in node.children.values())

        return _leaves(self.root)

    def describe(self) -> str:
        lines: list[str] = []

        def _walk(node: TreeNode, indent: str) -> None:
            if node.is_leaf:
                lines.append(
                    f"{indent}predict {node.label!r} (n={node.n_records}, w={node.weight:.4g})"
                )
                return
            lines.append(
                f"{indent}split on {node.split_attribute!r} "
                f"(gain={node.gain:.4f}, n={node.n_records}, fallback={node.label!r})"
            )
            for key, child in node.children.items():
                condition = str(key) if isinstance(key, SplitRange) else f"== {key!r}"
                lines.append(f"{indent}  {node.split_attribute} {condition}:")
                _walk(child, indent + "    ")

        _walk(self.root, "")
        return "\n".join(lines)


class TreeBuilder:
    """Grows a decision tree by recursive weighted information-gain splits."""

    def __init__(self, params: TreeBuilderParams | None = None) -> None:
        self.params = params or TreeBuilderParams()
        self.metrics = TreeBuildMetrics()

    def _is_splittable(self, node: TreeNode, table: RecordTable) -> bool:
        if node.depth >= self.params.max_depth:
            return False
        if len(table) < self.params.min_leaf_size:
            return False
        if table.is_pure():
            return False
        return True

    def _find_best_split(self, table: RecordTable) -> SplitSearchResult:
        result = SplitSearch(table).search()
        self.metrics.split_search_time_sec += result.metrics.time_spent_sec
        return result

    @staticmethod
    def _new_node(table: RecordTable, depth: int) -> TreeNode:
        return TreeNode(
            depth=depth,
            label=table.majority_target(),
            n_records=len(table),
            weight=table.total_weight(),
        )

    def build_tree(self, table: RecordTable | Iterable[Record]) -> DecisionTree:
        if not isinstance(table, RecordTable):
            table = RecordTable(table)

        self.metrics = TreeBuildMetrics()
        root = self._new_node(table, depth=0)
        stack = [(root, table)]

        while stack:
            node, node_table = stack.pop()
            self.metrics.nodes_visited += 1
            self.metrics.max_depth_reached = max(self.metrics.max_depth_reached, node.depth)

            if not self._is_splittable(node, node_table):
                continue

            split_result = self._find_best_split(node_table)
            if split_result.attribute is None or split_result.gain <= self.params.min_gain:
                continue

            child_tables = node_table.split(split_result.attribute, self.params.min_leaf_size)
            if not child_tables:
                continue

            node.is_leaf = False
            node.split_attribute = split_result.attribute
            node.split_kind = node_table.attribute_kinds[split_result.attribute]
            node.gain = split_result.gain
            self.metrics.nodes_split += 1

            pending = []
            for key, child_table in child_tables.items():
                child = self._new_node(child_table, depth=node.depth + 1)
                node.children[key] = child
                pending.append((child, child_table))
            stack.extend(reversed(pending))

        tree = DecisionTree(root=root, metrics=self.metrics)
        self.metrics.leaves = tree.count_leaves()
        logger.debug(
            "Built tree on %d records: %d nodes split, %d leaves, depth %d",
            len(table),
            self.metrics.nodes_split,
            self.metrics.leaves,
            self.metrics.max_depth_reached,
        )
        return tree


def train(
    records: RecordTable | Iterable[Record],
    max_depth: int = 3,
    min_leaf_size: int = 1,
) -> DecisionTree:
    params = TreeBuilderParams(max_depth=max_depth, min_leaf_size=min_leaf_size)
    return TreeBuilder(params).build_tree(records)


class DecisionStump(DecisionTree):
    """A decision tree of depth 1, trained on construction."""

    def __init__(self, records: RecordTable | Iterable[Record]) -> None:
        tree = train(records, max_depth=1, min_leaf_size=1)
        super().__init__(root=tree.root, metrics=tree.metrics)


class DecisionTreeGenerator(ClassifierGenerator):
    def __init__(self, params: TreeBuilderParams | None = None) -> None:
        self.params = params or TreeBuilderParams()

    def generate(self, table: RecordTable) -> DecisionTree:
        return TreeBuilder(self.params).build_tree(table)


def stump_generator() -> DecisionTreeGenerator:
    return DecisionTreeGenerator(TreeBuilderParams(max_depth=1, min_leaf_size=1))
