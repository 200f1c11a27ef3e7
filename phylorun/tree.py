"""Tree topologies, basic tree dimensions and a map of scored topologies."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterator


@dataclass
class TreeBranch:
    """A branch between two (sub)nodes, with its length."""

    left_node_id: int = 0
    right_node_id: int = 0
    length: float = 0.0


@dataclass
class TreeTopology:
    """Branch list of a tree, its virtual root and per-partition branch lengths."""

    vroot_node_id: int = 0
    edges: list[TreeBranch] = field(default_factory=list)
    brlens: list[list[float]] = field(default_factory=list)

    def __iter__(self) -> Iterator[TreeBranch]:
        return iter(self.edges)

    def __len__(self) -> int:
        return len(self.edges)


class BasicTree:
    """Dimensions of an unrooted binary tree with a given number of tips."""

    def __init__(self, num_tips: int = 0) -> None:
        if num_tips < 0:
            raise ValueError("Number of tips must not be negative")
        self.num_tips = num_tips

    def empty(self) -> bool:
        return self.num_tips == 0

    def binary(self) -> bool:
        return True

    def num_inner(self) -> int:
        return max(self.num_tips - 2, 0)

    def num_nodes(self) -> int:
        return self.num_tips + self.num_inner()

    def num_subnodes(self) -> int:
        return self.num_branches() * 2

    def num_branches(self) -> int:
        return 2 * self.num_tips - 3 if self.num_tips else 0

    def num_splits(self) -> int:
        """Number of non-trivial bipartitions (inner branches)."""
        return max(self.num_branches() - self.num_tips, 0)


ScoredTopology = tuple[float, TreeTopology]


class ScoredTopologyMap:
    """Topologies with their scores, keyed by index and kept in index order."""

    def __init__(self) -> None:
        self._trees: dict[int, ScoredTopology] = {}

    def __len__(self) -> int:
        return len(self._trees)

    def __contains__(self, index: object) -> bool:
        return index in self._trees

    def __iter__(self) -> Iterator[tuple[int, ScoredTopology]]:
        return iter(sorted(self._trees.items(), key=lambda item: item[0]))

    def insert(self, index: int, score: float, topology: TreeTopology) -> None:
        """Store a topology under ``index``, replacing any previous one."""
        self._trees[index] = (score, topology)

    def at(self, index: int) -> ScoredTopology:
        try:
            return self._trees[index]
        except KeyError:
            raise KeyError(f"ScoredTopologyMap: Invalid tree id: {index}") from None

    def best(self) -> tuple[int, ScoredTopology]:
        """Entry with the highest score; the lowest index wins a tie."""
        if not self._trees:
            raise ValueError("ScoredTopologyMap is empty")
        return max(self, key=lambda item: item[1][0])

    def best_score(self) -> float:
        return self.best()[1][0]

    def best_topology(self) -> TreeTopology:
        return self.best()[1][1]

    def clear(self) -> None:
        self._trees.clear()