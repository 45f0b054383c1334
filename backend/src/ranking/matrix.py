"""Pairwise sort matrix built from judged comparisons.

The matrix is derived state. It is rebuilt from the persisted comparison
sequence on every call and must never be cached between label events.
"""

from __future__ import annotations

import enum
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Hashable, Iterable, Mapping, Optional, Sequence

from .errors import InconsistentJudgmentHistory


FIRST_LABEL = "First"
SECOND_LABEL = "Second"
COMPARISON_LABELS = (FIRST_LABEL, SECOND_LABEL)


class Preference(str, enum.Enum):
    LEFT = "left"
    RIGHT = "right"


def label_preference(label_value: str) -> Preference:
    """Map a comparison label to the winning side.

    Anything other than "Second" favours the left item. Custom label options
    (e.g. "Same") are ties, and ties keep the already placed left item ahead.
    """
    if label_value == SECOND_LABEL:
        return Preference.RIGHT
    return Preference.LEFT


@dataclass(frozen=True)
class Comparison:
    """One comparison element as seen by the matrix builder."""

    element_id: Hashable
    index: int
    left: Hashable
    right: Hashable


@dataclass
class SortMatrix:
    """Directed winner -> loser edges between items."""

    edges: dict[Hashable, set[Hashable]] = field(default_factory=lambda: defaultdict(set))

    def add_edge(self, winner: Hashable, loser: Hashable) -> None:
        if winner == loser:
            raise InconsistentJudgmentHistory(
                f"Item {winner!r} was compared against itself", first=winner, second=loser
            )
        self.edges[winner].add(loser)

    def items(self) -> set[Hashable]:
        seen: set[Hashable] = set()
        for winner, losers in self.edges.items():
            if losers:
                seen.add(winner)
                seen.update(losers)
        return seen

    def edge_count(self) -> int:
        return sum(len(losers) for losers in self.edges.values())

    def is_empty(self) -> bool:
        return self.edge_count() == 0

    def closure(self) -> "TransitiveClosure":
        return TransitiveClosure.from_edges(self.edges)


class TransitiveClosure:
    """Reachability view over a sort matrix.

    ``above[a]`` holds every item that ``a`` is known to outrank, directly or
    through a chain of judgments.
    """

    def __init__(self, above: Mapping[Hashable, frozenset]) -> None:
        self._above = dict(above)

    @classmethod
    def from_edges(cls, edges: Mapping[Hashable, Iterable[Hashable]]) -> "TransitiveClosure":
        greater_than: dict[Hashable, set[Hashable]] = {node: set(losers) for node, losers in edges.items()}

        # Warshall-style expansion until nothing new is implied
        changed = True
        while changed:
            changed = False
            for a in list(greater_than):
                for b in list(greater_than[a]):
                    for c in greater_than.get(b, ()):
                        if c not in greater_than[a]:
                            greater_than[a].add(c)
                            changed = True

        for node, reachable in greater_than.items():
            if node in reachable:
                partner = next(
                    (other for other in reachable if node in greater_than.get(other, ())),
                    None,
                )
                raise InconsistentJudgmentHistory(
                    f"Judgments form a cycle through item {node!r}"
                    + (f" and {partner!r}" if partner is not None and partner != node else ""),
                    first=node,
                    second=partner,
                )

        return cls({node: frozenset(reachable) for node, reachable in greater_than.items()})

    def outranks(self, a: Hashable, b: Hashable) -> bool:
        return b in self._above.get(a, frozenset())

    def relation(self, a: Hashable, b: Hashable) -> Optional[bool]:
        """True if ``a`` is above ``b``, False if below, None if not implied."""
        if self.outranks(a, b):
            return True
        if self.outranks(b, a):
            return False
        return None

    def is_chain(self, order: Sequence[Hashable]) -> bool:
        return all(self.outranks(higher, lower) for higher, lower in zip(order, order[1:]))


def build_sort_matrix(
    comparisons: Sequence[Comparison],
    labels: Mapping[Hashable, Optional[str]],
) -> SortMatrix:
    """Record one directed edge for every comparison that has a current label.

    Comparisons are processed in index order. Those without a label (the
    frontier) are skipped.
    """
    matrix = SortMatrix()
    for comparison in sorted(comparisons, key=lambda c: c.index):
        label_value = labels.get(comparison.element_id)
        if label_value is None:
            continue
        if label_preference(label_value) is Preference.LEFT:
            matrix.add_edge(comparison.left, comparison.right)
        else:
            matrix.add_edge(comparison.right, comparison.left)
    return matrix
