"""Binary-insertion ranking over a sort matrix.

``rank`` is a pure function of the matrix and the item sequence: it keeps a
provisional winners-first prefix, places each following item by bisecting
that prefix, and stops at the first probe whose outcome the judgments do not
already imply. Re-running it on the same history always proposes the same
pair, which is what lets a relabel truncate the sequence and re-derive it.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Hashable, Sequence, Union

from .errors import InconsistentJudgmentHistory
from .matrix import SortMatrix, TransitiveClosure


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TotalOrder:
    """Every item placed; ``items`` runs from winner to loser."""

    items: tuple


@dataclass(frozen=True)
class NextComparison:
    """The pair a rater should judge next.

    ``left`` is the already placed pivot and ``right`` the item being inserted.
    """

    left: Hashable
    right: Hashable


RankResult = Union[TotalOrder, NextComparison]


def max_comparisons(item_count: int) -> int:
    """Worst-case number of judgments binary insertion needs for ``item_count`` items."""
    return sum(math.ceil(math.log2(size)) for size in range(2, item_count + 1))


def initial_comparison(items: Sequence[Hashable]) -> NextComparison:
    """Seed pair for a new session: the first two items in sampling order."""
    if len(items) < 2:
        raise ValueError("At least two items are required to seed a comparison")
    return NextComparison(left=items[0], right=items[1])


def _validate_items(matrix: SortMatrix, items: Sequence[Hashable]) -> None:
    if len(set(items)) != len(items):
        raise ValueError("Items to rank must be unique")
    unknown = matrix.items() - set(items)
    if unknown:
        raise InconsistentJudgmentHistory(
            f"Judgments reference {len(unknown)} item(s) outside the ranked set",
            first=next(iter(unknown)),
        )


def _insert(closure: TransitiveClosure, prefix: list, item: Hashable) -> Union[int, NextComparison]:
    lo, hi = 0, len(prefix)
    while lo < hi:
        mid = (lo + hi) // 2
        pivot = prefix[mid]
        relation = closure.relation(pivot, item)
        if relation is None:
            return NextComparison(left=pivot, right=item)
        if relation:
            lo = mid + 1
        else:
            hi = mid
    return lo


def rank(matrix: SortMatrix, items: Sequence[Hashable]) -> RankResult:
    """Return the total order implied by ``matrix`` or the next pair to compare."""
    items = tuple(items)
    _validate_items(matrix, items)
    if len(items) < 2:
        return TotalOrder(items=items)

    closure = matrix.closure()
    prefix = [items[0]]
    for item in items[1:]:
        position = _insert(closure, prefix, item)
        if isinstance(position, NextComparison):
            logger.debug(
                "Next comparison %r vs %r (%d/%d items placed)",
                position.left,
                position.right,
                len(prefix),
                len(items),
            )
            return position
        prefix.insert(position, item)

    if not closure.is_chain(prefix):
        raise InconsistentJudgmentHistory("Judgments do not determine a single total order")
    return TotalOrder(items=tuple(prefix))
