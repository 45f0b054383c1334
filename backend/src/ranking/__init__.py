"""Adaptive pairwise ranking for active-sort comparison sessions."""

from .engine import NextComparison, RankResult, TotalOrder, initial_comparison, max_comparisons, rank
from .errors import InconsistentJudgmentHistory
from .matrix import (
    COMPARISON_LABELS,
    FIRST_LABEL,
    SECOND_LABEL,
    Comparison,
    Preference,
    SortMatrix,
    TransitiveClosure,
    build_sort_matrix,
    label_preference,
)

__all__ = [
    "NextComparison",
    "RankResult",
    "TotalOrder",
    "initial_comparison",
    "max_comparisons",
    "rank",
    "InconsistentJudgmentHistory",
    "COMPARISON_LABELS",
    "FIRST_LABEL",
    "SECOND_LABEL",
    "Comparison",
    "Preference",
    "SortMatrix",
    "TransitiveClosure",
    "build_sort_matrix",
    "label_preference",
]
