"""Tests for the binary-insertion ranking engine."""

import itertools
import random

import pytest

from ranking import (
    FIRST_LABEL,
    SECOND_LABEL,
    Comparison,
    InconsistentJudgmentHistory,
    NextComparison,
    SortMatrix,
    TotalOrder,
    build_sort_matrix,
    initial_comparison,
    max_comparisons,
    rank,
)


def _rate(true_order, pair: NextComparison) -> str:
    position = {item: i for i, item in enumerate(true_order)}
    return FIRST_LABEL if position[pair.left] < position[pair.right] else SECOND_LABEL


def _run_session(items, true_order):
    """Answer every proposed pair consistently with ``true_order``."""
    comparisons: list[Comparison] = []
    labels: dict[int, str] = {}
    while True:
        result = rank(build_sort_matrix(comparisons, labels), items)
        if isinstance(result, TotalOrder):
            return result, comparisons
        index = len(comparisons)
        comparisons.append(Comparison(element_id=index, index=index, left=result.left, right=result.right))
        labels[index] = _rate(true_order, result)
        assert index <= len(items) ** 2, "engine failed to converge"


class TestTrivialCases:
    def test_no_items(self):
        assert rank(SortMatrix(), []) == TotalOrder(items=())

    def test_single_item_needs_no_comparison(self):
        assert rank(SortMatrix(), ["A"]) == TotalOrder(items=("A",))

    def test_two_items_need_exactly_one_comparison(self):
        result, comparisons = _run_session(["A", "B"], ["B", "A"])
        assert len(comparisons) == 1
        assert result == TotalOrder(items=("B", "A"))

    def test_duplicate_items_rejected(self):
        with pytest.raises(ValueError):
            rank(SortMatrix(), ["A", "A"])

    def test_initial_comparison_matches_first_proposal(self):
        items = ["A", "B", "C"]
        assert initial_comparison(items) == rank(SortMatrix(), items)
        assert initial_comparison(items) == NextComparison(left="A", right="B")

    def test_initial_comparison_requires_two_items(self):
        with pytest.raises(ValueError):
            initial_comparison(["A"])


class TestScenario:
    def test_four_items_follow_bisection(self):
        """Four judgments in total: the seed pair (A, B) plus three the engine asks for."""
        items = ["A", "B", "C", "D"]
        comparisons = []
        labels = {}
        proposed = []
        while True:
            result = rank(build_sort_matrix(comparisons, labels), items)
            if isinstance(result, TotalOrder):
                break
            proposed.append((result.left, result.right))
            index = len(comparisons)
            comparisons.append(Comparison(index, index, result.left, result.right))
            labels[index] = FIRST_LABEL  # true order A > B > C > D

        assert proposed == [("A", "B"), ("B", "C"), ("B", "D"), ("C", "D")]
        assert result.items == ("A", "B", "C", "D")

    def test_implied_pairs_are_never_requested(self):
        items = ["A", "B", "C"]
        comparisons = [Comparison(0, 0, "A", "B"), Comparison(1, 1, "B", "C")]
        result = rank(build_sort_matrix(comparisons, {0: FIRST_LABEL, 1: FIRST_LABEL}), items)
        # A > C follows from A > B > C
        assert result == TotalOrder(items=("A", "B", "C"))


class TestProperties:
    def test_deterministic(self):
        items = list(range(7))
        comparisons = [Comparison(0, 0, 0, 1), Comparison(1, 1, 1, 2)]
        labels = {0: SECOND_LABEL, 1: FIRST_LABEL}
        matrix = build_sort_matrix(comparisons, labels)
        assert rank(matrix, items) == rank(matrix, items)
        assert rank(matrix, items) == rank(build_sort_matrix(comparisons, labels), items)

    @pytest.mark.parametrize("true_order", list(itertools.permutations("ABCDE")))
    def test_converges_to_true_order_for_every_permutation(self, true_order):
        result, comparisons = _run_session(list("ABCDE"), list(true_order))
        assert result.items == tuple(true_order)
        assert len(comparisons) <= max_comparisons(5)

    @pytest.mark.parametrize("size", [3, 8, 13, 21])
    def test_converges_within_bound_for_shuffled_orders(self, size):
        rng = random.Random(size)
        items = list(range(size))
        for _ in range(5):
            true_order = items[:]
            rng.shuffle(true_order)
            result, comparisons = _run_session(items, true_order)
            assert list(result.items) == true_order
            assert len(comparisons) <= max_comparisons(size)
            # Acyclic at every prefix, and no pair asked twice
            pairs = [frozenset((c.left, c.right)) for c in comparisons]
            assert len(pairs) == len(set(pairs))

    def test_max_comparisons(self):
        assert max_comparisons(1) == 0
        assert max_comparisons(2) == 1
        assert max_comparisons(4) == 5


class TestInconsistentHistory:
    def test_contradiction_fails_loudly(self):
        comparisons = [Comparison(0, 0, "A", "B"), Comparison(1, 1, "A", "B")]
        matrix = build_sort_matrix(comparisons, {0: FIRST_LABEL, 1: SECOND_LABEL})
        with pytest.raises(InconsistentJudgmentHistory):
            rank(matrix, ["A", "B"])

    def test_unknown_item_in_history(self):
        matrix = build_sort_matrix([Comparison(0, 0, "A", "Z")], {0: FIRST_LABEL})
        with pytest.raises(InconsistentJudgmentHistory):
            rank(matrix, ["A", "B"])
