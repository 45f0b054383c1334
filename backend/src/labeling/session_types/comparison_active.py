"""Comparison sessions driven by the active-sort ranking engine.

The comparison sequence of an active session is never edited in place.
Every label re-derives what comes next from the persisted judgments: the
labelled element is kept, every later comparison is dropped, and the
ranking engine decides whether one new comparison is appended or the
session is complete. All of that happens in the caller's transaction.
"""

from __future__ import annotations

import logging
from typing import Optional, Sequence

from sqlalchemy.orm import Session

from ranking import (
    Comparison,
    NextComparison,
    RankResult,
    TotalOrder,
    build_sort_matrix,
    initial_comparison,
    rank,
)

from .. import repository
from ..errors import InvalidElementReference
from ..models import (
    CreateSessionPayload,
    ElementLabel,
    ElementType,
    LabelingSession,
    SessionElement,
    SessionType,
    SliceDTO,
)
from ..results import SessionResults, SliceResult
from .base import SessionTypeBase


logger = logging.getLogger(__name__)


def _as_comparisons(elements: Sequence[SessionElement]) -> list[Comparison]:
    return [
        Comparison(
            element_id=element.id,
            index=element.element_index,
            left=element.slice_1_id,
            right=element.slice_2_id,
        )
        for element in elements
    ]


def derive_ranking(
    slices: Sequence[SessionElement],
    comparisons: Sequence[Comparison],
    labels: dict[int, ElementLabel],
) -> RankResult:
    """Run the matrix builder and ranking engine over persisted state."""
    matrix = build_sort_matrix(
        comparisons,
        {element_id: label.label_value for element_id, label in labels.items()},
    )
    return rank(matrix, [element.id for element in slices])


class ComparisonActiveSortSession(SessionTypeBase):
    session_type = SessionType.COMPARISON_ACTIVE_SORT
    element_type = ElementType.COMPARISON
    min_slices = 2

    def session_tags(self) -> list[str]:
        return ["Comparison Session", "Active Sampling (Sort)"]

    def is_comparison(self) -> bool:
        return True

    def is_active(self) -> bool:
        return True

    def _seed_elements(
        self,
        db: Session,
        session: LabelingSession,
        slices: Sequence[SessionElement],
        payload: CreateSessionPayload,
    ) -> None:
        seed = initial_comparison([element.id for element in slices])
        repository.insert_comparison(db, session.id, 0, seed.left, seed.right)

    def should_warn_about_label_overwrite(self, db: Session, session: LabelingSession, index: int) -> bool:
        return repository.has_labels_after(db, session.id, ElementType.COMPARISON, index)

    def add_label(
        self,
        db: Session,
        session: LabelingSession,
        element: SessionElement,
        value: str,
        start_timestamp: int,
        finish_timestamp: Optional[int] = None,
    ) -> ElementLabel:
        self._check_element(session, element)
        index = element.element_index
        comparisons = repository.select_session_comparisons(db, session.id)
        if not any(comparison.id == element.id for comparison in comparisons):
            raise InvalidElementReference(session.id, index)

        # Snapshot before truncation; deleted rows cannot be refreshed afterwards
        kept = _as_comparisons([comparison for comparison in comparisons if comparison.element_index <= index])

        label = self._record_label(db, element, value, start_timestamp, finish_timestamp)
        removed = repository.delete_elements_from(db, session.id, ElementType.COMPARISON, index)

        slices = repository.select_session_slices(db, session.id)
        labels = repository.select_latest_labels(db, session.id, ElementType.COMPARISON)
        result = derive_ranking(slices, kept, labels)

        if isinstance(result, NextComparison):
            repository.insert_comparison(db, session.id, index + 1, result.left, result.right)
            outcome = "next_comparison"
        else:
            outcome = "sorted"
        db.flush()

        logger.info(
            "event=active_label session_id=%s index=%s value=%s removed=%d outcome=%s",
            session.id,
            index,
            value,
            removed,
            outcome,
        )
        return label

    def compute_results(self, db: Session, session: LabelingSession) -> SessionResults:
        slices = repository.select_session_slices(db, session.id)
        comparisons = repository.select_session_comparisons(db, session.id)
        labels = repository.select_latest_labels(db, session.id, ElementType.COMPARISON)
        result = derive_ranking(slices, _as_comparisons(comparisons), labels)

        if isinstance(result, TotalOrder):
            by_id = {element.id: element for element in slices}
            return SessionResults(
                labeling_complete=True,
                slice_results=[SliceResult(slice=SliceDTO.from_element(by_id[item])) for item in result.items],
            )
        return SessionResults(
            labeling_complete=False,
            slice_results=[SliceResult(slice=SliceDTO.from_element(element)) for element in slices],
        )
