"""Classification sessions: one label per slice, no ranking."""

from __future__ import annotations

from typing import Optional

from sqlalchemy.orm import Session

from .. import repository
from ..models import ElementLabel, ElementType, LabelingSession, SessionElement, SessionType, SliceDTO
from ..results import SessionResults, SliceResult, sorted_by_label
from .base import SessionTypeBase


class ClassificationSession(SessionTypeBase):
    session_type = SessionType.CLASSIFICATION
    element_type = ElementType.SLICE

    def session_tags(self) -> list[str]:
        return ["Classification Session"]

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
        return self._record_label(db, element, value, start_timestamp, finish_timestamp)

    def compute_results(self, db: Session, session: LabelingSession) -> SessionResults:
        slices = repository.select_session_slices(db, session.id)
        labels = repository.select_latest_labels(db, session.id, ElementType.SLICE)
        results = [
            SliceResult(
                slice=SliceDTO.from_element(element),
                latest_label_value=labels[element.id].label_value if element.id in labels else None,
            )
            for element in slices
        ]
        return SessionResults(
            labeling_complete=all(result.latest_label_value is not None for result in results),
            slice_results=sorted_by_label(results, session.label_options),
        )
