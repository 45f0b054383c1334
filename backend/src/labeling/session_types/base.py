"""Capability interface shared by every labeling session type."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Optional, Sequence

from sqlalchemy.orm import Session

from .. import repository
from ..errors import EmptySession, InvalidElementReference, InvalidJudgment
from ..models import (
    CreateSessionPayload,
    ElementLabel,
    ElementType,
    LabelingSession,
    SessionElement,
    SessionType,
    SliceAttributes,
    now_ms,
)
from ..results import SessionResults


logger = logging.getLogger(__name__)


class SessionTypeBase(ABC):
    session_type: SessionType
    element_type: ElementType = ElementType.SLICE
    min_slices: int = 1

    def create_session(
        self,
        db: Session,
        payload: CreateSessionPayload,
        slices: Sequence[SliceAttributes],
    ) -> LabelingSession:
        if len(slices) < self.min_slices:
            raise EmptySession(self.min_slices, len(slices))
        record = repository.insert_labeling_session(
            db,
            dataset_id=payload.dataset_id,
            session_type=self.session_type,
            name=payload.name,
            prompt=payload.prompt,
            label_options=payload.label_options,
            metadata_json=payload.metadata,
        )
        slice_elements = repository.insert_slices(db, record.id, slices)
        self._seed_elements(db, record, slice_elements, payload)
        return record

    def _seed_elements(
        self,
        db: Session,
        session: LabelingSession,
        slices: Sequence[SessionElement],
        payload: CreateSessionPayload,
    ) -> None:
        """Create the elements raters label, beyond the slices themselves."""

    def select_elements_to_label(self, db: Session, session: LabelingSession) -> list[SessionElement]:
        return repository.select_session_elements(db, session.id, self.element_type)

    def element_at(self, db: Session, session: LabelingSession, index: int) -> SessionElement:
        element = repository.get_element_at(db, session.id, self.element_type, index)
        if element is None:
            raise InvalidElementReference(session.id, index)
        return element

    def _check_element(self, session: LabelingSession, element: SessionElement) -> None:
        if element.session_id != session.id or element.element_type is not self.element_type:
            raise InvalidElementReference(
                session.id,
                element.element_index,
                f"Element {element.id} is not a {self.element_type.value} of session {session.id}",
            )

    def _record_label(
        self,
        db: Session,
        element: SessionElement,
        value: str,
        start_timestamp: int,
        finish_timestamp: Optional[int],
    ) -> ElementLabel:
        finish = finish_timestamp if finish_timestamp is not None else now_ms()
        if finish < start_timestamp:
            raise InvalidJudgment(f"Label finished ({finish}) before it started ({start_timestamp})")
        current = repository.select_current_label(db, element.id)
        if current is not None and finish < current.finish_timestamp:
            raise InvalidJudgment(
                f"Label for element {element.id} would finish before the current label and never take effect"
            )
        return repository.insert_element_label(db, element.id, value, start_timestamp, finish)

    @abstractmethod
    def add_label(
        self,
        db: Session,
        session: LabelingSession,
        element: SessionElement,
        value: str,
        start_timestamp: int,
        finish_timestamp: Optional[int] = None,
    ) -> ElementLabel:
        raise NotImplementedError

    def should_warn_about_label_overwrite(self, db: Session, session: LabelingSession, index: int) -> bool:
        return False

    @abstractmethod
    def compute_results(self, db: Session, session: LabelingSession) -> SessionResults:
        raise NotImplementedError

    def is_comparison(self) -> bool:
        return False

    def is_active(self) -> bool:
        return False

    @abstractmethod
    def session_tags(self) -> list[str]:
        raise NotImplementedError
