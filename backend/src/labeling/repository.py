"""Data access helpers for labeling sessions, elements and labels.

Every helper takes the caller's ``Session`` so that a relabel can run its
reads, deletes and inserts inside one transaction.
"""

from __future__ import annotations

from typing import Iterable, Optional

from sqlalchemy import delete, exists, select
from sqlalchemy.orm import Session

from .models import (
    ElementLabel,
    ElementType,
    LabelingSession,
    SessionElement,
    SessionType,
    SliceAttributes,
)


def insert_labeling_session(
    session: Session,
    *,
    dataset_id: int,
    session_type: SessionType,
    name: str,
    prompt: str,
    label_options: str,
    metadata_json: dict,
) -> LabelingSession:
    record = LabelingSession(
        dataset_id=dataset_id,
        session_type=session_type,
        name=name,
        prompt=prompt,
        label_options=label_options,
        metadata_json=metadata_json,
    )
    session.add(record)
    session.flush()
    return record


def get_labeling_session(session: Session, session_id: int) -> Optional[LabelingSession]:
    return session.get(LabelingSession, session_id)


def get_labeling_session_by_name(session: Session, dataset_id: int, name: str) -> Optional[LabelingSession]:
    stmt = select(LabelingSession).where(LabelingSession.dataset_id == dataset_id, LabelingSession.name == name)
    return session.scalar(stmt)


def list_labeling_sessions(session: Session, dataset_id: int) -> list[LabelingSession]:
    stmt = select(LabelingSession).where(LabelingSession.dataset_id == dataset_id).order_by(LabelingSession.id)
    return list(session.scalars(stmt))


def delete_labeling_session(session: Session, session_id: int) -> None:
    record = session.get(LabelingSession, session_id)
    if not record:
        raise ValueError(f"Labeling session {session_id} not found")
    element_ids = select(SessionElement.id).where(SessionElement.session_id == session_id)
    session.execute(delete(ElementLabel).where(ElementLabel.element_id.in_(element_ids)))
    # Comparisons reference slices, so they go first
    for element_type in (ElementType.COMPARISON, ElementType.SLICE):
        session.execute(
            delete(SessionElement).where(
                SessionElement.session_id == session_id,
                SessionElement.element_type == element_type,
            )
        )
    session.delete(record)
    session.flush()


def insert_slices(session: Session, session_id: int, slices: Iterable[SliceAttributes]) -> list[SessionElement]:
    elements = [
        SessionElement(
            session_id=session_id,
            element_type=ElementType.SLICE,
            element_index=index,
            image_id=attrs.image_id,
            slice_dim=attrs.slice_dim,
            slice_index=attrs.slice_index,
        )
        for index, attrs in enumerate(slices)
    ]
    session.add_all(elements)
    session.flush()
    return elements


def insert_comparison(
    session: Session,
    session_id: int,
    index: int,
    slice_1_id: int,
    slice_2_id: int,
) -> SessionElement:
    element = SessionElement(
        session_id=session_id,
        element_type=ElementType.COMPARISON,
        element_index=index,
        slice_1_id=slice_1_id,
        slice_2_id=slice_2_id,
    )
    session.add(element)
    session.flush()
    return element


def select_session_elements(session: Session, session_id: int, element_type: ElementType) -> list[SessionElement]:
    stmt = (
        select(SessionElement)
        .where(SessionElement.session_id == session_id, SessionElement.element_type == element_type)
        .order_by(SessionElement.element_index)
    )
    return list(session.scalars(stmt).unique())


def select_session_slices(session: Session, session_id: int) -> list[SessionElement]:
    return select_session_elements(session, session_id, ElementType.SLICE)


def select_session_comparisons(session: Session, session_id: int) -> list[SessionElement]:
    return select_session_elements(session, session_id, ElementType.COMPARISON)


def get_element_at(
    session: Session, session_id: int, element_type: ElementType, index: int
) -> Optional[SessionElement]:
    stmt = select(SessionElement).where(
        SessionElement.session_id == session_id,
        SessionElement.element_type == element_type,
        SessionElement.element_index == index,
    )
    return session.scalars(stmt).unique().one_or_none()


def delete_elements_from(session: Session, session_id: int, element_type: ElementType, index: int) -> int:
    """Delete every element of ``element_type`` after ``index`` along with its labels."""
    doomed = select(SessionElement.id).where(
        SessionElement.session_id == session_id,
        SessionElement.element_type == element_type,
        SessionElement.element_index > index,
    )
    # "fetch" evicts the deleted rows from the identity map so reused ids cannot collide
    session.execute(
        delete(ElementLabel)
        .where(ElementLabel.element_id.in_(doomed))
        .execution_options(synchronize_session="fetch")
    )
    result = session.execute(
        delete(SessionElement)
        .where(
            SessionElement.session_id == session_id,
            SessionElement.element_type == element_type,
            SessionElement.element_index > index,
        )
        .execution_options(synchronize_session="fetch")
    )
    return result.rowcount or 0


def insert_element_label(
    session: Session,
    element_id: int,
    label_value: str,
    start_timestamp: int,
    finish_timestamp: int,
) -> ElementLabel:
    label = ElementLabel(
        element_id=element_id,
        label_value=label_value,
        start_timestamp=start_timestamp,
        finish_timestamp=finish_timestamp,
    )
    session.add(label)
    session.flush()
    return label


def select_element_labels(session: Session, element_id: int) -> list[ElementLabel]:
    """Label history of one element, current judgment first."""
    stmt = (
        select(ElementLabel)
        .where(ElementLabel.element_id == element_id)
        .order_by(ElementLabel.finish_timestamp.desc(), ElementLabel.id.desc())
    )
    return list(session.scalars(stmt))


def select_current_label(session: Session, element_id: int) -> Optional[ElementLabel]:
    stmt = (
        select(ElementLabel)
        .where(ElementLabel.element_id == element_id)
        .order_by(ElementLabel.finish_timestamp.desc(), ElementLabel.id.desc())
        .limit(1)
    )
    return session.scalar(stmt)


def select_latest_labels(session: Session, session_id: int, element_type: ElementType) -> dict[int, ElementLabel]:
    """Current judgment per element; elements without any label are absent."""
    stmt = (
        select(ElementLabel)
        .join(SessionElement, SessionElement.id == ElementLabel.element_id)
        .where(SessionElement.session_id == session_id, SessionElement.element_type == element_type)
        .order_by(ElementLabel.finish_timestamp, ElementLabel.id)
    )
    latest: dict[int, ElementLabel] = {}
    for label in session.scalars(stmt):
        latest[label.element_id] = label
    return latest


def has_labels_after(session: Session, session_id: int, element_type: ElementType, index: int) -> bool:
    stmt = select(
        exists()
        .where(ElementLabel.element_id == SessionElement.id)
        .where(
            SessionElement.session_id == session_id,
            SessionElement.element_type == element_type,
            SessionElement.element_index > index,
        )
    )
    return bool(session.scalar(stmt))
