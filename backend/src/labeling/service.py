"""High-level labeling service: one transaction per rater action."""

from __future__ import annotations

import logging
from contextlib import AbstractContextManager
from typing import Any, Callable, Optional

from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session

from catalog import repository as catalog_repository
from catalog.errors import DatasetNotFoundError
from db.models import Base
from db.session import engine, session_scope
from ranking import InconsistentJudgmentHistory

from . import repository
from .config import get_labeling_settings
from .errors import SessionNameTakenError, SessionNotFoundError
from .models import (
    AddLabelPayload,
    CreateSessionPayload,
    ElementLabelDTO,
    LabelingSession,
    LabelingSessionDTO,
    SessionElementDTO,
    SessionType,
    SliceAttributes,
)
from .results import SessionResults, split_label_options
from .sampling import make_rng, sample_slices
from .session_types import get_session_class


logger = logging.getLogger(__name__)


def _log_label_event(event: str, session_id: int, *, level: int = logging.INFO, **fields: Any) -> None:
    if not logger.isEnabledFor(level):
        return
    parts = [f"event={event}", f"session_id={session_id}"]
    parts.extend(f"{key}={value}" for key, value in fields.items() if value is not None)
    logger.log(level, " ".join(parts))


def _to_dto(record: LabelingSession) -> LabelingSessionDTO:
    session_class = get_session_class(record.session_type)
    dto = LabelingSessionDTO.model_validate(record)
    dto.is_comparison = session_class.is_comparison()
    dto.is_active = session_class.is_active()
    dto.tags = session_class.session_tags()
    return dto


class LabelingService:
    def __init__(
        self,
        scope: Optional[Callable[[], AbstractContextManager[Session]]] = None,
        bind: Optional[Engine] = None,
    ) -> None:
        self._scope = scope or session_scope
        self._bind = bind if bind is not None else engine
        self._initialized = False

    def _ensure_initialized(self) -> None:
        if self._initialized:
            return
        try:
            Base.metadata.create_all(self._bind)
        except Exception as exc:  # pragma: no cover - initialization failure
            raise RuntimeError("Failed to initialize labeling tables") from exc
        self._initialized = True

    def _load(self, db: Session, session_id: int) -> LabelingSession:
        record = repository.get_labeling_session(db, session_id)
        if record is None:
            raise SessionNotFoundError(session_id)
        return record

    def _resolve_slices(self, db: Session, payload: CreateSessionPayload) -> list[SliceAttributes]:
        if payload.slices is not None:
            image_ids = {image.id for image in catalog_repository.list_images(db, payload.dataset_id)}
            unknown = sorted({attrs.image_id for attrs in payload.slices} - image_ids)
            if unknown:
                raise ValueError(f"Images {unknown} do not belong to dataset {payload.dataset_id}")
            return list(payload.slices)

        seed = payload.seed if payload.seed is not None else get_labeling_settings().sampling_seed
        images = catalog_repository.list_images(db, payload.dataset_id)
        return sample_slices(images, payload.sampling, make_rng(seed))

    def create_session(self, payload: CreateSessionPayload) -> LabelingSessionDTO:
        self._ensure_initialized()
        name = payload.name.strip()
        if not name:
            raise ValueError("Session name cannot be blank")
        if payload.session_type is SessionType.CLASSIFICATION and not split_label_options(payload.label_options):
            raise ValueError("Classification sessions must have at least one label option")
        payload = payload.model_copy(update={"name": name})
        session_class = get_session_class(payload.session_type)

        with self._scope() as db:
            if catalog_repository.get_dataset(db, payload.dataset_id) is None:
                raise DatasetNotFoundError(payload.dataset_id)
            if repository.get_labeling_session_by_name(db, payload.dataset_id, name):
                raise SessionNameTakenError(f"Session name '{name}' is already taken in dataset {payload.dataset_id}")
            slices = self._resolve_slices(db, payload)
            record = session_class.create_session(db, payload, slices)
            dto = _to_dto(record)

        _log_label_event(
            "session_created",
            dto.id,
            session_type=dto.session_type.value,
            dataset_id=dto.dataset_id,
            slices=len(slices),
        )
        return dto

    def get_session(self, session_id: int) -> Optional[LabelingSessionDTO]:
        self._ensure_initialized()
        with self._scope() as db:
            record = repository.get_labeling_session(db, session_id)
            return _to_dto(record) if record else None

    def list_sessions(self, dataset_id: int) -> list[LabelingSessionDTO]:
        self._ensure_initialized()
        with self._scope() as db:
            return [_to_dto(record) for record in repository.list_labeling_sessions(db, dataset_id)]

    def delete_session(self, session_id: int) -> None:
        self._ensure_initialized()
        with self._scope() as db:
            self._load(db, session_id)
            repository.delete_labeling_session(db, session_id)
        _log_label_event("session_deleted", session_id)

    def list_elements(self, session_id: int) -> list[SessionElementDTO]:
        self._ensure_initialized()
        with self._scope() as db:
            record = self._load(db, session_id)
            session_class = get_session_class(record.session_type)
            elements = session_class.select_elements_to_label(db, record)
            labels = repository.select_latest_labels(db, session_id, session_class.element_type)
            return [
                SessionElementDTO.from_element(
                    element, labels[element.id].label_value if element.id in labels else None
                )
                for element in elements
            ]

    def get_element_labels(self, session_id: int, index: int) -> list[ElementLabelDTO]:
        self._ensure_initialized()
        with self._scope() as db:
            record = self._load(db, session_id)
            element = get_session_class(record.session_type).element_at(db, record, index)
            return [ElementLabelDTO.model_validate(label) for label in repository.select_element_labels(db, element.id)]

    def should_warn_about_label_overwrite(self, session_id: int, index: int) -> bool:
        self._ensure_initialized()
        with self._scope() as db:
            record = self._load(db, session_id)
            return get_session_class(record.session_type).should_warn_about_label_overwrite(db, record, index)

    def add_label(self, session_id: int, index: int, payload: AddLabelPayload) -> Optional[ElementLabelDTO]:
        """Record a label for the element at ``index``.

        Returns None when ``payload.value`` is already the element's current
        label, in which case nothing is written.
        """
        self._ensure_initialized()
        try:
            with self._scope() as db:
                record = self._load(db, session_id)
                session_class = get_session_class(record.session_type)
                element = session_class.element_at(db, record, index)
                current = repository.select_current_label(db, element.id)
                if current is not None and current.label_value == payload.value:
                    _log_label_event("label_unchanged", session_id, index=index, level=logging.DEBUG)
                    return None
                label = session_class.add_label(
                    db,
                    record,
                    element,
                    payload.value,
                    payload.start_timestamp,
                    payload.finish_timestamp,
                )
                dto = ElementLabelDTO.model_validate(label)
        except InconsistentJudgmentHistory as exc:
            _log_label_event("label_failed", session_id, index=index, message=str(exc), level=logging.ERROR)
            raise

        _log_label_event("label_added", session_id, index=index, value=payload.value)
        return dto

    def compute_results(self, session_id: int) -> SessionResults:
        self._ensure_initialized()
        with self._scope() as db:
            record = self._load(db, session_id)
            return get_session_class(record.session_type).compute_results(db, record)


labeling_service = LabelingService()
