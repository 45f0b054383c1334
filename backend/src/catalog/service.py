"""High-level dataset catalog service."""

from __future__ import annotations

import logging
from contextlib import AbstractContextManager
from typing import Callable, Optional

from sqlalchemy import func, select
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session

from db.models import Base
from db.session import engine, session_scope

from . import repository
from .errors import DatasetExistsError, DatasetNotFoundError
from .models import CreateDatasetPayload, Dataset, DatasetDTO, DatasetImageDTO, ImageEntry
from .scanner import scan_image_paths


logger = logging.getLogger(__name__)


def _to_dto(session: Session, dataset: Dataset) -> DatasetDTO:
    from labeling.models import LabelingSession

    dto = DatasetDTO.model_validate(dataset)
    dto.image_count = repository.count_images(session, dataset.id)
    dto.session_count = int(
        session.scalar(select(func.count(LabelingSession.id)).where(LabelingSession.dataset_id == dataset.id))
        or 0
    )
    return dto


class CatalogService:
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
            # labeling tables reference datasets; create everything on the shared metadata
            import labeling.models  # noqa: F401

            Base.metadata.create_all(self._bind)
        except Exception as exc:  # pragma: no cover - initialization failure
            raise RuntimeError("Failed to initialize catalog tables") from exc
        self._initialized = True

    def create_dataset(self, payload: CreateDatasetPayload) -> DatasetDTO:
        self._ensure_initialized()
        name = payload.name.strip()
        if not name:
            raise ValueError("Dataset name cannot be blank")

        if payload.images is None:
            images = [ImageEntry(rel_path=path) for path in scan_image_paths(payload.root_path)]
        else:
            images = list(payload.images)

        with self._scope() as session:
            if repository.get_dataset_by_name(session, name):
                raise DatasetExistsError(f"Dataset name '{name}' is already taken")
            if repository.get_dataset_by_root(session, payload.root_path):
                raise DatasetExistsError(f"Root path '{payload.root_path}' is already registered")
            dataset = repository.create_dataset(session, name=name, root_path=payload.root_path, images=images)
            dto = _to_dto(session, dataset)

        logger.info("event=dataset_created dataset_id=%s name=%s images=%d", dto.id, dto.name, dto.image_count)
        return dto

    def get_dataset(self, dataset_id: int) -> Optional[DatasetDTO]:
        self._ensure_initialized()
        with self._scope() as session:
            dataset = repository.get_dataset(session, dataset_id)
            if not dataset:
                return None
            return _to_dto(session, dataset)

    def list_datasets(self) -> list[DatasetDTO]:
        self._ensure_initialized()
        with self._scope() as session:
            return [_to_dto(session, dataset) for dataset in repository.list_datasets(session)]

    def list_images(self, dataset_id: int) -> list[DatasetImageDTO]:
        self._ensure_initialized()
        with self._scope() as session:
            if not repository.get_dataset(session, dataset_id):
                raise DatasetNotFoundError(dataset_id)
            return [DatasetImageDTO.model_validate(image) for image in repository.list_images(session, dataset_id)]

    def delete_dataset(self, dataset_id: int) -> None:
        self._ensure_initialized()
        with self._scope() as session:
            if not repository.get_dataset(session, dataset_id):
                raise DatasetNotFoundError(dataset_id)
            repository.delete_dataset(session, dataset_id)
        logger.info("event=dataset_deleted dataset_id=%s", dataset_id)


catalog_service = CatalogService()
