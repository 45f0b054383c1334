"""Data access helpers for datasets and their images."""

from __future__ import annotations

from typing import Iterable, Optional

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from .models import Dataset, DatasetImage, ImageEntry


def create_dataset(session: Session, *, name: str, root_path: str, images: Iterable[ImageEntry]) -> Dataset:
    dataset = Dataset(name=name, root_path=root_path)
    session.add(dataset)
    session.flush()
    session.add_all(
        DatasetImage(dataset_id=dataset.id, rel_path=entry.rel_path, dims=entry.dims) for entry in images
    )
    session.flush()
    return dataset


def get_dataset(session: Session, dataset_id: int) -> Optional[Dataset]:
    return session.get(Dataset, dataset_id)


def get_dataset_by_name(session: Session, name: str) -> Optional[Dataset]:
    return session.scalar(select(Dataset).where(Dataset.name == name))


def get_dataset_by_root(session: Session, root_path: str) -> Optional[Dataset]:
    return session.scalar(select(Dataset).where(Dataset.root_path == root_path))


def list_datasets(session: Session) -> list[Dataset]:
    return list(session.scalars(select(Dataset).order_by(Dataset.id)))


def count_images(session: Session, dataset_id: int) -> int:
    stmt = select(func.count(DatasetImage.id)).where(DatasetImage.dataset_id == dataset_id)
    return int(session.scalar(stmt) or 0)


def list_images(session: Session, dataset_id: int) -> list[DatasetImage]:
    stmt = select(DatasetImage).where(DatasetImage.dataset_id == dataset_id).order_by(DatasetImage.id)
    return list(session.scalars(stmt))


def delete_dataset(session: Session, dataset_id: int) -> None:
    dataset = session.get(Dataset, dataset_id)
    if not dataset:
        raise ValueError(f"Dataset {dataset_id} not found")
    session.delete(dataset)
    session.flush()
