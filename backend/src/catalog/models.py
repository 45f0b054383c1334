"""SQLAlchemy models and DTOs for the dataset catalog."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy import JSON, DateTime, ForeignKey, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from db.models import Base


class Dataset(Base):
    __tablename__ = "datasets"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(200), nullable=False, unique=True)
    root_path: Mapped[str] = mapped_column(Text, nullable=False, unique=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=datetime.utcnow)

    images: Mapped[list[DatasetImage]] = relationship(
        "DatasetImage",
        back_populates="dataset",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="DatasetImage.id",
    )


class DatasetImage(Base):
    __tablename__ = "dataset_images"
    __table_args__ = (UniqueConstraint("dataset_id", "rel_path", name="uq_dataset_images_path"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    dataset_id: Mapped[int] = mapped_column(ForeignKey("datasets.id", ondelete="CASCADE"), nullable=False)
    rel_path: Mapped[str] = mapped_column(Text, nullable=False)
    # Voxel dimensions as reported by whoever decoded the image; None if unknown
    dims: Mapped[Optional[list]] = mapped_column(JSON, nullable=True)

    dataset: Mapped[Dataset] = relationship("Dataset", back_populates="images")


class DatasetDTO(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    root_path: str
    created_at: datetime
    image_count: int = 0
    session_count: int = 0


class DatasetImageDTO(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    dataset_id: int
    rel_path: str
    dims: Optional[list[int]] = None


class ImageEntry(BaseModel):
    rel_path: str
    dims: Optional[list[int]] = Field(default=None, min_length=3, max_length=3)


class CreateDatasetPayload(BaseModel):
    """Payload for registering a dataset.

    When ``images`` is omitted the root path is scanned for image files.
    """

    name: str
    root_path: str
    images: Optional[list[ImageEntry]] = None
