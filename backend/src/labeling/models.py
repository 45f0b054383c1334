"""SQLAlchemy models and DTOs for labeling sessions."""

from __future__ import annotations

import enum
import time
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator
from sqlalchemy import (
    JSON,
    BigInteger,
    DateTime,
    Enum,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from catalog.models import DatasetImage
from db.models import Base


def now_ms() -> int:
    """Current wall-clock time in epoch milliseconds, the unit labels are stored in."""
    return int(time.time() * 1000)


class SessionType(str, enum.Enum):
    CLASSIFICATION = "Classification"
    COMPARISON_RANDOM = "ComparisonRandom"
    COMPARISON_ACTIVE_SORT = "ComparisonActiveSort"


class ElementType(str, enum.Enum):
    SLICE = "Slice"
    COMPARISON = "Comparison"


class LabelingSession(Base):
    __tablename__ = "labeling_sessions"
    __table_args__ = (UniqueConstraint("dataset_id", "name", name="uq_labeling_sessions_name"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    dataset_id: Mapped[int] = mapped_column(ForeignKey("datasets.id", ondelete="CASCADE"), nullable=False)
    session_type: Mapped[SessionType] = mapped_column(Enum(SessionType), nullable=False)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    prompt: Mapped[str] = mapped_column(Text, nullable=False, default="")
    label_options: Mapped[str] = mapped_column(Text, nullable=False, default="")
    metadata_json: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=datetime.utcnow)


class SessionElement(Base):
    """A slice or a comparison of two slices, at a dense per-type index."""

    __tablename__ = "session_elements"
    __table_args__ = (
        UniqueConstraint("session_id", "element_type", "element_index", name="uq_session_elements_index"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    session_id: Mapped[int] = mapped_column(
        ForeignKey("labeling_sessions.id", ondelete="CASCADE"), nullable=False, index=True
    )
    element_type: Mapped[ElementType] = mapped_column(Enum(ElementType), nullable=False)
    element_index: Mapped[int] = mapped_column(Integer, nullable=False)

    # Slice columns
    image_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("dataset_images.id", ondelete="CASCADE"), nullable=True
    )
    slice_dim: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    slice_index: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    # Comparison columns
    slice_1_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("session_elements.id", ondelete="CASCADE"), nullable=True
    )
    slice_2_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("session_elements.id", ondelete="CASCADE"), nullable=True
    )

    image: Mapped[Optional[DatasetImage]] = relationship(DatasetImage, lazy="joined")
    slice_1: Mapped[Optional[SessionElement]] = relationship(
        "SessionElement", foreign_keys=[slice_1_id], remote_side=[id], lazy="joined", join_depth=1
    )
    slice_2: Mapped[Optional[SessionElement]] = relationship(
        "SessionElement", foreign_keys=[slice_2_id], remote_side=[id], lazy="joined", join_depth=1
    )


class ElementLabel(Base):
    """One judgment. Never updated; superseded by a later finish timestamp."""

    __tablename__ = "element_labels"
    __table_args__ = (Index("ix_element_labels_element_finish", "element_id", "finish_timestamp"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    element_id: Mapped[int] = mapped_column(
        ForeignKey("session_elements.id", ondelete="CASCADE"), nullable=False
    )
    label_value: Mapped[str] = mapped_column(Text, nullable=False)
    start_timestamp: Mapped[int] = mapped_column(BigInteger, nullable=False)
    finish_timestamp: Mapped[int] = mapped_column(BigInteger, nullable=False)


class SliceAttributes(BaseModel):
    image_id: int
    slice_dim: int = Field(ge=0, le=2)
    slice_index: int = Field(ge=0)


class SliceSampleOptions(BaseModel):
    image_count: int = Field(ge=1)
    slice_count: int = Field(ge=1)
    slice_dim: int = Field(default=2, ge=0, le=2)
    slice_min_pct: float = Field(default=0, ge=0, le=100)
    slice_max_pct: float = Field(default=100, ge=0, le=100)

    @model_validator(mode="after")
    def _check_range(self) -> "SliceSampleOptions":
        if self.slice_min_pct >= self.slice_max_pct:
            raise ValueError("slice_min_pct must be below slice_max_pct")
        return self


class CreateSessionPayload(BaseModel):
    """Payload for creating a labeling session.

    Slices are either listed explicitly or sampled from the dataset's images.
    """

    dataset_id: int
    session_type: SessionType
    name: str
    prompt: str = ""
    label_options: str = ""
    metadata: dict = Field(default_factory=dict)
    slices: Optional[list[SliceAttributes]] = None
    sampling: Optional[SliceSampleOptions] = None
    comparison_count: Optional[int] = Field(default=None, ge=-1)
    seed: Optional[int] = None

    @model_validator(mode="after")
    def _check_slice_source(self) -> "CreateSessionPayload":
        if (self.slices is None) == (self.sampling is None):
            raise ValueError("Provide exactly one of 'slices' or 'sampling'")
        return self


class AddLabelPayload(BaseModel):
    value: str = Field(min_length=1)
    start_timestamp: int
    finish_timestamp: Optional[int] = None


class LabelingSessionDTO(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    dataset_id: int
    session_type: SessionType
    name: str
    prompt: str
    label_options: str
    metadata_json: dict
    created_at: datetime
    is_comparison: bool = False
    is_active: bool = False
    tags: list[str] = []


class SliceDTO(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    element_index: int
    image_id: int
    slice_dim: int
    slice_index: int
    image_rel_path: Optional[str] = None

    @classmethod
    def from_element(cls, element: SessionElement) -> "SliceDTO":
        return cls(
            id=element.id,
            element_index=element.element_index,
            image_id=element.image_id,
            slice_dim=element.slice_dim,
            slice_index=element.slice_index,
            image_rel_path=element.image.rel_path if element.image is not None else None,
        )


class SessionElementDTO(BaseModel):
    id: int
    session_id: int
    element_type: ElementType
    element_index: int
    current_label: Optional[str] = None
    slice: Optional[SliceDTO] = None
    slice_1: Optional[SliceDTO] = None
    slice_2: Optional[SliceDTO] = None

    @classmethod
    def from_element(cls, element: SessionElement, current_label: Optional[str] = None) -> "SessionElementDTO":
        dto = cls(
            id=element.id,
            session_id=element.session_id,
            element_type=element.element_type,
            element_index=element.element_index,
            current_label=current_label,
        )
        if element.element_type is ElementType.SLICE:
            dto.slice = SliceDTO.from_element(element)
        else:
            dto.slice_1 = SliceDTO.from_element(element.slice_1)
            dto.slice_2 = SliceDTO.from_element(element.slice_2)
        return dto


class ElementLabelDTO(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    element_id: int
    label_value: str
    start_timestamp: int
    finish_timestamp: int
