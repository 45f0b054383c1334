"""Labeling sessions: persistence, session types and the labeling service."""

from .errors import (
    EmptySession,
    InvalidElementReference,
    InvalidJudgment,
    LabelingError,
    SessionNameTakenError,
    SessionNotFoundError,
)
from .models import (
    AddLabelPayload,
    CreateSessionPayload,
    ElementType,
    LabelingSessionDTO,
    SessionType,
    SliceAttributes,
    SliceSampleOptions,
)
from .service import LabelingService, labeling_service

__all__ = [
    "EmptySession",
    "InvalidElementReference",
    "InvalidJudgment",
    "LabelingError",
    "SessionNameTakenError",
    "SessionNotFoundError",
    "AddLabelPayload",
    "CreateSessionPayload",
    "ElementType",
    "LabelingSessionDTO",
    "SessionType",
    "SliceAttributes",
    "SliceSampleOptions",
    "LabelingService",
    "labeling_service",
]
