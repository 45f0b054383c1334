"""Labeling session types and their lookup by ``SessionType``."""

from __future__ import annotations

from ..models import SessionType
from .base import SessionTypeBase
from .classification import ClassificationSession
from .comparison_active import ComparisonActiveSortSession
from .comparison_random import ComparisonRandomSession


_SESSION_CLASSES: dict[SessionType, SessionTypeBase] = {
    SessionType.CLASSIFICATION: ClassificationSession(),
    SessionType.COMPARISON_RANDOM: ComparisonRandomSession(),
    SessionType.COMPARISON_ACTIVE_SORT: ComparisonActiveSortSession(),
}


def get_session_class(session_type: SessionType | str) -> SessionTypeBase:
    return _SESSION_CLASSES[SessionType(session_type)]


__all__ = [
    "SessionTypeBase",
    "ClassificationSession",
    "ComparisonActiveSortSession",
    "ComparisonRandomSession",
    "get_session_class",
]
