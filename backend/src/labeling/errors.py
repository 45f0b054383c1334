"""Labeling session exceptions."""

from __future__ import annotations

from typing import Optional


class LabelingError(RuntimeError):
    """Base class for errors raised while creating or labeling sessions."""


class SessionNotFoundError(LabelingError, LookupError):
    def __init__(self, session_id: int) -> None:
        super().__init__(f"Labeling session {session_id} not found")
        self.session_id = session_id


class SessionNameTakenError(LabelingError):
    """Raised when a session name is already used within the dataset."""


class EmptySession(LabelingError):
    """Raised when a session would be created without enough slices to label."""

    def __init__(self, required: int, available: int) -> None:
        super().__init__(f"Session needs at least {required} slice(s), got {available}")
        self.required = required
        self.available = available


class InvalidElementReference(LabelingError):
    """Raised when a label targets an element that is not part of the session."""

    def __init__(self, session_id: int, index: Optional[int], message: Optional[str] = None) -> None:
        super().__init__(message or f"Session {session_id} has no element at index {index}")
        self.session_id = session_id
        self.index = index


class InvalidJudgment(LabelingError):
    """Raised when a label's timestamps could never make it the current judgment."""
