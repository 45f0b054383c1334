"""Ranking-related exceptions."""

from __future__ import annotations

from typing import Hashable, Optional


class InconsistentJudgmentHistory(RuntimeError):
    """Raised when stored comparison judgments cannot belong to any total order.

    This is a data-integrity condition: it is never retried and never resolved
    by picking a side.
    """

    def __init__(
        self,
        message: str,
        *,
        first: Optional[Hashable] = None,
        second: Optional[Hashable] = None,
    ) -> None:
        super().__init__(message)
        self.first = first
        self.second = second
