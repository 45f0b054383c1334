"""Result DTOs and ordering helpers shared by the session types."""

from __future__ import annotations

from typing import Optional, Sequence

from pydantic import BaseModel

from .models import SliceDTO


class SliceResult(BaseModel):
    slice: SliceDTO
    latest_label_value: Optional[str] = None
    wins: Optional[int] = None


class SessionResults(BaseModel):
    labeling_complete: bool
    slice_results: list[SliceResult]


def split_label_options(label_options: str) -> list[str]:
    return [option.strip() for option in label_options.split(",") if option.strip()]


def sorted_by_label(results: Sequence[SliceResult], label_options: str) -> list[SliceResult]:
    """Order by position of the label in ``label_options``; unknown and missing labels last."""
    options = split_label_options(label_options)
    positions = {option: position for position, option in enumerate(options)}

    def sort_key(result: SliceResult) -> int:
        if result.latest_label_value is None:
            return len(options) + 1
        return positions.get(result.latest_label_value, len(options))

    return sorted(results, key=sort_key)
