"""Labeling configuration via Pydantic settings."""

from __future__ import annotations

import os
from functools import lru_cache
from typing import Optional

from pydantic import BaseModel


class LabelingSettings(BaseModel):
    sampling_seed: Optional[int] = None
    default_comparison_count: int = -1


@lru_cache
def get_labeling_settings() -> LabelingSettings:
    seed = os.getenv("LABELING_SAMPLING_SEED")
    return LabelingSettings(
        sampling_seed=int(seed) if seed not in (None, "") else None,
        default_comparison_count=int(os.getenv("LABELING_DEFAULT_COMPARISON_COUNT", "-1")),
    )
