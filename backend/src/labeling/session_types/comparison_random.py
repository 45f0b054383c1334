"""Comparison sessions over a fixed, randomly sampled set of pairs."""

from __future__ import annotations

from collections import Counter
from typing import Optional, Sequence

from sqlalchemy.orm import Session

from ranking import FIRST_LABEL, SECOND_LABEL

from .. import repository
from ..config import get_labeling_settings
from ..models import (
    CreateSessionPayload,
    ElementLabel,
    ElementType,
    LabelingSession,
    SessionElement,
    SessionType,
    SliceDTO,
)
from ..results import SessionResults, SliceResult
from ..sampling import make_rng, sample_comparisons
from .base import SessionTypeBase


class ComparisonRandomSession(SessionTypeBase):
    session_type = SessionType.COMPARISON_RANDOM
    element_type = ElementType.COMPARISON
    min_slices = 2

    def session_tags(self) -> list[str]:
        return ["Comparison Session", "Random Sampling"]

    def is_comparison(self) -> bool:
        return True

    def _seed_elements(
        self,
        db: Session,
        session: LabelingSession,
        slices: Sequence[SessionElement],
        payload: CreateSessionPayload,
    ) -> None:
        settings = get_labeling_settings()
        count = payload.comparison_count
        if count is None:
            count = settings.default_comparison_count
        seed = payload.seed if payload.seed is not None else settings.sampling_seed
        pairs = sample_comparisons(len(slices), count, make_rng(seed))
        for index, (first, second) in enumerate(pairs):
            repository.insert_comparison(db, session.id, index, slices[first].id, slices[second].id)

    def add_label(
        self,
        db: Session,
        session: LabelingSession,
        element: SessionElement,
        value: str,
        start_timestamp: int,
        finish_timestamp: Optional[int] = None,
    ) -> ElementLabel:
        self._check_element(session, element)
        return self._record_label(db, element, value, start_timestamp, finish_timestamp)

    def compute_results(self, db: Session, session: LabelingSession) -> SessionResults:
        slices = repository.select_session_slices(db, session.id)
        comparisons = repository.select_session_comparisons(db, session.id)
        labels = repository.select_latest_labels(db, session.id, ElementType.COMPARISON)

        wins: Counter[int] = Counter()
        for comparison in comparisons:
            label = labels.get(comparison.id)
            # Ties and custom options award no win
            if label is None:
                continue
            if label.label_value == FIRST_LABEL:
                wins[comparison.slice_1_id] += 1
            elif label.label_value == SECOND_LABEL:
                wins[comparison.slice_2_id] += 1

        ranked = sorted(slices, key=lambda element: (-wins[element.id], element.element_index))
        return SessionResults(
            labeling_complete=all(comparison.id in labels for comparison in comparisons),
            slice_results=[
                SliceResult(slice=SliceDTO.from_element(element), wins=wins[element.id]) for element in ranked
            ],
        )
