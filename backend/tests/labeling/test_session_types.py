"""Classification and random comparison sessions."""

from __future__ import annotations

import pytest

from labeling import (
    AddLabelPayload,
    CreateSessionPayload,
    InvalidElementReference,
    SessionNameTakenError,
    SessionNotFoundError,
    SessionType,
    SliceAttributes,
    SliceSampleOptions,
)
from ranking import FIRST_LABEL, SECOND_LABEL


def _slices(image_ids, count):
    return [SliceAttributes(image_id=image_ids[0], slice_dim=2, slice_index=i) for i in range(count)]


def _label(labeling, session_id, index, value, at=100):
    return labeling.add_label(session_id, index, AddLabelPayload(value=value, start_timestamp=at, finish_timestamp=at))


class TestClassification:
    def _create(self, labeling, dataset, image_ids, **overrides):
        fields = dict(
            dataset_id=dataset.id,
            session_type=SessionType.CLASSIFICATION,
            name="artefacts",
            label_options="Good, Motion,Noise",
            slices=_slices(image_ids, 4),
        )
        fields.update(overrides)
        return labeling.create_session(CreateSessionPayload(**fields))

    def test_elements_are_the_slices(self, labeling, dataset, image_ids):
        session = self._create(labeling, dataset, image_ids)
        assert not session.is_comparison
        assert session.tags == ["Classification Session"]
        elements = labeling.list_elements(session.id)
        assert [element.element_index for element in elements] == [0, 1, 2, 3]
        assert all(element.slice is not None for element in elements)

    def test_results_follow_label_option_order(self, labeling, dataset, image_ids):
        session = self._create(labeling, dataset, image_ids)
        _label(labeling, session.id, 0, "Noise")
        _label(labeling, session.id, 1, "Good")
        _label(labeling, session.id, 2, "Motion")

        results = labeling.compute_results(session.id)
        assert not results.labeling_complete
        assert [result.latest_label_value for result in results.slice_results] == ["Good", "Motion", "Noise", None]

        _label(labeling, session.id, 3, "Unlisted")
        results = labeling.compute_results(session.id)
        assert results.labeling_complete
        assert results.slice_results[-1].latest_label_value == "Unlisted"

    def test_latest_label_wins(self, labeling, dataset, image_ids):
        session = self._create(labeling, dataset, image_ids)
        _label(labeling, session.id, 0, "Noise", at=100)
        _label(labeling, session.id, 0, "Good", at=200)
        assert labeling.list_elements(session.id)[0].current_label == "Good"
        assert not labeling.should_warn_about_label_overwrite(session.id, 0)

    def test_requires_label_options(self, labeling, dataset, image_ids):
        with pytest.raises(ValueError):
            self._create(labeling, dataset, image_ids, label_options=" , ")

    def test_name_must_be_unique_within_dataset(self, labeling, dataset, image_ids):
        self._create(labeling, dataset, image_ids)
        with pytest.raises(SessionNameTakenError):
            self._create(labeling, dataset, image_ids, name="  artefacts ")

    def test_unknown_image_rejected(self, labeling, dataset, image_ids):
        with pytest.raises(ValueError):
            self._create(labeling, dataset, image_ids, slices=[SliceAttributes(image_id=9999, slice_dim=0, slice_index=0)])

    def test_missing_index(self, labeling, dataset, image_ids):
        session = self._create(labeling, dataset, image_ids)
        with pytest.raises(InvalidElementReference):
            _label(labeling, session.id, 4, "Good")

    def test_sampled_slices_are_reproducible(self, labeling, dataset, image_ids):
        sampling = SliceSampleOptions(image_count=2, slice_count=5, slice_dim=2, slice_min_pct=25, slice_max_pct=75)
        first = self._create(labeling, dataset, image_ids, slices=None, sampling=sampling, seed=7)
        second = self._create(labeling, dataset, image_ids, name="again", slices=None, sampling=sampling, seed=7)

        def described(session_id):
            return [
                (element.slice.image_id, element.slice.slice_index)
                for element in labeling.list_elements(session_id)
            ]

        assert described(first.id) == described(second.id)
        assert len(described(first.id)) == 5
        assert all(10 <= index < 30 for _, index in described(first.id))

    def test_delete_session(self, labeling, dataset, image_ids):
        session = self._create(labeling, dataset, image_ids)
        _label(labeling, session.id, 0, "Good")
        labeling.delete_session(session.id)
        assert labeling.get_session(session.id) is None
        with pytest.raises(SessionNotFoundError):
            labeling.list_elements(session.id)


class TestComparisonRandom:
    def _create(self, labeling, dataset, image_ids, count=None, slices=4):
        payload = CreateSessionPayload(
            dataset_id=dataset.id,
            session_type=SessionType.COMPARISON_RANDOM,
            name="random",
            slices=_slices(image_ids, slices),
            comparison_count=count,
            seed=3,
        )
        return labeling.create_session(payload)

    def test_all_pairs_by_default(self, labeling, dataset, image_ids):
        session = self._create(labeling, dataset, image_ids)
        assert session.is_comparison and not session.is_active
        elements = labeling.list_elements(session.id)
        pairs = {frozenset((element.slice_1.id, element.slice_2.id)) for element in elements}
        assert len(elements) == len(pairs) == 6

    def test_comparison_count(self, labeling, dataset, image_ids):
        session = self._create(labeling, dataset, image_ids, count=2)
        assert len(labeling.list_elements(session.id)) == 2

    def test_too_many_comparisons_rejected(self, labeling, dataset, image_ids):
        with pytest.raises(ValueError):
            self._create(labeling, dataset, image_ids, count=7)

    def test_results_count_wins(self, labeling, dataset, image_ids):
        session = self._create(labeling, dataset, image_ids, slices=3)
        elements = labeling.list_elements(session.id)
        # slice with the lowest index wins every comparison it is in
        for at, element in enumerate(elements):
            if element.slice_1.slice_index < element.slice_2.slice_index:
                value = FIRST_LABEL
            else:
                value = SECOND_LABEL
            _label(labeling, session.id, element.element_index, value, at=100 + at)

        results = labeling.compute_results(session.id)
        assert results.labeling_complete
        assert [result.slice.slice_index for result in results.slice_results] == [0, 1, 2]
        assert [result.wins for result in results.slice_results] == [2, 1, 0]

    def test_ties_award_no_win(self, labeling, dataset, image_ids):
        session = self._create(labeling, dataset, image_ids, slices=2)
        _label(labeling, session.id, 0, "Same")
        results = labeling.compute_results(session.id)
        assert results.labeling_complete
        assert [result.wins for result in results.slice_results] == [0, 0]
        assert not labeling.should_warn_about_label_overwrite(session.id, 0)
