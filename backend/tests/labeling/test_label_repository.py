from __future__ import annotations

import pytest
from sqlalchemy.exc import IntegrityError

from labeling import repository
from labeling.models import ElementType, SessionType, SliceAttributes


@pytest.fixture
def comparisons(scope, dataset, image_ids):
    with scope() as db:
        record = repository.insert_labeling_session(
            db,
            dataset_id=dataset.id,
            session_type=SessionType.COMPARISON_ACTIVE_SORT,
            name="repo",
            prompt="",
            label_options="",
            metadata_json={},
        )
        slices = repository.insert_slices(
            db, record.id, [SliceAttributes(image_id=image_ids[0], slice_dim=2, slice_index=i) for i in range(3)]
        )
        elements = [
            repository.insert_comparison(db, record.id, index, slices[0].id, slices[index + 1].id)
            for index in range(2)
        ]
        elements.append(repository.insert_comparison(db, record.id, 2, slices[1].id, slices[2].id))
        return record.id, [element.id for element in elements]


def test_current_label_is_latest_finish(scope, comparisons):
    _, element_ids = comparisons
    with scope() as db:
        repository.insert_element_label(db, element_ids[0], "First", 10, 50)
        repository.insert_element_label(db, element_ids[0], "Second", 20, 40)
    with scope() as db:
        assert repository.select_current_label(db, element_ids[0]).label_value == "First"
        history = repository.select_element_labels(db, element_ids[0])
        assert [label.finish_timestamp for label in history] == [50, 40]
        assert repository.select_current_label(db, element_ids[1]) is None


def test_latest_labels_per_element(scope, comparisons):
    session_id, element_ids = comparisons
    with scope() as db:
        repository.insert_element_label(db, element_ids[0], "First", 10, 10)
        repository.insert_element_label(db, element_ids[0], "Second", 20, 20)
        repository.insert_element_label(db, element_ids[2], "First", 30, 30)
    with scope() as db:
        latest = repository.select_latest_labels(db, session_id, ElementType.COMPARISON)
        assert {key: label.label_value for key, label in latest.items()} == {
            element_ids[0]: "Second",
            element_ids[2]: "First",
        }
        assert repository.select_latest_labels(db, session_id, ElementType.SLICE) == {}


def test_delete_elements_from_drops_later_elements_and_labels(scope, comparisons):
    session_id, element_ids = comparisons
    with scope() as db:
        for at, element_id in enumerate(element_ids):
            repository.insert_element_label(db, element_id, "First", at, at)
    with scope() as db:
        assert repository.has_labels_after(db, session_id, ElementType.COMPARISON, 0)
        assert repository.delete_elements_from(db, session_id, ElementType.COMPARISON, 0) == 2
    with scope() as db:
        remaining = repository.select_session_comparisons(db, session_id)
        assert [element.element_index for element in remaining] == [0]
        assert not repository.has_labels_after(db, session_id, ElementType.COMPARISON, 0)
        assert repository.select_element_labels(db, element_ids[0])
        assert len(repository.select_session_slices(db, session_id)) == 3


def test_element_index_is_unique_per_type(scope, comparisons):
    session_id, element_ids = comparisons
    with pytest.raises(IntegrityError):
        with scope() as db:
            slices = repository.select_session_slices(db, session_id)
            repository.insert_comparison(db, session_id, 1, slices[0].id, slices[2].id)


def test_delete_session_removes_everything(scope, comparisons):
    session_id, element_ids = comparisons
    with scope() as db:
        repository.insert_element_label(db, element_ids[0], "First", 1, 1)
    with scope() as db:
        repository.delete_labeling_session(db, session_id)
    with scope() as db:
        assert repository.get_labeling_session(db, session_id) is None
        assert repository.select_session_elements(db, session_id, ElementType.SLICE) == []
        assert repository.select_element_labels(db, element_ids[0]) == []
