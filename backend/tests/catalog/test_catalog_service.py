from __future__ import annotations

import pytest

from catalog.errors import DatasetExistsError, DatasetNotFoundError
from catalog.models import CreateDatasetPayload, ImageEntry
from labeling import CreateSessionPayload, SessionType, SliceAttributes


def test_create_dataset_with_manifest(catalog, dataset):
    assert dataset.name == "brain-mri"
    assert dataset.image_count == 4
    assert dataset.session_count == 0
    images = catalog.list_images(dataset.id)
    assert [image.rel_path for image in images] == [f"sub-{i:02d}/t1.nii.gz" for i in range(4)]
    assert images[0].dims == [64, 64, 40]


def test_create_dataset_scans_root(catalog, tmp_path):
    (tmp_path / "a.nii").write_bytes(b"")
    (tmp_path / "b.nii.gz").write_bytes(b"")
    created = catalog.create_dataset(CreateDatasetPayload(name="scanned", root_path=str(tmp_path)))
    assert created.image_count == 2
    assert [image.dims for image in catalog.list_images(created.id)] == [None, None]


def test_duplicate_name_or_root_rejected(catalog, dataset):
    with pytest.raises(DatasetExistsError):
        catalog.create_dataset(CreateDatasetPayload(name=" brain-mri ", root_path="/elsewhere", images=[]))
    with pytest.raises(DatasetExistsError):
        catalog.create_dataset(CreateDatasetPayload(name="other", root_path=dataset.root_path, images=[]))
    assert len(catalog.list_datasets()) == 1


def test_blank_name_rejected(catalog):
    with pytest.raises(ValueError):
        catalog.create_dataset(CreateDatasetPayload(name="  ", root_path="/x", images=[]))


def test_manifest_dims_must_be_three_dimensional():
    with pytest.raises(ValueError):
        ImageEntry(rel_path="a.nii", dims=[64, 64])


def test_session_count_and_cascade_delete(catalog, labeling, dataset, image_ids):
    labeling.create_session(
        CreateSessionPayload(
            dataset_id=dataset.id,
            session_type=SessionType.COMPARISON_ACTIVE_SORT,
            name="ranked",
            slices=[SliceAttributes(image_id=image_ids[0], slice_dim=2, slice_index=i) for i in range(3)],
        )
    )
    assert catalog.get_dataset(dataset.id).session_count == 1

    catalog.delete_dataset(dataset.id)
    assert catalog.get_dataset(dataset.id) is None
    assert labeling.list_sessions(dataset.id) == []
    with pytest.raises(DatasetNotFoundError):
        catalog.list_images(dataset.id)
    with pytest.raises(DatasetNotFoundError):
        catalog.delete_dataset(dataset.id)
