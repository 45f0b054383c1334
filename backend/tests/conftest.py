from __future__ import annotations

import pytest

from catalog.models import CreateDatasetPayload, ImageEntry
from catalog.service import CatalogService
from db.models import Base
from db.session import build_engine, create_session_factory, session_scope
from labeling.service import LabelingService


@pytest.fixture
def engine():
    engine = build_engine("sqlite+pysqlite:///:memory:")
    Base.metadata.create_all(engine)
    try:
        yield engine
    finally:
        engine.dispose()


@pytest.fixture
def SessionLocal(engine):
    return create_session_factory(engine)


@pytest.fixture
def scope(SessionLocal):
    return lambda: session_scope(SessionLocal)


@pytest.fixture
def catalog(scope, engine):
    return CatalogService(scope=scope, bind=engine)


@pytest.fixture
def labeling(scope, engine):
    return LabelingService(scope=scope, bind=engine)


@pytest.fixture
def dataset(catalog):
    payload = CreateDatasetPayload(
        name="brain-mri",
        root_path="/data/brain-mri",
        images=[ImageEntry(rel_path=f"sub-{i:02d}/t1.nii.gz", dims=[64, 64, 40]) for i in range(4)],
    )
    return catalog.create_dataset(payload)


@pytest.fixture
def image_ids(catalog, dataset):
    return [image.id for image in catalog.list_images(dataset.id)]
