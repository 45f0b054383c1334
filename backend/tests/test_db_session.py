from __future__ import annotations

from sqlalchemy import func, select
from sqlalchemy.pool import StaticPool

from catalog.models import CreateDatasetPayload, ImageEntry
from catalog.service import CatalogService
from db.models import Base
from db.session import build_engine, create_session_factory, session_scope
from labeling import AddLabelPayload, CreateSessionPayload, LabelingService, SessionType, SliceAttributes
from labeling import repository
from labeling.models import ElementType, SessionElement


def test_memory_database_shares_one_connection():
    engine = build_engine("sqlite+pysqlite:///:memory:")
    try:
        assert isinstance(engine.pool, StaticPool)
    finally:
        engine.dispose()


def test_file_database_keeps_uncommitted_truncation_private(tmp_path):
    engine = build_engine(f"sqlite+pysqlite:///{tmp_path / 'db' / 'labels.sqlite'}")
    Base.metadata.create_all(engine)
    factory = create_session_factory(engine)
    scope = lambda: session_scope(factory)
    catalog = CatalogService(scope=scope, bind=engine)
    labeling = LabelingService(scope=scope, bind=engine)

    try:
        assert not isinstance(engine.pool, StaticPool)
        dataset = catalog.create_dataset(
            CreateDatasetPayload(
                name="mri",
                root_path=str(tmp_path),
                images=[ImageEntry(rel_path="t1.nii.gz", dims=[8, 8, 8])],
            )
        )
        image_id = catalog.list_images(dataset.id)[0].id
        session = labeling.create_session(
            CreateSessionPayload(
                dataset_id=dataset.id,
                session_type=SessionType.COMPARISON_ACTIVE_SORT,
                name="order",
                slices=[SliceAttributes(image_id=image_id, slice_dim=2, slice_index=i) for i in range(5)],
            )
        )
        for index in range(3):
            labeling.add_label(
                session.id,
                index,
                AddLabelPayload(value="First", start_timestamp=index, finish_timestamp=index),
            )

        def count_comparisons(db):
            return db.scalar(
                select(func.count(SessionElement.id)).where(
                    SessionElement.session_id == session.id,
                    SessionElement.element_type == ElementType.COMPARISON,
                )
            )

        writer = factory()
        reader = factory()
        try:
            repository.delete_elements_from(writer, session.id, ElementType.COMPARISON, 0)
            assert count_comparisons(writer) == 1
            assert count_comparisons(reader) == 4
            writer.rollback()
            assert count_comparisons(reader) == 4
        finally:
            reader.close()
            writer.close()
    finally:
        engine.dispose()
