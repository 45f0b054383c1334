"""SQLAlchemy engine and session factory."""

from __future__ import annotations

from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from .config import get_settings


settings = get_settings()


def _enable_sqlite_foreign_keys(dbapi_connection, _connection_record) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def build_engine(url: str, *, echo: bool = False, pool_size: int = 5) -> Engine:
    engine_kwargs = {
        "echo": echo,
        "future": True,
    }

    if url.startswith("sqlite"):
        database = make_url(url).database
        if database and database != ":memory:":
            Path(database).parent.mkdir(parents=True, exist_ok=True)
        engine_kwargs["connect_args"] = {"check_same_thread": False, "timeout": 30}
        # An in-memory database lives in one connection; file databases get one per session
        if not database or database == ":memory:":
            engine_kwargs["poolclass"] = StaticPool
    else:
        engine_kwargs["pool_size"] = pool_size

    built = create_engine(url, **engine_kwargs)
    if url.startswith("sqlite"):
        # Element deletion relies on ON DELETE CASCADE for labels
        event.listen(built, "connect", _enable_sqlite_foreign_keys)
    return built


def create_session_factory(bind: Engine) -> sessionmaker:
    return sessionmaker(bind=bind, autoflush=False, autocommit=False, expire_on_commit=False, future=True)


engine = build_engine(settings.url, echo=settings.echo, pool_size=settings.pool_size)
SessionLocal = create_session_factory(engine)


@contextmanager
def session_scope(factory: sessionmaker | None = None) -> Iterator[Session]:
    session = (factory or SessionLocal)()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()
