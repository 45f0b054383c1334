"""Database configuration via Pydantic settings."""

from __future__ import annotations

import os
from functools import lru_cache

from pydantic import BaseModel


class DatabaseSettings(BaseModel):
    url: str = "sqlite+pysqlite:///data/db/slicerank.sqlite"
    echo: bool = False
    pool_size: int = 5


@lru_cache
def get_settings() -> DatabaseSettings:
    return DatabaseSettings(
        url=os.getenv("DATABASE_URL", DatabaseSettings().url),
        echo=os.getenv("DATABASE_ECHO", "false").lower() == "true",
        pool_size=int(os.getenv("DATABASE_POOL_SIZE", "5")),
    )
