"""FastAPI application factory for the slice annotation API."""
from __future__ import annotations

import logging
import os

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from logging_config import configure_logging

# Patchable imports for testing
from catalog.service import catalog_service
from labeling.service import labeling_service

configure_logging()
logger = logging.getLogger(__name__)


def _ensure_schema() -> None:
    catalog_service._ensure_initialized()
    labeling_service._ensure_initialized()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title="slicerank API",
        description="Slice classification and pairwise comparison labeling",
        version="0.1.0",
    )

    try:
        _ensure_schema()
    except Exception:
        logger.exception("Database bootstrap failed")
        raise

    origins = os.getenv("CORS_ORIGINS", "http://localhost:5173").split(",")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[origin.strip() for origin in origins if origin.strip()],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    from api.routes import datasets_router, sessions_router, system_router

    app.include_router(system_router)
    app.include_router(datasets_router)
    app.include_router(sessions_router)

    return app


def main():
    """Run the API server."""
    import uvicorn
    app = create_app()
    uvicorn.run(app, host=os.getenv("API_HOST", "127.0.0.1"), port=int(os.getenv("API_PORT", "8000")))


if __name__ == "__main__":
    main()
