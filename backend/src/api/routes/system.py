"""System routes for health and readiness checks."""

from __future__ import annotations

from fastapi import APIRouter
from pydantic import BaseModel
from sqlalchemy import text

from db import session as db_session


router = APIRouter(prefix="/api", tags=["system"])


class HealthResponse(BaseModel):
    status: str


class ReadinessResponse(BaseModel):
    status: str
    database: str


@router.get("/health", response_model=HealthResponse)
async def health_check():
    """Basic health check endpoint."""
    return {"status": "healthy"}


@router.get("/ready", response_model=ReadinessResponse)
def readiness_check():
    """Readiness check that verifies database connectivity."""
    try:
        with db_session.SessionLocal() as session:
            session.execute(text("SELECT 1"))
        return {"status": "ready", "database": "connected"}
    except Exception:
        return {"status": "not_ready", "database": "disconnected"}
