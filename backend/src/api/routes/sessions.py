"""Labeling session API routes."""
from __future__ import annotations

import logging
from contextlib import contextmanager

from fastapi import APIRouter, HTTPException, Query
from fastapi.responses import JSONResponse, Response

from catalog.errors import DatasetNotFoundError
from labeling.errors import (
    EmptySession,
    InvalidElementReference,
    InvalidJudgment,
    SessionNameTakenError,
    SessionNotFoundError,
)
from labeling.models import AddLabelPayload, CreateSessionPayload
from labeling.service import labeling_service
from ranking.errors import InconsistentJudgmentHistory

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/sessions", tags=["sessions"])


@contextmanager
def _http_errors():
    """Translate labeling errors into HTTP responses."""
    try:
        yield
    except (SessionNotFoundError, DatasetNotFoundError, InvalidElementReference) as exc:
        raise HTTPException(status_code=404, detail=str(exc))
    except SessionNameTakenError as exc:
        raise HTTPException(status_code=409, detail=str(exc))
    except (EmptySession, InvalidJudgment, ValueError) as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    except InconsistentJudgmentHistory as exc:
        logger.error("Inconsistent judgment history: %s", exc)
        raise HTTPException(status_code=500, detail=f"Inconsistent judgment history: {exc}")


@router.post("")
def create_session(payload: CreateSessionPayload):
    """Create a labeling session and its initial elements."""
    with _http_errors():
        session = labeling_service.create_session(payload)
    return JSONResponse(session.model_dump(mode="json"), status_code=201)


@router.get("/{session_id}")
def get_session(session_id: int):
    session = labeling_service.get_session(session_id)
    if not session:
        raise HTTPException(status_code=404, detail="Labeling session not found")
    return JSONResponse(session.model_dump(mode="json"))


@router.delete("/{session_id}", status_code=204)
def delete_session(session_id: int):
    with _http_errors():
        labeling_service.delete_session(session_id)
    return Response(status_code=204)


@router.get("/{session_id}/elements")
def list_elements(session_id: int):
    """Elements a rater labels, in index order, with their current label."""
    with _http_errors():
        elements = labeling_service.list_elements(session_id)
    return JSONResponse([element.model_dump(mode="json") for element in elements])


@router.get("/{session_id}/elements/{index}/labels")
def list_element_labels(session_id: int, index: int):
    """Label history of one element, current label first."""
    with _http_errors():
        labels = labeling_service.get_element_labels(session_id, index)
    return JSONResponse([label.model_dump(mode="json") for label in labels])


@router.post("/{session_id}/elements/{index}/labels")
def add_label(session_id: int, index: int, payload: AddLabelPayload):
    """Label an element. For active-sort sessions this re-derives every later comparison."""
    with _http_errors():
        label = labeling_service.add_label(session_id, index, payload)
    if label is None:
        return JSONResponse({"changed": False, "label": None})
    return JSONResponse({"changed": True, "label": label.model_dump(mode="json")}, status_code=201)


@router.get("/{session_id}/overwrite-warning")
def overwrite_warning(session_id: int, index: int = Query(..., ge=0)):
    """Whether labeling ``index`` would discard labels that come after it."""
    with _http_errors():
        warn = labeling_service.should_warn_about_label_overwrite(session_id, index)
    return JSONResponse({"warn": warn})


@router.get("/{session_id}/results")
def get_results(session_id: int):
    with _http_errors():
        results = labeling_service.compute_results(session_id)
    return JSONResponse(results.model_dump(mode="json"))
