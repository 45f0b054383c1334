"""Dataset catalog API routes."""
from __future__ import annotations

import logging

from fastapi import APIRouter, HTTPException
from fastapi.responses import JSONResponse, Response

from catalog.errors import DatasetExistsError, DatasetNotFoundError
from catalog.models import CreateDatasetPayload
from catalog.service import catalog_service
from labeling.service import labeling_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/datasets", tags=["datasets"])


@router.get("")
def list_datasets():
    """List all datasets with image and session counts."""
    datasets = catalog_service.list_datasets()
    return JSONResponse([d.model_dump(mode="json") for d in datasets])


@router.post("")
def create_dataset(payload: CreateDatasetPayload):
    """Register a dataset root and its images."""
    try:
        dataset = catalog_service.create_dataset(payload)
    except DatasetExistsError as exc:
        raise HTTPException(status_code=409, detail=str(exc))
    except FileNotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc))
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    return JSONResponse(dataset.model_dump(mode="json"), status_code=201)


@router.get("/{dataset_id}")
def get_dataset(dataset_id: int):
    dataset = catalog_service.get_dataset(dataset_id)
    if not dataset:
        raise HTTPException(status_code=404, detail="Dataset not found")
    return JSONResponse(dataset.model_dump(mode="json"))


@router.get("/{dataset_id}/images")
def list_dataset_images(dataset_id: int):
    try:
        images = catalog_service.list_images(dataset_id)
    except DatasetNotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc))
    return JSONResponse([image.model_dump(mode="json") for image in images])


@router.get("/{dataset_id}/sessions")
def list_dataset_sessions(dataset_id: int):
    if not catalog_service.get_dataset(dataset_id):
        raise HTTPException(status_code=404, detail="Dataset not found")
    sessions = labeling_service.list_sessions(dataset_id)
    return JSONResponse([s.model_dump(mode="json") for s in sessions])


@router.delete("/{dataset_id}", status_code=204)
def delete_dataset(dataset_id: int):
    """Delete a dataset together with its sessions and labels."""
    try:
        catalog_service.delete_dataset(dataset_id)
    except DatasetNotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc))
    return Response(status_code=204)
