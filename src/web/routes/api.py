from __future__ import annotations

import logging
from typing import List

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from storage.database import Database, StorageError
from ..api_models import DetectionCreate, DetectionResponse, ErrorResponse

router = APIRouter()

INTERNAL_ERROR = {"error": "Internal server error"}


def _get_db(request: Request) -> Database:
    return request.app.state.db


@router.post(
    "/detections",
    status_code=201,
    response_model=DetectionResponse,
    responses={500: {"model": ErrorResponse}},
)
def save_detection(body: DetectionCreate, request: Request):
    try:
        snapshot = _get_db(request).add_detection(body.objects)
    except StorageError as e:
        logging.error(f"Failed to save detection: {e}")
        return JSONResponse(INTERNAL_ERROR, status_code=500)
    return DetectionResponse.from_snapshot(snapshot)


@router.get(
    "/detections",
    response_model=List[DetectionResponse],
    responses={500: {"model": ErrorResponse}},
)
def get_detections(request: Request):
    """All saved detections, newest first."""
    try:
        snapshots = _get_db(request).list_detections()
    except StorageError as e:
        logging.error(f"Failed to list detections: {e}")
        return JSONResponse(INTERNAL_ERROR, status_code=500)
    return [DetectionResponse.from_snapshot(s) for s in snapshots]
