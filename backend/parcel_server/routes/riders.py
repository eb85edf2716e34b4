"""
Parcel Delivery Server — Rider Route Handlers
===============================================

What:  GET /riders?status=, POST /riders, PATCH /riders/status/{id}.
Who:   Called by the "Be a Rider" form and the admin rider review pages.
"""

import logging
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, Query

from parcel_server.database import DocumentStore, get_store
from parcel_server.dependencies import require_writer
from parcel_server.schemas.common import ErrorResponse, InsertResult, UpdateResult
from parcel_server.schemas.rider import RiderCreate, RiderStatusUpdate
from parcel_server.services.auth_service import AuthenticatedUser
from parcel_server.services.rider_service import rider_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/riders", tags=["Riders"])


@router.get("", summary="List riders by status")
async def list_riders(
    status: Optional[str] = Query(
        default=None,
        description="Only riders in this status, e.g. 'pending'; all riders when omitted",
    ),
    store: DocumentStore = Depends(get_store),
) -> List[Dict[str, Any]]:
    return await rider_service.list_riders(store, status=status)


@router.post("", response_model=InsertResult, summary="Submit a rider application")
async def create_rider(
    payload: RiderCreate,
    _user: Optional[AuthenticatedUser] = Depends(require_writer),
    store: DocumentStore = Depends(get_store),
) -> Dict[str, Any]:
    return await rider_service.create_rider(store, payload)


@router.patch(
    "/status/{rider_id}",
    response_model=UpdateResult,
    responses={404: {"description": "Rider not found", "model": ErrorResponse}},
    summary="Change a rider's status",
)
async def update_rider_status(
    rider_id: str,
    payload: RiderStatusUpdate,
    _user: Optional[AuthenticatedUser] = Depends(require_writer),
    store: DocumentStore = Depends(get_store),
) -> Dict[str, Any]:
    return await rider_service.update_status(store, rider_id, payload.status)
