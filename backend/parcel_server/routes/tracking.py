"""
Parcel Delivery Server — Tracking Route Handlers
==================================================

What:  GET /tracking?trackingId=, POST /tracking.
Who:   Called by the public "Track Parcel" page and by riders/admins
       posting delivery updates.
"""

from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, Query

from parcel_server.database import DocumentStore, get_store
from parcel_server.dependencies import require_writer
from parcel_server.schemas.common import ErrorResponse
from parcel_server.schemas.tracking import TrackingEventCreate, TrackingEventCreated
from parcel_server.services.auth_service import AuthenticatedUser
from parcel_server.services.tracking_service import tracking_service

router = APIRouter(prefix="/tracking", tags=["Tracking"])


@router.get(
    "",
    responses={404: {"description": "No events for this tracking id", "model": ErrorResponse}},
    summary="Delivery history, newest first",
)
async def get_tracking_history(
    trackingId: str = Query(min_length=1, description="Tracking id of the shipment"),
    store: DocumentStore = Depends(get_store),
) -> List[Dict[str, Any]]:
    return await tracking_service.get_history(store, trackingId)


@router.post(
    "",
    response_model=TrackingEventCreated,
    responses={400: {"description": "A required field is missing", "model": ErrorResponse}},
    summary="Append a tracking event",
)
async def add_tracking_event(
    payload: TrackingEventCreate,
    _user: Optional[AuthenticatedUser] = Depends(require_writer),
    store: DocumentStore = Depends(get_store),
) -> Dict[str, Any]:
    return await tracking_service.add_event(store, payload)
