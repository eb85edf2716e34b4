"""
Parcel Delivery Server — Parcel Route Handlers
================================================

What:  GET /parcels, GET /parcels/{id}, POST /parcels, DELETE /parcels/{id}.
How:   Extracts path/query/body, runs the auth dependencies, delegates to
       ParcelService and returns JSON.
Who:   Called by the booking form and the "My Parcels" page of the web client.
"""

import logging
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends

from parcel_server.database import DocumentStore, get_store
from parcel_server.dependencies import require_matching_email, require_reader, require_writer
from parcel_server.schemas.common import DeleteResult, ErrorResponse, InsertResult
from parcel_server.schemas.parcel import ParcelCreate
from parcel_server.services.auth_service import AuthenticatedUser
from parcel_server.services.parcel_service import parcel_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/parcels", tags=["Parcels"])


@router.get(
    "",
    responses={
        401: {"description": "Missing bearer token", "model": ErrorResponse},
        403: {"description": "Invalid token or email mismatch", "model": ErrorResponse},
    },
    summary="List parcels, newest first",
)
async def list_parcels(
    email: Optional[str] = Depends(require_matching_email),
    store: DocumentStore = Depends(get_store),
) -> List[Dict[str, Any]]:
    """Parcels created by `email`, or all parcels when no email is given."""
    return await parcel_service.list_parcels(store, email=email)


@router.get(
    "/{parcel_id}",
    responses={404: {"description": "Parcel not found", "model": ErrorResponse}},
    summary="Get a single parcel",
)
async def get_parcel(
    parcel_id: str,
    _user: Optional[AuthenticatedUser] = Depends(require_reader),
    store: DocumentStore = Depends(get_store),
) -> Dict[str, Any]:
    return await parcel_service.get_parcel(store, parcel_id)


@router.post("", response_model=InsertResult, summary="Book a parcel")
async def create_parcel(
    payload: ParcelCreate,
    user: Optional[AuthenticatedUser] = Depends(require_writer),
    store: DocumentStore = Depends(get_store),
) -> Dict[str, Any]:
    return await parcel_service.create_parcel(
        store, payload, created_by=user.email if user else None
    )


@router.delete(
    "/{parcel_id}",
    response_model=DeleteResult,
    responses={404: {"description": "Parcel not found", "model": ErrorResponse}},
    summary="Delete a parcel",
)
async def delete_parcel(
    parcel_id: str,
    _user: Optional[AuthenticatedUser] = Depends(require_writer),
    store: DocumentStore = Depends(get_store),
) -> Dict[str, Any]:
    return await parcel_service.delete_parcel(store, parcel_id)
