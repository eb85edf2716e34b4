"""
Parcel Delivery Server — User Route Handlers
==============================================

What:  POST /users — register a user or refresh their last sign-in.
"""

from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends

from parcel_server.database import DocumentStore, get_store
from parcel_server.dependencies import require_writer
from parcel_server.schemas.user import UserUpsert
from parcel_server.services.auth_service import AuthenticatedUser
from parcel_server.services.user_service import user_service

router = APIRouter(prefix="/users", tags=["Users"])


@router.post("", summary="Create a user or refresh last_login")
async def upsert_user(
    payload: UserUpsert,
    _user: Optional[AuthenticatedUser] = Depends(require_writer),
    store: DocumentStore = Depends(get_store),
) -> Dict[str, Any]:
    return await user_service.upsert_user(store, payload)
