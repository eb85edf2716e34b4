"""
Parcel Delivery Server — Rider Service
========================================

What:  Rider applications and their review status.
Who:   Called by the /riders routes.

Lifecycle:
    POST /riders                 → status "pending"
    PATCH /riders/status/{id}    → any non-empty status ("approved", "rejected", ...)
"""

import logging
from typing import Any, Dict, List, Optional

from pymongo import DESCENDING

from parcel_server.database import RIDERS, DocumentStore
from parcel_server.models.documents import (
    RiderStatus,
    insert_result,
    serialize_document,
    update_result,
    utcnow,
)
from parcel_server.schemas.rider import RiderCreate

logger = logging.getLogger(__name__)


class RiderService:

    async def list_riders(
        self, store: DocumentStore, status: Optional[str] = None
    ) -> List[Dict[str, Any]]:
        query = {"status": status} if status else {}
        riders = await store.find(
            RIDERS, query, sort=[("created_at", DESCENDING), ("_id", DESCENDING)]
        )
        return [serialize_document(r) for r in riders]

    async def create_rider(self, store: DocumentStore, payload: RiderCreate) -> Dict[str, Any]:
        document = payload.to_document()
        document["status"] = RiderStatus.PENDING.value
        document["created_at"] = utcnow()

        result = await store.insert_one(RIDERS, document)
        logger.info("Rider application %s submitted", result.inserted_id)
        return insert_result(result)

    async def update_status(
        self, store: DocumentStore, rider_id: str, status: str
    ) -> Dict[str, Any]:
        """Raises NotFoundError for malformed or unknown ids."""
        result = await store.update_by_id(RIDERS, rider_id, {"status": status})
        logger.info("Rider %s status set to %s", rider_id, status)
        return update_result(result)


rider_service = RiderService()
