"""
Parcel Delivery Server — Tracking Service
===========================================

What:  Append-only delivery history per tracking id.
Who:   Called by the /tracking routes.

Events are only ever inserted. The history for a tracking id is returned
newest first; ties on timestamp fall back to insertion order (ObjectId).
"""

import logging
from typing import Any, Dict, List

from pymongo import DESCENDING

from parcel_server.database import TRACKINGS, DocumentStore
from parcel_server.exceptions import NotFoundError, ValidationError
from parcel_server.models.documents import serialize_document, utcnow
from parcel_server.schemas.tracking import TrackingEventCreate

logger = logging.getLogger(__name__)


class TrackingService:

    async def get_history(self, store: DocumentStore, tracking_id: str) -> List[Dict[str, Any]]:
        """
        Raises:
            NotFoundError: No event has been recorded for tracking_id.
        """
        events = await store.find(
            TRACKINGS,
            {"trackingId": tracking_id},
            sort=[("timestamp", DESCENDING), ("_id", DESCENDING)],
        )
        if not events:
            raise NotFoundError(resource="tracking history", resource_id=tracking_id)
        return [serialize_document(e) for e in events]

    async def add_event(
        self, store: DocumentStore, payload: TrackingEventCreate
    ) -> Dict[str, Any]:
        document = payload.model_dump()
        for field, value in document.items():
            if not value.strip():
                raise ValidationError(f"Missing required field: {field}", field=field)
        document["timestamp"] = utcnow()

        result = await store.insert_one(TRACKINGS, document)
        logger.info(
            "Tracking %s: status=%s (event %s)",
            payload.trackingId,
            payload.status,
            result.inserted_id,
        )
        return {"message": "Tracking update added", "insertedId": str(result.inserted_id)}


tracking_service = TrackingService()
