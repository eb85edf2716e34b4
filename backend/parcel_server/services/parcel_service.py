"""
Parcel Delivery Server — Parcel Service
=========================================

What:  Create, list, fetch and delete parcel bookings.
Who:   Called by the /parcels routes.

Server-owned fields:
    creation_date   stamped on insert; list order key (newest first)
    payment_status  always "unpaid" on insert; only PaymentService sets "paid"
"""

import logging
from typing import Any, Dict, List, Optional

from pymongo import DESCENDING

from parcel_server.database import PARCELS, DocumentStore
from parcel_server.models.documents import (
    PaymentStatus,
    delete_result,
    insert_result,
    serialize_document,
    utcnow,
)
from parcel_server.schemas.parcel import ParcelCreate

logger = logging.getLogger(__name__)

NEWEST_FIRST = [("creation_date", DESCENDING), ("_id", DESCENDING)]


class ParcelService:
    """
    Stateless parcel operations; the store is passed in on every call.
    """

    async def list_parcels(
        self, store: DocumentStore, email: Optional[str] = None
    ) -> List[Dict[str, Any]]:
        """
        All parcels created by `email`, or every parcel when email is None,
        ordered by creation_date descending.
        """
        query = {"created_by": email} if email else {}
        parcels = await store.find(PARCELS, query, sort=NEWEST_FIRST)
        return [serialize_document(p) for p in parcels]

    async def get_parcel(self, store: DocumentStore, parcel_id: str) -> Dict[str, Any]:
        """Raises NotFoundError for malformed or unknown ids."""
        return serialize_document(await store.find_by_id(PARCELS, parcel_id))

    async def create_parcel(
        self,
        store: DocumentStore,
        payload: ParcelCreate,
        created_by: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        Insert a new parcel.

        Args:
            created_by: Authenticated email; fills created_by when the body
                        does not name a creator.
        """
        document = payload.to_document()
        if created_by and not document.get("created_by"):
            document["created_by"] = created_by
        document["creation_date"] = utcnow()
        document["payment_status"] = PaymentStatus.UNPAID.value

        result = await store.insert_one(PARCELS, document)
        logger.info("Created parcel %s", result.inserted_id)
        return insert_result(result)

    async def delete_parcel(self, store: DocumentStore, parcel_id: str) -> Dict[str, Any]:
        result = await store.delete_by_id(PARCELS, parcel_id)
        logger.info("Deleted parcel %s", parcel_id)
        return delete_result(result)


parcel_service = ParcelService()
