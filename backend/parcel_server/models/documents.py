"""
Parcel Delivery Server — Document Shapes
==========================================

What:  Status enumerations and helpers that build and render MongoDB documents.
How:   Services build plain dicts with these helpers before inserting them,
       and pass every document read from the store through serialize_document()
       before it reaches a response.
Who:   Used by the services layer.

Stored document fields:
    parcels:       _id, created_by, creation_date, payment_status, <delivery fields>
    users:         _id, email, last_login, created_at, <profile fields>
    riders:        _id, status, created_at, <application fields>
    transactions:  _id, transactionId, amount, email, parcelId, paymentMethod,
                   createdAt, createdAtString
    trackings:     _id, trackingId, status, message, location, updated_by, timestamp

    Timestamps are stored as BSON dates (UTC). Tracking events and transactions
    are append-only: nothing in the service layer updates or deletes them.
"""

import enum
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from bson import ObjectId


class PaymentStatus(str, enum.Enum):
    """Parcel payment state. The only transition is UNPAID → PAID."""

    UNPAID = "unpaid"
    PAID = "paid"


class RiderStatus(str, enum.Enum):
    PENDING = "pending"
    APPROVED = "approved"


def utcnow() -> datetime:
    """Current time as a timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)


def serialize_document(document: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    """
    Converts a stored document into a JSON-ready dict.

    ObjectId values (top level and nested one level in lists/dicts) become
    hex strings. Datetimes are left to FastAPI's encoder, which renders
    them as ISO 8601.
    """
    if document is None:
        return None
    return {key: _serialize_value(value) for key, value in document.items()}


def _serialize_value(value: Any) -> Any:
    if isinstance(value, ObjectId):
        return str(value)
    if isinstance(value, dict):
        return {k: _serialize_value(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_serialize_value(v) for v in value]
    return value


def insert_result(result: Any) -> Dict[str, Any]:
    """Renders an InsertOneResult the way the web client expects it."""
    return {
        "acknowledged": result.acknowledged,
        "insertedId": str(result.inserted_id),
    }


def update_result(result: Any) -> Dict[str, Any]:
    return {
        "acknowledged": result.acknowledged,
        "matchedCount": result.matched_count,
        "modifiedCount": result.modified_count,
    }


def delete_result(result: Any) -> Dict[str, Any]:
    return {
        "acknowledged": result.acknowledged,
        "deletedCount": result.deleted_count,
    }
