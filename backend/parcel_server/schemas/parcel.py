"""
Parcel Delivery Server — Parcel Request Schemas
=================================================

Parcels carry free-form delivery metadata (sender/receiver details, weight,
type, cost, ...). Only the creator email is named here; every other field the
client sends is stored as-is. `payment_status` and `creation_date` are owned
by the server and are ignored if present in the request body.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

SERVER_OWNED_FIELDS = {"_id", "payment_status", "creation_date"}


class ParcelCreate(BaseModel):
    model_config = ConfigDict(extra="allow")

    created_by: Optional[str] = Field(
        default=None,
        description="Email of the user booking the parcel",
    )

    def to_document(self) -> dict:
        """Client fields minus the ones the server assigns itself."""
        data = self.model_dump(exclude_none=True)
        return {k: v for k, v in data.items() if k not in SERVER_OWNED_FIELDS}
