"""
Parcel Delivery Server — Rider Request Schemas
================================================
"""

from pydantic import BaseModel, ConfigDict, Field


class RiderCreate(BaseModel):
    """
    Rider application (name, email, region, bike details, ...).

    Every new application starts as "pending"; the status changes only
    through PATCH /riders/status/{id}.
    """
    model_config = ConfigDict(extra="allow")

    def to_document(self) -> dict:
        data = self.model_dump(exclude_none=True)
        data.pop("_id", None)
        data.pop("status", None)
        data.pop("created_at", None)
        return data


class RiderStatusUpdate(BaseModel):
    status: str = Field(min_length=1, description="New rider status, e.g. 'approved'")
