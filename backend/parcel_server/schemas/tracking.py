"""
Parcel Delivery Server — Tracking Event Schemas
=================================================
"""

from pydantic import BaseModel, Field


class TrackingEventCreate(BaseModel):
    """
    One delivery status update. All five fields are required and must be
    non-empty; the server stamps the event with its own timestamp.
    """
    trackingId: str = Field(min_length=1, description="Groups the events of one shipment")
    status: str = Field(min_length=1, description="Delivery status, e.g. 'picked_up'")
    message: str = Field(min_length=1, description="Human-readable update")
    location: str = Field(min_length=1, description="Where the update happened")
    updated_by: str = Field(min_length=1, description="Who recorded the update")


class TrackingEventCreated(BaseModel):
    message: str = Field(default="Tracking update added")
    insertedId: str
