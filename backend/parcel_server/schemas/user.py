"""
Parcel Delivery Server — User Request Schemas
===============================================
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class UserUpsert(BaseModel):
    """
    Body of POST /users, sent by the web client after every sign-in.

    `email` is the unique key. Extra profile fields (name, photo, role, ...)
    are stored only when the user is first created.
    """
    model_config = ConfigDict(extra="allow")

    email: str = Field(min_length=1, description="Unique user email")
    last_login: Optional[datetime] = Field(
        default=None,
        description="Sign-in time (ISO 8601); defaults to the server clock",
    )


class UserExistsResponse(BaseModel):
    message: str = Field(default="User already exists")
    inserted: bool = Field(default=False)
