"""
Parcel Delivery Server — User Service
=======================================

What:  Registers users and refreshes their last sign-in time.
Who:   Called by POST /users after every client-side sign-in.
How:   One upsert keyed on email:
           $set          last_login                     (every call)
           $setOnInsert  profile fields + created_at    (first call only)

Why:   The web client can fire two sign-ins for the same account at once.
       A single upsert leaves exactly one user document for the email
       instead of racing two inserts against the unique email index.
"""

import logging
from typing import Any, Dict

from parcel_server.database import USERS, DocumentStore
from parcel_server.models.documents import utcnow
from parcel_server.schemas.user import UserUpsert

logger = logging.getLogger(__name__)

# Never copied from the request body into $setOnInsert
_KEY_FIELDS = ("_id", "email", "last_login", "created_at")


class UserService:

    async def upsert_user(self, store: DocumentStore, payload: UserUpsert) -> Dict[str, Any]:
        """
        Returns:
            {"message", "inserted": False} for an existing user, otherwise
            {"acknowledged", "insertedId"} for the new user document.
        """
        profile = payload.model_dump(exclude_none=True)
        for key in _KEY_FIELDS:
            profile.pop(key, None)
        profile["created_at"] = utcnow()

        result = await store.upsert_one(
            USERS,
            {"email": payload.email},
            {"last_login": payload.last_login or utcnow()},
            on_insert=profile,
        )

        if result.upserted_id is None:
            logger.info("Refreshed last_login for existing user")
            return {"message": "User already exists", "inserted": False}

        logger.info("Created user %s", result.upserted_id)
        return {"acknowledged": result.acknowledged, "insertedId": str(result.upserted_id)}


user_service = UserService()
