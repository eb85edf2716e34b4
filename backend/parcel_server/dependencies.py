"""
Parcel Delivery Server — Request Authorization Dependencies
=============================================================

What:  FastAPI dependencies that gate endpoints on a verified bearer token.
How:   Dependencies run in declaration order before the handler, and each
       one can end the request by raising:

           require_reader / require_writer   → 401 / 403
               └── require_matching_email    → 403

       Whether a gate is active is read from settings on every request:
           AUTH_GATE_READS   gates GET /parcels, /parcels/{id}, /payments
           AUTH_GATE_WRITES  gates the mutating endpoints
       An inactive gate yields None and the request continues unauthenticated.
"""

import logging
from typing import Optional

from fastapi import Depends, Query, Request

from parcel_server.config import settings
from parcel_server.exceptions import AuthenticationError, PermissionDeniedError
from parcel_server.services.auth_service import AuthenticatedUser, TokenVerifier, token_verifier

logger = logging.getLogger(__name__)


def get_token_verifier() -> TokenVerifier:
    return token_verifier


def extract_bearer_token(authorization: Optional[str]) -> str:
    """
    Returns the token from an "Authorization: Bearer <token>" header value.

    Raises:
        AuthenticationError: Header missing or not exactly "Bearer <token>".
    """
    if not authorization:
        raise AuthenticationError(message="Unauthorized access")

    scheme, _, token = authorization.partition(" ")
    if scheme != "Bearer" or not token or " " in token.strip():
        raise AuthenticationError(message="Unauthorized access")
    return token.strip()


async def authenticate(request: Request, verifier: TokenVerifier) -> AuthenticatedUser:
    token = extract_bearer_token(request.headers.get("Authorization"))
    user = await verifier.verify(token)
    request.state.user = user
    return user


async def require_reader(
    request: Request,
    verifier: TokenVerifier = Depends(get_token_verifier),
) -> Optional[AuthenticatedUser]:
    """Identity for read endpoints scoped to the caller's own data."""
    if not settings.auth_gate_reads:
        return None
    return await authenticate(request, verifier)


async def require_writer(
    request: Request,
    verifier: TokenVerifier = Depends(get_token_verifier),
) -> Optional[AuthenticatedUser]:
    """Identity for mutating endpoints."""
    if not settings.auth_gate_writes:
        return None
    return await authenticate(request, verifier)


async def require_matching_email(
    email: Optional[str] = Query(
        default=None,
        description="Only return records belonging to this email",
    ),
    user: Optional[AuthenticatedUser] = Depends(require_reader),
) -> Optional[str]:
    """
    Returns the `email` query parameter once it is known to belong to the caller.

    Raises:
        PermissionDeniedError: An email was supplied and differs from the
            verified token's email.
    """
    if user is not None and email and email != user.email:
        logger.warning("Email mismatch: token user %s asked for another account", user.uid)
        raise PermissionDeniedError(message="Forbidden access")
    return email
