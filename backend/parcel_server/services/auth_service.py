"""
Parcel Delivery Server — Identity Token Verification
======================================================

What:  Verifies bearer ID tokens issued by the external identity provider.
How:   Tokens are RS256 JWTs. The signing key is looked up by the token's
       `kid` in the provider's published JWKS, then signature, expiry,
       audience (project id) and issuer are checked with PyJWT.
Who:   Called by the auth dependencies in parcel_server.dependencies.

Token requirements:
    alg     RS256
    aud     IDENTITY_PROJECT_ID
    iss     IDENTITY_ISSUER (default https://securetoken.google.com/<project_id>)
    exp/iat present and valid
    sub     the provider's user id
    email   required; downstream guards authorize by email
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

import jwt
from jwt import PyJWKClient
from starlette.concurrency import run_in_threadpool

from parcel_server.config import settings
from parcel_server.exceptions import PermissionDeniedError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AuthenticatedUser:
    """Identity decoded from a verified token."""

    uid: str
    email: str
    claims: Dict[str, Any]


class TokenVerifier:
    """
    Verifies ID tokens against one identity provider project.

    The JWKS client caches fetched keys, so the network is hit only when a
    token carries a key id that has not been seen yet.

    Why 403 for every verification failure: a caller that sent a token is
    identified but not trusted; 401 is reserved for a missing credential.
    """

    ALGORITHMS = ["RS256"]

    def __init__(
        self,
        project_id: str,
        issuer: str,
        jwks_url: str,
        jwks_client: Optional[PyJWKClient] = None,
    ):
        self.project_id = project_id
        self.issuer = issuer
        self.jwks_client = jwks_client or PyJWKClient(jwks_url, cache_keys=True)

    async def verify(self, token: str) -> AuthenticatedUser:
        """
        Decode and validate a token.

        Raises:
            PermissionDeniedError: The token is not acceptable for any reason
                (bad signature, expired, wrong audience/issuer, no email,
                signing keys unavailable, or no project configured).
        """
        if not self.project_id:
            logger.error("Token rejected: IDENTITY_PROJECT_ID is not configured")
            raise PermissionDeniedError(message="Forbidden access")

        try:
            # Why threadpool: PyJWKClient fetches the JWKS with blocking urllib on a
            # cache miss, which would stall every in-flight request on the loop
            signing_key = await run_in_threadpool(
                self.jwks_client.get_signing_key_from_jwt, token
            )
            claims = jwt.decode(
                token,
                signing_key.key,
                algorithms=self.ALGORITHMS,
                audience=self.project_id,
                issuer=self.issuer,
                options={"require": ["exp", "iat", "sub"]},
            )
        except jwt.PyJWTError as e:
            logger.warning("Token verification failed: %s", type(e).__name__)
            raise PermissionDeniedError(
                message="Forbidden access",
                context={"reason": type(e).__name__},
            ) from e

        email = claims.get("email")
        if not email:
            raise PermissionDeniedError(
                message="Forbidden access",
                context={"reason": "missing_email_claim"},
            )

        return AuthenticatedUser(uid=claims["sub"], email=email, claims=claims)


# ── Singleton Instance ────────────────────────────────────────────────────
token_verifier = TokenVerifier(
    project_id=settings.identity_project_id,
    issuer=settings.token_issuer,
    jwks_url=settings.identity_jwks_url,
)
