"""
Parcel Delivery Server — Authentication & Authorization Tests
===============================================================

What:  TokenVerifier against locally signed RS256 tokens, bearer header
       parsing, and the read/write gates plus the email-match guard on
       real endpoints.

What we test:
    ✅ Valid token → identity with uid and email
    ✅ Expired / wrong audience / wrong issuer / no email / key lookup failure → 403
    ✅ Missing or malformed Authorization header → 401
    ✅ Valid token with someone else's email in the query → 403
    ✅ Gates follow AUTH_GATE_READS / AUTH_GATE_WRITES
"""

import time
from types import SimpleNamespace
from unittest.mock import MagicMock

import jwt
import pytest
from cryptography.hazmat.primitives.asymmetric import rsa

from parcel_server.config import settings
from parcel_server.dependencies import extract_bearer_token
from parcel_server.exceptions import AuthenticationError, PermissionDeniedError
from parcel_server.services.auth_service import TokenVerifier

PROJECT = "test-project"
ISSUER = f"https://securetoken.google.com/{PROJECT}"


@pytest.fixture(scope="module")
def signing_key():
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


@pytest.fixture
def verifier(signing_key):
    jwks_client = MagicMock()
    jwks_client.get_signing_key_from_jwt.return_value = SimpleNamespace(
        key=signing_key.public_key()
    )
    return TokenVerifier(PROJECT, ISSUER, "https://keys.invalid/jwks", jwks_client=jwks_client)


def make_token(signing_key, **overrides):
    now = int(time.time())
    claims = {
        "sub": "uid-123",
        "email": "alice@example.com",
        "aud": PROJECT,
        "iss": ISSUER,
        "iat": now,
        "exp": now + 3600,
    }
    claims.update(overrides)
    claims = {k: v for k, v in claims.items() if v is not None}
    return jwt.encode(claims, signing_key, algorithm="RS256", headers={"kid": "key-1"})


class TestTokenVerifier:

    @pytest.mark.asyncio
    async def test_valid_token(self, verifier, signing_key):
        user = await verifier.verify(make_token(signing_key))
        assert user.uid == "uid-123"
        assert user.email == "alice@example.com"

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "overrides",
        [
            {"exp": int(time.time()) - 10},
            {"aud": "some-other-project"},
            {"iss": "https://accounts.example.com"},
            {"email": None},
        ],
        ids=["expired", "wrong-audience", "wrong-issuer", "no-email"],
    )
    async def test_rejected_tokens(self, verifier, signing_key, overrides):
        with pytest.raises(PermissionDeniedError):
            await verifier.verify(make_token(signing_key, **overrides))

    @pytest.mark.asyncio
    async def test_token_signed_by_other_key(self, verifier):
        other_key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
        with pytest.raises(PermissionDeniedError):
            await verifier.verify(make_token(other_key))

    @pytest.mark.asyncio
    async def test_garbage_token(self, verifier):
        verifier.jwks_client.get_signing_key_from_jwt.side_effect = jwt.DecodeError("bad")
        with pytest.raises(PermissionDeniedError):
            await verifier.verify("not.a.jwt")

    @pytest.mark.asyncio
    async def test_key_lookup_failure(self, verifier, signing_key):
        verifier.jwks_client.get_signing_key_from_jwt.side_effect = jwt.PyJWKClientError(
            "Unable to find a signing key that matches"
        )
        with pytest.raises(PermissionDeniedError):
            await verifier.verify(make_token(signing_key))

    @pytest.mark.asyncio
    async def test_unconfigured_project_rejects_everything(self, signing_key):
        verifier = TokenVerifier("", ISSUER, "https://keys.invalid/jwks", jwks_client=MagicMock())
        with pytest.raises(PermissionDeniedError):
            await verifier.verify(make_token(signing_key))


class TestBearerHeader:

    def test_extracts_token(self):
        assert extract_bearer_token("Bearer abc.def.ghi") == "abc.def.ghi"

    @pytest.mark.parametrize(
        "header", [None, "", "Bearer", "Bearer ", "Token abc", "bearer abc", "Bearer a b"]
    )
    def test_malformed_header(self, header):
        with pytest.raises(AuthenticationError):
            extract_bearer_token(header)


class TestReadGate:

    @pytest.mark.asyncio
    @pytest.mark.parametrize("path", ["/parcels", "/payments", "/parcels/64b7f0c2a1e4d3b2c1a09f87"])
    async def test_missing_header_is_401(self, test_client, path):
        response = await test_client.get(path)
        assert response.status_code == 401
        assert response.json()["error"] == "unauthorized"
        assert response.headers["WWW-Authenticate"] == "Bearer"

    @pytest.mark.asyncio
    async def test_malformed_header_is_401(self, test_client):
        response = await test_client.get("/parcels", headers={"Authorization": "alice-token"})
        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_invalid_token_is_403(self, test_client):
        response = await test_client.get(
            "/parcels", headers={"Authorization": "Bearer forged-token"}
        )
        assert response.status_code == 403
        assert response.json()["error"] == "forbidden"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("path", ["/parcels", "/payments"])
    async def test_email_mismatch_is_403(self, test_client, auth_headers, path):
        response = await test_client.get(
            path, params={"email": "bob@example.com"}, headers=auth_headers
        )
        assert response.status_code == 403

    @pytest.mark.asyncio
    @pytest.mark.parametrize("path", ["/parcels", "/payments"])
    async def test_own_email_is_allowed(self, test_client, auth_headers, path):
        response = await test_client.get(
            path, params={"email": "alice@example.com"}, headers=auth_headers
        )
        assert response.status_code == 200
        assert response.json() == []

    @pytest.mark.asyncio
    async def test_gate_off_allows_anonymous_reads(self, test_client, monkeypatch):
        monkeypatch.setattr(settings, "auth_gate_reads", False)
        response = await test_client.get("/parcels", params={"email": "bob@example.com"})
        assert response.status_code == 200


class TestWriteGate:

    @pytest.mark.asyncio
    async def test_writes_open_by_default(self, test_client):
        response = await test_client.post("/riders", json={"name": "A"})
        assert response.status_code == 200

    @pytest.mark.asyncio
    async def test_gate_on_requires_token(self, test_client, monkeypatch):
        monkeypatch.setattr(settings, "auth_gate_writes", True)

        response = await test_client.post("/parcels", json={"title": "Books"})
        assert response.status_code == 401

        response = await test_client.post(
            "/tracking",
            json={
                "trackingId": "T1",
                "status": "picked_up",
                "message": "Picked up",
                "location": "Dhaka",
                "updated_by": "rider@example.com",
            },
            headers={"Authorization": "Bearer forged-token"},
        )
        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_gate_on_fills_parcel_creator(self, test_client, store, monkeypatch, auth_headers):
        monkeypatch.setattr(settings, "auth_gate_writes", True)

        response = await test_client.post("/parcels", json={"title": "Books"}, headers=auth_headers)
        assert response.status_code == 200

        parcel = await store.find_by_id("parcels", response.json()["insertedId"])
        assert parcel["created_by"] == "alice@example.com"
