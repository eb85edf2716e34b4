"""
Parcel Delivery Server — Request ID Middleware
================================================

What:  Assigns a short unique ID to each incoming request and returns it
       in the X-Request-ID response header.
How:   Reuses a client-supplied X-Request-ID when it is 1-64 letters,
       digits or dashes, otherwise generates one;
       stores it in a ContextVar (for loggers and error handlers) and in
       request.state (for route handlers).
When:  First middleware in the chain (runs before all other processing).

Every error body carries the same ID, so a support request that quotes it
can be matched to the server log lines of that one request.
"""

import re
import uuid
from contextvars import ContextVar
from typing import Optional

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

# Coroutine-local: concurrent requests on one event loop each see their own ID
request_id_var: ContextVar[str] = ContextVar("request_id", default="")

# Client IDs end up in log lines and error bodies; anything else is replaced
VALID_REQUEST_ID = re.compile(r"[A-Za-z0-9-]{1,64}")


def resolve_request_id(header_value: Optional[str]) -> str:
    """Returns the client-supplied ID when it is safe to echo, else a new short ID."""
    if header_value and VALID_REQUEST_ID.fullmatch(header_value):
        return header_value
    return str(uuid.uuid4())[:8]


class RequestIDMiddleware(BaseHTTPMiddleware):

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        rid = resolve_request_id(request.headers.get("X-Request-ID"))

        request_id_var.set(rid)
        request.state.request_id = rid

        response = await call_next(request)
        response.headers["X-Request-ID"] = rid

        return response
