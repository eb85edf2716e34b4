"""
Parcel Delivery Server — Liveness & Health Routes
===================================================

What:  GET / (plain-text liveness string) and GET /health (dependency check).
Who:   GET / is what the web client and uptime monitors hit; GET /health is
       for Docker health checks and load balancers.

Status levels:
    - healthy:   database reachable (HTTP 200)
    - unhealthy: database ping failed (HTTP 503)
"""

import logging
import time

from fastapi import APIRouter, Depends, Response
from fastapi.responses import PlainTextResponse

from parcel_server import __version__
from parcel_server.database import DocumentStore, get_store
from parcel_server.exceptions import DatabaseError
from parcel_server.schemas.common import HealthResponse

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])

_start_time = time.time()

LIVENESS_MESSAGE = "Parcel Delivery Server is Running!"


@router.get("/", response_class=PlainTextResponse, summary="Liveness check")
async def root() -> str:
    return LIVENESS_MESSAGE


@router.get("/health", response_model=HealthResponse, summary="Service health check")
async def health_check(
    response: Response,
    store: DocumentStore = Depends(get_store),
) -> HealthResponse:
    """
    Pings the database and reports aggregate status with uptime.

    The ping is a single lightweight round-trip, so the endpoint is cheap
    enough to poll every few seconds.
    """
    db_status = "connected"
    overall = "healthy"

    try:
        await store.ping()
    except DatabaseError as e:
        db_status = "disconnected"
        overall = "unhealthy"
        response.status_code = 503
        logger.warning("Health check: database unreachable: %s", e.context.get("detail", e.message))

    return HealthResponse(
        status=overall,
        version=__version__,
        database=db_status,
        uptime_seconds=round(time.time() - _start_time, 2),
    )
