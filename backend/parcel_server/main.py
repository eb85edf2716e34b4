"""
Parcel Delivery Server — FastAPI Application Factory
======================================================

What:  Creates and configures the FastAPI application instance.
How:   Factory pattern: create_app() returns a configured FastAPI instance.
Who:   Called by uvicorn to start the server (uvicorn parcel_server.main:app),
       or through the `parcel-server` console script.
When:  Once at server startup; the returned app handles all subsequent requests.

Application Architecture:
    ┌─────────────────────────────────────────────────────────┐
    │                      FastAPI App                        │
    │                                                         │
    │  Middleware Chain:                                      │
    │  ┌──────────┐ ┌──────────┐ ┌──────┐ ┌──────┐            │
    │  │  Req ID  │→│ Logging  │→│ GZip │→│ CORS │            │
    │  └──────────┘ └──────────┘ └──────┘ └──────┘            │
    │                                                         │
    │  Routes:                                                │
    │  / /health /users /parcels /riders /payments /tracking  │
    │  /create-payment-intent                                 │
    │                                                         │
    │  Per-route dependencies:                                │
    │  bearer token → email match → DocumentStore → handler   │
    │                                                         │
    │  Exception Handlers:                                    │
    │  Validation→400 │ Auth→401 │ Forbidden→403 │ 404 │ 500  │
    └─────────────────────────────────────────────────────────┘

Lifecycle:
    Startup:
    1. Initialize logging
    2. Validate external-service settings (logged, not fatal)
    3. Connect to MongoDB, ping, ensure indexes (fatal on failure)
    4. Keep the DocumentStore on app.state for the get_store dependency

    Shutdown:
    1. Close the MongoDB client
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import AsyncGenerator

import uvicorn
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse

from parcel_server import __version__
from parcel_server.config import settings
from parcel_server.database import connect_store
from parcel_server.exceptions import (
    AuthenticationError,
    DatabaseError,
    NotFoundError,
    ParcelServerError,
    PaymentGatewayError,
    PermissionDeniedError,
    ValidationError,
)
from parcel_server.middleware.logging import RequestLoggingMiddleware
from parcel_server.middleware.request_id import RequestIDMiddleware, request_id_var
from parcel_server.routes import health, parcels, payments, riders, tracking, users

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging() -> None:
    """
    Configure logging for the entire application.

    Format: %(asctime)s [%(levelname)s] %(name)s: %(message)s
    Output: stdout (captured by Docker / the process manager)
    """
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )

    # Driver and server internals are noisy at INFO
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("pymongo").setLevel(logging.WARNING)
    logging.getLogger("stripe").setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan (Startup & Shutdown)
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Acquire the database connection for the life of the process.

    Why fatal: every endpoint except GET / reads or writes the database, so a
    failed connection propagates out of startup instead of serving 500s.
    """
    setup_logging()
    logger.info("=" * 60)
    logger.info("Parcel Delivery Server starting up...")

    try:
        settings.validate_required_for_production()
    except ValueError as e:
        logger.error("Configuration error: %s", str(e))

    try:
        store = await connect_store()
    except DatabaseError as e:
        logger.critical(
            "Could not connect to MongoDB: %s | Context: %s", e.message, e.context
        )
        raise

    app.state.store = store
    logger.info("Server ready at http://%s:%d", settings.host, settings.port)
    logger.info("=" * 60)

    yield

    logger.info("Parcel Delivery Server shutting down...")
    await store.close()
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def _error_body(error: str, message: str, details: dict = None) -> dict:
    body = {"error": error, "message": message, "request_id": request_id_var.get("")}
    if details:
        body["details"] = details
    return body


def describe_validation_errors(exc: RequestValidationError) -> tuple:
    """
    Turns FastAPI's error list into one readable message plus per-field details.

    Returns:
        (message, details) where message names the first offending field.
    """
    fields = []
    message = "Request validation failed"
    for i, error in enumerate(exc.errors()):
        loc = [str(part) for part in error.get("loc", ())]
        field = loc[-1] if len(loc) > 1 else (loc[0] if loc else "request")
        fields.append({"field": field, "location": loc[0] if loc else None, "message": error.get("msg")})
        if i == 0:
            if error.get("type") == "missing":
                message = f"Missing required field: {field}"
            else:
                message = f"Invalid value for '{field}': {error.get('msg')}"
    return message, {"fields": fields}


# (exception type, status, error code, log level, client message or None for exc.message)
# Subclasses come before their bases; the first isinstance match wins.
ERROR_RESPONSES = [
    (ValidationError, 400, "validation_error", logging.WARNING, None),
    (AuthenticationError, 401, "unauthorized", logging.INFO, None),
    (PermissionDeniedError, 403, "forbidden", logging.WARNING, None),
    (NotFoundError, 404, "not_found", logging.INFO, None),
    (PaymentGatewayError, 500, "payment_gateway_error", logging.ERROR, None),
    (DatabaseError, 500, "server_error", logging.ERROR,
     "An internal error occurred. Please try again later."),
    (ParcelServerError, 500, "server_error", logging.ERROR, None),
]


def error_response(exc: ParcelServerError) -> JSONResponse:
    """Maps an application exception to its status code and JSON envelope."""
    rid = request_id_var.get("")
    for exc_type, status, code, level, public_message in ERROR_RESPONSES:
        if isinstance(exc, exc_type):
            break
    logger.log(level, "[%s] %s: %s | Context: %s", rid, type(exc).__name__, exc.message, exc.context)

    details = exc.context if isinstance(exc, ValidationError) else None
    headers = {"WWW-Authenticate": "Bearer"} if status == 401 else None
    return JSONResponse(
        status_code=status,
        content=_error_body(code, public_message or exc.message, details),
        headers=headers,
    )


def register_exception_handlers(app: FastAPI) -> None:
    """
    Register global exception handlers for consistent error responses.

    Handler hierarchy:
        ValidationError / RequestValidationError → 400 Bad Request
        AuthenticationError                      → 401 Unauthorized
        PermissionDeniedError                    → 403 Forbidden
        NotFoundError                            → 404 Not Found
        PaymentGatewayError                      → 500 (gateway message)
        DatabaseError                            → 500 (generic message)
        ParcelServerError (base)                 → 500
        Exception (fallback)                     → 500

    Exception handlers NEVER expose stack traces or driver errors in the
    response body. Details are logged server-side.
    """

    @app.exception_handler(ParcelServerError)
    async def handle_app_error(request: Request, exc: ParcelServerError):
        return error_response(exc)

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation_error(request: Request, exc: RequestValidationError):
        """
        Missing or malformed body/query fields.

        Why 400 (not FastAPI's 422): the web client treats every rejected
        input as 400, and the tracking and payment endpoints document 400
        for a missing field.
        """
        message, details = describe_validation_errors(exc)
        logger.warning(
            "[%s] Validation error on %s %s: %s",
            request_id_var.get(""),
            request.method,
            request.url.path,
            message,
        )
        return JSONResponse(
            status_code=400,
            content=_error_body("validation_error", message, details),
        )

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        logger.error("[%s] Unexpected error: %s", request_id_var.get(""), str(exc), exc_info=True)
        return JSONResponse(
            status_code=500,
            content=_error_body(
                "internal_server_error",
                "An unexpected error occurred. Please try again or contact support.",
            ),
        )


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app() -> FastAPI:
    """
    Create and configure the FastAPI application.

    Returns: Fully configured FastAPI instance ready to receive requests.
    """
    app = FastAPI(
        title="Parcel Delivery Server API",
        description=(
            "Parcel booking, rider applications, delivery tracking and card payments "
            "for the parcel delivery web client."
        ),
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    # ── Register Middleware ───────────────────────────────────────────────
    # Middleware executes in REVERSE order of addition:
    # RequestID → Logging → GZip → CORS → route
    # Why credentials only with explicit origins: browsers reject a wildcard
    # Access-Control-Allow-Origin on credentialed requests
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials="*" not in settings.cors_origins_list,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID"],
    )
    app.add_middleware(GZipMiddleware, minimum_size=500)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)

    # ── Register Exception Handlers ───────────────────────────────────────
    register_exception_handlers(app)

    # ── Register Routes ───────────────────────────────────────────────────
    app.include_router(health.router)
    app.include_router(users.router)
    app.include_router(parcels.router)
    app.include_router(riders.router)
    app.include_router(payments.router)
    app.include_router(tracking.router)

    return app


# ── Application Instance ─────────────────────────────────────────────────
app = create_app()


def run() -> None:
    """Console entry point: serve the app on HOST:PORT."""
    uvicorn.run(
        "parcel_server.main:app",
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    run()
