"""
Parcel Delivery Server — Custom Exception Hierarchy
=====================================================

What:  Application-specific exceptions for each error scenario.
How:   Each exception class carries a message and optional context dict.
       Global exception handlers (registered in main.py) catch these and
       return structured JSON error responses with the matching status code.
Who:   Raised by the data store adapter, services and auth dependencies.

Exception Hierarchy:
    ParcelServerError (base)
    ├── ValidationError          → 400 Bad Request
    ├── AuthenticationError      → 401 Unauthorized
    ├── PermissionDeniedError    → 403 Forbidden
    ├── NotFoundError            → 404 Not Found
    └── UpstreamError            → 500 Internal Server Error
        ├── DatabaseError        → 500 (generic message to the client)
        └── PaymentGatewayError  → 500 (gateway message passed through)
"""

from typing import Any, Dict, Optional


class ParcelServerError(Exception):
    """
    Base exception for all application errors.

    Attributes:
        message:  User-facing error description (safe to return in API response)
        context:  Additional debug info (logged but NOT returned to client)

    Subclasses only override `default_message` unless they build their
    message from extra arguments.
    """

    default_message = "An unexpected error occurred"

    def __init__(self, message: Optional[str] = None, context: Optional[Dict[str, Any]] = None):
        self.message = message or self.default_message
        self.context = context or {}
        super().__init__(self.message)


class ValidationError(ParcelServerError):
    """
    Client input failed a check the request schemas cannot express.

    Example response:
        {
            "error": "validation_error",
            "message": "Missing required field: trackingId",
            "details": {"field": "trackingId"}
        }
    """

    default_message = "Validation failed"

    def __init__(self, message: Optional[str] = None, field: Optional[str] = None,
                 context: Optional[Dict[str, Any]] = None):
        super().__init__(message, dict(context or {}, **({"field": field} if field else {})))
        self.field = field


class AuthenticationError(ParcelServerError):
    """Authorization header absent, or not of the form "Bearer <token>"."""

    default_message = "Unauthorized access"


class PermissionDeniedError(ParcelServerError):
    """
    A credential is present but not acceptable: the token failed
    verification, or its email differs from the email being asked about.
    """

    default_message = "Forbidden access"


class NotFoundError(ParcelServerError):
    """
    No document matches. Malformed ObjectIds land here too, as does a
    tracking id with no events.
    """

    def __init__(self, resource: str = "resource", resource_id: Optional[str] = None,
                 context: Optional[Dict[str, Any]] = None):
        if resource_id:
            message = f"{resource} with ID '{resource_id}' was not found"
        else:
            message = f"The requested {resource} was not found"
        details = {"resource": resource}
        if resource_id:
            details["resource_id"] = resource_id
        super().__init__(message, dict(context or {}, **details))


class UpstreamError(ParcelServerError):
    """Base for failures of a dependency outside this process."""


class DatabaseError(UpstreamError):
    """
    A document store operation failed (connection lost, server selection
    timeout, write error). Clients always get the generic message; driver
    details go to the server log only.
    """

    default_message = "A database error occurred. Please try again later."


class PaymentGatewayError(UpstreamError):
    """Stripe rejected or failed a request; its message reaches the client verbatim."""

    default_message = "Payment gateway request failed"
