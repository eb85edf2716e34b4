# Middleware package init
"""
Parcel Delivery Server — Middleware Package
=============================================

What:  Cross-cutting concerns applied to every request.

Middleware Chain (order matters!):
    Request → [Request ID] → [Access Log] → [GZip] → [CORS] → Route Handler

    1. Request ID: correlation ID for every log line and error body
    2. Access Log: method, path, status and duration, tagged with the ID
    3. GZip / CORS: FastAPI's stock middleware

    Authorization is NOT middleware: it is a per-route dependency chain
    (see parcel_server.dependencies) because only some routes are gated.
"""
