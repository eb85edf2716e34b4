# Routes package init
"""
Parcel Delivery Server — API Routes Package
=============================================

What:  HTTP route handlers that accept requests and return responses.
How:   Each route module handles one resource.

Route Inventory:
    - health.py:    GET    /                         (liveness string)
                    GET    /health                   (database check)
    - users.py:     POST   /users
    - parcels.py:   GET    /parcels?email=
                    GET    /parcels/{id}
                    POST   /parcels
                    DELETE /parcels/{id}
    - riders.py:    GET    /riders?status=
                    POST   /riders
                    PATCH  /riders/status/{id}
    - payments.py:  POST   /create-payment-intent
                    POST   /payments
                    GET    /payments?email=
    - tracking.py:  GET    /tracking?trackingId=
                    POST   /tracking

Design Principle:
    Routes stay THIN: extract request data, run auth dependencies, call a
    service, return its result. Business rules live in services.
"""
