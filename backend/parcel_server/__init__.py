"""
Parcel Delivery Server — Application Package Initializer
==========================================================

Architecture Note:
    The backend follows a layered architecture:

    ┌─────────────────────────────────────┐
    │     Routes + Dependencies (API)     │  ← HTTP concerns, auth gates
    ├─────────────────────────────────────┤
    │         Services (Business Logic)   │  ← Document shaping, gateway calls
    ├─────────────────────────────────────┤
    │       Models & Schemas (Data)       │  ← Document helpers + Pydantic
    ├─────────────────────────────────────┤
    │     Database (DocumentStore)        │  ← Async MongoDB adapter
    └─────────────────────────────────────┘
"""

__version__ = "1.0.0"
