"""
Parcel Delivery Server — Payment Route Handlers
=================================================

What:  POST /create-payment-intent, POST /payments, GET /payments.
Who:   Called by the checkout page (intent + record) and the payment
       history page (list).

Request Flow:
    1. Checkout asks for a PaymentIntent → {clientSecret}
    2. Browser confirms the card payment with the gateway directly
    3. Browser reports the result to POST /payments
    4. The parcel's payment_status becomes "paid"
"""

import logging
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends

from parcel_server.database import DocumentStore, get_store
from parcel_server.dependencies import require_matching_email, require_writer
from parcel_server.schemas.common import ErrorResponse
from parcel_server.schemas.payment import (
    PaymentIntentRequest,
    PaymentIntentResponse,
    PaymentRecord,
    PaymentRecordResponse,
)
from parcel_server.services.auth_service import AuthenticatedUser
from parcel_server.services.payment_service import payment_service

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Payments"])


@router.post(
    "/create-payment-intent",
    response_model=PaymentIntentResponse,
    responses={500: {"description": "Gateway error (message passed through)", "model": ErrorResponse}},
    summary="Create a card payment intent",
)
async def create_payment_intent(
    payload: PaymentIntentRequest,
    _user: Optional[AuthenticatedUser] = Depends(require_writer),
) -> Dict[str, str]:
    return await payment_service.create_payment_intent(payload.amount)


@router.post(
    "/payments",
    response_model=PaymentRecordResponse,
    responses={404: {"description": "Parcel not found", "model": ErrorResponse}},
    summary="Record a completed payment",
)
async def record_payment(
    payload: PaymentRecord,
    _user: Optional[AuthenticatedUser] = Depends(require_writer),
    store: DocumentStore = Depends(get_store),
) -> Dict[str, Any]:
    return await payment_service.record_payment(store, payload)


@router.get(
    "/payments",
    responses={
        401: {"description": "Missing bearer token", "model": ErrorResponse},
        403: {"description": "Invalid token or email mismatch", "model": ErrorResponse},
    },
    summary="Payment history, newest first",
)
async def list_payments(
    email: Optional[str] = Depends(require_matching_email),
    store: DocumentStore = Depends(get_store),
) -> List[Dict[str, Any]]:
    return await payment_service.list_payments(store, email=email)
