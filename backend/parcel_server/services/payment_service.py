"""
Parcel Delivery Server — Payment Service
==========================================

What:  Records completed payments and lists a user's payment history.
How:   Composes the DocumentStore (transactions + parcels) and the
       Stripe gateway client.
Who:   Called by POST /create-payment-intent, POST /payments, GET /payments.

Recording flow (POST /payments):
    ┌──────────────┐    ┌────────────────────┐    ┌──────────────────────┐
    │ Parcel must  │───▶│ Insert transaction │───▶│ Parcel payment_status│
    │ exist (404)  │    │ (immutable)        │    │ unpaid → paid        │
    └──────────────┘    └────────────────────┘    └──────────────────────┘

    Both writes run inside DocumentStore.transaction(). With transactions
    enabled (DB_USE_TRANSACTIONS) they commit or abort together; with them
    disabled the writes commit one by one and a failure between them leaves
    a recorded transaction on an unpaid parcel.
"""

import logging
from typing import Any, Dict, List, Optional

from pymongo import DESCENDING

from parcel_server.database import PARCELS, TRANSACTIONS, DocumentStore
from parcel_server.models.documents import PaymentStatus, serialize_document, utcnow
from parcel_server.schemas.payment import PaymentRecord
from parcel_server.services.payment_gateway import StripeGateway, payment_gateway

logger = logging.getLogger(__name__)


class PaymentService:

    def __init__(self, gateway: StripeGateway):
        self.gateway = gateway

    async def create_payment_intent(self, amount: int) -> Dict[str, str]:
        client_secret = await self.gateway.create_payment_intent(amount)
        return {"clientSecret": client_secret}

    async def record_payment(
        self, store: DocumentStore, payment: PaymentRecord
    ) -> Dict[str, Any]:
        """
        Store the transaction and mark its parcel as paid.

        Raises:
            NotFoundError: parcelId is malformed or names no parcel; nothing
                is written in that case.
            DatabaseError: Either write failed.
        """
        # Raises NotFoundError before anything is written
        await store.find_by_id(PARCELS, payment.parcelId)

        now = utcnow()
        transaction = payment.model_dump()
        transaction["createdAt"] = now
        transaction["createdAtString"] = now.isoformat()

        async with store.transaction() as session:
            result = await store.insert_one(TRANSACTIONS, transaction, session=session)
            await store.update_by_id(
                PARCELS,
                payment.parcelId,
                {"payment_status": PaymentStatus.PAID.value},
                session=session,
            )

        logger.info(
            "Recorded payment %s for parcel %s", payment.transactionId, payment.parcelId
        )
        return {
            "success": True,
            "message": "Payment recorded & parcel updated",
            "insertedId": str(result.inserted_id),
        }

    async def list_payments(
        self, store: DocumentStore, email: Optional[str] = None
    ) -> List[Dict[str, Any]]:
        """Transactions for `email` (all when None), newest first."""
        query = {"email": email} if email else {}
        payments = await store.find(
            TRANSACTIONS, query, sort=[("createdAt", DESCENDING), ("_id", DESCENDING)]
        )
        return [serialize_document(p) for p in payments]


payment_service = PaymentService(gateway=payment_gateway)
