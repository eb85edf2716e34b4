"""
Parcel Delivery Server — Payment Gateway Client (Stripe)
==========================================================

What:  Creates Stripe PaymentIntents and hands back the client secret.
How:   One SDK call per request, run in the threadpool. The card payment
       itself is confirmed by the browser with the client secret; this
       server never sees card data.
Who:   Called by POST /create-payment-intent.

No local state and no retries: a gateway error is surfaced to the caller
with Stripe's own message.
"""

import logging

import stripe
from starlette.concurrency import run_in_threadpool

from parcel_server.config import settings
from parcel_server.exceptions import PaymentGatewayError

logger = logging.getLogger(__name__)


class StripeGateway:
    """Card-only PaymentIntent creation in a fixed currency."""

    PAYMENT_METHOD_TYPES = ["card"]

    def __init__(self, api_key: str, currency: str = "usd"):
        self.api_key = api_key
        self.currency = currency

    async def create_payment_intent(self, amount: int) -> str:
        """
        Create a PaymentIntent for `amount` minor currency units.

        Returns:
            The intent's client_secret.

        Raises:
            PaymentGatewayError: Stripe rejected the request or is unreachable,
                or no secret key is configured.
        """
        if not self.api_key:
            raise PaymentGatewayError(message="Payment gateway is not configured")

        try:
            intent = await run_in_threadpool(
                stripe.PaymentIntent.create,
                api_key=self.api_key,
                amount=amount,
                currency=self.currency,
                payment_method_types=self.PAYMENT_METHOD_TYPES,
            )
        except stripe.StripeError as e:
            message = e.user_message or str(e)
            logger.error(
                "Stripe PaymentIntent creation failed (%s): %s",
                type(e).__name__,
                message,
            )
            raise PaymentGatewayError(
                message=message,
                context={"error_type": type(e).__name__, "code": e.code},
            ) from e

        logger.info("Created payment intent %s for %d %s", intent.id, amount, self.currency)
        return intent.client_secret


# ── Singleton Instance ────────────────────────────────────────────────────
payment_gateway = StripeGateway(
    api_key=settings.stripe_secret_key,
    currency=settings.payment_currency,
)
