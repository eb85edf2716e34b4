"""
Parcel Delivery Server — Payment Schemas
==========================================

Two flows:
    1. POST /create-payment-intent {amount}  → {clientSecret}
       The browser confirms the card payment directly with the gateway.
    2. POST /payments {transactionId, ...}   → {success, message, insertedId}
       The browser reports the confirmed payment; the parcel becomes "paid".
"""

from typing import List, Union

from pydantic import BaseModel, Field


class PaymentIntentRequest(BaseModel):
    amount: int = Field(gt=0, description="Amount in the smallest currency unit (cents)")


class PaymentIntentResponse(BaseModel):
    clientSecret: str = Field(description="Secret the client uses to confirm the payment")


class PaymentRecord(BaseModel):
    transactionId: str = Field(min_length=1, description="Gateway payment reference")
    amount: float = Field(ge=0, description="Amount paid")
    email: str = Field(min_length=1, description="Email of the paying user")
    parcelId: str = Field(min_length=1, description="Id of the parcel being paid for")
    paymentMethod: Union[str, List[str]] = Field(
        description="Payment method, or the list of method types reported by the gateway",
    )


class PaymentRecordResponse(BaseModel):
    success: bool
    message: str
    insertedId: str
