# Services package init
"""
Parcel Delivery Server — Services Layer
=========================================

What:  Business logic between routes (HTTP) and the DocumentStore.
How:   Stateless service singletons; the store is passed in on every call
       so handlers get it through dependency injection.

Service Inventory:
    - UserService:      upsert by email
    - ParcelService:    parcel CRUD, server-owned creation_date/payment_status
    - RiderService:     rider applications and status changes
    - PaymentService:   payment intents, payment recording, payment history
    - TrackingService:  append-only tracking events
    - StripeGateway:    Stripe PaymentIntent client
    - TokenVerifier:    identity provider ID token verification
"""
