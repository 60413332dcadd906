"""
Tenant-aware Stripe router.
Each tenant charges through its own Stripe account; keys come from the
tenant document with environment keys as fallback.
"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Header, Request

from lms.api.dependencies import (
    get_billing_service,
    get_current_tenant,
    get_current_user,
    get_optional_tenant,
)
from lms.models.schemas import (
    CheckoutSessionRequest,
    CheckoutSessionResponse,
    PaymentIntentRequest,
    PaymentIntentResponse,
    Tenant,
    User,
)
from lms.services.billing import BillingService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/stripe", tags=["stripe"])


@router.post(
    "/create-tenant-checkout-session",
    response_model=CheckoutSessionResponse,
    summary="Create Checkout Session",
    responses={
        400: {"description": "Missing fields, or Stripe not configured for this tenant"},
        502: {"description": "Stripe error"},
        503: {"description": "Stripe circuit open"},
    },
)
async def create_checkout_session(
    body: CheckoutSessionRequest,
    tenant: Tenant = Depends(get_current_tenant),
    user: User = Depends(get_current_user),
    billing: BillingService = Depends(get_billing_service),
) -> CheckoutSessionResponse:
    return await billing.create_checkout_session(tenant, user, body)


@router.post(
    "/create-tenant-payment-intent",
    response_model=PaymentIntentResponse,
    summary="Create Payment Intent",
    responses={400: {"description": "Missing amount, or Stripe not configured"}},
)
async def create_payment_intent(
    body: PaymentIntentRequest,
    tenant: Tenant = Depends(get_current_tenant),
    user: User = Depends(get_current_user),
    billing: BillingService = Depends(get_billing_service),
) -> PaymentIntentResponse:
    return await billing.create_payment_intent(tenant, user, body)


@router.get("/tenant-publishable-key", summary="Get Publishable Key")
async def get_publishable_key(
    tenant: Optional[Tenant] = Depends(get_optional_tenant),
    billing: BillingService = Depends(get_billing_service),
) -> dict:
    return {"publishable_key": billing.publishable_key(tenant)}


@router.post(
    "/tenant-webhooks",
    summary="Stripe Webhook",
    responses={400: {"description": "Missing or invalid signature, or webhook not configured"}},
)
async def tenant_webhook(
    request: Request,
    stripe_signature: Optional[str] = Header(default=None, alias="Stripe-Signature"),
    tenant: Optional[Tenant] = Depends(get_optional_tenant),
    billing: BillingService = Depends(get_billing_service),
) -> dict:
    """Verify the signature with the tenant's webhook secret and apply the event."""
    payload = await request.body()
    return await billing.handle_webhook(tenant, payload, stripe_signature)
