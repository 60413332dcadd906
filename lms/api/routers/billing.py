"""
Billing router: products, the user's subscriptions and transactions,
and subscription management.
"""
from typing import List

from fastapi import APIRouter, Depends

from lms.api.dependencies import get_billing_service, get_current_tenant, get_current_user
from lms.models.schemas import Product, Subscription, SubscriptionAction, Tenant, User, UserBilling
from lms.services.billing import BillingService

router = APIRouter(prefix="/api/lms", tags=["billing"])


@router.get("/products", response_model=List[Product], summary="List Products")
async def list_products(
    tenant: Tenant = Depends(get_current_tenant),
    billing: BillingService = Depends(get_billing_service),
) -> List[Product]:
    return await billing.list_products(tenant.id)


@router.get("/user-subscriptions", response_model=List[Subscription], summary="User Subscriptions")
async def user_subscriptions(
    tenant: Tenant = Depends(get_current_tenant),
    user: User = Depends(get_current_user),
    billing: BillingService = Depends(get_billing_service),
) -> List[Subscription]:
    return await billing.user_subscriptions(tenant.id, user)


@router.get("/user-billing", response_model=UserBilling, summary="User Billing")
async def user_billing(
    tenant: Tenant = Depends(get_current_tenant),
    user: User = Depends(get_current_user),
    billing: BillingService = Depends(get_billing_service),
) -> UserBilling:
    return await billing.user_billing(tenant.id, user)


@router.post(
    "/subscription-management",
    response_model=Subscription,
    summary="Cancel or Resume Subscription",
    responses={
        400: {"description": "Stripe not configured for this tenant"},
        404: {"description": "Subscription not found"},
        503: {"description": "Payment provider unavailable"},
    },
)
async def manage_subscription(
    body: SubscriptionAction,
    tenant: Tenant = Depends(get_current_tenant),
    user: User = Depends(get_current_user),
    billing: BillingService = Depends(get_billing_service),
) -> Subscription:
    return await billing.manage_subscription(tenant, user, body)
