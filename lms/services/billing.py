"""
Billing service - tenant-scoped Stripe configuration, checkout,
payment intents, webhooks and subscription management.
"""
import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, get_args

from lms.config.settings import Settings
from lms.core.circuit_breaker import CircuitBreaker
from lms.core.exceptions import NotFoundError, PaymentConfigurationError, ValidationError
from lms.models.interfaces import PaymentGateway
from lms.models.schemas import (
    CheckoutSessionRequest,
    CheckoutSessionResponse,
    PaymentIntentRequest,
    PaymentIntentResponse,
    Product,
    StripeConfig,
    Subscription,
    SubscriptionAction,
    SubscriptionStatus,
    Tenant,
    Transaction,
    User,
    UserBilling,
    utcnow,
)
from lms.repositories.memory import InMemoryDatabase

logger = logging.getLogger(__name__)

SUBSCRIPTION_STATUSES = set(get_args(SubscriptionStatus))
ACTIVE_STATUSES = ("active", "trialing")


def _from_timestamp(value: Optional[int]) -> Optional[datetime]:
    return datetime.fromtimestamp(value, tz=timezone.utc) if value else None


class BillingService:
    """
    Payment flows for a tenant's own Stripe account.

    All gateway calls go through the circuit breaker, so a Stripe outage
    fails fast with 503 instead of holding requests open.
    """

    def __init__(
        self,
        db: InMemoryDatabase,
        gateway: PaymentGateway,
        circuit_breaker: CircuitBreaker,
        settings: Settings,
    ) -> None:
        self._db = db
        self._gateway = gateway
        self._breaker = circuit_breaker
        self._settings = settings

    # -------------------------------------------------------------------------
    # Configuration
    # -------------------------------------------------------------------------

    def stripe_config(self, tenant: Optional[Tenant]) -> StripeConfig:
        """
        Effective Stripe keys for a tenant.

        - No tenant: environment keys
        - Tenant with Stripe disabled: empty config
        - Tenant with Stripe enabled: tenant keys, environment keys as fallback
        """
        s = self._settings
        if tenant is None:
            return StripeConfig(
                secret_key=s.STRIPE_SECRET_KEY,
                publishable_key=s.STRIPE_PUBLISHABLE_KEY,
                webhook_secret=s.STRIPE_WEBHOOK_SECRET,
                is_test_mode="sk_test" in (s.STRIPE_SECRET_KEY or ""),
                enabled=bool(s.STRIPE_SECRET_KEY),
            )

        stripe_settings = tenant.stripe
        if not stripe_settings.enabled:
            return StripeConfig()

        is_test_mode = stripe_settings.is_test_mode
        if is_test_mode is None:
            is_test_mode = "sk_test" in (stripe_settings.secret_key or "")

        return StripeConfig(
            secret_key=stripe_settings.secret_key or s.STRIPE_SECRET_KEY,
            publishable_key=stripe_settings.publishable_key or s.STRIPE_PUBLISHABLE_KEY,
            webhook_secret=stripe_settings.webhook_secret or s.STRIPE_WEBHOOK_SECRET,
            is_test_mode=is_test_mode,
            enabled=bool(stripe_settings.secret_key),
        )

    def _secret_key(self, tenant: Optional[Tenant]) -> str:
        config = self.stripe_config(tenant)
        if not config.enabled or not config.secret_key:
            raise PaymentConfigurationError()
        return config.secret_key

    def publishable_key(self, tenant: Optional[Tenant]) -> str:
        config = self.stripe_config(tenant)
        if not config.enabled or not config.publishable_key:
            raise PaymentConfigurationError()
        return config.publishable_key

    # -------------------------------------------------------------------------
    # Checkout & payment intents
    # -------------------------------------------------------------------------

    async def create_checkout_session(
        self,
        tenant: Optional[Tenant],
        user: Optional[User],
        request: CheckoutSessionRequest,
    ) -> CheckoutSessionResponse:
        """
        Create a hosted checkout session for one price.

        Raises:
            PaymentConfigurationError: Stripe not configured for the tenant
            ValidationError: price_id, success_url or cancel_url missing
        """
        secret_key = self._secret_key(tenant)

        missing = [
            name for name in ("price_id", "success_url", "cancel_url")
            if not getattr(request, name)
        ]
        if missing:
            raise ValidationError("Missing required fields", details={"fields": missing})

        metadata = dict(request.metadata)
        if tenant is not None:
            metadata.setdefault("tenant_id", tenant.id)
            product = await self._product_for_price(tenant.id, request.price_id)
            if product is not None:
                metadata.setdefault("product_id", product.id)
        if user is not None:
            metadata.setdefault("user_id", user.id)

        params: Dict[str, Any] = {
            "payment_method_types": ["card"],
            "line_items": [{"price": request.price_id, "quantity": 1}],
            "mode": request.mode,
            "success_url": request.success_url,
            "cancel_url": request.cancel_url,
            "metadata": metadata,
        }
        customer = request.customer_id or (user.stripe_customer_id if user else None)
        if customer:
            params["customer"] = customer

        session = await self._breaker.call(
            lambda: self._gateway.create_checkout_session(secret_key, params)
        )
        logger.info(f"Checkout session created: session={session['id']}, price={request.price_id}")
        return CheckoutSessionResponse(session_id=session["id"], url=session.get("url"))

    async def create_payment_intent(
        self,
        tenant: Optional[Tenant],
        user: Optional[User],
        request: PaymentIntentRequest,
    ) -> PaymentIntentResponse:
        secret_key = self._secret_key(tenant)
        if not request.amount:
            raise ValidationError("Missing required fields", details={"fields": ["amount"]})

        metadata = dict(request.metadata)
        if tenant is not None:
            metadata.setdefault("tenant_id", tenant.id)
        if user is not None:
            metadata.setdefault("user_id", user.id)

        params: Dict[str, Any] = {
            "amount": request.amount,
            "currency": request.currency,
            "metadata": metadata,
        }
        customer = request.customer_id or (user.stripe_customer_id if user else None)
        if customer:
            params["customer"] = customer
        if request.payment_method_id:
            params["payment_method"] = request.payment_method_id

        intent = await self._breaker.call(
            lambda: self._gateway.create_payment_intent(secret_key, params)
        )
        logger.info(f"Payment intent created: intent={intent['id']}, amount={request.amount}")
        return PaymentIntentResponse(**intent)

    async def _product_for_price(self, tenant_id: str, price_id: str) -> Optional[Product]:
        return await self._db.products.find_one(
            lambda p: p.tenant_id == tenant_id and p.find_price(price_id) is not None
        )

    # -------------------------------------------------------------------------
    # Webhooks
    # -------------------------------------------------------------------------

    async def handle_webhook(
        self,
        tenant: Optional[Tenant],
        payload: bytes,
        signature: Optional[str],
    ) -> Dict[str, Any]:
        """
        Verify and apply a Stripe webhook event.

        Unknown event types are acknowledged without changes.
        """
        if not payload:
            raise ValidationError("Missing request body")
        if not signature:
            raise ValidationError("Missing Stripe signature")

        config = self.stripe_config(tenant)
        if not (config.enabled and config.secret_key and config.webhook_secret):
            raise PaymentConfigurationError("Stripe webhook is not configured for this tenant")

        try:
            event = self._gateway.construct_event(payload, signature, config.webhook_secret)
        except ValueError as e:
            logger.warning(f"Rejected webhook: {e}")
            raise ValidationError("Invalid webhook signature")

        event_type = event.get("type", "")
        obj = event.get("data", {}).get("object", {})
        tenant_id = tenant.id if tenant is not None else obj.get("metadata", {}).get("tenant_id")
        if not tenant_id:
            raise ValidationError("Webhook event has no tenant")

        if event_type in ("payment_intent.succeeded", "payment_intent.payment_failed"):
            status = "succeeded" if event_type.endswith("succeeded") else "failed"
            await self._record_transaction(tenant_id, obj, status)
        elif event_type in ("customer.subscription.created", "customer.subscription.updated"):
            await self._upsert_subscription(tenant_id, obj)
        elif event_type == "customer.subscription.deleted":
            await self._cancel_subscription_record(tenant_id, obj)
        else:
            logger.debug(f"Ignoring webhook event type: {event_type}")

        logger.info(f"Webhook processed: type={event_type}, tenant={tenant_id}")
        return {"received": True, "type": event_type}

    async def _record_transaction(self, tenant_id: str, intent: Dict[str, Any], status: str) -> Transaction:
        intent_id = intent.get("id")
        existing = await self._db.transactions.find_one(
            lambda t: t.tenant_id == tenant_id and t.stripe_payment_intent_id == intent_id
        )
        if existing is not None:
            return await self._db.transactions.update(existing.id, status=status)

        metadata = intent.get("metadata") or {}
        return await self._db.transactions.create(Transaction(
            tenant_id=tenant_id,
            user_id=metadata.get("user_id"),
            product_id=metadata.get("product_id"),
            stripe_payment_intent_id=intent_id,
            stripe_customer_id=intent.get("customer"),
            amount=intent.get("amount") or 0,
            currency=intent.get("currency") or "usd",
            status=status,
            description=intent.get("description"),
            metadata=metadata,
        ))

    async def _upsert_subscription(self, tenant_id: str, data: Dict[str, Any]) -> Subscription:
        stripe_id = data.get("id")
        status = data.get("status")
        if status not in SUBSCRIPTION_STATUSES:
            logger.warning(f"Unknown subscription status from Stripe: {status}")
            status = "incomplete"

        metadata = data.get("metadata") or {}
        customer = data.get("customer")
        user_id = metadata.get("user_id")
        if user_id is None and customer:
            owner = await self._db.users.find_one(lambda u: u.stripe_customer_id == customer)
            user_id = owner.id if owner else None

        fields = dict(
            status=status,
            stripe_customer_id=customer,
            current_period_start=_from_timestamp(data.get("current_period_start")),
            current_period_end=_from_timestamp(data.get("current_period_end")),
            cancel_at_period_end=bool(data.get("cancel_at_period_end")),
            metadata=metadata,
        )

        existing = await self._db.subscriptions.find_one(
            lambda s: s.tenant_id == tenant_id and s.stripe_subscription_id == stripe_id
        )
        if existing is not None:
            return await self._db.subscriptions.update(existing.id, **fields)

        return await self._db.subscriptions.create(Subscription(
            tenant_id=tenant_id,
            stripe_subscription_id=stripe_id,
            user_id=user_id,
            product_id=metadata.get("product_id"),
            **fields,
        ))

    async def _cancel_subscription_record(self, tenant_id: str, data: Dict[str, Any]) -> None:
        stripe_id = data.get("id")
        existing = await self._db.subscriptions.find_one(
            lambda s: s.tenant_id == tenant_id and s.stripe_subscription_id == stripe_id
        )
        if existing is None:
            logger.warning(f"Deleted subscription not found locally: {stripe_id}")
            return
        await self._db.subscriptions.update(existing.id, status="canceled", canceled_at=utcnow())

    # -------------------------------------------------------------------------
    # Products & subscriptions
    # -------------------------------------------------------------------------

    async def list_products(self, tenant_id: str) -> List[Product]:
        result = await self._db.products.find(
            where=lambda p: p.tenant_id == tenant_id and p.active,
            sort="name",
            limit=0,
        )
        return result.docs

    async def user_subscriptions(self, tenant_id: str, user: User) -> List[Subscription]:
        result = await self._db.subscriptions.find(
            where=lambda s: s.tenant_id == tenant_id and s.user_id == user.id,
            sort="-created_at",
            limit=0,
        )
        return result.docs

    async def user_billing(self, tenant_id: str, user: User) -> UserBilling:
        subscriptions = await self.user_subscriptions(tenant_id, user)
        transactions = await self._db.transactions.find(
            where=lambda t: t.tenant_id == tenant_id and t.user_id == user.id,
            sort="-created_at",
            limit=0,
        )
        active = next((s for s in subscriptions if s.status in ACTIVE_STATUSES), None)
        return UserBilling(
            subscriptions=subscriptions,
            transactions=transactions.docs,
            active_subscription=active,
        )

    async def manage_subscription(
        self,
        tenant: Tenant,
        user: User,
        action: SubscriptionAction,
    ) -> Subscription:
        """Cancel at period end, or undo a pending cancellation."""
        subscription = await self._db.subscriptions.find_one(
            lambda s: (
                s.tenant_id == tenant.id
                and s.user_id == user.id
                and action.subscription_id in (s.id, s.stripe_subscription_id)
            )
        )
        if subscription is None:
            raise NotFoundError("Subscription", action.subscription_id)

        secret_key = self._secret_key(tenant)
        cancel = action.action == "cancel"
        await self._breaker.call(
            lambda: self._gateway.update_subscription(
                secret_key,
                subscription.stripe_subscription_id,
                {"cancel_at_period_end": cancel},
            )
        )
        logger.info(
            f"Subscription {'cancellation scheduled' if cancel else 'resumed'}: "
            f"subscription={subscription.id}, user={user.id}"
        )
        return await self._db.subscriptions.update(subscription.id, cancel_at_period_end=cancel)
