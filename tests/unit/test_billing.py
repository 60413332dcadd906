import hashlib
import hmac
import json
import time
from unittest.mock import MagicMock, patch

import pytest
import stripe

from lms.config.settings import Settings
from lms.core.circuit_breaker import CircuitBreaker
from lms.core.exceptions import (
    CircuitBreakerOpenError,
    NotFoundError,
    PaymentConfigurationError,
    PaymentProviderError,
    ValidationError,
)
from lms.models.schemas import (
    CheckoutSessionRequest,
    PaymentIntentRequest,
    SubscriptionAction,
)
from lms.repositories.seed import ACME_TENANT_ID
from lms.services.billing import BillingService
from lms.services.payments import StripeGateway

CHECKOUT = CheckoutSessionRequest(
    price_id="price_acme_premium_monthly",
    mode="subscription",
    success_url="https://acme.example.com/success",
    cancel_url="https://acme.example.com/cancel",
)


@pytest.fixture
def breaker():
    return CircuitBreaker("stripe", failure_threshold=2, ignored_exceptions=(ValidationError,))


@pytest.fixture
def billing(db, mock_gateway, breaker):
    return BillingService(db, mock_gateway, breaker, Settings())


def subscription_event(event_type, status="active", **extra):
    obj = {
        "id": "sub_123",
        "customer": "cus_acme_pro",
        "status": status,
        "current_period_start": 1717200000,
        "current_period_end": 1719792000,
        "cancel_at_period_end": False,
        "metadata": {"product_id": "product-acme-premium"},
    }
    obj.update(extra)
    return {"type": event_type, "data": {"object": obj}}


class TestStripeConfig:
    def test_tenant_keys(self, billing, acme_tenant):
        config = billing.stripe_config(acme_tenant)

        assert config.enabled is True
        assert config.secret_key == "sk_test_acme"
        assert config.publishable_key == "pk_test_acme"
        assert config.is_test_mode is True

    def test_disabled_tenant_has_empty_config(self, billing, riverside_tenant):
        config = billing.stripe_config(riverside_tenant)
        assert config.enabled is False
        assert config.secret_key is None

    def test_environment_fallback_without_tenant(self, db, mock_gateway, breaker):
        settings = Settings(STRIPE_SECRET_KEY="sk_live_env", STRIPE_PUBLISHABLE_KEY="pk_live_env")
        config = BillingService(db, mock_gateway, breaker, settings).stripe_config(None)

        assert config.enabled is True
        assert config.secret_key == "sk_live_env"
        assert config.is_test_mode is False

    def test_tenant_without_own_publishable_key_uses_environment(
        self, db, mock_gateway, breaker, acme_tenant
    ):
        acme_tenant.stripe.publishable_key = None
        settings = Settings(STRIPE_PUBLISHABLE_KEY="pk_env")
        service = BillingService(db, mock_gateway, breaker, settings)

        assert service.publishable_key(acme_tenant) == "pk_env"

    def test_publishable_key_not_configured(self, billing, riverside_tenant):
        with pytest.raises(PaymentConfigurationError):
            billing.publishable_key(riverside_tenant)


class TestCheckout:
    @pytest.mark.asyncio
    async def test_creates_session_with_tenant_metadata(
        self, billing, mock_gateway, acme_tenant, pro_user
    ):
        response = await billing.create_checkout_session(acme_tenant, pro_user, CHECKOUT)

        assert response.session_id == "cs_test_123"
        secret_key, params = mock_gateway.create_checkout_session.await_args.args
        assert secret_key == "sk_test_acme"
        assert params["line_items"] == [{"price": "price_acme_premium_monthly", "quantity": 1}]
        assert params["customer"] == "cus_acme_pro"
        assert params["metadata"] == {
            "tenant_id": ACME_TENANT_ID,
            "product_id": "product-acme-premium",
            "user_id": pro_user.id,
        }

    @pytest.mark.asyncio
    async def test_missing_fields(self, billing, acme_tenant):
        request = CheckoutSessionRequest(price_id="price_acme_premium_monthly")
        with pytest.raises(ValidationError) as exc_info:
            await billing.create_checkout_session(acme_tenant, None, request)
        assert exc_info.value.details == {"fields": ["success_url", "cancel_url"]}

    @pytest.mark.asyncio
    async def test_unconfigured_tenant(self, billing, mock_gateway, riverside_tenant):
        with pytest.raises(PaymentConfigurationError):
            await billing.create_checkout_session(riverside_tenant, None, CHECKOUT)
        mock_gateway.create_checkout_session.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_gateway_outage_opens_circuit(self, billing, mock_gateway, acme_tenant):
        mock_gateway.create_checkout_session.side_effect = PaymentProviderError("create_checkout_session")

        for _ in range(2):
            with pytest.raises(PaymentProviderError):
                await billing.create_checkout_session(acme_tenant, None, CHECKOUT)
        with pytest.raises(CircuitBreakerOpenError):
            await billing.create_checkout_session(acme_tenant, None, CHECKOUT)

    @pytest.mark.asyncio
    async def test_payment_intent(self, billing, mock_gateway, acme_tenant, pro_user):
        response = await billing.create_payment_intent(
            acme_tenant, pro_user, PaymentIntentRequest(amount=2900)
        )

        assert response.id == "pi_test_123"
        _, params = mock_gateway.create_payment_intent.await_args.args
        assert params["amount"] == 2900
        assert params["metadata"]["tenant_id"] == ACME_TENANT_ID

    @pytest.mark.asyncio
    async def test_payment_intent_requires_amount(self, billing, acme_tenant):
        with pytest.raises(ValidationError):
            await billing.create_payment_intent(acme_tenant, None, PaymentIntentRequest())


class TestWebhooks:
    @pytest.mark.asyncio
    async def test_requires_body_and_signature(self, billing, acme_tenant):
        with pytest.raises(ValidationError, match="body"):
            await billing.handle_webhook(acme_tenant, b"", "sig")
        with pytest.raises(ValidationError, match="signature"):
            await billing.handle_webhook(acme_tenant, b"{}", None)

    @pytest.mark.asyncio
    async def test_unconfigured_tenant(self, billing, riverside_tenant):
        with pytest.raises(PaymentConfigurationError):
            await billing.handle_webhook(riverside_tenant, b"{}", "sig")

    @pytest.mark.asyncio
    async def test_bad_signature(self, billing, mock_gateway, acme_tenant):
        mock_gateway.construct_event.side_effect = ValueError("No signatures found")
        with pytest.raises(ValidationError, match="Invalid webhook signature"):
            await billing.handle_webhook(acme_tenant, b"{}", "sig")

    @pytest.mark.asyncio
    async def test_subscription_lifecycle(self, db, billing, mock_gateway, acme_tenant, pro_user):
        mock_gateway.construct_event.return_value = subscription_event("customer.subscription.created")
        result = await billing.handle_webhook(acme_tenant, b"{}", "sig")

        assert result == {"received": True, "type": "customer.subscription.created"}
        mock_gateway.construct_event.assert_called_once_with(b"{}", "sig", "whsec_acme")
        stored = await db.subscriptions.find_one(lambda s: s.stripe_subscription_id == "sub_123")
        # Owner found through the Stripe customer id
        assert stored.user_id == pro_user.id
        assert stored.status == "active"
        assert stored.current_period_end.year == 2024

        mock_gateway.construct_event.return_value = subscription_event(
            "customer.subscription.updated", cancel_at_period_end=True
        )
        await billing.handle_webhook(acme_tenant, b"{}", "sig")
        assert await db.subscriptions.count() == 1
        stored = await db.subscriptions.find_by_id(stored.id)
        assert stored.cancel_at_period_end is True

        mock_gateway.construct_event.return_value = subscription_event("customer.subscription.deleted")
        await billing.handle_webhook(acme_tenant, b"{}", "sig")
        stored = await db.subscriptions.find_by_id(stored.id)
        assert stored.status == "canceled"
        assert stored.canceled_at is not None

    @pytest.mark.asyncio
    async def test_payment_intent_events_record_transactions(self, db, billing, mock_gateway, acme_tenant):
        intent = {
            "id": "pi_1",
            "amount": 2900,
            "currency": "usd",
            "metadata": {"user_id": "user-acme-pro"},
        }
        mock_gateway.construct_event.return_value = {
            "type": "payment_intent.payment_failed", "data": {"object": intent},
        }
        await billing.handle_webhook(acme_tenant, b"{}", "sig")

        mock_gateway.construct_event.return_value = {
            "type": "payment_intent.succeeded", "data": {"object": intent},
        }
        await billing.handle_webhook(acme_tenant, b"{}", "sig")

        transactions = (await db.transactions.find()).docs
        assert len(transactions) == 1
        assert transactions[0].status == "succeeded"
        assert transactions[0].user_id == "user-acme-pro"

    @pytest.mark.asyncio
    async def test_unknown_event_is_acknowledged(self, db, billing, mock_gateway, acme_tenant):
        mock_gateway.construct_event.return_value = {"type": "invoice.paid", "data": {"object": {}}}

        result = await billing.handle_webhook(acme_tenant, b"{}", "sig")

        assert result["received"] is True
        assert await db.transactions.count() == 0

    @pytest.mark.asyncio
    async def test_tenant_taken_from_metadata_without_tenant(self, db, mock_gateway, breaker):
        settings = Settings(STRIPE_SECRET_KEY="sk_test_env", STRIPE_WEBHOOK_SECRET="whsec_env")
        service = BillingService(db, mock_gateway, breaker, settings)
        mock_gateway.construct_event.return_value = subscription_event(
            "customer.subscription.created",
            metadata={"tenant_id": ACME_TENANT_ID, "user_id": "user-acme-pro"},
        )

        await service.handle_webhook(None, b"{}", "sig")

        stored = await db.subscriptions.find_one(lambda s: s.stripe_subscription_id == "sub_123")
        assert stored.tenant_id == ACME_TENANT_ID


class TestSubscriptions:
    @pytest.mark.asyncio
    async def test_products_exclude_inactive(self, billing):
        products = await billing.list_products(ACME_TENANT_ID)
        assert [p.id for p in products] == ["product-acme-premium"]

    @pytest.mark.asyncio
    async def test_manage_subscription(self, db, billing, mock_gateway, acme_tenant, pro_user):
        mock_gateway.construct_event.return_value = subscription_event("customer.subscription.created")
        await billing.handle_webhook(acme_tenant, b"{}", "sig")

        updated = await billing.manage_subscription(
            acme_tenant, pro_user, SubscriptionAction(subscription_id="sub_123", action="cancel")
        )

        assert updated.cancel_at_period_end is True
        mock_gateway.update_subscription.assert_awaited_once_with(
            "sk_test_acme", "sub_123", {"cancel_at_period_end": True}
        )
        billing_view = await billing.user_billing(ACME_TENANT_ID, pro_user)
        assert billing_view.active_subscription.stripe_subscription_id == "sub_123"

    @pytest.mark.asyncio
    async def test_manage_unknown_subscription(self, billing, acme_tenant, pro_user):
        with pytest.raises(NotFoundError):
            await billing.manage_subscription(
                acme_tenant, pro_user, SubscriptionAction(subscription_id="sub_missing")
            )


class TestStripeGateway:
    SECRET = "whsec_test"

    @classmethod
    def signed(cls, payload: bytes, secret: str = SECRET) -> str:
        """Stripe-Signature header for payload, timestamped now."""
        timestamp = int(time.time())
        signature = hmac.new(
            secret.encode(), f"{timestamp}.{payload.decode()}".encode(), hashlib.sha256
        ).hexdigest()
        return f"t={timestamp},v1={signature}"

    def test_construct_event_verifies_and_parses(self):
        gateway = StripeGateway(api_version="2024-06-20")
        payload = json.dumps({
            "id": "evt_1",
            "object": "event",
            "type": "payment_intent.succeeded",
            "data": {
                "object": {
                    "id": "pi_1",
                    "object": "payment_intent",
                    "amount": 2900,
                    "metadata": {"tenant_id": ACME_TENANT_ID},
                }
            },
        }).encode()

        event = gateway.construct_event(payload, self.signed(payload), self.SECRET)

        assert isinstance(event, dict)
        assert event["type"] == "payment_intent.succeeded"
        assert event["data"]["object"]["amount"] == 2900
        assert event["data"]["object"]["metadata"] == {"tenant_id": ACME_TENANT_ID}

    def test_construct_event_bad_signature(self):
        gateway = StripeGateway(api_version="2024-06-20")
        payload = json.dumps({"id": "evt_1", "object": "event", "type": "invoice.paid"}).encode()

        with pytest.raises(ValueError, match="Invalid webhook signature"):
            gateway.construct_event(payload, self.signed(payload, "whsec_other"), self.SECRET)

    def test_construct_event_malformed_body(self):
        gateway = StripeGateway(api_version="2024-06-20")
        payload = b"not json"

        with pytest.raises(ValueError):
            gateway.construct_event(payload, self.signed(payload), self.SECRET)

    @pytest.mark.asyncio
    async def test_checkout_passes_tenant_key(self):
        gateway = StripeGateway(api_version="2024-06-20")
        session = MagicMock(id="cs_1", url="https://checkout.stripe.com/cs_1")

        with patch("lms.services.payments.stripe.checkout.Session.create", return_value=session) as create:
            result = await gateway.create_checkout_session("sk_test_x", {"mode": "payment"})

        assert result == {"id": "cs_1", "url": "https://checkout.stripe.com/cs_1"}
        create.assert_called_once_with(api_key="sk_test_x", stripe_version="2024-06-20", mode="payment")

    @pytest.mark.asyncio
    async def test_card_error_is_validation_error(self):
        gateway = StripeGateway(api_version="2024-06-20")
        error = stripe.CardError("Your card was declined.", "number", "card_declined")

        with patch("lms.services.payments.stripe.PaymentIntent.create", side_effect=error):
            with pytest.raises(ValidationError):
                await gateway.create_payment_intent("sk_test_x", {"amount": 100})

    @pytest.mark.asyncio
    async def test_api_error_is_provider_error(self):
        gateway = StripeGateway(api_version="2024-06-20")

        with patch(
            "lms.services.payments.stripe.PaymentIntent.create",
            side_effect=stripe.APIConnectionError("Network down"),
        ):
            with pytest.raises(PaymentProviderError):
                await gateway.create_payment_intent("sk_test_x", {"amount": 100})
