"""
Stripe implementation of the PaymentGateway interface.

The stripe SDK is synchronous; calls run in the threadpool so they do not
block the event loop. Every call passes the tenant's own secret key, so
one process can serve many Stripe accounts.
"""
import logging
from typing import Any, Dict

import stripe
from starlette.concurrency import run_in_threadpool

from lms.core.exceptions import PaymentProviderError, ValidationError
from lms.models.interfaces import PaymentGateway

logger = logging.getLogger(__name__)


class StripeGateway(PaymentGateway):
    """Payment gateway backed by the Stripe API."""

    def __init__(self, api_version: str, max_network_retries: int = 2) -> None:
        self._api_version = api_version
        stripe.max_network_retries = max_network_retries

    async def create_checkout_session(
        self, secret_key: str, params: Dict[str, Any]
    ) -> Dict[str, Any]:
        session = await self._call(
            "create_checkout_session",
            stripe.checkout.Session.create,
            api_key=secret_key,
            stripe_version=self._api_version,
            **params,
        )
        return {"id": session.id, "url": session.url}

    async def create_payment_intent(
        self, secret_key: str, params: Dict[str, Any]
    ) -> Dict[str, Any]:
        intent = await self._call(
            "create_payment_intent",
            stripe.PaymentIntent.create,
            api_key=secret_key,
            stripe_version=self._api_version,
            **params,
        )
        return {
            "id": intent.id,
            "client_secret": intent.client_secret,
            "amount": intent.amount,
            "currency": intent.currency,
            "status": intent.status,
        }

    async def update_subscription(
        self, secret_key: str, subscription_id: str, params: Dict[str, Any]
    ) -> Dict[str, Any]:
        subscription = await self._call(
            "update_subscription",
            stripe.Subscription.modify,
            subscription_id,
            api_key=secret_key,
            stripe_version=self._api_version,
            **params,
        )
        return {
            "id": subscription.id,
            "status": subscription.status,
            "cancel_at_period_end": subscription.cancel_at_period_end,
        }

    def construct_event(
        self, payload: bytes, signature: str, webhook_secret: str
    ) -> Dict[str, Any]:
        try:
            event = stripe.Webhook.construct_event(payload, signature, webhook_secret)
        except stripe.SignatureVerificationError as e:
            raise ValueError(f"Invalid webhook signature: {e}") from e
        # A body that is not JSON raises ValueError from the SDK itself
        return event.to_dict()

    @staticmethod
    async def _call(operation: str, func: Any, *args: Any, **kwargs: Any) -> Any:
        try:
            return await run_in_threadpool(func, *args, **kwargs)
        except (stripe.CardError, stripe.InvalidRequestError) as e:
            # Caller's fault (bad price id, declined card), not an outage
            logger.info(f"Stripe rejected {operation}: {e.user_message or e}")
            raise ValidationError(
                e.user_message or str(e),
                details={"operation": operation, "code": e.code},
            ) from e
        except stripe.StripeError as e:
            logger.error(f"Stripe {operation} failed: {e}")
            raise PaymentProviderError(operation, str(e)) from e
