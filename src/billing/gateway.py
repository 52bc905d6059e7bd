import asyncio
from collections.abc import Mapping
from datetime import datetime
from functools import lru_cache
import json
from typing import Any

import stripe

from loggers import get_logger
from src.billing.exceptions import (
    BillingProviderException,
    InvalidWebhookPayloadException,
    WebhookSignatureException,
)
from src.core.utils.datetime_utils import from_unix_timestamp
from src.main.config import config

logger = get_logger(__name__)


def subscription_period_end(subscription: Mapping[str, Any]) -> datetime | None:
    """
    End of the current billing period.

    Newer API versions only report it per subscription item.
    """
    end_date = from_unix_timestamp(subscription.get("current_period_end"))
    if end_date is not None:
        return end_date
    items = (subscription.get("items") or {}).get("data") or []
    if items and isinstance(items[0], Mapping):
        return from_unix_timestamp(items[0].get("current_period_end"))
    return None


def _to_dict(stripe_object: Any) -> dict[str, Any]:
    # StripeObject renders itself as JSON
    return dict(json.loads(str(stripe_object)))


class StripeGateway:
    """
    The slice of the Stripe API the application needs.

    The SDK is synchronous; calls run in a worker thread.
    """

    def __init__(self, api_key: str, webhook_secret: str) -> None:
        self.api_key = api_key
        self.webhook_secret = webhook_secret

    def verify_event(self, payload: bytes, signature: str | None) -> dict[str, Any]:
        """
        Check the `Stripe-Signature` header against the raw body, then parse it.

        Raises:
            WebhookSignatureException: missing or invalid signature
            InvalidWebhookPayloadException: signed body is not a JSON event
        """
        if not signature:
            raise WebhookSignatureException("Missing Stripe signature")
        try:
            stripe.WebhookSignature.verify_header(
                payload.decode("utf-8"),
                signature,
                self.webhook_secret,
                tolerance=stripe.Webhook.DEFAULT_TOLERANCE,
            )
        except (stripe.SignatureVerificationError, UnicodeDecodeError) as e:
            logger.warning("[StripeGateway] Webhook signature rejected: %s", e)
            raise WebhookSignatureException()

        try:
            event = json.loads(payload)
        except ValueError:
            raise InvalidWebhookPayloadException()
        if not isinstance(event, dict) or "type" not in event:
            raise InvalidWebhookPayloadException()
        return event

    async def retrieve_subscription(self, subscription_id: str) -> dict[str, Any]:
        try:
            subscription = await asyncio.to_thread(
                stripe.Subscription.retrieve, subscription_id, api_key=self.api_key
            )
        except stripe.StripeError as e:
            logger.error(
                "[StripeGateway] Could not retrieve subscription %s: %s",
                subscription_id,
                e,
            )
            raise BillingProviderException()
        return _to_dict(subscription)

    async def cancel_subscription(self, subscription_id: str) -> dict[str, Any]:
        try:
            subscription = await asyncio.to_thread(
                stripe.Subscription.cancel, subscription_id, api_key=self.api_key
            )
        except stripe.StripeError as e:
            logger.error(
                "[StripeGateway] Could not cancel subscription %s: %s",
                subscription_id,
                e,
            )
            raise BillingProviderException()
        logger.info("[StripeGateway] Subscription %s canceled.", subscription_id)
        return _to_dict(subscription)


@lru_cache
def get_billing_gateway() -> StripeGateway:
    return StripeGateway(
        api_key=config.stripe.STRIPE_SECRET_KEY,
        webhook_secret=config.stripe.STRIPE_WEBHOOK_SECRET,
    )
