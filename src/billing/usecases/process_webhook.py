from typing import Any
from uuid import UUID

from fastapi import Depends
from redis.asyncio import Redis

from loggers import get_logger
from src.billing.gateway import (
    StripeGateway,
    get_billing_gateway,
    subscription_period_end,
)
from src.billing.schemas import WebhookAckResponse
from src.core.database.session import get_unit_of_work
from src.core.database.uow import ApplicationUnitOfWork
from src.core.redis.dependencies import get_redis_client
from src.main.config import config
from src.user.enums import SubscriptionStatus
from src.user.models import User

logger = get_logger(__name__)

PER_SCRIPT_PURCHASE_CREDITS = 1
EVENT_KEY_PREFIX = "webhook:event"


class ProcessWebhookUseCase:
    """
    Applies billing provider events to the usage ledger.

    Events are claimed in Redis by id before processing, so provider retries
    of an already handled event are acknowledged without side effects. A
    failed event releases its claim and the error propagates, letting the
    provider deliver it again.
    """

    def __init__(
        self,
        uow: ApplicationUnitOfWork,
        gateway: StripeGateway,
        redis_client: Redis,
        event_ttl_seconds: int,
    ) -> None:
        self.uow = uow
        self.gateway = gateway
        self.redis_client = redis_client
        self.event_ttl_seconds = event_ttl_seconds

    async def execute(
        self, payload: bytes, signature: str | None
    ) -> WebhookAckResponse:
        event = self.gateway.verify_event(payload, signature)
        event_id = event.get("id")
        event_type = event["type"]
        data_object = (event.get("data") or {}).get("object") or {}

        claim_key = f"{EVENT_KEY_PREFIX}:{event_id}" if event_id else None
        if claim_key is not None:
            claimed = await self.redis_client.set(
                claim_key, event_type, nx=True, ex=self.event_ttl_seconds
            )
            if not claimed:
                logger.info(
                    "[StripeWebhook] Event %s already processed, skipping.", event_id
                )
                return WebhookAckResponse()

        try:
            await self._dispatch(event_type, data_object)
        except Exception:
            if claim_key is not None:
                await self.redis_client.delete(claim_key)
            raise
        return WebhookAckResponse()

    async def _dispatch(self, event_type: str, data_object: dict[str, Any]) -> None:
        match event_type:
            case "checkout.session.completed":
                await self._on_checkout_completed(data_object)
            case "customer.subscription.updated":
                await self._on_subscription_updated(data_object)
            case "customer.subscription.deleted":
                await self._on_subscription_deleted(data_object)
            case _:
                logger.debug("[StripeWebhook] Ignoring event type '%s'.", event_type)

    async def _find_checkout_user(self, checkout: dict[str, Any]) -> User | None:
        customer_id = checkout.get("customer")
        async with self.uow as uow:
            user = None
            if customer_id:
                user = await uow.users.get_single(
                    uow.session, stripe_customer_id=customer_id
                )
            reference = checkout.get("client_reference_id")
            if user is None and reference:
                try:
                    user = await uow.users.get_single(uow.session, id=UUID(reference))
                except ValueError:
                    logger.warning(
                        "[StripeWebhook] Malformed client reference '%s'.", reference
                    )
            if user is not None and customer_id and user.stripe_customer_id != customer_id:
                await uow.users.update(
                    uow.session, {"stripe_customer_id": customer_id}, id=user.id
                )
                await uow.commit()
        return user

    async def _on_checkout_completed(self, checkout: dict[str, Any]) -> None:
        user = await self._find_checkout_user(checkout)
        if user is None:
            logger.warning(
                "[StripeWebhook] No user for checkout session %s (customer %s).",
                checkout.get("id"),
                checkout.get("customer"),
            )
            return

        mode = checkout.get("mode")
        if mode == "subscription":
            subscription_id = checkout.get("subscription")
            if not subscription_id:
                logger.warning(
                    "[StripeWebhook] Subscription checkout %s without subscription.",
                    checkout.get("id"),
                )
                return
            subscription = await self.gateway.retrieve_subscription(subscription_id)
            async with self.uow as uow:
                await uow.users.activate_subscription(
                    uow.session,
                    user.id,
                    subscription_id=subscription_id,
                    status=SubscriptionStatus.parse(subscription.get("status")),
                    end_date=subscription_period_end(subscription),
                )
                await uow.commit()
            logger.info("[StripeWebhook] User %s moved to monthly plan.", user.id)
        elif mode == "payment":
            async with self.uow as uow:
                updated_user = await uow.users.add_credits(
                    uow.session, user.id, PER_SCRIPT_PURCHASE_CREDITS
                )
                await uow.commit()
            logger.info(
                "[StripeWebhook] User %s bought a script credit, balance %s.",
                user.id,
                updated_user.credits if updated_user else "unknown",
            )
        else:
            logger.warning("[StripeWebhook] Unsupported checkout mode '%s'.", mode)

    async def _on_subscription_updated(self, subscription: dict[str, Any]) -> None:
        async with self.uow as uow:
            user = await uow.users.update_subscription_state(
                uow.session,
                subscription.get("id", ""),
                status=SubscriptionStatus.parse(subscription.get("status")),
                end_date=subscription_period_end(subscription),
            )
            await uow.commit()
        if user is None:
            logger.warning(
                "[StripeWebhook] No user for subscription %s.", subscription.get("id")
            )

    async def _on_subscription_deleted(self, subscription: dict[str, Any]) -> None:
        async with self.uow as uow:
            user = await uow.users.get_single(
                uow.session, stripe_subscription_id=subscription.get("id")
            )
            if user is None:
                logger.warning(
                    "[StripeWebhook] No user for subscription %s.",
                    subscription.get("id"),
                )
                return
            await uow.users.cancel_subscription(uow.session, user.id)
            await uow.commit()
        logger.info("[StripeWebhook] User %s moved back to free plan.", user.id)


def get_process_webhook_use_case(
    uow: ApplicationUnitOfWork = Depends(get_unit_of_work),
    gateway: StripeGateway = Depends(get_billing_gateway),
    redis_client: Redis = Depends(get_redis_client),
) -> ProcessWebhookUseCase:
    return ProcessWebhookUseCase(
        uow=uow,
        gateway=gateway,
        redis_client=redis_client,
        event_ttl_seconds=config.stripe.WEBHOOK_EVENT_TTL_SECONDS,
    )
