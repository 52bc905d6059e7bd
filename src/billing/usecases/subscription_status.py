from fastapi import Depends

from loggers import get_logger
from src.billing.exceptions import BillingProviderException
from src.billing.gateway import (
    StripeGateway,
    get_billing_gateway,
    subscription_period_end,
)
from src.billing.schemas import SubscriptionStatusModel, SubscriptionStatusResponse
from src.core.database.session import get_unit_of_work
from src.core.database.uow import ApplicationUnitOfWork
from src.user.enums import SubscriptionPlan, SubscriptionStatus
from src.user.models import User

logger = get_logger(__name__)


class SubscriptionStatusUseCase:
    """
    Current plan of the caller.

    Monthly subscriptions are re-read from the billing provider so a missed
    webhook does not leave a stale status behind; when the provider is
    unreachable the stored state is returned.
    """

    def __init__(self, uow: ApplicationUnitOfWork, gateway: StripeGateway) -> None:
        self.uow = uow
        self.gateway = gateway

    async def execute(self, user: User) -> SubscriptionStatusResponse:
        subscription_id = user.stripe_subscription_id
        if subscription_id and user.subscription_plan == SubscriptionPlan.MONTHLY:
            try:
                subscription = await self.gateway.retrieve_subscription(
                    subscription_id
                )
            except BillingProviderException:
                logger.warning(
                    "[SubscriptionStatus] Using stored state for user %s.", user.id
                )
            else:
                async with self.uow as uow:
                    updated_user = await uow.users.update_subscription_state(
                        uow.session,
                        subscription_id,
                        status=SubscriptionStatus.parse(subscription.get("status")),
                        end_date=subscription_period_end(subscription),
                    )
                    await uow.commit()
                user = updated_user or user

        return SubscriptionStatusResponse(
            data=SubscriptionStatusModel(
                plan=user.subscription_plan,
                status=user.subscription_status,
                end_date=user.subscription_end_date,
                credits=user.credits or 0,
            )
        )


def get_subscription_status_use_case(
    uow: ApplicationUnitOfWork = Depends(get_unit_of_work),
    gateway: StripeGateway = Depends(get_billing_gateway),
) -> SubscriptionStatusUseCase:
    return SubscriptionStatusUseCase(uow=uow, gateway=gateway)
