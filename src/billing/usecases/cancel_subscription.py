from fastapi import Depends

from loggers import get_logger
from src.billing.exceptions import NoActiveSubscriptionException
from src.billing.gateway import StripeGateway, get_billing_gateway
from src.core.database.session import get_unit_of_work
from src.core.database.uow import ApplicationUnitOfWork
from src.core.schemas import SuccessResponse
from src.user.models import User

logger = get_logger(__name__)


class CancelSubscriptionUseCase:
    def __init__(self, uow: ApplicationUnitOfWork, gateway: StripeGateway) -> None:
        self.uow = uow
        self.gateway = gateway

    async def execute(self, user: User) -> SuccessResponse:
        if not user.stripe_subscription_id:
            raise NoActiveSubscriptionException()

        await self.gateway.cancel_subscription(user.stripe_subscription_id)
        async with self.uow as uow:
            await uow.users.cancel_subscription(uow.session, user.id)
            await uow.commit()

        logger.info("[CancelSubscription] User %s canceled the subscription.", user.id)
        return SuccessResponse()


def get_cancel_subscription_use_case(
    uow: ApplicationUnitOfWork = Depends(get_unit_of_work),
    gateway: StripeGateway = Depends(get_billing_gateway),
) -> CancelSubscriptionUseCase:
    return CancelSubscriptionUseCase(uow=uow, gateway=gateway)
