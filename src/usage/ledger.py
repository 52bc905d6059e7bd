from collections.abc import Iterable
from dataclasses import dataclass
from uuid import UUID

from fastapi import Depends

from loggers import get_logger
from src.core.database.session import get_unit_of_work
from src.core.database.uow import ApplicationUnitOfWork
from src.core.utils.security import mask_email, normalize_email
from src.main.config import config
from src.usage.exceptions import QuotaExceededException
from src.user.auth.exceptions import UserNotFoundException
from src.user.enums import SubscriptionPlan
from src.user.models import User

logger = get_logger(__name__)

FREE_PLAN_SCRIPT_LIMIT = 3
UNLIMITED = -1

FREE_LIMIT_REACHED_MESSAGE = (
    "You have reached your free plan limit. "
    "Please upgrade to continue generating scripts."
)
CREDITS_EXHAUSTED_MESSAGE = (
    "You have used all your script credits. "
    "Please purchase more scripts or upgrade to unlimited plan."
)


@dataclass(frozen=True)
class UsageGrant:
    """Permission for one generation, settled by `UsageLedger.record`."""

    user_id: UUID
    consume_credit: bool


def usage_limit(user: User) -> int:
    """Generations the plan allows: a fixed quota, the credit balance or UNLIMITED."""
    if user.subscription_plan == SubscriptionPlan.MONTHLY:
        return UNLIMITED
    if user.subscription_plan == SubscriptionPlan.PER_SCRIPT:
        return user.credits
    return FREE_PLAN_SCRIPT_LIMIT


class UsageLedger:
    """
    Per-plan quota policy around script generation.

    Quotas are checked before the (slow) generation call; accounting is
    applied afterwards with atomic column arithmetic so it cannot lose
    concurrent billing updates. Two simultaneous generations may both pass the
    check and overshoot a quota by one; the counters themselves always stay
    consistent.
    """

    def __init__(
        self, uow: ApplicationUnitOfWork, unlimited_emails: Iterable[str]
    ) -> None:
        self.uow = uow
        self.unlimited_emails = frozenset(
            normalize_email(email) for email in unlimited_emails
        )

    def is_exempt(self, user: User) -> bool:
        return normalize_email(user.email) in self.unlimited_emails

    async def authorize(self, user: User) -> UsageGrant:
        """
        Raises:
            QuotaExceededException: free quota used up, or no credits left on the
                per-script plan (the account is demoted to free first)
        """
        if self.is_exempt(user):
            logger.debug(
                "[UsageLedger] Quota bypass for '%s'.", mask_email(user.email)
            )
            return UsageGrant(user_id=user.id, consume_credit=False)

        plan = user.subscription_plan
        if plan == SubscriptionPlan.MONTHLY:
            return UsageGrant(user_id=user.id, consume_credit=False)

        if plan == SubscriptionPlan.PER_SCRIPT:
            if user.credits > 0:
                return UsageGrant(user_id=user.id, consume_credit=True)
            async with self.uow as uow:
                await uow.users.demote_to_free(uow.session, user.id)
                await uow.commit()
            logger.info(
                "[UsageLedger] Credits exhausted, '%s' moved to free plan.",
                mask_email(user.email),
            )
            raise QuotaExceededException(CREDITS_EXHAUSTED_MESSAGE)

        if user.scripts_generated_count < FREE_PLAN_SCRIPT_LIMIT:
            return UsageGrant(user_id=user.id, consume_credit=False)
        logger.info(
            "[UsageLedger] Free plan limit reached for '%s'.", mask_email(user.email)
        )
        raise QuotaExceededException(FREE_LIMIT_REACHED_MESSAGE)

    async def record(self, grant: UsageGrant) -> User:
        """Count one successful generation, spending a credit when the grant says so."""
        async with self.uow as uow:
            user = await uow.users.record_generation(
                uow.session, grant.user_id, consume_credit=grant.consume_credit
            )
            if user is None:
                raise UserNotFoundException()
            await uow.commit()
        logger.debug(
            "[UsageLedger] User %s: count=%s credits=%s.",
            user.id,
            user.scripts_generated_count,
            user.credits,
        )
        return user


def get_usage_ledger(
    uow: ApplicationUnitOfWork = Depends(get_unit_of_work),
) -> UsageLedger:
    return UsageLedger(uow=uow, unlimited_emails=config.usage.UNLIMITED_EMAILS)
