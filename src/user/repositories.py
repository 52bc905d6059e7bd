from datetime import datetime
from uuid import UUID

from sqlalchemy import case
from sqlalchemy.ext.asyncio import AsyncSession

from loggers import get_logger
from src.core.database.repositories import BaseRepository
from src.user.enums import SubscriptionPlan, SubscriptionStatus
from src.user.models import User

logger = get_logger(__name__)


class UserRepository(BaseRepository[User]):
    """
    User persistence.

    Session and ledger columns are only ever written through single
    conditional UPDATE statements so concurrent requests (script generation,
    refreshes from several tabs, billing webhooks) cannot lose each other's
    writes.
    """

    model = User

    async def get_by_email(self, session: AsyncSession, email: str) -> User | None:
        return await self.get_single(session, email=email)

    # ----- Session ----- #
    async def store_refresh_token(
        self,
        session: AsyncSession,
        user_id: UUID,
        refresh_token: str,
        last_login_at: datetime | None = None,
    ) -> User | None:
        """Overwrite the stored refresh token, revoking any previous one."""
        values: dict[str, object] = {"refresh_token": refresh_token}
        if last_login_at is not None:
            values["last_login_at"] = last_login_at
        return await self.update_returning(session, values, User.id == user_id)

    async def rotate_refresh_token(
        self,
        session: AsyncSession,
        user_id: UUID,
        presented_token: str,
        new_token: str,
    ) -> User | None:
        """
        Compare-and-set the refresh token.

        Returns None when the stored value is no longer `presented_token`
        (rotated away, logged out or never issued).
        """
        return await self.update_returning(
            session,
            {"refresh_token": new_token},
            User.id == user_id,
            User.refresh_token == presented_token,
        )

    async def clear_refresh_token(
        self, session: AsyncSession, user_id: UUID, presented_token: str
    ) -> bool:
        user = await self.update_returning(
            session,
            {"refresh_token": None},
            User.id == user_id,
            User.refresh_token == presented_token,
        )
        return user is not None

    # ----- Usage ledger ----- #
    async def record_generation(
        self, session: AsyncSession, user_id: UUID, consume_credit: bool
    ) -> User | None:
        values: dict[str, object] = {
            "scripts_generated_count": User.scripts_generated_count + 1
        }
        if consume_credit:
            values["credits"] = case(
                (User.credits > 0, User.credits - 1),
                else_=0,
            )
        return await self.update_returning(session, values, User.id == user_id)

    async def demote_to_free(self, session: AsyncSession, user_id: UUID) -> User | None:
        """Downgrade an exhausted per-script account, unless credits arrived meanwhile."""
        return await self.update_returning(
            session,
            {
                "subscription_plan": SubscriptionPlan.FREE,
                "subscription_status": None,
                "subscription_end_date": None,
            },
            User.id == user_id,
            User.subscription_plan == SubscriptionPlan.PER_SCRIPT,
            User.credits <= 0,
        )

    async def add_credits(
        self, session: AsyncSession, user_id: UUID, amount: int
    ) -> User | None:
        return await self.update_returning(
            session,
            {
                "credits": User.credits + amount,
                "subscription_plan": SubscriptionPlan.PER_SCRIPT,
                "subscription_status": SubscriptionStatus.ACTIVE,
                "subscription_end_date": None,
            },
            User.id == user_id,
        )

    async def activate_subscription(
        self,
        session: AsyncSession,
        user_id: UUID,
        subscription_id: str,
        status: SubscriptionStatus | None,
        end_date: datetime | None,
    ) -> User | None:
        return await self.update_returning(
            session,
            {
                "subscription_plan": SubscriptionPlan.MONTHLY,
                "subscription_status": status,
                "subscription_end_date": end_date,
                "stripe_subscription_id": subscription_id,
            },
            User.id == user_id,
        )

    async def update_subscription_state(
        self,
        session: AsyncSession,
        subscription_id: str,
        status: SubscriptionStatus | None,
        end_date: datetime | None,
    ) -> User | None:
        return await self.update_returning(
            session,
            {"subscription_status": status, "subscription_end_date": end_date},
            User.stripe_subscription_id == subscription_id,
        )

    async def cancel_subscription(
        self, session: AsyncSession, user_id: UUID
    ) -> User | None:
        return await self.update_returning(
            session,
            {
                "subscription_plan": SubscriptionPlan.FREE,
                "subscription_status": SubscriptionStatus.CANCELED,
                "subscription_end_date": None,
                "stripe_subscription_id": None,
            },
            User.id == user_id,
        )
