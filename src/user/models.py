from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import (
    CheckConstraint,
    DateTime,
    Enum as SQLEnum,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from src.core.database.base import Base
from src.core.database.mixins import TimestampMixin, UUIDIDMixin
from src.user.enums import SubscriptionPlan, SubscriptionStatus, UserRole

if TYPE_CHECKING:
    from src.script.models import Script


def enum_values(enum_cls: type) -> list[str]:
    return [member.value for member in enum_cls]


class User(Base, UUIDIDMixin, TimestampMixin):
    __tablename__ = "users"
    __table_args__ = (
        CheckConstraint("credits >= 0", name="credits_non_negative"),
        CheckConstraint(
            "scripts_generated_count >= 0", name="scripts_generated_count_non_negative"
        ),
    )

    email: Mapped[str] = mapped_column(String(255), unique=True, index=True)
    password: Mapped[str] = mapped_column(String(255))
    role: Mapped[UserRole] = mapped_column(
        SQLEnum(UserRole, name="user_role", values_callable=enum_values),
        nullable=False,
        default=UserRole.USER,
    )

    """usage ledger"""
    subscription_plan: Mapped[SubscriptionPlan] = mapped_column(
        SQLEnum(
            SubscriptionPlan, name="subscription_plan", values_callable=enum_values
        ),
        nullable=False,
        default=SubscriptionPlan.FREE,
    )
    credits: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    scripts_generated_count: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0
    )

    """billing provider state"""
    subscription_status: Mapped[SubscriptionStatus | None] = mapped_column(
        SQLEnum(
            SubscriptionStatus, name="subscription_status", values_callable=enum_values
        ),
        nullable=True,
        default=None,
    )
    subscription_end_date: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True, default=None
    )
    stripe_customer_id: Mapped[str | None] = mapped_column(
        String(255), nullable=True, index=True
    )
    stripe_subscription_id: Mapped[str | None] = mapped_column(
        String(255), nullable=True, index=True
    )

    """session"""
    # Only the most recently issued refresh token is accepted
    refresh_token: Mapped[str | None] = mapped_column(Text, nullable=True)
    last_login_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    """relationships"""
    scripts: Mapped[list["Script"]] = relationship(
        back_populates="user", cascade="all, delete-orphan", passive_deletes=True
    )

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN

    def __repr__(self) -> str:
        return (
            f"<User(id={str(self.id)}, email={self.email!r}, "
            f"plan={self.subscription_plan!s})>"
        )
