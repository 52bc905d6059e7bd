from enum import StrEnum


class UserRole(StrEnum):
    USER = "user"
    ADMIN = "admin"

    @classmethod
    def values(cls) -> set[str]:
        return {item.value for item in cls.__members__.values()}


class SubscriptionPlan(StrEnum):
    FREE = "free"  # Fixed number of lifetime generations
    MONTHLY = "monthly"  # Unlimited while the subscription lasts
    PER_SCRIPT = "per-script"  # One generation per purchased credit


class SubscriptionStatus(StrEnum):
    """Subscription states reported by the billing provider."""

    ACTIVE = "active"
    CANCELED = "canceled"
    PAST_DUE = "past_due"
    UNPAID = "unpaid"
    INCOMPLETE = "incomplete"
    INCOMPLETE_EXPIRED = "incomplete_expired"
    TRIALING = "trialing"
    PAUSED = "paused"

    @classmethod
    def parse(cls, value: str | None) -> "SubscriptionStatus | None":
        if value is None:
            return None
        try:
            return cls(value)
        except ValueError:
            return None
