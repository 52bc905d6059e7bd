from datetime import datetime
from uuid import UUID

from pydantic import EmailStr

from src.core.schemas import ApiModel, SuccessResponse
from src.user.enums import SubscriptionPlan, SubscriptionStatus, UserRole


class UserSnapshotModel(ApiModel):
    """User data returned with tokens and cached by clients."""

    id: UUID
    email: EmailStr
    role: UserRole
    subscription_plan: SubscriptionPlan
    scripts_generated_count: int


class UserUsageViewModel(ApiModel):
    id: UUID
    email: EmailStr
    role: UserRole
    scripts_generated: int
    limit: int  # -1 means unlimited
    subscription_plan: SubscriptionPlan
    credits: int
    created_at: datetime | None = None
    last_login_at: datetime | None = None


class UpdateEmailResponse(SuccessResponse):
    user: UserSnapshotModel


class AdminUserViewModel(ApiModel):
    id: UUID
    email: EmailStr
    role: UserRole
    subscription_plan: SubscriptionPlan
    subscription_status: SubscriptionStatus | None = None
    credits: int
    scripts_generated_count: int
    created_at: datetime | None = None
    last_login_at: datetime | None = None


class AdminUsersResponse(SuccessResponse):
    users: list[AdminUserViewModel]
