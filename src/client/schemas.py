from datetime import datetime

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class ClientModel(BaseModel):
    """Server payloads are camelCase and may grow new fields at any time."""

    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, extra="ignore"
    )


class SessionUser(ClientModel):
    id: str
    email: str
    role: str = "user"
    subscription_plan: str | None = None
    scripts_generated_count: int | None = None

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"


class TokenPair(ClientModel):
    access_token: str
    refresh_token: str | None = None
    user: SessionUser | None = None


class UsageSummary(ClientModel):
    id: str
    email: str
    role: str
    scripts_generated: int
    limit: int
    subscription_plan: str
    credits: int = 0
    created_at: datetime | None = None
    last_login_at: datetime | None = None


class ScriptRecord(ClientModel):
    id: str
    name: str
    description: str = ""
    script: str
    original_description: str | None = None
    created_at: datetime | None = None


class SubscriptionStatus(ClientModel):
    plan: str
    status: str | None = None
    end_date: datetime | None = None
    credits: int = 0


class AdminUserRecord(ClientModel):
    id: str
    email: str
    role: str
    subscription_plan: str
    subscription_status: str | None = None
    credits: int = 0
    scripts_generated_count: int = 0
    created_at: datetime | None = None
    last_login_at: datetime | None = None
