from datetime import datetime

from src.core.schemas import ApiModel, SuccessResponse
from src.user.enums import SubscriptionPlan, SubscriptionStatus


class WebhookAckResponse(ApiModel):
    received: bool = True


class SubscriptionStatusModel(ApiModel):
    plan: SubscriptionPlan
    status: SubscriptionStatus | None = None
    end_date: datetime | None = None
    credits: int


class SubscriptionStatusResponse(SuccessResponse):
    data: SubscriptionStatusModel
