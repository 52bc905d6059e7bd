from typing import Annotated

from fastapi import APIRouter, Depends, Header, Request

from src.billing.schemas import SubscriptionStatusResponse, WebhookAckResponse
from src.billing.usecases.cancel_subscription import (
    CancelSubscriptionUseCase,
    get_cancel_subscription_use_case,
)
from src.billing.usecases.process_webhook import (
    ProcessWebhookUseCase,
    get_process_webhook_use_case,
)
from src.billing.usecases.subscription_status import (
    SubscriptionStatusUseCase,
    get_subscription_status_use_case,
)
from src.core.schemas import SuccessResponse
from src.user.auth.dependencies import get_current_user
from src.user.models import User

router = APIRouter()


@router.post("/stripe-webhook", response_model=WebhookAckResponse)
async def stripe_webhook(
    request: Request,
    use_case: Annotated[ProcessWebhookUseCase, Depends(get_process_webhook_use_case)],
    stripe_signature: Annotated[str | None, Header()] = None,
) -> WebhookAckResponse:
    """
    Billing provider callback. The raw body is needed for signature checks.
    """
    payload = await request.body()
    return await use_case.execute(payload=payload, signature=stripe_signature)


@router.get("/subscriptions/status", response_model=SubscriptionStatusResponse)
async def get_subscription_status(
    current_user: Annotated[User, Depends(get_current_user)],
    use_case: Annotated[
        SubscriptionStatusUseCase, Depends(get_subscription_status_use_case)
    ],
) -> SubscriptionStatusResponse:
    return await use_case.execute(user=current_user)


@router.post("/subscriptions/cancel", response_model=SuccessResponse)
async def cancel_subscription(
    current_user: Annotated[User, Depends(get_current_user)],
    use_case: Annotated[
        CancelSubscriptionUseCase, Depends(get_cancel_subscription_use_case)
    ],
) -> SuccessResponse:
    return await use_case.execute(user=current_user)
