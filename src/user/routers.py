from typing import Annotated

from fastapi import APIRouter, Depends

from src.usage.ledger import usage_limit
from src.user.auth.dependencies import get_current_user, require_admin
from src.user.models import User
from src.user.schemas import AdminUsersResponse, UserUsageViewModel
from src.user.usecases.list_users import ListUsersUseCase, get_list_users_use_case

router = APIRouter()
admin_router = APIRouter()


@router.get("", response_model=UserUsageViewModel)
async def get_user_usage(
    current_user: Annotated[User, Depends(get_current_user)],
) -> UserUsageViewModel:
    """
    Returns the current user's profile with usage statistics.
    `limit` is -1 for unlimited plans.
    """
    return UserUsageViewModel(
        id=current_user.id,
        email=current_user.email,
        role=current_user.role,
        scripts_generated=current_user.scripts_generated_count,
        limit=usage_limit(current_user),
        subscription_plan=current_user.subscription_plan,
        credits=current_user.credits or 0,
        created_at=current_user.created_at,
        last_login_at=current_user.last_login_at,
    )


@admin_router.get("/users", response_model=AdminUsersResponse)
async def list_users(
    _admin: Annotated[User, Depends(require_admin)],
    use_case: Annotated[ListUsersUseCase, Depends(get_list_users_use_case)],
) -> AdminUsersResponse:
    return await use_case.execute()
