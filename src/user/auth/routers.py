from typing import Annotated

from fastapi import APIRouter, Body, Depends

from src.core.limiter.depends import RateLimiter
from src.core.schemas import SuccessResponse
from src.user.auth.dependencies import get_current_user
from src.user.auth.schemas import (
    CreateUserModel,
    LoginUserModel,
    RefreshTokenModel,
    TokenPairResponse,
    UpdateEmailModel,
    UpdatePasswordModel,
)
from src.user.auth.usecases.login import LoginUserUseCase, get_login_user_use_case
from src.user.auth.usecases.logout import LogoutUseCase, get_logout_use_case
from src.user.auth.usecases.refresh import (
    RefreshSessionUseCase,
    get_refresh_session_use_case,
)
from src.user.auth.usecases.register import RegisterUseCase, get_register_use_case
from src.user.models import User
from src.user.schemas import UpdateEmailResponse
from src.user.usecases.update_email import (
    UpdateUserEmailUseCase,
    get_update_user_email_use_case,
)
from src.user.usecases.update_password import (
    UpdateUserPasswordUseCase,
    get_update_user_password_use_case,
)

router = APIRouter()


@router.post(
    "/register",
    status_code=201,
    response_model=TokenPairResponse,
    dependencies=[Depends(RateLimiter(times=10, minutes=10))],
)
async def register_user(
    user_form_data: CreateUserModel,
    use_case: Annotated[RegisterUseCase, Depends(get_register_use_case)],
) -> TokenPairResponse:
    """
    Create a new account on the free plan and start a session.
    """
    return await use_case.execute(data=user_form_data)


@router.post(
    "/login",
    response_model=TokenPairResponse,
    dependencies=[Depends(RateLimiter(times=10, minutes=1))],
)
async def login_user(
    login_form_data: LoginUserModel,
    use_case: Annotated[LoginUserUseCase, Depends(get_login_user_use_case)],
) -> TokenPairResponse:
    """
    Authenticate user and return tokens.
    """
    return await use_case.execute(data=login_form_data)


@router.post(
    "/refresh",
    response_model=TokenPairResponse,
    dependencies=[Depends(RateLimiter(times=30, minutes=15))],
)
async def refresh_session(
    use_case: Annotated[RefreshSessionUseCase, Depends(get_refresh_session_use_case)],
    data: Annotated[RefreshTokenModel | None, Body()] = None,
) -> TokenPairResponse:
    """
    Exchange the refresh token for a new token pair. The presented refresh
    token stops working.
    """
    return await use_case.execute(data=data)


@router.post("/logout", response_model=SuccessResponse)
async def logout_user(
    use_case: Annotated[LogoutUseCase, Depends(get_logout_use_case)],
    data: Annotated[RefreshTokenModel | None, Body()] = None,
) -> SuccessResponse:
    """
    Revoke the refresh token. Always succeeds.
    """
    return await use_case.execute(data=data)


@router.put("/update-password", response_model=SuccessResponse)
async def update_password(
    data: UpdatePasswordModel,
    current_user: Annotated[User, Depends(get_current_user)],
    use_case: Annotated[
        UpdateUserPasswordUseCase, Depends(get_update_user_password_use_case)
    ],
) -> SuccessResponse:
    return await use_case.execute(data=data, user=current_user)


@router.put("/update-email", response_model=UpdateEmailResponse)
async def update_email(
    data: UpdateEmailModel,
    current_user: Annotated[User, Depends(get_current_user)],
    use_case: Annotated[
        UpdateUserEmailUseCase, Depends(get_update_user_email_use_case)
    ],
) -> UpdateEmailResponse:
    return await use_case.execute(data=data, user=current_user)
