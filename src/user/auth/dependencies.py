from fastapi import Depends, Request, Security
from fastapi.security.api_key import APIKeyHeader

from src.core.database.session import get_unit_of_work
from src.core.database.uow import ApplicationUnitOfWork
from src.user.auth.exceptions import (
    AdminRequiredException,
    AuthRequiredException,
    UserNotFoundException,
)
from src.user.auth.security import decode_token, parse_subject
from src.user.models import User

access_token_header = APIKeyHeader(
    name="Authorization", scheme_name="access-token", auto_error=False
)


def extract_bearer_token(authorization: str | None) -> str:
    """Return the token from an `Authorization: Bearer <token>` header value."""
    if not authorization:
        raise AuthRequiredException()
    scheme, _, token = authorization.strip().partition(" ")
    token = token.strip()
    if scheme.lower() != "bearer" or not token or " " in token:
        raise AuthRequiredException()
    return token


async def get_current_user(
    request: Request,
    authorization: str | None = Security(access_token_header),
    uow: ApplicationUnitOfWork = Depends(get_unit_of_work),
) -> User:
    """
    Get the current authenticated user from the access token.

    Expired tokens fail with TOKEN_EXPIRED so clients know a refresh is worth
    attempting; every other token failure is final.

    Raises:
        AuthRequiredException: missing or malformed header
        InvalidTokenException: bad signature, wrong kind or unreadable subject
        TokenExpiredException: valid signature, past expiry
        UserNotFoundException: the subject no longer exists
    """
    token = extract_bearer_token(authorization)
    payload = decode_token(token, "access_token")
    user_id = parse_subject(payload)

    # Own transaction, closed before the use case runs
    async with uow:
        user = await uow.users.get_single(uow.session, id=user_id)
    if not user:
        raise UserNotFoundException()

    request.state.user = user
    return user


async def require_admin(current_user: User = Depends(get_current_user)) -> User:
    """
    Admin gate.

    The role is read from the user row loaded for this request, never from the
    token, so a demotion takes effect immediately.
    """
    if not current_user.is_admin:
        raise AdminRequiredException()
    return current_user
