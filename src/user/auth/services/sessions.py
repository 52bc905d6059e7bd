from datetime import datetime

from loggers import get_logger
from src.core.database.uow import ApplicationUnitOfWork
from src.user.auth.exceptions import UserNotFoundException
from src.user.auth.schemas import TokenPairResponse
from src.user.auth.security import create_access_token, create_refresh_token
from src.user.models import User
from src.user.schemas import UserSnapshotModel

logger = get_logger(__name__)


async def start_session(
    uow: ApplicationUnitOfWork,
    user: User,
    last_login_at: datetime | None = None,
) -> TokenPairResponse:
    """
    Mint a token pair and make its refresh token the only valid one.

    Must run inside an open unit of work; commits it.
    """
    access_token = create_access_token(user.id)
    refresh_token = create_refresh_token(user.id)

    updated_user = await uow.users.store_refresh_token(
        uow.session, user.id, refresh_token, last_login_at=last_login_at
    )
    if updated_user is None:
        raise UserNotFoundException()
    await uow.commit()

    logger.debug("[StartSession] Session started for user %s.", user.id)
    return TokenPairResponse(
        access_token=access_token,
        refresh_token=refresh_token,
        user=UserSnapshotModel.model_validate(updated_user),
    )
