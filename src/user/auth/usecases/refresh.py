from fastapi import Depends

from loggers import get_logger
from src.core.database.session import get_unit_of_work
from src.core.database.uow import ApplicationUnitOfWork
from src.core.errors.exceptions import CoreException
from src.user.auth.exceptions import (
    InvalidRefreshTokenException,
    MissingRefreshTokenException,
)
from src.user.auth.schemas import RefreshTokenModel, TokenPairResponse
from src.user.auth.security import (
    create_access_token,
    create_refresh_token,
    decode_token,
    parse_subject,
)
from src.user.schemas import UserSnapshotModel

logger = get_logger(__name__)


class RefreshSessionUseCase:
    """
    Exchange a refresh token for a new token pair.

    Every successful refresh rotates the stored refresh token, so the presented
    one can never be used again. The rotation is a compare-and-set on the
    stored value: of two concurrent refreshes with the same token exactly one
    wins, the other fails.
    """

    def __init__(self, uow: ApplicationUnitOfWork) -> None:
        self.uow = uow

    async def execute(self, data: RefreshTokenModel | None) -> TokenPairResponse:
        presented_token = data.refresh_token if data else None
        if not presented_token:
            raise MissingRefreshTokenException()

        try:
            user_id = parse_subject(decode_token(presented_token, "refresh_token"))
        except CoreException as e:
            logger.debug("[RefreshSession] Refresh token rejected: %s", e.message)
            raise InvalidRefreshTokenException()

        new_refresh_token = create_refresh_token(user_id)
        async with self.uow as uow:
            user = await uow.users.rotate_refresh_token(
                uow.session, user_id, presented_token, new_refresh_token
            )
            if user is None:
                logger.info(
                    "[RefreshSession] Stale or revoked refresh token for user %s.",
                    user_id,
                )
                raise InvalidRefreshTokenException()
            await uow.commit()

        logger.debug("[RefreshSession] Session rotated for user %s.", user_id)
        return TokenPairResponse(
            access_token=create_access_token(user_id),
            refresh_token=new_refresh_token,
            user=UserSnapshotModel.model_validate(user),
        )


def get_refresh_session_use_case(
    uow: ApplicationUnitOfWork = Depends(get_unit_of_work),
) -> RefreshSessionUseCase:
    return RefreshSessionUseCase(uow=uow)
