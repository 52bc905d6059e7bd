from fastapi import Depends
from sqlalchemy.exc import SQLAlchemyError

from loggers import get_logger
from src.core.database.session import get_unit_of_work
from src.core.database.uow import ApplicationUnitOfWork
from src.core.errors.exceptions import CoreException
from src.core.schemas import SuccessResponse
from src.user.auth.schemas import RefreshTokenModel
from src.user.auth.security import decode_token, parse_subject

logger = get_logger(__name__)


class LogoutUseCase:
    """
    Best-effort server-side logout.

    The stored refresh token is cleared only when the presented one is still
    the current one. The caller always gets a success response: clients clear
    their local session regardless of what happened here.
    """

    def __init__(self, uow: ApplicationUnitOfWork) -> None:
        self.uow = uow

    async def execute(self, data: RefreshTokenModel | None) -> SuccessResponse:
        presented_token = data.refresh_token if data else None
        if not presented_token:
            logger.debug("[Logout] No refresh token presented.")
            return SuccessResponse()

        try:
            user_id = parse_subject(decode_token(presented_token, "refresh_token"))
            async with self.uow as uow:
                cleared = await uow.users.clear_refresh_token(
                    uow.session, user_id, presented_token
                )
                await uow.commit()
        except CoreException as e:
            logger.debug("[Logout] Refresh token ignored: %s", e.message)
        except SQLAlchemyError as e:
            logger.warning("[Logout] Could not clear refresh token: %s", e)
        else:
            logger.debug(
                "[Logout] User %s %s.",
                user_id,
                "logged out" if cleared else "had no matching session",
            )
        return SuccessResponse()


def get_logout_use_case(
    uow: ApplicationUnitOfWork = Depends(get_unit_of_work),
) -> LogoutUseCase:
    return LogoutUseCase(uow=uow)
