from fastapi import Depends

from loggers import get_logger
from src.core.database.session import get_unit_of_work
from src.core.database.uow import ApplicationUnitOfWork
from src.core.utils.datetime_utils import get_utc_now
from src.core.utils.security import hash_password, mask_email, verify_password
from src.user.auth.exceptions import InvalidCredentialsException
from src.user.auth.schemas import LoginUserModel, TokenPairResponse
from src.user.auth.services.sessions import start_session

INVALID_CREDENTIALS_PASSWORD_HASH = hash_password("dummy-password")
logger = get_logger(__name__)


class LoginUserUseCase:
    """Use case for logging in user."""

    def __init__(self, uow: ApplicationUnitOfWork) -> None:
        self.uow = uow

    async def execute(self, data: LoginUserModel) -> TokenPairResponse:
        async with self.uow as uow:
            user = await uow.users.get_by_email(uow.session, data.email)
            if not user:
                logger.debug(
                    "[LoginUser] User with email '%s' not found.",
                    mask_email(data.email),
                )
                # Same cost as a real check so unknown e-mails are not observable
                await verify_password(data.password, INVALID_CREDENTIALS_PASSWORD_HASH)
                raise InvalidCredentialsException()

            correct_password = await verify_password(data.password, user.password)
            if not correct_password:
                logger.debug(
                    "[LoginUser] Incorrect password for user '%s'",
                    mask_email(data.email),
                )
                raise InvalidCredentialsException()

            response = await start_session(uow, user, last_login_at=get_utc_now())
            logger.info("[LoginUser] User '%s' logged in.", mask_email(data.email))
            return response


def get_login_user_use_case(
    uow: ApplicationUnitOfWork = Depends(get_unit_of_work),
) -> LoginUserUseCase:
    return LoginUserUseCase(uow=uow)
