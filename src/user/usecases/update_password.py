from fastapi import Depends

from loggers import get_logger
from src.core.database.session import get_unit_of_work
from src.core.database.uow import ApplicationUnitOfWork
from src.core.schemas import SuccessResponse
from src.core.utils.security import hash_password, mask_email, verify_password
from src.user.auth.exceptions import InvalidCredentialsException, UserNotFoundException
from src.user.auth.schemas import UpdatePasswordModel
from src.user.models import User

WRONG_CURRENT_PASSWORD_MESSAGE = "Current password is incorrect"
logger = get_logger(__name__)


class UpdateUserPasswordUseCase:
    """Use case for updating password."""

    def __init__(self, uow: ApplicationUnitOfWork) -> None:
        self.uow = uow

    async def execute(self, data: UpdatePasswordModel, user: User) -> SuccessResponse:
        if not await verify_password(data.current_password, user.password):
            logger.info(
                "[UpdateUserPassword] Wrong current password for '%s'.",
                mask_email(user.email),
            )
            raise InvalidCredentialsException(WRONG_CURRENT_PASSWORD_MESSAGE)

        async with self.uow as uow:
            updated_user = await uow.users.update(
                uow.session, {"password": hash_password(data.new_password)}, id=user.id
            )
            if not updated_user:
                raise UserNotFoundException()
            await uow.commit()

        logger.debug(
            "[UpdateUserPassword] %s password updated successfully.",
            mask_email(user.email),
        )
        return SuccessResponse()


def get_update_user_password_use_case(
    uow: ApplicationUnitOfWork = Depends(get_unit_of_work),
) -> UpdateUserPasswordUseCase:
    return UpdateUserPasswordUseCase(uow=uow)
