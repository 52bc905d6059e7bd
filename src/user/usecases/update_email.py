from fastapi import Depends
from sqlalchemy.exc import IntegrityError

from loggers import get_logger
from src.core.database.session import get_unit_of_work
from src.core.database.uow import ApplicationUnitOfWork
from src.core.errors.exceptions import InstanceProcessingException
from src.core.utils.security import mask_email, verify_password
from src.user.auth.exceptions import InvalidCredentialsException, UserNotFoundException
from src.user.auth.schemas import UpdateEmailModel
from src.user.models import User
from src.user.schemas import UpdateEmailResponse, UserSnapshotModel

EMAIL_TAKEN_MESSAGE = "Email is already in use"
WRONG_PASSWORD_MESSAGE = "Password is incorrect"
logger = get_logger(__name__)


class UpdateUserEmailUseCase:
    def __init__(self, uow: ApplicationUnitOfWork) -> None:
        self.uow = uow

    async def execute(self, data: UpdateEmailModel, user: User) -> UpdateEmailResponse:
        previous_email = user.email
        if not await verify_password(data.password, user.password):
            logger.info(
                "[UpdateUserEmail] Wrong password for '%s'.", mask_email(user.email)
            )
            raise InvalidCredentialsException(WRONG_PASSWORD_MESSAGE)

        async with self.uow as uow:
            if data.new_email != user.email and await uow.users.exists(
                uow.session, email=data.new_email
            ):
                raise InstanceProcessingException(EMAIL_TAKEN_MESSAGE)

            updated_user = await uow.users.update(
                uow.session, {"email": data.new_email}, id=user.id
            )
            if not updated_user:
                raise UserNotFoundException()
            try:
                await uow.session.flush()
            except IntegrityError:
                raise InstanceProcessingException(EMAIL_TAKEN_MESSAGE)
            await uow.commit()

        logger.info(
            "[UpdateUserEmail] '%s' changed e-mail to '%s'.",
            mask_email(previous_email),
            mask_email(data.new_email),
        )
        return UpdateEmailResponse(user=UserSnapshotModel.model_validate(updated_user))


def get_update_user_email_use_case(
    uow: ApplicationUnitOfWork = Depends(get_unit_of_work),
) -> UpdateUserEmailUseCase:
    return UpdateUserEmailUseCase(uow=uow)
