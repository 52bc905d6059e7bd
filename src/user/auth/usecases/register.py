from fastapi import Depends
from sqlalchemy.exc import IntegrityError

from loggers import get_logger
from src.core.database.session import get_unit_of_work
from src.core.database.uow import ApplicationUnitOfWork
from src.core.errors.exceptions import InstanceProcessingException
from src.core.utils.security import hash_password, mask_email
from src.user.auth.schemas import CreateUserModel, TokenPairResponse
from src.user.auth.services.sessions import start_session
from src.user.enums import SubscriptionPlan, UserRole

USER_EXISTS_MESSAGE = "User already exists with this email"
logger = get_logger(__name__)


class RegisterUseCase:
    """Use case for user registration."""

    def __init__(self, uow: ApplicationUnitOfWork) -> None:
        self.uow = uow

    async def execute(self, data: CreateUserModel) -> TokenPairResponse:
        async with self.uow as uow:
            if await uow.users.exists(uow.session, email=data.email):
                logger.info(
                    "[RegisterUser] Email '%s' already registered.",
                    mask_email(data.email),
                )
                raise InstanceProcessingException(USER_EXISTS_MESSAGE)

            user = await uow.users.create(
                session=uow.session,
                data={
                    "email": data.email,
                    "password": hash_password(data.password),
                    "role": UserRole.USER,
                    "subscription_plan": SubscriptionPlan.FREE,
                    "credits": 0,
                    "scripts_generated_count": 0,
                },
            )
            try:
                await uow.session.flush()
            except IntegrityError:
                # Lost a race against a concurrent registration
                raise InstanceProcessingException(USER_EXISTS_MESSAGE)

            response = await start_session(uow, user)
            logger.info(
                "[RegisterUser] User '%s' registered successfully.",
                mask_email(data.email),
            )
            return response


def get_register_use_case(
    uow: ApplicationUnitOfWork = Depends(get_unit_of_work),
) -> RegisterUseCase:
    return RegisterUseCase(uow=uow)
