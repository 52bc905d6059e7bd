from uuid import UUID

from fastapi import Depends

from loggers import get_logger
from src.core.database.session import get_unit_of_work
from src.core.database.uow import ApplicationUnitOfWork
from src.core.schemas import SuccessResponse
from src.script.exceptions import ScriptNotFoundException
from src.script.schemas import UpdateScriptModel
from src.user.models import User

logger = get_logger(__name__)


class UpdateScriptUseCase:
    def __init__(self, uow: ApplicationUnitOfWork) -> None:
        self.uow = uow

    async def execute(
        self, script_id: UUID, data: UpdateScriptModel, user: User
    ) -> SuccessResponse:
        async with self.uow as uow:
            script = await uow.scripts.update(
                uow.session,
                {"name": data.name, "description": (data.description or "").strip()},
                id=script_id,
                user_id=user.id,
            )
            if script is None:
                logger.info(
                    "[UpdateScript] Script %s not found for user %s.",
                    script_id,
                    user.id,
                )
                raise ScriptNotFoundException()
            await uow.commit()
        return SuccessResponse()


def get_update_script_use_case(
    uow: ApplicationUnitOfWork = Depends(get_unit_of_work),
) -> UpdateScriptUseCase:
    return UpdateScriptUseCase(uow=uow)
