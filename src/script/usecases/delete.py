from uuid import UUID

from fastapi import Depends

from loggers import get_logger
from src.core.database.session import get_unit_of_work
from src.core.database.uow import ApplicationUnitOfWork
from src.core.schemas import SuccessResponse
from src.script.exceptions import ScriptNotFoundException
from src.user.models import User

logger = get_logger(__name__)


class DeleteScriptUseCase:
    def __init__(self, uow: ApplicationUnitOfWork) -> None:
        self.uow = uow

    async def execute(self, script_id: UUID, user: User) -> SuccessResponse:
        async with self.uow as uow:
            script = await uow.scripts.delete(uow.session, id=script_id, user_id=user.id)
            if script is None:
                raise ScriptNotFoundException()
            await uow.commit()
        logger.info("[DeleteScript] Script %s deleted by user %s.", script_id, user.id)
        return SuccessResponse()


def get_delete_script_use_case(
    uow: ApplicationUnitOfWork = Depends(get_unit_of_work),
) -> DeleteScriptUseCase:
    return DeleteScriptUseCase(uow=uow)
