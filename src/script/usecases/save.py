from fastapi import Depends

from loggers import get_logger
from src.core.database.session import get_unit_of_work
from src.core.database.uow import ApplicationUnitOfWork
from src.script.schemas import SaveScriptModel, SaveScriptResponse
from src.user.models import User

logger = get_logger(__name__)


class SaveScriptUseCase:
    def __init__(self, uow: ApplicationUnitOfWork) -> None:
        self.uow = uow

    async def execute(self, data: SaveScriptModel, user: User) -> SaveScriptResponse:
        async with self.uow as uow:
            script = await uow.scripts.create(
                uow.session,
                {
                    "user_id": user.id,
                    "name": data.name,
                    "description": (data.description or "").strip(),
                    "script": data.script,
                    "original_description": data.original_description,
                },
            )
            await uow.session.flush()
            await uow.commit()

        logger.info("[SaveScript] Script %s saved for user %s.", script.id, user.id)
        return SaveScriptResponse(script_id=script.id)


def get_save_script_use_case(
    uow: ApplicationUnitOfWork = Depends(get_unit_of_work),
) -> SaveScriptUseCase:
    return SaveScriptUseCase(uow=uow)
