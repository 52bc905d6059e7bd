from fastapi import Depends

from src.core.database.session import get_unit_of_work
from src.core.database.uow import ApplicationUnitOfWork
from src.script.schemas import ScriptHistoryResponse, ScriptViewModel
from src.user.models import User


class ScriptHistoryUseCase:
    """The caller's saved scripts, newest first."""

    def __init__(self, uow: ApplicationUnitOfWork) -> None:
        self.uow = uow

    async def execute(self, user: User) -> ScriptHistoryResponse:
        async with self.uow as uow:
            scripts = await uow.scripts.list_for_user(uow.session, user.id)
        return ScriptHistoryResponse(
            scripts=[ScriptViewModel.model_validate(script) for script in scripts]
        )


def get_script_history_use_case(
    uow: ApplicationUnitOfWork = Depends(get_unit_of_work),
) -> ScriptHistoryUseCase:
    return ScriptHistoryUseCase(uow=uow)
