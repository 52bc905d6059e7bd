from fastapi import Depends

from src.core.database.session import get_unit_of_work
from src.core.database.uow import ApplicationUnitOfWork
from src.user.schemas import AdminUserViewModel, AdminUsersResponse


class ListUsersUseCase:
    """Admin overview of every account and its ledger state, newest first."""

    def __init__(self, uow: ApplicationUnitOfWork) -> None:
        self.uow = uow

    async def execute(self) -> AdminUsersResponse:
        async with self.uow as uow:
            users = await uow.users.get_list(uow.session)
        return AdminUsersResponse(
            users=[AdminUserViewModel.model_validate(user) for user in users]
        )


def get_list_users_use_case(
    uow: ApplicationUnitOfWork = Depends(get_unit_of_work),
) -> ListUsersUseCase:
    return ListUsersUseCase(uow=uow)
