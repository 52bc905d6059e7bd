from collections.abc import AsyncGenerator
from contextlib import AsyncExitStack, asynccontextmanager
from typing import Any, Self, TypeVar, cast

from sqlalchemy.ext.asyncio import AsyncSession

from src.core.database.repositories import BaseRepository
from src.script.repositories import ScriptRepository
from src.user.repositories import UserRepository

RepositoryInstance = TypeVar("RepositoryInstance", bound=BaseRepository[Any])


@asynccontextmanager
async def safe_begin(session: AsyncSession) -> AsyncGenerator[None]:
    """
    Guarantee a transactional scope: a SAVEPOINT when the session is already
    inside a transaction, a regular BEGIN otherwise.
    """
    if session.in_transaction():
        async with session.begin_nested():
            yield
    else:
        async with session.begin():
            yield


class ApplicationUnitOfWork:
    """
    Transaction boundary over one AsyncSession with lazily created repositories.

    Usage:
        async with uow:
            user = await uow.users.get_single(uow.session, id=user_id)
            ...
            await uow.commit()

    Leaving the block with an exception rolls back unless the unit was already
    committed.
    """

    def __init__(self, session: AsyncSession) -> None:
        self._session = session
        self._exit_stack = AsyncExitStack()
        self._is_completed = False
        self._repositories: dict[type[BaseRepository[Any]], BaseRepository[Any]] = {}

    async def __aenter__(self) -> Self:
        # Reusable for sequential transactions within one request
        self._exit_stack = AsyncExitStack()
        self._is_completed = False
        await self._exit_stack.__aenter__()
        await self._exit_stack.enter_async_context(safe_begin(self._session))
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        if exc_type is not None and not self._is_completed:
            await self.rollback()

        await self._exit_stack.__aexit__(exc_type, exc_val, exc_tb)

    async def commit(self) -> None:
        if self._is_completed:
            raise RuntimeError("This unit of work has already been completed")

        await self._session.commit()
        self._is_completed = True

    async def rollback(self) -> None:
        if self._is_completed:
            raise RuntimeError("This unit of work has already been completed")

        await self._session.rollback()
        self._is_completed = True

    @property
    def completed(self) -> bool:
        return self._is_completed

    @property
    def session(self) -> AsyncSession:
        return self._session

    def _get_repository(
        self, repository_type: type[RepositoryInstance]
    ) -> RepositoryInstance:
        if repository_type not in self._repositories:
            self._repositories[repository_type] = repository_type()
        return cast(RepositoryInstance, self._repositories[repository_type])

    @property
    def users(self) -> UserRepository:
        return self._get_repository(UserRepository)

    @property
    def scripts(self) -> ScriptRepository:
        return self._get_repository(ScriptRepository)
