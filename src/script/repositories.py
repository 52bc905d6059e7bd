from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from src.core.database.repositories import BaseRepository
from src.script.models import Script


class ScriptRepository(BaseRepository[Script]):
    """Scripts are always addressed through their owner."""

    model = Script

    async def get_owned(
        self, session: AsyncSession, script_id: UUID, user_id: UUID
    ) -> Script | None:
        return await self.get_single(session, id=script_id, user_id=user_id)

    async def list_for_user(self, session: AsyncSession, user_id: UUID) -> list[Script]:
        return await self.get_list(session, user_id=user_id)
