from typing import TYPE_CHECKING
from uuid import UUID as PY_UUID

from sqlalchemy import ForeignKey, String, Text
from sqlalchemy.dialects.postgresql import UUID as PG_UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from src.core.database.base import Base
from src.core.database.mixins import TimestampMixin, UUID7IDMixin

if TYPE_CHECKING:
    from src.user.models import User

SCRIPT_NAME_MAX_LENGTH = 100
SCRIPT_DESCRIPTION_MAX_LENGTH = 500
ORIGINAL_DESCRIPTION_MAX_LENGTH = 1000


class Script(Base, UUID7IDMixin, TimestampMixin):
    __tablename__ = "scripts"

    user_id: Mapped[PY_UUID] = mapped_column(
        PG_UUID(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        index=True,
    )
    name: Mapped[str] = mapped_column(String(SCRIPT_NAME_MAX_LENGTH))
    description: Mapped[str] = mapped_column(
        String(SCRIPT_DESCRIPTION_MAX_LENGTH), default=""
    )
    script: Mapped[str] = mapped_column(Text)
    original_description: Mapped[str | None] = mapped_column(
        String(ORIGINAL_DESCRIPTION_MAX_LENGTH), nullable=True
    )

    """relationships"""
    user: Mapped["User"] = relationship(back_populates="scripts")

    def __repr__(self) -> str:
        return f"<Script(id={str(self.id)}, name={self.name!r})>"
