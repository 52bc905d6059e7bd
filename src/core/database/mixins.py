from datetime import datetime
import uuid
from uuid import UUID as PY_UUID

from sqlalchemy import DateTime, func
from sqlalchemy.dialects.postgresql import UUID as PG_UUID
from sqlalchemy.orm import Mapped, mapped_column
import uuid6


class TimestampMixin:
    """
    Add columns to a mapped class
    created_at: DateTime, `on create` trigger
    updated_at: DateTime, `on update` trigger
    """

    __abstract__ = True

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=func.now(), server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=func.now(),
        server_default=func.now(),
        onupdate=func.now(),
    )


class UUIDIDMixin:
    """
    Add a UUID v4 primary key to a mapped class
    """

    __abstract__ = True

    id: Mapped[PY_UUID] = mapped_column(
        PG_UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )


class UUID7IDMixin:
    """
    Add a time-ordered UUID v7 primary key to a mapped class.

    Rows listed newest first (script history) stay clustered in the index.
    """

    __abstract__ = True

    id: Mapped[PY_UUID] = mapped_column(
        PG_UUID(as_uuid=True), primary_key=True, default=uuid6.uuid7
    )
