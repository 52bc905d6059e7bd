from dataclasses import dataclass

from pydantic import ValidationError

from loggers import get_logger
from src.client.errors import SessionWriteError
from src.client.schemas import SessionUser
from src.client.storage import TabStorage

logger = get_logger(__name__)

ACCESS_TOKEN_KEY = "accessToken"
REFRESH_TOKEN_KEY = "refreshToken"
USER_DATA_KEY = "userData"
SESSION_KEYS = (ACCESS_TOKEN_KEY, REFRESH_TOKEN_KEY, USER_DATA_KEY)


@dataclass(frozen=True)
class Session:
    access_token: str
    refresh_token: str
    user: SessionUser


class SessionStore:
    """
    Persists the session as three storage keys that exist together or not at all.

    `read` never returns a partial session: if only some keys are present or the
    user snapshot cannot be parsed, the leftovers are wiped and None is returned.
    `write` checks what actually landed in storage and wipes everything when
    it does not match.
    """

    def __init__(self, storage: TabStorage) -> None:
        self.storage = storage

    def read(self) -> Session | None:
        access_token = self.storage.get_item(ACCESS_TOKEN_KEY)
        refresh_token = self.storage.get_item(REFRESH_TOKEN_KEY)
        user_data = self.storage.get_item(USER_DATA_KEY)

        if not (access_token and refresh_token and user_data):
            if access_token or refresh_token or user_data:
                logger.warning("Discarding incomplete persisted session.")
                self.clear()
            return None

        try:
            user = SessionUser.model_validate_json(user_data)
        except ValidationError:
            logger.warning("Discarding persisted session with unreadable user data.")
            self.clear()
            return None
        return Session(access_token, refresh_token, user)

    def write(
        self, access_token: str, refresh_token: str, user: SessionUser
    ) -> Session:
        if not (access_token and refresh_token and user.id and user.email):
            self.clear()
            raise SessionWriteError("Access token, refresh token and user are required")

        user_data = user.model_dump_json(by_alias=True)
        with self.storage.batch():
            self.storage.set_item(ACCESS_TOKEN_KEY, access_token)
            self.storage.set_item(REFRESH_TOKEN_KEY, refresh_token)
            self.storage.set_item(USER_DATA_KEY, user_data)

        stored = (
            self.storage.get_item(ACCESS_TOKEN_KEY),
            self.storage.get_item(REFRESH_TOKEN_KEY),
            self.storage.get_item(USER_DATA_KEY),
        )
        if stored != (access_token, refresh_token, user_data):
            self.clear()
            raise SessionWriteError("Session was not persisted")
        return Session(access_token, refresh_token, user)

    def clear(self) -> None:
        with self.storage.batch():
            for key in SESSION_KEYS:
                self.storage.remove_item(key)

    @property
    def access_token(self) -> str | None:
        session = self.read()
        return session.access_token if session else None
