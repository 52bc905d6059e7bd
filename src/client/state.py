from collections.abc import Callable
from dataclasses import dataclass
from enum import StrEnum

from loggers import get_logger
from src.client.errors import SessionWriteError
from src.client.events import AUTH_CLEARED, SESSION_REFRESHED, EventBus
from src.client.schemas import SessionUser
from src.client.session import SESSION_KEYS, Session, SessionStore
from src.client.storage import StorageChange

logger = get_logger(__name__)


class AuthStatus(StrEnum):
    UNINITIALIZED = "uninitialized"
    UNAUTHENTICATED = "unauthenticated"
    AUTHENTICATED = "authenticated"


@dataclass(frozen=True)
class AuthSnapshot:
    status: AuthStatus
    user: SessionUser | None = None

    @property
    def is_authenticated(self) -> bool:
        return self.status == AuthStatus.AUTHENTICATED

    @property
    def is_initialized(self) -> bool:
        return self.status != AuthStatus.UNINITIALIZED


StateListener = Callable[[AuthSnapshot], None]


class AuthState:
    """
    Single source of truth for "who is logged in" inside one tab.

    Starts UNINITIALIZED and resolves exactly once in `initialize`. After that
    it follows the persisted session: own logins and logouts, writes made by
    other tabs, and forced clears broadcast on the event bus.
    """

    def __init__(self, session: SessionStore, events: EventBus) -> None:
        self.session = session
        self.events = events
        self._snapshot = AuthSnapshot(AuthStatus.UNINITIALIZED)
        self._listeners: list[StateListener] = []
        self._unsubscribers: list[Callable[[], None]] = []

    @property
    def snapshot(self) -> AuthSnapshot:
        return self._snapshot

    @property
    def status(self) -> AuthStatus:
        return self._snapshot.status

    @property
    def user(self) -> SessionUser | None:
        return self._snapshot.user

    @property
    def is_authenticated(self) -> bool:
        return self._snapshot.is_authenticated

    @property
    def is_initialized(self) -> bool:
        return self._snapshot.is_initialized

    def initialize(self) -> AuthSnapshot:
        if self.is_initialized:
            return self._snapshot
        self._unsubscribers = [
            self.session.storage.add_listener(self._on_storage_change),
            self.events.subscribe(AUTH_CLEARED, self.clear_auth),
            self.events.subscribe(SESSION_REFRESHED, self._on_session_refreshed),
        ]
        self._apply(self.session.read())
        logger.debug("Auth state initialized as %s", self.status)
        return self._snapshot

    def close(self) -> None:
        for unsubscribe in self._unsubscribers:
            unsubscribe()
        self._unsubscribers = []

    def login(
        self, user: SessionUser, access_token: str, refresh_token: str | None = None
    ) -> AuthSnapshot:
        """
        Persist a new session, then mark the tab authenticated.

        Without `refresh_token` the one already stored is kept. Any failure
        leaves the tab fully logged out.
        """
        if refresh_token is None:
            current = self.session.read()
            refresh_token = current.refresh_token if current else None
        try:
            stored = self.session.write(access_token, refresh_token or "", user)
        except SessionWriteError:
            self.clear_auth()
            raise
        self._apply(stored)
        return self._snapshot

    def update_user(self, user: SessionUser) -> AuthSnapshot:
        current = self.session.read()
        if current is None:
            self.clear_auth()
            return self._snapshot
        return self.login(user, current.access_token, current.refresh_token)

    def logout(self) -> None:
        self.clear_auth()

    def clear_auth(self) -> None:
        self.session.clear()
        if self._snapshot.status == AuthStatus.AUTHENTICATED:
            self._set(AuthSnapshot(AuthStatus.UNAUTHENTICATED))

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def revalidate(self) -> AuthSnapshot:
        self._apply(self.session.read())
        return self._snapshot

    def _on_session_refreshed(self) -> None:
        self.revalidate()

    def _on_storage_change(self, change: StorageChange) -> None:
        if change.key is None or change.key in SESSION_KEYS:
            self.revalidate()

    def _apply(self, session: Session | None) -> None:
        if session is None:
            snapshot = AuthSnapshot(AuthStatus.UNAUTHENTICATED)
        else:
            snapshot = AuthSnapshot(AuthStatus.AUTHENTICATED, session.user)
        if snapshot != self._snapshot:
            self._set(snapshot)

    def _set(self, snapshot: AuthSnapshot) -> None:
        self._snapshot = snapshot
        for listener in list(self._listeners):
            listener(snapshot)
