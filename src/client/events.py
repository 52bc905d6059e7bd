from collections import defaultdict
from collections.abc import Callable

from loggers import get_logger

logger = get_logger(__name__)

# Emitted after the session was wiped without the user asking for it
AUTH_CLEARED = "auth_cleared"
# Emitted after a token refresh rewrote the session in this tab
SESSION_REFRESHED = "session_refreshed"

Listener = Callable[[], None]


class EventBus:
    """In-process publish/subscribe for session notifications."""

    def __init__(self) -> None:
        self._listeners: dict[str, list[Listener]] = defaultdict(list)

    def subscribe(self, event: str, listener: Listener) -> Callable[[], None]:
        """Register `listener`; call the returned function to unsubscribe."""
        self._listeners[event].append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners[event]:
                self._listeners[event].remove(listener)

        return unsubscribe

    def emit(self, event: str) -> None:
        for listener in list(self._listeners[event]):
            try:
                listener()
            except Exception:
                logger.exception("Listener for '%s' failed", event)

    def listener_count(self, event: str) -> int:
        return len(self._listeners[event])
