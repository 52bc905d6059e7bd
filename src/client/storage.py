from collections.abc import Callable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass

from loggers import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class StorageChange:
    """A write made by another tab; `key` is None when the storage was wiped."""

    key: str | None
    old_value: str | None
    new_value: str | None


StorageListener = Callable[[StorageChange], None]


class ProfileStorage:
    """
    Key-value storage shared by every tab of one browser profile.

    Tabs never see change notifications for their own writes. Writes made
    inside `batch()` are applied immediately but announced to the other tabs
    only when the batch ends, so a listener never observes half of a
    multi-key update.
    """

    def __init__(self) -> None:
        self._items: dict[str, str] = {}
        self._tabs: list["TabStorage"] = []
        self._batch_depth = 0
        self._queued: list[tuple["TabStorage", StorageChange]] = []

    def open_tab(self) -> "TabStorage":
        tab = TabStorage(self)
        self._tabs.append(tab)
        return tab

    def close_tab(self, tab: "TabStorage") -> None:
        if tab in self._tabs:
            self._tabs.remove(tab)

    def get(self, key: str) -> str | None:
        return self._items.get(key)

    def put(self, source: "TabStorage", key: str, value: str | None) -> None:
        old_value = self._items.get(key)
        if value is None:
            self._items.pop(key, None)
        else:
            self._items[key] = value
        if old_value != value:
            self._announce(source, StorageChange(key, old_value, value))

    @contextmanager
    def batch(self) -> Iterator[None]:
        self._batch_depth += 1
        try:
            yield
        finally:
            self._batch_depth -= 1
            if self._batch_depth == 0:
                queued, self._queued = self._queued, []
                for source, change in queued:
                    self._dispatch(source, change)

    def _announce(self, source: "TabStorage", change: StorageChange) -> None:
        if self._batch_depth:
            self._queued.append((source, change))
        else:
            self._dispatch(source, change)

    def _dispatch(self, source: "TabStorage", change: StorageChange) -> None:
        for tab in list(self._tabs):
            if tab is not source:
                tab.notify(change)


class TabStorage:
    """One tab's view of the profile storage."""

    def __init__(self, profile: ProfileStorage) -> None:
        self.profile = profile
        self._listeners: list[StorageListener] = []

    def get_item(self, key: str) -> str | None:
        return self.profile.get(key)

    def set_item(self, key: str, value: str) -> None:
        self.profile.put(self, key, value)

    def remove_item(self, key: str) -> None:
        self.profile.put(self, key, None)

    def batch(self):
        return self.profile.batch()

    def add_listener(self, listener: StorageListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def remove() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return remove

    def notify(self, change: StorageChange) -> None:
        for listener in list(self._listeners):
            try:
                listener(change)
            except Exception:
                # One broken listener must not hide the change from the rest
                logger.exception("Storage listener failed for key %s", change.key)
