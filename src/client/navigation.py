from typing import Protocol


class Navigator(Protocol):
    @property
    def current_path(self) -> str: ...

    def replace(self, path: str) -> None: ...


class MemoryNavigator:
    """Navigator for headless use; remembers every forced redirect."""

    def __init__(self, initial_path: str = "/") -> None:
        self.history: list[str] = [initial_path]
        self.redirects: list[str] = []

    @property
    def current_path(self) -> str:
        return self.history[-1]

    def push(self, path: str) -> None:
        self.history.append(path)

    def replace(self, path: str) -> None:
        self.history[-1] = path
        self.redirects.append(path)
