from __future__ import annotations

from collections.abc import AsyncGenerator

import pytest

from src.core.database.session import get_session


class FakeSessionContext:
    def __init__(self, value: object) -> None:
        self._value = value
        self.closed = False

    async def __aenter__(self) -> object:
        return self._value

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: object | None,
    ) -> None:
        self.closed = True
        return None


class FakeSessionMaker:
    def __init__(self, value: object) -> None:
        self._value = value
        self.contexts: list[FakeSessionContext] = []

    def __call__(self) -> FakeSessionContext:
        context = FakeSessionContext(self._value)
        self.contexts.append(context)
        return context


@pytest.mark.asyncio
async def test_get_session_yields_session_from_factory(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    fake_session = object()
    fake_factory = FakeSessionMaker(fake_session)
    monkeypatch.setattr("src.core.database.session.async_session", fake_factory)

    session_generator: AsyncGenerator[object] = get_session()
    session = await session_generator.__anext__()

    assert session is fake_session
    await session_generator.aclose()
    assert fake_factory.contexts[0].closed is True
