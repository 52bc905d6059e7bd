from __future__ import annotations

from unittest.mock import AsyncMock, Mock

import httpx
import pytest
from sqlalchemy.exc import OperationalError

from src.main.config import config
from tests.fakes.db import FakeAsyncSession
from tests.fakes.redis import InMemoryRedis


@pytest.fixture(autouse=True)
def mute_sentry(monkeypatch: pytest.MonkeyPatch) -> Mock:
    capture = Mock()
    monkeypatch.setattr("src.system.services.sentry_sdk.capture_exception", capture)
    monkeypatch.setattr("src.core.errors.handlers.sentry_sdk.capture_exception", capture)
    return capture


@pytest.mark.asyncio
async def test_health_endpoint_ok(async_client_with_fakes: httpx.AsyncClient) -> None:
    response = await async_client_with_fakes.get("/health/")

    assert response.status_code == 200
    assert response.json() == {
        "status": "ok",
        "version": config.app.VERSION,
        "redis": True,
        "postgres": True,
    }


@pytest.mark.asyncio
async def test_health_endpoint_head(async_client_with_fakes: httpx.AsyncClient) -> None:
    response = await async_client_with_fakes.head("/health/")

    assert response.status_code == 200


@pytest.mark.asyncio
async def test_health_endpoint_reports_unavailable_database(
    async_client_with_fakes: httpx.AsyncClient,
    fake_session: FakeAsyncSession,
) -> None:
    fake_session.execute = AsyncMock(
        side_effect=OperationalError("SELECT 1", None, Exception("refused"))
    )

    response = await async_client_with_fakes.get("/health/")

    assert response.status_code == 503
    assert response.json() == {
        "success": False,
        "error": "Service unavailable",
        "message": "System health check failed",
    }


@pytest.mark.asyncio
async def test_health_endpoint_reports_unavailable_redis(
    async_client_with_fakes: httpx.AsyncClient,
    fake_redis: InMemoryRedis,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    monkeypatch.setattr(fake_redis, "ping", AsyncMock(side_effect=OSError("down")))

    response = await async_client_with_fakes.get("/health/")

    assert response.status_code == 503
