import os

os.environ.setdefault("TESTING", "true")

from collections.abc import AsyncGenerator, Generator  # noqa: E402

from fastapi import FastAPI  # noqa: E402
import httpx  # noqa: E402
import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402

import models  # noqa: E402,F401
from src.billing.gateway import get_billing_gateway  # noqa: E402
from src.core.database.session import get_session, get_unit_of_work  # noqa: E402
from src.core.redis.dependencies import get_redis_client  # noqa: E402
from src.main.config import Config, get_settings  # noqa: E402
from src.main.web import get_application  # noqa: E402
from src.script.services.generator import get_script_generator  # noqa: E402
from tests.fakes.db import FakeAsyncSession, FakeUnitOfWork  # noqa: E402
from tests.fakes.redis import InMemoryRedis  # noqa: E402
from tests.fakes.services import FakeBillingGateway, FakeScriptGenerator  # noqa: E402
from tests.helpers.limiter import noop_rate_limiter  # noqa: E402
from tests.helpers.overrides import DependencyOverrides  # noqa: E402
from tests.helpers.providers import ProvideAsyncValue, ProvideValue  # noqa: E402


@pytest.fixture(scope="session")
def settings() -> Config:
    return get_settings()


@pytest.fixture
def app() -> FastAPI:
    return get_application()


@pytest.fixture
def dependency_overrides(app: FastAPI) -> Generator[DependencyOverrides]:
    overrides = DependencyOverrides(app)
    yield overrides
    overrides.reset()


@pytest.fixture
def disable_rate_limiter(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(
        "src.core.limiter.depends.RateLimiter.__call__", noop_rate_limiter
    )


@pytest.fixture
def fake_redis() -> InMemoryRedis:
    return InMemoryRedis()


@pytest.fixture
def fake_session() -> FakeAsyncSession:
    return FakeAsyncSession()


@pytest.fixture
def fake_uow(fake_session: FakeAsyncSession) -> FakeUnitOfWork:
    return FakeUnitOfWork(session=fake_session)


@pytest.fixture
def fake_generator() -> FakeScriptGenerator:
    return FakeScriptGenerator()


@pytest.fixture
def fake_gateway(settings: Config) -> FakeBillingGateway:
    return FakeBillingGateway(webhook_secret=settings.stripe.STRIPE_WEBHOOK_SECRET)


@pytest.fixture
def app_with_fakes(
    app: FastAPI,
    dependency_overrides: DependencyOverrides,
    disable_rate_limiter: None,
    fake_redis: InMemoryRedis,
    fake_session: FakeAsyncSession,
    fake_uow: FakeUnitOfWork,
    fake_generator: FakeScriptGenerator,
    fake_gateway: FakeBillingGateway,
) -> FastAPI:
    dependency_overrides.set(get_redis_client, ProvideValue(fake_redis))
    dependency_overrides.set(get_session, ProvideAsyncValue(fake_session))
    dependency_overrides.set(get_unit_of_work, ProvideAsyncValue(fake_uow))
    dependency_overrides.set(get_script_generator, ProvideValue(fake_generator))
    dependency_overrides.set(get_billing_gateway, ProvideValue(fake_gateway))
    return app


@pytest_asyncio.fixture
async def async_client(app: FastAPI) -> AsyncGenerator[httpx.AsyncClient]:
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(
        transport=transport, base_url="http://testserver"
    ) as client:
        yield client


@pytest_asyncio.fixture
async def async_client_with_fakes(
    app_with_fakes: FastAPI,
) -> AsyncGenerator[httpx.AsyncClient]:
    transport = httpx.ASGITransport(app=app_with_fakes)
    async with httpx.AsyncClient(
        transport=transport, base_url="http://testserver"
    ) as client:
        yield client
