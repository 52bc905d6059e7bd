from __future__ import annotations

from fastapi import FastAPI
import httpx
import pytest

from src.client.app import create_client_app
from src.client.config import ClientConfig
from src.client.errors import ApiError
from src.client.navigation import MemoryNavigator
from tests.factories.token_factory import build_expired_token
from tests.factories.user_factory import DEFAULT_PASSWORD
from tests.fakes.services import FakeScriptGenerator
from tests.helpers.client import (
    BASE_URL,
    FakeApiServer,
    build_client_app,
    error_response,
    log_in,
    request_json,
)

USER_BODY = {
    "id": "user-1",
    "email": "user@example.com",
    "role": "user",
    "subscriptionPlan": "free",
    "scriptsGeneratedCount": 0,
}


@pytest.mark.asyncio
async def test_login_starts_session() -> None:
    server = FakeApiServer()
    server.respond(
        "POST",
        "/api/auth/login",
        httpx.Response(
            200,
            json={
                "success": True,
                "accessToken": "access-1",
                "refreshToken": "refresh-1",
                "user": USER_BODY,
            },
        ),
    )
    app = build_client_app(server, path="/login")

    snapshot = await app.auth.login("user@example.com", DEFAULT_PASSWORD)
    await app.aclose()

    assert snapshot.is_authenticated is True
    assert snapshot.user is not None
    assert snapshot.user.subscription_plan == "free"
    session = app.session.read()
    assert session is not None
    assert (session.access_token, session.refresh_token) == ("access-1", "refresh-1")


@pytest.mark.asyncio
async def test_failed_login_leaves_session_untouched() -> None:
    server = FakeApiServer()
    server.respond(
        "POST", "/api/auth/login", error_response(401, "Invalid email or password")
    )
    app = build_client_app(server, path="/login")

    with pytest.raises(ApiError) as exc_info:
        await app.auth.login("user@example.com", "wrong")
    await app.aclose()

    assert exc_info.value.message == "Invalid email or password"
    assert app.state.is_authenticated is False
    assert server.refresh_calls == 0


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "failure",
    [
        error_response(500, "Internal error"),
        error_response(401, "Invalid refresh token", "INVALID_REFRESH_TOKEN"),
    ],
)
async def test_logout_clears_session_even_when_server_fails(
    failure: httpx.Response,
) -> None:
    server = FakeApiServer()
    server.respond("POST", "/api/auth/logout", failure)
    app = build_client_app(server)
    log_in(app)

    await app.auth.logout()
    await app.aclose()

    assert app.state.is_authenticated is False
    assert app.session.read() is None
    assert request_json(server.calls_to("/api/auth/logout")[0]) == {
        "refreshToken": "refresh-1"
    }


@pytest.mark.asyncio
async def test_logout_survives_network_failure() -> None:
    server = FakeApiServer()

    async def unreachable(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    server.route("POST", "/api/auth/logout", unreachable)
    app = build_client_app(server)
    log_in(app)

    await app.auth.logout()
    await app.aclose()

    assert app.session.read() is None


@pytest.mark.asyncio
async def test_update_email_refreshes_cached_user() -> None:
    server = FakeApiServer()
    server.respond(
        "PUT",
        "/api/auth/update-email",
        httpx.Response(
            200, json={"success": True, "user": {**USER_BODY, "email": "new@example.com"}}
        ),
    )
    app = build_client_app(server)
    log_in(app)

    user = await app.auth.update_email("new@example.com", DEFAULT_PASSWORD)
    await app.aclose()

    assert user.email == "new@example.com"
    assert app.state.user == user
    session = app.session.read()
    assert session is not None
    assert session.access_token == "access-1"


@pytest.mark.asyncio
async def test_subscription_status_and_admin_list_parsing() -> None:
    server = FakeApiServer()
    server.respond(
        "GET",
        "/api/subscriptions/status",
        httpx.Response(
            200,
            json={
                "success": True,
                "data": {"plan": "monthly", "status": "active", "endDate": None, "credits": 0},
            },
        ),
    )
    server.respond(
        "GET",
        "/api/admin/users",
        httpx.Response(
            200,
            json={
                "success": True,
                "users": [
                    {
                        "id": "user-1",
                        "email": "admin@example.com",
                        "role": "admin",
                        "subscriptionPlan": "free",
                        "credits": 0,
                        "scriptsGeneratedCount": 4,
                        "unexpectedField": True,
                    }
                ],
            },
        ),
    )
    app = build_client_app(server)
    log_in(app)

    status = await app.user.subscription_status()
    users = await app.user.list_users()
    await app.aclose()

    assert status.plan == "monthly"
    assert status.status == "active"
    assert [u.scripts_generated_count for u in users] == [4]


@pytest.mark.asyncio
async def test_client_against_application(
    app_with_fakes: FastAPI, fake_generator: FakeScriptGenerator
) -> None:
    client = create_client_app(
        config=ClientConfig(base_url=BASE_URL),
        navigator=MemoryNavigator("/register"),
        transport=httpx.ASGITransport(app=app_with_fakes),
    )

    snapshot = await client.auth.register("sdk@example.com", DEFAULT_PASSWORD)
    assert snapshot.is_authenticated is True

    script = await client.scripts.generate("Send hello on ctrl+j")
    assert script == fake_generator.script
    script_id = await client.scripts.save(
        "Hello", script, original_description="Send hello on ctrl+j"
    )
    history = await client.scripts.history()
    assert [record.id for record in history] == [script_id]

    # Simulate the access token running out mid-session
    session = client.session.read()
    assert session is not None
    client.session.write(
        build_expired_token(session.user.id), session.refresh_token, session.user
    )

    usage = await client.user.get_usage()
    assert usage.scripts_generated == 1
    assert usage.limit == 3
    renewed = client.session.read()
    assert renewed is not None
    assert renewed.refresh_token != session.refresh_token

    with pytest.raises(ApiError) as exc_info:
        await client.user.list_users()
    assert exc_info.value.code == "ADMIN_REQUIRED"
    assert client.state.is_authenticated is False

    await client.aclose()
