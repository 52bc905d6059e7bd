from typing import Any

import httpx

from loggers import get_logger
from src.client.errors import ApiError
from src.client.http import AuthClient
from src.client.schemas import (
    AdminUserRecord,
    ScriptRecord,
    SessionUser,
    SubscriptionStatus,
    TokenPair,
    UsageSummary,
)
from src.client.state import AuthSnapshot, AuthState

logger = get_logger(__name__)


class AuthApi:
    """Account endpoints; successful logins and registrations start a session."""

    def __init__(self, client: AuthClient, state: AuthState) -> None:
        self.client = client
        self.state = state

    async def register(self, email: str, password: str) -> AuthSnapshot:
        response = await self.client.post(
            "/api/auth/register", json={"email": email, "password": password}
        )
        return self._start_session(response)

    async def login(self, email: str, password: str) -> AuthSnapshot:
        response = await self.client.post(
            "/api/auth/login", json={"email": email, "password": password}
        )
        return self._start_session(response)

    async def logout(self) -> None:
        """Always ends the local session, even when the server call fails."""
        current = self.client.session.read()
        body = {"refreshToken": current.refresh_token} if current else {}
        try:
            await self.client.post("/api/auth/logout", json=body)
        except (ApiError, httpx.HTTPError) as e:
            logger.warning("Server logout failed, clearing local session: %s", e)
        finally:
            self.state.logout()

    async def update_password(self, current_password: str, new_password: str) -> None:
        await self.client.put(
            "/api/auth/update-password",
            json={"currentPassword": current_password, "newPassword": new_password},
        )

    async def update_email(self, new_email: str, password: str) -> SessionUser:
        response = await self.client.put(
            "/api/auth/update-email",
            json={"newEmail": new_email, "password": password},
        )
        user = SessionUser.model_validate(response.json()["user"])
        self.state.update_user(user)
        return user

    def _start_session(self, response: httpx.Response) -> AuthSnapshot:
        tokens = TokenPair.model_validate(response.json())
        if tokens.user is None:
            raise ApiError(response.status_code, "Response did not include the user")
        return self.state.login(tokens.user, tokens.access_token, tokens.refresh_token)


class ScriptsApi:
    def __init__(self, client: AuthClient) -> None:
        self.client = client

    async def generate(self, description: str) -> str:
        response = await self.client.post(
            "/api/scripts/generate", json={"description": description}
        )
        return response.json()["script"]

    async def save(
        self,
        name: str,
        script: str,
        description: str = "",
        original_description: str | None = None,
    ) -> str:
        payload: dict[str, Any] = {
            "name": name,
            "description": description,
            "script": script,
            "originalDescription": original_description,
        }
        response = await self.client.post("/api/scripts/save", json=payload)
        return response.json()["scriptId"]

    async def history(self) -> list[ScriptRecord]:
        response = await self.client.get("/api/scripts/history")
        return [ScriptRecord.model_validate(item) for item in response.json()["scripts"]]

    async def update(self, script_id: str, name: str, description: str = "") -> None:
        await self.client.put(
            f"/api/scripts/{script_id}", json={"name": name, "description": description}
        )

    async def delete(self, script_id: str) -> None:
        await self.client.delete(f"/api/scripts/{script_id}")


class UserApi:
    def __init__(self, client: AuthClient) -> None:
        self.client = client

    async def get_usage(self) -> UsageSummary:
        response = await self.client.get("/api/user")
        return UsageSummary.model_validate(response.json())

    async def subscription_status(self) -> SubscriptionStatus:
        response = await self.client.get("/api/subscriptions/status")
        return SubscriptionStatus.model_validate(response.json()["data"])

    async def cancel_subscription(self) -> None:
        await self.client.post("/api/subscriptions/cancel")

    async def list_users(self) -> list[AdminUserRecord]:
        response = await self.client.get("/api/admin/users")
        return [AdminUserRecord.model_validate(item) for item in response.json()["users"]]
