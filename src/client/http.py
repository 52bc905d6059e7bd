import asyncio
from collections import deque
from typing import Any

import httpx
from pydantic import ValidationError

from loggers import get_logger
from src.client.config import ClientConfig
from src.client.errors import (
    ApiError,
    NoRefreshTokenError,
    RefreshError,
    RefreshFailedError,
    SessionWriteError,
)
from src.client.events import AUTH_CLEARED, SESSION_REFRESHED, EventBus
from src.client.navigation import Navigator
from src.client.schemas import TokenPair
from src.client.session import SessionStore

logger = get_logger(__name__)

AUTH_PATH_MARKER = "/api/auth/"
REFRESH_PATH = "/api/auth/refresh"


def is_auth_endpoint(path: str) -> bool:
    return AUTH_PATH_MARKER in path


class AuthClient:
    """
    HTTP client that keeps requests authenticated across an access token expiry.

    A request rejected with a token error triggers one refresh; requests that
    fail the same way while that refresh is running wait for it in FIFO order
    instead of starting their own. Each request is retried at most once and
    auth endpoints are never retried. When the session cannot be recovered it
    is cleared, AUTH_CLEARED is emitted and the navigator is sent to the login
    page unless it already shows a guest-only page.
    """

    def __init__(
        self,
        config: ClientConfig,
        session: SessionStore,
        events: EventBus,
        navigator: Navigator,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.config = config
        self.session = session
        self.events = events
        self.navigator = navigator
        self._http = httpx.AsyncClient(
            base_url=config.base_url, timeout=config.timeout, transport=transport
        )
        self._is_refreshing = False
        self._pending: deque[asyncio.Future[str]] = deque()

    async def __aenter__(self) -> "AuthClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._http.aclose()

    @property
    def is_refreshing(self) -> bool:
        return self._is_refreshing

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    async def request(
        self,
        method: str,
        url: str,
        *,
        json: Any = None,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
    ) -> httpx.Response:
        """
        Send a request and return the successful response.

        Raises:
            ApiError: the server answered with an error status
            RefreshError: the session expired and could not be renewed
            httpx.TransportError: network failures and timeouts, unchanged
        """
        request = self._http.build_request(
            method, url, json=json, params=params, headers=headers
        )
        access_token = self.session.access_token
        if access_token:
            request.headers["Authorization"] = f"Bearer {access_token}"
        return await self._send(request, retried=False)

    async def get(self, url: str, **kwargs: Any) -> httpx.Response:
        return await self.request("GET", url, **kwargs)

    async def post(self, url: str, **kwargs: Any) -> httpx.Response:
        return await self.request("POST", url, **kwargs)

    async def put(self, url: str, **kwargs: Any) -> httpx.Response:
        return await self.request("PUT", url, **kwargs)

    async def delete(self, url: str, **kwargs: Any) -> httpx.Response:
        return await self.request("DELETE", url, **kwargs)

    async def _send(self, request: httpx.Request, retried: bool) -> httpx.Response:
        response = await self._http.send(request)
        if response.is_success:
            return response

        error = ApiError.from_response(response)
        auth_endpoint = is_auth_endpoint(request.url.path)

        if error.is_token_error and not retried and not auth_endpoint:
            access_token = await self._fresh_access_token()
            return await self._send(self._with_token(request, access_token), retried=True)

        if (
            error.status_code in (401, 403)
            and not auth_endpoint
            and not error.is_quota_error
        ):
            logger.info(
                "Auth error %s on %s, clearing session.",
                error.status_code,
                request.url.path,
            )
            self._force_logout(redirect=True)
        raise error

    async def _fresh_access_token(self) -> str:
        if self._is_refreshing:
            waiter: asyncio.Future[str] = asyncio.get_running_loop().create_future()
            self._pending.append(waiter)
            return await waiter

        self._is_refreshing = True
        try:
            access_token = await self._refresh()
        except NoRefreshTokenError as e:
            self._drain(error=e)
            self._force_logout(redirect=False)
            raise
        except RefreshError as e:
            self._drain(error=e)
            self._force_logout(redirect=True)
            raise
        except asyncio.CancelledError:
            self._drain(error=RefreshFailedError("Token refresh was cancelled"))
            raise
        else:
            self._drain(access_token=access_token)
            return access_token
        finally:
            self._is_refreshing = False

    async def _refresh(self) -> str:
        current = self.session.read()
        if current is None:
            raise NoRefreshTokenError()

        try:
            response = await self._http.post(
                REFRESH_PATH,
                json={"refreshToken": current.refresh_token},
                timeout=self.config.refresh_timeout,
            )
        except httpx.HTTPError as e:
            raise RefreshFailedError(f"Token refresh failed: {e}") from e

        if not response.is_success:
            error = ApiError.from_response(response)
            raise RefreshFailedError(error.message, error.status_code, error.code)

        try:
            tokens = TokenPair.model_validate(response.json())
        except (ValueError, ValidationError) as e:
            raise RefreshFailedError("Malformed refresh response") from e

        try:
            self.session.write(
                tokens.access_token,
                tokens.refresh_token or current.refresh_token,
                tokens.user or current.user,
            )
        except SessionWriteError as e:
            raise RefreshFailedError(str(e)) from e
        logger.debug("Access token refreshed.")
        self.events.emit(SESSION_REFRESHED)
        return tokens.access_token

    def _drain(
        self, access_token: str | None = None, error: BaseException | None = None
    ) -> None:
        while self._pending:
            waiter = self._pending.popleft()
            if waiter.done():
                continue
            if error is not None:
                waiter.set_exception(error)
            else:
                waiter.set_result(access_token or "")

    def _force_logout(self, redirect: bool) -> None:
        self.session.clear()
        self.events.emit(AUTH_CLEARED)
        if redirect and self.navigator.current_path not in self.config.guest_only_paths:
            self.navigator.replace(self.config.login_path)

    @staticmethod
    def _with_token(request: httpx.Request, access_token: str) -> httpx.Request:
        headers = httpx.Headers(request.headers)
        headers["Authorization"] = f"Bearer {access_token}"
        return httpx.Request(
            request.method,
            request.url,
            headers=headers,
            content=request.content,
            extensions=request.extensions,
        )
