from typing import Any

import httpx

TOKEN_EXPIRED_CODE = "TOKEN_EXPIRED"
QUOTA_EXCEEDED_CODE = "QUOTA_EXCEEDED"


class AuthClientError(Exception):
    """Base class for failures raised by the client SDK itself."""


class ApiError(AuthClientError):
    """An error response reported by the server."""

    def __init__(
        self, status_code: int, message: str, code: str | None = None
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.message = message
        self.code = code

    @classmethod
    def from_response(cls, response: httpx.Response) -> "ApiError":
        body: Any
        try:
            body = response.json()
        except ValueError:
            body = None
        if not isinstance(body, dict):
            body = {}
        message = body.get("message") or body.get("error") or response.reason_phrase
        return cls(response.status_code, str(message), body.get("code"))

    @property
    def is_token_error(self) -> bool:
        return self.status_code == 401 and (
            self.code == TOKEN_EXPIRED_CODE or "token" in self.message
        )

    @property
    def is_quota_error(self) -> bool:
        return self.code == QUOTA_EXCEEDED_CODE

    def __repr__(self) -> str:
        return f"ApiError({self.status_code}, {self.message!r}, code={self.code!r})"


class SessionWriteError(AuthClientError):
    """The session could not be persisted completely."""


class RefreshError(AuthClientError):
    pass


class NoRefreshTokenError(RefreshError):
    def __init__(self) -> None:
        super().__init__("No refresh token")


class RefreshFailedError(RefreshError):
    def __init__(
        self,
        message: str = "Token refresh failed",
        status_code: int | None = None,
        code: str | None = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.code = code
