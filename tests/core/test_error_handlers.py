import json
import logging
from unittest.mock import Mock

from fastapi import Request
from fastapi.exceptions import RequestValidationError
import pytest

from src.core.errors import handlers
from src.core.errors.exceptions import (
    AccessForbiddenException,
    CoreException,
    InfrastructureException,
    InstanceNotFoundException,
    InstanceProcessingException,
    PermissionDeniedException,
    ServiceUnavailableException,
    TooManyRequestsException,
    UnauthorizedException,
)


def _build_request(headers: list[tuple[bytes, bytes]] | None = None) -> Request:
    scope = {
        "type": "http",
        "method": "GET",
        "http_version": "1.1",
        "scheme": "http",
        "path": "/api/resource",
        "root_path": "",
        "raw_path": b"/api/resource",
        "query_string": b"",
        "asgi": {"version": "3.0"},
        "headers": headers or [],
        "client": ("127.0.0.1", 8000),
        "server": ("testserver", 80),
    }
    return Request(scope)


@pytest.fixture(autouse=True)
def _patch_response_logger(monkeypatch: pytest.MonkeyPatch) -> logging.Logger:
    logger = logging.getLogger("response_logger_test")
    logger.handlers = []
    logger.setLevel(logging.DEBUG)
    logger.propagate = True
    monkeypatch.setattr(handlers, "response_logger", logger)
    return logger


@pytest.fixture
def sentry_capture(monkeypatch: pytest.MonkeyPatch) -> Mock:
    capture = Mock()
    monkeypatch.setattr(handlers.sentry_sdk, "capture_exception", capture)
    return capture


def test_format_log_message_masks_sensitive_data() -> None:
    request = _build_request(headers=[(b"x-request-id", b"req-123")])

    message = handlers.format_log_message(
        request,
        "unauthorized",
        "token leaked",
        {"refresh_token": "secret", "note": "safe"},
        include_request_path=True,
    )

    assert "[req-123] [Unauthorized] GET /api/resource | token leaked" in message
    assert "refresh_token=***" in message
    assert "note='safe'" in message


def test_format_log_message_truncates_long_text() -> None:
    request = _build_request()
    long_message = "a" * 600

    message = handlers.format_log_message(request, "error", long_message)

    assert message.endswith("...")
    assert message.count("a") == 497


def test_format_error_response_includes_code_only_when_set() -> None:
    assert handlers.format_error_response("Unauthorized", "nope") == {
        "success": False,
        "error": "Unauthorized",
        "message": "nope",
    }
    assert handlers.format_error_response("Unauthorized", None, "AUTH_REQUIRED") == {
        "success": False,
        "error": "Unauthorized",
        "message": "No additional details available",
        "code": "AUTH_REQUIRED",
    }


@pytest.mark.asyncio
async def test_core_exception_handler(caplog: pytest.LogCaptureFixture) -> None:
    handler = handlers.CoreExceptionHandler()
    request = _build_request()
    caplog.set_level(logging.INFO, logger="response_logger_test")

    response = await handler(request, CoreException("failed to process"))

    assert response.status_code == 400
    assert json.loads(response.body) == {
        "success": False,
        "error": "Bad request",
        "message": "failed to process",
    }
    assert any("Bad request" in record.message for record in caplog.records)


@pytest.mark.asyncio
async def test_handler_renders_exception_code() -> None:
    handler = handlers.UnauthorizedExceptionHandler()

    response = await handler(
        _build_request(), UnauthorizedException("Token expired", code="TOKEN_EXPIRED")
    )

    assert response.status_code == 401
    assert json.loads(response.body)["code"] == "TOKEN_EXPIRED"


@pytest.mark.asyncio
async def test_too_many_requests_handler_sets_retry_after() -> None:
    handler = handlers.TooManyRequestsExceptionHandler()

    response = await handler(_build_request(), TooManyRequestsException(retry_after=42))

    assert response.status_code == 429
    assert response.headers["Retry-After"] == "42"
    body = json.loads(response.body)
    assert body["code"] == "RATE_LIMITED"
    assert body["error"] == "Too many requests"


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "handler_cls,exc_cls,status,error_type,log_level",
    [
        (
            handlers.InstanceNotFoundExceptionHandler,
            InstanceNotFoundException,
            404,
            "Instance not found",
            logging.INFO,
        ),
        (
            handlers.InstanceProcessingExceptionHandler,
            InstanceProcessingException,
            400,
            "Instance processing error",
            logging.INFO,
        ),
        (
            handlers.UnauthorizedExceptionHandler,
            UnauthorizedException,
            401,
            "Unauthorized",
            logging.WARNING,
        ),
        (
            handlers.AccessForbiddenExceptionHandler,
            AccessForbiddenException,
            403,
            "Forbidden",
            logging.WARNING,
        ),
        (
            handlers.PermissionDeniedExceptionHandler,
            PermissionDeniedException,
            403,
            "Permission Denied",
            logging.WARNING,
        ),
    ],
)
async def test_other_handlers(
    handler_cls: type[handlers.CoreExceptionHandler],
    exc_cls: type[CoreException],
    status: int,
    error_type: str,
    log_level: int,
    caplog: pytest.LogCaptureFixture,
    sentry_capture: Mock,
) -> None:
    handler_instance = handler_cls()
    request = _build_request()
    caplog.set_level(log_level, logger="response_logger_test")

    response = await handler_instance(request, exc_cls("failure"))

    assert response.status_code == status
    assert json.loads(response.body) == {
        "success": False,
        "error": error_type,
        "message": "failure",
    }
    assert any(
        record.levelno == log_level
        and error_type in record.message
        and "GET /api/resource" in record.message
        for record in caplog.records
    )
    sentry_capture.assert_not_called()


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "handler_cls,exc_cls,status",
    [
        (handlers.InfrastructureExceptionHandler, InfrastructureException, 500),
        (handlers.ServiceUnavailableExceptionHandler, ServiceUnavailableException, 503),
    ],
)
async def test_server_error_handlers_report_to_sentry(
    handler_cls: type[handlers.CoreExceptionHandler],
    exc_cls: type[CoreException],
    status: int,
    sentry_capture: Mock,
) -> None:
    exc = exc_cls("backend down")

    response = await handler_cls()(_build_request(), exc)

    assert response.status_code == status
    sentry_capture.assert_called_once_with(exc)


@pytest.mark.asyncio
async def test_request_validation_handler_returns_first_error() -> None:
    handler = handlers.RequestValidationExceptionHandler()
    exc = RequestValidationError(
        [
            {"type": "missing", "loc": ("body", "email"), "msg": "Field required"},
            {"type": "value_error", "loc": ("body", "password"), "msg": "Too short"},
        ]
    )

    response = await handler(_build_request(), exc)

    assert response.status_code == 400
    body = json.loads(response.body)
    assert body["success"] is False
    assert body["error"] == "Request validation error"
    assert body["message"] == "email is required"
    assert len(body["detail"]) == 2


@pytest.mark.parametrize(
    ("errors", "expected"),
    [
        ([], None),
        (
            [{"type": "value_error", "loc": ("body", "password"), "msg": "Value error, Password too weak"}],
            "Password too weak",
        ),
        (
            [
                {"type": "value_error", "loc": ("body",), "msg": ""},
                {"type": "string_too_long", "loc": ("body", "prompt"), "msg": "Too long"},
            ],
            "Too long",
        ),
    ],
)
def test_first_error_message(errors: list[dict[str, object]], expected: str | None) -> None:
    assert handlers.first_error_message(errors) == expected
