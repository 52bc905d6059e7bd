from collections.abc import Callable
from unittest.mock import Mock

from fastapi import FastAPI
from fastapi.responses import PlainTextResponse
from fastapi.testclient import TestClient
import pytest
from sqlalchemy.exc import IntegrityError, OperationalError, ProgrammingError

import src.core.middleware as middleware


class DummyPgError:
    def __init__(self, sqlstate: str, detail: str) -> None:
        self.sqlstate = sqlstate
        self.detail = detail

    def __str__(self) -> str:
        return self.detail


def _make_app(exception_factory: Callable[[], Exception | None]) -> FastAPI:
    app = FastAPI()
    middleware.register_middlewares(app)

    @app.get("/boom")
    async def boom() -> PlainTextResponse:  # type: ignore[return]
        raise exception_factory()  # type: ignore[misc]

    @app.get("/ok")
    async def ok() -> PlainTextResponse:
        return PlainTextResponse("ok")

    @app.get("/api/scripts/generate")
    async def generate() -> PlainTextResponse:
        return PlainTextResponse("script")

    return app


def _integrity(sqlstate: str, detail: str = "violation") -> IntegrityError:
    return IntegrityError("msg", None, DummyPgError(sqlstate, detail))  # type: ignore[arg-type]


@pytest.fixture(autouse=True)
def sentry_capture(monkeypatch: pytest.MonkeyPatch) -> Mock:
    capture = Mock()
    monkeypatch.setattr(middleware.sentry_sdk, "capture_exception", capture)
    return capture


@pytest.fixture
def timing_logger(monkeypatch: pytest.MonkeyPatch) -> Mock:
    logger = Mock()
    monkeypatch.setattr(middleware, "timing_logger", logger)
    return logger


def test_security_headers_added() -> None:
    client = TestClient(_make_app(lambda: None))

    resp = client.get("/ok")

    assert resp.status_code == 200
    assert resp.headers["X-Frame-Options"] == "DENY"
    assert resp.headers["Content-Security-Policy"] == "frame-ancestors 'none'"
    assert resp.headers["X-Content-Type-Options"] == "nosniff"


def test_request_timing_logs_fast_request(timing_logger: Mock) -> None:
    client = TestClient(_make_app(lambda: None))

    client.get("/ok")

    timing_logger.info.assert_called_once()
    args = timing_logger.info.call_args.args
    assert args[1:4] == ("[OK]", "GET", "/ok")
    assert args[-1] == 200
    timing_logger.warning.assert_not_called()


def test_request_timing_flags_slow_request(
    timing_logger: Mock, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.setattr(middleware, "SLOW_REQUEST_SECONDS", 0.0)
    client = TestClient(_make_app(lambda: None))

    client.get("/ok")

    timing_logger.warning.assert_called_once()
    assert timing_logger.warning.call_args.args[1] == "[SLOW]"


def test_request_timing_tolerates_slow_generation(
    timing_logger: Mock, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.setattr(middleware, "SLOW_REQUEST_SECONDS", 0.0)
    client = TestClient(_make_app(lambda: None))

    client.get("/api/scripts/generate")

    timing_logger.info.assert_called_once()
    timing_logger.warning.assert_not_called()


def test_integrity_unique_violation(sentry_capture: Mock) -> None:
    client = TestClient(_make_app(lambda: _integrity("23505")))

    resp = client.get("/boom")

    assert resp.status_code == 400
    assert resp.json() == {
        "success": False,
        "error": "Instance processing error",
        "message": "Resource already exists",
    }
    sentry_capture.assert_not_called()


def test_integrity_foreign_key_violation() -> None:
    client = TestClient(_make_app(lambda: _integrity("23503")))

    resp = client.get("/boom")

    assert resp.status_code == 400
    assert resp.json()["message"] == "Referenced resource does not exist"


@pytest.mark.parametrize("sqlstate", ["23502", "23514", "99999"])
def test_integrity_server_side_violations(sqlstate: str, sentry_capture: Mock) -> None:
    client = TestClient(_make_app(lambda: _integrity(sqlstate)))

    resp = client.get("/boom")

    assert resp.status_code == 500
    assert resp.json() == {
        "success": False,
        "error": "Infrastructure error",
        "message": middleware.UNEXPECTED_ERROR_DETAIL,
    }
    sentry_capture.assert_called_once()


def test_operational_error() -> None:
    client = TestClient(
        _make_app(lambda: OperationalError("msg", None, Exception("connection refused")))
    )

    resp = client.get("/boom")

    assert resp.status_code == 503
    assert resp.json() == {
        "success": False,
        "error": "Service unavailable",
        "message": "Database connection error. Please try again later.",
    }


def test_programming_error() -> None:
    client = TestClient(
        _make_app(lambda: ProgrammingError("msg", None, Exception("syntax error")))
    )

    resp = client.get("/boom")

    assert resp.status_code == 500
    assert resp.json()["message"] == "Database query error."


def test_unexpected_error_middleware(sentry_capture: Mock) -> None:
    class Unexpected(Exception):
        pass

    client = TestClient(_make_app(lambda: Unexpected("boom")))

    resp = client.get("/boom")

    assert resp.status_code == 500
    assert resp.json() == {
        "success": False,
        "error": "Internal error",
        "message": middleware.UNEXPECTED_ERROR_DETAIL,
    }
    sentry_capture.assert_called_once()
