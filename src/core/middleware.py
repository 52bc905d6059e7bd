from collections.abc import Awaitable, Callable
from dataclasses import dataclass
import time

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
import sentry_sdk
from sqlalchemy.exc import IntegrityError, OperationalError, ProgrammingError
from starlette.responses import Response

from loggers import get_logger
from src.core.errors.handlers import format_error_response

logger = get_logger(__name__)
timing_logger = get_logger("src.request.timing", plain_format=True)
UNEXPECTED_ERROR_DETAIL = "Unexpected error"
SLOW_REQUEST_SECONDS = 2.0
# LLM calls dominate generation latency
SLOW_PATH_PREFIXES = ("/api/scripts/generate",)


@dataclass(slots=True)
class PostgresqlErrorHandlingResult:
    response: JSONResponse
    send_to_sentry: bool
    is_server_error: bool


def _error_response(status_code: int, error_type: str, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code, content=format_error_response(error_type, message)
    )


def register_middlewares(app: FastAPI) -> None:
    """Registers all custom middlewares in proper order"""

    @app.middleware("http")
    async def security_headers_middleware(
        request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        response = await call_next(request)
        response.headers.setdefault("X-Frame-Options", "DENY")
        response.headers.setdefault("Content-Security-Policy", "frame-ancestors 'none'")
        response.headers.setdefault("X-Content-Type-Options", "nosniff")
        return response

    @app.middleware("http")
    async def request_timing_middleware(
        request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        start_time = time.perf_counter()
        response = await call_next(request)
        process_time = time.perf_counter() - start_time

        path = request.url.path
        expected_slow = path.startswith(SLOW_PATH_PREFIXES)
        if process_time < SLOW_REQUEST_SECONDS or expected_slow:
            log = timing_logger.info
            category = "[OK]"
        else:
            log = timing_logger.warning
            category = "[SLOW]"

        log(
            "%s %s %s |%.3fs|%s",
            category,
            request.method,
            path,
            process_time,
            response.status_code,
        )
        return response

    @app.middleware("http")
    async def database_error_middleware(
        request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        try:
            return await call_next(request)
        except IntegrityError as exc:
            handled_result = handle_postgresql_error(exc)
            log_message = "Integrity error at %s: %s"
            if handled_result.is_server_error:
                logger.error(log_message, request.url.path, exc.orig, exc_info=True)
            else:
                logger.info(log_message, request.url.path, exc.orig)
            if handled_result.send_to_sentry:
                sentry_sdk.capture_exception(exc)
            return handled_result.response
        except OperationalError as e:
            logger.error("Database connection error at %s: %s", request.url.path, e.orig)
            sentry_sdk.capture_exception(e)
            return _error_response(
                503,
                "Service unavailable",
                "Database connection error. Please try again later.",
            )
        except ProgrammingError as e:
            logger.error("SQL error at %s: %s", request.url.path, e.orig)
            sentry_sdk.capture_exception(e)
            return _error_response(500, "Infrastructure error", "Database query error.")

    @app.middleware("http")
    async def unexpected_error_middleware(
        request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        try:
            return await call_next(request)
        except Exception as e:
            logger.exception("Unexpected error at %s: %s", request.url.path, e)
            sentry_sdk.capture_exception(e)
            return _error_response(500, "Internal error", UNEXPECTED_ERROR_DETAIL)


def handle_postgresql_error(
    error: IntegrityError,
) -> PostgresqlErrorHandlingResult:
    """
    Map a PostgreSQL IntegrityError to a response, a Sentry flag and a log severity.

    Unique violations are client errors (a concurrent duplicate slipped past
    the pre-check); ledger check constraints failing are bugs.
    """
    sqlstate = getattr(error.orig, "sqlstate", None)

    if sqlstate == "23505":  # UniqueViolation
        return PostgresqlErrorHandlingResult(
            response=_error_response(
                400, "Instance processing error", "Resource already exists"
            ),
            send_to_sentry=False,
            is_server_error=False,
        )
    if sqlstate == "23503":  # ForeignKeyViolation
        return PostgresqlErrorHandlingResult(
            response=_error_response(
                400, "Instance processing error", "Referenced resource does not exist"
            ),
            send_to_sentry=False,
            is_server_error=False,
        )

    # NotNull, Check and Exclusion violations
    return PostgresqlErrorHandlingResult(
        response=_error_response(500, "Infrastructure error", UNEXPECTED_ERROR_DETAIL),
        send_to_sentry=True,
        is_server_error=True,
    )
