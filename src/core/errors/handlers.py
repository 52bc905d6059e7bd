from collections.abc import Awaitable, Callable
import logging
from typing import Any, TypeVar, cast

from fastapi import Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import ValidationError
import sentry_sdk
from starlette.responses import Response

from loggers import get_logger
from src.core.errors.exceptions import CoreException, TooManyRequestsException

response_logger = get_logger("app.request.error_response", plain_format=True)

# Type for exception handler
ExcType = TypeVar("ExcType", bound=Exception)
HandlerCallable = Callable[[Request, Exception], Awaitable[Response]]

VALUE_ERROR_PREFIX = "Value error, "


def as_exception_handler(handler: Any) -> HandlerCallable:
    """
    Convert a handler class instance to a compatible exception handler callable.
    This helps mypy understand the correct typing for FastAPI exception handlers.

    Args:
        handler: An instance of an exception handler class with __call__ method

    Returns:
        A callable with the correct type signature for FastAPI exception handlers
    """
    return cast(HandlerCallable, handler.__call__)


def format_error_response(
    error_type: str, message: str | None, code: str | None = None
) -> dict[str, Any]:
    """
    Format error response content for JSONResponse

    Args:
        error_type: Type of error (e.g., "Unauthorized", "Instance not found")
        message: Detailed error message
        code: Machine-readable error code, omitted when not set

    Returns:
        Dictionary with error information
    """
    content: dict[str, Any] = {
        "success": False,
        "error": error_type,
        "message": message or "No additional details available",
    }
    if code:
        content["code"] = code
    return content


def format_log_message(
    request: Request,
    error_type: str,
    message: str | None,
    additional_info: dict[str, Any] | None = None,
    include_request_path: bool = False,
) -> str:
    """
    Format error message for logging

    Args:
        request: FastAPI Request object
        error_type: Type of error
        message: Error message
        additional_info: Additional context information for logs only (not shown to clients)
        include_request_path: Include request path and method in the log message

    Returns:
        Formatted log message
    """
    raw_msg = message or "No additional details available"
    msg = " ".join(raw_msg.split())
    if len(msg) > 500:
        msg = msg[:497] + "..."

    et = (error_type or "").strip()
    err = (et[:1].upper() + et[1:]) if et else "Error"

    request_id = request.headers.get("x-request-id") or getattr(
        getattr(request, "state", object()), "request_id", None
    )

    prefix = f"[{request_id}] " if request_id else ""
    log_msg = f"{prefix}[{err}] {msg}"

    if include_request_path:
        log_msg = f"{prefix}[{err}] {request.method} {request.url.path} | {msg}"

    if additional_info:
        sensitive = {
            "authorization",
            "token",
            "refresh_token",
            "password",
            "secret",
            "api_key",
            "api-key",
        }

        def mask(k: str, v: Any) -> str:
            return "***" if k.lower() in sensitive else repr(v)

        additional_str = ", ".join(
            f"{k}={mask(k, additional_info[k])}" for k in sorted(additional_info)
        )
        log_msg = f"{log_msg} | Additional info: {additional_str}"

    return log_msg


class CoreExceptionHandler:
    """Renders a CoreException subclass with a fixed status code and category."""

    status_code: int = 400
    error_type: str = "Bad request"
    log_level: int = logging.INFO
    report_to_sentry: bool = False

    async def __call__(self, request: Request, exc: CoreException) -> JSONResponse:
        log_msg = format_log_message(
            request,
            self.error_type,
            exc.message,
            exc.additional_info,
            include_request_path=True,
        )
        response_logger.log(self.log_level, log_msg)
        if self.report_to_sentry:
            sentry_sdk.capture_exception(exc)
        return JSONResponse(
            status_code=self.status_code,
            content=format_error_response(self.error_type, exc.message, exc.code),
        )


class InfrastructureExceptionHandler(CoreExceptionHandler):
    status_code = 500
    error_type = "Infrastructure error"
    log_level = logging.ERROR
    report_to_sentry = True


class ServiceUnavailableExceptionHandler(CoreExceptionHandler):
    status_code = 503
    error_type = "Service unavailable"
    log_level = logging.ERROR
    report_to_sentry = True


class InstanceNotFoundExceptionHandler(CoreExceptionHandler):
    status_code = 404
    error_type = "Instance not found"


class InstanceProcessingExceptionHandler(CoreExceptionHandler):
    error_type = "Instance processing error"


class UnauthorizedExceptionHandler(CoreExceptionHandler):
    status_code = 401
    error_type = "Unauthorized"
    log_level = logging.WARNING


class AccessForbiddenExceptionHandler(CoreExceptionHandler):
    status_code = 403
    error_type = "Forbidden"
    log_level = logging.WARNING


class PermissionDeniedExceptionHandler(CoreExceptionHandler):
    status_code = 403
    error_type = "Permission Denied"
    log_level = logging.WARNING


class TooManyRequestsExceptionHandler(CoreExceptionHandler):
    status_code = 429
    error_type = "Too many requests"
    log_level = logging.WARNING

    async def __call__(
        self, request: Request, exc: TooManyRequestsException
    ) -> JSONResponse:
        response = await super().__call__(request, exc)
        response.headers["Retry-After"] = str(exc.retry_after)
        return response


# ----- Validation Handlers ----- #
class RequestValidationExceptionHandler:
    async def __call__(
        self, request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        error_type = "Request validation error"
        safe_detail = jsonable_encoder(exc.errors())
        log_msg = format_log_message(
            request,
            error_type,
            str(safe_detail),
            include_request_path=True,
        )
        response_logger.debug(log_msg)
        content = format_error_response(error_type, first_error_message(exc.errors()))
        content["detail"] = safe_detail
        return JSONResponse(status_code=400, content=content)


class ValidationErrorExceptionHandler:
    async def __call__(self, request: Request, exc: ValidationError) -> JSONResponse:
        error_type = "Backend validation error"
        safe_detail = jsonable_encoder(exc.errors())
        log_msg = format_log_message(
            request,
            error_type,
            str(safe_detail),
            include_request_path=True,
        )
        response_logger.error(log_msg)
        sentry_sdk.capture_exception(exc)
        return JSONResponse(
            status_code=500,
            content=format_error_response(error_type, "Unexpected error"),
        )


def first_error_message(errors: Any) -> str | None:
    """Human readable message of the first validation error."""
    for error in errors or []:
        msg = str(error.get("msg", "")).strip()
        if msg.startswith(VALUE_ERROR_PREFIX):
            msg = msg[len(VALUE_ERROR_PREFIX) :]
        loc = [str(part) for part in error.get("loc", ()) if part != "body"]
        if not msg:
            continue
        if error.get("type") == "missing" and loc:
            return f"{loc[-1]} is required"
        return msg
    return None
