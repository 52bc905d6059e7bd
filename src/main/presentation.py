from fastapi import APIRouter, FastAPI
from fastapi.exceptions import RequestValidationError
from pydantic import ValidationError

from src.billing import routers as billing_routers
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
from src.core.errors.handlers import (
    AccessForbiddenExceptionHandler,
    CoreExceptionHandler,
    InfrastructureExceptionHandler,
    InstanceNotFoundExceptionHandler,
    InstanceProcessingExceptionHandler,
    PermissionDeniedExceptionHandler,
    RequestValidationExceptionHandler,
    ServiceUnavailableExceptionHandler,
    TooManyRequestsExceptionHandler,
    UnauthorizedExceptionHandler,
    ValidationErrorExceptionHandler,
    as_exception_handler,
)
from src.script import routers as script_routers
from src.system import routers as system_routers
from src.user import routers as user_routers
from src.user.auth import routers as auth_routers


def include_routers(app: FastAPI) -> None:
    """
    Includes API routers into the FastAPI application.

    Parameters:
        app (FastAPI): The FastAPI application instance to which routers will
        be added.

    Returns:
        None
    """
    api_router = APIRouter()
    api_router.include_router(auth_routers.router, prefix="/auth", tags=["Auth"])
    api_router.include_router(user_routers.router, prefix="/user", tags=["User"])
    api_router.include_router(
        script_routers.router, prefix="/scripts", tags=["Scripts"]
    )
    api_router.include_router(billing_routers.router, tags=["Billing"])
    api_router.include_router(
        user_routers.admin_router, prefix="/admin", tags=["Admin"]
    )

    app.include_router(api_router, prefix="/api")
    app.include_router(system_routers.router, tags=["System"])


def include_exceptions_handlers(app: FastAPI) -> None:
    """
    Registers exception handlers for various custom exceptions with the provided FastAPI
    application instance.

    Handlers are looked up along the exception's MRO, so subclasses such as
    TokenExpiredException are rendered by their base class handler with their
    own code and message.

    Parameters:
        app (FastAPI): The FastAPI application instance to which the exception handlers
        will be added.

    Returns:
        None
    """
    app.add_exception_handler(
        InfrastructureException, as_exception_handler(InfrastructureExceptionHandler())
    )
    app.add_exception_handler(
        ServiceUnavailableException,
        as_exception_handler(ServiceUnavailableExceptionHandler()),
    )
    app.add_exception_handler(
        RequestValidationError,
        as_exception_handler(RequestValidationExceptionHandler()),
    )
    app.add_exception_handler(
        ValidationError, as_exception_handler(ValidationErrorExceptionHandler())
    )
    app.add_exception_handler(
        InstanceNotFoundException,
        as_exception_handler(InstanceNotFoundExceptionHandler()),
    )
    app.add_exception_handler(
        InstanceProcessingException,
        as_exception_handler(InstanceProcessingExceptionHandler()),
    )
    app.add_exception_handler(
        CoreException,
        as_exception_handler(CoreExceptionHandler()),
    )
    app.add_exception_handler(
        AccessForbiddenException,
        as_exception_handler(AccessForbiddenExceptionHandler()),
    )
    app.add_exception_handler(
        UnauthorizedException, as_exception_handler(UnauthorizedExceptionHandler())
    )
    app.add_exception_handler(
        PermissionDeniedException,
        as_exception_handler(PermissionDeniedExceptionHandler()),
    )
    app.add_exception_handler(
        TooManyRequestsException,
        as_exception_handler(TooManyRequestsExceptionHandler()),
    )
