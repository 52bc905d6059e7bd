from typing import Any


class CoreException(Exception):
    """
    Base class for domain errors rendered as JSON by the registered handlers.

    `code` is a machine-readable identifier returned to clients, `additional_info`
    only ends up in logs.
    """

    code: str | None = None
    default_message: str | None = None

    def __init__(
        self,
        message: str | None = None,
        additional_info: dict[str, Any] | None = None,
        code: str | None = None,
    ):
        self.message = message or self.default_message
        self.additional_info = additional_info
        if code is not None:
            self.code = code
        super().__init__(self.message)


class InfrastructureException(CoreException):
    pass


class ServiceUnavailableException(CoreException):
    pass


class InstanceNotFoundException(CoreException):
    pass


class InstanceProcessingException(CoreException):
    pass


class UnauthorizedException(CoreException):
    pass


class AccessForbiddenException(CoreException):
    pass


class PermissionDeniedException(CoreException):
    pass


class TooManyRequestsException(CoreException):
    code = "RATE_LIMITED"
    default_message = "Too many requests, please try again later."

    def __init__(self, retry_after: int, message: str | None = None) -> None:
        super().__init__(message, additional_info={"retry_after": retry_after})
        self.retry_after = retry_after
