from src.core.errors.exceptions import AccessForbiddenException


class QuotaExceededException(AccessForbiddenException):
    """Plan quota used up. Not an authentication failure: clients must keep the session."""

    code = "QUOTA_EXCEEDED"
