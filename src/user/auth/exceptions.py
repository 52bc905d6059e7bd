from src.core.errors.exceptions import AccessForbiddenException, UnauthorizedException


class AuthRequiredException(UnauthorizedException):
    code = "AUTH_REQUIRED"
    default_message = "Authentication required"


class InvalidTokenException(UnauthorizedException):
    code = "INVALID_TOKEN"
    default_message = "Invalid token"


class TokenExpiredException(UnauthorizedException):
    code = "TOKEN_EXPIRED"
    default_message = "Token expired"


class UserNotFoundException(UnauthorizedException):
    code = "USER_NOT_FOUND"
    default_message = "User not found"


class MissingRefreshTokenException(UnauthorizedException):
    code = "MISSING_TOKEN"
    default_message = "Refresh token required"


class InvalidRefreshTokenException(UnauthorizedException):
    code = "INVALID_REFRESH_TOKEN"
    default_message = "Invalid refresh token"


class InvalidCredentialsException(UnauthorizedException):
    code = "INVALID_CREDENTIALS"
    default_message = "Invalid email or password"


class AdminRequiredException(AccessForbiddenException):
    code = "ADMIN_REQUIRED"
    default_message = "Admin access required"
