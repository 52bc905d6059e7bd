from datetime import timedelta
from typing import cast
from uuid import UUID, uuid4

import jwt

from src.core.utils.datetime_utils import get_utc_now
from src.main.config import config
from src.user.auth.exceptions import InvalidTokenException, TokenExpiredException
from src.user.auth.jwt_payload_schema import JWTPayload, TokenMode


def _secret_for(mode: TokenMode) -> str:
    if mode == "access_token":
        return config.jwt.JWT_ACCESS_SECRET_KEY
    return config.jwt.JWT_REFRESH_SECRET_KEY


def _encode(user_id: UUID | str, mode: TokenMode, lifetime: timedelta) -> str:
    issued_at = get_utc_now()
    payload: JWTPayload = {
        "sub": str(user_id),
        "exp": int((issued_at + lifetime).timestamp()),
        "iat": int(issued_at.timestamp()),
        "mode": mode,
        "jti": str(uuid4()),
    }
    encoded_jwt = jwt.encode(
        dict(payload), _secret_for(mode), algorithm=config.jwt.ALGORITHM
    )
    return str(encoded_jwt)


def create_access_token(user_id: UUID | str) -> str:
    """
    Create a new JWT access token.

    Access tokens are stateless: they are never stored and are accepted until
    they expire.
    """
    return _encode(
        user_id,
        "access_token",
        timedelta(minutes=config.jwt.ACCESS_TOKEN_EXPIRE_MINUTES),
    )


def create_refresh_token(user_id: UUID | str) -> str:
    """
    Create a new JWT refresh token.

    The caller is responsible for persisting it on the user record; only the
    stored value is accepted by the refresh endpoint.
    """
    return _encode(
        user_id,
        "refresh_token",
        timedelta(minutes=config.jwt.REFRESH_TOKEN_EXPIRE_MINUTES),
    )


def decode_token(token: str, mode: TokenMode) -> JWTPayload:
    """
    Verify signature, expiry and kind of a token.

    Raises:
        TokenExpiredException: the token is well formed and signed but expired
        InvalidTokenException: any other verification failure
    """
    try:
        payload = jwt.decode(
            token,
            _secret_for(mode),
            algorithms=[config.jwt.ALGORITHM],
            options={"require": ["sub", "exp", "mode"]},
        )
    except jwt.ExpiredSignatureError:
        raise TokenExpiredException()
    except jwt.PyJWTError:
        raise InvalidTokenException()

    if payload.get("mode") != mode:
        raise InvalidTokenException()
    return cast(JWTPayload, payload)


def parse_subject(payload: JWTPayload) -> UUID:
    try:
        return UUID(payload["sub"])
    except (KeyError, TypeError, ValueError):
        raise InvalidTokenException()
