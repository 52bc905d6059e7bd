from typing import Literal, TypedDict

TokenMode = Literal["access_token", "refresh_token"]


class JWTPayload(TypedDict):
    """Type definition for JWT token payload"""

    sub: str  # User ID
    exp: int  # Expiration timestamp
    iat: int  # Issued at
    mode: TokenMode
    jti: str  # Keeps tokens minted within the same second distinct
