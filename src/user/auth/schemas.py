from pydantic import ConfigDict, EmailStr, Field

from src.core.schemas import (
    ApiModel,
    EmailNormalizationMixin,
    StrongPasswordValidationMixin,
    SuccessResponse,
)
from src.user.schemas import UserSnapshotModel


class CreateUserModel(StrongPasswordValidationMixin, EmailNormalizationMixin, ApiModel):
    email: EmailStr
    password: str


class LoginUserModel(EmailNormalizationMixin, ApiModel):
    email: EmailStr
    password: str = Field(min_length=1)


class RefreshTokenModel(ApiModel):
    """Body of refresh and logout calls; a missing token is handled by the use case."""

    model_config = ConfigDict(extra="ignore")

    refresh_token: str | None = None


class UpdatePasswordModel(StrongPasswordValidationMixin, ApiModel):
    current_password: str = Field(min_length=1)
    new_password: str


class UpdateEmailModel(EmailNormalizationMixin, ApiModel):
    new_email: EmailStr
    password: str = Field(min_length=1)


class TokenPairResponse(SuccessResponse):
    access_token: str
    refresh_token: str
    user: UserSnapshotModel
