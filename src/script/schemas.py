from datetime import datetime
from uuid import UUID

from pydantic import Field, field_validator

from src.core.schemas import ApiModel, SuccessResponse
from src.core.validations import (
    DESCRIPTION_LETTER,
    DESCRIPTION_MAX_LENGTH,
    DESCRIPTION_MIN_LENGTH,
    DESCRIPTION_MIN_LETTERS,
)
from src.script.models import (
    ORIGINAL_DESCRIPTION_MAX_LENGTH,
    SCRIPT_DESCRIPTION_MAX_LENGTH,
    SCRIPT_NAME_MAX_LENGTH,
)

DESCRIPTION_REQUIRED_MESSAGE = "Description is required and must be a non-empty string"


class GenerateScriptModel(ApiModel):
    description: str

    @field_validator("description")
    @classmethod
    def validate_description(cls, value: str) -> str:
        trimmed = value.strip()
        if not trimmed:
            raise ValueError(DESCRIPTION_REQUIRED_MESSAGE)
        if len(value) > DESCRIPTION_MAX_LENGTH:
            raise ValueError(
                f"Description must be less than {DESCRIPTION_MAX_LENGTH} characters"
            )
        # Rejects digits and punctuation only input as well as near-empty text
        if (
            len(DESCRIPTION_LETTER.findall(trimmed)) < DESCRIPTION_MIN_LETTERS
            or len(trimmed) < DESCRIPTION_MIN_LENGTH
        ):
            raise ValueError(DESCRIPTION_REQUIRED_MESSAGE)
        return value


class GenerateScriptResponse(SuccessResponse):
    script: str


class SaveScriptModel(ApiModel):
    name: str = Field(max_length=SCRIPT_NAME_MAX_LENGTH)
    description: str | None = Field(None, max_length=SCRIPT_DESCRIPTION_MAX_LENGTH)
    script: str
    original_description: str | None = Field(
        None, max_length=ORIGINAL_DESCRIPTION_MAX_LENGTH
    )

    @field_validator("name")
    @classmethod
    def validate_name(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("Script name is required")
        return value.strip()

    @field_validator("script")
    @classmethod
    def validate_script(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("Script content is required")
        return value.strip()


class UpdateScriptModel(ApiModel):
    name: str = Field(max_length=SCRIPT_NAME_MAX_LENGTH)
    description: str | None = Field(None, max_length=SCRIPT_DESCRIPTION_MAX_LENGTH)

    @field_validator("name")
    @classmethod
    def validate_name(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("Script name is required")
        return value.strip()


class SaveScriptResponse(SuccessResponse):
    script_id: UUID


class ScriptViewModel(ApiModel):
    id: UUID
    name: str
    description: str
    script: str
    original_description: str | None = None
    created_at: datetime | None = None


class ScriptHistoryResponse(SuccessResponse):
    scripts: list[ScriptViewModel]
