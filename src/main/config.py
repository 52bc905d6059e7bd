from functools import lru_cache
import json
import logging
import os
from pathlib import Path
from typing import Any

from dotenv import dotenv_values
from pydantic import BaseModel, ConfigDict, Field, field_validator

logger = logging.getLogger(__name__)

PROJECT_ROOT = Path(__file__).resolve().parents[2]


def parse_list_value(v: Any) -> list[str]:
    """Accept a JSON array, a comma separated or a semicolon separated string."""
    if isinstance(v, list):
        return v
    if isinstance(v, str) and v.strip().startswith("[") and v.strip().endswith("]"):
        try:
            parsed = json.loads(v)
            if isinstance(parsed, list):
                return [str(item) for item in parsed]
        except json.JSONDecodeError:
            pass
    sep = "," if "," in v else ";"
    return [item.strip() for item in v.split(sep) if item.strip()]


class RedisConfig(BaseModel):
    REDIS_HOST: str
    REDIS_PORT: int
    REDIS_PASSWORD: str
    REDIS_DATABASE: str

    model_config = ConfigDict(extra="ignore")

    @property
    def dsn(self) -> str:
        return (
            f"redis://:"
            f"{self.REDIS_PASSWORD}@"
            f"{self.REDIS_HOST}:"
            f"{self.REDIS_PORT}/"
            f"{self.REDIS_DATABASE}"
        )


class SentryConfig(BaseModel):
    SENTRY_DSN: str | None = None
    SENTRY_ENV: str = "development"
    SENTRY_ENABLED: bool = False

    model_config = ConfigDict(extra="ignore")


class JWTConfig(BaseModel):
    JWT_ACCESS_SECRET_KEY: str
    JWT_REFRESH_SECRET_KEY: str

    ALGORITHM: str = "HS256"

    ACCESS_TOKEN_EXPIRE_MINUTES: int = Field(15, gt=0)
    REFRESH_TOKEN_EXPIRE_MINUTES: int = Field(10080, gt=0)

    model_config = ConfigDict(extra="ignore")


class PostgresConfig(BaseModel):
    DB_ECHO: bool

    POSTGRES_USER: str
    POSTGRES_PASSWORD: str
    POSTGRES_HOST: str
    POSTGRES_PORT: int
    POSTGRES_DB: str

    model_config = ConfigDict(extra="ignore")

    @property
    def dsn_async(self) -> str:
        return (
            f"postgresql+asyncpg://"
            f"{self.POSTGRES_USER}:{self.POSTGRES_PASSWORD}@"
            f"{self.POSTGRES_HOST}:{self.POSTGRES_PORT}/"
            f"{self.POSTGRES_DB}"
        )


class UsageConfig(BaseModel):
    # Accounts listed here are never metered
    UNLIMITED_EMAILS: list[str] = Field(default_factory=list)

    model_config = ConfigDict(extra="ignore")

    @field_validator("UNLIMITED_EMAILS", mode="before")
    @classmethod
    def parse_emails(cls, v: Any) -> list[str]:
        return [email.strip().lower() for email in parse_list_value(v)]


class LLMConfig(BaseModel):
    OPENAI_API_KEY: str | None = None
    ANTHROPIC_API_KEY: str | None = None

    OPENAI_MODEL: str = "gpt-3.5-turbo"
    ANTHROPIC_MODEL: str = "claude-3-haiku-20240307"

    LLM_MAX_TOKENS: int = Field(1024, gt=0)
    LLM_MAX_RETRIES: int = Field(3, ge=1)
    LLM_RETRY_DELAY_SECONDS: float = Field(1.0, ge=0)
    LLM_TIMEOUT_SECONDS: float = Field(60.0, gt=0)

    model_config = ConfigDict(extra="ignore")


class StripeConfig(BaseModel):
    STRIPE_SECRET_KEY: str
    STRIPE_WEBHOOK_SECRET: str
    WEBHOOK_EVENT_TTL_SECONDS: int = Field(86_400, gt=0)

    model_config = ConfigDict(extra="ignore")


class AppConfig(BaseModel):
    VERSION: str
    DEBUG: bool = False
    TESTING: bool = False

    LOG_LEVEL: str
    LOG_LEVEL_FILE: str

    CORS_ALLOWED_ORIGINS: list[str] = Field(["*"])
    CORS_ALLOW_CREDENTIALS: bool = True
    CORS_ALLOWED_METHODS: list[str] = Field(["*"])
    CORS_ALLOWED_HEADERS: list[str] = Field(["*"])
    CORS_EXPOSE_HEADERS: list[str] = Field(["*"])

    TRUST_PROXY_HEADERS: bool

    PROJECT_NAME: str
    FRONTEND_URL: str = "http://localhost:5173"

    model_config = ConfigDict(extra="ignore")

    @field_validator(
        "CORS_ALLOWED_ORIGINS",
        "CORS_ALLOWED_METHODS",
        "CORS_ALLOWED_HEADERS",
        "CORS_EXPOSE_HEADERS",
        mode="before",
    )
    @classmethod
    def parse_cors_list(cls, v: Any) -> list[str]:
        return parse_list_value(v)


class Config(BaseModel):
    app: AppConfig
    jwt: JWTConfig
    llm: LLMConfig
    redis: RedisConfig
    usage: UsageConfig
    sentry: SentryConfig
    stripe: StripeConfig
    postgres: PostgresConfig

    model_config = ConfigDict(extra="ignore")

    @property
    def project_root(self) -> Path:
        return PROJECT_ROOT


@lru_cache
def get_settings() -> Config:
    """
    Cached settings factory. Override in tests via monkeypatching or dependency overrides.
    """
    env_filename = ".env.test" if os.getenv("TESTING") == "true" else ".env"
    env_file_values = dotenv_values(PROJECT_ROOT / env_filename)
    merged_env: dict[str, Any] = {
        k: v
        for k, v in {**env_file_values, **dict(os.environ)}.items()
        if v is not None
    }
    logger.debug("Loading settings from %s", env_filename)

    return Config(
        app=AppConfig(**merged_env),
        jwt=JWTConfig(**merged_env),
        llm=LLMConfig(**merged_env),
        redis=RedisConfig(**merged_env),
        usage=UsageConfig(**merged_env),
        sentry=SentryConfig(**merged_env),
        stripe=StripeConfig(**merged_env),
        postgres=PostgresConfig(**merged_env),
    )


config = get_settings()
