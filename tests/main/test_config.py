import pytest
from pydantic import ValidationError

from src.main.config import (
    AppConfig,
    JWTConfig,
    PostgresConfig,
    RedisConfig,
    UsageConfig,
    config,
    parse_list_value,
)


def _base_app_config_data() -> dict[str, object]:
    return {
        "VERSION": "1.0.0",
        "DEBUG": False,
        "LOG_LEVEL": "INFO",
        "LOG_LEVEL_FILE": "WARNING",
        "CORS_ALLOWED_ORIGINS": "*",
        "CORS_ALLOW_CREDENTIALS": True,
        "CORS_ALLOWED_METHODS": "*",
        "CORS_ALLOWED_HEADERS": "*",
        "CORS_EXPOSE_HEADERS": "*",
        "TRUST_PROXY_HEADERS": "true",
        "PROJECT_NAME": "app",
    }


def test_parse_cors_list_json_string() -> None:
    data = _base_app_config_data()
    data["CORS_ALLOWED_ORIGINS"] = '["https://a.com", "https://b.com"]'

    app_config = AppConfig(**data)

    assert app_config.CORS_ALLOWED_ORIGINS == ["https://a.com", "https://b.com"]


def test_parse_cors_list_semicolon_delimiter() -> None:
    data = _base_app_config_data()
    data["CORS_ALLOWED_METHODS"] = "GET;POST;PUT"

    app_config = AppConfig(**data)

    assert app_config.CORS_ALLOWED_METHODS == ["GET", "POST", "PUT"]


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        ("a, b ,c", ["a", "b", "c"]),
        ("", []),
        (["x"], ["x"]),
        ("[not json", ["[not json"]),
    ],
)
def test_parse_list_value(value: object, expected: list[str]) -> None:
    assert parse_list_value(value) == expected


def test_usage_config_normalizes_unlimited_emails() -> None:
    usage = UsageConfig(UNLIMITED_EMAILS=" Owner@Example.com ; qa@example.com ")

    assert usage.UNLIMITED_EMAILS == ["owner@example.com", "qa@example.com"]


def test_jwt_config_defaults_to_short_access_and_week_long_refresh() -> None:
    jwt_config = JWTConfig(JWT_ACCESS_SECRET_KEY="a", JWT_REFRESH_SECRET_KEY="r")

    assert jwt_config.ACCESS_TOKEN_EXPIRE_MINUTES == 15
    assert jwt_config.REFRESH_TOKEN_EXPIRE_MINUTES == 7 * 24 * 60
    assert jwt_config.ALGORITHM == "HS256"


def test_jwt_config_rejects_non_positive_lifetime() -> None:
    with pytest.raises(ValidationError):
        JWTConfig(
            JWT_ACCESS_SECRET_KEY="a",
            JWT_REFRESH_SECRET_KEY="r",
            ACCESS_TOKEN_EXPIRE_MINUTES=0,
        )


def test_connection_strings() -> None:
    redis_config = RedisConfig(
        REDIS_HOST="cache", REDIS_PORT=6380, REDIS_PASSWORD="pw", REDIS_DATABASE="2"
    )
    postgres_config = PostgresConfig(
        DB_ECHO=False,
        POSTGRES_USER="u",
        POSTGRES_PASSWORD="p",
        POSTGRES_HOST="db",
        POSTGRES_PORT=5432,
        POSTGRES_DB="ahk",
    )

    assert redis_config.dsn == "redis://:pw@cache:6380/2"
    assert postgres_config.dsn_async == "postgresql+asyncpg://u:p@db:5432/ahk"


def test_test_settings_are_loaded() -> None:
    assert config.app.TESTING is True
    assert config.jwt.JWT_ACCESS_SECRET_KEY == "test-access-secret"
    assert config.usage.UNLIMITED_EMAILS == ["owner@example.com"]
    assert config.stripe.STRIPE_WEBHOOK_SECRET == "whsec_test_secret"
