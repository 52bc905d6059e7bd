import json

import pytest
from sqlalchemy.exc import IntegrityError

from src.core.middleware import PostgresqlErrorHandlingResult, handle_postgresql_error


class DummyPgError:
    def __init__(self, sqlstate: str, message: str) -> None:
        self.sqlstate = sqlstate
        self.message = message

    def __str__(self) -> str:
        return self.message


def build_integrity_error(sqlstate: str, message: str) -> IntegrityError:
    return IntegrityError("msg", None, DummyPgError(sqlstate, message))  # type: ignore[arg-type]


def test_handle_postgresql_error_not_null_returns_500() -> None:
    err = build_integrity_error(
        "23502", 'null value in column "email" of relation "users"'
    )

    result: PostgresqlErrorHandlingResult = handle_postgresql_error(err)

    assert result.response.status_code == 500
    assert json.loads(result.response.body) == {
        "success": False,
        "error": "Infrastructure error",
        "message": "Unexpected error",
    }
    assert result.send_to_sentry is True
    assert result.is_server_error is True


def test_handle_postgresql_error_check_violation_is_server_error() -> None:
    err = build_integrity_error(
        "23514", 'new row violates check constraint "ck_users_credits_non_negative"'
    )

    result = handle_postgresql_error(err)

    assert result.response.status_code == 500
    assert result.send_to_sentry is True


@pytest.mark.parametrize(
    ("sqlstate", "message"),
    [
        ("23505", "Resource already exists"),
        ("23503", "Referenced resource does not exist"),
    ],
)
def test_handle_postgresql_error_client_errors(sqlstate: str, message: str) -> None:
    result = handle_postgresql_error(build_integrity_error(sqlstate, "violation"))

    assert result.response.status_code == 400
    assert json.loads(result.response.body)["message"] == message
    assert result.send_to_sentry is False
    assert result.is_server_error is False
