"""Tests for domain exceptions (error_code, message, details)."""

import pytest

from followgraph.domain.exceptions import (
    DuplicateFollowException,
    FollowGraphException,
    SqlNotConfiguredException,
    ValidationException,
)


def test_followgraph_exception_default_error_code() -> None:
    """Base FollowGraphException uses class name as error_code when not provided."""
    exc = FollowGraphException("Something failed")
    assert exc.message == "Something failed"
    assert exc.error_code == "FollowGraphException"
    assert exc.details == {}


def test_followgraph_exception_custom_error_code_and_details() -> None:
    exc = FollowGraphException("Oops", error_code="CUSTOM", details={"key": "value"})
    assert exc.error_code == "CUSTOM"
    assert exc.details == {"key": "value"}
    assert str(exc) == "Oops"


def test_validation_exception_with_field() -> None:
    exc = ValidationException("Unknown column", field="colour")
    assert exc.error_code == "VALIDATION_ERROR"
    assert exc.details == {"field": "colour"}


def test_validation_exception_without_field() -> None:
    assert ValidationException("bad").details == {}


def test_sql_not_configured_exception() -> None:
    exc = SqlNotConfiguredException()
    assert exc.error_code == "SQL_NOT_CONFIGURED"
    assert "DATABASE_URL" in exc.message


def test_duplicate_follow_exception() -> None:
    exc = DuplicateFollowException(3, 7)
    assert exc.error_code == "DUPLICATE_FOLLOW"
    assert exc.details == {"subject_id": 3, "target_id": 7}
    assert "3 -> 7" in exc.message


@pytest.mark.parametrize(
    "exc",
    [
        ValidationException("x"),
        SqlNotConfiguredException(),
        DuplicateFollowException(1, 2),
    ],
)
def test_all_inherit_base(exc: FollowGraphException) -> None:
    assert isinstance(exc, FollowGraphException)
