"""Tests for Result."""
import pytest

from obelixq.results import ErrorKind, Result, ResultError


def test_ok():
    result = Result.ok(42)

    assert result.success
    assert result.unwrap() == 42


def test_fail_unwrap_raises_with_kind():
    result = Result.fail(ErrorKind.NOT_FOUND, "Appointment 'x' not found")

    assert not result.success
    with pytest.raises(ResultError) as exc_info:
        result.unwrap()
    assert exc_info.value.kind == ErrorKind.NOT_FOUND
    assert "not found" in str(exc_info.value)
