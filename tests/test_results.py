"""Tests for results module."""
from idlegarden.results import CommandResult, Failure


def test_ok():
    result = CommandResult.ok(value=5)
    assert result
    assert result.value == 5
    assert result.reason is None


def test_fail():
    result = CommandResult.fail(Failure.INSUFFICIENT_FUNDS)
    assert not result
    assert result.reason is Failure.INSUFFICIENT_FUNDS
    assert result.reason.value == "Cannot afford"
