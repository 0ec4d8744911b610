"""Tests for per-node outcomes and result-map helpers."""

import errno

import pytest

from dockfleet.core.errors import OperationFailedError
from dockfleet.execution.outcome import (
    ErrorDescriptor,
    ErrorDetailLevel,
    Failure,
    Success,
    all_succeeded,
    failed_node_names,
    outcomes_to_dict,
    partition_outcomes,
    error_message,
    successful_node_names,
)


class Unprintable(Exception):
    def __str__(self):
        raise RuntimeError("no text")


def _raise(error: Exception) -> Exception:
    try:
        raise error
    except Exception as exc:
        return exc


class TestSuccessAndFailure:
    """Tests for the Success / Failure pair."""

    def test_success_accessors(self):
        outcome = Success(5, attempts=2)
        assert outcome.is_ok() is True
        assert outcome.is_err() is False
        assert outcome.unwrap() == 5
        assert outcome.unwrap_or(0) == 5
        assert outcome.map(lambda v: v * 2) == Success(10, attempts=2)

    def test_failure_accessors(self):
        outcome = Failure(ErrorDescriptor("down"))
        assert outcome.is_ok() is False
        assert outcome.is_err() is True
        assert outcome.unwrap_or("fallback") == "fallback"
        assert outcome.map(lambda v: v * 2) is outcome

    def test_failure_unwrap_raises(self):
        with pytest.raises(ValueError, match="down"):
            Failure(ErrorDescriptor("down")).unwrap()

    def test_to_dict(self):
        assert Success("x").to_dict() == {"ok": True, "value": "x", "attempts": 1}
        assert Failure(ErrorDescriptor("down"), attempts=3).to_dict() == {
            "ok": False,
            "error": {"message": "down"},
            "attempts": 3,
        }

    def test_outcomes_are_immutable(self):
        outcome = Success(1)
        with pytest.raises(AttributeError):
            outcome.value = 2


class TestErrorDescriptor:
    """Tests for ErrorDescriptor.from_exception."""

    def test_basic(self):
        descriptor = ErrorDescriptor.from_exception(ValueError("bad"), ErrorDetailLevel.BASIC)
        assert descriptor == ErrorDescriptor("bad")

    def test_standard_for_dockfleet_error(self):
        error = OperationFailedError("pull", "image", "nginx", "Failed to pull image: x", code=7)
        descriptor = ErrorDescriptor.from_exception(error)
        assert descriptor.exception_kind == "dockfleet.core.errors.OperationFailedError"
        assert descriptor.code == 7
        assert descriptor.stack_trace is None

    def test_errno_used_as_code(self):
        error = ConnectionRefusedError(errno.ECONNREFUSED, "Connection refused")
        descriptor = ErrorDescriptor.from_exception(error, "standard")
        assert descriptor.exception_kind == "ConnectionRefusedError"
        assert descriptor.code == errno.ECONNREFUSED

    def test_detailed_without_traceback(self):
        descriptor = ErrorDescriptor.from_exception(RuntimeError("never raised"), "detailed")
        assert descriptor.file is None
        assert descriptor.line is None
        assert "RuntimeError: never raised" in descriptor.stack_trace

    def test_detailed_with_traceback(self):
        descriptor = ErrorDescriptor.from_exception(_raise(KeyError("k")), "detailed")
        assert descriptor.file.endswith("test_outcome.py")
        assert descriptor.line > 0

    def test_invalid_level(self):
        with pytest.raises(ValueError):
            ErrorDescriptor.from_exception(ValueError("x"), "verbose")

    @pytest.mark.parametrize("level", ["basic", "standard", "detailed"])
    def test_unprintable_exception(self, level):
        descriptor = ErrorDescriptor.from_exception(_raise(Unprintable()), level)
        assert descriptor.message == "<unprintable Unprintable>"

    def test_error_message(self):
        assert error_message(ValueError("bad")) == "bad"
        assert error_message(Unprintable()) == "<unprintable Unprintable>"


class TestHelpers:
    """Tests for result-map reduction helpers."""

    @pytest.fixture
    def results(self):
        return {
            "b": Success(2),
            "a": Success(1),
            "c": Failure(ErrorDescriptor("c down")),
        }

    def test_all_succeeded(self, results):
        assert all_succeeded(results) is False
        assert all_succeeded({"a": Success(1)}) is True
        assert all_succeeded({}) is True

    def test_node_names_sorted(self, results):
        assert successful_node_names(results) == ["a", "b"]
        assert failed_node_names(results) == ["c"]

    def test_partition(self, results):
        values, errors = partition_outcomes(results)
        assert values == {"b": 2, "a": 1}
        assert errors == {"c": ErrorDescriptor("c down")}

    def test_outcomes_to_dict(self, results):
        assert outcomes_to_dict(results)["c"] == {
            "ok": False,
            "error": {"message": "c down"},
            "attempts": 1,
        }
