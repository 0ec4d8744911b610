"""
Per-node outcomes of a fan-out run.

A fan-out run never raises for a node's operational error. Instead every
targeted node gets exactly one :data:`Outcome` in the returned result map:

- :class:`Success` wraps the operation's return value.
- :class:`Failure` wraps an :class:`ErrorDescriptor` built from the
  exception, at the verbosity selected by :class:`ErrorDetailLevel`.

Architecture:
    ::

        ResultMap = dict[node_name, Outcome[T]]

        Outcome[T] = Success[T] | Failure
                         │            │
                       value        error: ErrorDescriptor
                       attempts     attempts

        ErrorDetailLevel
          BASIC     → message
          STANDARD  → message, exception_kind, code          (default)
          DETAILED  → + file, line, stack_trace

Examples:
    >>> results = {"a": Success(1), "b": Failure(ErrorDescriptor("boom"))}
    >>> all_succeeded(results)
    False
    >>> successful_node_names(results)
    ['a']
    >>> results["b"].to_dict()
    {'ok': False, 'error': {'message': 'boom'}, 'attempts': 1}

Tags:
    result-pattern, fan-out, error-descriptor, dockfleet

Doc-Types:
    - API Reference
"""

from __future__ import annotations

import traceback
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any, Generic, TypeVar

T = TypeVar("T")
U = TypeVar("U")


class ErrorDetailLevel(str, Enum):
    """How much of a captured exception ends up in an ErrorDescriptor."""

    BASIC = "basic"  # Message only
    STANDARD = "standard"  # Message + exception type + code
    DETAILED = "detailed"  # All details including stack trace


def _exception_kind(error: BaseException) -> str:
    cls = type(error)
    if cls.__module__ == "builtins":
        return cls.__qualname__
    return f"{cls.__module__}.{cls.__qualname__}"


def error_message(error: BaseException) -> str:
    """``str(error)``, or a placeholder when the exception cannot be rendered."""
    try:
        return str(error)
    except Exception:
        return f"<unprintable {type(error).__name__}>"


def _exception_code(error: BaseException) -> int:
    code = getattr(error, "code", None)
    if isinstance(code, int) and not isinstance(code, bool):
        return code
    errno = getattr(error, "errno", None)
    if isinstance(errno, int):
        return errno
    return 0


@dataclass(frozen=True, slots=True)
class ErrorDescriptor:
    """Structured description of an error captured on one node.

    Only ``message`` is always present. The optional fields stay ``None``
    unless the detail level asked for them, and :meth:`to_dict` omits them.
    """

    message: str
    exception_kind: str | None = None
    code: int | None = None
    file: str | None = None
    line: int | None = None
    stack_trace: str | None = None

    @classmethod
    def from_exception(
        cls,
        error: BaseException,
        level: ErrorDetailLevel = ErrorDetailLevel.STANDARD,
    ) -> ErrorDescriptor:
        """Describe ``error`` at the requested detail level."""
        level = ErrorDetailLevel(level)
        message = error_message(error)

        if level is ErrorDetailLevel.BASIC:
            return cls(message=message)

        kind = _exception_kind(error)
        code = _exception_code(error)

        if level is ErrorDetailLevel.STANDARD:
            return cls(message=message, exception_kind=kind, code=code)

        file = line = None
        frames = traceback.extract_tb(error.__traceback__) if error.__traceback__ else []
        if frames:
            # Innermost frame is where the error was raised.
            file, line = frames[-1].filename, frames[-1].lineno

        return cls(
            message=message,
            exception_kind=kind,
            code=code,
            file=file,
            line=line,
            stack_trace="".join(traceback.format_exception(type(error), error, error.__traceback__)),
        )

    def to_dict(self) -> dict[str, Any]:
        """Serialize, omitting fields the detail level left unset."""
        result: dict[str, Any] = {"message": self.message}
        for key in ("exception_kind", "code", "file", "line", "stack_trace"):
            value = getattr(self, key)
            if value is not None:
                result[key] = value
        return result


@dataclass(frozen=True, slots=True)
class Success(Generic[T]):
    """The operation returned ``value`` on this node.

    ``attempts`` counts invocations including the successful one.
    """

    value: T
    attempts: int = 1

    def is_ok(self) -> bool:
        return True

    def is_err(self) -> bool:
        return False

    def unwrap(self) -> T:
        """Get the value. Safe for Success."""
        return self.value

    def unwrap_or(self, default: T) -> T:
        return self.value

    def map(self, f: Callable[[T], U]) -> Success[U]:
        """Transform the value, keeping the attempt count."""
        return Success(f(self.value), self.attempts)

    def to_dict(self) -> dict[str, Any]:
        return {"ok": True, "value": self.value, "attempts": self.attempts}

    def __repr__(self) -> str:
        return f"Success({self.value!r})"


@dataclass(frozen=True, slots=True)
class Failure:
    """The operation raised on this node and retries (if any) were exhausted."""

    error: ErrorDescriptor
    attempts: int = 1

    def is_ok(self) -> bool:
        return False

    def is_err(self) -> bool:
        return True

    def unwrap(self) -> Any:
        """Raise: there is no value on a Failure."""
        raise ValueError(f"Called unwrap on Failure: {self.error.message}")

    def unwrap_or(self, default: T) -> T:
        return default

    def map(self, f: Callable[[Any], Any]) -> Failure:
        return self

    def to_dict(self) -> dict[str, Any]:
        return {"ok": False, "error": self.error.to_dict(), "attempts": self.attempts}

    def __repr__(self) -> str:
        return f"Failure({self.error.message!r})"


Outcome = Success[T] | Failure
ResultMap = dict[str, Outcome]


# =============================================================================
# RESULT MAP HELPERS
# =============================================================================


def all_succeeded(results: Mapping[str, Outcome]) -> bool:
    """True when every node's outcome is a Success (vacuously true if empty)."""
    return all(outcome.is_ok() for outcome in results.values())


def successful_node_names(results: Mapping[str, Outcome]) -> list[str]:
    """Names of nodes whose outcome is a Success, sorted."""
    return sorted(name for name, outcome in results.items() if outcome.is_ok())


def failed_node_names(results: Mapping[str, Outcome]) -> list[str]:
    """Names of nodes whose outcome is a Failure, sorted."""
    return sorted(name for name, outcome in results.items() if outcome.is_err())


def partition_outcomes(
    results: Mapping[str, Outcome],
) -> tuple[dict[str, Any], dict[str, ErrorDescriptor]]:
    """Split a result map into ``(values, errors)`` keyed by node name."""
    values: dict[str, Any] = {}
    errors: dict[str, ErrorDescriptor] = {}
    for name, outcome in results.items():
        if isinstance(outcome, Success):
            values[name] = outcome.value
        else:
            errors[name] = outcome.error
    return values, errors


def outcomes_to_dict(results: Mapping[str, Outcome]) -> dict[str, dict[str, Any]]:
    """Serialize a result map for logging or API responses."""
    return {name: outcome.to_dict() for name, outcome in results.items()}


__all__ = [
    "ErrorDetailLevel",
    "ErrorDescriptor",
    "error_message",
    "Success",
    "Failure",
    "Outcome",
    "ResultMap",
    "all_succeeded",
    "successful_node_names",
    "failed_node_names",
    "partition_outcomes",
    "outcomes_to_dict",
]
