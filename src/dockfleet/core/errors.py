"""
Structured error types for dockfleet.

Provides a small hierarchy of typed errors with metadata for error
categorization, reporting and root cause analysis through error chaining.

Errors fall into two propagation classes:

- **Configuration misuse** (``ValidationError``, ``NodeNotFoundError``) is
  raised synchronously from the registry, policy and facade call that
  detected it. It is never retried.
- **Operational errors** raised by a per-node operation during fan-out are
  captured by the executor into a ``Failure`` outcome and never escape
  ``FanOutExecutor.run()``.

Architecture:
    ::

        ┌─────────────────────────────────────────────────────────────┐
        │                        FleetError                            │
        │            (category, context, cause, to_dict)               │
        ├─────────────────────────────────────────────────────────────┤
        │                                                              │
        │  ValidationError     NodeNotFoundError    ApiError           │
        │  (VALIDATION)        (REGISTRY)           (API)              │
        │                                               │              │
        │                                     ResourceNotFoundError    │
        │                                                              │
        │  OperationFailedError                                        │
        │  (OPERATION)                                                 │
        └─────────────────────────────────────────────────────────────┘

Examples:
    >>> err = ValidationError("bad tag", field="tag", value="-x")
    >>> err.category
    <ErrorCategory.VALIDATION: 'VALIDATION'>
    >>> err.to_dict()["field"]
    'tag'

    >>> try:
    ...     raise ConnectionError("refused")
    ... except ConnectionError as e:
    ...     err = OperationFailedError("pull", "image", "nginx", "Failed", cause=e)
    >>> err.cause
    ConnectionError('refused')

Tags:
    error-handling, exception-hierarchy, error-context, dockfleet

Doc-Types:
    - API Reference
    - Error Handling Guide
"""

from __future__ import annotations

from enum import Enum
from typing import Any


class ErrorCategory(str, Enum):
    """Standard error categories for classification and reporting."""

    VALIDATION = "VALIDATION"  # Malformed input to a configuration call
    REGISTRY = "REGISTRY"  # Node lookup failures
    API = "API"  # Engine API returned an error response
    OPERATION = "OPERATION"  # A per-node operation failed
    INTERNAL = "INTERNAL"  # Bugs, unexpected state


class FleetError(Exception):
    """
    Base exception for all dockfleet errors.

    Every FleetError carries:

    - **category:** ErrorCategory for classification
    - **context:** free-form metadata dict for logging
    - **cause:** optional underlying exception (also set as ``__cause__``)

    Subclasses set ``default_category`` to provide a sensible default for
    their domain.

    Examples:
        >>> error = FleetError("Something went wrong")
        >>> error.category
        <ErrorCategory.INTERNAL: 'INTERNAL'>

        >>> error = FleetError("Fetch failed").with_context(node="edge-1")
        >>> error.context["node"]
        'edge-1'
    """

    default_category: ErrorCategory = ErrorCategory.INTERNAL

    def __init__(
        self,
        message: str,
        *,
        category: ErrorCategory | None = None,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.category = category or self.default_category
        self.context: dict[str, Any] = dict(context or {})
        self.cause = cause

        if cause is not None:
            self.__cause__ = cause

    def with_context(self, **kwargs: Any) -> FleetError:
        """Add context to this error (fluent API)."""
        self.context.update(kwargs)
        return self

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for logging/serialization."""
        result: dict[str, Any] = {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "category": self.category.value,
        }
        if self.context:
            result["context"] = dict(self.context)
        if self.cause is not None:
            result["cause"] = str(self.cause)
        return result

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r}, category={self.category.value})"


# =============================================================================
# CONFIGURATION MISUSE (raised synchronously)
# =============================================================================


class ValidationError(FleetError):
    """
    Malformed input to a registry, executor, policy or facade call.

    Never retried: the caller must fix the input.
    """

    default_category = ErrorCategory.VALIDATION

    def __init__(
        self,
        message: str,
        *,
        field: str | None = None,
        value: Any = None,
        constraint: str | None = None,
        **kwargs: Any,
    ):
        super().__init__(message, **kwargs)
        self.field = field
        self.value = value
        self.constraint = constraint

    @classmethod
    def required(cls, field: str, message: str | None = None) -> ValidationError:
        """Build the error for a missing required parameter."""
        return cls(
            message or f"Parameter '{field}' is required",
            field=field,
            constraint="non-empty value",
        )

    @classmethod
    def invalid(
        cls,
        field: str,
        value: Any,
        constraint: str,
        message: str | None = None,
    ) -> ValidationError:
        """Build the error for a parameter that fails a format or range check."""
        return cls(
            message or f"Invalid value {value!r} for '{field}': expected {constraint}",
            field=field,
            value=value,
            constraint=constraint,
        )

    def to_dict(self) -> dict[str, Any]:
        result = super().to_dict()
        if self.field:
            result["field"] = self.field
        if self.value is not None:
            result["value"] = repr(self.value)
        if self.constraint:
            result["constraint"] = self.constraint
        return result


class NodeNotFoundError(FleetError):
    """Lookup of a node name absent from the registry."""

    default_category = ErrorCategory.REGISTRY

    def __init__(self, node_name: str):
        self.node_name = node_name
        super().__init__(f'Node "{node_name}" not found', context={"node": node_name})


# =============================================================================
# COLLABORATOR ERRORS (raised by engine clients, captured during fan-out)
# =============================================================================


class ApiError(FleetError):
    """Error response from a container-engine API."""

    default_category = ErrorCategory.API

    def __init__(
        self,
        message: str,
        *,
        code: int = 0,
        status_code: int | None = None,
        response_data: dict[str, Any] | None = None,
        **kwargs: Any,
    ):
        super().__init__(message, **kwargs)
        self.code = code
        self.status_code = status_code
        self.response_data = response_data

    @classmethod
    def from_response(cls, response_data: dict[str, Any], status_code: int) -> ApiError:
        """Build an error from a decoded engine error body."""
        message = response_data.get("message", f"API error with status {status_code}")
        code = response_data.get("code", 0)
        if not isinstance(message, str):
            message = "Unknown error"
        if not isinstance(code, int):
            code = 0
        return cls(message, code=code, status_code=status_code, response_data=response_data)

    def to_dict(self) -> dict[str, Any]:
        result = super().to_dict()
        if self.status_code is not None:
            result["status_code"] = self.status_code
        return result


class ResourceNotFoundError(ApiError):
    """The engine reported that the addressed resource does not exist (404)."""

    def __init__(self, message: str = "Resource not found", **kwargs: Any):
        kwargs.setdefault("status_code", 404)
        super().__init__(message, **kwargs)


class OperationFailedError(FleetError):
    """A resource operation failed on one node.

    Facades wrap collaborator errors in this type so the captured failure
    names the verb and the resource it addressed.
    """

    default_category = ErrorCategory.OPERATION

    def __init__(
        self,
        operation: str,
        resource_type: str,
        resource_id: str | None,
        message: str,
        *,
        code: int = 0,
        cause: Exception | None = None,
    ):
        super().__init__(
            message,
            context={
                "operation": operation,
                "resource_type": resource_type,
                "resource_id": resource_id,
            },
            cause=cause,
        )
        self.operation = operation
        self.resource_type = resource_type
        self.resource_id = resource_id
        self.code = code


__all__ = [
    "ErrorCategory",
    "FleetError",
    "ValidationError",
    "NodeNotFoundError",
    "ApiError",
    "ResourceNotFoundError",
    "OperationFailedError",
]
