"""Core primitives shared by every dockfleet layer: errors, logging, validation.

Settings live in :mod:`dockfleet.core.config`, imported on demand because
they depend on the execution layer.
"""

from dockfleet.core.errors import (
    ApiError,
    ErrorCategory,
    FleetError,
    NodeNotFoundError,
    OperationFailedError,
    ResourceNotFoundError,
    ValidationError,
)
from dockfleet.core.logging import LogContext, configure_logging, get_logger

__all__ = [
    "ApiError",
    "ErrorCategory",
    "FleetError",
    "NodeNotFoundError",
    "OperationFailedError",
    "ResourceNotFoundError",
    "ValidationError",
    "LogContext",
    "configure_logging",
    "get_logger",
]
