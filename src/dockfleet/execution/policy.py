"""Execution policy — the tunables a fan-out run honours.

Manifesto:
    A fan-out run needs to know *how* to visit nodes (one at a time or
    overlapping), *how much* of a captured error to keep, and *whether*
    to retry a failing node.  These knobs live in one frozen value object
    so an executor can hold a private copy and concurrent runs never share
    mutable state.  "Setters" are builder methods that validate and return
    a new policy.

ARCHITECTURE
────────────
::

    ExecutionPolicy (frozen)
      ├── strategy               SEQUENTIAL | CONCURRENT
      ├── error_detail_level     BASIC | STANDARD | DETAILED
      ├── retry_on_failure, max_retries, retry_delay_ms,
      │   exponential_backoff, backoff_base_ms
      ├── operation_timeout_seconds    (advisory, for the transport)
      ├── max_concurrency, run_timeout_seconds
      └── node_priorities, default_tag, failover_nodes
                                       (metadata for higher-level scheduling)

      .with_strategy() / .with_retry() / ...   → new validated policy
      .to_dict() / ExecutionPolicy.from_dict() → lossless round-trip

Example::

    policy = (
        ExecutionPolicy.concurrent()
        .with_retry(True, max_retries=2, retry_delay_ms=250)
        .with_error_detail_level("basic")
    )
    assert ExecutionPolicy.from_dict(policy.to_dict()) == policy

Tags:
    dockfleet, execution, policy, retry, configuration

Doc-Types:
    api-reference
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field, fields, replace
from enum import Enum
from types import MappingProxyType
from typing import Any

from dockfleet.core.errors import ValidationError
from dockfleet.execution.outcome import ErrorDetailLevel


class ExecutionStrategy(str, Enum):
    """How a fan-out run visits nodes."""

    SEQUENTIAL = "sequential"  # One node (including its retries) at a time
    CONCURRENT = "concurrent"  # Nodes progress independently

    @classmethod
    def _missing_(cls, value: object) -> ExecutionStrategy | None:
        if isinstance(value, str) and value.lower() == "parallel":
            return cls.CONCURRENT
        return None


def _coerce_enum(enum_cls: type[Enum], value: Any, field_name: str) -> Any:
    try:
        return enum_cls(value)
    except ValueError:
        allowed = ", ".join(member.value for member in enum_cls)
        raise ValidationError.invalid(
            field_name,
            value,
            allowed,
            f"Invalid {field_name}: {value!r}. Allowed values: {allowed}",
        ) from None


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


@dataclass(frozen=True)
class ExecutionPolicy:
    """
    Tunables for one fan-out run.

    Attributes:
        strategy: Sequential (default) or concurrent node visiting
        error_detail_level: Verbosity of captured error descriptors
        retry_on_failure: Retry a failing node at all
        max_retries: Retries after the first attempt (>= 1)
        retry_delay_ms: Constant backoff delay (>= 0)
        exponential_backoff: Use ``backoff_base_ms * 2**(retry-1)`` instead
        backoff_base_ms: Base delay of the exponential schedule (>= 0)
        operation_timeout_seconds: Advisory per-call timeout for the transport
        max_concurrency: Worker bound for concurrent runs (None = one per node)
        run_timeout_seconds: Wall-clock budget after which no new retries start
        node_priorities: Node name -> priority (1 = highest)
        default_tag: Tag higher-level callers use to select nodes
        failover_nodes: Ordered node names to use when primaries fail
    """

    strategy: ExecutionStrategy = ExecutionStrategy.SEQUENTIAL
    error_detail_level: ErrorDetailLevel = ErrorDetailLevel.STANDARD
    retry_on_failure: bool = False
    max_retries: int = 3
    retry_delay_ms: int = 1000
    exponential_backoff: bool = True
    backoff_base_ms: int = 100
    operation_timeout_seconds: int = 30
    max_concurrency: int | None = None
    run_timeout_seconds: float | None = None
    node_priorities: Mapping[str, int] = field(default_factory=dict)
    default_tag: str | None = None
    failover_nodes: tuple[str, ...] = ()

    def __post_init__(self):
        # Frozen: normalize through object.__setattr__.
        object.__setattr__(
            self, "strategy", _coerce_enum(ExecutionStrategy, self.strategy, "strategy")
        )
        object.__setattr__(
            self,
            "error_detail_level",
            _coerce_enum(ErrorDetailLevel, self.error_detail_level, "error_detail_level"),
        )

        for flag in ("retry_on_failure", "exponential_backoff"):
            value = getattr(self, flag)
            if not isinstance(value, bool):
                raise ValidationError.invalid(
                    flag, value, "boolean", f"{flag} must be a boolean, got {value!r}"
                )

        if not _is_int(self.max_retries) or self.max_retries < 1:
            raise ValidationError.invalid(
                "max_retries", self.max_retries, "integer >= 1",
                "Maximum number of retries must be at least 1",
            )
        if not _is_int(self.retry_delay_ms) or self.retry_delay_ms < 0:
            raise ValidationError.invalid(
                "retry_delay_ms", self.retry_delay_ms, "integer >= 0",
                "Retry delay must be at least 0 ms",
            )
        if not _is_int(self.backoff_base_ms) or self.backoff_base_ms < 0:
            raise ValidationError.invalid(
                "backoff_base_ms", self.backoff_base_ms, "integer >= 0",
                "Backoff base delay must be at least 0 ms",
            )
        if not _is_int(self.operation_timeout_seconds) or self.operation_timeout_seconds <= 0:
            raise ValidationError.invalid(
                "operation_timeout_seconds", self.operation_timeout_seconds, "integer > 0",
                "Operation timeout must be greater than 0 seconds",
            )
        if self.max_concurrency is not None and (
            not _is_int(self.max_concurrency) or self.max_concurrency < 1
        ):
            raise ValidationError.invalid(
                "max_concurrency", self.max_concurrency, "integer >= 1 or None"
            )
        if self.run_timeout_seconds is not None and (
            not isinstance(self.run_timeout_seconds, (int, float))
            or isinstance(self.run_timeout_seconds, bool)
            or self.run_timeout_seconds <= 0
        ):
            raise ValidationError.invalid(
                "run_timeout_seconds", self.run_timeout_seconds, "number > 0 or None"
            )

        priorities = dict(self.node_priorities)
        for name, priority in priorities.items():
            if not name or not isinstance(name, str):
                raise ValidationError.required("node_name", "Node name cannot be empty")
            if not _is_int(priority) or priority <= 0:
                raise ValidationError.invalid(
                    "priority", priority, "integer > 0", "Node priority must be greater than 0"
                )
        object.__setattr__(self, "node_priorities", MappingProxyType(priorities))

        failover: list[str] = []
        for name in self.failover_nodes:
            if not name or not isinstance(name, str):
                raise ValidationError.required("node_name", "Node name cannot be empty")
            if name not in failover:
                failover.append(name)
        object.__setattr__(self, "failover_nodes", tuple(failover))

    # ── Factories ────────────────────────────────────────────────────

    @classmethod
    def sequential(cls, **kwargs: Any) -> ExecutionPolicy:
        """Factory for a sequential policy."""
        return cls(strategy=ExecutionStrategy.SEQUENTIAL, **kwargs)

    @classmethod
    def concurrent(cls, max_concurrency: int | None = None, **kwargs: Any) -> ExecutionPolicy:
        """Factory for a concurrent policy."""
        return cls(
            strategy=ExecutionStrategy.CONCURRENT,
            max_concurrency=max_concurrency,
            **kwargs,
        )

    # ── Builder methods ──────────────────────────────────────────────

    def with_strategy(self, strategy: ExecutionStrategy | str) -> ExecutionPolicy:
        return replace(self, strategy=strategy)

    def with_error_detail_level(self, level: ErrorDetailLevel | str) -> ExecutionPolicy:
        return replace(self, error_detail_level=level)

    def with_retry(
        self,
        enable: bool,
        max_retries: int | None = None,
        retry_delay_ms: int | None = None,
        exponential_backoff: bool | None = None,
    ) -> ExecutionPolicy:
        """Configure retries; ``None`` arguments keep the current value."""
        changes: dict[str, Any] = {"retry_on_failure": enable}
        if max_retries is not None:
            changes["max_retries"] = max_retries
        if retry_delay_ms is not None:
            changes["retry_delay_ms"] = retry_delay_ms
        if exponential_backoff is not None:
            changes["exponential_backoff"] = exponential_backoff
        return replace(self, **changes)

    def with_operation_timeout(self, seconds: int) -> ExecutionPolicy:
        return replace(self, operation_timeout_seconds=seconds)

    def with_max_concurrency(self, max_concurrency: int | None) -> ExecutionPolicy:
        return replace(self, max_concurrency=max_concurrency)

    def with_run_timeout(self, seconds: float | None) -> ExecutionPolicy:
        return replace(self, run_timeout_seconds=seconds)

    def with_node_priority(self, node_name: str, priority: int) -> ExecutionPolicy:
        return replace(self, node_priorities={**self.node_priorities, node_name: priority})

    def with_default_tag(self, tag: str | None) -> ExecutionPolicy:
        return replace(self, default_tag=tag)

    def with_failover_node(self, node_name: str) -> ExecutionPolicy:
        return replace(self, failover_nodes=(*self.failover_nodes, node_name))

    def __hash__(self) -> int:
        # node_priorities is a read-only proxy; hash it by sorted items.
        return hash(
            tuple(
                tuple(sorted(value.items())) if isinstance(value, Mapping) else value
                for value in (getattr(self, f.name) for f in fields(self))
            )
        )

    # ── Derived ──────────────────────────────────────────────────────

    @property
    def is_concurrent(self) -> bool:
        return self.strategy is ExecutionStrategy.CONCURRENT

    # ── Serialization ────────────────────────────────────────────────

    def to_dict(self) -> dict[str, Any]:
        """Convert to a plain dict (enum values as strings)."""
        return {
            "strategy": self.strategy.value,
            "error_detail_level": self.error_detail_level.value,
            "retry_on_failure": self.retry_on_failure,
            "max_retries": self.max_retries,
            "retry_delay_ms": self.retry_delay_ms,
            "exponential_backoff": self.exponential_backoff,
            "backoff_base_ms": self.backoff_base_ms,
            "operation_timeout_seconds": self.operation_timeout_seconds,
            "max_concurrency": self.max_concurrency,
            "run_timeout_seconds": self.run_timeout_seconds,
            "node_priorities": dict(self.node_priorities),
            "default_tag": self.default_tag,
            "failover_nodes": list(self.failover_nodes),
        }

    # camelCase keys accepted by from_dict
    _ALIASES = {
        "executionStrategy": "strategy",
        "errorDetailLevel": "error_detail_level",
        "retryOnFailure": "retry_on_failure",
        "maxRetries": "max_retries",
        "retryDelay": "retry_delay_ms",
        "exponentialBackoff": "exponential_backoff",
        "operationTimeout": "operation_timeout_seconds",
        "nodePriorities": "node_priorities",
        "defaultNodeTag": "default_tag",
        "failoverNodes": "failover_nodes",
    }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> ExecutionPolicy:
        """Rebuild a policy from :meth:`to_dict` output.

        Unknown keys raise ``ValidationError``.
        """
        known = {f for f in cls.__dataclass_fields__}
        kwargs: dict[str, Any] = {}
        for key, value in data.items():
            name = cls._ALIASES.get(key, key)
            if name not in known:
                raise ValidationError.invalid("policy", key, f"one of {sorted(known)}",
                                              f"Unknown policy key: {key!r}")
            kwargs[name] = value
        if "failover_nodes" in kwargs and kwargs["failover_nodes"] is not None:
            kwargs["failover_nodes"] = tuple(_as_iterable(kwargs["failover_nodes"]))
        if kwargs.get("node_priorities") is None:
            kwargs.pop("node_priorities", None)
        return cls(**kwargs)


def _as_iterable(value: Any) -> Iterable[str]:
    if isinstance(value, str):
        return (value,)
    return value


__all__ = ["ExecutionPolicy", "ExecutionStrategy", "ErrorDetailLevel"]
