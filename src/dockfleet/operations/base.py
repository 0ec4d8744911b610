"""Shared base for the per-resource fan-out facades.

A facade is a thin, validating front over one :class:`FanOutExecutor`:
every public verb checks its arguments synchronously (raising
``ValidationError`` before any node is contacted), builds a per-node
closure and hands it to the executor.

Two helpers cover the error conventions the facades share:

- :meth:`NodeOperations._not_found`: the plain value returned on a node
  that reports the addressed resource as missing.
- :meth:`NodeOperations._wrap`: re-raise any collaborator error as
  :class:`OperationFailedError` naming verb and resource, so the captured
  ``Failure`` says what was attempted.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from typing import Any, NoReturn

from dockfleet.client.protocol import EngineClient
from dockfleet.core.errors import OperationFailedError, ValidationError
from dockfleet.core.validation import require, require_bool
from dockfleet.execution.fanout import FanOutExecutor
from dockfleet.execution.outcome import ErrorDetailLevel, Outcome, Success
from dockfleet.execution.policy import ExecutionPolicy, ExecutionStrategy


def not_found_result(message: str) -> dict[str, Any]:
    """Structured value reported by a node that lacks the resource."""
    return {"error": True, "error_type": "not_found", "message": message}


class NodeOperations:
    """Base class for cluster-wide resource operations.

    Holds the node mapping and the executor policy.  Policy "setters"
    validate their input and rebuild the private policy copy, so a
    facade never shares mutable state with the set that produced it.
    """

    resource_type: str = "resource"

    def __init__(
        self,
        nodes: Mapping[str, EngineClient],
        policy: ExecutionPolicy | None = None,
        *,
        sleep: Callable[[float], None] | None = None,
    ) -> None:
        executor_kwargs: dict[str, Any] = {}
        if sleep is not None:
            executor_kwargs["sleep"] = sleep
        # FanOutExecutor performs the node validation.
        self._executor = FanOutExecutor(nodes, policy, **executor_kwargs)
        self._nodes: dict[str, EngineClient] = self._executor.nodes
        self._executor_kwargs = executor_kwargs

    # ── Policy ───────────────────────────────────────────────────────

    @property
    def policy(self) -> ExecutionPolicy:
        return self._executor.policy

    def apply_policy(self, policy: ExecutionPolicy) -> NodeOperations:
        """Replace the whole policy."""
        self._executor.set_policy(policy)
        return self

    def set_execution_strategy(self, strategy: ExecutionStrategy | str) -> NodeOperations:
        return self.apply_policy(self.policy.with_strategy(strategy))

    def set_error_detail_level(self, level: ErrorDetailLevel | str) -> NodeOperations:
        return self.apply_policy(self.policy.with_error_detail_level(level))

    def set_retry_on_failure(self, enable: bool, max_retries: int | None = None) -> NodeOperations:
        """Enable or disable retries; ``max_retries`` must be >= 1 when given."""
        if max_retries is not None and (not isinstance(max_retries, int) or max_retries < 1):
            raise ValidationError.invalid(
                "max_retries", max_retries, "positive integer",
                "Maximum retries must be greater than zero",
            )
        return self.apply_policy(self.policy.with_retry(enable, max_retries=max_retries))

    # ── Node collection ──────────────────────────────────────────────

    def get_nodes(self) -> dict[str, EngineClient]:
        return dict(self._nodes)

    def count(self) -> int:
        return len(self._nodes)

    def __len__(self) -> int:
        return len(self._nodes)

    def is_empty(self) -> bool:
        return not self._nodes

    def has_node(self, name: str) -> bool:
        return name in self._nodes

    def add_node(self, name: str, client: EngineClient) -> NodeOperations:
        """Add a node to this facade's own collection."""
        if not name:
            raise ValidationError.invalid(
                "name", name, "non-empty string", "Node name cannot be empty"
            )
        if name in self._nodes:
            raise ValidationError.invalid(
                "name", name, "unique node name", f'Node with name "{name}" already exists'
            )
        self._rebuild({**self._nodes, name: client})
        return self

    def remove_node(self, name: str) -> NodeOperations:
        """Remove a node; the collection may not become empty."""
        if name not in self._nodes:
            raise ValidationError.invalid(
                "name", name, "existing node name", f'Node with name "{name}" not found'
            )
        remaining = {key: value for key, value in self._nodes.items() if key != name}
        self._rebuild(remaining)
        return self

    def _rebuild(self, nodes: dict[str, EngineClient]) -> None:
        self._executor = FanOutExecutor(nodes, self.policy, **self._executor_kwargs)
        self._nodes = self._executor.nodes

    # ── Execution helpers ────────────────────────────────────────────

    def _execute(self, operation: Callable[[EngineClient], Any]) -> dict[str, Outcome]:
        return self._executor.run(operation)

    def _wrap(
        self,
        operation: str,
        resource_id: str | None,
        prefix: str,
        error: Exception,
    ) -> NoReturn:
        raise OperationFailedError(
            operation,
            self.resource_type,
            resource_id,
            f"{prefix}: {error}",
            cause=error,
        ) from error

    def _not_found(self, message: str) -> dict[str, Any]:
        return not_found_result(message)

    @staticmethod
    def _all_true(results: Mapping[str, Outcome]) -> bool:
        return all(
            isinstance(outcome, Success) and outcome.value is True
            for outcome in results.values()
        )

    @staticmethod
    def _names_with_true(results: Mapping[str, Outcome]) -> list[str]:
        return [
            name
            for name, outcome in results.items()
            if isinstance(outcome, Success) and outcome.value is True
        ]

    # ── Argument checks shared by facades ────────────────────────────

    @staticmethod
    def _require_id(value: Any, field: str, message: str) -> None:
        if not isinstance(value, str):
            if value is None or value == "":
                raise ValidationError.required(field, message)
            raise ValidationError.invalid(field, value, "string")
        require(value, field, message)

    @staticmethod
    def _require_parameters(parameters: Any, field: str = "parameters") -> dict[str, Any]:
        if parameters is None:
            return {}
        if not isinstance(parameters, Mapping):
            raise ValidationError.invalid(
                field, parameters, "mapping", f"{field.capitalize()} must be a mapping"
            )
        return dict(parameters)

    @staticmethod
    def _require_bools(parameters: Mapping[str, Any], *keys: str) -> None:
        for key in keys:
            require_bool(parameters, key)

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(nodes={list(self._nodes)!r}, "
            f"strategy={self.policy.strategy.value!r})"
        )


__all__ = ["NodeOperations", "not_found_result"]
