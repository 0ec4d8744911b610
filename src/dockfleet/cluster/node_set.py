"""NodeSet — a point-in-time selection of nodes, grouped into facades.

A ``NodeSet`` copies the name → client mapping it was built from, so later
registry mutations are never observed.  Facade accessors build a fresh
executor over that copy on every call.

Facades need at least one node: calling ``containers()`` (or any other
accessor, or :meth:`NodeSet.run`) on an empty set raises
``ValidationError``.
"""

from __future__ import annotations

from collections.abc import Callable, Iterator, Mapping
from typing import Any

from dockfleet.client.protocol import EngineClient
from dockfleet.core.config import default_policy
from dockfleet.core.errors import ValidationError
from dockfleet.execution.fanout import FanOutExecutor
from dockfleet.execution.outcome import Outcome
from dockfleet.execution.policy import ExecutionPolicy
from dockfleet.operations.containers import ContainerOperations
from dockfleet.operations.images import ImageOperations
from dockfleet.operations.networks import NetworkOperations
from dockfleet.operations.system import SystemOperations
from dockfleet.operations.volumes import VolumeOperations


class NodeSet:
    """Snapshot of selected nodes plus an optional default policy."""

    def __init__(
        self,
        nodes: Mapping[str, EngineClient],
        policy: ExecutionPolicy | None = None,
    ) -> None:
        self._nodes: dict[str, EngineClient] = dict(nodes)
        self._policy = policy

    # ── Introspection ────────────────────────────────────────────────

    def count(self) -> int:
        return len(self._nodes)

    def __len__(self) -> int:
        return len(self._nodes)

    def is_empty(self) -> bool:
        return not self._nodes

    def get_nodes(self) -> dict[str, EngineClient]:
        return dict(self._nodes)

    def names(self) -> list[str]:
        return list(self._nodes)

    def __contains__(self, name: object) -> bool:
        return name in self._nodes

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._nodes))

    @property
    def policy(self) -> ExecutionPolicy | None:
        return self._policy

    # ── Derivation ───────────────────────────────────────────────────

    def filter(self, predicate: Callable[[EngineClient, str], bool]) -> NodeSet:
        """New, independent set of the nodes where ``predicate(client, name)``."""
        if not callable(predicate):
            raise ValidationError.invalid("predicate", predicate, "callable")
        return NodeSet(
            {name: client for name, client in self._nodes.items() if predicate(client, name)},
            self._policy,
        )

    def with_policy(self, policy: ExecutionPolicy | None) -> NodeSet:
        """Same nodes, different default policy."""
        if policy is not None and not isinstance(policy, ExecutionPolicy):
            raise ValidationError.invalid("policy", policy, "ExecutionPolicy")
        return NodeSet(self._nodes, policy)

    def _resolve(self, policy: ExecutionPolicy | None) -> ExecutionPolicy:
        return policy or self._policy or default_policy()

    # ── Execution ────────────────────────────────────────────────────

    def run(
        self,
        operation: Callable[[EngineClient], Any],
        policy: ExecutionPolicy | None = None,
    ) -> dict[str, Outcome]:
        """Fan an ad-hoc ``operation`` out over this set."""
        return FanOutExecutor(self._nodes, self._resolve(policy)).run(operation)

    # ── Facades ──────────────────────────────────────────────────────

    def containers(self, policy: ExecutionPolicy | None = None) -> ContainerOperations:
        return ContainerOperations(self._nodes, self._resolve(policy))

    def images(self, policy: ExecutionPolicy | None = None) -> ImageOperations:
        return ImageOperations(self._nodes, self._resolve(policy))

    def networks(self, policy: ExecutionPolicy | None = None) -> NetworkOperations:
        return NetworkOperations(self._nodes, self._resolve(policy))

    def volumes(self, policy: ExecutionPolicy | None = None) -> VolumeOperations:
        return VolumeOperations(self._nodes, self._resolve(policy))

    def system(self, policy: ExecutionPolicy | None = None) -> SystemOperations:
        return SystemOperations(self._nodes, self._resolve(policy))

    def __repr__(self) -> str:
        return f"NodeSet({list(self._nodes)!r})"


__all__ = ["NodeSet"]
