"""
Node Registry — the named collection of engine clients and their tags.

Manifesto:
    Fan-out starts with *which* nodes.  The registry owns the node table
    (name → client) and a tag index (tag → names) and keeps the two
    consistent: every mutation that touches a node touches the index in
    the same call.  Selection methods never hand out the registry's own
    dicts; they return copies or :class:`NodeSet` snapshots.

ARCHITECTURE
────────────
::

    NodeRegistry
      ├── _nodes: name → EngineClient          (insertion ordered)
      ├── _tags:  tag  → [name, ...]           (no empty buckets)
      │
      ├── add_node / remove_node / add_tag_to_node / remove_tag_from_node
      ├── get_nodes_by_tag / _by_all_tags / _by_any_tag  → dict copies
      └── all / by_tag / by_all_tags / by_any_tag / filter → NodeSet

Example::

    registry = NodeRegistry()
    registry.add_node("edge-1", client_a, tags=["edge", "eu"])
    registry.add_node("edge-2", client_b, tags=["edge"])
    registry.by_all_tags(["edge", "eu"]).names()    # ['edge-1']

Tags:
    dockfleet, cluster, registry, tags, selection

Doc-Types:
    api-reference
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Iterator, Mapping
from dataclasses import dataclass
from typing import Any

from dockfleet.client.protocol import EngineClient, is_engine_client
from dockfleet.cluster.node_set import NodeSet
from dockfleet.core.errors import NodeNotFoundError, ValidationError
from dockfleet.core.logging import get_logger
from dockfleet.core.validation import validate_node_name, validate_tag
from dockfleet.execution.policy import ExecutionPolicy

logger = get_logger(__name__)


@dataclass(frozen=True)
class Node:
    """Read-only view of one registered node."""

    name: str
    client: EngineClient
    tags: frozenset[str]


class NodeRegistry:
    """Named engine clients plus a tag index.

    Not synchronized: populate it before fanning out, or guard it
    yourself when mutating from several threads.
    """

    def __init__(self, policy: ExecutionPolicy | None = None) -> None:
        self._nodes: dict[str, EngineClient] = {}
        self._tags: dict[str, list[str]] = {}
        self._policy = policy

    # ── Mutation ─────────────────────────────────────────────────────

    def add_node(
        self,
        name: str,
        client: EngineClient,
        tags: Iterable[str] = (),
    ) -> NodeRegistry:
        """Register ``client`` under ``name``.

        Raises:
            ValidationError: Empty, malformed or duplicate name; malformed
                tag; client not an ``EngineClient``.
        """
        validate_node_name(name)
        if name in self._nodes:
            raise ValidationError.invalid(
                "name", name, "unique node name (a node with this name already exists)"
            )
        if not is_engine_client(client):
            raise ValidationError.invalid(
                "client", client, "EngineClient",
                f"Client for node {name!r} does not implement EngineClient",
            )
        if isinstance(tags, str):
            tags = (tags,)
        tag_list = list(tags)
        for tag in tag_list:
            validate_tag(tag)

        self._nodes[name] = client
        for tag in tag_list:
            bucket = self._tags.setdefault(tag, [])
            if name not in bucket:
                bucket.append(name)

        logger.debug("registry.node_added", node=name, tags=tag_list)
        return self

    def add_nodes(self, nodes: Mapping[str, Any]) -> NodeRegistry:
        """Register several nodes.

        ``nodes`` maps a name to either a client or a mapping
        ``{"client": ..., "tags": [...]}``.  Entries are validated
        before any is added.
        """
        if not isinstance(nodes, Mapping):
            raise ValidationError.invalid("nodes", nodes, "mapping")

        prepared: list[tuple[str, Any, list[str]]] = []
        for name, spec in nodes.items():
            if isinstance(spec, Mapping):
                if "client" not in spec:
                    raise ValidationError.required(
                        f"nodes.{name}.client", f"Node {name!r} is missing its client"
                    )
                tags = spec.get("tags") or []
                if isinstance(tags, str):
                    tags = [tags]
                prepared.append((name, spec["client"], list(tags)))
            else:
                prepared.append((name, spec, []))

        seen: set[str] = set()
        for name, client, tags in prepared:
            validate_node_name(name)
            if name in self._nodes or name in seen:
                raise ValidationError.invalid(
                    "name", name, "unique node name (a node with this name already exists)"
                )
            if not is_engine_client(client):
                raise ValidationError.invalid("client", client, "EngineClient")
            for tag in tags:
                validate_tag(tag)
            seen.add(name)

        for name, client, tags in prepared:
            self.add_node(name, client, tags)
        return self

    def remove_node(self, name: str) -> NodeRegistry:
        """Remove a node and prune it from every tag bucket (no-op if absent)."""
        if not name:
            raise ValidationError.required("name")
        if name not in self._nodes:
            return self

        del self._nodes[name]
        for tag in list(self._tags):
            self._discard_from_bucket(tag, name)

        logger.debug("registry.node_removed", node=name)
        return self

    def add_tag_to_node(self, node_name: str, tag: str) -> NodeRegistry:
        self._require_existing(node_name)
        validate_tag(tag)
        bucket = self._tags.setdefault(tag, [])
        if node_name not in bucket:
            bucket.append(node_name)
        return self

    def remove_tag_from_node(self, node_name: str, tag: str) -> NodeRegistry:
        self._require_existing(node_name)
        if tag in self._tags:
            self._discard_from_bucket(tag, node_name)
        return self

    def _discard_from_bucket(self, tag: str, name: str) -> None:
        bucket = [member for member in self._tags[tag] if member != name]
        if bucket:
            self._tags[tag] = bucket
        else:
            del self._tags[tag]

    def _require_existing(self, node_name: str) -> None:
        if not node_name:
            raise ValidationError.required("node_name")
        if node_name not in self._nodes:
            raise NodeNotFoundError(node_name)

    # ── Lookup ───────────────────────────────────────────────────────

    def node(self, name: str) -> EngineClient:
        """Return the client registered under ``name``.

        Raises:
            ValidationError: If ``name`` is empty.
            NodeNotFoundError: If no such node exists.
        """
        if not name:
            raise ValidationError.required("name")
        try:
            return self._nodes[name]
        except KeyError:
            raise NodeNotFoundError(name) from None

    def describe(self, name: str) -> Node:
        """Return a :class:`Node` view (name, client, tags)."""
        client = self.node(name)
        return Node(name=name, client=client, tags=frozenset(self.tags_of(name)))

    def has_node(self, name: str) -> bool:
        if not name:
            return False
        return name in self._nodes

    def tags_of(self, name: str) -> list[str]:
        """Tags carried by ``name``, in index order."""
        if name not in self._nodes:
            raise NodeNotFoundError(name)
        return [tag for tag, members in self._tags.items() if name in members]

    def get_nodes(self) -> dict[str, EngineClient]:
        return dict(self._nodes)

    def get_tags(self) -> dict[str, list[str]]:
        return {tag: list(members) for tag, members in self._tags.items()}

    def get_nodes_by_tag(self, tag: str) -> dict[str, EngineClient]:
        validate_tag(tag)
        return self._select(self._tags.get(tag, []))

    def get_nodes_by_all_tags(self, tags: Iterable[str]) -> dict[str, EngineClient]:
        """Nodes carrying every tag in ``tags`` (empty for no tags)."""
        tag_list = list(tags)
        if not tag_list:
            return {}
        for tag in tag_list:
            validate_tag(tag)

        names: list[str] | None = None
        for tag in tag_list:
            members = self._tags.get(tag)
            if not members:
                return {}
            names = list(members) if names is None else [n for n in names if n in members]
            if not names:
                return {}
        return self._select(names or [])

    def get_nodes_by_any_tag(self, tags: Iterable[str]) -> dict[str, EngineClient]:
        """Nodes carrying at least one tag in ``tags``, deduplicated."""
        tag_list = list(tags)
        if not tag_list:
            return {}
        for tag in tag_list:
            validate_tag(tag)

        names: list[str] = []
        for tag in tag_list:
            for member in self._tags.get(tag, []):
                if member not in names:
                    names.append(member)
        return self._select(names)

    def _select(self, names: Iterable[str]) -> dict[str, EngineClient]:
        wanted = set(names)
        # Keep registry insertion order.
        return {name: client for name, client in self._nodes.items() if name in wanted}

    # ── Selection → NodeSet ──────────────────────────────────────────

    def all(self) -> NodeSet:
        return self._node_set(self._nodes)

    def by_tag(self, tag: str) -> NodeSet:
        return self._node_set(self.get_nodes_by_tag(tag))

    def by_all_tags(self, tags: Iterable[str]) -> NodeSet:
        return self._node_set(self.get_nodes_by_all_tags(tags))

    def by_any_tag(self, tags: Iterable[str]) -> NodeSet:
        return self._node_set(self.get_nodes_by_any_tag(tags))

    def filter(self, predicate: Callable[[EngineClient, str], bool]) -> NodeSet:
        """Snapshot of the nodes for which ``predicate(client, name)`` is true."""
        if not callable(predicate):
            raise ValidationError.invalid("predicate", predicate, "callable")
        return self._node_set(
            {name: client for name, client in self._nodes.items() if predicate(client, name)}
        )

    def _node_set(self, nodes: Mapping[str, EngineClient]) -> NodeSet:
        return NodeSet(nodes, self._policy)

    # ── Container protocol ───────────────────────────────────────────

    def count(self) -> int:
        return len(self._nodes)

    def __len__(self) -> int:
        return len(self._nodes)

    def is_empty(self) -> bool:
        return not self._nodes

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and self.has_node(name)

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._nodes))

    def __repr__(self) -> str:
        return f"NodeRegistry(nodes={list(self._nodes)!r}, tags={sorted(self._tags)!r})"


__all__ = ["NodeRegistry", "Node"]
