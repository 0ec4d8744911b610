"""Volume operations across every node of a set."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from dockfleet.core.errors import ResourceNotFoundError
from dockfleet.execution.outcome import Outcome
from dockfleet.operations.base import NodeOperations
from dockfleet.operations.networks import split_name_or_config


class VolumeOperations(NodeOperations):
    """Fan-out facade for ``client.volume()``."""

    resource_type = "volume"

    def list(self, parameters: Mapping[str, Any] | None = None) -> dict[str, Outcome]:
        params = self._require_parameters(parameters)
        return self._execute(lambda client: client.volume().list(params))

    def create(
        self,
        name_or_config: str | Mapping[str, Any],
        parameters: Mapping[str, Any] | None = None,
    ) -> dict[str, Outcome]:
        """Create a volume on every node; failures name the volume."""
        name, params = split_name_or_config(name_or_config, parameters, "Volume")

        def operation(client):
            try:
                return client.volume().create(name, params)
            except Exception as exc:
                self._wrap("create", name, "Failed to create volume", exc)

        return self._execute(operation)

    def inspect(self, name: str) -> dict[str, Outcome]:
        self._check_name(name)

        def operation(client):
            try:
                return client.volume().inspect(name)
            except ResourceNotFoundError:
                return self._not_found(f'Volume "{name}" not found on this node')

        return self._execute(operation)

    def remove(self, name: str, force: bool = False) -> dict[str, Outcome]:
        self._check_name(name)

        def operation(client):
            try:
                return client.volume().remove(name, force)
            except ResourceNotFoundError:
                return self._not_found(f'Volume "{name}" not found on this node')

        return self._execute(operation)

    def prune(self, parameters: Mapping[str, Any] | None = None) -> dict[str, Outcome]:
        params = self._require_parameters(parameters)
        return self._execute(lambda client: client.volume().prune(params))

    def exists(self, name: str) -> dict[str, Outcome]:
        self._check_name(name)
        return self._execute(lambda client: client.volume().exists(name))

    def exists_on_all_nodes(self, name: str) -> bool:
        self._check_name(name)
        return self._all_true(self.exists(name))

    def get_nodes_with_volume(self, name: str) -> list[str]:
        self._check_name(name)
        return self._names_with_true(self.exists(name))

    def _check_name(self, name: Any) -> None:
        self._require_id(name, "name", "Volume name cannot be empty")


__all__ = ["VolumeOperations"]
