"""Network operations across every node of a set."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from dockfleet.core.errors import ResourceNotFoundError, ValidationError
from dockfleet.execution.outcome import Outcome
from dockfleet.operations.base import NodeOperations


def split_name_or_config(
    name_or_config: str | Mapping[str, Any],
    parameters: Mapping[str, Any] | None,
    resource: str,
) -> tuple[str, dict[str, Any]]:
    """Accept either ``(name, parameters)`` or one config mapping with ``Name``."""
    if isinstance(name_or_config, Mapping):
        params = dict(name_or_config)
        name = params.get("Name") or ""
        if not name:
            raise ValidationError.required(
                "name", f"{resource} name cannot be empty in configuration"
            )
        return name, params

    if not name_or_config:
        raise ValidationError.required("name", f"{resource} name cannot be empty")
    if not isinstance(name_or_config, str):
        raise ValidationError.invalid("name", name_or_config, "string or mapping")
    if parameters is not None and not isinstance(parameters, Mapping):
        raise ValidationError.invalid(
            "parameters", parameters, "mapping", "Additional parameters must be a mapping"
        )
    return name_or_config, dict(parameters or {})


class NetworkOperations(NodeOperations):
    """Fan-out facade for ``client.network()``."""

    resource_type = "network"

    def list(self, parameters: Mapping[str, Any] | None = None) -> dict[str, Outcome]:
        params = self._require_parameters(parameters)
        return self._execute(lambda client: client.network().list(params))

    def create(
        self,
        name_or_config: str | Mapping[str, Any],
        parameters: Mapping[str, Any] | None = None,
    ) -> dict[str, Outcome]:
        name, params = split_name_or_config(name_or_config, parameters, "Network")
        return self._execute(lambda client: client.network().create(name, params))

    def inspect(self, network_id: str) -> dict[str, Outcome]:
        self._check_id(network_id)

        def operation(client):
            try:
                return client.network().inspect(network_id)
            except ResourceNotFoundError:
                return self._not_found(f'Network "{network_id}" not found on this node')

        return self._execute(operation)

    def connect(
        self,
        network_id: str,
        container: str,
        parameters: Mapping[str, Any] | None = None,
    ) -> dict[str, Outcome]:
        self._check_id(network_id)
        self._require_id(container, "container", "Container ID cannot be empty")
        params = self._require_parameters(parameters)

        def operation(client):
            try:
                return client.network().connect(network_id, container, params)
            except ResourceNotFoundError:
                return self._not_found(
                    f'Network "{network_id}" or container "{container}" not found on this node'
                )

        return self._execute(operation)

    def disconnect(self, network_id: str, container: str) -> dict[str, Outcome]:
        self._check_id(network_id)
        self._require_id(container, "container", "Container ID cannot be empty")

        def operation(client):
            try:
                return client.network().disconnect(network_id, container)
            except ResourceNotFoundError:
                return self._not_found(
                    f'Network "{network_id}" or container "{container}" not found on this node'
                )

        return self._execute(operation)

    def remove(self, network_id: str) -> dict[str, Outcome]:
        self._check_id(network_id)

        def operation(client):
            try:
                return client.network().remove(network_id)
            except ResourceNotFoundError:
                return self._not_found(f'Network "{network_id}" not found on this node')

        return self._execute(operation)

    def prune(self, parameters: Mapping[str, Any] | None = None) -> dict[str, Outcome]:
        params = self._require_parameters(parameters)
        return self._execute(lambda client: client.network().prune(params))

    def exists(self, network_id: str) -> dict[str, Outcome]:
        self._check_id(network_id)
        return self._execute(lambda client: client.network().exists(network_id))

    def exists_on_all_nodes(self, network_id: str) -> bool:
        self._check_id(network_id)
        return self._all_true(self.exists(network_id))

    def get_nodes_with_network(self, network_id: str) -> list[str]:
        self._check_id(network_id)
        return self._names_with_true(self.exists(network_id))

    def _check_id(self, network_id: Any) -> None:
        self._require_id(network_id, "network_id", "Network ID cannot be empty")


__all__ = ["NetworkOperations", "split_name_or_config"]
