"""Container operations across every node of a set."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from dockfleet.core.errors import ResourceNotFoundError, ValidationError
from dockfleet.execution.outcome import Outcome
from dockfleet.operations.base import NodeOperations


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


class ContainerOperations(NodeOperations):
    """Fan-out facade for ``client.container()``."""

    resource_type = "container"

    def list(self, parameters: Mapping[str, Any] | None = None) -> dict[str, Outcome]:
        """List containers on every node.

        Recognized parameters: ``all`` and ``size`` (bool), ``limit``
        (positive int), ``filters`` (mapping).
        """
        params = self._require_parameters(parameters)
        self._require_bools(params, "all", "size")
        if "limit" in params and (not _is_int(params["limit"]) or params["limit"] < 1):
            raise ValidationError.invalid(
                "parameters.limit", params["limit"], "positive integer",
                'Parameter "limit" must be a positive integer',
            )
        if "filters" in params and not isinstance(params["filters"], Mapping):
            raise ValidationError.invalid(
                "parameters.filters", params["filters"], "mapping",
                'Parameter "filters" must be a mapping',
            )
        return self._execute(lambda client: client.container().list(params))

    def create(self, config: Any) -> dict[str, Outcome]:
        """Create a container from ``config`` on every node."""
        if config is None:
            raise ValidationError.required("config", "Container configuration cannot be empty")
        return self._execute(lambda client: client.container().create(config))

    def inspect(self, container_id: str) -> dict[str, Outcome]:
        self._check_id(container_id)
        return self._execute(lambda client: client.container().inspect(container_id))

    def start(self, container_id: str) -> dict[str, Outcome]:
        """Start a container; nodes without it report a not-found value."""
        self._check_id(container_id)

        def operation(client):
            try:
                return client.container().start(container_id)
            except ResourceNotFoundError:
                return self._not_found(f'Container "{container_id}" not found on this node')

        return self._execute(operation)

    def stop(self, container_id: str, timeout: int = 10) -> dict[str, Outcome]:
        """Stop a container; nodes without it report a not-found value."""
        self._check_id(container_id)
        self._check_timeout(timeout)

        def operation(client):
            try:
                return client.container().stop(container_id, timeout)
            except ResourceNotFoundError:
                return self._not_found(f'Container "{container_id}" not found on this node')

        return self._execute(operation)

    def restart(self, container_id: str, timeout: int = 10) -> dict[str, Outcome]:
        self._check_id(container_id)
        self._check_timeout(timeout)
        return self._execute(lambda client: client.container().restart(container_id, timeout))

    def remove(
        self, container_id: str, force: bool = False, remove_volumes: bool = False
    ) -> dict[str, Outcome]:
        self._check_id(container_id)
        return self._execute(
            lambda client: client.container().remove(container_id, force, remove_volumes)
        )

    def logs(
        self, container_id: str, parameters: Mapping[str, Any] | None = None
    ) -> dict[str, Outcome]:
        """Fetch logs; ``follow``/``stdout``/``stderr``/``timestamps`` must be bool,
        ``tail`` a string or int."""
        self._check_id(container_id)
        params = self._require_parameters(parameters)
        self._require_bools(params, "follow", "stdout", "stderr", "timestamps")
        if "tail" in params and not (isinstance(params["tail"], str) or _is_int(params["tail"])):
            raise ValidationError.invalid(
                "parameters.tail", params["tail"], "string or integer",
                'Parameter "tail" must be a string or integer',
            )
        return self._execute(lambda client: client.container().logs(container_id, params))

    def stats(self, container_id: str, stream: bool = False) -> dict[str, Outcome]:
        self._check_id(container_id)
        return self._execute(lambda client: client.container().stats(container_id, stream))

    def exists(self, container_id: str) -> dict[str, Outcome]:
        self._check_id(container_id)
        return self._execute(lambda client: client.container().exists(container_id))

    def exists_on_all_nodes(self, container_id: str) -> bool:
        """True only when every node reports the container."""
        self._check_id(container_id)
        return self._all_true(self.exists(container_id))

    def get_nodes_with_container(self, container_id: str) -> list[str]:
        """Names of the nodes that report the container."""
        self._check_id(container_id)
        return self._names_with_true(self.exists(container_id))

    # ── Checks ───────────────────────────────────────────────────────

    def _check_id(self, container_id: Any) -> None:
        self._require_id(container_id, "container_id", "Container ID cannot be empty")

    @staticmethod
    def _check_timeout(timeout: Any) -> None:
        if not _is_int(timeout) or timeout <= 0:
            raise ValidationError.invalid(
                "timeout", timeout, "positive integer", "Timeout must be greater than zero"
            )


__all__ = ["ContainerOperations"]
