"""System-level operations across every node of a set."""

from __future__ import annotations

import re
from collections.abc import Callable, Mapping
from typing import Any

from dockfleet.core.errors import ValidationError
from dockfleet.execution.outcome import Outcome
from dockfleet.operations.base import NodeOperations

EVENT_FILTER_KEYS = (
    "container", "event", "image", "label", "type",
    "volume", "network", "daemon", "since", "until",
)
EVENT_TYPES = ("container", "image", "volume", "network", "daemon")
ISO_TIMESTAMP_PATTERN = re.compile(
    r"\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}(\.\d+)?(Z|[+\-]\d{2}:\d{2})"
)


class SystemOperations(NodeOperations):
    """Fan-out facade for ``client.system()``."""

    resource_type = "system"

    def version(self) -> dict[str, Outcome]:
        return self._execute(lambda client: client.system().version())

    def info(self) -> dict[str, Outcome]:
        return self._execute(lambda client: client.system().info())

    def auth(self, auth_config: Mapping[str, Any]) -> dict[str, Outcome]:
        """Authenticate against a registry from every node.

        Requires ``username`` + ``password``, ``identitytoken`` or ``auth``.
        """
        if not auth_config:
            raise ValidationError.required(
                "auth_config", "Authentication configuration cannot be empty"
            )
        config = self._require_parameters(auth_config, "auth_config")
        if "username" in config and "password" not in config:
            raise ValidationError.required(
                "auth_config.password", "Password is required when username is provided"
            )
        if not any(key in config for key in ("username", "identitytoken", "auth")):
            raise ValidationError.required(
                "auth_config.username, auth_config.identitytoken or auth_config.auth",
                "At least one authentication method is required "
                "(username/password, identity token or auth token)",
            )
        server = config.get("serveraddress")
        server = server if isinstance(server, str) else "docker.io"

        def operation(client):
            try:
                return client.system().auth(config)
            except Exception as exc:
                self._wrap("auth", server, "Authentication failed", exc)

        return self._execute(operation)

    def ping(self) -> dict[str, Outcome]:
        return self._execute(lambda client: client.system().ping())

    def events(self, filters: Mapping[str, Any] | None = None) -> dict[str, Outcome]:
        """Fetch engine events; filter keys and timestamps are checked up front."""
        checked = self._require_parameters(filters, "filters")
        for key, value in checked.items():
            if key not in EVENT_FILTER_KEYS:
                raise ValidationError.invalid(
                    f"filters.{key}", key, ", ".join(EVENT_FILTER_KEYS), "Invalid filter key"
                )
            if key in ("since", "until"):
                _check_timestamp(key, value)
            if key == "type" and value not in EVENT_TYPES:
                raise ValidationError.invalid(
                    "filters.type", value, ", ".join(EVENT_TYPES), "Invalid event type"
                )

        return self._wrapped(
            lambda client: client.system().events(checked),
            "events", "events", "Failed to retrieve events",
        )

    def data_usage(self) -> dict[str, Outcome]:
        return self._wrapped(
            lambda client: client.system().data_usage(),
            "data_usage", None, "Failed to retrieve data usage information",
        )

    def df(self) -> dict[str, Outcome]:
        return self._wrapped(
            lambda client: client.system().df(),
            "df", None, "Failed to retrieve disk usage information",
        )

    def prune_containers(self, filters: Mapping[str, Any] | None = None) -> dict[str, Outcome]:
        checked = self._require_parameters(filters, "filters")
        return self._wrapped(
            lambda client: client.system().prune_containers(checked),
            "prune_containers", "containers", "Failed to prune containers",
        )

    def prune_images(self, filters: Mapping[str, Any] | None = None) -> dict[str, Outcome]:
        checked = self._require_parameters(filters, "filters")
        return self._wrapped(
            lambda client: client.system().prune_images(checked),
            "prune_images", "images", "Failed to prune images",
        )

    def prune_networks(self, filters: Mapping[str, Any] | None = None) -> dict[str, Outcome]:
        checked = self._require_parameters(filters, "filters")
        return self._wrapped(
            lambda client: client.system().prune_networks(checked),
            "prune_networks", "networks", "Failed to prune networks",
        )

    def prune_volumes(self, filters: Mapping[str, Any] | None = None) -> dict[str, Outcome]:
        checked = self._require_parameters(filters, "filters")
        return self._wrapped(
            lambda client: client.system().prune_volumes(checked),
            "prune_volumes", "volumes", "Failed to prune volumes",
        )

    def prune(self, filters: Mapping[str, Any] | None = None) -> dict[str, Outcome]:
        """Prune containers, images, networks and volumes on every node."""
        checked = self._require_parameters(filters, "filters")
        return self._wrapped(
            lambda client: client.system().prune(checked),
            "prune", "all", "Failed to prune all resources",
        )

    def _wrapped(
        self,
        call: Callable[[Any], Any],
        operation: str,
        resource_id: str | None,
        prefix: str,
    ) -> dict[str, Outcome]:
        def run(client):
            try:
                return call(client)
            except Exception as exc:
                self._wrap(operation, resource_id, prefix, exc)

        return self._execute(run)


def _check_timestamp(key: str, value: Any) -> None:
    if isinstance(value, bool) or not isinstance(value, (int, float, str)):
        raise ValidationError.invalid(
            f"filters.{key}", value, "timestamp (Unix timestamp or ISO 8601 format)",
            "Invalid timestamp format: must be numeric or string",
        )
    if (
        isinstance(value, str)
        and not value.isdigit()
        and not ISO_TIMESTAMP_PATTERN.fullmatch(value)
    ):
        raise ValidationError.invalid(
            f"filters.{key}", value, "timestamp (Unix timestamp or ISO 8601 format)",
            "Invalid ISO 8601 timestamp format",
        )


__all__ = ["SystemOperations"]
