"""Tests for system-level fan-out operations."""

import pytest

from dockfleet.core.errors import ApiError, ValidationError
from dockfleet.execution.outcome import Failure, Success
from dockfleet.operations import SystemOperations


@pytest.fixture
def system(fleet):
    return SystemOperations(fleet)


class TestPassThrough:

    def test_version_and_ping(self, system, fleet):
        for name, client in fleet.items():
            client.system_api.version.return_value = {"ApiVersion": "1.45", "node": name}
            client.system_api.ping.return_value = True
        versions = system.version()
        assert [outcome.unwrap()["node"] for outcome in versions.values()] == ["a", "b", "c"]
        assert all(outcome == Success(True) for outcome in system.ping().values())

    def test_info_failure_is_not_wrapped(self, system, fleet):
        fleet["b"].system_api.info.side_effect = ApiError("daemon busy", code=503)
        failure = system.info()["b"]
        assert isinstance(failure, Failure)
        assert failure.error.message == "daemon busy"
        assert failure.error.code == 503


class TestAuth:

    @pytest.mark.parametrize(
        ("config", "message"),
        [
            ({}, "Authentication configuration cannot be empty"),
            ({"username": "ci"}, "Password is required when username is provided"),
            ({"serveraddress": "registry.local"}, "At least one authentication method"),
        ],
    )
    def test_invalid_config(self, system, fleet, config, message):
        with pytest.raises(ValidationError, match=message):
            system.auth(config)
        assert fleet["a"].system_api.auth.call_count == 0

    def test_identity_token_is_enough(self, system, fleet):
        system.auth({"identitytoken": "tok"})
        fleet["a"].system_api.auth.assert_called_once_with({"identitytoken": "tok"})

    def test_failure_wrapped(self, system, fleet):
        fleet["a"].system_api.auth.side_effect = ApiError("unauthorized", status_code=401)
        results = system.auth(
            {"username": "ci", "password": "secret", "serveraddress": "registry.local"}
        )
        assert results["a"].error.message == "Authentication failed: unauthorized"
        assert results["b"].is_ok()


class TestEvents:

    @pytest.mark.parametrize(
        "filters",
        [
            {"colour": "red"},
            {"type": "plugin"},
            {"since": "yesterday"},
            {"since": "2024-05-01T12:00:00Z\n"},
            {"until": True},
            {"since": [1]},
            "type=container",
        ],
    )
    def test_invalid_filters(self, system, fleet, filters):
        with pytest.raises(ValidationError):
            system.events(filters)
        assert fleet["a"].system_api.events.call_count == 0

    @pytest.mark.parametrize(
        "filters",
        [
            None,
            {"type": "container", "since": 1700000000},
            {"since": "1700000000", "until": "2024-05-01T12:00:00Z"},
            {"until": "2024-05-01T12:00:00.250+02:00"},
        ],
    )
    def test_valid_filters(self, system, fleet, filters):
        system.events(filters)
        fleet["a"].system_api.events.assert_called_once_with(dict(filters or {}))

    def test_failure_wrapped(self, system, fleet):
        fleet["c"].system_api.events.side_effect = TimeoutError("stream closed")
        results = system.events()
        assert results["c"].error.message == "Failed to retrieve events: stream closed"


class TestPruneAndUsage:

    @pytest.mark.parametrize(
        ("verb", "prefix"),
        [
            ("prune_containers", "Failed to prune containers"),
            ("prune_images", "Failed to prune images"),
            ("prune_networks", "Failed to prune networks"),
            ("prune_volumes", "Failed to prune volumes"),
            ("prune", "Failed to prune all resources"),
        ],
    )
    def test_prune_failures_are_wrapped(self, system, fleet, verb, prefix):
        getattr(fleet["a"].system_api, verb).side_effect = RuntimeError("locked")
        results = getattr(system, verb)({"until": "24h"})
        assert results["a"].error.message == f"{prefix}: locked"
        getattr(fleet["b"].system_api, verb).assert_called_once_with({"until": "24h"})

    def test_prune_filters_must_be_mapping(self, system):
        with pytest.raises(ValidationError):
            system.prune("until=24h")

    def test_usage_failures_are_wrapped(self, system, fleet):
        fleet["a"].system_api.df.side_effect = RuntimeError("x")
        fleet["a"].system_api.data_usage.side_effect = RuntimeError("y")
        assert system.df()["a"].error.message == "Failed to retrieve disk usage information: x"
        assert system.data_usage()["a"].error.message == (
            "Failed to retrieve data usage information: y"
        )
