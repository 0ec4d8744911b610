"""Tests for container fan-out operations."""

import pytest

from dockfleet.core.errors import ApiError, ResourceNotFoundError, ValidationError
from dockfleet.execution.outcome import Failure, Success
from dockfleet.operations import ContainerOperations


@pytest.fixture
def containers(fleet):
    return ContainerOperations(fleet)


class TestArgumentValidation:
    """Bad arguments raise before any node is contacted."""

    @pytest.mark.parametrize(
        "call",
        [
            lambda ops: ops.inspect(""),
            lambda ops: ops.start(""),
            lambda ops: ops.stop("", 10),
            lambda ops: ops.stop("web", 0),
            lambda ops: ops.restart("web", -1),
            lambda ops: ops.remove(""),
            lambda ops: ops.logs(""),
            lambda ops: ops.logs("web", {"follow": "yes"}),
            lambda ops: ops.logs("web", {"tail": 1.5}),
            lambda ops: ops.stats(""),
            lambda ops: ops.exists(""),
            lambda ops: ops.exists_on_all_nodes(""),
            lambda ops: ops.get_nodes_with_container(""),
            lambda ops: ops.list({"all": 1}),
            lambda ops: ops.list({"limit": 0}),
            lambda ops: ops.list({"filters": "status=running"}),
            lambda ops: ops.list("all"),
            lambda ops: ops.create(None),
        ],
    )
    def test_rejected_without_contacting_nodes(self, containers, fleet, call):
        with pytest.raises(ValidationError):
            call(containers)
        for client in fleet.values():
            assert client.container_api.mock_calls == []


class TestPassThrough:

    def test_list_passes_parameters(self, containers, fleet):
        fleet["a"].container_api.list.return_value = [{"Id": "1"}]
        results = containers.list({"all": True, "limit": 5})
        fleet["a"].container_api.list.assert_called_once_with({"all": True, "limit": 5})
        assert results["a"] == Success([{"Id": "1"}])

    def test_create_passes_config(self, containers, fleet):
        config = {"Image": "nginx"}
        containers.create(config)
        for client in fleet.values():
            client.container_api.create.assert_called_once_with(config)

    def test_stop_passes_timeout(self, containers, fleet):
        containers.stop("web", timeout=3)
        fleet["b"].container_api.stop.assert_called_once_with("web", 3)

    def test_remove_flags(self, containers, fleet):
        containers.remove("web", force=True, remove_volumes=True)
        fleet["c"].container_api.remove.assert_called_once_with("web", True, True)

    def test_logs_accepts_tail_string(self, containers, fleet):
        containers.logs("web", {"tail": "all", "stdout": True})
        fleet["a"].container_api.logs.assert_called_once_with(
            "web", {"tail": "all", "stdout": True}
        )


class TestNotFound:
    """start/stop translate a missing container into a plain value."""

    @pytest.mark.parametrize("verb", ["start", "stop"])
    def test_translated(self, containers, fleet, verb):
        getattr(fleet["b"].container_api, verb).side_effect = ResourceNotFoundError()
        results = getattr(containers, verb)("web")
        assert results["b"] == Success(
            {
                "error": True,
                "error_type": "not_found",
                "message": 'Container "web" not found on this node',
            }
        )
        assert results["a"].is_ok()

    def test_other_errors_become_failures(self, containers, fleet):
        fleet["a"].container_api.start.side_effect = ApiError("server error", status_code=500)
        results = containers.start("web")
        assert isinstance(results["a"], Failure)
        assert results["a"].error.message == "server error"

    def test_inspect_not_found_is_a_failure(self, containers, fleet):
        fleet["a"].container_api.inspect.side_effect = ResourceNotFoundError("no such container")
        results = containers.inspect("web")
        assert isinstance(results["a"], Failure)


class TestExistence:

    def test_exists_on_all_nodes(self, containers, fleet):
        for client in fleet.values():
            client.container_api.exists.return_value = True
        assert containers.exists_on_all_nodes("web") is True

    def test_not_on_all_nodes(self, containers, fleet):
        for client in fleet.values():
            client.container_api.exists.return_value = True
        fleet["c"].container_api.exists.return_value = False
        assert containers.exists_on_all_nodes("web") is False

    def test_failure_counts_as_absent(self, containers, fleet):
        for client in fleet.values():
            client.container_api.exists.return_value = True
        fleet["b"].container_api.exists.side_effect = ConnectionError("down")
        assert containers.exists_on_all_nodes("web") is False
        assert containers.get_nodes_with_container("web") == ["a", "c"]

    def test_truthy_non_bool_is_not_true(self, containers, fleet):
        for client in fleet.values():
            client.container_api.exists.return_value = "yes"
        assert containers.get_nodes_with_container("web") == []
