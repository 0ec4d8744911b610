"""Tests for NodeSet."""

import pytest

from dockfleet.cluster.node_set import NodeSet
from dockfleet.core.errors import ValidationError
from dockfleet.execution.policy import ExecutionPolicy, ExecutionStrategy
from dockfleet.operations import (
    ContainerOperations,
    ImageOperations,
    NetworkOperations,
    SystemOperations,
    VolumeOperations,
)


class TestIntrospection:

    def test_counts(self, fleet):
        node_set = NodeSet(fleet)
        assert node_set.count() == 3
        assert len(node_set) == 3
        assert not node_set.is_empty()
        assert NodeSet({}).is_empty()

    def test_get_nodes_returns_copy(self, fleet):
        node_set = NodeSet(fleet)
        node_set.get_nodes().pop("a")
        assert "a" in node_set

    def test_source_mapping_is_copied(self, fleet, make_client):
        node_set = NodeSet(fleet)
        fleet["d"] = make_client("d")
        assert node_set.names() == ["a", "b", "c"]


class TestFilter:

    def test_filter_is_independent(self, fleet):
        node_set = NodeSet(fleet)
        subset = node_set.filter(lambda client, name: name in ("a", "c"))
        assert subset.names() == ["a", "c"]
        assert node_set.names() == ["a", "b", "c"]

    def test_filter_receives_client_and_name(self, fleet):
        seen = []
        NodeSet(fleet).filter(lambda client, name: seen.append((client.name, name)) or True)
        assert seen == [("a", "a"), ("b", "b"), ("c", "c")]

    def test_filter_keeps_policy(self, fleet):
        policy = ExecutionPolicy.concurrent()
        assert NodeSet(fleet, policy).filter(lambda c, n: True).policy is policy


class TestFacades:
    """Facade accessors bind the snapshot to an executor."""

    @pytest.mark.parametrize(
        "accessor, facade_type",
        [
            ("containers", ContainerOperations),
            ("images", ImageOperations),
            ("networks", NetworkOperations),
            ("volumes", VolumeOperations),
            ("system", SystemOperations),
        ],
    )
    def test_accessor_types(self, fleet, accessor, facade_type):
        facade = getattr(NodeSet(fleet), accessor)()
        assert isinstance(facade, facade_type)
        assert facade.count() == 3

    def test_explicit_policy_wins(self, fleet):
        node_set = NodeSet(fleet, ExecutionPolicy.sequential())
        facade = node_set.containers(ExecutionPolicy.concurrent())
        assert facade.policy.strategy is ExecutionStrategy.CONCURRENT

    def test_set_policy_used_when_none_given(self, fleet):
        facade = NodeSet(fleet).with_policy(ExecutionPolicy.concurrent()).images()
        assert facade.policy.is_concurrent

    def test_settings_policy_is_the_fallback(self, fleet, monkeypatch):
        monkeypatch.setenv("DOCKFLEET_STRATEGY", "parallel")
        monkeypatch.setenv("DOCKFLEET_MAX_RETRIES", "5")
        facade = NodeSet(fleet).system()
        assert facade.policy.is_concurrent
        assert facade.policy.max_retries == 5

    def test_empty_set_has_no_facades(self):
        with pytest.raises(ValidationError):
            NodeSet({}).containers()

    def test_with_policy_rejects_non_policy(self, fleet):
        with pytest.raises(ValidationError):
            NodeSet(fleet).with_policy("concurrent")


class TestRun:

    def test_run_ad_hoc_operation(self, fleet):
        results = NodeSet(fleet).run(lambda client: client.name * 2)
        assert {name: outcome.unwrap() for name, outcome in results.items()} == {
            "a": "aa",
            "b": "bb",
            "c": "cc",
        }

    def test_run_with_policy(self, fleet):
        def fail(client):
            raise RuntimeError("nope")

        results = NodeSet(fleet).run(fail, ExecutionPolicy(error_detail_level="basic"))
        assert results["a"].error.to_dict() == {"message": "nope"}

    def test_facades_do_not_share_policy(self, fleet):
        node_set = NodeSet(fleet)
        first = node_set.containers()
        first.set_execution_strategy("concurrent")
        assert not node_set.containers().policy.is_concurrent
