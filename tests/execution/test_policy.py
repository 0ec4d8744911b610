"""Tests for ExecutionPolicy."""

import pytest

from dockfleet.core.errors import ValidationError
from dockfleet.execution.outcome import ErrorDetailLevel
from dockfleet.execution.policy import ExecutionPolicy, ExecutionStrategy


class TestDefaults:

    def test_default_values(self):
        policy = ExecutionPolicy()
        assert policy.strategy is ExecutionStrategy.SEQUENTIAL
        assert policy.error_detail_level is ErrorDetailLevel.STANDARD
        assert policy.retry_on_failure is False
        assert policy.max_retries == 3
        assert policy.retry_delay_ms == 1000
        assert policy.exponential_backoff is True
        assert policy.backoff_base_ms == 100
        assert policy.operation_timeout_seconds == 30
        assert policy.max_concurrency is None
        assert policy.run_timeout_seconds is None
        assert dict(policy.node_priorities) == {}
        assert policy.default_tag is None
        assert policy.failover_nodes == ()

    def test_factories(self):
        assert ExecutionPolicy.sequential().is_concurrent is False
        concurrent = ExecutionPolicy.concurrent(max_concurrency=4)
        assert concurrent.is_concurrent is True
        assert concurrent.max_concurrency == 4

    def test_parallel_alias(self):
        assert ExecutionPolicy(strategy="parallel").strategy is ExecutionStrategy.CONCURRENT
        assert ExecutionPolicy(strategy="PARALLEL").strategy is ExecutionStrategy.CONCURRENT

    def test_is_immutable(self):
        with pytest.raises(AttributeError):
            ExecutionPolicy().max_retries = 5

    def test_is_hashable(self):
        first = ExecutionPolicy().with_node_priority("a", 1).with_node_priority("b", 2)
        second = ExecutionPolicy(node_priorities={"b": 2, "a": 1})
        assert first == second
        assert hash(first) == hash(second)
        assert len({first, second, ExecutionPolicy()}) == 2


class TestValidation:
    """Invalid tunables raise ValidationError."""

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"strategy": "round-robin"},
            {"error_detail_level": "verbose"},
            {"max_retries": 0},
            {"max_retries": True},
            {"retry_delay_ms": -1},
            {"backoff_base_ms": -5},
            {"operation_timeout_seconds": 0},
            {"max_concurrency": 0},
            {"run_timeout_seconds": 0},
            {"run_timeout_seconds": "soon"},
            {"node_priorities": {"a": 0}},
            {"node_priorities": {"": 1}},
            {"failover_nodes": ("a", "")},
            {"retry_on_failure": "false"},
            {"retry_on_failure": 1},
            {"exponential_backoff": "yes"},
        ],
    )
    def test_rejected(self, kwargs):
        with pytest.raises(ValidationError):
            ExecutionPolicy(**kwargs)

    def test_invalid_strategy_lists_allowed_values(self):
        with pytest.raises(ValidationError) as exc_info:
            ExecutionPolicy(strategy="round-robin")
        assert "sequential, concurrent" in str(exc_info.value)
        assert exc_info.value.field == "strategy"


class TestBuilders:
    """Builder methods return new validated policies."""

    def test_with_retry_keeps_unspecified_values(self):
        base = ExecutionPolicy(retry_delay_ms=500)
        policy = base.with_retry(True, max_retries=5)
        assert policy.retry_on_failure is True
        assert policy.max_retries == 5
        assert policy.retry_delay_ms == 500
        assert base.retry_on_failure is False

    def test_with_retry_validates(self):
        with pytest.raises(ValidationError):
            ExecutionPolicy().with_retry(True, max_retries=0)
        with pytest.raises(ValidationError, match="retry_on_failure must be a boolean"):
            ExecutionPolicy().with_retry("false")

    def test_chain(self):
        policy = (
            ExecutionPolicy()
            .with_strategy("concurrent")
            .with_error_detail_level("basic")
            .with_operation_timeout(5)
            .with_max_concurrency(2)
            .with_run_timeout(12.5)
            .with_node_priority("edge-1", 1)
            .with_node_priority("edge-2", 2)
            .with_default_tag("edge")
            .with_failover_node("core-1")
            .with_failover_node("core-1")
        )
        assert policy.is_concurrent
        assert policy.error_detail_level is ErrorDetailLevel.BASIC
        assert policy.operation_timeout_seconds == 5
        assert policy.max_concurrency == 2
        assert policy.run_timeout_seconds == 12.5
        assert dict(policy.node_priorities) == {"edge-1": 1, "edge-2": 2}
        assert policy.default_tag == "edge"
        assert policy.failover_nodes == ("core-1",)

    def test_priorities_are_read_only(self):
        policy = ExecutionPolicy().with_node_priority("a", 1)
        with pytest.raises(TypeError):
            policy.node_priorities["b"] = 2


class TestSerialization:

    def test_round_trip(self):
        policy = (
            ExecutionPolicy.concurrent(max_concurrency=3)
            .with_retry(True, max_retries=2, retry_delay_ms=250, exponential_backoff=False)
            .with_error_detail_level("detailed")
            .with_node_priority("a", 2)
            .with_failover_node("b")
            .with_run_timeout(30)
        )
        data = policy.to_dict()
        assert data["strategy"] == "concurrent"
        assert data["failover_nodes"] == ["b"]
        assert ExecutionPolicy.from_dict(data) == policy

    def test_from_camel_case_keys(self):
        policy = ExecutionPolicy.from_dict(
            {
                "executionStrategy": "parallel",
                "errorDetailLevel": "basic",
                "retryOnFailure": True,
                "maxRetries": 4,
                "retryDelay": 200,
                "exponentialBackoff": False,
                "operationTimeout": 10,
                "nodePriorities": {"a": 1},
                "defaultNodeTag": "prod",
                "failoverNodes": ["b", "c"],
            }
        )
        assert policy.is_concurrent
        assert policy.max_retries == 4
        assert policy.retry_delay_ms == 200
        assert policy.default_tag == "prod"
        assert policy.failover_nodes == ("b", "c")

    def test_unknown_key_rejected(self):
        with pytest.raises(ValidationError, match="Unknown policy key"):
            ExecutionPolicy.from_dict({"retries": 3})

    @pytest.mark.parametrize(
        "data",
        [
            {"retry_on_failure": "false"},
            {"retryOnFailure": "true"},
            {"exponentialBackoff": 0},
        ],
    )
    def test_non_boolean_flags_rejected(self, data):
        with pytest.raises(ValidationError, match="must be a boolean"):
            ExecutionPolicy.from_dict(data)
