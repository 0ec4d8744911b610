"""Fan-Out Executor — run one operation against every node of a set.

WHY
───
Cluster verbs ("pull this image everywhere", "is this container running
on every node?") are the same call repeated per node.  What makes that
hard is not the call, it is the bookkeeping: one unreachable node must
not stop the others from being tried, must not surface as an exception
out of the run, and must still get exactly one entry in the report.
``FanOutExecutor`` owns that bookkeeping.

ARCHITECTURE
────────────
::

    FanOutExecutor(nodes, policy)
      └── .run(operation) ──► dict[node_name, Outcome]
                 │
                 ├── SEQUENTIAL: for node in nodes → _run_node(node)
                 └── CONCURRENT: ThreadPoolExecutor.submit(_run_node) per node

    _run_node (one node, strictly ordered attempts):

        Pending ─► Attempting ─┬─ ok ───────────────────────► Success
                      ▲        └─ error ─┬─ retry allowed ─┐
                      │                  │                 │ sleep(backoff)
                      └──────────────────┼─────────────────┘
                                         └─ exhausted / disabled / budget
                                                           ─► Failure

    Backoff (per node):
      exponential → backoff_base_ms * 2**(retry-1)   (100ms, 200ms, 400ms, ...)
      constant    → retry_delay_ms

GUARANTEES
──────────
- Exactly one outcome per input node, under any strategy.
- An operation's exception is captured into that node's ``Failure``;
  it never escapes :meth:`FanOutExecutor.run`.
- A node's own attempts never overlap; different nodes do (concurrent).
- Only configuration misuse raises (``ValidationError``).

Related modules:
    policy.py   ExecutionPolicy (strategy, retry, detail level)
    retry.py    backoff schedule derived from the policy
    outcome.py  Success / Failure / ErrorDescriptor

Example::

    executor = FanOutExecutor(registry.get_nodes(), ExecutionPolicy.concurrent())
    results = executor.run(lambda client: client.system().ping())
    print(successful_node_names(results))
"""

from __future__ import annotations

import contextvars
import time
import uuid
from collections.abc import Callable, Mapping
from concurrent.futures import Future, ThreadPoolExecutor, as_completed
from typing import Any, TypeVar

from dockfleet.client.protocol import EngineClient, is_engine_client
from dockfleet.core.errors import ValidationError
from dockfleet.core.logging import get_logger
from dockfleet.execution.outcome import (
    ErrorDescriptor,
    Failure,
    Outcome,
    Success,
    error_message,
)
from dockfleet.execution.policy import ExecutionPolicy
from dockfleet.execution.retry import BackoffSchedule

logger = get_logger(__name__)

T = TypeVar("T")

Operation = Callable[[EngineClient], T]


class FanOutExecutor:
    """Apply one operation to every node, isolating per-node failure.

    Parameters
    ----------
    nodes : Mapping[str, EngineClient]
        Node name → client.  Copied at construction.
    policy : ExecutionPolicy, optional
        Defaults to ``ExecutionPolicy()`` (sequential, no retries).
    sleep : callable
        Used for backoff waits (injectable for tests).
    clock : callable
        Monotonic clock used for the run budget.
    """

    def __init__(
        self,
        nodes: Mapping[str, EngineClient],
        policy: ExecutionPolicy | None = None,
        *,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if not nodes:
            raise ValidationError.required("nodes", "Node collection cannot be empty")

        for name, client in nodes.items():
            if not name or not isinstance(name, str):
                raise ValidationError.invalid(
                    "node name", name, "non-empty string", "Node name must be a non-empty string"
                )
            if not is_engine_client(client):
                raise ValidationError.invalid(
                    "node client",
                    client,
                    "EngineClient",
                    f"Client for node {name!r} does not implement EngineClient",
                )

        if policy is not None and not isinstance(policy, ExecutionPolicy):
            raise ValidationError.invalid("policy", policy, "ExecutionPolicy")

        self._nodes: dict[str, EngineClient] = dict(nodes)
        self._policy = policy or ExecutionPolicy()
        self._sleep = sleep
        self._clock = clock

    # ── Configuration ────────────────────────────────────────────────

    @property
    def policy(self) -> ExecutionPolicy:
        return self._policy

    def set_policy(self, policy: ExecutionPolicy) -> FanOutExecutor:
        """Replace the policy used by subsequent runs."""
        if not isinstance(policy, ExecutionPolicy):
            raise ValidationError.invalid("policy", policy, "ExecutionPolicy")
        self._policy = policy
        return self

    @property
    def nodes(self) -> dict[str, EngineClient]:
        """Copy of the node mapping this executor targets."""
        return dict(self._nodes)

    def __len__(self) -> int:
        return len(self._nodes)

    # ── Execution ────────────────────────────────────────────────────

    def run(self, operation: Operation[T]) -> dict[str, Outcome]:
        """Run ``operation`` once per node (plus retries) and report per node.

        Args:
            operation: Callable taking one node client.  Its return value
                becomes the node's ``Success``; anything it raises becomes
                the node's ``Failure``.

        Returns:
            Fresh dict with exactly one outcome per node.

        Raises:
            ValidationError: If ``operation`` is not callable.
        """
        if not callable(operation):
            raise ValidationError.invalid(
                "operation", operation, "callable", "Operation must be a callable"
            )

        # Snapshot so a concurrent set_policy() cannot change a run midway.
        policy = self._policy
        schedule = BackoffSchedule.for_policy(policy)
        run_id = uuid.uuid4().hex[:12]
        started = self._clock()
        deadline = (
            started + policy.run_timeout_seconds
            if policy.run_timeout_seconds is not None
            else None
        )

        logger.info(
            "fanout.start",
            run_id=run_id,
            nodes=len(self._nodes),
            strategy=policy.strategy.value,
            retry_on_failure=policy.retry_on_failure,
        )

        if policy.is_concurrent:
            results = self._run_concurrent(operation, policy, schedule, deadline, run_id)
        else:
            results = self._run_sequential(operation, policy, schedule, deadline, run_id)

        failed = sum(1 for outcome in results.values() if outcome.is_err())
        logger.info(
            "fanout.complete",
            run_id=run_id,
            succeeded=len(results) - failed,
            failed=failed,
            duration_seconds=round(self._clock() - started, 6),
        )
        return results

    def _run_sequential(
        self,
        operation: Operation[T],
        policy: ExecutionPolicy,
        schedule: BackoffSchedule,
        deadline: float | None,
        run_id: str,
    ) -> dict[str, Outcome]:
        results: dict[str, Outcome] = {}
        for name, client in self._nodes.items():
            results[name] = self._run_node(
                name, client, operation, policy, schedule, deadline, run_id
            )
        return results

    def _run_concurrent(
        self,
        operation: Operation[T],
        policy: ExecutionPolicy,
        schedule: BackoffSchedule,
        deadline: float | None,
        run_id: str,
    ) -> dict[str, Outcome]:
        max_workers = min(policy.max_concurrency or len(self._nodes), len(self._nodes))
        outcomes: dict[str, Outcome] = {}

        with ThreadPoolExecutor(
            max_workers=max_workers, thread_name_prefix="dockfleet-fanout"
        ) as pool:
            futures: dict[Future[Outcome], str] = {
                pool.submit(
                    # Workers see the caller's bound log context.
                    contextvars.copy_context().run,
                    self._run_node,
                    name, client, operation, policy, schedule, deadline, run_id,
                ): name
                for name, client in self._nodes.items()
            }
            for future in as_completed(futures):
                name = futures[future]
                try:
                    outcomes[name] = future.result()
                except Exception as exc:
                    # _run_node captures operation errors; this covers
                    # failures of the bookkeeping itself.
                    outcomes[name] = Failure(
                        ErrorDescriptor.from_exception(exc, policy.error_detail_level)
                    )

        return {name: outcomes[name] for name in self._nodes}

    def _run_node(
        self,
        name: str,
        client: EngineClient,
        operation: Operation[T],
        policy: ExecutionPolicy,
        schedule: BackoffSchedule,
        deadline: float | None,
        run_id: str,
    ) -> Outcome:
        """Drive one node to a terminal outcome."""
        retries_used = 0
        while True:
            try:
                value = operation(client)
            except Exception as exc:
                if not schedule.allows_retry(retries_used):
                    return self._fail(name, exc, retries_used + 1, policy, run_id)

                if deadline is not None and self._clock() >= deadline:
                    logger.warning(
                        "fanout.run_budget_exhausted",
                        run_id=run_id,
                        node=name,
                        attempts=retries_used + 1,
                    )
                    return self._fail(name, exc, retries_used + 1, policy, run_id)

                retries_used += 1
                delay = schedule.delay_before(retries_used)
                logger.debug(
                    "fanout.node_retry",
                    run_id=run_id,
                    node=name,
                    retry=retries_used,
                    delay_seconds=delay,
                    error=error_message(exc),
                )
                if delay > 0:
                    self._sleep(delay)
                continue

            return Success(value, attempts=retries_used + 1)

    def _fail(
        self,
        name: str,
        error: Exception,
        attempts: int,
        policy: ExecutionPolicy,
        run_id: str,
    ) -> Failure:
        logger.warning(
            "fanout.node_failed",
            run_id=run_id,
            node=name,
            attempts=attempts,
            error_type=type(error).__name__,
            error=error_message(error),
        )
        return Failure(
            ErrorDescriptor.from_exception(error, policy.error_detail_level),
            attempts=attempts,
        )


def run_on_nodes(
    nodes: Mapping[str, EngineClient],
    operation: Operation[Any],
    policy: ExecutionPolicy | None = None,
) -> dict[str, Outcome]:
    """One-shot helper: ``FanOutExecutor(nodes, policy).run(operation)``."""
    return FanOutExecutor(nodes, policy).run(operation)


__all__ = ["FanOutExecutor", "Operation", "run_on_nodes"]
