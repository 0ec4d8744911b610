"""dockfleet execution — apply one operation to many nodes.

WHY
───
Every cluster verb is "do X on each node, tell me what happened per node".
This package holds the pieces of that loop: the policy that tunes it, the
retry schedule, the per-node outcome types and the executor itself.

ARCHITECTURE
────────────
::

    ExecutionPolicy ──► BackoffSchedule.for_policy()
          │
          ▼
    FanOutExecutor.run(operation) ──► dict[node, Success | Failure]
"""

from dockfleet.execution.fanout import FanOutExecutor, Operation, run_on_nodes
from dockfleet.execution.outcome import (
    ErrorDescriptor,
    ErrorDetailLevel,
    Failure,
    Outcome,
    ResultMap,
    Success,
    all_succeeded,
    failed_node_names,
    outcomes_to_dict,
    partition_outcomes,
    successful_node_names,
)
from dockfleet.execution.policy import ExecutionPolicy, ExecutionStrategy
from dockfleet.execution.retry import NO_RETRY, BackoffSchedule

__all__ = [
    "FanOutExecutor",
    "Operation",
    "run_on_nodes",
    "ErrorDescriptor",
    "ErrorDetailLevel",
    "Failure",
    "Outcome",
    "ResultMap",
    "Success",
    "all_succeeded",
    "failed_node_names",
    "outcomes_to_dict",
    "partition_outcomes",
    "successful_node_names",
    "ExecutionPolicy",
    "ExecutionStrategy",
    "BackoffSchedule",
    "NO_RETRY",
]
