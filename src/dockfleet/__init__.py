"""dockfleet — fan container-engine operations out across many nodes.

Manifesto:
    Managing a handful of engine hosts means repeating every verb per
    host and stitching the answers together by hand.  dockfleet keeps a
    tagged registry of engine clients, selects a set of them, and runs
    one operation against each under an explicit execution policy.  One
    node's failure is reported in that node's outcome and never spoils
    another node's result.

Quick start::

    from dockfleet import ExecutionPolicy, NodeRegistry, successful_node_names

    registry = NodeRegistry()
    registry.add_node("edge-1", client_a, tags=["edge"])
    registry.add_node("edge-2", client_b, tags=["edge"])

    images = registry.by_tag("edge").images(ExecutionPolicy.concurrent())
    results = images.pull("nginx", {"tag": "1.27"})
    print(successful_node_names(results))

Tags:
    dockfleet, fan-out, cluster, containers

Doc-Types:
    - API Reference
"""

from dockfleet.client.protocol import EngineClient
from dockfleet.cluster.node_set import NodeSet
from dockfleet.cluster.registry import Node, NodeRegistry
from dockfleet.core.config import FleetSettings, clear_settings_cache, get_settings
from dockfleet.core.errors import (
    ApiError,
    FleetError,
    NodeNotFoundError,
    OperationFailedError,
    ResourceNotFoundError,
    ValidationError,
)
from dockfleet.core.logging import configure_logging, get_logger
from dockfleet.execution.fanout import FanOutExecutor
from dockfleet.execution.outcome import (
    ErrorDescriptor,
    ErrorDetailLevel,
    Failure,
    Outcome,
    Success,
    all_succeeded,
    failed_node_names,
    outcomes_to_dict,
    partition_outcomes,
    successful_node_names,
)
from dockfleet.execution.policy import ExecutionPolicy, ExecutionStrategy
from dockfleet.operations import (
    ContainerOperations,
    ImageBuildOptions,
    ImageOperations,
    NetworkOperations,
    SystemOperations,
    VolumeOperations,
)

__version__ = "0.1.0"

__all__ = [
    "EngineClient",
    "Node",
    "NodeRegistry",
    "NodeSet",
    "FleetSettings",
    "get_settings",
    "clear_settings_cache",
    "ApiError",
    "FleetError",
    "NodeNotFoundError",
    "OperationFailedError",
    "ResourceNotFoundError",
    "ValidationError",
    "configure_logging",
    "get_logger",
    "FanOutExecutor",
    "ErrorDescriptor",
    "ErrorDetailLevel",
    "Failure",
    "Outcome",
    "Success",
    "all_succeeded",
    "failed_node_names",
    "outcomes_to_dict",
    "partition_outcomes",
    "successful_node_names",
    "ExecutionPolicy",
    "ExecutionStrategy",
    "ContainerOperations",
    "ImageBuildOptions",
    "ImageOperations",
    "NetworkOperations",
    "SystemOperations",
    "VolumeOperations",
]
