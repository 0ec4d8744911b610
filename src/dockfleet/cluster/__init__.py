"""Node registry and node-set selection."""

from dockfleet.cluster.node_set import NodeSet
from dockfleet.cluster.registry import Node, NodeRegistry

__all__ = ["Node", "NodeRegistry", "NodeSet"]
