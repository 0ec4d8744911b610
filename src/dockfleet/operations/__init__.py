"""Per-resource fan-out facades.

Each facade validates its arguments, then runs one closure per node through
a :class:`~dockfleet.execution.fanout.FanOutExecutor`.
"""

from dockfleet.operations.base import NodeOperations, not_found_result
from dockfleet.operations.containers import ContainerOperations
from dockfleet.operations.images import ImageBuildOptions, ImageOperations
from dockfleet.operations.networks import NetworkOperations
from dockfleet.operations.system import SystemOperations
from dockfleet.operations.volumes import VolumeOperations

__all__ = [
    "NodeOperations",
    "not_found_result",
    "ContainerOperations",
    "ImageOperations",
    "ImageBuildOptions",
    "NetworkOperations",
    "VolumeOperations",
    "SystemOperations",
]
