"""Structural interface to the per-node engine API clients."""

from dockfleet.client.protocol import (
    ContainerApi,
    EngineClient,
    ImageApi,
    NetworkApi,
    SystemApi,
    VolumeApi,
    is_engine_client,
)

__all__ = [
    "EngineClient",
    "ContainerApi",
    "ImageApi",
    "NetworkApi",
    "VolumeApi",
    "SystemApi",
    "is_engine_client",
]
