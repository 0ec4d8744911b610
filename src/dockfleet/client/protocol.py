"""Engine client protocol — the narrow interface into the per-node API layer.

Manifesto:
The fan-out engine never speaks HTTP.  Each node carries one already
configured client (host, auth and timeout are the client's business) and
the engine only needs to know that the client hands out per-resource APIs.
``EngineClient`` is a ``typing.Protocol``: any object with the right
methods satisfies it, no base class required.

ARCHITECTURE
────────────
::

    EngineClient (Protocol)
      ├── .container() → ContainerApi
      ├── .image()     → ImageApi
      ├── .network()   → NetworkApi
      ├── .volume()    → VolumeApi
      └── .system()    → SystemApi

    Resource APIs raise:
      ResourceNotFoundError  ─ 404 from the engine
      ApiError               ─ any other error response
      (anything else)        ─ transport failures

Only ``EngineClient`` is checked at runtime (registry and executor
construction); the resource API protocols document the verbs the domain
facades call.

Tags:
    dockfleet, client, protocol, interface

Doc-Types:
    api-reference
"""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable


class ContainerApi(Protocol):
    def list(self, parameters: dict[str, Any]) -> Any: ...
    def create(self, config: Any) -> Any: ...
    def inspect(self, container_id: str) -> Any: ...
    def start(self, container_id: str) -> Any: ...
    def stop(self, container_id: str, timeout: int) -> Any: ...
    def restart(self, container_id: str, timeout: int) -> Any: ...
    def remove(self, container_id: str, force: bool, remove_volumes: bool) -> Any: ...
    def logs(self, container_id: str, parameters: dict[str, Any]) -> Any: ...
    def stats(self, container_id: str, stream: bool) -> Any: ...
    def exists(self, container_id: str) -> bool: ...


class ImageApi(Protocol):
    def list(self, parameters: dict[str, Any]) -> Any: ...
    def build(self, parameters: dict[str, Any], config: dict[str, Any]) -> Any: ...
    def create(self, from_image: str, tag: str | None) -> Any: ...
    def inspect(self, name: str) -> Any: ...
    def history(self, name: str) -> Any: ...
    def push(self, name: str, parameters: dict[str, Any]) -> Any: ...
    def tag(self, name: str, repo: str, tag: str | None) -> Any: ...
    def remove(self, name: str, force: bool, noprune: bool) -> Any: ...
    def search(self, term: str) -> Any: ...
    def prune(self, parameters: dict[str, Any]) -> Any: ...
    def exists(self, name: str) -> bool: ...
    def pull(self, name: str, parameters: dict[str, Any]) -> Any: ...
    def load(self, image_archive: str) -> Any: ...
    def save(self, names: str | list[str], output_file: str) -> Any: ...


class NetworkApi(Protocol):
    def list(self, parameters: dict[str, Any]) -> Any: ...
    def create(self, name: str, parameters: dict[str, Any]) -> Any: ...
    def inspect(self, network_id: str) -> Any: ...
    def connect(self, network_id: str, container: str, parameters: dict[str, Any]) -> Any: ...
    def disconnect(self, network_id: str, container: str) -> Any: ...
    def remove(self, network_id: str) -> Any: ...
    def prune(self, parameters: dict[str, Any]) -> Any: ...
    def exists(self, network_id: str) -> bool: ...


class VolumeApi(Protocol):
    def list(self, parameters: dict[str, Any]) -> Any: ...
    def create(self, name: str, parameters: dict[str, Any]) -> Any: ...
    def inspect(self, name: str) -> Any: ...
    def remove(self, name: str, force: bool) -> Any: ...
    def prune(self, parameters: dict[str, Any]) -> Any: ...
    def exists(self, name: str) -> bool: ...


class SystemApi(Protocol):
    def version(self) -> Any: ...
    def info(self) -> Any: ...
    def auth(self, auth_config: dict[str, Any]) -> Any: ...
    def ping(self) -> bool: ...
    def events(self, filters: dict[str, Any]) -> Any: ...
    def data_usage(self) -> Any: ...
    def df(self) -> Any: ...
    def prune_containers(self, filters: dict[str, Any]) -> Any: ...
    def prune_images(self, filters: dict[str, Any]) -> Any: ...
    def prune_networks(self, filters: dict[str, Any]) -> Any: ...
    def prune_volumes(self, filters: dict[str, Any]) -> Any: ...
    def prune(self, filters: dict[str, Any]) -> Any: ...


@runtime_checkable
class EngineClient(Protocol):
    """One configured client for one container-engine node.

    Example implementation:
        >>> class MyClient:
        ...     def container(self): return self._containers
        ...     def image(self): return self._images
        ...     def network(self): return self._networks
        ...     def volume(self): return self._volumes
        ...     def system(self): return self._system
    """

    def container(self) -> ContainerApi: ...

    def image(self) -> ImageApi: ...

    def network(self) -> NetworkApi: ...

    def volume(self) -> VolumeApi: ...

    def system(self) -> SystemApi: ...


def is_engine_client(obj: Any) -> bool:
    """True if ``obj`` satisfies :class:`EngineClient`."""
    return isinstance(obj, EngineClient)


__all__ = [
    "EngineClient",
    "ContainerApi",
    "ImageApi",
    "NetworkApi",
    "VolumeApi",
    "SystemApi",
    "is_engine_client",
]
