"""
Shared pytest fixtures for dockfleet tests.

This module provides:
- ``FakeClient``: an EngineClient whose resource APIs are MagicMocks
- Node map / registry fixtures
- A recording ``sleep`` so retry tests never wait
- Settings cache isolation

Usage:
    def test_something(fleet, recorded_sleep):
        executor = FanOutExecutor(fleet, policy, sleep=recorded_sleep)
"""

from pathlib import Path
from unittest.mock import MagicMock

import pytest
import structlog

from dockfleet.cluster.registry import NodeRegistry
from dockfleet.core.config import clear_settings_cache


# =============================================================================
# Test Markers Configuration
# =============================================================================


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    """Mark every test without an explicit marker as a unit test."""
    for item in items:
        markers = {mark.name for mark in item.iter_markers()}
        if not markers.intersection({"unit", "slow"}):
            item.add_marker(pytest.mark.unit)


# =============================================================================
# Fake engine client
# =============================================================================


class FakeClient:
    """EngineClient double: each resource API is a MagicMock."""

    def __init__(self, name: str = "client"):
        self.name = name
        self.container_api = MagicMock(name=f"{name}.container")
        self.image_api = MagicMock(name=f"{name}.image")
        self.network_api = MagicMock(name=f"{name}.network")
        self.volume_api = MagicMock(name=f"{name}.volume")
        self.system_api = MagicMock(name=f"{name}.system")

    def container(self):
        return self.container_api

    def image(self):
        return self.image_api

    def network(self):
        return self.network_api

    def volume(self):
        return self.volume_api

    def system(self):
        return self.system_api

    def __repr__(self) -> str:
        return f"FakeClient({self.name!r})"


@pytest.fixture
def make_client():
    """Factory for named fake clients."""
    return FakeClient


@pytest.fixture
def fleet() -> dict[str, FakeClient]:
    """Three-node map: a, b, c."""
    return {name: FakeClient(name) for name in ("a", "b", "c")}


@pytest.fixture
def registry(fleet) -> NodeRegistry:
    """Registry over ``fleet``: a=[prod, eu], b=[prod], c=[staging]."""
    reg = NodeRegistry()
    reg.add_node("a", fleet["a"], tags=["prod", "eu"])
    reg.add_node("b", fleet["b"], tags=["prod"])
    reg.add_node("c", fleet["c"], tags=["staging"])
    return reg


# =============================================================================
# Time control
# =============================================================================


class RecordingSleep:
    """Callable replacing time.sleep; records requested delays."""

    def __init__(self):
        self.calls: list[float] = []

    def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)


@pytest.fixture
def recorded_sleep() -> RecordingSleep:
    return RecordingSleep()


# =============================================================================
# Settings isolation
# =============================================================================


@pytest.fixture(autouse=True)
def _isolated_settings(monkeypatch, tmp_path: Path):
    """Run every test with no DOCKFLEET_* env, no .env, a cold settings cache
    and default structlog configuration afterwards."""
    import os

    for key in list(os.environ):
        if key.startswith("DOCKFLEET_"):
            monkeypatch.delenv(key, raising=False)
    monkeypatch.chdir(tmp_path)
    clear_settings_cache()
    yield
    clear_settings_cache()
    structlog.reset_defaults()
