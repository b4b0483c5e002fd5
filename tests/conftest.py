"""Pytest bootstrap configuration.

Pin the broadcast backends to in-process implementations before test
collection and module imports that depend on application settings.
"""
import os

import pytest

os.environ.setdefault("BROADCAST__STORE", "memory")
os.environ.setdefault("BROADCAST__TRANSPORT", "websocket")
os.environ.setdefault("DEBUG", "false")

from domain.connection.registry import ConnectionRegistry  # noqa: E402
from infrastructure.stores.memory import InMemoryConnectionStore  # noqa: E402


@pytest.fixture
def store() -> InMemoryConnectionStore:
    return InMemoryConnectionStore()


@pytest.fixture
def registry(store: InMemoryConnectionStore) -> ConnectionRegistry:
    return ConnectionRegistry(store)
