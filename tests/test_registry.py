import pytest

from domain.common.exceptions import (
    InvalidIdentifierException,
    NoConnectionsException,
    StoreUnavailableException,
)
from domain.connection.entity import validate_message
from domain.connection.registry import ConnectionRegistry
from infrastructure.stores.memory import InMemoryConnectionStore


class FailingStore(InMemoryConnectionStore):
    backend = "failing"

    async def put(self, connection_id: str) -> None:
        raise StoreUnavailableException("put", backend=self.backend, reason="down")

    async def scan(self):
        raise StoreUnavailableException("scan", backend=self.backend, reason="down")
        yield  # pragma: no cover


@pytest.mark.asyncio
async def test_register_is_idempotent(registry, store):
    await registry.register("a")
    await registry.register("a")
    assert len(store) == 1
    assert await registry.list_all() == ["a"]


@pytest.mark.asyncio
async def test_unregister_unknown_id_succeeds(registry, store):
    await registry.register("a")
    await registry.unregister("b")
    await registry.unregister("a")
    await registry.unregister("a")
    assert len(store) == 0


@pytest.mark.asyncio
@pytest.mark.parametrize("bad", ["", "   ", None, 42])
async def test_register_rejects_invalid_identifier(registry, store, bad):
    with pytest.raises(InvalidIdentifierException):
        await registry.register(bad)
    assert len(store) == 0


@pytest.mark.asyncio
async def test_unregister_rejects_invalid_identifier(registry):
    with pytest.raises(InvalidIdentifierException):
        await registry.unregister("")


def test_invalid_identifier_messages():
    assert InvalidIdentifierException(None).message == "no connectionId"
    assert InvalidIdentifierException("").message == "empty connectionId"


@pytest.mark.asyncio
async def test_list_all_empty_raises_no_connections(registry):
    with pytest.raises(NoConnectionsException) as exc_info:
        await registry.list_all()
    assert exc_info.value.message == "no connection ids"


@pytest.mark.asyncio
async def test_list_all_returns_every_registered_id(registry):
    for cid in ("a", "b", "c"):
        await registry.register(cid)
    assert sorted(await registry.list_all()) == ["a", "b", "c"]


@pytest.mark.asyncio
async def test_list_all_skips_invalid_stored_ids():
    registry = ConnectionRegistry(InMemoryConnectionStore(initial=["a", "", "  "]))
    assert await registry.list_all() == ["a"]


@pytest.mark.asyncio
async def test_list_all_with_only_invalid_ids_is_empty():
    registry = ConnectionRegistry(InMemoryConnectionStore(initial=[""]))
    with pytest.raises(NoConnectionsException):
        await registry.list_all()


@pytest.mark.asyncio
async def test_store_failures_propagate():
    registry = ConnectionRegistry(FailingStore())
    with pytest.raises(StoreUnavailableException):
        await registry.register("a")
    with pytest.raises(StoreUnavailableException):
        await registry.list_all()


def test_validate_message_accepts_text_and_bytes():
    assert validate_message("hi") == "hi"
    assert validate_message(b"\x00") == b"\x00"
