import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from domain.common.exceptions import StoreUnavailableException
from domain.connection.registry import ConnectionRegistry
from infrastructure.external import cache as cache_module
from infrastructure.external.cache import RedisClient
from infrastructure.external.cache import redis_client as redis_client_module
from infrastructure.stores.redis_store import RedisConnectionStore


class FakeAsyncRedis:
    """Just enough of redis.asyncio.Redis for SET based storage."""

    def __init__(self, *, fail: bool = False):
        self.sets: dict[str, set] = {}
        self.fail = fail
        self.closed = False

    def _check(self):
        if self.fail:
            raise RedisConnectionError("connection refused")

    async def sadd(self, key, *members):
        self._check()
        bucket = self.sets.setdefault(key, set())
        before = len(bucket)
        bucket.update(members)
        return len(bucket) - before

    async def srem(self, key, *members):
        self._check()
        bucket = self.sets.get(key, set())
        removed = len(bucket & set(members))
        bucket.difference_update(members)
        return removed

    async def smembers(self, key):
        self._check()
        return set(self.sets.get(key, set()))

    async def scard(self, key):
        self._check()
        return len(self.sets.get(key, set()))

    async def sscan_iter(self, key, count=None):
        self._check()
        for member in list(self.sets.get(key, set())):
            yield member

    async def ping(self):
        self._check()
        return True

    async def aclose(self):
        self.closed = True


@pytest.mark.asyncio
async def test_redis_store_uses_namespaced_set():
    fake = FakeAsyncRedis()
    store = RedisConnectionStore(RedisClient(fake, namespace="broadcast"), key="connections")

    await store.put("a")
    await store.put("a")
    await store.put("b")
    await store.delete("b")
    await store.delete("missing")

    assert fake.sets == {"broadcast:connections": {"a"}}
    assert [cid async for cid in store.scan()] == ["a"]


@pytest.mark.asyncio
async def test_redis_store_through_registry():
    registry = ConnectionRegistry(RedisConnectionStore(RedisClient(FakeAsyncRedis())))
    await registry.register("x")
    await registry.register("y")
    assert sorted(await registry.list_all()) == ["x", "y"]


@pytest.mark.asyncio
async def test_redis_errors_become_store_unavailable():
    client = RedisClient(FakeAsyncRedis(fail=True))
    store = RedisConnectionStore(client)

    with pytest.raises(StoreUnavailableException) as exc_info:
        await store.put("a")
    assert exc_info.value.details["backend"] == "redis"
    with pytest.raises(StoreUnavailableException):
        await store.delete("a")
    with pytest.raises(StoreUnavailableException):
        [cid async for cid in store.scan()]
    assert client.metrics.errors == 2


@pytest.mark.asyncio
async def test_health_check_reports_failure():
    assert await RedisClient(FakeAsyncRedis()).health_check() is True
    assert await RedisClient(FakeAsyncRedis(fail=True)).health_check() is False


@pytest.mark.asyncio
async def test_init_and_shutdown_singleton(monkeypatch):
    fake = FakeAsyncRedis()
    monkeypatch.setattr(redis_client_module.aioredis, "from_url", lambda url, **kwargs: fake)
    monkeypatch.setattr(redis_client_module, "_cache_instance", None)

    first = await cache_module.init_redis_client("redis://localhost:6379/0", namespace="ns")
    second = await cache_module.init_redis_client("redis://localhost:6379/0")
    assert first is second
    assert cache_module.get_redis_client() is first

    await cache_module.shutdown_redis_client()
    assert fake.closed
    assert cache_module.get_redis_client() is None


@pytest.mark.asyncio
async def test_init_fails_when_ping_fails(monkeypatch):
    fake = FakeAsyncRedis(fail=True)
    monkeypatch.setattr(redis_client_module.aioredis, "from_url", lambda url, **kwargs: fake)
    monkeypatch.setattr(redis_client_module, "_cache_instance", None)

    with pytest.raises(RedisConnectionError):
        await cache_module.init_redis_client("redis://localhost:6379/0")
    assert fake.closed
    assert cache_module.get_redis_client() is None
