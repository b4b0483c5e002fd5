"""
Redis客户端实现 - 命名空间隔离的集合操作与连接管理
"""
from __future__ import annotations

import asyncio
import socket
import time
from typing import Any, AsyncIterator, Callable, Optional

from redis import asyncio as aioredis

from core.logging_config import get_logger

logger = get_logger(__name__)


class CacheMetrics:
    """Redis 操作耗时统计"""

    def __init__(self):
        self.total_ops = 0
        self.errors = 0
        self.operation_times: list[float] = []

    @property
    def avg_operation_time(self) -> float:
        if not self.operation_times:
            return 0.0
        return sum(self.operation_times) / len(self.operation_times)

    def record_operation_time(self, duration: float, *, failed: bool = False):
        self.total_ops += 1
        if failed:
            self.errors += 1
        self.operation_times.append(duration)
        # 只保留最近1000次操作的时间
        if len(self.operation_times) > 1000:
            self.operation_times.pop(0)


class RedisClient:
    """
    Redis客户端封装

    特性:
    - 命名空间隔离
    - 性能指标统计
    - 错误原样抛出（RedisError），由调用方决定如何映射
    """

    def __init__(
        self,
        client: aioredis.Redis,
        namespace: str = "",
        enable_metrics: bool = True,
    ):
        self._client = client
        self._namespace = namespace.strip(":")
        self._metrics = CacheMetrics() if enable_metrics else None

    @property
    def metrics(self) -> Optional[CacheMetrics]:
        return self._metrics

    def _format_key(self, key: str) -> str:
        """格式化键名，添加命名空间前缀"""
        if not self._namespace:
            return key
        return f"{self._namespace}:{key}"

    async def _execute_with_metrics(self, operation: Callable, *args, **kwargs) -> Any:
        """带指标统计的操作执行"""
        if self._metrics is None:
            return await operation(*args, **kwargs)

        start_time = time.perf_counter()
        try:
            result = await operation(*args, **kwargs)
        except Exception:
            self._metrics.record_operation_time(time.perf_counter() - start_time, failed=True)
            raise
        self._metrics.record_operation_time(time.perf_counter() - start_time)
        return result

    # ============= Set 操作 =============

    async def sadd(self, key: str, *members: str) -> int:
        """添加集合成员"""
        return await self._execute_with_metrics(self._client.sadd, self._format_key(key), *members)

    async def srem(self, key: str, *members: str) -> int:
        """移除集合成员"""
        return await self._execute_with_metrics(self._client.srem, self._format_key(key), *members)

    async def sscan(self, key: str, count: int = 500) -> AsyncIterator[str]:
        """增量遍历集合成员（SSCAN），避免一次性返回超大集合"""
        async for member in self._client.sscan_iter(self._format_key(key), count=count):
            yield member

    async def health_check(self) -> bool:
        try:
            return bool(await self._client.ping())
        except Exception as e:
            logger.warning("redis_health_check_failed", error=str(e))
            return False

    async def close(self) -> None:
        await self._client.aclose()


# ============= 全局实例管理 =============

_cache_instance: Optional[RedisClient] = None
_lock = asyncio.Lock()


def _keepalive_options() -> dict:
    """构建跨平台 keepalive 选项（若可用）"""
    if hasattr(socket, "TCP_KEEPIDLE") and hasattr(socket, "TCP_KEEPINTVL") and hasattr(socket, "TCP_KEEPCNT"):
        return {
            socket.TCP_KEEPIDLE: 1,
            socket.TCP_KEEPINTVL: 1,
            socket.TCP_KEEPCNT: 3,
        }
    return {}


async def init_redis_client(
    url: str,
    *,
    namespace: str = "",
    max_connections: int = 10,
    enable_metrics: bool = True,
    **kwargs,
) -> RedisClient:
    """
    初始化Redis客户端（进程内单例）

    Args:
        url: Redis 连接地址
        namespace: 命名空间
        max_connections: 连接池大小
        enable_metrics: 是否启用指标统计
        **kwargs: 其他Redis连接参数
    """
    global _cache_instance

    if _cache_instance is not None:
        return _cache_instance

    async with _lock:
        if _cache_instance is not None:
            return _cache_instance

        client = aioredis.from_url(
            url,
            encoding="utf-8",
            decode_responses=True,
            max_connections=max_connections,
            socket_keepalive=True,
            socket_keepalive_options=_keepalive_options(),
            **kwargs,
        )
        try:
            await client.ping()
        except Exception as e:
            logger.error("redis_client_init_failed", error=str(e))
            await client.aclose()
            raise

        _cache_instance = RedisClient(client=client, namespace=namespace, enable_metrics=enable_metrics)
        logger.info("redis_client_initialized", namespace=namespace)
        return _cache_instance


def get_redis_client() -> Optional[RedisClient]:
    """获取全局Redis客户端实例（未初始化时返回 None）"""
    return _cache_instance


async def shutdown_redis_client() -> None:
    """关闭Redis连接"""
    global _cache_instance

    if _cache_instance is not None:
        try:
            await _cache_instance.close()
            logger.info("redis_client_closed")
        except Exception as e:
            logger.error("redis_client_close_failed", error=str(e))
        finally:
            _cache_instance = None


__all__ = [
    "RedisClient",
    "CacheMetrics",
    "init_redis_client",
    "get_redis_client",
    "shutdown_redis_client",
]
