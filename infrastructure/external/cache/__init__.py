"""缓存层对外暴露的接口"""
from .redis_client import (
    RedisClient,
    CacheMetrics,
    init_redis_client,
    get_redis_client,
    shutdown_redis_client,
)


__all__ = [
    "RedisClient",
    "CacheMetrics",
    "init_redis_client",
    "get_redis_client",
    "shutdown_redis_client",
]
