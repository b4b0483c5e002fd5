"""Connection store / transport factories with registry pattern.

Builds the concrete backends named in settings and fails fast with
ConfigurationException when a backend's required setting (table name,
endpoint URL, Redis URL) is absent, before the core is ever invoked.
"""
from __future__ import annotations

from enum import Enum
from typing import Awaitable, Callable

from application.ports.transport import TransportPort
from core.config import Settings
from core.logging_config import get_logger
from domain.common.exceptions import ConfigurationException
from domain.connection.store import ConnectionStore
from infrastructure.realtime.connection_manager import ConnectionManager


logger = get_logger(__name__)


class StoreType(str, Enum):
    MEMORY = "memory"
    REDIS = "redis"
    DATABASE = "database"
    DYNAMODB = "dynamodb"


class TransportType(str, Enum):
    WEBSOCKET = "websocket"
    APIGATEWAY = "apigateway"


StoreBuilder = Callable[[Settings], Awaitable[ConnectionStore]]


async def _build_memory_store(settings: Settings) -> ConnectionStore:
    from infrastructure.stores.memory import InMemoryConnectionStore

    return InMemoryConnectionStore()


async def _build_redis_store(settings: Settings) -> ConnectionStore:
    if not settings.redis.url:
        raise ConfigurationException("no redis url for connection store", key="REDIS__URL")
    from infrastructure.external.cache import init_redis_client
    from infrastructure.stores.redis_store import RedisConnectionStore

    client = await init_redis_client(
        settings.redis.url,
        namespace=settings.redis.namespace,
        max_connections=settings.redis.max_connections,
    )
    return RedisConnectionStore(client, key=settings.broadcast.redis_key)


async def _build_database_store(settings: Settings) -> ConnectionStore:
    from infrastructure.database import create_engine, create_session_factory, create_tables
    from infrastructure.stores.sqlalchemy_store import SQLAlchemyConnectionStore

    engine = create_engine(settings.database.url, echo=settings.DEBUG)
    if settings.DEBUG:
        # 开发环境自动建表；生产应使用 Alembic 迁移
        await create_tables(engine)
    return SQLAlchemyConnectionStore(create_session_factory(engine), engine=engine)


async def _build_dynamodb_store(settings: Settings) -> ConnectionStore:
    if not settings.broadcast.table_name:
        raise ConfigurationException("no env for dynamodb table name", key="BROADCAST__TABLE_NAME")
    from infrastructure.aws import build_boto3_client
    from infrastructure.stores.dynamodb import DynamoDBConnectionStore

    client = build_boto3_client("dynamodb", settings.aws, endpoint_url=settings.aws.dynamodb_endpoint_url)
    return DynamoDBConnectionStore(client, settings.broadcast.table_name)


_store_registry: dict[StoreType, StoreBuilder] = {
    StoreType.MEMORY: _build_memory_store,
    StoreType.REDIS: _build_redis_store,
    StoreType.DATABASE: _build_database_store,
    StoreType.DYNAMODB: _build_dynamodb_store,
}


def register_store(store_type: StoreType, builder: StoreBuilder) -> None:
    _store_registry[store_type] = builder


async def create_connection_store(settings: Settings) -> ConnectionStore:
    """Build the configured ConnectionStore."""
    try:
        store_type = StoreType((settings.broadcast.store or "").lower())
    except ValueError:
        raise ConfigurationException(
            f"unknown connection store '{settings.broadcast.store}'. "
            f"Available: {[t.value for t in _store_registry]}",
            key="BROADCAST__STORE",
        )
    store = await _store_registry[store_type](settings)
    logger.info("connection_store_created", backend=store.backend)
    return store


def create_transport(settings: Settings, connections: ConnectionManager) -> TransportPort:
    """Build the configured transport."""
    try:
        transport_type = TransportType((settings.broadcast.transport or "").lower())
    except ValueError:
        raise ConfigurationException(
            f"unknown transport '{settings.broadcast.transport}'",
            key="BROADCAST__TRANSPORT",
        )

    if transport_type is TransportType.APIGATEWAY:
        endpoint = settings.broadcast.endpoint_url
        if not endpoint:
            raise ConfigurationException("no env for endpoint url", key="BROADCAST__ENDPOINT_URL")
        from infrastructure.aws import build_boto3_client
        from infrastructure.transports.apigateway import ApiGatewayTransport

        client = build_boto3_client(
            "apigatewaymanagementapi",
            settings.aws,
            endpoint_url=endpoint,
            read_timeout=settings.broadcast.send_timeout_s,
            # no SDK retries: one attempt per recipient per broadcast
            max_attempts=0,
        )
        transport: TransportPort = ApiGatewayTransport(client, endpoint)
    else:
        store = (settings.broadcast.store or "").lower()
        if store != StoreType.MEMORY.value and not settings.broadcast.single_node:
            # Gone is judged from this process's socket table; with a shared
            # store that would prune sockets held by other workers
            raise ConfigurationException(
                f"websocket transport requires the memory store or BROADCAST__SINGLE_NODE=true (store='{store}')",
                key="BROADCAST__SINGLE_NODE",
            )
        from infrastructure.transports.websocket import WebSocketTransport

        transport = WebSocketTransport(connections)

    logger.info("transport_created", transport=transport.name)
    return transport


__all__ = [
    "StoreType",
    "TransportType",
    "create_connection_store",
    "create_transport",
    "register_store",
]
