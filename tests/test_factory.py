import pytest

from core.config import Settings
from domain.common.exceptions import ConfigurationException
from infrastructure.factory import create_connection_store, create_transport
from infrastructure.realtime.connection_manager import ConnectionManager
from infrastructure.stores.dynamodb import DynamoDBConnectionStore
from infrastructure.stores.memory import InMemoryConnectionStore
from infrastructure.transports import ApiGatewayTransport, WebSocketTransport


@pytest.mark.asyncio
async def test_default_is_memory_store():
    store = await create_connection_store(Settings(broadcast={"store": "memory"}))
    assert isinstance(store, InMemoryConnectionStore)


@pytest.mark.asyncio
async def test_unknown_store_fails_fast():
    with pytest.raises(ConfigurationException) as exc_info:
        await create_connection_store(Settings(broadcast={"store": "cassandra"}))
    assert exc_info.value.details == {"key": "BROADCAST__STORE"}


@pytest.mark.asyncio
async def test_dynamodb_requires_table_name():
    with pytest.raises(ConfigurationException) as exc_info:
        await create_connection_store(Settings(broadcast={"store": "dynamodb"}))
    assert exc_info.value.message == "no env for dynamodb table name"


@pytest.mark.asyncio
async def test_dynamodb_store_built_from_settings():
    settings = Settings(broadcast={"store": "dynamodb", "table_name": "conns"}, aws={"region": "us-east-1"})
    store = await create_connection_store(settings)
    assert isinstance(store, DynamoDBConnectionStore)
    assert store.table_name == "conns"
    await store.aclose()


@pytest.mark.asyncio
async def test_redis_store_requires_url():
    with pytest.raises(ConfigurationException):
        await create_connection_store(Settings(broadcast={"store": "redis"}, redis={"url": None}))


def test_websocket_transport_by_default():
    transport = create_transport(Settings(broadcast={"transport": "websocket"}), ConnectionManager())
    assert isinstance(transport, WebSocketTransport)


def test_apigateway_requires_endpoint():
    with pytest.raises(ConfigurationException) as exc_info:
        create_transport(Settings(broadcast={"transport": "apigateway"}), ConnectionManager())
    assert exc_info.value.message == "no env for endpoint url"


def test_apigateway_transport_built_from_settings():
    endpoint = "https://abc123.execute-api.us-east-1.amazonaws.com/prod"
    settings = Settings(
        broadcast={"transport": "apigateway", "endpoint_url": endpoint},
        aws={"region": "us-east-1"},
    )
    transport = create_transport(settings, ConnectionManager())
    assert isinstance(transport, ApiGatewayTransport)
    assert transport.endpoint_url == endpoint


def test_unknown_transport_fails_fast():
    with pytest.raises(ConfigurationException):
        create_transport(Settings(broadcast={"transport": "carrier-pigeon"}), ConnectionManager())


def test_list_settings_accept_comma_separated():
    settings = Settings(CORS_ORIGINS="https://a.example, https://b.example")
    assert settings.CORS_ORIGINS == ["https://a.example", "https://b.example"]


@pytest.mark.parametrize("store", ["redis", "database", "dynamodb"])
def test_websocket_transport_rejects_shared_store(store):
    with pytest.raises(ConfigurationException) as exc_info:
        create_transport(Settings(broadcast={"store": store, "transport": "websocket"}), ConnectionManager())
    assert exc_info.value.details == {"key": "BROADCAST__SINGLE_NODE"}


def test_websocket_transport_with_shared_store_when_single_node():
    settings = Settings(broadcast={"store": "redis", "transport": "websocket", "single_node": True})
    transport = create_transport(settings, ConnectionManager())
    assert isinstance(transport, WebSocketTransport)


def test_apigateway_transport_allows_shared_store():
    settings = Settings(
        broadcast={
            "store": "dynamodb",
            "transport": "apigateway",
            "endpoint_url": "https://abc123.execute-api.us-east-1.amazonaws.com/prod",
        },
        aws={"region": "us-east-1"},
    )
    assert isinstance(create_transport(settings, ConnectionManager()), ApiGatewayTransport)
