import boto3
import pytest
from botocore.exceptions import EndpointConnectionError
from botocore.stub import Stubber

from application.ports.transport import DeliveryOutcome
from infrastructure.transports.apigateway import ApiGatewayTransport


ENDPOINT = "https://abc123.execute-api.us-east-1.amazonaws.com/prod"


@pytest.fixture
def apigw_client():
    return boto3.client(
        "apigatewaymanagementapi",
        region_name="us-east-1",
        endpoint_url=ENDPOINT,
        aws_access_key_id="testing",
        aws_secret_access_key="testing",
    )


@pytest.mark.asyncio
async def test_post_to_connection_delivers_utf8(apigw_client):
    transport = ApiGatewayTransport(apigw_client, ENDPOINT)
    with Stubber(apigw_client) as stubber:
        stubber.add_response("post_to_connection", {}, {"ConnectionId": "c1", "Data": "héllo".encode("utf-8")})
        result = await transport.send("c1", "héllo")
        stubber.assert_no_pending_responses()
    assert result.outcome is DeliveryOutcome.DELIVERED
    assert result.connection_id == "c1"


@pytest.mark.asyncio
async def test_bytes_are_sent_unchanged(apigw_client):
    transport = ApiGatewayTransport(apigw_client, ENDPOINT)
    with Stubber(apigw_client) as stubber:
        stubber.add_response("post_to_connection", {}, {"ConnectionId": "c1", "Data": b"\x00\x01"})
        result = await transport.send("c1", b"\x00\x01")
    assert result.outcome is DeliveryOutcome.DELIVERED


@pytest.mark.asyncio
async def test_gone_exception_is_gone(apigw_client):
    transport = ApiGatewayTransport(apigw_client, ENDPOINT)
    with Stubber(apigw_client) as stubber:
        stubber.add_client_error("post_to_connection", service_error_code="GoneException", http_status_code=410)
        result = await transport.send("c1", "hi")
    assert result.outcome is DeliveryOutcome.GONE


@pytest.mark.asyncio
async def test_bare_410_is_gone(apigw_client):
    transport = ApiGatewayTransport(apigw_client, ENDPOINT)
    with Stubber(apigw_client) as stubber:
        stubber.add_client_error("post_to_connection", service_error_code="", http_status_code=410)
        result = await transport.send("c1", "hi")
    assert result.outcome is DeliveryOutcome.GONE


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "code,status",
    [
        ("LimitExceededException", 429),
        ("ForbiddenException", 403),
        ("PayloadTooLargeException", 413),
        ("InternalServerError", 500),
    ],
)
async def test_other_client_errors_are_transient(apigw_client, code, status):
    transport = ApiGatewayTransport(apigw_client, ENDPOINT)
    with Stubber(apigw_client) as stubber:
        stubber.add_client_error("post_to_connection", service_error_code=code, http_status_code=status)
        result = await transport.send("c1", "hi")
    assert result.outcome is DeliveryOutcome.TRANSIENT_FAILURE
    assert result.detail == code


@pytest.mark.asyncio
async def test_network_error_is_transient():
    class _Unreachable:
        def post_to_connection(self, **kwargs):
            raise EndpointConnectionError(endpoint_url=ENDPOINT)

    transport = ApiGatewayTransport(_Unreachable(), ENDPOINT)
    result = await transport.send("c1", "hi")
    assert result.outcome is DeliveryOutcome.TRANSIENT_FAILURE
    assert result.detail == "EndpointConnectionError"
