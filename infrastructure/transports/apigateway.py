"""API Gateway WebSocket transport.

Pushes a message to one connection through the API Gateway Management API
(``PostToConnection``). API Gateway answers ``GoneException`` / HTTP 410
when the connection no longer exists; that is the only signal treated as
Gone. Throttling, auth, payload and network errors are transient.
"""
from __future__ import annotations

from functools import partial
from typing import Any

import anyio
from botocore.exceptions import BotoCoreError, ClientError

from application.ports.transport import DeliveryResult, TransportPort
from core.logging_config import get_logger
from domain.connection.entity import Message


logger = get_logger(__name__)

GONE_ERROR_CODES = {"GoneException"}
GONE_HTTP_STATUS = 410


class ApiGatewayTransport(TransportPort):
    name = "apigateway"

    def __init__(self, client: Any, endpoint_url: str) -> None:
        """
        Args:
            client: boto3 ``apigatewaymanagementapi`` client bound to endpoint_url
            endpoint_url: https://{api-id}.execute-api.{region}.amazonaws.com/{stage}
        """
        self._client = client
        self._endpoint_url = endpoint_url

    @property
    def endpoint_url(self) -> str:
        return self._endpoint_url

    async def send(self, connection_id: str, message: Message) -> DeliveryResult:  # type: ignore[override]
        data = message.encode("utf-8") if isinstance(message, str) else message
        try:
            await anyio.to_thread.run_sync(
                partial(self._client.post_to_connection, ConnectionId=connection_id, Data=data)
            )
        except ClientError as exc:
            return self._classify_client_error(connection_id, exc)
        except BotoCoreError as exc:
            # connect/read timeouts, DNS, endpoint errors
            logger.debug("apigw_post_transient", connection_id=connection_id, error=str(exc))
            return DeliveryResult.transient(connection_id, type(exc).__name__)
        return DeliveryResult.delivered(connection_id)

    @staticmethod
    def _classify_client_error(connection_id: str, exc: ClientError) -> DeliveryResult:
        response = getattr(exc, "response", {}) or {}
        code = response.get("Error", {}).get("Code", "")
        status = response.get("ResponseMetadata", {}).get("HTTPStatusCode")
        if code in GONE_ERROR_CODES or status == GONE_HTTP_STATUS:
            logger.info("apigw_connection_gone", connection_id=connection_id)
            return DeliveryResult.gone(connection_id, code or str(status))
        logger.warning("apigw_post_failed", connection_id=connection_id, error_code=code, status=status)
        return DeliveryResult.transient(connection_id, code or f"http_{status}")

    async def aclose(self) -> None:  # type: ignore[override]
        close = getattr(self._client, "close", None)
        if callable(close):
            close()
