"""DynamoDB ConnectionStore.

Table layout: one item per connection, partition key ``Id`` (type S), no
other attributes required. boto3 is synchronous, so every call is offloaded
to a worker thread.
"""
from __future__ import annotations

from functools import partial
from typing import Any, AsyncIterator, Optional

import anyio
from botocore.exceptions import BotoCoreError, ClientError

from core.logging_config import get_logger
from domain.common.exceptions import StoreUnavailableException
from domain.connection.store import ConnectionStore


logger = get_logger(__name__)

KEY_ATTRIBUTE = "Id"


class DynamoDBConnectionStore(ConnectionStore):
    backend = "dynamodb"

    def __init__(self, client: Any, table_name: str) -> None:
        """
        Args:
            client: boto3 DynamoDB client
            table_name: table whose partition key is ``Id``
        """
        self._client = client
        self._table_name = table_name

    @property
    def table_name(self) -> str:
        return self._table_name

    def _key(self, connection_id: str) -> dict:
        return {KEY_ATTRIBUTE: {"S": connection_id}}

    async def _call(self, operation: str, method: str, **params: Any) -> Any:
        try:
            return await anyio.to_thread.run_sync(partial(getattr(self._client, method), **params))
        except (BotoCoreError, ClientError) as exc:
            code = _error_code(exc)
            logger.error(
                "dynamodb_store_call_failed",
                operation=operation,
                table=self._table_name,
                error_code=code,
                error=str(exc),
            )
            raise StoreUnavailableException(operation, backend=self.backend, reason=code or str(exc)) from exc

    async def put(self, connection_id: str) -> None:
        # PutItem overwrites an item with the same key: insert-or-ignore by construction
        await self._call("put", "put_item", TableName=self._table_name, Item=self._key(connection_id))

    async def delete(self, connection_id: str) -> None:
        # DeleteItem on a missing key succeeds
        await self._call("delete", "delete_item", TableName=self._table_name, Key=self._key(connection_id))

    async def scan(self) -> AsyncIterator[str]:
        start_key: Optional[dict] = None
        while True:
            params: dict[str, Any] = {
                "TableName": self._table_name,
                "ProjectionExpression": "#id",
                "ExpressionAttributeNames": {"#id": KEY_ATTRIBUTE},
            }
            if start_key:
                params["ExclusiveStartKey"] = start_key
            page = await self._call("scan", "scan", **params)
            for item in page.get("Items") or []:
                cid = (item.get(KEY_ATTRIBUTE) or {}).get("S")
                if cid:
                    yield cid
            start_key = page.get("LastEvaluatedKey")
            if not start_key:
                return

    async def aclose(self) -> None:
        close = getattr(self._client, "close", None)
        if callable(close):
            close()


def _error_code(exc: Exception) -> str:
    return getattr(exc, "response", {}).get("Error", {}).get("Code", "")
