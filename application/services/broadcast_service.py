"""Application service for broadcast fan-out.

Lists the registry, delivers one message to every listed connection with
bounded concurrency, and reconciles the registry from the outcomes:
Gone recipients are unregistered, transient failures stay registered and
simply get the next broadcast.
"""
from __future__ import annotations

import asyncio
import time
from dataclasses import asdict, dataclass
from typing import Any, Iterable, List, Optional

from application.ports.transport import DeliveryOutcome, DeliveryResult, TransportPort
from core.logging_config import get_logger
from domain.common.exceptions import NoConnectionsException
from domain.connection.entity import Message, validate_message
from domain.connection.registry import ConnectionRegistry


logger = get_logger(__name__)


@dataclass
class BroadcastReport:
    """Order-independent totals for one publish call.

    attempted == delivered + pruned + failed always holds.
    """

    attempted: int = 0
    delivered: int = 0
    pruned: int = 0
    failed: int = 0
    prune_errors: int = 0
    duration_ms: float = 0.0

    def as_dict(self) -> dict[str, Any]:
        return asdict(self)


class BroadcastDispatcher:
    DEFAULT_MAX_CONCURRENCY = 32
    DEFAULT_SEND_TIMEOUT_S = 5.0

    def __init__(
        self,
        *,
        registry: ConnectionRegistry,
        transport: TransportPort,
        max_concurrency: int = DEFAULT_MAX_CONCURRENCY,
        send_timeout_s: float = DEFAULT_SEND_TIMEOUT_S,
        publish_timeout_s: Optional[float] = None,
    ) -> None:
        if max_concurrency < 1:
            raise ValueError("max_concurrency must be >= 1")
        if send_timeout_s <= 0:
            raise ValueError("send_timeout_s must be > 0")
        if publish_timeout_s is not None and publish_timeout_s <= 0:
            raise ValueError("publish_timeout_s must be > 0")
        self._registry = registry
        self._transport = transport
        self._max_concurrency = max_concurrency
        self._send_timeout_s = send_timeout_s
        self._publish_timeout_s = publish_timeout_s

    @property
    def registry(self) -> ConnectionRegistry:
        return self._registry

    async def publish(self, message: Any) -> BroadcastReport:
        """Broadcast ``message`` to every registered connection.

        Raises EmptyMessageException or StoreUnavailableException before any
        delivery is attempted. Per-recipient failures never raise; they are
        reflected in the returned report.
        """
        payload = validate_message(message)
        started = time.perf_counter()

        try:
            recipients = await self._registry.list_all()
        except NoConnectionsException:
            logger.info("broadcast_no_connections")
            return BroadcastReport(duration_ms=_elapsed_ms(started))

        results = await self._fan_out(recipients, payload)

        report = BroadcastReport(attempted=len(recipients))
        gone: List[str] = []
        for result in results:
            if result.outcome is DeliveryOutcome.DELIVERED:
                report.delivered += 1
            elif result.outcome is DeliveryOutcome.GONE:
                report.pruned += 1
                gone.append(result.connection_id)
            else:
                report.failed += 1
                logger.debug(
                    "broadcast_delivery_failed",
                    connection_id=result.connection_id,
                    detail=result.detail,
                )

        report.prune_errors = await self._prune(gone)
        report.duration_ms = _elapsed_ms(started)
        logger.info("broadcast_completed", transport=getattr(self._transport, "name", None), **report.as_dict())
        return report

    # -------------------- Fan-out --------------------
    async def _fan_out(self, recipients: List[str], payload: Message) -> List[DeliveryResult]:
        semaphore = asyncio.Semaphore(self._max_concurrency)
        tasks = {
            asyncio.create_task(self._deliver(cid, payload, semaphore), name=f"broadcast:{cid}"): cid
            for cid in recipients
        }
        try:
            done, pending = await asyncio.wait(tasks.keys(), timeout=self._publish_timeout_s)
        finally:
            # publish() itself cancelled: don't leave deliveries running
            for task in tasks:
                if not task.done():
                    task.cancel()

        results = [task.result() for task in done]
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)
            logger.warning(
                "broadcast_publish_timeout",
                budget_s=self._publish_timeout_s,
                unfinished=len(pending),
            )
            results.extend(DeliveryResult.transient(tasks[task], "publish_timeout") for task in pending)
        return results

    async def _deliver(self, connection_id: str, payload: Message, semaphore: asyncio.Semaphore) -> DeliveryResult:
        async with semaphore:
            try:
                result = await asyncio.wait_for(
                    self._transport.send(connection_id, payload),
                    timeout=self._send_timeout_s,
                )
            except asyncio.TimeoutError:
                return DeliveryResult.transient(connection_id, "timeout")
            except Exception as exc:
                # A transport bug must never be mistaken for Gone.
                logger.warning(
                    "broadcast_send_error",
                    connection_id=connection_id,
                    error=str(exc),
                    error_type=type(exc).__name__,
                )
                return DeliveryResult.transient(connection_id, type(exc).__name__)
        if not isinstance(result, DeliveryResult):
            logger.warning(
                "broadcast_invalid_result",
                connection_id=connection_id,
                result_type=type(result).__name__,
            )
            return DeliveryResult.transient(connection_id, "invalid_result")
        if result.connection_id != connection_id:
            return DeliveryResult(connection_id, result.outcome, result.detail)
        return result

    # -------------------- Reconciliation --------------------
    async def _prune(self, connection_ids: Iterable[str]) -> int:
        ids = list(connection_ids)
        if not ids:
            return 0
        semaphore = asyncio.Semaphore(self._max_concurrency)

        async def _unregister(cid: str) -> bool:
            async with semaphore:
                try:
                    await self._registry.unregister(cid)
                    return True
                except Exception as exc:
                    # Left in place; the next publish retries the prune.
                    logger.warning("broadcast_prune_failed", connection_id=cid, error=str(exc))
                    return False

        outcomes = await asyncio.gather(*(_unregister(cid) for cid in ids))
        return sum(1 for ok in outcomes if not ok)


def _elapsed_ms(started: float) -> float:
    return round((time.perf_counter() - started) * 1000, 3)


__all__ = ["BroadcastDispatcher", "BroadcastReport"]
