"""
Transport port (contracts-first).

Defines the delivery contract the broadcast dispatcher depends on so the
application layer stays decoupled from concrete delivery mechanisms
(in-process WebSockets, API Gateway management API, ...).

The Gone / TransientFailure boundary is owned by each transport: Gone must
only come from the transport's own authoritative "recipient no longer
exists" signal. Timeouts and connectivity errors are always transient.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Protocol

from domain.connection.entity import Message


class DeliveryOutcome(str, Enum):
    DELIVERED = "delivered"
    GONE = "gone"
    TRANSIENT_FAILURE = "transient_failure"


@dataclass(frozen=True)
class DeliveryResult:
    connection_id: str
    outcome: DeliveryOutcome
    detail: Optional[str] = None

    @classmethod
    def delivered(cls, connection_id: str) -> "DeliveryResult":
        return cls(connection_id, DeliveryOutcome.DELIVERED)

    @classmethod
    def gone(cls, connection_id: str, detail: Optional[str] = None) -> "DeliveryResult":
        return cls(connection_id, DeliveryOutcome.GONE, detail)

    @classmethod
    def transient(cls, connection_id: str, detail: str) -> "DeliveryResult":
        return cls(connection_id, DeliveryOutcome.TRANSIENT_FAILURE, detail)


class TransportPort(Protocol):
    """Deliver one message to one connection and classify the result.

    Implementations must not raise for per-recipient failures; they return
    a DeliveryResult instead.
    """

    name: str

    async def send(self, connection_id: str, message: Message) -> DeliveryResult: ...

    async def aclose(self) -> None: ...  # pragma: no cover - optional


__all__ = ["DeliveryOutcome", "DeliveryResult", "TransportPort"]
