"""ConnectionStore backends (memory, Redis, SQL database, DynamoDB)."""

from .memory import InMemoryConnectionStore

__all__ = ["InMemoryConnectionStore"]
