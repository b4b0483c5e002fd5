"""Infrastructure models package exports."""
from .base import Base, metadata
from .connection import ConnectionModel

__all__ = [
    "Base",
    "metadata",
    "ConnectionModel",
]
