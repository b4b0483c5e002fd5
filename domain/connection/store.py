"""
连接存储接口 - 定义连接数据访问的抽象接口
"""
from abc import ABC, abstractmethod
from typing import AsyncIterator


class ConnectionStore(ABC):
    """连接存储抽象接口 - 只定义能做什么，不管怎么做

    Implementations raise StoreUnavailableException when the backend
    cannot be reached and never retry on their own.
    """

    backend: str = "abstract"

    @abstractmethod
    async def put(self, connection_id: str) -> None:
        """Insert connection_id; an existing id is left as is."""
        pass

    @abstractmethod
    async def delete(self, connection_id: str) -> None:
        """Remove connection_id if present."""
        pass

    @abstractmethod
    def scan(self) -> AsyncIterator[str]:
        """Yield every stored connection id, in no particular order."""
        pass

    async def aclose(self) -> None:
        return None
