"""
连接存储实现 - 使用SQLAlchemy实现数据访问
"""
from typing import AsyncIterator, Optional

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker

from core.logging_config import get_logger
from domain.common.exceptions import StoreUnavailableException
from domain.connection.store import ConnectionStore
from infrastructure.models.connection import ConnectionModel


logger = get_logger(__name__)


class SQLAlchemyConnectionStore(ConnectionStore):
    """连接存储的SQLAlchemy实现（每次操作独立会话与事务）"""

    backend = "database"

    def __init__(
        self,
        session_factory: async_sessionmaker,
        *,
        scan_batch_size: int = 1000,
        engine: Optional[AsyncEngine] = None,
    ):
        self._session_factory = session_factory
        self._scan_batch_size = scan_batch_size
        # set when this store owns the engine and must dispose it
        self._engine = engine

    async def put(self, connection_id: str) -> None:
        """插入连接；主键冲突视为已存在"""
        try:
            async with self._session_factory() as session:
                try:
                    session.add(ConnectionModel(id=connection_id))
                    await session.commit()
                except IntegrityError:
                    await session.rollback()
                    logger.debug("connection_already_registered", connection_id=connection_id)
        except SQLAlchemyError as exc:
            logger.error("db_store_put_failed", connection_id=connection_id, error=str(exc))
            raise StoreUnavailableException("put", backend=self.backend, reason=str(exc)) from exc

    async def delete(self, connection_id: str) -> None:
        try:
            async with self._session_factory() as session:
                await session.execute(delete(ConnectionModel).where(ConnectionModel.id == connection_id))
                await session.commit()
        except SQLAlchemyError as exc:
            logger.error("db_store_delete_failed", connection_id=connection_id, error=str(exc))
            raise StoreUnavailableException("delete", backend=self.backend, reason=str(exc)) from exc

    async def scan(self) -> AsyncIterator[str]:
        """按主键分批读取（keyset 分页），避免一次加载全部行"""
        last_id = None
        while True:
            stmt = select(ConnectionModel.id).order_by(ConnectionModel.id).limit(self._scan_batch_size)
            if last_id is not None:
                stmt = stmt.where(ConnectionModel.id > last_id)
            try:
                async with self._session_factory() as session:
                    batch = list((await session.execute(stmt)).scalars())
            except SQLAlchemyError as exc:
                logger.error("db_store_scan_failed", error=str(exc))
                raise StoreUnavailableException("scan", backend=self.backend, reason=str(exc)) from exc
            for cid in batch:
                yield cid
            if len(batch) < self._scan_batch_size:
                return
            last_id = batch[-1]

    async def aclose(self) -> None:
        if self._engine is not None:
            await self._engine.dispose()
            self._engine = None
