"""
连接数据库模型 - SQLAlchemy ORM模型
注意：这是基础设施层的实现细节，不是领域模型
"""
from sqlalchemy import Column, DateTime, Text
from datetime import datetime, timezone

from .base import Base


class ConnectionModel(Base):
    """
    连接数据库模型

    每个连接一行，主键即连接ID（保证唯一）
    """
    __tablename__ = "connections"

    # 连接ID为不透明字符串，不限长度
    id = Column(Text, primary_key=True, comment="连接ID")
    created_at = Column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
        comment="注册时间"
    )

    def __repr__(self):
        return f"<ConnectionModel(id='{self.id}')>"
