"""领域层业务异常定义，供领域与基础设施使用。

核心（core）层仅负责全局映射与异常处理，尽量避免领域层反向依赖核心层。
"""
from __future__ import annotations

from typing import Optional
from shared.codes import BusinessCode


class BusinessException(Exception):
    """业务异常基类"""

    def __init__(
        self,
        code: int,
        message: str,
        error_type: str = "BusinessError",
        details: Optional[dict] = None,
        field: Optional[str] = None,
    ) -> None:
        self.code = code
        self.message = message
        self.error_type = error_type
        self.details = details
        self.field = field
        super().__init__(self.message)


class InvalidIdentifierException(BusinessException):
    """Connection identifier is absent, empty or not a string."""

    def __init__(self, value: object = None):
        reason = "no connectionId" if value is None else "empty connectionId"
        super().__init__(
            code=BusinessCode.PARAM_VALIDATION_ERROR,
            message=reason,
            error_type="InvalidIdentifier",
            field="connection_id",
        )


class StoreUnavailableException(BusinessException):
    """The connection store backend could not be reached."""

    def __init__(self, operation: str, *, backend: Optional[str] = None, reason: Optional[str] = None):
        details: dict = {"operation": operation}
        if backend:
            details["backend"] = backend
        if reason:
            details["reason"] = reason
        super().__init__(
            code=BusinessCode.SERVICE_UNAVAILABLE,
            message="Connection store unavailable",
            error_type="StoreUnavailable",
            details=details,
        )


class NoConnectionsException(BusinessException):
    """Informational: the registry listing came back empty."""

    def __init__(self):
        super().__init__(
            code=BusinessCode.NO_CONNECTIONS,
            message="no connection ids",
            error_type="NoConnections",
        )


class EmptyMessageException(BusinessException):
    def __init__(self):
        super().__init__(
            code=BusinessCode.PARAM_VALIDATION_ERROR,
            message="no message",
            error_type="EmptyMessage",
            field="message",
        )


class ConfigurationException(BusinessException):
    """Required deployment configuration (table name, endpoint, ...) is missing."""

    def __init__(self, message: str, *, key: Optional[str] = None):
        super().__init__(
            code=BusinessCode.CONFIGURATION_ERROR,
            message=message,
            error_type="ConfigurationError",
            details={"key": key} if key else None,
        )
