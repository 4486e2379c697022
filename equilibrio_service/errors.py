"""
服务异常定义
查询流水线抛出的业务异常，由 main.py 中的异常处理器统一转换为 HTTP 响应
"""

from typing import Any, Dict, Optional


class ServiceError(Exception):
    """服务异常基类"""

    def __init__(
        self,
        message: str,
        status_code: int = 500,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.details = details or {}


class StockNotFoundError(ServiceError):
    """数据源中不存在该股票代码"""

    def __init__(self, symbol: str):
        super().__init__(
            message=f"股票不存在: {symbol}",
            status_code=404,
            details={"symbol": symbol},
        )
        self.symbol = symbol


class SourceUnavailableError(ServiceError):
    """行情数据源不可用（不会以空结果代替）"""

    def __init__(self, source: str, reason: str = ""):
        message = f"数据源不可用: {source}"
        if reason:
            message = f"{message} ({reason})"
        super().__init__(
            message=message,
            status_code=503,
            details={"source": source},
        )


class CacheUnavailableError(ServiceError):
    """缓存后端超时或连接失败；仅在缓存层内部使用，对调用方表现为未命中"""

    def __init__(self, backend: str, operation: str, reason: str = ""):
        super().__init__(
            message=f"缓存后端 {backend} {operation} 失败: {reason}",
            status_code=503,
            details={"backend": backend, "operation": operation},
        )
        self.backend = backend


class InvalidQueryError(ServiceError):
    """查询参数非法（分页、窗口等）"""

    def __init__(self, field: str, value: Any, reason: str):
        super().__init__(
            message=f"参数 {field}={value!r} 非法: {reason}",
            status_code=400,
            details={"field": field, "value": value},
        )
