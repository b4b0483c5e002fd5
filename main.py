"""
FastAPI应用主入口
"""
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from api.middleware import LoggingMiddleware, RequestIDMiddleware
from api.routes import connections as connection_routes
from api.routes import ws as ws_routes
from application.services.broadcast_service import BroadcastDispatcher
from core.config import settings
from core.exceptions import register_exception_handlers
from core.logging_config import configure_logging, get_logger
from core.response import success_response
from domain.connection.registry import ConnectionRegistry
from infrastructure.external.cache import get_redis_client, shutdown_redis_client
from infrastructure.factory import create_connection_store, create_transport
from infrastructure.realtime.connection_manager import ConnectionManager


# 初始化日志：在入口处显式配置，避免模块导入时的副作用
configure_logging()
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """应用生命周期管理"""
    # 配置缺失（表名、端点等）在此抛出，启动即失败
    connections = ConnectionManager()
    transport = create_transport(settings, connections)
    store = await create_connection_store(settings)
    registry = ConnectionRegistry(store)
    dispatcher = BroadcastDispatcher(
        registry=registry,
        transport=transport,
        max_concurrency=settings.broadcast.max_concurrency,
        send_timeout_s=settings.broadcast.send_timeout_s,
        publish_timeout_s=settings.broadcast.publish_timeout_s,
    )

    app.state.store = store
    app.state.transport = transport
    app.state.connections = connections
    app.state.registry = registry
    app.state.dispatcher = dispatcher
    logger.info(
        "broadcast_initialized",
        store=store.backend,
        transport=transport.name,
        max_concurrency=settings.broadcast.max_concurrency,
    )

    yield

    # 关闭时的清理工作
    await transport.aclose()
    await store.aclose()
    await shutdown_redis_client()
    logger.info("application_shutdown", message="Application shutdown")


app = FastAPI(
    title=settings.PROJECT_NAME,
    version=settings.VERSION,
    debug=settings.DEBUG,
    lifespan=lifespan,
    description="连接注册与广播分发服务",
)

# 添加中间件（注意顺序：从下往上执行）
# 1. Request ID中间件（最先执行，为后续中间件提供request_id）
app.add_middleware(RequestIDMiddleware)

# 2. 日志中间件（依赖request_id）
app.add_middleware(LoggingMiddleware)

# 3. CORS中间件
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# 注册全局异常处理器
register_exception_handlers(app)


# 注册路由
app.include_router(connection_routes.router, prefix="/api/v1")
app.include_router(ws_routes.router)


# 根路径
@app.get("/", tags=["Root"])
async def root():
    """API根路径"""
    return success_response(
        data={
            "name": settings.PROJECT_NAME,
            "version": settings.VERSION,
            "docs": "/docs",
            "redoc": "/redoc",
        },
        message="Welcome",
    )


# 健康检查
@app.get("/health", tags=["Health"])
async def health_check():
    """健康检查端点"""
    data = {"status": "healthy"}
    redis = get_redis_client()
    if redis is not None:
        data["redis"] = "ok" if await redis.health_check() else "unreachable"
    return success_response(data=data, message="OK")


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.DEBUG,
        log_level="debug" if settings.DEBUG else "info",
    )
