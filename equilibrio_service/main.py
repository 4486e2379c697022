"""
Equilibrio 行情筛选服务
独立 FastAPI 应用程序入口

启动方式:
    uvicorn equilibrio_service.main:app --host 0.0.0.0 --port 8080
    python -m equilibrio_service.main
"""

import logging
import time
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from equilibrio_service import __version__
from equilibrio_service import db
from equilibrio_service.config import settings
from equilibrio_service.errors import ServiceError
from equilibrio_service.models.response import ApiResponse
from equilibrio_service.routers import cache, health, stocks, technical

# ── 日志配置 ──────────────────────────────────────────────
logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

API_PREFIXES = ("/api", "/api/v1")


# ── 生命周期管理 ──────────────────────────────────────────
@asynccontextmanager
async def lifespan(app: FastAPI):
    """应用启动/关闭生命周期钩子"""
    logger.info("=" * 60)
    logger.info(f"🚀 Equilibrio Service v{__version__} 启动中")
    logger.info(f"   Environment : {settings.ENVIRONMENT}")
    logger.info(f"   Data source : {settings.DATA_SOURCE}")
    logger.info(f"   Redis       : {settings.REDIS_HOST}:{settings.REDIS_PORT}")
    logger.info(f"   MongoDB     : {settings.MONGODB_HOST}:{settings.MONGODB_PORT}")
    logger.info("=" * 60)

    # 缓存后端连接失败不阻断启动，降级运行
    redis_ok = await db.init_redis()
    mongo_ok = await db.init_mongodb()

    if redis_ok:
        logger.info("✅ 缓存就绪（Redis）")
    elif mongo_ok:
        logger.warning("⚠️ Redis 不可用，缓存降级为 MongoDB")
    else:
        logger.warning("⚠️ 缓存后端均不可用，所有查询直接计算")

    yield

    logger.info("🔄 筛选服务正在关闭...")
    await db.close_connections()
    logger.info("✅ 筛选服务已关闭")


# ── 应用实例 ──────────────────────────────────────────────
app = FastAPI(
    title="Equilibrio 行情筛选服务",
    description=(
        "基于均衡位的股票筛选微服务，提供以下功能：\n"
        "- 📊 行情列表过滤 / 排序 / 分页\n"
        "- ⚖️ 均衡位、偏离度、趋势、信号、成交量分档\n"
        "- 📈 日 K 线与支撑/阻力估算\n"
        "- 🗄️ 短时缓存（Redis → MongoDB）\n"
        "- 📤 CSV 导出\n\n"
        "**查询流水线**\n"
        "```\n"
        "缓存键 → 缓存 → 数据源 → 衍生指标 → 过滤 → 排序 → 分页 → 缓存\n"
        "```"
    ),
    version=__version__,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

# ── CORS 中间件 ───────────────────────────────────────────
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ── 请求计时中间件 ─────────────────────────────────────────
@app.middleware("http")
async def add_process_time(request: Request, call_next):
    start = time.time()
    response = await call_next(request)
    response.headers["X-Process-Time"] = f"{(time.time() - start) * 1000:.1f}ms"
    return response


# ── 异常处理 ──────────────────────────────────────────────
@app.exception_handler(ServiceError)
async def service_exception_handler(request: Request, exc: ServiceError):
    if exc.status_code >= 500:
        logger.warning(f"{request.url.path}: {exc.message}")
    body = ApiResponse.fail(error=exc.message, message=type(exc).__name__, details=exc.details)
    return JSONResponse(status_code=exc.status_code, content=body.model_dump())


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.error(f"未处理的异常: {exc}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content={"success": False, "error": "内部服务错误", "message": str(exc)},
    )


# ── 注册路由 ──────────────────────────────────────────────
app.include_router(health.router)
for _prefix in API_PREFIXES:
    app.include_router(stocks.router, prefix=_prefix)
    app.include_router(cache.router, prefix=_prefix)
    app.include_router(technical.router, prefix=_prefix)


# ── 根路由 ───────────────────────────────────────────────
@app.get("/", include_in_schema=False)
async def root():
    return {
        "service": "Equilibrio Service",
        "version": __version__,
        "docs": "/docs",
        "health": "/health",
    }


# ── 直接运行入口 ──────────────────────────────────────────
if __name__ == "__main__":
    uvicorn.run(
        "equilibrio_service.main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG,
        log_level=settings.LOG_LEVEL.lower(),
    )
