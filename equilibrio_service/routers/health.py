"""健康检查路由"""

import time

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from equilibrio_service import __version__
from equilibrio_service.config import settings
from equilibrio_service.db import check_health
from equilibrio_service.errors import SourceUnavailableError
from equilibrio_service.layers.acquisition import get_provider

router = APIRouter(tags=["健康检查"])


@router.get("/health")
async def health():
    """服务健康检查；缓存后端不可用不影响服务状态"""
    return {
        "success": True,
        "data": {
            "status": "healthy",
            "service": "equilibrio-service",
            "version": __version__,
            "environment": settings.ENVIRONMENT,
            "dataSource": settings.DATA_SOURCE,
            "timestamp": int(time.time()),
            "cache": await check_health(),
        },
        "message": "服务运行正常",
    }


@router.get("/healthz")
async def healthz():
    """Kubernetes liveness probe"""
    return {"status": "ok"}


@router.get("/readyz")
async def readyz():
    """Kubernetes readiness probe：行情数据源可用才算就绪"""
    try:
        provider = get_provider()
    except SourceUnavailableError as exc:
        return JSONResponse(status_code=503, content={"ready": False, "error": exc.message})
    return {"ready": True, "source": provider.name}
