"""
缓存管理路由
POST /refresh        - 清空全部缓存
GET  /cache/stats    - 缓存统计
"""

from fastapi import APIRouter, Depends

from equilibrio_service.layers.cache import CacheLayer, get_cache_layer
from equilibrio_service.models.response import ApiResponse
from equilibrio_service.services.stock_service import StockService, get_stock_service

router = APIRouter(tags=["缓存管理"])


@router.post("/refresh", response_model=ApiResponse)
async def refresh_data(svc: StockService = Depends(get_stock_service)):
    """清空缓存，下一次查询重新从数据源计算"""
    result = await svc.refresh()
    return ApiResponse.ok(data=result, message="数据已刷新")


@router.get("/cache/stats", response_model=ApiResponse)
async def cache_stats(cache: CacheLayer = Depends(get_cache_layer)):
    """获取缓存统计信息（各后端键数量）"""
    return ApiResponse.ok(data=await cache.stats())
