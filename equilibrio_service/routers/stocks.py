"""
股票数据路由
GET /stocks                    - 过滤 / 排序 / 分页查询
GET /stocks/{symbol}           - 单只股票
GET /stocks/{symbol}/chart     - 日 K 线与支撑/阻力
GET /sectors                   - 行业列表
GET /export                    - 按当前条件导出 CSV
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import Response

from equilibrio_service.config import settings
from equilibrio_service.models.response import ApiResponse
from equilibrio_service.models.stock import (
    FilterSpec,
    PageSpec,
    SortSpec,
    StockListResponse,
    StockQuery,
)
from equilibrio_service.services.stock_service import StockService, get_stock_service

router = APIRouter(tags=["股票数据"])


def _split(value: Optional[str]) -> List[str]:
    """逗号分隔的多选参数"""
    if not value:
        return []
    return [v.strip() for v in value.split(",") if v.strip()]


# ── 依赖注入：查询参数绑定与默认值 ─────────────────────────

def bind_stock_query(
    search_term: str = Query(default="", alias="searchTerm"),
    sectors: Optional[str] = Query(default=None, description="逗号分隔"),
    rsi_min: float = Query(default=0, alias="rsiMin"),
    rsi_max: float = Query(default=0, alias="rsiMax"),
    price_min: float = Query(default=0, alias="priceMin"),
    price_max: float = Query(default=0, alias="priceMax"),
    volume_profile: Optional[str] = Query(default=None, alias="volumeProfile"),
    signals: Optional[str] = Query(default=None),
    trend: Optional[str] = Query(default=None),
    equilibrium_zone: Optional[str] = Query(default=None, alias="equilibriumZone"),
    sort_field: str = Query(default="", alias="sortField"),
    sort_order: str = Query(default="", alias="sortOrder"),
    page: int = Query(default=0),
    page_size: int = Query(default=0, alias="pageSize"),
) -> StockQuery:
    # 区间上下限同时为 0 视为未指定
    if rsi_min == 0 and rsi_max == 0:
        rsi_max = 100
    if price_min == 0 and price_max == 0:
        price_max = 10000

    return StockQuery(
        filters=FilterSpec(
            search_term=search_term,
            sectors=_split(sectors),
            rsi_min=rsi_min,
            rsi_max=rsi_max,
            price_min=price_min,
            price_max=price_max,
            volume_profile=_split(volume_profile),
            signals=_split(signals),
            trend=_split(trend),
            equilibrium_zone=_split(equilibrium_zone),
        ),
        sort=SortSpec(field=sort_field or "symbol", order=sort_order or "asc"),
        page=PageSpec(
            page=page if page > 0 else 1,
            page_size=page_size if page_size > 0 else settings.DEFAULT_PAGE_SIZE,
        ),
    )


# ── 路由处理器 ────────────────────────────────────────────

@router.get("/stocks", response_model=ApiResponse)
async def list_stocks(
    query: StockQuery = Depends(bind_stock_query),
    svc: StockService = Depends(get_stock_service),
):
    """按条件查询股票列表"""
    result = await svc.get_stocks(query)
    return ApiResponse.ok(
        data=StockListResponse.from_page(result).to_json_dict(),
        message=f"共 {result.total} 条匹配",
    )


@router.get("/stocks/{symbol}", response_model=ApiResponse)
async def get_stock(symbol: str, svc: StockService = Depends(get_stock_service)):
    """获取单只股票"""
    stock = await svc.get_stock(symbol)
    return ApiResponse.ok(data=stock.to_json_dict())


@router.get("/stocks/{symbol}/chart", response_model=ApiResponse)
async def get_stock_chart(
    symbol: str,
    days: Optional[int] = Query(
        default=None, description="天数 1-365，默认 90"
    ),
    svc: StockService = Depends(get_stock_service),
):
    """获取日 K 线及支撑/阻力估算"""
    chart = await svc.get_chart(symbol, days)
    return ApiResponse.ok(data=chart.to_json_dict())


@router.get("/sectors", response_model=ApiResponse)
async def list_sectors(svc: StockService = Depends(get_stock_service)):
    """获取行业列表"""
    return ApiResponse.ok(data={"sectors": svc.get_sectors()})


@router.get("/export")
async def export_stocks(
    query: StockQuery = Depends(bind_stock_query),
    svc: StockService = Depends(get_stock_service),
):
    """导出 CSV（忽略分页参数）"""
    content = await svc.export_csv(query)
    return Response(
        content=content,
        media_type="text/csv",
        headers={"Content-Disposition": "attachment; filename=stocks.csv"},
    )
