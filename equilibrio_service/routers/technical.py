"""
技术指标路由
POST /indicators  - 获取单只股票的指标快照
"""

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from equilibrio_service.models.response import ApiResponse
from equilibrio_service.services.technical_service import (
    DEFAULT_PERIOD,
    TechnicalService,
    get_technical_service,
)

router = APIRouter(tags=["技术指标"])


class IndicatorRequest(BaseModel):
    symbol: str
    period: int = DEFAULT_PERIOD


@router.post("/indicators", response_model=ApiResponse)
async def calculate_indicators(
    body: IndicatorRequest,
    svc: TechnicalService = Depends(get_technical_service),
):
    """
    获取指标快照

    - `period` 不大于 0 时按 200 处理
    """
    result = await svc.get_indicators(body.symbol, body.period)
    return ApiResponse.ok(data=result.to_json_dict())
