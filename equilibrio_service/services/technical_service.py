"""
技术指标服务
在股票数据服务之上，返回单只股票当前的指标快照与均衡位结论
"""

import logging
from typing import Optional

from equilibrio_service.layers import metrics
from equilibrio_service.models.stock import TechnicalIndicators
from equilibrio_service.services.stock_service import StockService, get_stock_service

logger = logging.getLogger(__name__)

DEFAULT_PERIOD = 200


class TechnicalService:
    """技术指标服务"""

    def __init__(self, stocks: StockService):
        self._stocks = stocks

    async def get_indicators(self, symbol: str, period: int = DEFAULT_PERIOD) -> TechnicalIndicators:
        """
        获取指定股票的指标快照

        Args:
            symbol: 股票代码
            period: 回看周期，<= 0 时使用 200；仅回显，不参与计算
        """
        if period <= 0:
            period = DEFAULT_PERIOD
        stock = await self._stocks.get_stock(symbol)
        return TechnicalIndicators(
            symbol=stock.symbol,
            period=period,
            rsi=stock.rsi,
            stoch_rsi=stock.stoch_rsi,
            historic_rsi_avg=stock.historic_rsi_avg,
            sma50=stock.sma50,
            sma200=stock.sma200,
            ema20=stock.ema20,
            macd=stock.macd,
            macd_signal=stock.macd_signal,
            macd_histogram=stock.macd_histogram,
            equilibrium_level=stock.equilibrium_level,
            price_to_equilibrium=stock.price_to_equilibrium,
            trend=stock.trend,
            signal=stock.signal,
            zone=metrics.equilibrium_zone(stock.price_to_equilibrium),
        )


# ── 模块级别单例 ──────────────────────────────────────────
_technical_service: Optional[TechnicalService] = None


def get_technical_service() -> TechnicalService:
    global _technical_service
    if _technical_service is None:
        _technical_service = TechnicalService(get_stock_service())
    return _technical_service
