"""
行情数据模型
对外 JSON 字段使用 camelCase 别名，内部属性使用 snake_case
"""

import math
from datetime import datetime, timezone
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

Trend = Literal["bullish", "bearish", "neutral"]
Signal = Literal["buy", "sell", "hold"]
VolumeProfile = Literal["high", "medium", "low"]
EquilibriumZone = Literal["discount", "equilibrium", "premium"]
SortOrder = Literal["asc", "desc"]

TRENDS = ("bullish", "neutral", "bearish")
SIGNALS = ("buy", "hold", "sell")
VOLUME_PROFILES = ("high", "medium", "low")
EQUILIBRIUM_ZONES = ("discount", "equilibrium", "premium")


class _CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    def to_json_dict(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)


def _utcnow() -> datetime:
    return datetime.now(tz=timezone.utc)


class StockRecord(_CamelModel):
    """
    单只股票快照

    衍生字段（equilibrium_level、price_to_equilibrium、trend、signal、
    volume_profile、52 周距离）只能由 layers.metrics.enrich 计算写入。
    """

    # ── 标识 ──────────────────────────────────────────────
    symbol: str
    name: str
    sector: str = ""
    industry: str = ""

    # ── 行情 ──────────────────────────────────────────────
    price: float
    change: float = 0.0
    change_percent: float = Field(default=0.0, alias="changePercent")
    volume: int = 0
    market_cap: float = Field(default=0.0, alias="marketCap")
    week52_high: float = Field(default=0.0, alias="week52High")
    week52_low: float = Field(default=0.0, alias="week52Low")

    # ── 技术指标 ──────────────────────────────────────────
    rsi: float = 50.0
    stoch_rsi: float = Field(default=50.0, alias="stochRsi")
    historic_rsi_avg: float = Field(default=50.0, alias="historicRsiAvg")
    sma50: float = 0.0
    sma200: float = 0.0
    ema20: float = 0.0
    macd: float = 0.0
    macd_signal: float = Field(default=0.0, alias="macdSignal")
    macd_histogram: float = Field(default=0.0, alias="macdHistogram")

    # ── 衍生字段 ──────────────────────────────────────────
    equilibrium_level: float = Field(default=0.0, alias="equilibriumLevel")
    price_to_equilibrium: float = Field(default=0.0, alias="priceToEquilibrium")
    trend: Trend = "neutral"
    signal: Signal = "hold"
    volume_profile: VolumeProfile = Field(default="medium", alias="volumeProfile")
    distance_from_52_week_high: float = Field(default=0.0, alias="distanceFrom52WeekHigh")
    distance_from_52_week_low: float = Field(default=0.0, alias="distanceFrom52WeekLow")

    last_updated: datetime = Field(default_factory=_utcnow, alias="lastUpdated")


class FilterSpec(_CamelModel):
    """过滤条件；集合类条件为空表示不过滤"""

    search_term: str = Field(default="", alias="searchTerm")
    sectors: List[str] = Field(default_factory=list)
    rsi_min: float = Field(default=0.0, alias="rsiMin")
    rsi_max: float = Field(default=100.0, alias="rsiMax")
    price_min: float = Field(default=0.0, alias="priceMin")
    price_max: float = Field(default=10000.0, alias="priceMax")
    volume_profile: List[str] = Field(default_factory=list, alias="volumeProfile")
    signals: List[str] = Field(default_factory=list)
    trend: List[str] = Field(default_factory=list)
    equilibrium_zone: List[str] = Field(default_factory=list, alias="equilibriumZone")


class SortSpec(_CamelModel):
    field: str = "symbol"
    order: str = "asc"

    @property
    def descending(self) -> bool:
        return self.order == "desc"


class PageSpec(_CamelModel):
    """分页参数，page 从 1 开始"""

    page: int = 1
    page_size: int = Field(default=50, alias="pageSize")

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.page_size


class StockQuery(_CamelModel):
    """一次列表查询：过滤 + 排序 + 分页"""

    filters: FilterSpec = Field(default_factory=FilterSpec)
    sort: SortSpec = Field(default_factory=SortSpec)
    page: PageSpec = Field(default_factory=PageSpec)


class StockPage(_CamelModel):
    """分页结果，total 为分页前的匹配总数"""

    stocks: List[StockRecord] = Field(default_factory=list)
    total: int = 0
    page: int = 1
    page_size: int = Field(default=50, alias="pageSize")

    @property
    def total_pages(self) -> int:
        if self.page_size <= 0:
            return 0
        return math.ceil(self.total / self.page_size)


class StockListResponse(_CamelModel):
    stocks: List[StockRecord]
    total: int
    page: int
    page_size: int = Field(alias="pageSize")
    total_pages: int = Field(alias="totalPages")

    @classmethod
    def from_page(cls, result: StockPage) -> "StockListResponse":
        return cls(
            stocks=result.stocks,
            total=result.total,
            page=result.page,
            page_size=result.page_size,
            total_pages=result.total_pages,
        )


class Candle(_CamelModel):
    """日 K 线"""

    date: str
    open: float
    high: float
    low: float
    close: float
    volume: int = 0


class EquilibriumData(_CamelModel):
    """支撑/阻力区间估算结果，zone ∈ support / resistance / neutral"""

    zone: str = "neutral"
    strength: float = 0.5
    support: float = 0.0
    resistance: float = 0.0


class StockChart(_CamelModel):
    symbol: str
    days: int
    candles: List[Candle]
    equilibrium: EquilibriumData


class TechnicalIndicators(_CamelModel):
    symbol: str
    period: int
    rsi: float
    stoch_rsi: float = Field(alias="stochRsi")
    historic_rsi_avg: float = Field(alias="historicRsiAvg")
    sma50: float
    sma200: float
    ema20: float
    macd: float
    macd_signal: float = Field(alias="macdSignal")
    macd_histogram: float = Field(alias="macdHistogram")
    equilibrium_level: float = Field(alias="equilibriumLevel")
    price_to_equilibrium: float = Field(alias="priceToEquilibrium")
    trend: Trend
    signal: Signal
    zone: Optional[EquilibriumZone] = None
