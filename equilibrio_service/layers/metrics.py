"""
衍生指标计算
均衡位、价格偏离度、趋势、信号、成交量分档，全部为纯函数

信号规则只保留一套：RSI < 40 且偏离度 < -10% 为 buy，
RSI > 70 且偏离度 > 10% 为 sell，其余为 hold。
"""

from typing import Optional

from equilibrio_service.models.stock import StockRecord

# ── 阈值 ──────────────────────────────────────────────────
HIGH_VOLUME = 50_000_000
LOW_VOLUME = 10_000_000

BUY_RSI = 40.0
SELL_RSI = 70.0
BUY_DEVIATION = -10.0
SELL_DEVIATION = 10.0

ZONE_BAND = 5.0


def equilibrium_level(high52: float, low52: float) -> float:
    """52 周高低点中值；非有限输入按 IEEE 规则传播为 NaN/Inf"""
    return (high52 + low52) / 2


def price_to_equilibrium(price: float, level: float) -> float:
    """
    当前价相对均衡位的百分比偏离

    均衡位为 0 时无法计算偏离，返回 0.0（视为处于均衡区）。
    """
    if level == 0:
        return 0.0
    return (price - level) / level * 100


def distance_from(price: float, reference: float) -> float:
    """当前价相对参考价（52 周高/低）的百分比距离，参考价为 0 时返回 0.0"""
    if reference == 0:
        return 0.0
    return (price - reference) / reference * 100


def trend(price: float, sma50: float, sma200: float) -> str:
    if price > sma50 > sma200:
        return "bullish"
    if price < sma50 < sma200:
        return "bearish"
    return "neutral"


def signal(rsi: float, deviation: float) -> str:
    if rsi < BUY_RSI and deviation < BUY_DEVIATION:
        return "buy"
    if rsi > SELL_RSI and deviation > SELL_DEVIATION:
        return "sell"
    return "hold"


def volume_profile(volume: float) -> str:
    if volume > HIGH_VOLUME:
        return "high"
    if volume < LOW_VOLUME:
        return "low"
    return "medium"


def equilibrium_zone(deviation: float) -> Optional[str]:
    """
    偏离度分区：< -5 为 discount，[-5, 5] 为 equilibrium，> 5 为 premium

    NaN 不属于任何分区，返回 None。
    """
    if deviation < -ZONE_BAND:
        return "discount"
    if deviation > ZONE_BAND:
        return "premium"
    if -ZONE_BAND <= deviation <= ZONE_BAND:
        return "equilibrium"
    return None


def enrich(record: StockRecord) -> StockRecord:
    """根据行情与指标字段重新计算全部衍生字段，返回新对象"""
    level = equilibrium_level(record.week52_high, record.week52_low)
    deviation = price_to_equilibrium(record.price, level)
    return record.model_copy(update={
        "equilibrium_level": level,
        "price_to_equilibrium": deviation,
        "trend": trend(record.price, record.sma50, record.sma200),
        "signal": signal(record.rsi, deviation),
        "volume_profile": volume_profile(record.volume),
        "distance_from_52_week_high": distance_from(record.price, record.week52_high),
        "distance_from_52_week_low": distance_from(record.price, record.week52_low),
    })
