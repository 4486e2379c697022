"""
Layer 4 – 分析层
在处理层输出的标准 K 线 DataFrame 上估算支撑/阻力区间
"""

import logging

import pandas as pd

from equilibrio_service.models.stock import EquilibriumData

logger = logging.getLogger(__name__)

# 取回看窗口内最低的 N 个低点 / 最高的 N 个高点求均值
KEY_LEVEL_POINTS = 3

SUPPORT_POSITION = 0.3
RESISTANCE_POSITION = 0.7
NEUTRAL_STRENGTH = 0.5


def find_key_levels(df: pd.DataFrame, lookback: int) -> tuple:
    """返回 (support, resistance)；回看长度截断到 [1, len(df)]"""
    lookback = max(1, min(lookback, len(df)))
    window = df.tail(lookback)
    support = float(window["low"].nsmallest(KEY_LEVEL_POINTS).mean())
    resistance = float(window["high"].nlargest(KEY_LEVEL_POINTS).mean())
    return support, resistance


def estimate_equilibrium(
    df: pd.DataFrame, current_price: float, lookback: int
) -> EquilibriumData:
    """
    根据当前价在 [support, resistance] 中的位置判断所处区域

    position < 0.3 为 support 区，强度 0.3 - position；
    position > 0.7 为 resistance 区，强度 position - 0.7；
    其余为 neutral，强度 0.5。没有历史 K 线时以当前价 ±5% 作为区间。
    """
    if df.empty:
        return EquilibriumData(
            zone="neutral",
            strength=NEUTRAL_STRENGTH,
            support=current_price * 0.95,
            resistance=current_price * 1.05,
        )

    support, resistance = find_key_levels(df, lookback)
    zone, strength = "neutral", NEUTRAL_STRENGTH

    price_range = resistance - support
    if price_range > 0:
        position = (current_price - support) / price_range
        if position < SUPPORT_POSITION:
            zone, strength = "support", SUPPORT_POSITION - position
        elif position > RESISTANCE_POSITION:
            zone, strength = "resistance", position - RESISTANCE_POSITION

    return EquilibriumData(
        zone=zone,
        strength=strength,
        support=support,
        resistance=resistance,
    )
