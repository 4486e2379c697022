"""
Layer 3 – 数据处理层
K 线清洗与标准化、行情列表 CSV 导出
"""

import logging
from typing import Any, Dict, List, Sequence

import pandas as pd

from equilibrio_service.models.stock import StockRecord

logger = logging.getLogger(__name__)

OHLCV_COLUMNS = ["date", "open", "high", "low", "close", "volume"]

CSV_COLUMNS = ["Symbol", "Name", "Price", "Change%", "RSI", "Trend", "Signal", "Equilibrium", "Sector"]


def normalize_ohlcv(records: List[Dict[str, Any]]) -> pd.DataFrame:
    """
    将原始 K 线记录列表标准化为 DataFrame

    标准列：date, open, high, low, close, volume
    """
    if not records:
        return pd.DataFrame(columns=OHLCV_COLUMNS)

    df = pd.DataFrame(records)

    # 确保必要列存在
    for col in OHLCV_COLUMNS:
        if col not in df.columns:
            df[col] = 0.0

    # 类型转换
    for col in ["open", "high", "low", "close", "volume"]:
        df[col] = pd.to_numeric(df[col], errors="coerce").fillna(0.0)
    df["volume"] = df["volume"].astype("int64")

    # 日期格式统一
    df["date"] = pd.to_datetime(df["date"], errors="coerce")
    df = df.dropna(subset=["date"])
    df["date"] = df["date"].dt.strftime("%Y-%m-%d")

    # 删除重复日期，保留最新数据
    df = df.drop_duplicates(subset=["date"], keep="last")
    df = df.sort_values("date").reset_index(drop=True)

    return df[OHLCV_COLUMNS]


def to_records(df: pd.DataFrame) -> List[Dict[str, Any]]:
    """DataFrame 转换为字典列表"""
    if df.empty:
        return []
    return df.to_dict(orient="records")


def stocks_to_csv(stocks: Sequence[StockRecord]) -> str:
    """行情列表导出为 CSV 文本"""
    df = pd.DataFrame(
        [
            {
                "Symbol": s.symbol,
                "Name": s.name,
                "Price": f"{s.price:.2f}",
                "Change%": f"{s.change_percent:.2f}",
                "RSI": f"{s.rsi:.1f}",
                "Trend": s.trend,
                "Signal": s.signal,
                "Equilibrium": f"{s.price_to_equilibrium:.1f}%",
                "Sector": s.sector,
            }
            for s in stocks
        ],
        columns=CSV_COLUMNS,
    )
    return df.to_csv(index=False, lineterminator="\n")
