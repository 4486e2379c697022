"""
Layer 1 – 数据获取层
提供统一的行情数据源接口。当前支持：
  synthetic : 伪随机合成行情（可指定种子，结果可复现）
  file      : 从 JSON 文件加载固定行情快照

数据源只返回原始行情与指标字段，衍生字段由上层统一计算。
"""

import hashlib
import json
import logging
import random
from datetime import date, datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

from equilibrio_service.config import settings
from equilibrio_service.errors import SourceUnavailableError
from equilibrio_service.models.stock import StockRecord

logger = logging.getLogger(__name__)


# ── 行业目录 ──────────────────────────────────────────────
SECTORS = [
    "Technology", "Healthcare", "Financial", "Consumer Cyclical",
    "Energy", "Industrials", "Consumer Defensive", "Real Estate",
    "Communication Services", "Utilities", "Basic Materials",
]

_INDUSTRIES: Dict[str, List[str]] = {
    "Technology": ["Software", "Semiconductors", "Hardware", "IT Services"],
    "Healthcare": ["Biotechnology", "Pharmaceuticals", "Medical Devices", "Healthcare Plans"],
    "Financial": ["Banks", "Insurance", "Asset Management", "Capital Markets"],
    "Consumer Cyclical": ["Retail", "Automotive", "Apparel", "Restaurants"],
    "Energy": ["Oil & Gas", "Renewable Energy", "Utilities"],
    "Industrials": ["Aerospace", "Construction", "Manufacturing", "Transportation"],
    "Consumer Defensive": ["Food Products", "Beverages", "Household Products"],
    "Real Estate": ["REITs", "Real Estate Services", "Development"],
    "Communication Services": ["Telecom", "Media", "Entertainment"],
    "Utilities": ["Electric", "Gas", "Water"],
    "Basic Materials": ["Chemicals", "Metals & Mining", "Paper & Forest Products"],
}

# ── 合成行情股票池 ────────────────────────────────────────
_UNIVERSE = [
    ("AAPL", "Apple Inc.", "Technology"),
    ("MSFT", "Microsoft Corp.", "Technology"),
    ("GOOGL", "Alphabet Inc.", "Communication Services"),
    ("AMZN", "Amazon.com Inc.", "Consumer Cyclical"),
    ("NVDA", "NVIDIA Corp.", "Technology"),
    ("TSLA", "Tesla Inc.", "Consumer Cyclical"),
    ("META", "Meta Platforms", "Communication Services"),
    ("BRK.B", "Berkshire Hathaway", "Financial"),
    ("JNJ", "Johnson & Johnson", "Healthcare"),
    ("JPM", "JPMorgan Chase", "Financial"),
    ("V", "Visa Inc.", "Financial"),
    ("PG", "Procter & Gamble", "Consumer Defensive"),
    ("MA", "Mastercard Inc.", "Financial"),
    ("HD", "Home Depot", "Consumer Cyclical"),
    ("BAC", "Bank of America", "Financial"),
    ("XOM", "Exxon Mobil", "Energy"),
    ("CVX", "Chevron Corp.", "Energy"),
    ("ABBV", "AbbVie Inc.", "Healthcare"),
    ("KO", "Coca-Cola Co.", "Consumer Defensive"),
    ("PFE", "Pfizer Inc.", "Healthcare"),
]


class StockProvider:
    """行情数据源基类"""

    name = "base"

    def list_stocks(self) -> List[StockRecord]:
        raise NotImplementedError

    def get_stock(self, symbol: str) -> Optional[StockRecord]:
        """按代码查找（不区分大小写），找不到返回 None"""
        target = symbol.upper()
        for record in self.list_stocks():
            if record.symbol.upper() == target:
                return record
        return None

    def list_sectors(self) -> List[str]:
        return list(SECTORS)

    def get_candles(self, symbol: str, price: float, days: int) -> List[Dict[str, Any]]:
        """最近 days 个自然日的日 K 线（按日期升序）"""
        rng = random.Random(_symbol_seed(symbol, days))
        return _random_walk_candles(rng, price, days)


def _symbol_seed(symbol: str, days: int) -> int:
    digest = hashlib.md5(f"{symbol.upper()}:{days}".encode()).hexdigest()
    return int(digest[:8], 16)


def _random_walk_candles(rng: random.Random, price: float, days: int) -> List[Dict[str, Any]]:
    # 起点比当前价低 5%，日波动 ±2%，日内振幅 1.5%
    close = price * 0.95
    today = date.today()
    candles = []
    for i in range(days):
        day = today - timedelta(days=days - i - 1)
        open_ = close
        close = open_ * (1 + (rng.random() - 0.5) * 0.04)
        high = max(open_, close) * (1 + rng.random() * 0.015)
        low = min(open_, close) * (1 - rng.random() * 0.015)
        candles.append({
            "date": day.isoformat(),
            "open": round(open_, 2),
            "high": round(high, 2),
            "low": round(low, 2),
            "close": round(close, 2),
            "volume": rng.randint(1_000_000, 50_000_000),
        })
    return candles


class SyntheticStockProvider(StockProvider):
    """
    合成行情数据源

    seed 为 None 时每次调用生成新的随机行情；指定 seed 时每次调用结果完全一致。
    """

    name = "synthetic"

    def __init__(self, seed: Optional[int] = None):
        self._seed = seed

    def list_stocks(self) -> List[StockRecord]:
        rng = random.Random(self._seed)
        now = datetime.now(tz=timezone.utc)
        return [self._generate(rng, symbol, name, sector, now) for symbol, name, sector in _UNIVERSE]

    @staticmethod
    def _generate(
        rng: random.Random, symbol: str, name: str, sector: str, now: datetime
    ) -> StockRecord:
        price = rng.random() * 500 + 50
        change_percent = (rng.random() - 0.5) * 10
        macd = (rng.random() - 0.5) * 5
        macd_signal = macd + (rng.random() - 0.5) * 2
        return StockRecord(
            symbol=symbol,
            name=name,
            sector=sector,
            industry=rng.choice(_INDUSTRIES.get(sector, ["General"])),
            price=price,
            change=price * change_percent / 100,
            change_percent=change_percent,
            volume=int(rng.random() * 100_000_000),
            market_cap=price * (rng.random() * 1_000_000_000 + 100_000_000),
            week52_high=price * (1 + rng.random() * 0.3),
            week52_low=price * (0.7 + rng.random() * 0.2),
            rsi=rng.random() * 100,
            stoch_rsi=rng.random() * 100,
            historic_rsi_avg=50 + (rng.random() - 0.5) * 20,
            sma50=price * (0.9 + rng.random() * 0.2),
            sma200=price * (0.85 + rng.random() * 0.3),
            ema20=price * (0.95 + rng.random() * 0.1),
            macd=macd,
            macd_signal=macd_signal,
            macd_histogram=macd - macd_signal,
            last_updated=now,
        )


class StaticStockProvider(StockProvider):
    """固定行情快照数据源"""

    name = "file"

    def __init__(self, records: Iterable[StockRecord]):
        self._records = list(records)

    @classmethod
    def from_file(cls, path: str) -> "StaticStockProvider":
        """从 JSON 文件加载（记录列表，字段使用 camelCase）"""
        try:
            raw = json.loads(Path(path).read_text(encoding="utf-8"))
            records = [StockRecord.model_validate(item) for item in raw]
        except (OSError, ValueError) as exc:
            raise SourceUnavailableError(cls.name, f"{path}: {exc}") from exc
        logger.info(f"行情快照加载成功: {path}，共 {len(records)} 条")
        return cls(records)

    def list_stocks(self) -> List[StockRecord]:
        return list(self._records)


# ── 模块级别单例 ──────────────────────────────────────────
_provider: Optional[StockProvider] = None


def get_provider() -> StockProvider:
    global _provider
    if _provider is None:
        if settings.DATA_SOURCE == "file":
            _provider = StaticStockProvider.from_file(settings.DATA_FILE)
        else:
            if settings.DATA_SOURCE != "synthetic":
                logger.warning(f"未知数据源 {settings.DATA_SOURCE!r}，使用 synthetic")
            _provider = SyntheticStockProvider(seed=settings.MOCK_DATA_SEED)
    return _provider
