"""
测试公共夹具

  - make_stock     : 构造已计算衍生字段的股票记录
  - MemoryCache    : 内存版缓存（接口与 CacheLayer 一致），记录 TTL
  - FakeRedis      : 最小化的异步 Redis 替身，可模拟超时 / 连接失败
  - FakeMongoDB    : 最小化的异步 MongoDB 替身
  - CountingProvider : 记录拉取次数的静态数据源
"""

import asyncio
import os
import sys
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

import pytest

# 确保仓库根目录在 sys.path
ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

from equilibrio_service.layers import metrics  # noqa: E402
from equilibrio_service.layers.acquisition import StaticStockProvider  # noqa: E402
from equilibrio_service.layers.cache import _make_key  # noqa: E402
from equilibrio_service.models.stock import StockRecord  # noqa: E402

FIXED_TIME = datetime(2024, 1, 2, 15, 30, tzinfo=timezone.utc)


def make_stock(
    symbol: str,
    name: Optional[str] = None,
    sector: str = "Technology",
    price: float = 100.0,
    rsi: float = 50.0,
    volume: int = 20_000_000,
    week52_high: float = 110.0,
    week52_low: float = 90.0,
    sma50: float = 100.0,
    sma200: float = 100.0,
    change_percent: float = 0.0,
) -> StockRecord:
    record = StockRecord(
        symbol=symbol,
        name=name or f"{symbol} Corp.",
        sector=sector,
        industry="Software",
        price=price,
        change=price * change_percent / 100,
        change_percent=change_percent,
        volume=volume,
        week52_high=week52_high,
        week52_low=week52_low,
        rsi=rsi,
        sma50=sma50,
        sma200=sma200,
        ema20=price,
        last_updated=FIXED_TIME,
    )
    return metrics.enrich(record)


# ── 缓存替身 ──────────────────────────────────────────────

class MemoryCache:
    """内存缓存，不做过期，只记录写入时的 TTL"""

    def __init__(self):
        self.data: Dict[str, Any] = {}
        self.ttls: Dict[str, int] = {}
        self.flushed = 0

    async def get(self, namespace: str, *parts: str) -> Optional[Any]:
        return self.data.get(_make_key(namespace, *parts))

    async def set(self, value: Any, namespace: str, *parts: str, ttl: int = None) -> None:
        key = _make_key(namespace, *parts)
        self.data[key] = value
        self.ttls[key] = ttl

    async def exists(self, namespace: str, *parts: str) -> bool:
        return _make_key(namespace, *parts) in self.data

    async def delete(self, namespace: str, *parts: str) -> None:
        self.data.pop(_make_key(namespace, *parts), None)

    async def flush(self) -> Dict[str, str]:
        self.data.clear()
        self.flushed += 1
        return {"memory": "flushed"}

    async def stats(self) -> dict:
        return {"memory": {"keys": len(self.data), "status": "healthy"}}


class FakeRedis:
    """异步 Redis 替身；fail=True 时所有调用抛 ConnectionError，delay 模拟慢响应"""

    def __init__(self, fail: bool = False, delay: float = 0.0):
        self.store: Dict[str, str] = {}
        self.ttls: Dict[str, int] = {}
        self.fail = fail
        self.delay = delay

    async def _maybe_fail(self):
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.fail:
            raise ConnectionError("redis down")

    async def get(self, key):
        await self._maybe_fail()
        return self.store.get(key)

    async def setex(self, key, ttl, value):
        await self._maybe_fail()
        self.store[key] = value
        self.ttls[key] = ttl
        return True

    async def exists(self, key):
        await self._maybe_fail()
        return 1 if key in self.store else 0

    async def delete(self, key):
        await self._maybe_fail()
        return 1 if self.store.pop(key, None) is not None else 0

    async def flushdb(self):
        await self._maybe_fail()
        self.store.clear()
        return True

    async def dbsize(self):
        await self._maybe_fail()
        return len(self.store)


class _FakeCollection:
    def __init__(self):
        self.docs: Dict[str, dict] = {}

    async def find_one(self, query):
        return self.docs.get(query["key"])

    async def update_one(self, query, update, upsert=False):
        self.docs[query["key"]] = dict(update["$set"])

    async def delete_one(self, query):
        self.docs.pop(query["key"], None)

    async def delete_many(self, query):
        self.docs.clear()

    async def count_documents(self, query):
        return len(self.docs)


class FakeMongoDB:
    def __init__(self):
        self.collections: Dict[str, _FakeCollection] = {}

    def __getitem__(self, name):
        return self.collections.setdefault(name, _FakeCollection())


class CountingProvider(StaticStockProvider):
    """静态数据源，记录 list_stocks 调用次数；fail=True 时模拟数据源故障"""

    name = "counting"

    def __init__(self, records: List[StockRecord], fail: bool = False):
        super().__init__(records)
        self.calls = 0
        self.fail = fail

    def list_stocks(self) -> List[StockRecord]:
        self.calls += 1
        if self.fail:
            raise RuntimeError("upstream timeout")
        return super().list_stocks()


# ── 夹具 ──────────────────────────────────────────────────

@pytest.fixture
def sample_stocks() -> List[StockRecord]:
    return [
        make_stock("AAPL", "Apple Inc.", "Technology", price=180.0, rsi=25.0,
                   volume=60_000_000, week52_high=250.0, week52_low=200.0,
                   sma50=190.0, sma200=200.0, change_percent=-1.2),
        make_stock("MSFT", "Microsoft Corp.", "Technology", price=400.0, rsi=50.0,
                   volume=30_000_000, week52_high=420.0, week52_low=380.0,
                   sma50=390.0, sma200=370.0, change_percent=0.8),
        make_stock("XOM", "Exxon Mobil", "Energy", price=130.0, rsi=85.0,
                   volume=5_000_000, week52_high=120.0, week52_low=90.0,
                   sma50=125.0, sma200=110.0, change_percent=2.5),
    ]


@pytest.fixture
def memory_cache() -> MemoryCache:
    return MemoryCache()


@pytest.fixture
def provider(sample_stocks) -> CountingProvider:
    return CountingProvider(sample_stocks)


@pytest.fixture
def service(memory_cache, provider):
    from equilibrio_service.services.stock_service import StockService
    return StockService(cache=memory_cache, provider=provider)
