"""
股票数据服务
整合数据获取、缓存、衍生指标、过滤、排序、分页，对外提供统一的查询接口

列表查询流程：
  缓存键 → 查缓存（命中直接返回）→ 拉取全量行情 → 计算衍生字段
  → 过滤 → 排序 → 分页 → 写缓存 → 返回
"""

import logging
from typing import Any, List, Optional

from pydantic import ValidationError

from equilibrio_service.config import ServiceSettings, settings as default_settings
from equilibrio_service.errors import (
    InvalidQueryError,
    ServiceError,
    SourceUnavailableError,
    StockNotFoundError,
)
from equilibrio_service.layers import metrics
from equilibrio_service.layers.acquisition import StockProvider, get_provider
from equilibrio_service.layers.analysis import estimate_equilibrium
from equilibrio_service.layers.cache import CacheLayer, get_cache_layer
from equilibrio_service.layers.cache_keys import encode_query
from equilibrio_service.layers.filtering import apply_filters
from equilibrio_service.layers.processing import normalize_ohlcv, stocks_to_csv, to_records
from equilibrio_service.layers.sorting import apply_sorting
from equilibrio_service.models.stock import (
    Candle,
    PageSpec,
    StockChart,
    StockPage,
    StockQuery,
    StockRecord,
)

logger = logging.getLogger(__name__)

_LIST_CACHE_NS = "stocks"
_STOCK_CACHE_NS = "stock"
_CHART_CACHE_NS = "chart"


def paginate(records: List[StockRecord], page: PageSpec) -> List[StockRecord]:
    """按 1 起始页码切片；起点越界返回空列表"""
    start = page.offset
    if start >= len(records):
        return []
    end = min(start + page.page_size, len(records))
    return records[start:end]


def _validate_page(page: PageSpec) -> None:
    if page.page < 1:
        raise InvalidQueryError("page", page.page, "必须 >= 1")
    if page.page_size < 1:
        raise InvalidQueryError("pageSize", page.page_size, "必须 >= 1")


class StockService:
    """股票数据业务服务"""

    def __init__(
        self,
        cache: CacheLayer,
        provider: StockProvider,
        settings: Optional[ServiceSettings] = None,
    ):
        self._cache = cache
        self._provider = provider
        self._settings = settings or default_settings

    # ── 数据源访问 ────────────────────────────────────────

    def _fetch_all(self) -> List[StockRecord]:
        try:
            records = self._provider.list_stocks()
        except ServiceError:
            raise
        except Exception as exc:
            logger.warning(f"行情数据源 {self._provider.name} 拉取失败: {exc}")
            raise SourceUnavailableError(self._provider.name, str(exc)) from exc
        return [metrics.enrich(r) for r in records]

    def _fetch_one(self, symbol: str) -> Optional[StockRecord]:
        try:
            record = self._provider.get_stock(symbol)
        except ServiceError:
            raise
        except Exception as exc:
            logger.warning(f"行情数据源 {self._provider.name} 查询 {symbol} 失败: {exc}")
            raise SourceUnavailableError(self._provider.name, str(exc)) from exc
        return metrics.enrich(record) if record is not None else None

    # ── 列表查询 ──────────────────────────────────────────

    async def get_stocks(self, query: StockQuery) -> StockPage:
        """
        过滤 + 排序 + 分页查询

        Returns:
            StockPage，total 为分页前的匹配总数；页码越界时 stocks 为空
        """
        _validate_page(query.page)
        key = encode_query(query.filters, query.sort, query.page)

        cached = await self._cache.get(_LIST_CACHE_NS, key)
        if cached is not None:
            result = self._load_page(cached, query.page)
            if result is not None:
                return result

        records = self._fetch_all()
        filtered = apply_filters(records, query.filters)
        ordered = apply_sorting(filtered, query.sort)
        result = StockPage(
            stocks=paginate(ordered, query.page),
            total=len(ordered),
            page=query.page.page,
            page_size=query.page.page_size,
        )

        await self._cache.set(
            {"stocks": [s.to_json_dict() for s in result.stocks], "total": result.total},
            _LIST_CACHE_NS,
            key,
            ttl=self._settings.STOCK_LIST_CACHE_TTL,
        )
        logger.debug(
            f"列表查询完成: 全量 {len(records)}，匹配 {result.total}，本页 {len(result.stocks)}"
        )
        return result

    @staticmethod
    def _load_page(cached: Any, page: PageSpec) -> Optional[StockPage]:
        try:
            return StockPage(
                stocks=[StockRecord.model_validate(s) for s in cached["stocks"]],
                total=cached["total"],
                page=page.page,
                page_size=page.page_size,
            )
        except (KeyError, TypeError, ValidationError) as exc:
            logger.warning(f"⚠️ 列表缓存内容无法解析，重新计算: {exc}")
            return None

    # ── 单只股票 ──────────────────────────────────────────

    async def get_stock(self, symbol: str) -> StockRecord:
        """按代码获取单只股票（代码不区分大小写）"""
        symbol = symbol.strip().upper()
        if not symbol:
            raise InvalidQueryError("symbol", symbol, "不能为空")

        cached = await self._cache.get(_STOCK_CACHE_NS, symbol)
        if cached is not None:
            try:
                return StockRecord.model_validate(cached)
            except ValidationError as exc:
                logger.warning(f"⚠️ 股票缓存内容无法解析: {symbol}: {exc}")

        record = self._fetch_one(symbol)
        if record is None:
            raise StockNotFoundError(symbol)

        await self._cache.set(
            record.to_json_dict(), _STOCK_CACHE_NS, symbol,
            ttl=self._settings.STOCK_CACHE_TTL,
        )
        return record

    # ── 行业 ──────────────────────────────────────────────

    def get_sectors(self) -> List[str]:
        return self._provider.list_sectors()

    # ── K 线图 ────────────────────────────────────────────

    async def get_chart(self, symbol: str, days: Optional[int] = None) -> StockChart:
        """
        获取日 K 线与支撑/阻力估算

        Args:
            symbol: 股票代码
            days: 天数，不在 [1, MAX_CHART_DAYS] 范围内时使用默认值
        """
        cfg = self._settings
        if days is None or days < 1 or days > cfg.MAX_CHART_DAYS:
            days = cfg.DEFAULT_CHART_DAYS

        stock = await self.get_stock(symbol)

        cached = await self._cache.get(_CHART_CACHE_NS, stock.symbol, str(days))
        if cached is not None:
            try:
                return StockChart.model_validate(cached)
            except ValidationError as exc:
                logger.warning(f"⚠️ K 线缓存内容无法解析: {stock.symbol}: {exc}")

        try:
            raw = self._provider.get_candles(stock.symbol, stock.price, days)
        except Exception as exc:
            raise SourceUnavailableError(self._provider.name, str(exc)) from exc

        df = normalize_ohlcv(raw)
        chart = StockChart(
            symbol=stock.symbol,
            days=days,
            candles=[Candle(**row) for row in to_records(df)],
            equilibrium=estimate_equilibrium(df, stock.price, cfg.EQUILIBRIUM_LOOKBACK),
        )
        await self._cache.set(
            chart.to_json_dict(), _CHART_CACHE_NS, stock.symbol, str(days),
            ttl=cfg.CHART_CACHE_TTL,
        )
        return chart

    # ── 导出 / 刷新 ───────────────────────────────────────

    async def export_csv(self, query: StockQuery) -> str:
        """按当前过滤与排序导出全部匹配记录"""
        export_query = query.model_copy(
            update={"page": PageSpec(page=1, page_size=self._settings.EXPORT_PAGE_SIZE)}
        )
        result = await self.get_stocks(export_query)
        return stocks_to_csv(result.stocks)

    async def refresh(self) -> dict:
        """清空全部缓存，下一次查询重新计算"""
        return await self._cache.flush()


# ── 模块级别单例 ──────────────────────────────────────────
_stock_service: Optional[StockService] = None


def get_stock_service() -> StockService:
    global _stock_service
    if _stock_service is None:
        _stock_service = StockService(cache=get_cache_layer(), provider=get_provider())
    return _stock_service
