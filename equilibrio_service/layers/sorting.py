"""
排序引擎
字段名 → 取值函数 + 类型的显式映射表，每次排序只解析一次
"""

import logging
import math
from typing import Any, Callable, Dict, Iterable, List, Tuple

from equilibrio_service.models.stock import SortSpec, StockRecord

logger = logging.getLogger(__name__)

DEFAULT_SORT_FIELD = "symbol"


def _numeric(getter: Callable[[StockRecord], float]) -> Callable[[StockRecord], Tuple]:
    def key(record: StockRecord) -> Tuple:
        value = getter(record)
        # NaN 无法参与比较，统一排在数值之后
        if math.isnan(value):
            return (1, 0.0)
        return (0, value)
    return key


def _text(getter: Callable[[StockRecord], str]) -> Callable[[StockRecord], str]:
    # 按码点比较，不做大小写折叠
    return getter


_SORT_KEYS: Dict[str, Callable[[StockRecord], Any]] = {
    "symbol": _text(lambda r: r.symbol),
    "name": _text(lambda r: r.name),
    "price": _numeric(lambda r: r.price),
    "changePercent": _numeric(lambda r: r.change_percent),
    "rsi": _numeric(lambda r: r.rsi),
    "trend": _text(lambda r: r.trend),
    "signal": _text(lambda r: r.signal),
    "sector": _text(lambda r: r.sector),
}

SORT_FIELDS = tuple(_SORT_KEYS)


def resolve_sort_key(field: str) -> Callable[[StockRecord], Any]:
    """未知字段回退到 symbol"""
    key = _SORT_KEYS.get(field)
    if key is None:
        logger.debug(f"未知排序字段 {field!r}，回退到 {DEFAULT_SORT_FIELD}")
        key = _SORT_KEYS[DEFAULT_SORT_FIELD]
    return key


def apply_sorting(records: Iterable[StockRecord], spec: SortSpec) -> List[StockRecord]:
    """
    稳定排序，返回新列表

    降序通过 sorted(reverse=True) 实现：相等元素仍保持输入中的相对顺序，
    与先升序再整体翻转不同。
    """
    key = resolve_sort_key(spec.field)
    return sorted(records, key=key, reverse=spec.descending)
