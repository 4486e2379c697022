"""
查询缓存键编码
字段顺序固定：排序字段、排序方向、页码、每页条数、搜索词、RSI 区间、价格区间、
行业、信号、趋势、成交量分档、均衡分区。

每个字段做百分号转义后再用分隔符拼接，取值中的分隔符不会造成键冲突；
集合类条件去重并排序，调用方传入的顺序不影响结果。
"""

from typing import Iterable
from urllib.parse import quote

from equilibrio_service.models.stock import FilterSpec, PageSpec, SortSpec

FIELD_SEP = "|"
ITEM_SEP = ","


def _escape(value: str) -> str:
    return quote(value, safe="")


def _number(value: float) -> str:
    # repr 保留完整精度，30.04 与 30.0 不会落到同一个键
    return repr(float(value))


def _members(values: Iterable[str]) -> str:
    return ITEM_SEP.join(_escape(v) for v in sorted(set(values)))


def encode_query(filters: FilterSpec, sort: SortSpec, page: PageSpec) -> str:
    """将一次查询编码为稳定字符串"""
    parts = [
        _escape(sort.field),
        _escape(sort.order),
        str(page.page),
        str(page.page_size),
        _escape(filters.search_term),
        _number(filters.rsi_min),
        _number(filters.rsi_max),
        _number(filters.price_min),
        _number(filters.price_max),
        _members(filters.sectors),
        _members(filters.signals),
        _members(filters.trend),
        _members(filters.volume_profile),
        _members(filters.equilibrium_zone),
    ]
    return FIELD_SEP.join(parts)
