"""
过滤引擎
各子条件独立求与，任一条件不满足立即返回 False
"""

from typing import Callable, Iterable, List, Sequence

from equilibrio_service.layers import metrics
from equilibrio_service.models.stock import FilterSpec, StockRecord


def _match_search(record: StockRecord, spec: FilterSpec) -> bool:
    if not spec.search_term:
        return True
    term = spec.search_term.lower()
    return term in record.symbol.lower() or term in record.name.lower()


def _in_set(value, allowed: Sequence[str]) -> bool:
    # 空集合不做过滤
    return not allowed or value in allowed


def _match_sector(record: StockRecord, spec: FilterSpec) -> bool:
    return _in_set(record.sector, spec.sectors)


def _match_rsi(record: StockRecord, spec: FilterSpec) -> bool:
    return spec.rsi_min <= record.rsi <= spec.rsi_max


def _match_price(record: StockRecord, spec: FilterSpec) -> bool:
    return spec.price_min <= record.price <= spec.price_max


def _match_volume_profile(record: StockRecord, spec: FilterSpec) -> bool:
    return _in_set(record.volume_profile, spec.volume_profile)


def _match_signal(record: StockRecord, spec: FilterSpec) -> bool:
    return _in_set(record.signal, spec.signals)


def _match_trend(record: StockRecord, spec: FilterSpec) -> bool:
    return _in_set(record.trend, spec.trend)


def _match_zone(record: StockRecord, spec: FilterSpec) -> bool:
    if not spec.equilibrium_zone:
        return True
    return metrics.equilibrium_zone(record.price_to_equilibrium) in spec.equilibrium_zone


_PREDICATES: List[Callable[[StockRecord, FilterSpec], bool]] = [
    _match_search,
    _match_sector,
    _match_rsi,
    _match_price,
    _match_volume_profile,
    _match_signal,
    _match_trend,
    _match_zone,
]


def matches(record: StockRecord, spec: FilterSpec) -> bool:
    """记录是否满足全部过滤条件"""
    return all(predicate(record, spec) for predicate in _PREDICATES)


def apply_filters(records: Iterable[StockRecord], spec: FilterSpec) -> List[StockRecord]:
    """保持原有顺序返回匹配记录"""
    return [r for r in records if matches(r, spec)]
