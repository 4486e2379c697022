"""过滤引擎单元测试"""

import pytest

from equilibrio_service.layers.filtering import apply_filters, matches
from equilibrio_service.models.stock import FilterSpec
from tests.conftest import make_stock


def _symbols(records):
    return [r.symbol for r in records]


class TestIdentityFilter:
    def test_default_spec_matches_everything(self, sample_stocks):
        spec = FilterSpec()
        assert all(matches(s, spec) for s in sample_stocks)

    def test_full_ranges_match_extremes(self):
        spec = FilterSpec(rsi_min=0, rsi_max=100, price_min=0, price_max=10000)
        assert matches(make_stock("A", rsi=0.0, price=0.0, week52_high=1, week52_low=1), spec)
        assert matches(make_stock("B", rsi=100.0, price=10000.0), spec)


class TestSearchTerm:
    def test_symbol_case_insensitive(self, sample_stocks):
        assert _symbols(apply_filters(sample_stocks, FilterSpec(search_term="aap"))) == ["AAPL"]

    def test_name_substring(self, sample_stocks):
        assert _symbols(apply_filters(sample_stocks, FilterSpec(search_term="MOBIL"))) == ["XOM"]

    def test_no_match(self, sample_stocks):
        assert apply_filters(sample_stocks, FilterSpec(search_term="zzz")) == []


class TestRanges:
    def test_rsi_range_inclusive(self, sample_stocks):
        spec = FilterSpec(rsi_min=25, rsi_max=50)
        assert _symbols(apply_filters(sample_stocks, spec)) == ["AAPL", "MSFT"]

    def test_price_range_excludes_outside(self, sample_stocks):
        spec = FilterSpec(price_min=150, price_max=399.99)
        assert _symbols(apply_filters(sample_stocks, spec)) == ["AAPL"]

    def test_inverted_range_matches_nothing(self, sample_stocks):
        assert apply_filters(sample_stocks, FilterSpec(rsi_min=60, rsi_max=40)) == []


class TestSetFilters:
    def test_sector(self, sample_stocks):
        spec = FilterSpec(sectors=["Energy"])
        assert _symbols(apply_filters(sample_stocks, spec)) == ["XOM"]

    def test_sector_exact_match(self, sample_stocks):
        assert apply_filters(sample_stocks, FilterSpec(sectors=["energy"])) == []

    def test_volume_profile(self, sample_stocks):
        spec = FilterSpec(volume_profile=["high", "low"])
        assert _symbols(apply_filters(sample_stocks, spec)) == ["AAPL", "XOM"]

    def test_signal(self, sample_stocks):
        assert _symbols(apply_filters(sample_stocks, FilterSpec(signals=["buy"]))) == ["AAPL"]
        assert _symbols(apply_filters(sample_stocks, FilterSpec(signals=["sell"]))) == ["XOM"]

    def test_trend(self, sample_stocks):
        spec = FilterSpec(trend=["bullish"])
        assert _symbols(apply_filters(sample_stocks, spec)) == ["MSFT", "XOM"]

    @pytest.mark.parametrize("zone, expected", [
        ("discount", ["AAPL"]),
        ("equilibrium", ["MSFT"]),
        ("premium", ["XOM"]),
    ])
    def test_equilibrium_zone(self, sample_stocks, zone, expected):
        spec = FilterSpec(equilibrium_zone=[zone])
        assert _symbols(apply_filters(sample_stocks, spec)) == expected

    def test_zone_boundary(self):
        # 均衡位 100，价格 95 → 偏离度恰为 -5%
        edge = make_stock("EDGE", price=95.0, week52_high=110.0, week52_low=90.0)
        assert matches(edge, FilterSpec(equilibrium_zone=["equilibrium"]))
        assert not matches(edge, FilterSpec(equilibrium_zone=["discount"]))

    def test_unknown_zone_matches_nothing(self, sample_stocks):
        assert apply_filters(sample_stocks, FilterSpec(equilibrium_zone=["cheap"])) == []


class TestConjunction:
    def test_all_conditions_required(self, sample_stocks):
        spec = FilterSpec(sectors=["Technology"], trend=["bullish"])
        assert _symbols(apply_filters(sample_stocks, spec)) == ["MSFT"]

    def test_preserves_input_order(self, sample_stocks):
        reversed_input = list(reversed(sample_stocks))
        assert _symbols(apply_filters(reversed_input, FilterSpec())) == ["XOM", "MSFT", "AAPL"]
