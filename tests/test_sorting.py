"""排序引擎单元测试"""

import pytest

from equilibrio_service.layers.sorting import SORT_FIELDS, apply_sorting
from equilibrio_service.models.stock import SortSpec
from tests.conftest import make_stock


def _symbols(records):
    return [r.symbol for r in records]


@pytest.fixture
def tied_stocks():
    # B1/B2/B3 价格相同，用于检验稳定性
    return [
        make_stock("B1", price=50.0, sector="Energy"),
        make_stock("A", price=10.0, sector="Technology"),
        make_stock("B2", price=50.0, sector="Energy"),
        make_stock("C", price=99.0, sector="Financial"),
        make_stock("B3", price=50.0, sector="Energy"),
    ]


class TestSortFields:
    def test_numeric_ascending(self, sample_stocks):
        result = apply_sorting(sample_stocks, SortSpec(field="price", order="asc"))
        assert _symbols(result) == ["XOM", "AAPL", "MSFT"]

    def test_numeric_descending(self, sample_stocks):
        result = apply_sorting(sample_stocks, SortSpec(field="rsi", order="desc"))
        assert _symbols(result) == ["XOM", "MSFT", "AAPL"]

    def test_change_percent(self, sample_stocks):
        result = apply_sorting(sample_stocks, SortSpec(field="changePercent"))
        assert _symbols(result) == ["AAPL", "MSFT", "XOM"]

    def test_numeric_not_lexical(self):
        stocks = [make_stock("X", price=9.0), make_stock("Y", price=10.0)]
        assert _symbols(apply_sorting(stocks, SortSpec(field="price"))) == ["X", "Y"]

    def test_string_no_case_folding(self):
        stocks = [make_stock("b"), make_stock("B"), make_stock("a")]
        assert _symbols(apply_sorting(stocks, SortSpec(field="symbol"))) == ["B", "a", "b"]

    def test_unknown_field_falls_back_to_symbol(self, sample_stocks):
        result = apply_sorting(sample_stocks, SortSpec(field="marketCap", order="desc"))
        assert _symbols(result) == ["XOM", "MSFT", "AAPL"]

    def test_unknown_order_is_ascending(self, sample_stocks):
        result = apply_sorting(sample_stocks, SortSpec(field="symbol", order="sideways"))
        assert _symbols(result) == ["AAPL", "MSFT", "XOM"]


class TestStability:
    def test_ascending_keeps_tie_order(self, tied_stocks):
        result = apply_sorting(tied_stocks, SortSpec(field="price", order="asc"))
        assert _symbols(result) == ["A", "B1", "B2", "B3", "C"]

    def test_descending_keeps_tie_order(self, tied_stocks):
        result = apply_sorting(tied_stocks, SortSpec(field="price", order="desc"))
        # 不是升序结果的整体翻转（那样会得到 B3, B2, B1）
        assert _symbols(result) == ["C", "B1", "B2", "B3", "A"]

    def test_string_ties(self, tied_stocks):
        result = apply_sorting(tied_stocks, SortSpec(field="sector", order="desc"))
        assert _symbols(result) == ["A", "C", "B1", "B2", "B3"]


class TestProperties:
    @pytest.mark.parametrize("field", SORT_FIELDS)
    @pytest.mark.parametrize("order", ["asc", "desc"])
    def test_permutation_and_idempotent(self, tied_stocks, field, order):
        spec = SortSpec(field=field, order=order)
        once = apply_sorting(tied_stocks, spec)
        twice = apply_sorting(once, spec)
        assert sorted(_symbols(once)) == sorted(_symbols(tied_stocks))
        assert len(once) == len(tied_stocks)
        assert _symbols(twice) == _symbols(once)

    def test_input_not_mutated(self, tied_stocks):
        before = _symbols(tied_stocks)
        apply_sorting(tied_stocks, SortSpec(field="price", order="desc"))
        assert _symbols(tied_stocks) == before

    def test_nan_sorts_last(self):
        stocks = [make_stock("N", price=float("nan")), make_stock("P", price=5.0)]
        assert _symbols(apply_sorting(stocks, SortSpec(field="price"))) == ["P", "N"]
