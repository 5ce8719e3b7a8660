"""估值、聚合與資產配置的純函式測試"""

from datetime import date
from decimal import Decimal

from portfolio_visualizer.models.holding import Market, detect_market
from portfolio_visualizer.price.base import PriceData
from portfolio_visualizer.services.valuation import aggregate, allocation, valuate

FX = Decimal("32")


def quote(symbol: str, price: str) -> PriceData:
    return PriceData(symbol=symbol, price=Decimal(price), currency="TWD")


class TestDetectMarket:
    def test_domestic_suffixes(self):
        assert detect_market("2330.TW") == Market.TW
        assert detect_market("6488.TWO") == Market.TW
        assert detect_market("0050.tw") == Market.TW

    def test_everything_else_is_foreign(self):
        assert detect_market("VOO") == Market.US
        assert detect_market("BRK-B") == Market.US


class TestValuate:
    def test_domestic_lot(self, lot):
        result = valuate([lot("2330.TW", "10", "100", date(2024, 1, 2))], {"2330.TW": quote("2330.TW", "150")}, FX)

        item = result.lots[0]
        assert item.total_cost_twd == Decimal("1000")
        assert item.current_value_twd == Decimal("1500")
        assert item.gain_twd == Decimal("500")
        assert item.gain_percent == Decimal("50")

    def test_foreign_lot_is_converted(self, lot):
        result = valuate([lot("VOO", "5", "200", date(2024, 1, 2))], {"VOO": quote("VOO", "220")}, FX)

        item = result.lots[0]
        assert item.total_cost == Decimal("1000")
        assert item.total_cost_twd == Decimal("32000")
        assert item.current_value_twd == Decimal("35200")
        assert item.gain_twd == Decimal("3200")
        assert item.gain_percent == Decimal("10")

    def test_missing_quote_counts_as_zero_value(self, lot):
        result = valuate([lot("VOO", "5", "200", date(2024, 1, 2))], {}, FX)

        item = result.lots[0]
        assert item.current_price == Decimal("0")
        assert item.current_value_twd == Decimal("0")
        assert item.gain_twd == Decimal("-32000")

    def test_totals_include_cash(self, lot):
        lots = [
            lot("2330.TW", "10", "100", date(2024, 1, 2)),
            lot("VOO", "5", "200", date(2024, 1, 3)),
        ]
        quotes = {"2330.TW": quote("2330.TW", "150"), "VOO": quote("VOO", "220")}

        totals = valuate(lots, quotes, FX, cash=Decimal("5000")).totals

        assert totals.total_cost_twd == Decimal("33000")
        assert totals.holdings_value_twd == Decimal("36700")
        assert totals.cash_twd == Decimal("5000")
        assert totals.total_value_twd == Decimal("41700")
        assert totals.total_gain_twd == Decimal("3700")

    def test_empty_portfolio_has_zero_gain_percent(self):
        totals = valuate([], {}, FX).totals
        assert totals.total_gain_percent == Decimal("0")
        assert totals.weighted_expense_ratio is None

    def test_weighted_expense_ratio_only_counts_etfs(self, lot):
        lots = [
            lot("VOO", "10", "100", date(2024, 1, 2)),
            lot("QQQ", "10", "100", date(2024, 1, 2)),
            lot("2330.TW", "10", "100", date(2024, 1, 2)),
        ]
        quotes = {
            "VOO": quote("VOO", "100"),
            "QQQ": quote("QQQ", "300"),
            "2330.TW": quote("2330.TW", "500"),
        }
        ratios = {"VOO": Decimal("0.0003"), "QQQ": Decimal("0.0020")}

        totals = valuate(lots, quotes, Decimal("1"), expense_ratios=ratios).totals

        # (1000 * 0.0003 + 3000 * 0.0020) / 4000
        assert totals.weighted_expense_ratio == Decimal("0.001575")


class TestAggregate:
    def test_weighted_average_cost(self, lot):
        lots = [
            lot("VOO", "10", "100", date(2024, 3, 1), lot_id="a"),
            lot("VOO", "30", "200", date(2024, 1, 1), lot_id="b"),
        ]
        enriched = valuate(lots, {"VOO": quote("VOO", "250")}, Decimal("1")).lots

        [position] = aggregate(enriched)

        assert position.shares == Decimal("40")
        assert position.cost_price == Decimal("175")
        assert position.purchase_date == date(2024, 1, 1)
        assert position.total_cost_twd == Decimal("7000")
        assert position.current_value_twd == Decimal("10000")
        assert [item.id for item in position.lots] == ["a", "b"]

    def test_single_lot_is_identity(self, lot):
        enriched = valuate([lot("VOO", "5", "200", date(2024, 1, 2))], {"VOO": quote("VOO", "220")}, FX).lots

        [position] = aggregate(enriched)

        assert position.shares == Decimal("5")
        assert position.cost_price == Decimal("200")
        assert position.gain_twd == Decimal("3200")

    def test_first_occurrence_order(self, lot):
        lots = [
            lot("QQQ", "1", "1", date(2024, 1, 1), lot_id="1"),
            lot("VOO", "1", "1", date(2024, 1, 1), lot_id="2"),
            lot("QQQ", "1", "1", date(2024, 1, 1), lot_id="3"),
        ]
        enriched = valuate(lots, {}, FX).lots

        assert [p.symbol for p in aggregate(enriched)] == ["QQQ", "VOO"]


class TestAllocation:
    def test_cash_slice_and_percentages(self, lot):
        lots = [lot("2330.TW", "10", "100", date(2024, 1, 2))]
        enriched = valuate(lots, {"2330.TW": quote("2330.TW", "150")}, FX).lots

        slices = allocation(aggregate(enriched), Decimal("500"))

        assert [(s.name, s.percentage) for s in slices] == [
            ("2330.TW", Decimal("75.00")),
            ("現金", Decimal("25.00")),
        ]

    def test_no_cash_slice_when_cash_is_not_positive(self, lot):
        enriched = valuate([lot("VOO", "1", "1", date(2024, 1, 2))], {"VOO": quote("VOO", "1")}, FX).lots

        slices = allocation(aggregate(enriched), Decimal("-10"))

        assert [s.name for s in slices] == ["VOO"]
        assert slices[0].percentage == Decimal("100.00")
