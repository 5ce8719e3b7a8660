"""
估值與持股聚合

純函式，不做任何 I/O：報價、匯率、費用率皆由呼叫端傳入。

- valuate(): 逐批次計算台幣成本、市值、損益，並加總成投資組合總額
- aggregate(): 將同一標的的多個批次合併為單一部位（加權平均成本）
- allocation(): 以聚合部位與現金計算資產配置比例（圓餅圖用）
"""

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal, ROUND_HALF_UP

from portfolio_visualizer.models.holding import Holding, Market
from portfolio_visualizer.price.base import PriceData

ZERO = Decimal("0")
HUNDRED = Decimal("100")


def gain_percent(gain: Decimal, cost: Decimal) -> Decimal:
    """報酬率 (%)，成本為 0 時回傳 0"""
    if cost > 0:
        return gain / cost * HUNDRED
    return ZERO


@dataclass
class EnrichedLot:
    """搭配即時報價的持股批次"""
    id: str
    symbol: str
    shares: Decimal
    cost_price: Decimal
    purchase_date: date
    market: Market
    portfolio_id: str | None
    current_price: Decimal
    total_cost: Decimal        # 原幣
    total_cost_twd: Decimal
    current_value_twd: Decimal
    gain_twd: Decimal
    gain_percent: Decimal
    expense_ratio: Decimal | None = None


@dataclass
class AggregatedPosition:
    """同一標的所有批次合併後的部位"""
    symbol: str
    market: Market
    shares: Decimal
    cost_price: Decimal        # 加權平均成本（原幣）
    purchase_date: date        # 最早買入日期
    current_price: Decimal
    total_cost: Decimal        # 原幣
    total_cost_twd: Decimal
    current_value_twd: Decimal
    gain_twd: Decimal
    gain_percent: Decimal
    expense_ratio: Decimal | None
    lots: list[EnrichedLot] = field(default_factory=list)


@dataclass
class ValuationTotals:
    """投資組合總額（台幣）"""
    total_cost_twd: Decimal
    holdings_value_twd: Decimal
    cash_twd: Decimal
    total_value_twd: Decimal   # 持股市值 + 現金
    total_gain_twd: Decimal
    total_gain_percent: Decimal
    weighted_expense_ratio: Decimal | None


@dataclass
class Valuation:
    lots: list[EnrichedLot]
    totals: ValuationTotals


@dataclass
class AllocationSlice:
    name: str
    value_twd: Decimal
    percentage: Decimal


def enrich_lot(
    lot: Holding,
    quote: PriceData | None,
    fx_rate: Decimal,
    expense_ratio: Decimal | None = None,
) -> EnrichedLot:
    """
    計算單一批次的台幣成本、市值與損益

    沒有報價時視為「尚未載入」，市值以 0 計算而非錯誤。
    """
    shares = Decimal(lot.shares)
    cost_price = Decimal(lot.cost_price)
    current_price = quote.price if quote is not None else ZERO

    cost_native = shares * cost_price
    value_native = shares * current_price

    multiplier = fx_rate if lot.market == Market.US else Decimal("1")
    cost_twd = cost_native * multiplier
    value_twd = value_native * multiplier
    gain_twd = value_twd - cost_twd

    return EnrichedLot(
        id=lot.id,
        symbol=lot.symbol,
        shares=shares,
        cost_price=cost_price,
        purchase_date=lot.purchase_date,
        market=lot.market,
        portfolio_id=lot.portfolio_id,
        current_price=current_price,
        total_cost=cost_native,
        total_cost_twd=cost_twd,
        current_value_twd=value_twd,
        gain_twd=gain_twd,
        gain_percent=gain_percent(gain_twd, cost_twd),
        expense_ratio=expense_ratio,
    )


def valuate(
    lots: Iterable[Holding],
    quotes: Mapping[str, PriceData],
    fx_rate: Decimal,
    cash: Decimal = ZERO,
    expense_ratios: Mapping[str, Decimal] | None = None,
) -> Valuation:
    """
    計算所有批次與投資組合總額

    費用率以市值加權：只有查得到費用率且市值大於 0 的批次納入分子與分母，
    沒有任何 ETF 時加權費用率為 None。
    """
    expense_ratios = expense_ratios or {}

    enriched: list[EnrichedLot] = []
    total_cost = ZERO
    total_value = ZERO
    etf_value = ZERO
    etf_weighted_sum = ZERO

    for lot in lots:
        ratio = expense_ratios.get(lot.symbol)
        item = enrich_lot(lot, quotes.get(lot.symbol), fx_rate, ratio)
        enriched.append(item)

        total_cost += item.total_cost_twd
        total_value += item.current_value_twd

        if ratio is not None and item.current_value_twd > 0:
            etf_value += item.current_value_twd
            etf_weighted_sum += item.current_value_twd * ratio

    total_gain = total_value - total_cost
    weighted_ratio = etf_weighted_sum / etf_value if etf_value > 0 else None

    totals = ValuationTotals(
        total_cost_twd=total_cost,
        holdings_value_twd=total_value,
        cash_twd=cash,
        total_value_twd=total_value + cash,
        total_gain_twd=total_gain,
        total_gain_percent=gain_percent(total_gain, total_cost),
        weighted_expense_ratio=weighted_ratio,
    )
    return Valuation(lots=enriched, totals=totals)


def aggregate(lots: Iterable[EnrichedLot]) -> list[AggregatedPosition]:
    """
    依標的聚合批次

    輸出順序為各標的第一次出現的順序。平均成本為股數加權，
    而非各批次單價的簡單平均。
    """
    grouped: dict[str, AggregatedPosition] = {}
    native_cost: dict[str, Decimal] = {}

    for lot in lots:
        position = grouped.get(lot.symbol)
        if position is None:
            grouped[lot.symbol] = AggregatedPosition(
                symbol=lot.symbol,
                market=lot.market,
                shares=lot.shares,
                cost_price=lot.cost_price,
                purchase_date=lot.purchase_date,
                current_price=lot.current_price,
                total_cost=lot.total_cost,
                total_cost_twd=lot.total_cost_twd,
                current_value_twd=lot.current_value_twd,
                gain_twd=lot.gain_twd,
                gain_percent=lot.gain_percent,
                expense_ratio=lot.expense_ratio,
                lots=[lot],
            )
            native_cost[lot.symbol] = lot.shares * lot.cost_price
            continue

        native_cost[lot.symbol] += lot.shares * lot.cost_price
        position.shares += lot.shares
        position.total_cost += lot.total_cost
        position.total_cost_twd += lot.total_cost_twd
        position.current_value_twd += lot.current_value_twd
        position.gain_twd = position.current_value_twd - position.total_cost_twd
        position.gain_percent = gain_percent(position.gain_twd, position.total_cost_twd)
        position.cost_price = native_cost[lot.symbol] / position.shares
        if lot.purchase_date < position.purchase_date:
            position.purchase_date = lot.purchase_date
        position.lots.append(lot)

    return list(grouped.values())


def allocation(
    positions: Iterable[AggregatedPosition], cash: Decimal = ZERO
) -> list[AllocationSlice]:
    """資產配置比例：每個標的一塊，現金大於 0 時另加一塊"""
    items = [(p.symbol, p.current_value_twd) for p in positions]
    if cash > 0:
        items.append(("現金", cash))

    total = sum((value for _, value in items), ZERO)
    slices = []
    for name, value in items:
        pct = (value / total * HUNDRED) if total > 0 else ZERO
        slices.append(AllocationSlice(
            name=name,
            value_twd=value,
            percentage=pct.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP),
        ))
    return slices
