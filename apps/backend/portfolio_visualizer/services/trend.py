"""
走勢重建

由持股批次與每日收盤價，逐日回推資產市值／成本走勢與每日損益。
純函式，歷史價格與匯率由呼叫端傳入。
"""

import math
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from datetime import date, timedelta
from decimal import Decimal, ROUND_HALF_UP

from portfolio_visualizer.models.holding import Holding, Market

ZERO = Decimal("0")

PriceHistory = Mapping[str, Mapping[date, Decimal]]


@dataclass
class TrendPoint:
    date: date
    value: int   # 市值（台幣）
    cost: int    # 成本（台幣）


@dataclass
class DailyPnLPoint:
    date: date
    pnl: int     # 當日損益（台幣）


def _round_twd(amount: Decimal) -> int:
    return int(amount.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def _multiplier(lot: Holding, fx_rate: Decimal) -> Decimal:
    return fx_rate if lot.market == Market.US else Decimal("1")


def date_range(start: date, end: date) -> list[date]:
    """start 到 end（含）的每一個日曆天"""
    days = (end - start).days
    return [start + timedelta(days=i) for i in range(days + 1)]


def lookback_days(window_days: int, multiplier: float = 2.5) -> int:
    """估計涵蓋 window_days 個交易日所需的日曆天數"""
    return math.ceil(window_days * multiplier)


def asset_trend(
    lots: Iterable[Holding],
    history: PriceHistory,
    fx_rate: Decimal,
    today: date | None = None,
) -> list[TrendPoint]:
    """
    重建每日市值與成本走勢

    從最早買入日逐日計算到今天：
    - 成本：當日已買入批次的總成本（美股乘匯率）
    - 市值：當日收盤價 × 股數；當日無收盤價（假日）時沿用該標的最近一次收盤價，
      尚無任何收盤價的批次當日市值為 0
    - 只輸出有持股且市值大於 0 的日期
    """
    lots = list(lots)
    if not lots:
        return []

    today = today or date.today()
    earliest = min(lot.purchase_date for lot in lots)
    symbols = {lot.symbol for lot in lots}
    last_known: dict[str, Decimal] = {}
    points: list[TrendPoint] = []

    for day in date_range(earliest, today):
        # 先更新所有標的的最近收盤價，讓週末買入的批次也能沿用前一交易日價格
        for symbol in symbols:
            close = history.get(symbol, {}).get(day)
            if close:
                last_known[symbol] = close

        daily_value = ZERO
        daily_cost = ZERO
        has_holding = False

        for lot in lots:
            if lot.purchase_date > day:
                continue
            has_holding = True

            multiplier = _multiplier(lot, fx_rate)
            shares = Decimal(lot.shares)
            daily_cost += shares * Decimal(lot.cost_price) * multiplier

            price = last_known.get(lot.symbol)
            if price:
                daily_value += shares * price * multiplier

        if has_holding and daily_value > 0:
            points.append(TrendPoint(
                date=day,
                value=_round_twd(daily_value),
                cost=_round_twd(daily_cost),
            ))

    return points


def daily_pnl(
    lots: Iterable[Holding],
    history: PriceHistory,
    fx_rate: Decimal,
    window_days: int,
    today: date | None = None,
    lookback_multiplier: float = 2.5,
) -> list[DailyPnLPoint]:
    """
    計算最近 window_days 個交易日的每日損益

    每一對相鄰日曆天 (D-1, D) 只在兩天都有實際收盤價時計入
    (收盤價差 × 股數，美股乘匯率)，不沿用前值。
    沒有任何標的在 D 有收盤價的日期不輸出；損益為 0 的日期也不輸出。
    """
    lots = list(lots)
    if not lots or window_days <= 0:
        return []

    today = today or date.today()
    start = today - timedelta(days=lookback_days(window_days, lookback_multiplier))
    symbols = {lot.symbol for lot in lots}
    points: list[DailyPnLPoint] = []

    dates = date_range(start, today)
    for prev_day, day in zip(dates, dates[1:]):
        pnl = ZERO
        for lot in lots:
            if lot.purchase_date > day:
                continue

            closes = history.get(lot.symbol, {})
            close_today = closes.get(day)
            close_prev = closes.get(prev_day)
            if close_today is None or close_prev is None:
                continue

            pnl += (close_today - close_prev) * Decimal(lot.shares) * _multiplier(lot, fx_rate)

        # 只要任一標的當日有收盤價即視為交易日，含當日尚未買入的批次
        has_data = any(day in history.get(symbol, {}) for symbol in symbols)
        if has_data and pnl != 0:
            points.append(DailyPnLPoint(date=day, pnl=_round_twd(pnl)))

    return points[-window_days:]
