"""
Yahoo Finance 報價提供者

透過 yfinance 取得美股即時報價、所有市場（含 .TW / .TWO）的每日收盤價、
USD/TWD 匯率以及 ETF 費用率。yfinance 為開源套件，無需 API Key。
"""

import logging
import math
from datetime import date, datetime, timedelta
from decimal import Decimal

import yfinance as yf

from portfolio_visualizer.price.base import (
    PriceProvider, PriceData, HistoricalPrice,
    PriceNotFoundError, ProviderError,
)

logger = logging.getLogger(__name__)

# 允許的時間範圍（即 yfinance period）
SUPPORTED_PERIODS: tuple[str, ...] = ("1mo", "3mo", "6mo", "1y", "5y")


class YahooProvider(PriceProvider):
    """Yahoo Finance 報價提供者"""

    async def get_current_price(self, symbol: str) -> PriceData:
        """取得即時報價（使用 yfinance）"""
        import asyncio
        try:
            # yfinance 是同步 API，需用 run_in_executor 包裝
            loop = asyncio.get_event_loop()
            return await loop.run_in_executor(None, self._fetch_price, symbol)
        except PriceNotFoundError:
            raise
        except Exception as e:
            if "not found" in str(e).lower():
                raise PriceNotFoundError(f"找不到 {symbol} 的報價") from e
            raise ProviderError(f"Yahoo Finance 錯誤: {e}") from e

    def _fetch_price(self, symbol: str) -> PriceData:
        """同步取得報價（在 executor 中執行）"""
        ticker = yf.Ticker(symbol)
        info = ticker.fast_info

        try:
            price = info.last_price
            prev_close = info.previous_close
            currency = info.currency or "USD"
        except Exception:
            raise PriceNotFoundError(f"找不到 {symbol} 的報價")

        if price is None or math.isnan(price):
            raise PriceNotFoundError(f"找不到 {symbol} 的報價")

        change = None
        change_pct = None
        if prev_close and prev_close > 0:
            change = Decimal(str(price)) - Decimal(str(prev_close))
            change_pct = (change / Decimal(str(prev_close))) * 100

        return PriceData(
            symbol=symbol.upper(),
            price=Decimal(str(round(price, 4))),
            currency=currency.upper(),
            timestamp=datetime.now(),
            change=change,
            change_percent=change_pct,
            source="yahoo_finance",
        )

    async def get_historical_prices(
        self,
        symbol: str,
        start_date: date | None = None,
        end_date: date | None = None,
        period: str = "1mo",
    ) -> list[HistoricalPrice]:
        """取得每日收盤價"""
        import asyncio
        if period not in SUPPORTED_PERIODS:
            period = "1mo"
        loop = asyncio.get_event_loop()
        try:
            return await loop.run_in_executor(
                None, self._fetch_historical, symbol, start_date, end_date, period
            )
        except PriceNotFoundError:
            raise
        except Exception as e:
            raise ProviderError(f"Yahoo Finance 歷史資料錯誤: {e}") from e

    def _fetch_historical(
        self,
        symbol: str,
        start_date: date | None,
        end_date: date | None,
        period: str,
    ) -> list[HistoricalPrice]:
        """同步取得歷史報價"""
        ticker = yf.Ticker(symbol)
        if start_date is not None:
            # yfinance 的 end 不含當日，需多加一天
            end = (end_date or date.today()) + timedelta(days=1)
            df = ticker.history(start=start_date.isoformat(), end=end.isoformat(), interval="1d")
        else:
            df = ticker.history(period=period, interval="1d")

        if df.empty:
            raise PriceNotFoundError(f"找不到 {symbol} 的歷史報價")

        prices = []
        for idx, row in df.iterrows():
            close = row["Close"]
            if close is None or math.isnan(close):
                continue
            prices.append(HistoricalPrice(
                symbol=symbol.upper(),
                date=idx.date(),
                close=Decimal(str(round(float(close), 4))),
            ))
        return prices

    async def get_expense_ratio(self, symbol: str) -> Decimal | None:
        """取得 ETF 費用率"""
        import asyncio
        loop = asyncio.get_event_loop()
        try:
            return await loop.run_in_executor(None, self._fetch_expense_ratio, symbol)
        except Exception as e:
            raise ProviderError(f"Yahoo Finance 費用率錯誤: {e}") from e

    def _fetch_expense_ratio(self, symbol: str) -> Decimal | None:
        """同步取得費用率（在 executor 中執行）"""
        info = yf.Ticker(symbol).info or {}

        ratio = info.get("annualReportExpenseRatio")
        if ratio:
            return Decimal(str(ratio))

        # netExpenseRatio 以百分比表示（0.03 代表 0.03%）
        net_ratio = info.get("netExpenseRatio")
        if net_ratio:
            return Decimal(str(net_ratio)) / 100

        return None
