"""
報價閘道 (Quote Gateway)

統一入口，根據代碼後綴自動路由到台股或美股的 PriceProvider。
整合快取邏輯：先查快取，過期才呼叫 Provider 取得最新報價。

所有對外報價皆為 best-effort：Provider 失敗時記錄警告並回傳
None / 空列表 / 預設匯率，讓聚合畫面在報價來源中斷時仍可顯示。
"""

import asyncio
import logging
from datetime import date
from decimal import Decimal
from functools import lru_cache

from portfolio_visualizer.config import Settings, get_settings
from portfolio_visualizer.models.holding import Market, detect_market
from portfolio_visualizer.price.base import PriceData, HistoricalPrice, PriceProvider
from portfolio_visualizer.price.cache import QuoteCache, price_to_dict, dict_to_price
from portfolio_visualizer.price.tw_stock import TWStockProvider
from portfolio_visualizer.price.yahoo import YahooProvider

logger = logging.getLogger(__name__)

# 常見 ETF 費用率備用資料（手動維護），Yahoo 取不到時使用
FALLBACK_EXPENSE_RATIOS: dict[str, Decimal] = {
    # 美股 ETF - Vanguard
    "VOO": Decimal("0.0003"),
    "VTI": Decimal("0.0003"),
    "VT": Decimal("0.0007"),
    "VXUS": Decimal("0.0007"),
    "VEU": Decimal("0.0007"),
    "VGT": Decimal("0.0010"),
    "VNQ": Decimal("0.0012"),
    "BND": Decimal("0.0003"),
    # 美股 ETF - iShares
    "IVV": Decimal("0.0003"),
    "IJH": Decimal("0.0005"),
    "EWY": Decimal("0.0059"),
    "SOXX": Decimal("0.0035"),
    # 美股 ETF - SPDR
    "SPY": Decimal("0.0009"),
    "XLP": Decimal("0.0009"),
    # 美股 ETF - 其他
    "QQQ": Decimal("0.0020"),
    "ARKK": Decimal("0.0075"),
    "NLR": Decimal("0.0060"),
    # 台股 ETF
    "0050.TW": Decimal("0.0043"),
    "0056.TW": Decimal("0.0066"),
    "00878.TW": Decimal("0.0056"),
    "00692.TW": Decimal("0.0035"),
    "006208.TW": Decimal("0.0015"),
}


class QuoteGateway:
    """
    報價閘道

    使用方式：
        gateway = QuoteGateway()
        quote = await gateway.get_quote("2330.TW")
        rate = await gateway.get_exchange_rate_or_default()
        await gateway.cache.invalidate("2330.TW")
    """

    def __init__(
        self,
        providers: dict[Market, PriceProvider] | None = None,
        cache: QuoteCache | None = None,
        expense_cache: QuoteCache | None = None,
        settings: Settings | None = None,
    ):
        self._settings = settings or get_settings()
        self._providers = providers or {
            Market.TW: TWStockProvider(),
            Market.US: YahooProvider(),
        }
        self.cache = cache or QuoteCache(ttl=self._settings.quote_cache_ttl, prefix="quote")
        self.expense_cache = expense_cache or QuoteCache(
            ttl=self._settings.expense_cache_ttl, prefix="expense"
        )
        self._fetching: dict[str, asyncio.Future] = {}

    @property
    def default_exchange_rate(self) -> Decimal:
        return Decimal(str(self._settings.default_exchange_rate))

    def market_of(self, symbol: str) -> Market:
        return detect_market(symbol, self._settings.domestic_suffix)

    def _provider_for(self, symbol: str) -> PriceProvider:
        return self._providers[self.market_of(symbol)]

    async def _fetch_price(
        self, symbol: str, provider: PriceProvider, force_refresh: bool = False
    ) -> PriceData:
        """
        取得即時報價（含快取邏輯）

        流程：
        1. 先查快取
        2. 快取過期 → 呼叫對應 Provider
        3. 取得新報價後寫入快取
        """
        # 1. 先查快取 (如果非強制更新)
        if not force_refresh:
            cached = await self.cache.get(symbol)
            if cached:
                return dict_to_price(cached)

        # Singleflight: 相同代碼的請求進行中時，直接等待該請求結果
        if symbol in self._fetching:
            logger.info("等待進行中的報價請求: %s", symbol)
            return await asyncio.shield(self._fetching[symbol])

        future = asyncio.get_event_loop().create_future()
        self._fetching[symbol] = future

        try:
            # 2. 快取未命中，呼叫 Provider
            logger.info("快取未命中，正在取得 %s 報價...", symbol)
            price = await provider.get_current_price(symbol)

            # 3. 寫入快取
            await self.cache.set(symbol, price_to_dict(price))
            future.set_result(price)
            return price
        except Exception as e:
            future.set_exception(e)
            # 沒有其他等待者時避免 "exception was never retrieved" 警告
            future.exception()
            raise
        finally:
            self._fetching.pop(symbol, None)

    async def get_quote(
        self, symbol: str, force_refresh: bool = False
    ) -> PriceData | None:
        """取得單一標的報價，失敗時回傳 None"""
        symbol = symbol.strip().upper()
        try:
            return await self._fetch_price(
                symbol, self._provider_for(symbol), force_refresh=force_refresh
            )
        except Exception as e:
            logger.warning("取得 %s 報價失敗: %s", symbol, e)
            return None

    async def get_quotes(
        self, symbols: list[str], force_refresh: bool = False
    ) -> dict[str, PriceData]:
        """
        批次取得報價（並行）

        Returns:
            {symbol: PriceData, ...}，取不到報價的代碼不會出現在結果中
        """
        unique = list(dict.fromkeys(s.strip().upper() for s in symbols if s.strip()))
        results = await asyncio.gather(
            *(self.get_quote(s, force_refresh=force_refresh) for s in unique)
        )
        return {
            symbol: quote
            for symbol, quote in zip(unique, results)
            if quote is not None
        }

    async def get_history(
        self,
        symbol: str,
        start_date: date | None = None,
        end_date: date | None = None,
        period: str = "1mo",
    ) -> list[HistoricalPrice]:
        """取得每日收盤價，失敗時回傳空列表"""
        symbol = symbol.strip().upper()
        try:
            return await self._provider_for(symbol).get_historical_prices(
                symbol, start_date=start_date, end_date=end_date, period=period
            )
        except Exception as e:
            logger.warning("取得 %s 歷史數據失敗: %s", symbol, e)
            return []

    async def get_history_map(
        self,
        symbols: list[str],
        start_date: date | None = None,
        end_date: date | None = None,
    ) -> dict[str, dict[date, Decimal]]:
        """並行取得多個標的的收盤價，以 {symbol: {date: close}} 回傳"""
        unique = list(dict.fromkeys(s.upper() for s in symbols))
        results = await asyncio.gather(
            *(self.get_history(s, start_date=start_date, end_date=end_date) for s in unique)
        )
        return {
            symbol: {point.date: point.close for point in history}
            for symbol, history in zip(unique, results)
        }

    async def get_exchange_rate(self) -> Decimal | None:
        """取得 USD/TWD 匯率（1 美元可換多少台幣），失敗時回傳 None"""
        symbol = self._settings.exchange_rate_symbol
        try:
            price_data = await self._fetch_price(symbol, self._providers[Market.US])
        except Exception as e:
            logger.warning("取得匯率失敗: %s", e)
            return None

        if price_data.price <= 0:
            return None
        return price_data.price

    async def get_exchange_rate_or_default(self) -> Decimal:
        """取得匯率，失敗時使用設定中的預設值"""
        rate = await self.get_exchange_rate()
        if rate is None:
            logger.warning("匯率不可用，使用預設值 %s", self.default_exchange_rate)
            return self.default_exchange_rate
        return rate

    async def get_expense_ratio(self, symbol: str) -> tuple[Decimal | None, str | None]:
        """
        取得 ETF 費用率

        Returns:
            (費用率, 來源)；來源為 "auto"（Yahoo）或 "manual"（備用資料），
            非 ETF 或取不到時為 (None, None)
        """
        symbol = symbol.strip().upper()

        cached = await self.expense_cache.get(symbol)
        if cached:
            ratio = cached.get("ratio")
            return (Decimal(ratio) if ratio else None), cached.get("source")

        ratio: Decimal | None = None
        source: str | None = None
        try:
            ratio = await self._provider_for(symbol).get_expense_ratio(symbol)
            if ratio is not None:
                source = "auto"
        except Exception as e:
            logger.warning("取得 %s 費用率失敗: %s", symbol, e)

        if ratio is None and symbol in FALLBACK_EXPENSE_RATIOS:
            ratio = FALLBACK_EXPENSE_RATIOS[symbol]
            source = "manual"

        await self.expense_cache.set(
            symbol, {"ratio": str(ratio) if ratio is not None else None, "source": source}
        )
        return ratio, source

    async def get_expense_ratios(self, symbols: list[str]) -> dict[str, Decimal]:
        """並行取得多個標的的費用率，只回傳有費用率的標的"""
        unique = list(dict.fromkeys(s.upper() for s in symbols))
        results = await asyncio.gather(*(self.get_expense_ratio(s) for s in unique))
        return {
            symbol: ratio
            for symbol, (ratio, _source) in zip(unique, results)
            if ratio is not None
        }

    async def close(self) -> None:
        """關閉所有 Provider 的資源"""
        for provider in self._providers.values():
            await provider.close()


@lru_cache
def get_quote_gateway() -> QuoteGateway:
    """取得行程內共用的報價閘道（FastAPI 依賴注入）"""
    return QuoteGateway()
