"""
台股報價提供者

即時價透過 twstock 取得，無成交價時改用證交所 (TWSE) 公開資料 API。
歷史收盤價與費用率沿用 Yahoo Finance（代碼保留 .TW / .TWO 後綴）。
"""

import logging
from datetime import datetime
from decimal import Decimal

import httpx
import twstock

from portfolio_visualizer.price.base import (
    PriceData, PriceNotFoundError, ProviderError,
)
from portfolio_visualizer.price.yahoo import YahooProvider

logger = logging.getLogger(__name__)

TWSE_QUOTE_URL = "https://mis.twse.com.tw/stock/api/getStockInfo.jsp"


def strip_suffix(symbol: str) -> str:
    """移除 .TW 或 .TWO 後綴，取得證交所股票代號"""
    upper = symbol.upper()
    for suffix in (".TWO", ".TW"):
        if upper.endswith(suffix):
            return upper[: -len(suffix)]
    return upper


class TWStockProvider(YahooProvider):
    """台股報價提供者（twstock + TWSE 公開資料）"""

    async def get_current_price(self, symbol: str) -> PriceData:
        """取得台股即時報價"""
        import asyncio
        try:
            loop = asyncio.get_event_loop()
            return await loop.run_in_executor(
                None, self._fetch_price, symbol
            )
        except Exception as e:
            if isinstance(e, (PriceNotFoundError, ProviderError)):
                raise
            raise ProviderError(f"台股報價錯誤: {e}") from e

    def _fetch_price(self, symbol: str) -> PriceData:
        """同步取得台股報價（twstock 優先，失敗時自動 fallback 至 TWSE API）"""
        stock_id = strip_suffix(symbol)

        try:
            stock = twstock.realtime.get(stock_id)
        except Exception as e:
            logger.warning("twstock 查詢 %s 異常: %s，切換至 TWSE API", stock_id, e)
            return self._fetch_from_twse(symbol)

        if not stock or not stock.get("success"):
            # twstock 查詢失敗（常見於 ETF），改用 TWSE API
            logger.warning("twstock 查詢 %s 失敗，切換至 TWSE API", stock_id)
            return self._fetch_from_twse(symbol)

        real_data = stock["realtime"]
        raw_price = (real_data.get("latest_trade_price", "") or "").strip().replace(",", "")
        try:
            price = Decimal(raw_price) if raw_price and raw_price != "-" else Decimal("0")
        except ArithmeticError:
            price = Decimal("0")

        if price == 0:
            # 無成交價時 fallback 至 TWSE API
            logger.warning("twstock %s 無成交價，切換至 TWSE API", stock_id)
            return self._fetch_from_twse(symbol)

        change = None
        change_pct = None
        raw_open = (real_data.get("open", "") or "").strip().replace(",", "")
        if raw_open and raw_open != "-":
            open_price = Decimal(raw_open)
            if open_price > 0:
                change = price - open_price
                change_pct = (change / open_price) * 100

        return PriceData(
            symbol=symbol.upper(),
            price=price,
            currency="TWD",
            timestamp=datetime.now(),
            change=change,
            change_percent=change_pct,
            source="twstock",
        )

    def _fetch_from_twse(self, symbol: str) -> PriceData:
        """備用：透過證交所 API 取得報價"""
        stock_id = strip_suffix(symbol)
        # 上櫃股票使用 otc 頻道
        channel = "otc" if symbol.upper().endswith(".TWO") else "tse"

        try:
            resp = httpx.get(
                TWSE_QUOTE_URL,
                params={"ex_ch": f"{channel}_{stock_id}.tw"},
                timeout=10,
            )
            resp.raise_for_status()
            data = resp.json()
        except httpx.HTTPError as e:
            raise ProviderError(f"TWSE API 錯誤: {e}") from e

        if not data.get("msgArray"):
            raise PriceNotFoundError(f"找不到台股 {stock_id}")

        stock_data = data["msgArray"][0]
        yesterday_str = stock_data.get("y", "0")
        yesterday = (
            Decimal(yesterday_str)
            if yesterday_str and yesterday_str != "-"
            else Decimal("0")
        )

        # z 是當盤成交價，如果為 "-" 代表還沒開盤或沒有成交，就用昨收價
        z_price = stock_data.get("z", "")
        if not z_price or z_price == "-":
            price = yesterday
        else:
            price = Decimal(z_price)

        if price <= 0:
            raise PriceNotFoundError(f"台股 {stock_id} 無有效報價")

        change = None
        change_pct = None
        if yesterday > 0:
            change = price - yesterday
            change_pct = (change / yesterday) * 100

        return PriceData(
            symbol=symbol.upper(),
            price=price,
            currency="TWD",
            timestamp=datetime.now(),
            change=change,
            change_percent=change_pct,
            source="twse",
        )
