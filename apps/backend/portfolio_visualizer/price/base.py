"""
報價提供者抽象基礎類別

定義所有報價來源必須實作的介面。
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal


@dataclass
class PriceData:
    """報價資料"""
    symbol: str
    price: Decimal
    currency: str
    timestamp: datetime = field(default_factory=datetime.now)
    change: Decimal | None = None
    change_percent: Decimal | None = None
    source: str = ""


@dataclass
class HistoricalPrice:
    """歷史收盤價"""
    symbol: str
    date: date
    close: Decimal


class PriceProvider(ABC):
    """
    報價提供者抽象類別

    所有報價來源（Yahoo Finance、twstock 等）
    必須繼承此類別並實作以下方法。
    """

    @abstractmethod
    async def get_current_price(self, symbol: str) -> PriceData:
        """
        取得指定標的的即時報價。

        Args:
            symbol: 標的代碼（如 VOO, 2330.TW）

        Returns:
            PriceData 物件

        Raises:
            PriceNotFoundError: 找不到報價
            ProviderError: API 呼叫失敗
        """
        ...

    @abstractmethod
    async def get_historical_prices(
        self,
        symbol: str,
        start_date: date | None = None,
        end_date: date | None = None,
        period: str = "1mo",
    ) -> list[HistoricalPrice]:
        """
        取得每日收盤價。

        有 start_date 時依日期區間查詢（end_date 含當日），否則依 period。

        Args:
            symbol: 標的代碼
            start_date: 起始日
            end_date: 結束日（含）
            period: 時間範圍 (1mo, 3mo, 6mo, 1y, 5y)

        Returns:
            依日期排序的 HistoricalPrice 列表
        """
        ...

    async def get_expense_ratio(self, symbol: str) -> Decimal | None:
        """取得 ETF 年度費用率（小數，如 0.0003），非 ETF 回傳 None"""
        return None

    async def close(self) -> None:
        """釋放資源"""
        return None


class PriceNotFoundError(Exception):
    """找不到報價"""
    pass


class ProviderError(Exception):
    """報價提供者錯誤"""
    pass
