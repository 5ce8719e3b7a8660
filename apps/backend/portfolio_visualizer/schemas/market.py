"""
市場資料相關 Schema

報價、歷史收盤價、匯率、ETF 費用率與走勢圖資料點。
"""

from datetime import date, datetime
from decimal import Decimal

from pydantic import BaseModel


class QuoteResponse(BaseModel):
    """即時報價"""
    symbol: str
    price: Decimal
    change: Decimal | None = None
    change_percent: Decimal | None = None
    currency: str
    timestamp: datetime | None = None

    model_config = {"from_attributes": True}


class HistoryPoint(BaseModel):
    """單日收盤價"""
    date: date
    close: Decimal

    model_config = {"from_attributes": True}


class ExchangeRateResponse(BaseModel):
    """USD/TWD 匯率"""
    rate: Decimal
    from_currency: str = "USD"
    to_currency: str = "TWD"
    is_default: bool = False
    updated_at: datetime


class ExpenseRatioResponse(BaseModel):
    """ETF 費用率"""
    symbol: str
    expense_ratio: Decimal | None = None
    source: str | None = None
    message: str | None = None
    updated_at: datetime | None = None


class TrendPointResponse(BaseModel):
    """資產走勢資料點（市值線 + 成本線）"""
    date: date
    value: int
    cost: int

    model_config = {"from_attributes": True}


class DailyPnLResponse(BaseModel):
    """每日損益資料點"""
    date: date
    pnl: int

    model_config = {"from_attributes": True}
