"""
交易相關 Schema

定義賣出請求、交易紀錄查詢的請求與回應模型。
"""

from datetime import date, datetime
from decimal import Decimal

from pydantic import BaseModel, Field

from portfolio_visualizer.models.holding import Market
from portfolio_visualizer.models.transaction import TransactionType


class SellRequest(BaseModel):
    """賣出請求"""
    holding_id: str = Field(min_length=1)
    shares: Decimal
    price: Decimal
    transaction_date: date
    portfolio_id: str | None = None
    notes: str | None = Field(default=None, max_length=500)


class SellResult(BaseModel):
    """賣出結果"""
    success: bool = True
    transaction_id: str | None = None
    realized_pnl_twd: Decimal
    remaining_shares: Decimal
    cash_added_twd: Decimal


class TransactionResponse(BaseModel):
    """交易紀錄回應"""
    id: str
    symbol: str
    type: TransactionType
    shares: Decimal
    price: Decimal
    transaction_date: date
    market: Market
    realized_pnl_twd: Decimal
    holding_id: str | None = None
    portfolio_id: str | None = None
    notes: str | None = None
    created_at: datetime | None = None

    model_config = {"from_attributes": True}
