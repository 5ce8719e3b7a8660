"""
持股相關 Schema

定義持股批次 CRUD 與估值摘要（含聚合部位、資產配置）的請求與回應模型。
"""

from datetime import date, datetime
from decimal import Decimal

from pydantic import BaseModel, Field, field_validator

from portfolio_visualizer.models.holding import Market


class HoldingCreate(BaseModel):
    """新增持股（買入一個批次）"""
    symbol: str = Field(min_length=1, max_length=20)
    shares: Decimal = Field(gt=0)
    cost_price: Decimal = Field(gt=0)
    purchase_date: date
    portfolio_id: str | None = None

    @field_validator("symbol")
    @classmethod
    def _normalize_symbol(cls, value: str) -> str:
        value = value.strip().upper()
        if not value:
            raise ValueError("請填寫標的代碼")
        return value


class HoldingUpdate(HoldingCreate):
    """更新持股（整筆覆寫代碼、股數、成本與日期）"""
    pass


class HoldingResponse(BaseModel):
    """持股批次回應"""
    id: str
    symbol: str
    shares: Decimal
    cost_price: Decimal
    purchase_date: date
    market: Market
    portfolio_id: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    model_config = {"from_attributes": True}


class EnrichedLotResponse(BaseModel):
    """持股批次（含即時報價與台幣損益）"""
    id: str
    symbol: str
    shares: Decimal
    cost_price: Decimal
    purchase_date: date
    market: Market
    portfolio_id: str | None = None
    current_price: Decimal
    total_cost: Decimal
    total_cost_twd: Decimal
    current_value_twd: Decimal
    gain_twd: Decimal
    gain_percent: Decimal
    expense_ratio: Decimal | None = None

    model_config = {"from_attributes": True}


class AggregatedPositionResponse(BaseModel):
    """同一標的聚合後的部位"""
    symbol: str
    market: Market
    shares: Decimal
    cost_price: Decimal
    purchase_date: date
    current_price: Decimal
    total_cost: Decimal
    total_cost_twd: Decimal
    current_value_twd: Decimal
    gain_twd: Decimal
    gain_percent: Decimal
    expense_ratio: Decimal | None = None
    lots: list[EnrichedLotResponse]

    model_config = {"from_attributes": True}


class ValuationTotalsResponse(BaseModel):
    """投資組合總額（台幣）"""
    total_cost_twd: Decimal
    holdings_value_twd: Decimal
    cash_twd: Decimal
    total_value_twd: Decimal
    total_gain_twd: Decimal
    total_gain_percent: Decimal
    weighted_expense_ratio: Decimal | None = None

    model_config = {"from_attributes": True}


class AllocationItem(BaseModel):
    """資產配置項目（圓餅圖用）"""
    name: str
    value_twd: Decimal
    percentage: Decimal

    model_config = {"from_attributes": True}


class HoldingsSummary(BaseModel):
    """儀表板估值摘要"""
    portfolio_id: str | None = None
    exchange_rate: Decimal
    lots: list[EnrichedLotResponse]
    positions: list[AggregatedPositionResponse]
    totals: ValuationTotalsResponse
    allocations: list[AllocationItem]
    last_updated: datetime
