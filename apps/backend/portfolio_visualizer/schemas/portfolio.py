"""
投資組合與現金相關 Schema

定義投資組合 CRUD、現金餘額的請求與回應模型。
"""

import math
from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, Field, StrictFloat, StrictInt, field_validator


class PortfolioCreate(BaseModel):
    """建立投資組合"""
    name: str = Field(min_length=1, max_length=100)

    @field_validator("name")
    @classmethod
    def _strip_name(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("請提供組合名稱")
        return value


class PortfolioUpdate(BaseModel):
    """更新投資組合（重新命名 / 切換訪客可見性）"""
    name: str | None = Field(default=None, max_length=100)
    visible_to_guest: bool | None = None


class PortfolioResponse(BaseModel):
    """投資組合回應"""
    id: str
    name: str
    visible_to_guest: bool = False
    is_default: bool = False
    created_at: datetime | None = None

    model_config = {"from_attributes": True}


class CashUpdate(BaseModel):
    """更新現金餘額；金額必須是數字（不接受字串）"""
    amount_twd: StrictInt | StrictFloat
    portfolio_id: str | None = None

    @field_validator("amount_twd")
    @classmethod
    def _finite(cls, value: int | float) -> int | float:
        if isinstance(value, float) and not math.isfinite(value):
            raise ValueError("金額格式錯誤")
        return value


class CashResponse(BaseModel):
    """現金餘額回應"""
    portfolio_id: str | None = None
    amount_twd: Decimal = Decimal("0")
    updated_at: datetime | None = None

    model_config = {"from_attributes": True}
