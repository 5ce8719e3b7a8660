"""
現金 API 路由
"""

from decimal import Decimal

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from portfolio_visualizer.api.auth import require_admin
from portfolio_visualizer.api.dependencies import (
    PortfolioScope,
    normalize_portfolio_id,
    readable_scope,
)
from portfolio_visualizer.database import get_db
from portfolio_visualizer.schemas.common import ApiResponse
from portfolio_visualizer.schemas.portfolio import CashResponse, CashUpdate
from portfolio_visualizer.services.cash_service import CashService

router = APIRouter(prefix="/cash", tags=["現金"])


@router.get("", response_model=ApiResponse[CashResponse])
async def get_cash(
    scope: PortfolioScope = Depends(readable_scope),
    db: AsyncSession = Depends(get_db),
):
    """取得現金餘額，尚未設定時為 0"""
    balance = await CashService(db).get_balance(scope.portfolio_id)
    if balance is None:
        return ApiResponse(data=CashResponse(portfolio_id=scope.portfolio_id))
    return ApiResponse(data=CashResponse.model_validate(balance))


@router.put("", response_model=ApiResponse[CashResponse], dependencies=[Depends(require_admin)])
async def update_cash(
    data: CashUpdate,
    db: AsyncSession = Depends(get_db),
):
    """設定現金餘額（不存在則建立）"""
    portfolio_id = normalize_portfolio_id(data.portfolio_id)
    balance = await CashService(db).set(portfolio_id, Decimal(str(data.amount_twd)))
    await db.commit()
    return ApiResponse(data=CashResponse.model_validate(balance))
