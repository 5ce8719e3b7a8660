"""
交易 API 路由

賣出與交易紀錄查詢、刪除。
"""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from portfolio_visualizer.api.auth import require_admin
from portfolio_visualizer.api.dependencies import (
    get_gateway,
    PortfolioScope,
    normalize_portfolio_id,
    readable_scope,
)
from portfolio_visualizer.database import get_db
from portfolio_visualizer.price.manager import QuoteGateway
from portfolio_visualizer.schemas.common import ApiResponse, SuccessResult
from portfolio_visualizer.schemas.transaction import (
    SellRequest,
    SellResult,
    TransactionResponse,
)
from portfolio_visualizer.services.transaction_service import TransactionService

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/transactions", tags=["交易"])


@router.get("", response_model=ApiResponse[list[TransactionResponse]])
async def list_transactions(
    scope: PortfolioScope = Depends(readable_scope),
    db: AsyncSession = Depends(get_db),
):
    """取得交易紀錄（由新到舊）"""
    transactions = await TransactionService(db).list(
        scope.portfolio_id, hide_private=scope.hide_private
    )
    return ApiResponse(
        data=[TransactionResponse.model_validate(tx) for tx in transactions]
    )


@router.post("", response_model=ApiResponse[SellResult], dependencies=[Depends(require_admin)])
async def sell(
    data: SellRequest,
    db: AsyncSession = Depends(get_db),
    gateway: QuoteGateway = Depends(get_gateway),
):
    """賣出持股：寫交易紀錄、扣減持股、現金入帳"""
    outcome = await TransactionService(db, gateway).sell(
        holding_id=data.holding_id,
        shares=data.shares,
        price=data.price,
        transaction_date=data.transaction_date,
        portfolio_id=normalize_portfolio_id(data.portfolio_id),
        notes=data.notes,
    )
    # 三筆寫入在回應送出前一併 commit
    await db.commit()
    return ApiResponse(data=SellResult(
        transaction_id=outcome.transaction.id,
        realized_pnl_twd=outcome.realized_pnl_twd,
        remaining_shares=outcome.remaining_shares,
        cash_added_twd=outcome.cash_added_twd,
    ))


@router.delete("/{transaction_id}", response_model=ApiResponse[SuccessResult], dependencies=[Depends(require_admin)])
async def delete_transaction(
    transaction_id: str,
    db: AsyncSession = Depends(get_db),
):
    """刪除交易紀錄（不回補持股與現金）"""
    await TransactionService(db).delete(transaction_id)
    await db.commit()
    return ApiResponse(data=SuccessResult())
