"""
持股 API 路由

持股批次 CRUD 與儀表板估值摘要。
"""

import logging

from fastapi import APIRouter, Depends, Query
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
from portfolio_visualizer.schemas.holding import (
    HoldingCreate,
    HoldingResponse,
    HoldingsSummary,
    HoldingUpdate,
)
from portfolio_visualizer.services.holding_service import HoldingService
from portfolio_visualizer.services.valuation_service import ValuationService

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/holdings", tags=["持股"])


@router.get("", response_model=ApiResponse[list[HoldingResponse]])
async def list_holdings(
    scope: PortfolioScope = Depends(readable_scope),
    db: AsyncSession = Depends(get_db),
):
    """取得持股批次（可依組合篩選）"""
    holdings = await HoldingService(db).list(
        scope.portfolio_id, hide_private=scope.hide_private
    )
    return ApiResponse(data=[HoldingResponse.model_validate(h) for h in holdings])


@router.get("/summary", response_model=ApiResponse[HoldingsSummary])
async def get_summary(
    scope: PortfolioScope = Depends(readable_scope),
    refresh: bool = Query(False, description="強制重新取得報價"),
    db: AsyncSession = Depends(get_db),
    gateway: QuoteGateway = Depends(get_gateway),
):
    """儀表板摘要：各批次估值、聚合部位、總額與資產配置"""
    summary = await ValuationService(db, gateway).get_summary(
        scope.portfolio_id, force_refresh=refresh, hide_private=scope.hide_private
    )
    return ApiResponse(data=summary)


@router.post("", response_model=ApiResponse[HoldingResponse], dependencies=[Depends(require_admin)])
async def create_holding(
    data: HoldingCreate,
    db: AsyncSession = Depends(get_db),
    gateway: QuoteGateway = Depends(get_gateway),
):
    """新增持股（買入一個批次）"""
    data.portfolio_id = normalize_portfolio_id(data.portfolio_id)
    holding = await HoldingService(db).create(data)
    await db.commit()
    await gateway.cache.invalidate(holding.symbol)
    return ApiResponse(data=HoldingResponse.model_validate(holding))


@router.put("/{holding_id}", response_model=ApiResponse[HoldingResponse], dependencies=[Depends(require_admin)])
async def update_holding(
    holding_id: str,
    data: HoldingUpdate,
    db: AsyncSession = Depends(get_db),
    gateway: QuoteGateway = Depends(get_gateway),
):
    """更新持股（整筆覆寫）"""
    service = HoldingService(db)
    old_symbol = (await service.get(holding_id)).symbol

    data.portfolio_id = normalize_portfolio_id(data.portfolio_id)
    holding = await service.update(holding_id, data)
    await db.commit()

    await gateway.cache.invalidate(old_symbol)
    if holding.symbol != old_symbol:
        await gateway.cache.invalidate(holding.symbol)
    return ApiResponse(data=HoldingResponse.model_validate(holding))


@router.delete("/{holding_id}", response_model=ApiResponse[SuccessResult], dependencies=[Depends(require_admin)])
async def delete_holding(
    holding_id: str,
    db: AsyncSession = Depends(get_db),
    gateway: QuoteGateway = Depends(get_gateway),
):
    """刪除持股批次"""
    holding = await HoldingService(db).delete(holding_id)
    await db.commit()
    await gateway.cache.invalidate(holding.symbol)
    return ApiResponse(data=SuccessResult())
