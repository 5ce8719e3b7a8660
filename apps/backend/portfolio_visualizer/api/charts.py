"""
走勢圖 API 路由
"""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from portfolio_visualizer.api.dependencies import (
    PortfolioScope,
    get_gateway,
    readable_scope,
)
from portfolio_visualizer.database import get_db
from portfolio_visualizer.price.manager import QuoteGateway
from portfolio_visualizer.schemas.common import ApiResponse
from portfolio_visualizer.schemas.market import DailyPnLResponse, TrendPointResponse
from portfolio_visualizer.services.valuation_service import ValuationService

router = APIRouter(prefix="/charts", tags=["走勢圖"])


@router.get("/asset-trend", response_model=ApiResponse[list[TrendPointResponse]])
async def get_asset_trend(
    scope: PortfolioScope = Depends(readable_scope),
    db: AsyncSession = Depends(get_db),
    gateway: QuoteGateway = Depends(get_gateway),
):
    """資產市值與成本走勢（從最早買入日到今天）"""
    points = await ValuationService(db, gateway).get_asset_trend(
        scope.portfolio_id, hide_private=scope.hide_private
    )
    return ApiResponse(data=[TrendPointResponse.model_validate(p) for p in points])


@router.get("/daily-pnl", response_model=ApiResponse[list[DailyPnLResponse]])
async def get_daily_pnl(
    days: int | None = Query(None, ge=1, le=365),
    scope: PortfolioScope = Depends(readable_scope),
    db: AsyncSession = Depends(get_db),
    gateway: QuoteGateway = Depends(get_gateway),
):
    """最近 N 個交易日的每日損益"""
    points = await ValuationService(db, gateway).get_daily_pnl(
        days, scope.portfolio_id, hide_private=scope.hide_private
    )
    return ApiResponse(data=[DailyPnLResponse.model_validate(p) for p in points])
