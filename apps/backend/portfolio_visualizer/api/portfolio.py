"""
投資組合 API 路由

投資組合 CRUD 與訪客可見性設定。
"""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from portfolio_visualizer.api.auth import get_current_role, require_admin
from portfolio_visualizer.database import get_db
from portfolio_visualizer.schemas.auth import UserRole
from portfolio_visualizer.schemas.common import ApiResponse, SuccessResult
from portfolio_visualizer.schemas.portfolio import (
    PortfolioCreate,
    PortfolioResponse,
    PortfolioUpdate,
)
from portfolio_visualizer.services.portfolio_service import PortfolioService

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/portfolios", tags=["投資組合"])


@router.get("", response_model=ApiResponse[list[PortfolioResponse]])
async def list_portfolios(
    role: UserRole = Depends(get_current_role),
    db: AsyncSession = Depends(get_db),
):
    """取得投資組合（訪客僅見開放檢視者）"""
    return ApiResponse(data=await PortfolioService(db).list(role))


@router.post("", response_model=ApiResponse[PortfolioResponse], dependencies=[Depends(require_admin)])
async def create_portfolio(
    data: PortfolioCreate,
    db: AsyncSession = Depends(get_db),
):
    """建立投資組合"""
    portfolio = await PortfolioService(db).create(data.name)
    await db.commit()
    return ApiResponse(data=PortfolioResponse.model_validate(portfolio))


@router.get("/{portfolio_id}", response_model=ApiResponse[PortfolioResponse])
async def get_portfolio(
    portfolio_id: str,
    role: UserRole = Depends(get_current_role),
    db: AsyncSession = Depends(get_db),
):
    """取得單一投資組合"""
    service = PortfolioService(db)
    portfolio = await service.get(portfolio_id)
    await service.ensure_readable(portfolio.id, role)
    return ApiResponse(data=PortfolioResponse.model_validate(portfolio))


@router.put("/{portfolio_id}", response_model=ApiResponse[PortfolioResponse], dependencies=[Depends(require_admin)])
async def update_portfolio(
    portfolio_id: str,
    data: PortfolioUpdate,
    db: AsyncSession = Depends(get_db),
):
    """重新命名或切換訪客可見性"""
    portfolio = await PortfolioService(db).update(portfolio_id, data)
    await db.commit()
    return ApiResponse(data=PortfolioResponse.model_validate(portfolio))


@router.delete("/{portfolio_id}", response_model=ApiResponse[SuccessResult], dependencies=[Depends(require_admin)])
async def delete_portfolio(
    portfolio_id: str,
    db: AsyncSession = Depends(get_db),
):
    """刪除投資組合（連同持股與現金）"""
    await PortfolioService(db).delete(portfolio_id)
    await db.commit()
    return ApiResponse(data=SuccessResult())
