"""
API 共用依賴

- 投資組合範圍：前端的預設組合 id ("default") 與空字串一律視為全域範圍
- 訪客只能讀取開放檢視的組合；在全域範圍時，未開放組合的資料一律排除
- 報價閘道（測試時以 dependency_overrides 替換）
"""

from dataclasses import dataclass

from fastapi import Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from portfolio_visualizer.api.auth import get_current_role
from portfolio_visualizer.database import get_db
from portfolio_visualizer.models.portfolio import DEFAULT_PORTFOLIO_ID
from portfolio_visualizer.price.manager import QuoteGateway, get_quote_gateway
from portfolio_visualizer.schemas.auth import UserRole
from portfolio_visualizer.services.portfolio_service import PortfolioService


@dataclass
class PortfolioScope:
    portfolio_id: str | None
    hide_private: bool = False   # 排除 visible_to_guest 為 False 的組合


def normalize_portfolio_id(portfolio_id: str | None) -> str | None:
    if not portfolio_id or portfolio_id == DEFAULT_PORTFOLIO_ID:
        return None
    return portfolio_id


async def readable_scope(
    portfolio_id: str | None = Query(default=None),
    role: UserRole = Depends(get_current_role),
    db: AsyncSession = Depends(get_db),
) -> PortfolioScope:
    """查詢參數中的組合 id，檢查目前角色是否可讀"""
    portfolio_id = normalize_portfolio_id(portfolio_id)
    await PortfolioService(db).ensure_readable(portfolio_id, role)
    return PortfolioScope(portfolio_id, hide_private=role != UserRole.ADMIN)


def get_gateway() -> QuoteGateway:
    return get_quote_gateway()
