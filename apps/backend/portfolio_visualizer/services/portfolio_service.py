"""
投資組合服務層

投資組合的 CRUD、訪客可見性與刪除時的連帶清除。
"""

import logging

from sqlalchemy import Select, delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from portfolio_visualizer.exceptions import AuthorizationError, NotFoundError, ValidationError
from portfolio_visualizer.models.cash_balance import CashBalance
from portfolio_visualizer.models.holding import Holding
from portfolio_visualizer.models.portfolio import (
    DEFAULT_PORTFOLIO_ID,
    DEFAULT_PORTFOLIO_NAME,
    Portfolio,
)
from portfolio_visualizer.schemas.auth import UserRole
from portfolio_visualizer.schemas.portfolio import PortfolioResponse, PortfolioUpdate

logger = logging.getLogger(__name__)


def default_portfolio() -> PortfolioResponse:
    """沒有可見的組合時回傳的預設組合（不寫入資料庫）"""
    return PortfolioResponse(
        id=DEFAULT_PORTFOLIO_ID,
        name=DEFAULT_PORTFOLIO_NAME,
        visible_to_guest=True,
        is_default=True,
    )


def hidden_portfolio_ids() -> Select:
    """未開放訪客檢視的組合 id（子查詢）"""
    return select(Portfolio.id).where(Portfolio.visible_to_guest.is_(False))


class PortfolioService:
    """投資組合業務邏輯"""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get(self, portfolio_id: str) -> Portfolio:
        portfolio = await self.db.get(Portfolio, portfolio_id)
        if portfolio is None:
            raise NotFoundError("投資組合", portfolio_id)
        return portfolio

    async def ensure_readable(self, portfolio_id: str | None, role: UserRole) -> None:
        """
        檢查角色能否讀取指定組合

        管理員一律可讀；訪客只能讀取 visible_to_guest 的組合。
        portfolio_id 為 None（全域範圍）時不在此擋下，改由各查詢排除未開放的組合。
        """
        if portfolio_id is None or role == UserRole.ADMIN:
            return
        portfolio = await self.db.get(Portfolio, portfolio_id)
        if portfolio is not None and not portfolio.visible_to_guest:
            raise AuthorizationError("此投資組合未開放訪客檢視")

    async def create(self, name: str) -> Portfolio:
        portfolio = Portfolio(name=name)
        self.db.add(portfolio)
        await self.db.flush()
        await self.db.refresh(portfolio)

        logger.info("建立投資組合: %s (%s)", portfolio.name, portfolio.id)
        return portfolio

    async def update(self, portfolio_id: str, data: PortfolioUpdate) -> Portfolio:
        """重新命名或切換訪客可見性，至少需提供一個欄位"""
        changes = data.model_dump(exclude_none=True)
        if not changes:
            raise ValidationError("沒有要更新的欄位")

        name = changes.get("name")
        if name is not None:
            name = name.strip()
            if not name:
                raise ValidationError("請提供組合名稱", field="name")
            changes["name"] = name

        portfolio = await self.get(portfolio_id)
        for key, value in changes.items():
            setattr(portfolio, key, value)

        await self.db.flush()
        await self.db.refresh(portfolio)
        return portfolio

    async def delete(self, portfolio_id: str) -> None:
        """刪除組合，連同其持股與現金一併刪除"""
        portfolio = await self.get(portfolio_id)

        await self.db.execute(delete(Holding).where(Holding.portfolio_id == portfolio_id))
        await self.db.execute(
            delete(CashBalance).where(CashBalance.portfolio_id == portfolio_id)
        )
        await self.db.delete(portfolio)
        await self.db.flush()

        logger.info("刪除投資組合: %s (%s)", portfolio.name, portfolio_id)

    async def list(self, role: UserRole = UserRole.ADMIN) -> list[PortfolioResponse]:
        """
        列出投資組合（依建立時間）

        訪客只看得到 visible_to_guest 的組合；
        篩選後沒有任何組合時回傳一個預設組合。
        """
        stmt = select(Portfolio).order_by(Portfolio.created_at.asc())
        if role != UserRole.ADMIN:
            stmt = stmt.where(Portfolio.visible_to_guest.is_(True))

        result = await self.db.execute(stmt)
        portfolios = result.scalars().all()

        if not portfolios:
            return [default_portfolio()]

        return [PortfolioResponse.model_validate(p) for p in portfolios]
