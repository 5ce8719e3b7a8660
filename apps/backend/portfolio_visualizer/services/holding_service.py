"""
持股服務層

持股批次的 CRUD。市場別一律由代碼推導，不接受外部指定。
"""

import logging
from typing import Literal

from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from portfolio_visualizer.config import get_settings
from portfolio_visualizer.exceptions import NotFoundError
from portfolio_visualizer.models.holding import Holding, detect_market
from portfolio_visualizer.schemas.holding import HoldingCreate, HoldingUpdate
from portfolio_visualizer.services.portfolio_service import hidden_portfolio_ids

logger = logging.getLogger(__name__)

HoldingOrder = Literal["created_desc", "purchase_asc"]


class HoldingService:
    """持股業務邏輯"""

    def __init__(self, db: AsyncSession):
        self.db = db
        self._suffix = get_settings().domestic_suffix

    async def list(
        self,
        portfolio_id: str | None = None,
        order: HoldingOrder = "created_desc",
        hide_private: bool = False,
    ) -> list[Holding]:
        """
        列出持股批次

        portfolio_id 為 None 時回傳所有組合的持股；
        hide_private 時排除未開放訪客檢視的組合。
        走勢計算使用 purchase_asc（依買入日期由舊到新）。
        """
        stmt = select(Holding)
        if portfolio_id is not None:
            stmt = stmt.where(Holding.portfolio_id == portfolio_id)
        elif hide_private:
            stmt = stmt.where(or_(
                Holding.portfolio_id.is_(None),
                Holding.portfolio_id.not_in(hidden_portfolio_ids()),
            ))

        if order == "purchase_asc":
            stmt = stmt.order_by(Holding.purchase_date.asc(), Holding.created_at.asc())
        else:
            stmt = stmt.order_by(Holding.created_at.desc())

        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def get(self, holding_id: str) -> Holding:
        holding = await self.db.get(Holding, holding_id)
        if holding is None:
            raise NotFoundError("持股", holding_id)
        return holding

    async def create(self, data: HoldingCreate) -> Holding:
        """新增一個買入批次"""
        holding = Holding(
            symbol=data.symbol,
            shares=data.shares,
            cost_price=data.cost_price,
            purchase_date=data.purchase_date,
            market=detect_market(data.symbol, self._suffix),
            portfolio_id=data.portfolio_id,
        )
        self.db.add(holding)
        await self.db.flush()
        await self.db.refresh(holding)

        logger.info("新增持股: %s x%s @ %s", holding.symbol, holding.shares, holding.cost_price)
        return holding

    async def update(self, holding_id: str, data: HoldingUpdate) -> Holding:
        """整筆覆寫代碼、股數、成本與日期，並重新推導市場別"""
        holding = await self.get(holding_id)

        holding.symbol = data.symbol
        holding.shares = data.shares
        holding.cost_price = data.cost_price
        holding.purchase_date = data.purchase_date
        holding.market = detect_market(data.symbol, self._suffix)
        if data.portfolio_id is not None:
            holding.portfolio_id = data.portfolio_id

        await self.db.flush()
        await self.db.refresh(holding)
        return holding

    async def delete(self, holding_id: str) -> Holding:
        """刪除持股批次，回傳被刪除的批次（供呼叫端清除報價快取）"""
        holding = await self.get(holding_id)
        await self.db.delete(holding)
        await self.db.flush()

        logger.info("刪除持股: %s (%s)", holding.symbol, holding_id)
        return holding
