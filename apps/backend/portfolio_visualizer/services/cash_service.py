"""
現金服務層

每個投資組合（或全域）最多一筆現金餘額，寫入採 upsert。
"""

import logging
from decimal import Decimal

from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from portfolio_visualizer.models.cash_balance import CashBalance
from portfolio_visualizer.services.portfolio_service import hidden_portfolio_ids

logger = logging.getLogger(__name__)


class CashService:
    """現金業務邏輯"""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def _find(self, portfolio_id: str | None) -> CashBalance | None:
        stmt = select(CashBalance)
        if portfolio_id is None:
            stmt = stmt.where(CashBalance.portfolio_id.is_(None))
        else:
            stmt = stmt.where(CashBalance.portfolio_id == portfolio_id)
        result = await self.db.execute(stmt.limit(1))
        return result.scalar_one_or_none()

    async def get_balance(self, portfolio_id: str | None = None) -> CashBalance | None:
        return await self._find(portfolio_id)

    async def get(self, portfolio_id: str | None = None) -> Decimal:
        """現金金額（台幣），尚未設定時為 0"""
        balance = await self._find(portfolio_id)
        if balance is None:
            return Decimal("0")
        return Decimal(balance.amount_twd)

    async def total(self, hide_private: bool = False) -> Decimal:
        """全域與各組合現金的合計（全域範圍的摘要使用）"""
        stmt = select(CashBalance.amount_twd)
        if hide_private:
            stmt = stmt.where(or_(
                CashBalance.portfolio_id.is_(None),
                CashBalance.portfolio_id.not_in(hidden_portfolio_ids()),
            ))
        result = await self.db.execute(stmt)
        return sum((Decimal(amount) for amount in result.scalars()), Decimal("0"))

    async def set(self, portfolio_id: str | None, amount: Decimal) -> CashBalance:
        """設定現金金額：不存在則建立，存在則覆寫"""
        balance = await self._find(portfolio_id)
        if balance is None:
            balance = CashBalance(portfolio_id=portfolio_id, amount_twd=amount)
            self.db.add(balance)
        else:
            balance.amount_twd = amount

        await self.db.flush()
        await self.db.refresh(balance)
        return balance

    async def credit(self, portfolio_id: str | None, amount: Decimal) -> CashBalance:
        """在現有金額上加上 amount（賣出入帳）"""
        balance = await self._find(portfolio_id)
        if balance is None:
            balance = CashBalance(portfolio_id=portfolio_id, amount_twd=amount)
            self.db.add(balance)
        else:
            balance.amount_twd = Decimal(balance.amount_twd) + amount

        await self.db.flush()
        logger.info("現金入帳 %s: +%s", portfolio_id or "global", amount)
        return balance
