"""
交易服務層

處理賣出（寫交易紀錄、扣減持股、現金入帳）與交易紀錄查詢。
"""

import logging
from dataclasses import dataclass
from datetime import date
from decimal import Decimal, ROUND_HALF_UP

from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from portfolio_visualizer.config import get_settings
from portfolio_visualizer.exceptions import NotFoundError, ValidationError
from portfolio_visualizer.models.holding import Holding, Market
from portfolio_visualizer.models.transaction import Transaction, TransactionType
from portfolio_visualizer.price.manager import QuoteGateway
from portfolio_visualizer.services.cash_service import CashService
from portfolio_visualizer.services.portfolio_service import hidden_portfolio_ids

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")
UNIT = Decimal("1")


@dataclass
class SellOutcome:
    transaction: Transaction
    realized_pnl_twd: Decimal
    remaining_shares: Decimal
    cash_added_twd: Decimal


class TransactionService:
    """交易業務邏輯"""

    def __init__(self, db: AsyncSession, gateway: QuoteGateway | None = None):
        self.db = db
        self.gateway = gateway
        self._settings = get_settings()

    async def _fx_rate_for(self, holding: Holding) -> Decimal:
        if holding.market != Market.US:
            return Decimal("1")
        if self.gateway is None:
            return Decimal(str(self._settings.default_exchange_rate))
        return await self.gateway.get_exchange_rate_or_default()

    async def sell(
        self,
        holding_id: str,
        shares: Decimal,
        price: Decimal,
        transaction_date: date,
        portfolio_id: str | None = None,
        notes: str | None = None,
        fx_rate: Decimal | None = None,
    ) -> SellOutcome:
        """
        賣出持股批次的部分或全部

        流程：
        1. 鎖定並讀取持股，驗證賣出股數不超過持有量
        2. 計算已實現損益（四捨五入到分）與賣出金額（四捨五入到元），美股乘匯率
        3. 寫入交易紀錄
        4. 扣減股數；剩餘股數小於 sell_epsilon 時直接刪除批次
        5. 賣出金額加回現金（指定組合 → 持股所屬組合 → 全域）

        三筆寫入都在同一個 session 中，由 get_db 統一 commit / rollback。
        fx_rate 未指定時，美股使用即時匯率（取不到時為預設值）。
        """
        if shares is None or shares <= 0:
            raise ValidationError("賣出股數必須大於 0", field="shares")
        if price is None or price <= 0:
            raise ValidationError("賣出價格必須大於 0", field="price")

        result = await self.db.execute(
            select(Holding).where(Holding.id == holding_id).with_for_update()
        )
        holding = result.scalar_one_or_none()
        if holding is None:
            raise NotFoundError("持股", holding_id)

        current_shares = Decimal(holding.shares)
        if shares > current_shares:
            raise ValidationError(
                f"賣出股數 ({shares}) 超過持有量 ({current_shares})", field="shares"
            )

        if holding.market == Market.US and fx_rate is not None:
            rate = fx_rate
        else:
            rate = await self._fx_rate_for(holding)

        cost_price = Decimal(holding.cost_price)
        realized_pnl = ((price - cost_price) * shares * rate).quantize(
            CENT, rounding=ROUND_HALF_UP
        )
        proceeds = (price * shares * rate).quantize(UNIT, rounding=ROUND_HALF_UP)

        scope = portfolio_id or holding.portfolio_id or None

        tx = Transaction(
            symbol=holding.symbol,
            type=TransactionType.SELL,
            shares=shares,
            price=price,
            transaction_date=transaction_date,
            market=holding.market,
            realized_pnl_twd=realized_pnl,
            holding_id=holding.id,
            portfolio_id=scope,
            notes=notes or None,
        )
        self.db.add(tx)

        remaining = current_shares - shares
        if remaining <= Decimal(str(self._settings.sell_epsilon)):
            await self.db.delete(holding)
            remaining = Decimal("0")
        else:
            holding.shares = remaining

        await CashService(self.db).credit(scope, proceeds)
        await self.db.flush()

        if self.gateway is not None:
            await self.gateway.cache.invalidate(holding.symbol)

        logger.info(
            "賣出 %s x%s @ %s，已實現損益 %s，入帳 %s",
            holding.symbol, shares, price, realized_pnl, proceeds,
        )
        return SellOutcome(
            transaction=tx,
            realized_pnl_twd=realized_pnl,
            remaining_shares=remaining,
            cash_added_twd=proceeds,
        )

    async def delete(self, transaction_id: str) -> None:
        """刪除交易紀錄；不回補持股與現金"""
        tx = await self.db.get(Transaction, transaction_id)
        if tx is None:
            raise NotFoundError("交易紀錄", transaction_id)

        await self.db.delete(tx)
        await self.db.flush()
        logger.info("刪除交易紀錄: %s (%s)", tx.symbol, transaction_id)

    async def list(
        self, portfolio_id: str | None = None, hide_private: bool = False
    ) -> list[Transaction]:
        """交易紀錄，依交易日期與建立時間由新到舊"""
        stmt = select(Transaction).order_by(
            Transaction.transaction_date.desc(), Transaction.created_at.desc()
        )
        if portfolio_id is not None:
            stmt = stmt.where(Transaction.portfolio_id == portfolio_id)
        elif hide_private:
            stmt = stmt.where(or_(
                Transaction.portfolio_id.is_(None),
                Transaction.portfolio_id.not_in(hidden_portfolio_ids()),
            ))

        result = await self.db.execute(stmt)
        return list(result.scalars().all())
