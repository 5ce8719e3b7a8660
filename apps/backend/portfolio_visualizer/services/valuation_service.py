"""
估值服務層

串接持股、現金與報價閘道，交給純函式計算：
- 儀表板摘要（批次估值 + 聚合部位 + 資產配置）
- 資產走勢
- 每日損益
"""

import logging
from datetime import date, datetime, timedelta, timezone

from sqlalchemy.ext.asyncio import AsyncSession

from portfolio_visualizer.config import get_settings
from portfolio_visualizer.price.manager import QuoteGateway
from portfolio_visualizer.schemas.holding import HoldingsSummary
from portfolio_visualizer.services.cash_service import CashService
from portfolio_visualizer.services.holding_service import HoldingService
from portfolio_visualizer.services.trend import (
    DailyPnLPoint,
    TrendPoint,
    asset_trend,
    daily_pnl,
    lookback_days,
)
from portfolio_visualizer.services.valuation import aggregate, allocation, valuate

logger = logging.getLogger(__name__)


class ValuationService:
    """估值業務邏輯"""

    def __init__(self, db: AsyncSession, gateway: QuoteGateway):
        self.db = db
        self.gateway = gateway
        self.holdings = HoldingService(db)
        self.cash = CashService(db)
        self._settings = get_settings()

    async def get_summary(
        self,
        portfolio_id: str | None = None,
        force_refresh: bool = False,
        hide_private: bool = False,
    ) -> HoldingsSummary:
        """
        計算儀表板摘要

        全域範圍涵蓋所有組合的持股與現金。
        報價、匯率、費用率皆為 best-effort，取不到時分別以 0、預設匯率、None 計算。
        """
        lots = await self.holdings.list(portfolio_id, hide_private=hide_private)
        if portfolio_id is None:
            cash = await self.cash.total(hide_private=hide_private)
        else:
            cash = await self.cash.get(portfolio_id)
        symbols = [lot.symbol for lot in lots]

        quotes = await self.gateway.get_quotes(symbols, force_refresh=force_refresh)
        fx_rate = await self.gateway.get_exchange_rate_or_default()
        expense_ratios = await self.gateway.get_expense_ratios(symbols)

        valuation = valuate(lots, quotes, fx_rate, cash=cash, expense_ratios=expense_ratios)
        positions = aggregate(valuation.lots)
        positions.sort(key=lambda p: p.current_value_twd, reverse=True)

        logger.info(
            "估值完成: %d 筆批次 / %d 個標的，總值 %s",
            len(valuation.lots), len(positions), valuation.totals.total_value_twd,
        )
        return HoldingsSummary.model_validate({
            "portfolio_id": portfolio_id,
            "exchange_rate": fx_rate,
            "lots": valuation.lots,
            "positions": positions,
            "totals": valuation.totals,
            "allocations": allocation(positions, cash),
            "last_updated": datetime.now(timezone.utc),
        }, from_attributes=True)

    async def get_asset_trend(
        self,
        portfolio_id: str | None = None,
        today: date | None = None,
        hide_private: bool = False,
    ) -> list[TrendPoint]:
        """從最早買入日起重建每日市值與成本"""
        lots = await self.holdings.list(
            portfolio_id, order="purchase_asc", hide_private=hide_private
        )
        if not lots:
            return []

        today = today or date.today()
        earliest = min(lot.purchase_date for lot in lots)
        history = await self.gateway.get_history_map(
            [lot.symbol for lot in lots], start_date=earliest, end_date=today
        )
        fx_rate = await self.gateway.get_exchange_rate_or_default()
        return asset_trend(lots, history, fx_rate, today=today)

    async def get_daily_pnl(
        self,
        days: int | None = None,
        portfolio_id: str | None = None,
        today: date | None = None,
        hide_private: bool = False,
    ) -> list[DailyPnLPoint]:
        """最近 days 個交易日的每日損益"""
        days = days or self._settings.daily_pnl_default_days
        lots = await self.holdings.list(
            portfolio_id, order="purchase_asc", hide_private=hide_private
        )
        if not lots:
            return []

        multiplier = self._settings.daily_pnl_lookback_multiplier
        today = today or date.today()
        start = today - timedelta(days=lookback_days(days, multiplier))
        history = await self.gateway.get_history_map(
            [lot.symbol for lot in lots], start_date=start, end_date=today
        )
        fx_rate = await self.gateway.get_exchange_rate_or_default()
        return daily_pnl(
            lots, history, fx_rate, days, today=today, lookback_multiplier=multiplier
        )
