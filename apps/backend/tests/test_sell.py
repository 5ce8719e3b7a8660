"""賣出流程（服務層）測試"""

from datetime import date
from decimal import Decimal

import pytest
from sqlalchemy import select

from portfolio_visualizer.exceptions import NotFoundError, ValidationError
from portfolio_visualizer.models.cash_balance import CashBalance
from portfolio_visualizer.models.holding import Holding
from portfolio_visualizer.models.transaction import Transaction
from portfolio_visualizer.schemas.holding import HoldingCreate
from portfolio_visualizer.services.cash_service import CashService
from portfolio_visualizer.services.holding_service import HoldingService
from portfolio_visualizer.services.transaction_service import TransactionService

SELL_DATE = date(2024, 6, 3)


async def add_holding(db, symbol, shares, cost_price, portfolio_id=None) -> Holding:
    return await HoldingService(db).create(HoldingCreate(
        symbol=symbol,
        shares=Decimal(shares),
        cost_price=Decimal(cost_price),
        purchase_date=date(2024, 1, 2),
        portfolio_id=portfolio_id,
    ))


async def test_partial_sell(db, gateway):
    holding = await add_holding(db, "2330.TW", "10", "100")

    outcome = await TransactionService(db, gateway).sell(
        holding.id, Decimal("5"), Decimal("120"), SELL_DATE
    )

    assert outcome.realized_pnl_twd == Decimal("100.00")
    assert outcome.remaining_shares == Decimal("5")
    assert outcome.cash_added_twd == Decimal("600")

    await db.refresh(holding)
    assert holding.shares == Decimal("5")
    assert await CashService(db).get(None) == Decimal("600")


async def test_full_sell_deletes_lot(db, gateway):
    holding = await add_holding(db, "2330.TW", "10", "100")

    outcome = await TransactionService(db, gateway).sell(
        holding.id, Decimal("10"), Decimal("90"), SELL_DATE
    )

    assert outcome.remaining_shares == Decimal("0")
    assert outcome.realized_pnl_twd == Decimal("-100.00")
    assert await db.get(Holding, holding.id) is None

    [tx] = (await db.execute(select(Transaction))).scalars().all()
    assert tx.holding_id == holding.id
    assert tx.symbol == "2330.TW"


async def test_foreign_sell_uses_live_rate(db, gateway, provider):
    provider.prices["TWD=X"] = Decimal("31.5")
    holding = await add_holding(db, "VOO", "2", "400")

    outcome = await TransactionService(db, gateway).sell(
        holding.id, Decimal("1"), Decimal("450.333"), SELL_DATE
    )

    # (450.333 - 400) * 1 * 31.5 = 1585.4895
    assert outcome.realized_pnl_twd == Decimal("1585.49")
    # 450.333 * 31.5 = 14185.4895
    assert outcome.cash_added_twd == Decimal("14185")


async def test_foreign_sell_falls_back_to_default_rate(db, gateway, provider):
    provider.prices.pop("TWD=X")
    holding = await add_holding(db, "VOO", "2", "400")

    outcome = await TransactionService(db, gateway).sell(
        holding.id, Decimal("1"), Decimal("410"), SELL_DATE
    )

    assert outcome.realized_pnl_twd == Decimal("320.00")
    assert outcome.cash_added_twd == Decimal("13120")


async def test_cash_goes_to_lot_portfolio(db, gateway):
    holding = await add_holding(db, "2330.TW", "10", "100", portfolio_id="p1")
    await CashService(db).set("p1", Decimal("1000"))

    await TransactionService(db, gateway).sell(holding.id, Decimal("1"), Decimal("100"), SELL_DATE)

    assert await CashService(db).get("p1") == Decimal("1100")
    assert await CashService(db).get(None) == Decimal("0")


async def test_oversell_is_rejected_without_changes(db, gateway):
    holding = await add_holding(db, "2330.TW", "10", "100")

    with pytest.raises(ValidationError):
        await TransactionService(db, gateway).sell(
            holding.id, Decimal("11"), Decimal("120"), SELL_DATE
        )

    await db.refresh(holding)
    assert holding.shares == Decimal("10")
    assert (await db.execute(select(Transaction))).scalars().all() == []
    assert (await db.execute(select(CashBalance))).scalars().all() == []


@pytest.mark.parametrize("shares, price", [("0", "100"), ("-1", "100"), ("1", "0")])
async def test_non_positive_inputs_are_rejected(db, gateway, shares, price):
    holding = await add_holding(db, "2330.TW", "10", "100")

    with pytest.raises(ValidationError):
        await TransactionService(db, gateway).sell(
            holding.id, Decimal(shares), Decimal(price), SELL_DATE
        )


async def test_missing_lot(db, gateway):
    with pytest.raises(NotFoundError):
        await TransactionService(db, gateway).sell(
            "missing", Decimal("1"), Decimal("1"), SELL_DATE
        )


async def test_sell_invalidates_cached_quote(db, gateway, provider):
    provider.prices["2330.TW"] = Decimal("600")
    holding = await add_holding(db, "2330.TW", "10", "100")
    await gateway.get_quote("2330.TW")

    await TransactionService(db, gateway).sell(holding.id, Decimal("1"), Decimal("600"), SELL_DATE)

    assert await gateway.cache.get("2330.TW") is None


async def test_list_orders_newest_first(db, gateway):
    holding = await add_holding(db, "2330.TW", "10", "100")
    service = TransactionService(db, gateway)
    await service.sell(holding.id, Decimal("1"), Decimal("100"), date(2024, 6, 1))
    await service.sell(holding.id, Decimal("1"), Decimal("100"), date(2024, 6, 5))

    dates = [tx.transaction_date for tx in await service.list()]

    assert dates == [date(2024, 6, 5), date(2024, 6, 1)]
