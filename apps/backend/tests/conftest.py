"""
測試共用 fixture

- 每個測試一個記憶體 SQLite 資料庫（aiosqlite + StaticPool），覆寫 get_db
- 假的報價來源 FakeProvider，透過 dependency_overrides 注入報價閘道
- 管理員 / 訪客兩種已登入的 httpx AsyncClient
"""

import os

os.environ.setdefault("APP_ENV", "testing")
os.environ.setdefault("SITE_PASSWORD", "admin-secret")
os.environ.setdefault("GUEST_PASSWORD", "guest-secret")
os.environ.pop("REDIS_URL", None)

from collections.abc import AsyncIterator
from datetime import date
from decimal import Decimal

import httpx
import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from portfolio_visualizer.api.dependencies import get_gateway
from portfolio_visualizer.database import Base, get_db
from portfolio_visualizer.main import app
from portfolio_visualizer.models.holding import Holding, Market, detect_market
from portfolio_visualizer.price.base import (
    HistoricalPrice,
    PriceData,
    PriceNotFoundError,
    PriceProvider,
    ProviderError,
)
from portfolio_visualizer.price.cache import QuoteCache
from portfolio_visualizer.price.manager import QuoteGateway


class FakeProvider(PriceProvider):
    """可設定報價、歷史收盤價與費用率的假報價來源"""

    def __init__(self):
        self.prices: dict[str, Decimal] = {}
        self.history: dict[str, dict[date, Decimal]] = {}
        self.expense_ratios: dict[str, Decimal] = {}
        self.failing: set[str] = set()
        self.calls: dict[str, int] = {}

    async def get_current_price(self, symbol: str) -> PriceData:
        self.calls[symbol] = self.calls.get(symbol, 0) + 1
        if symbol in self.failing:
            raise ProviderError(f"{symbol} 連線逾時")
        if symbol not in self.prices:
            raise PriceNotFoundError(f"找不到 {symbol} 的報價")
        currency = "TWD" if symbol.endswith((".TW", ".TWO")) else "USD"
        return PriceData(symbol=symbol, price=self.prices[symbol], currency=currency, source="fake")

    async def get_historical_prices(
        self,
        symbol: str,
        start_date: date | None = None,
        end_date: date | None = None,
        period: str = "1mo",
    ) -> list[HistoricalPrice]:
        if symbol in self.failing:
            raise ProviderError(f"{symbol} 連線逾時")
        closes = self.history.get(symbol, {})
        return [
            HistoricalPrice(symbol=symbol, date=day, close=close)
            for day, close in sorted(closes.items())
            if (start_date is None or day >= start_date)
            and (end_date is None or day <= end_date)
        ]

    async def get_expense_ratio(self, symbol: str) -> Decimal | None:
        return self.expense_ratios.get(symbol)


@pytest.fixture
def provider() -> FakeProvider:
    fake = FakeProvider()
    fake.prices["TWD=X"] = Decimal("32")
    return fake


@pytest.fixture
def gateway(provider: FakeProvider) -> QuoteGateway:
    return QuoteGateway(
        providers={Market.TW: provider, Market.US: provider},
        cache=QuoteCache(ttl=60, prefix="quote", use_redis=False),
        expense_cache=QuoteCache(ttl=60, prefix="expense", use_redis=False),
    )


# =============================================================================
# DATABASE FIXTURES
# =============================================================================

@pytest.fixture
async def db_engine():
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(db_engine):
    return async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def db(session_factory) -> AsyncIterator[AsyncSession]:
    async with session_factory() as session:
        yield session


def make_lot(
    symbol: str,
    shares: str,
    cost_price: str,
    purchase_date: date,
    portfolio_id: str | None = None,
    lot_id: str | None = None,
) -> Holding:
    """建立未寫入資料庫的持股批次"""
    return Holding(
        id=lot_id or f"lot-{symbol}-{purchase_date.isoformat()}",
        symbol=symbol,
        shares=Decimal(shares),
        cost_price=Decimal(cost_price),
        purchase_date=purchase_date,
        market=detect_market(symbol),
        portfolio_id=portfolio_id,
    )


# =============================================================================
# API CLIENT FIXTURES
# =============================================================================

@pytest.fixture
async def app_client(session_factory, gateway) -> AsyncIterator[httpx.AsyncClient]:
    """未登入的 client；資料庫與報價閘道皆已替換"""

    async def override_get_db():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_gateway] = lambda: gateway

    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()


async def _login(client: httpx.AsyncClient, password: str) -> httpx.AsyncClient:
    response = await client.post("/api/auth", json={"password": password})
    assert response.status_code == 200, response.text
    return client


@pytest.fixture
async def admin_client(app_client) -> httpx.AsyncClient:
    return await _login(app_client, os.environ["SITE_PASSWORD"])


@pytest.fixture
async def guest_client(app_client) -> httpx.AsyncClient:
    return await _login(app_client, os.environ["GUEST_PASSWORD"])


@pytest.fixture
def lot():
    """持股批次工廠：lot("VOO", "5", "200", date(2024, 1, 2))"""
    return make_lot
