"""報價、歷史價格、匯率與 ETF 費用率 API 測試"""

from datetime import date
from decimal import Decimal


class TestQuote:
    async def test_single_symbol(self, guest_client, provider):
        provider.prices["VOO"] = Decimal("412.5")

        response = await guest_client.get("/api/stocks/quote", params={"symbols": "voo"})

        data = response.json()["data"]
        assert data["symbol"] == "VOO"
        assert Decimal(data["price"]) == Decimal("412.5")
        assert data["currency"] == "USD"

    async def test_single_missing_symbol_is_404(self, guest_client):
        response = await guest_client.get("/api/stocks/quote", params={"symbols": "NOPE"})
        assert response.status_code == 404

    async def test_multiple_symbols_skip_missing(self, guest_client, provider):
        provider.prices["VOO"] = Decimal("400")
        provider.prices["2330.TW"] = Decimal("600")

        response = await guest_client.get("/api/stocks/quote", params={"symbols": "VOO, 2330.tw,NOPE"})

        assert set(response.json()["data"]) == {"VOO", "2330.TW"}

    async def test_symbols_required(self, guest_client):
        response = await guest_client.get("/api/stocks/quote")
        assert response.status_code == 400


class TestHistory:
    async def test_history(self, guest_client, provider):
        provider.history["VOO"] = {date(2024, 1, 2): Decimal("400"), date(2024, 1, 3): Decimal("401")}

        response = await guest_client.get("/api/stocks/history", params={"symbol": "VOO", "range": "3mo"})

        assert response.json()["data"][0]["date"] == "2024-01-02"
        assert len(response.json()["data"]) == 2

    async def test_empty_history_is_404(self, guest_client):
        response = await guest_client.get("/api/stocks/history", params={"symbol": "VOO"})
        assert response.status_code == 404

    async def test_unknown_range(self, guest_client):
        response = await guest_client.get("/api/stocks/history", params={"symbol": "VOO", "range": "10y"})
        assert response.status_code == 400


class TestExchange:
    async def test_live_rate(self, guest_client, provider):
        provider.prices["TWD=X"] = Decimal("31.2")

        data = (await guest_client.get("/api/exchange")).json()["data"]

        assert Decimal(data["rate"]) == Decimal("31.2")
        assert data["from_currency"] == "USD"
        assert data["to_currency"] == "TWD"
        assert data["is_default"] is False

    async def test_default_rate_on_failure(self, guest_client, provider):
        provider.failing.add("TWD=X")

        response = await guest_client.get("/api/exchange")

        data = response.json()["data"]
        assert response.status_code == 200
        assert Decimal(data["rate"]) == 32
        assert data["is_default"] is True


class TestExpenseRatio:
    async def test_auto(self, guest_client, provider):
        provider.expense_ratios["VT"] = Decimal("0.0006")

        data = (await guest_client.get("/api/etf/expense", params={"symbol": "vt"})).json()["data"]

        assert Decimal(data["expense_ratio"]) == Decimal("0.0006")
        assert data["source"] == "auto"

    async def test_manual_fallback(self, guest_client):
        data = (await guest_client.get("/api/etf/expense", params={"symbol": "0050.TW"})).json()["data"]

        assert Decimal(data["expense_ratio"]) == Decimal("0.0043")
        assert data["source"] == "manual"

    async def test_not_an_etf(self, guest_client, provider):
        provider.prices["AAPL"] = Decimal("190")

        data = (await guest_client.get("/api/etf/expense", params={"symbol": "AAPL"})).json()["data"]

        assert data["expense_ratio"] is None
        assert data["message"]

    async def test_unknown_symbol(self, guest_client):
        response = await guest_client.get("/api/etf/expense", params={"symbol": "NOPE"})
        assert response.status_code == 404
