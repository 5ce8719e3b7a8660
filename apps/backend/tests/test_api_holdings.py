"""持股 CRUD、儀表板摘要與走勢圖 API 測試"""

from datetime import date, timedelta
from decimal import Decimal

import pytest


async def create_holding(client, symbol="2330.TW", shares=10, cost_price=100, **extra):
    payload = {
        "symbol": symbol,
        "shares": shares,
        "cost_price": cost_price,
        "purchase_date": "2024-01-02",
        **extra,
    }
    response = await client.post("/api/holdings", json=payload)
    assert response.status_code == 200, response.text
    return response.json()["data"]


async def test_create_derives_market_and_normalizes_symbol(admin_client):
    domestic = await create_holding(admin_client, symbol=" 6488.two ")
    foreign = await create_holding(admin_client, symbol="voo")

    assert domestic["symbol"] == "6488.TWO"
    assert domestic["market"] == "TW"
    assert foreign["market"] == "US"


@pytest.mark.parametrize("payload", [
    {"shares": 1, "cost_price": 1, "purchase_date": "2024-01-02"},
    {"symbol": "VOO", "shares": 0, "cost_price": 1, "purchase_date": "2024-01-02"},
    {"symbol": "VOO", "shares": 1, "cost_price": -5, "purchase_date": "2024-01-02"},
    {"symbol": "VOO", "shares": 1, "cost_price": 1},
])
async def test_create_validates_required_fields(admin_client, payload):
    response = await admin_client.post("/api/holdings", json=payload)

    assert response.status_code == 400
    assert response.json()["success"] is False


async def test_list_filters_by_portfolio(admin_client):
    await create_holding(admin_client, symbol="VOO", portfolio_id="p1")
    await create_holding(admin_client, symbol="QQQ", portfolio_id="p2")

    everything = (await admin_client.get("/api/holdings")).json()["data"]
    p1 = (await admin_client.get("/api/holdings", params={"portfolio_id": "p1"})).json()["data"]

    assert {h["symbol"] for h in everything} == {"VOO", "QQQ"}
    assert [h["symbol"] for h in p1] == ["VOO"]


async def test_update_is_full_replace(admin_client):
    holding = await create_holding(admin_client, symbol="VOO")

    response = await admin_client.put(f"/api/holdings/{holding['id']}", json={
        "symbol": "0050.TW",
        "shares": 3,
        "cost_price": 150,
        "purchase_date": "2023-05-01",
    })

    data = response.json()["data"]
    assert response.status_code == 200
    assert data["symbol"] == "0050.TW"
    assert data["market"] == "TW"
    assert Decimal(data["shares"]) == 3
    assert data["purchase_date"] == "2023-05-01"


async def test_update_and_delete_missing(admin_client):
    body = {"symbol": "VOO", "shares": 1, "cost_price": 1, "purchase_date": "2024-01-02"}

    assert (await admin_client.put("/api/holdings/missing", json=body)).status_code == 404
    assert (await admin_client.delete("/api/holdings/missing")).status_code == 404


async def test_delete(admin_client):
    holding = await create_holding(admin_client)

    response = await admin_client.delete(f"/api/holdings/{holding['id']}")

    assert response.json()["data"] == {"success": True}
    assert (await admin_client.get("/api/holdings")).json()["data"] == []


async def test_summary(admin_client, provider):
    provider.prices["2330.TW"] = Decimal("150")
    provider.prices["VOO"] = Decimal("220")
    provider.expense_ratios["VOO"] = Decimal("0.0003")

    await create_holding(admin_client, symbol="2330.TW", shares=10, cost_price=100)
    await create_holding(admin_client, symbol="VOO", shares=5, cost_price=200)
    await create_holding(admin_client, symbol="VOO", shares=5, cost_price=240)
    await admin_client.put("/api/cash", json={"amount_twd": 1000})

    summary = (await admin_client.get("/api/holdings/summary")).json()["data"]

    totals = summary["totals"]
    assert Decimal(summary["exchange_rate"]) == 32
    assert Decimal(totals["total_cost_twd"]) == Decimal("71400")
    assert Decimal(totals["holdings_value_twd"]) == Decimal("71900")
    assert Decimal(totals["total_value_twd"]) == Decimal("72900")
    assert Decimal(totals["weighted_expense_ratio"]) == Decimal("0.0003")

    positions = summary["positions"]
    assert [p["symbol"] for p in positions] == ["VOO", "2330.TW"]
    assert Decimal(positions[0]["cost_price"]) == 220
    assert len(positions[0]["lots"]) == 2
    assert [a["name"] for a in summary["allocations"]] == ["VOO", "2330.TW", "現金"]


async def test_global_summary_keeps_proceeds_of_portfolio_sells(admin_client, provider):
    provider.prices["2330.TW"] = Decimal("150")
    holding = await create_holding(admin_client, portfolio_id="p1")
    await admin_client.put("/api/cash", json={"amount_twd": 200})

    before = (await admin_client.get("/api/holdings/summary")).json()["data"]["totals"]
    await admin_client.post("/api/transactions", json={
        "holding_id": holding["id"],
        "shares": 10,
        "price": 150,
        "transaction_date": "2024-06-03",
    })
    after = (await admin_client.get("/api/holdings/summary")).json()["data"]["totals"]

    assert Decimal(before["total_value_twd"]) == 1700
    assert Decimal(after["holdings_value_twd"]) == 0
    assert Decimal(after["cash_twd"]) == 1700
    assert Decimal(after["total_value_twd"]) == 1700

    scoped = (await admin_client.get("/api/holdings/summary", params={"portfolio_id": "p1"})).json()["data"]
    assert Decimal(scoped["totals"]["cash_twd"]) == 1500


async def test_summary_when_quotes_are_down(admin_client, provider):
    provider.failing.update({"VOO", "TWD=X"})
    await create_holding(admin_client, symbol="VOO", shares=1, cost_price=100)

    response = await admin_client.get("/api/holdings/summary")

    totals = response.json()["data"]["totals"]
    assert response.status_code == 200
    assert Decimal(totals["holdings_value_twd"]) == 0
    assert Decimal(totals["total_cost_twd"]) == 3200


async def test_asset_trend_and_daily_pnl(admin_client, provider):
    today = date.today()
    yesterday = today - timedelta(days=1)
    provider.history["2330.TW"] = {yesterday: Decimal("100"), today: Decimal("110")}

    await admin_client.post("/api/holdings", json={
        "symbol": "2330.TW",
        "shares": 10,
        "cost_price": 90,
        "purchase_date": yesterday.isoformat(),
    })

    trend = (await admin_client.get("/api/charts/asset-trend")).json()["data"]
    pnl = (await admin_client.get("/api/charts/daily-pnl", params={"days": 7})).json()["data"]

    assert trend == [
        {"date": yesterday.isoformat(), "value": 1000, "cost": 900},
        {"date": today.isoformat(), "value": 1100, "cost": 900},
    ]
    assert pnl == [{"date": today.isoformat(), "pnl": 100}]


async def test_charts_are_empty_without_holdings(admin_client):
    assert (await admin_client.get("/api/charts/asset-trend")).json()["data"] == []
    assert (await admin_client.get("/api/charts/daily-pnl")).json()["data"] == []
