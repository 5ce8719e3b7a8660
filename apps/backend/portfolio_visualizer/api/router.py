"""
API 路由集中註冊

除了登入 / 登出外，所有路由都需要已登入的角色。
"""

from fastapi import APIRouter, Depends

from portfolio_visualizer.api.auth import get_current_role
from portfolio_visualizer.api.auth import router as auth_router
from portfolio_visualizer.api.cash import router as cash_router
from portfolio_visualizer.api.charts import router as charts_router
from portfolio_visualizer.api.etf import router as etf_router
from portfolio_visualizer.api.exchange import router as exchange_router
from portfolio_visualizer.api.holdings import router as holdings_router
from portfolio_visualizer.api.portfolio import router as portfolio_router
from portfolio_visualizer.api.stocks import router as stocks_router
from portfolio_visualizer.api.transaction import router as transaction_router

api_router = APIRouter(prefix="/api")
api_router.include_router(auth_router)

_authenticated = [Depends(get_current_role)]
api_router.include_router(holdings_router, dependencies=_authenticated)
api_router.include_router(cash_router, dependencies=_authenticated)
api_router.include_router(portfolio_router, dependencies=_authenticated)
api_router.include_router(transaction_router, dependencies=_authenticated)
api_router.include_router(stocks_router, dependencies=_authenticated)
api_router.include_router(charts_router, dependencies=_authenticated)
api_router.include_router(exchange_router, dependencies=_authenticated)
api_router.include_router(etf_router, dependencies=_authenticated)
