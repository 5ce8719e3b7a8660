"""Portfolio Visualizer ORM Models 套件"""

from portfolio_visualizer.models.portfolio import Portfolio
from portfolio_visualizer.models.holding import Holding, Market, detect_market
from portfolio_visualizer.models.cash_balance import CashBalance
from portfolio_visualizer.models.transaction import Transaction, TransactionType

__all__ = [
    "Portfolio",
    "Holding",
    "Market",
    "detect_market",
    "CashBalance",
    "Transaction",
    "TransactionType",
]
