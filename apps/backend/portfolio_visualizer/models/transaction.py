"""
交易明細模型

紀錄每一筆已實現的賣出，含賣出價、股數與台幣已實現損益。
來源持股（holding_id）賣完後會被刪除，因此不設外鍵。
"""

import enum
import uuid
from datetime import date, datetime
from decimal import Decimal

from sqlalchemy import String, Date, DateTime, Numeric, Enum, func
from sqlalchemy.orm import Mapped, mapped_column

from portfolio_visualizer.database import Base
from portfolio_visualizer.models.holding import Market


class TransactionType(str, enum.Enum):
    """交易類型列舉"""
    SELL = "sell"  # 賣出


class Transaction(Base):
    __tablename__ = "transactions"

    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=lambda: str(uuid.uuid4()),
    )
    symbol: Mapped[str] = mapped_column(
        String(20), nullable=False, index=True,
    )
    type: Mapped[TransactionType] = mapped_column(
        Enum(TransactionType), nullable=False, default=TransactionType.SELL,
    )
    shares: Mapped[Decimal] = mapped_column(
        Numeric(precision=18, scale=8), nullable=False,
    )
    price: Mapped[Decimal] = mapped_column(
        Numeric(precision=18, scale=8), nullable=False,
        comment="成交價（原幣）",
    )
    transaction_date: Mapped[date] = mapped_column(
        Date, nullable=False, index=True,
    )
    market: Mapped[Market] = mapped_column(
        Enum(Market), nullable=False,
    )
    realized_pnl_twd: Mapped[Decimal] = mapped_column(
        Numeric(precision=18, scale=2), default=Decimal("0"),
        comment="已實現損益（台幣）",
    )
    holding_id: Mapped[str | None] = mapped_column(
        String(36), nullable=True,
        comment="來源持股批次，可能已被刪除",
    )
    portfolio_id: Mapped[str | None] = mapped_column(
        String(36), nullable=True, index=True,
    )
    notes: Mapped[str | None] = mapped_column(
        String(500), nullable=True,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(),
    )

    def __repr__(self) -> str:
        return f"<Transaction {self.type.value} {self.symbol} x{self.shares}>"
