"""
現金餘額模型

每個投資組合最多一筆（portfolio_id 為空時代表全域現金），
金額一律以台幣記錄，可為負數。
"""

import uuid
from datetime import datetime
from decimal import Decimal

from sqlalchemy import String, DateTime, Numeric, func
from sqlalchemy.orm import Mapped, mapped_column

from portfolio_visualizer.database import Base


class CashBalance(Base):
    __tablename__ = "cash_balance"

    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=lambda: str(uuid.uuid4()),
    )
    portfolio_id: Mapped[str | None] = mapped_column(
        String(36), nullable=True, index=True,
    )
    amount_twd: Mapped[Decimal] = mapped_column(
        Numeric(precision=18, scale=4), default=Decimal("0"), nullable=False,
        comment="現金（台幣）",
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
    )

    def __repr__(self) -> str:
        return f"<CashBalance {self.portfolio_id} = {self.amount_twd}>"
