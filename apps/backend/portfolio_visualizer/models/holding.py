"""
持股批次模型

每一筆買入即一個批次（lot），記錄股數、每股成本與買入日期。
同一標的的多個批次在顯示時才聚合，資料庫中維持各自獨立。
"""

import enum
import uuid
from datetime import date, datetime
from decimal import Decimal

from sqlalchemy import String, Date, DateTime, Numeric, Enum, func
from sqlalchemy.orm import Mapped, mapped_column

from portfolio_visualizer.database import Base


class Market(str, enum.Enum):
    """市場列舉：台股以台幣計價，美股以美元計價"""
    TW = "TW"
    US = "US"


def detect_market(symbol: str, domestic_suffix: str = ".TW") -> Market:
    """
    依代碼字串判斷市場

    代碼中含有台股後綴（.TW，亦涵蓋上櫃的 .TWO）即為台股，其餘一律視為美股。
    """
    return Market.TW if domestic_suffix in symbol.upper() else Market.US


class Holding(Base):
    __tablename__ = "holdings"

    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=lambda: str(uuid.uuid4()),
    )
    symbol: Mapped[str] = mapped_column(
        String(20), nullable=False, index=True,
        comment="標的代碼，如 2330.TW, VOO",
    )
    shares: Mapped[Decimal] = mapped_column(
        Numeric(precision=18, scale=8), nullable=False,
        comment="持有股數（支援零股小數）",
    )
    cost_price: Mapped[Decimal] = mapped_column(
        Numeric(precision=18, scale=8), nullable=False,
        comment="每股成本（原幣）",
    )
    purchase_date: Mapped[date] = mapped_column(
        Date, nullable=False, index=True,
        comment="買入日期",
    )
    market: Mapped[Market] = mapped_column(
        Enum(Market), nullable=False,
    )
    portfolio_id: Mapped[str | None] = mapped_column(
        String(36), nullable=True, index=True,
        comment="所屬投資組合，空值為預設組合",
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
    )

    def __repr__(self) -> str:
        return f"<Holding {self.symbol} x{self.shares} @ {self.cost_price}>"
