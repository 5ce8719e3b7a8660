"""
投資組合模型

持股與現金可分屬不同投資組合（如「長期投資」、「短線操作」）；
管理員可決定訪客是否看得到某個組合。
"""

import uuid
from datetime import datetime

from sqlalchemy import String, Boolean, DateTime, func
from sqlalchemy.orm import Mapped, mapped_column

from portfolio_visualizer.database import Base

# 尚未建立任何投資組合時回傳的預設組合
DEFAULT_PORTFOLIO_ID = "default"
DEFAULT_PORTFOLIO_NAME = "新的投資組合"


class Portfolio(Base):
    __tablename__ = "portfolios"

    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=lambda: str(uuid.uuid4()),
    )
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    visible_to_guest: Mapped[bool] = mapped_column(
        Boolean, default=False, nullable=False,
        comment="訪客是否可檢視",
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    def __repr__(self) -> str:
        return f"<Portfolio {self.name}>"
