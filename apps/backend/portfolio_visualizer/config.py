"""
Portfolio Visualizer 後端設定模組

使用 Pydantic Settings 管理環境變數，自動驗證型別與預設值。
"""

from functools import lru_cache
from typing import Literal

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """應用程式設定，透過環境變數或 .env 載入"""

    # === 應用程式 ===
    app_env: Literal["development", "production", "testing"] = "development"
    app_name: str = "Portfolio Visualizer API"
    app_version: str = "0.1.0"
    debug: bool = True

    # === 安全性 ===
    secret_key: str = "dev-secret-change-me-in-production"
    jwt_algorithm: str = "HS256"
    site_password: str = ""  # 管理員密碼（未設定時無法登入）
    guest_password: str = ""  # 訪客密碼（選填）
    auth_cookie_name: str = "portfolio_auth"
    auth_cookie_max_age: int = 604800  # 7 天 (7 * 24 * 60 * 60)

    # === 資料庫 ===
    # 預設使用 SQLite（開發模式），生產環境切換為 PostgreSQL
    database_url: str = "sqlite+aiosqlite:///./portfolio_visualizer.db"

    # === Redis ===
    redis_url: str | None = None  # None 時自動使用記憶體快取

    # === 報價 ===
    quote_cache_ttl: int = 60  # 1 分鐘
    expense_cache_ttl: int = 86400  # 24 小時
    default_exchange_rate: float = 32.0  # USD/TWD 取不到時的預設值
    exchange_rate_symbol: str = "TWD=X"  # Yahoo Finance 的 USD/TWD 代碼
    domestic_suffix: str = ".TW"  # 台股代碼後綴（.TWO 亦包含此字串）

    # === 計算參數 ===
    daily_pnl_lookback_multiplier: float = 2.5  # 日曆天 / 交易日 的估計倍數
    daily_pnl_default_days: int = 7
    sell_epsilon: float = 1e-8  # 剩餘股數低於此值視為全部賣出

    # === CORS ===
    cors_origins: list[str] = [
        "http://localhost:3000",
    ]

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,
    }

    @property
    def is_development(self) -> bool:
        return self.app_env == "development"

    @property
    def is_production(self) -> bool:
        return self.app_env == "production"

    @property
    def use_sqlite(self) -> bool:
        """判斷是否使用 SQLite（開發模式）"""
        return "sqlite" in self.database_url


@lru_cache
def get_settings() -> Settings:
    """取得快取的設定實例"""
    return Settings()
