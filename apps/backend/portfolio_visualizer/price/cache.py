"""
報價快取模組

QuoteCache 是由報價閘道持有的明確物件（而非模組層級的全域狀態），
以代碼為 key、固定 TTL 過期，並提供 invalidate() 手動清除。
有設定 Redis 時寫入 Redis，否則使用行程內記憶體。
"""

import json
import logging
import time
from datetime import datetime
from decimal import Decimal
from typing import Any

from portfolio_visualizer.price.base import PriceData
from portfolio_visualizer.redis_client import get_redis

logger = logging.getLogger(__name__)


def price_to_dict(price: PriceData) -> dict:
    """將 PriceData 轉為可序列化的 dict"""
    return {
        "symbol": price.symbol,
        "price": str(price.price),
        "currency": price.currency,
        "timestamp": price.timestamp.isoformat(),
        "change": str(price.change) if price.change is not None else None,
        "change_percent": (
            str(price.change_percent) if price.change_percent is not None else None
        ),
        "source": price.source,
    }


def dict_to_price(data: dict) -> PriceData:
    """從 dict 還原 PriceData"""
    return PriceData(
        symbol=data["symbol"],
        price=Decimal(data["price"]),
        currency=data["currency"],
        timestamp=datetime.fromisoformat(data["timestamp"]),
        change=Decimal(data["change"]) if data.get("change") else None,
        change_percent=(
            Decimal(data["change_percent"]) if data.get("change_percent") else None
        ),
        source=data.get("source", "cache"),
    )


class QuoteCache:
    """
    TTL 快取

    使用方式：
        cache = QuoteCache(ttl=60, prefix="quote")
        await cache.set("VOO", {...})
        await cache.get("VOO")
        await cache.invalidate("VOO")   # 單一代碼
        await cache.invalidate()        # 全部清除
    """

    def __init__(self, ttl: int, prefix: str = "quote", use_redis: bool = True):
        self.ttl = ttl
        self.prefix = prefix
        self._use_redis = use_redis
        self._memory: dict[str, tuple[Any, float]] = {}

    def _make_key(self, symbol: str) -> str:
        return f"{self.prefix}:{symbol.upper()}"

    async def _redis(self):
        if not self._use_redis:
            return None
        return await get_redis()

    async def get(self, symbol: str) -> Any | None:
        """讀取未過期的快取值"""
        key = self._make_key(symbol)

        redis = await self._redis()
        if redis:
            try:
                value = await redis.get(key)
                if value:
                    logger.debug("快取命中: %s", key)
                    return json.loads(value)
                return None
            except Exception as e:
                logger.warning("Redis GET 失敗: %s", e)

        entry = self._memory.get(key)
        if entry is None:
            return None
        value, expire_at = entry
        if time.monotonic() >= expire_at:
            self._memory.pop(key, None)
            return None
        logger.debug("快取命中: %s", key)
        return value

    async def set(self, symbol: str, value: Any) -> None:
        """寫入快取"""
        key = self._make_key(symbol)

        redis = await self._redis()
        if redis:
            try:
                await redis.set(key, json.dumps(value, default=str), ex=self.ttl)
                return
            except Exception as e:
                logger.warning("Redis SET 失敗: %s", e)

        self._memory[key] = (value, time.monotonic() + self.ttl)
        logger.debug("快取寫入: %s (TTL=%s)", key, self.ttl)

    async def invalidate(self, symbol: str | None = None) -> None:
        """清除單一代碼的快取；symbol 為 None 時清除全部"""
        redis = await self._redis()

        if symbol is None:
            if redis:
                try:
                    async for key in redis.scan_iter(match=f"{self.prefix}:*"):
                        await redis.delete(key)
                except Exception as e:
                    logger.warning("Redis 清除快取失敗: %s", e)
            self._memory.clear()
            logger.info("已清除全部 %s 快取", self.prefix)
            return

        key = self._make_key(symbol)
        if redis:
            try:
                await redis.delete(key)
            except Exception as e:
                logger.warning("Redis DELETE 失敗: %s", e)
        self._memory.pop(key, None)
