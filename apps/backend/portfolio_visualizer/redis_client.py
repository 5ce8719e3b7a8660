"""
Portfolio Visualizer Redis 連線模組

支援 Redis 連線池；若未設定或連線失敗，呼叫端自動改用記憶體快取。
"""

import logging

import redis.asyncio as aioredis

from portfolio_visualizer.config import get_settings

logger = logging.getLogger(__name__)

# Redis 客戶端（延遲初始化）
_redis_client: aioredis.Redis | None = None


async def get_redis() -> aioredis.Redis | None:
    """取得 Redis 連線，若不可用則返回 None"""
    global _redis_client

    settings = get_settings()
    if settings.redis_url is None:
        return None

    if _redis_client is None:
        try:
            _redis_client = aioredis.from_url(
                settings.redis_url,
                encoding="utf-8",
                decode_responses=True,
                max_connections=20,
            )
            # 測試連線
            await _redis_client.ping()
            logger.info("Redis 連線成功: %s", settings.redis_url)
        except Exception as e:
            logger.warning("Redis 連線失敗，改用記憶體快取: %s", e)
            _redis_client = None
            return None

    return _redis_client


async def close_redis() -> None:
    """關閉 Redis 連線"""
    global _redis_client
    if _redis_client:
        await _redis_client.close()
        _redis_client = None
