"""
匯率 API 路由
"""

import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Depends

from portfolio_visualizer.api.dependencies import get_gateway
from portfolio_visualizer.price.manager import QuoteGateway
from portfolio_visualizer.schemas.common import ApiResponse
from portfolio_visualizer.schemas.market import ExchangeRateResponse

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/exchange", tags=["匯率"])


@router.get("", response_model=ApiResponse[ExchangeRateResponse])
async def get_exchange_rate(gateway: QuoteGateway = Depends(get_gateway)):
    """
    取得 USD/TWD 匯率（1 美元可換多少台幣）

    取不到時回傳設定中的預設匯率，並標記 is_default，讓前端不崩潰。
    """
    rate = await gateway.get_exchange_rate()
    is_default = rate is None
    if is_default:
        rate = gateway.default_exchange_rate

    return ApiResponse(data=ExchangeRateResponse(
        rate=rate,
        is_default=is_default,
        updated_at=datetime.now(timezone.utc),
    ))
