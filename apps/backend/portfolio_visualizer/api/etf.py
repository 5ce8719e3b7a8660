"""
ETF API 路由
"""

from datetime import datetime, timezone

from fastapi import APIRouter, Depends, HTTPException, Query, status

from portfolio_visualizer.api.dependencies import get_gateway
from portfolio_visualizer.exceptions import ValidationError
from portfolio_visualizer.price.manager import QuoteGateway
from portfolio_visualizer.schemas.common import ApiResponse
from portfolio_visualizer.schemas.market import ExpenseRatioResponse

router = APIRouter(prefix="/etf", tags=["ETF"])


@router.get("/expense", response_model=ApiResponse[ExpenseRatioResponse])
async def get_expense_ratio(
    symbol: str = Query(""),
    gateway: QuoteGateway = Depends(get_gateway),
):
    """
    取得 ETF 費用率

    先查 Yahoo，取不到再查手動維護的備用表；
    兩者皆無時，若代碼本身有報價則回傳 expense_ratio=None，否則 404。
    """
    symbol = symbol.strip().upper()
    if not symbol:
        raise ValidationError("請提供 ETF 代號", field="symbol")

    ratio, source = await gateway.get_expense_ratio(symbol)
    if ratio is not None:
        return ApiResponse(data=ExpenseRatioResponse(
            symbol=symbol,
            expense_ratio=ratio,
            source=source,
            updated_at=datetime.now(timezone.utc),
        ))

    if await gateway.get_quote(symbol) is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="找不到此標的",
        )
    return ApiResponse(data=ExpenseRatioResponse(
        symbol=symbol,
        message="此標的可能不是 ETF，或費用率資料暫時無法取得",
    ))
