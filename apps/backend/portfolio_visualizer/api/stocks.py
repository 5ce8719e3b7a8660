"""
行情 API 路由

即時報價（單一或多檔）與歷史收盤價。
"""

from fastapi import APIRouter, Depends, HTTPException, Query, status

from portfolio_visualizer.api.dependencies import get_gateway
from portfolio_visualizer.exceptions import ValidationError
from portfolio_visualizer.price.manager import QuoteGateway
from portfolio_visualizer.price.yahoo import SUPPORTED_PERIODS
from portfolio_visualizer.schemas.common import ApiResponse
from portfolio_visualizer.schemas.market import HistoryPoint, QuoteResponse

router = APIRouter(prefix="/stocks", tags=["行情"])


@router.get(
    "/quote",
    response_model=ApiResponse[QuoteResponse | dict[str, QuoteResponse]],
)
async def get_quote(
    symbols: str = Query("", description="以逗號分隔的代碼，如 2330.TW,VOO"),
    gateway: QuoteGateway = Depends(get_gateway),
):
    """
    取得即時報價

    單一代碼時回傳該報價（取不到為 404）；
    多個代碼時回傳 {symbol: 報價}，取不到的代碼直接略過。
    """
    symbol_list = [s.strip().upper() for s in symbols.split(",") if s.strip()]
    if not symbol_list:
        raise ValidationError("請提供股票代號", field="symbols")

    if len(symbol_list) == 1:
        quote = await gateway.get_quote(symbol_list[0])
        if quote is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="無法取得股價",
            )
        return ApiResponse(data=QuoteResponse.model_validate(quote))

    quotes = await gateway.get_quotes(symbol_list)
    return ApiResponse(data={
        symbol: QuoteResponse.model_validate(quote)
        for symbol, quote in quotes.items()
    })


@router.get("/history", response_model=ApiResponse[list[HistoryPoint]])
async def get_history(
    symbol: str = Query(""),
    range_: str = Query("1mo", alias="range"),
    gateway: QuoteGateway = Depends(get_gateway),
):
    """取得歷史收盤價（1mo / 3mo / 6mo / 1y / 5y）"""
    symbol = symbol.strip().upper()
    if not symbol:
        raise ValidationError("請提供股票代號", field="symbol")
    if range_ not in SUPPORTED_PERIODS:
        raise ValidationError(f"不支援的區間: {range_}", field="range")

    history = await gateway.get_history(symbol, period=range_)
    if not history:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="無法取得歷史數據",
        )
    return ApiResponse(data=[HistoryPoint.model_validate(p) for p in history])
