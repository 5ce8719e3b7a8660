"""
Portfolio Visualizer FastAPI 應用程式入口

包含 CORS 設定、全域錯誤處理中介軟體、服務層例外對應、
啟動事件（初始化資料庫）與關閉事件（釋放報價來源與 Redis 連線）。
"""

import logging
import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException

from portfolio_visualizer.api.router import api_router
from portfolio_visualizer.config import get_settings
from portfolio_visualizer.database import engine, init_db
from portfolio_visualizer.exceptions import (
    AuthenticationError,
    AuthorizationError,
    NotFoundError,
    ServiceError,
    ValidationError,
)
from portfolio_visualizer.price.manager import get_quote_gateway
from portfolio_visualizer.redis_client import close_redis
from portfolio_visualizer.schemas.common import ErrorResponse

# 設定日誌
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

settings = get_settings()

# 服務層例外 → HTTP 狀態碼
STATUS_BY_ERROR: dict[type[ServiceError], int] = {
    ValidationError: 400,
    AuthenticationError: 401,
    AuthorizationError: 403,
    NotFoundError: 404,
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    """應用程式生命週期管理"""
    # === 啟動時 ===
    logger.info("🚀 Portfolio Visualizer API 啟動中...")
    logger.info("環境: %s", settings.app_env)

    # 初始化資料庫（開發模式自動建表）
    await init_db()
    logger.info("✅ 資料庫初始化完成")

    yield

    # === 關閉時 ===
    logger.info("Portfolio Visualizer API 關閉中...")
    await get_quote_gateway().close()
    await close_redis()
    await engine.dispose()
    logger.info("👋 Portfolio Visualizer API 已關閉")


# 建立 FastAPI 應用
app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description="個人投資組合儀表板 API",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

# === CORS 中介軟體 ===
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _error(status_code: int, message: str, detail: str | None = None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(error=message, detail=detail).model_dump(),
    )


# === 例外對應 ===

@app.exception_handler(ServiceError)
async def service_error_handler(request: Request, exc: ServiceError) -> JSONResponse:
    """服務層例外依類型對應狀態碼"""
    status_code = next(
        (code for cls, code in STATUS_BY_ERROR.items() if isinstance(exc, cls)),
        500,
    )
    if status_code >= 500:
        logger.error("%s %s - %s", request.method, request.url.path, exc)
    else:
        logger.warning("%s %s - %d %s", request.method, request.url.path, status_code, exc)
    return _error(status_code, exc.message)


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    return _error(exc.status_code, str(exc.detail))


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """欄位缺漏或格式錯誤一律回 400，訊息取第一個錯誤"""
    errors = exc.errors()
    if errors:
        first = errors[0]
        location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
        message = f"{location}: {first.get('msg')}" if location else str(first.get("msg"))
    else:
        message = "請求格式錯誤"
    logger.warning("%s %s - 400 %s", request.method, request.url.path, message)
    return _error(400, message)


@app.exception_handler(SQLAlchemyError)
async def database_error_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    logger.error("資料庫錯誤 %s %s: %s", request.method, request.url.path, exc)
    return _error(
        500, "資料庫存取失敗", str(exc) if settings.is_development else None
    )


# === 全域錯誤處理 ===

@app.middleware("http")
async def error_handling_middleware(request: Request, call_next):
    """
    全域錯誤處理與請求日誌中介軟體

    - 記錄每個請求的處理時間
    - 捕獲未預期的例外並回傳統一格式
    """
    start_time = time.time()

    try:
        response = await call_next(request)

        process_time = time.time() - start_time
        logger.info(
            "%s %s - %d (%.3fs)",
            request.method,
            request.url.path,
            response.status_code,
            process_time,
        )

        response.headers["X-Process-Time"] = f"{process_time:.3f}"
        return response

    except Exception as e:
        process_time = time.time() - start_time
        logger.error(
            "%s %s - 500 (%.3fs) Error: %s",
            request.method,
            request.url.path,
            process_time,
            str(e),
        )
        return _error(
            500, "Internal Server Error", str(e) if settings.is_development else None
        )


# === 註冊路由 ===
app.include_router(api_router)


# === 健康檢查 ===

@app.get("/health", tags=["系統"])
async def health_check():
    """API 健康檢查"""
    return {
        "status": "healthy",
        "version": settings.app_version,
        "environment": settings.app_env,
    }
