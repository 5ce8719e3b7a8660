"""
認證 API 路由

單一共用密碼登入：管理員密碼或訪客密碼，角色以 JWT 存在 httpOnly Cookie 中。
"""

import logging
import secrets
from datetime import datetime, timedelta, timezone

import jwt
from fastapi import APIRouter, Cookie, Depends, Response

from portfolio_visualizer.config import get_settings
from portfolio_visualizer.exceptions import (
    AuthenticationError,
    AuthorizationError,
    ValidationError,
)
from portfolio_visualizer.schemas.auth import LoginRequest, RoleResponse, UserRole
from portfolio_visualizer.schemas.common import ApiResponse, SuccessResult

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/auth", tags=["認證"])

settings = get_settings()


def _matches(password: str, expected: str) -> bool:
    return secrets.compare_digest(password.encode("utf-8"), expected.encode("utf-8"))


def verify_password(password: str) -> UserRole | None:
    """比對密碼並回傳角色；未設定管理員密碼時一律失敗"""
    if not settings.site_password:
        logger.warning("SITE_PASSWORD 未設定，無法登入")
        return None

    if _matches(password, settings.site_password):
        return UserRole.ADMIN
    if settings.guest_password and _matches(password, settings.guest_password):
        return UserRole.GUEST
    return None


def _create_token(role: UserRole) -> str:
    """產生 JWT Token"""
    now = datetime.now(timezone.utc)
    payload = {
        "role": role.value,
        "exp": now + timedelta(seconds=settings.auth_cookie_max_age),
        "iat": now,
    }
    return jwt.encode(payload, settings.secret_key, algorithm=settings.jwt_algorithm)


def _verify_token(token: str) -> UserRole | None:
    """驗證 JWT Token，回傳角色"""
    try:
        payload = jwt.decode(
            token, settings.secret_key, algorithms=[settings.jwt_algorithm]
        )
        return UserRole(payload.get("role"))
    except (jwt.PyJWTError, ValueError):
        return None


@router.post("", response_model=ApiResponse[RoleResponse])
async def login(data: LoginRequest, response: Response):
    """登入並設定認證 Cookie"""
    if not data.password:
        raise ValidationError("請輸入密碼", field="password")

    role = verify_password(data.password)
    if role is None:
        raise AuthenticationError("密碼錯誤")

    response.set_cookie(
        key=settings.auth_cookie_name,
        value=_create_token(role),
        max_age=settings.auth_cookie_max_age,
        httponly=True,
        secure=settings.is_production,
        samesite="lax",
        path="/",
    )
    logger.info("登入成功: %s", role.value)
    return ApiResponse(data=RoleResponse(role=role))


@router.delete("", response_model=ApiResponse[SuccessResult])
async def logout(response: Response):
    """登出（清除 Cookie）"""
    response.delete_cookie(key=settings.auth_cookie_name, path="/")
    return ApiResponse(data=SuccessResult())


# === 依賴注入：取得當前角色 ===

async def get_current_role(
    portfolio_auth: str | None = Cookie(default=None, alias=settings.auth_cookie_name),
) -> UserRole:
    """取得當前已登入的角色"""
    if not portfolio_auth:
        raise AuthenticationError("未登入")

    role = _verify_token(portfolio_auth)
    if role is None:
        raise AuthenticationError("登入已過期，請重新登入")
    return role


async def require_admin(role: UserRole = Depends(get_current_role)) -> UserRole:
    """所有寫入操作的權限檢查，先於任何欄位驗證執行"""
    if role != UserRole.ADMIN:
        raise AuthorizationError()
    return role


@router.get("/me", response_model=ApiResponse[RoleResponse])
async def me(role: UserRole = Depends(get_current_role)):
    """取得目前登入角色"""
    return ApiResponse(data=RoleResponse(role=role))
