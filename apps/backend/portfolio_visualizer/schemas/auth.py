"""
認證相關 Schema

單一共用密碼登入，依密碼區分管理員與訪客。
"""

import enum

from pydantic import BaseModel


class UserRole(str, enum.Enum):
    """用戶角色"""
    ADMIN = "admin"
    GUEST = "guest"


class LoginRequest(BaseModel):
    """登入請求"""
    password: str = ""


class RoleResponse(BaseModel):
    """目前登入角色"""
    role: UserRole
