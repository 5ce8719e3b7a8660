"""
共用 Schema 定義

所有 API 皆以 {success, data, message} 包裝成功回應，
以 {success: false, error} 包裝錯誤回應。
"""

from typing import Generic, TypeVar

from pydantic import BaseModel

T = TypeVar("T")


class ApiResponse(BaseModel, Generic[T]):
    """統一 API 回應格式"""
    success: bool = True
    data: T | None = None
    message: str = "OK"


class ErrorResponse(BaseModel):
    """錯誤回應格式"""
    success: bool = False
    error: str
    detail: str | None = None


class SuccessResult(BaseModel):
    """刪除等無回傳資料的寫入操作"""
    success: bool = True
