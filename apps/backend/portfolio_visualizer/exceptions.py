"""
服務層例外

這些例外只描述業務錯誤，不含任何 HTTP 知識；
狀態碼對應由 main.py 的 exception handler 負責。

    ServiceError
    ├── ValidationError      欄位缺漏、格式錯誤、超賣
    ├── NotFoundError        持股 / 投資組合 / 交易紀錄不存在
    ├── AuthenticationError  未登入或密碼錯誤
    └── AuthorizationError   訪客嘗試寫入或讀取未開放的組合

資料庫錯誤（SQLAlchemyError）由 main.py 直接對應 500。
報價來源錯誤（price.base.ProviderError）不在此列：
報價閘道會吞下它並回傳預設值，永遠不會傳到呼叫端。
"""


class ServiceError(Exception):
    """服務層例外基礎類別"""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(self.message)

    def __str__(self) -> str:
        return self.message


class ValidationError(ServiceError):
    """輸入驗證失敗"""

    def __init__(self, message: str, field: str | None = None) -> None:
        self.field = field
        super().__init__(message)


class NotFoundError(ServiceError):
    """找不到指定資源"""

    def __init__(self, resource: str, resource_id: str) -> None:
        self.resource = resource
        self.resource_id = resource_id
        super().__init__(f"找不到{resource}: {resource_id}")


class AuthenticationError(ServiceError):
    """未登入或認證失敗"""
    pass


class AuthorizationError(ServiceError):
    """權限不足"""

    def __init__(self, message: str = "無權限執行此操作") -> None:
        super().__init__(message)
