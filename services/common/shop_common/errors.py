"""
共通エラー定義

ドメイン層はここで定義した例外を送出し、API 層の例外ハンドラが
ステータスコードと構造化されたエラーボディに変換する。

    {"error": {"code": "insufficient_stock", "message": "..."}}
"""

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class ServiceError(Exception):
    status_code: int = 500
    code: str = "internal_error"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class NotFoundError(ServiceError):
    """注文・商品が存在しない"""
    status_code = 404
    code = "not_found"


class InsufficientStockError(ServiceError):
    """要求数量が在庫を超えている"""
    status_code = 409
    code = "insufficient_stock"


class AuthenticationRequired(ServiceError):
    """Bearer トークンが無い、または検証に失敗した"""
    status_code = 401
    code = "unauthenticated"


class AuthorizationDenied(ServiceError):
    """ロール要件を満たしていない"""
    status_code = 403
    code = "forbidden"


class ServiceUnavailable(ServiceError):
    """依存サービスに到達できない"""
    status_code = 503
    code = "service_unavailable"


class ConfigurationError(ServiceError):
    """サービス自身の設定 (検証鍵など) が不正"""
    status_code = 500
    code = "configuration_error"


async def _handle_service_error(request: Request, exc: ServiceError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    headers = {"WWW-Authenticate": "Bearer"} if exc.status_code == 401 else None
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": {"code": exc.code, "message": exc.message}},
        headers=headers,
    )


def install_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ServiceError, _handle_service_error)
