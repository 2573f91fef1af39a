# storefront/errors.py

from enum import Enum

from fastapi import Request, status
from fastapi.responses import JSONResponse


class ErrorCode(str, Enum):
    """
    서비스 계층에서 쓰는 에러 코드.
    """

    BAD_REQUEST = "bad_request"
    BUSINESS_RULE = "business_rule"
    UNAUTHORIZED = "unauthorized"
    FORBIDDEN = "forbidden"
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    PAYMENT_FAILED = "payment_failed"
    GATEWAY_ERROR = "gateway_error"
    INTERNAL = "internal_error"


STATUS_BY_CODE = {
    ErrorCode.BAD_REQUEST: status.HTTP_400_BAD_REQUEST,
    ErrorCode.BUSINESS_RULE: status.HTTP_400_BAD_REQUEST,
    ErrorCode.UNAUTHORIZED: status.HTTP_401_UNAUTHORIZED,
    ErrorCode.FORBIDDEN: status.HTTP_403_FORBIDDEN,
    ErrorCode.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorCode.CONFLICT: status.HTTP_409_CONFLICT,
    ErrorCode.PAYMENT_FAILED: status.HTTP_402_PAYMENT_REQUIRED,
    ErrorCode.GATEWAY_ERROR: status.HTTP_502_BAD_GATEWAY,
    ErrorCode.INTERNAL: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


class AppError(Exception):
    """
    도메인 에러. 핸들러가 {success: false, error, code} 로 응답한다.
    """

    def __init__(self, code: ErrorCode, message: str, data: dict | None = None):
        super().__init__(message)
        self.code = code
        self.message = message
        self.data = data or {}

    @property
    def status_code(self) -> int:
        return STATUS_BY_CODE.get(self.code, status.HTTP_500_INTERNAL_SERVER_ERROR)


def not_found(message: str) -> AppError:
    return AppError(ErrorCode.NOT_FOUND, message)


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    body = {"success": False, "error": exc.message, "code": exc.code.value}
    if exc.data:
        body.update(exc.data)
    return JSONResponse(status_code=exc.status_code, content=body)
