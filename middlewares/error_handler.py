import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from schemas.common import ErrorDetail, ErrorResponse
from services.grading.errors import GradingError

logger = logging.getLogger(__name__)


def _error_response(status_code: int, code: str, message: str) -> JSONResponse:
    body = ErrorResponse(error=ErrorDetail(code=code, message=message), latency_ms=0)
    return JSONResponse(status_code=status_code, content=body.model_dump(mode="json"))


def add_error_handlers(app: FastAPI):
    # ✅ 도메인 예외 → 예외별 상태 코드 + 에러 코드
    @app.exception_handler(GradingError)
    async def grading_error_handler(request: Request, exc: GradingError):
        logger.info(f"{request.method} {request.url.path} -> {exc.code}: {exc.message}")
        return _error_response(exc.status_code, exc.code, exc.message)

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        logger.exception(f"unhandled error on {request.method} {request.url.path}")
        return _error_response(500, "INTERNAL_ERROR", str(exc))
