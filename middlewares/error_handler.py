import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from schemas.common import ErrorDetail, ErrorResponse
from services.errors import ConsoleError, ValidationError

logger = logging.getLogger(__name__)


def _trace_id(request: Request):
    return getattr(request.state, "request_id", None)


def _render(request: Request, status_code: int, detail: ErrorDetail) -> JSONResponse:
    body = ErrorResponse(error=detail, trace_id=_trace_id(request))
    return JSONResponse(status_code=status_code, content=body.model_dump(mode="json", exclude_none=True))


def add_error_handlers(app: FastAPI):
    # ✅ 콘솔 코어 예외 → 상태 코드 + 표준 에러 포맷
    @app.exception_handler(ConsoleError)
    async def console_error_handler(request: Request, exc: ConsoleError):
        fields = exc.field_errors if isinstance(exc, ValidationError) and exc.field_errors else None
        return _render(request, exc.status_code, ErrorDetail(code=exc.code, message=exc.message, fields=fields))

    # ✅ 그 외 예상치 못한 예외
    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        logger.exception("처리되지 않은 예외: %s %s", request.method, request.url.path)
        return _render(request, 500, ErrorDetail(code="INTERNAL_ERROR", message=str(exc)))
