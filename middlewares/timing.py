import logging
import time
import uuid

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

logger = logging.getLogger("console.access")


class TimingMiddleware(BaseHTTPMiddleware):
    """요청 ID 부여 + 처리 시간 측정 (X-Request-ID, X-Latency-Ms 헤더)"""

    async def dispatch(self, request: Request, call_next):
        request_id = request.headers.get("X-Request-ID") or uuid.uuid4().hex
        request.state.request_id = request_id

        start = time.perf_counter()
        response = await call_next(request)
        latency_ms = int((time.perf_counter() - start) * 1000)

        response.headers["X-Request-ID"] = request_id
        response.headers["X-Latency-Ms"] = str(latency_ms)
        logger.info(
            "%s %s → %d (%dms) [%s]",
            request.method, request.url.path, response.status_code, latency_ms, request_id,
        )
        return response
