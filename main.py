from contextlib import asynccontextmanager
from typing import Optional
import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from config.settings import settings
from services.resource_client import ResourceClient

# ✅ 미들웨어 임포트
from middlewares.timing import TimingMiddleware
from middlewares.error_handler import add_error_handlers

# ✅ 라우터 임포트 (정적 경로 라우터를 동적 리소스 라우터보다 먼저 등록)
from routers import dashboard, options, resources


def configure_logging(level: str = settings.LOG_LEVEL):
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
    # HTTP 라이브러리 디버그 로그 비활성화
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)


def create_app(resource_client: Optional[ResourceClient] = None) -> FastAPI:
    """
    콘솔 API 앱 생성
    - resource_client를 넘기면 그대로 사용 (테스트에서 MockTransport 주입)
    - 넘기지 않으면 앱 시작 시 settings 기준으로 만들고 종료 시 닫는다
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        owned = resource_client is None
        app.state.resource_client = resource_client or ResourceClient()
        try:
            yield
        finally:
            if owned:
                await app.state.resource_client.aclose()

    app = FastAPI(
        title=settings.APP_TITLE,
        description=settings.APP_DESCRIPTION,
        version=settings.APP_VERSION,
        lifespan=lifespan,
    )

    # ✅ CORS 설정 (관리 콘솔 프론트엔드)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # ✅ 요청 ID + 지연 측정 미들웨어 (응답 헤더 X-Request-ID, X-Latency-Ms)
    app.add_middleware(TimingMiddleware)

    # ✅ 전역 에러 핸들러 등록 (일관된 JSON 에러 포맷)
    add_error_handlers(app)

    # ✅ /v1 프리픽스 라우터 등록
    app.include_router(dashboard.router, prefix="/v1")
    app.include_router(options.router,   prefix="/v1")
    app.include_router(resources.router, prefix="/v1")   # /{resource} 동적 경로는 마지막

    # ✅ 헬스체크 엔드포인트
    @app.get("/health")
    def health_check():
        return {"status": "ok", "message": "API is running", "backend": settings.BACKEND_BASE_URL}

    return app


configure_logging()
app = create_app()
