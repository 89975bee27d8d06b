"""
config/settings.py

- .env에 정의한 환경변수를 읽어 콘솔 전역 설정으로 제공합니다.
- pydantic v2 / pydantic-settings v2 사용.
- 백엔드 저장소는 불투명한 HTTP 서비스이므로 DB 설정 대신 BACKEND_BASE_URL 하나로 연결합니다.
"""

from typing import List, Optional, Literal
from pydantic import field_validator, computed_field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # =========================
    # 앱/런타임
    # =========================
    ENV: Literal["dev", "stage", "prod"] = "dev"
    APP_TITLE: str = "School Admin Console API"
    APP_DESCRIPTION: str = "학과/과목/학급/사용자 관리 콘솔의 조회·관계 해석 레이어"
    APP_VERSION: str = "1.0.0"

    # =========================
    # CORS
    # =========================
    # 콤마(,)로 구분된 문자열 → List[str] 로 파싱
    CORS_ORIGINS: List[str] = ["http://localhost:5173"]

    @field_validator("CORS_ORIGINS", mode="before")
    @classmethod
    def _split_origins(cls, v):
        if isinstance(v, str):
            # "a,b , c" → ["a","b","c"]
            return [s.strip() for s in v.split(",") if s.strip()]
        return v

    # =========================
    # Backend API (데이터 저장소)
    # =========================
    BACKEND_BASE_URL: str = "http://localhost:8000"
    BACKEND_API_TOKEN: Optional[str] = None
    HTTP_TIMEOUT: float = 10.0
    HTTP_CONNECT_TIMEOUT: float = 5.0
    HTTP_RETRIES: int = 2                    # list/getOne 한정 재시도 횟수 (create는 재시도 금지)
    UPDATE_METHOD: Literal["PATCH", "PUT"] = "PATCH"

    @field_validator("BACKEND_BASE_URL")
    @classmethod
    def _strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")

    @computed_field  # type: ignore[misc]
    @property
    def API_BASE_URL(self) -> str:
        """리소스 엔드포인트 공통 프리픽스. 예: http://localhost:8000/api"""
        return f"{self.BACKEND_BASE_URL}/api"

    # =========================
    # 테이블 / 조회 정책
    # =========================
    LOOKUP_PAGE_SIZE: int = 100              # 드롭다운/관계 해석용 조회 상한
    LIST_PAGE_SIZE: int = 10                 # 목록 화면 기본 페이지 크기
    CLIENT_MODE_MAX_PAGE_SIZE: int = 1000    # client 페이징 모드에서 한 번에 받아오는 최대 건수
    SEARCH_DEBOUNCE_MS: int = 300            # 검색어 입력 디바운스 (튜닝 값)

    # =========================
    # 대시보드
    # =========================
    RECENT_ACTIVITY_LIMIT: int = 10

    # =========================
    # Logging / Misc
    # =========================
    LOG_LEVEL: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"

    # =========================
    # BaseSettings Config
    # =========================
    model_config = SettingsConfigDict(
        env_file=".env",               # .env에서 값 로드
        env_file_encoding="utf-8",
        case_sensitive=False,          # 환경변수 대소문자 비구분
        extra="ignore",                # 정의되지 않은 키는 무시
    )


# ✅ settings 객체를 통해 어디서든 접근 가능
settings = Settings()
