"""
services/errors.py

- 콘솔 코어 전반에서 쓰는 예외 계층
- 모든 예외는 ConsoleError를 상속하고, 콘솔 API 에러 핸들러가 status_code/code로 응답을 만든다.
"""

from typing import Dict, List, Optional


class ConsoleError(Exception):
    """콘솔 코어 예외의 공통 부모"""
    status_code: int = 500
    code: str = "CONSOLE_ERROR"

    def __init__(self, message: str = ""):
        super().__init__(message)
        self.message = message or self.__class__.__name__


class ConsoleConfigError(ConsoleError):
    """설정/구성 오류 (대시보드 전체를 중단시키는 유일한 동기 오류)"""
    code = "CONFIG_ERROR"


class NetworkError(ConsoleError):
    """전송 계층 실패 (오프라인, 타임아웃 등)"""
    status_code = 503
    code = "NETWORK_ERROR"


class ServerError(ConsoleError):
    """백엔드 5xx"""
    status_code = 502
    code = "SERVER_ERROR"

    def __init__(self, message: str = "", upstream_status: Optional[int] = None):
        super().__init__(message)
        self.upstream_status = upstream_status


class NotFoundError(ConsoleError):
    """단건 조회 404"""
    status_code = 404
    code = "NOT_FOUND"

    def __init__(self, resource: str, record_id):
        super().__init__(f"{resource}/{record_id} 레코드를 찾을 수 없습니다")
        self.resource = resource
        self.record_id = record_id


class ConflictError(ConsoleError):
    """종속 레코드가 있어 삭제할 수 없음"""
    status_code = 409
    code = "CONFLICT"

    def __init__(self, message: str = "", dependents: Optional[Dict[str, int]] = None):
        super().__init__(message)
        self.dependents = dependents or {}


class ValidationError(ConsoleError):
    """
    필드 단위 검증 실패
    - field_errors: {"email": ["Email is required"], ...} 형태 (키는 wire 이름, camelCase)
    - source: "payload"(전송 전 검증) / "server"(4xx 응답) / "response"(응답 스키마 불일치)
    """
    status_code = 422
    code = "VALIDATION_ERROR"

    def __init__(
        self,
        message: str = "",
        field_errors: Optional[Dict[str, List[str]]] = None,
        source: str = "payload",
    ):
        super().__init__(message or "입력값 검증에 실패했습니다")
        self.field_errors = field_errors or {}
        self.source = source

    @classmethod
    def from_pydantic(cls, exc, source: str = "payload") -> "ValidationError":
        """pydantic.ValidationError → 필드별 메시지 맵"""
        fields: Dict[str, List[str]] = {}
        for err in exc.errors():
            loc = ".".join(str(p) for p in err.get("loc", ())) or "__root__"
            fields.setdefault(loc, []).append(err.get("msg", "invalid value"))
        return cls(field_errors=fields, source=source)
