from fastapi import Request

from services.errors import ConsoleConfigError
from services.relational_resolver import RelationalResolver
from services.resource_client import ResourceClient


# ✅ 앱 수명 동안 하나만 만든 Resource Client를 app.state에서 꺼내 주입 (모듈 전역 싱글톤 없음)
def get_resource_client(request: Request) -> ResourceClient:
    client = getattr(request.app.state, "resource_client", None)
    if client is None:
        raise ConsoleConfigError("Resource Client가 초기화되지 않았습니다")
    return client


# ✅ 관계 해석 캐시는 요청(=화면 하나) 단위
def get_resolver(request: Request) -> RelationalResolver:
    return RelationalResolver(get_resource_client(request))
