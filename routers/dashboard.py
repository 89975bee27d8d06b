from fastapi import APIRouter, Depends

from dependencies.clients import get_resource_client
from services.analytics_aggregator import AnalyticsAggregator
from services.resource_client import ResourceClient

router = APIRouter(prefix="/dashboard", tags=["대시보드"])


# ==========================================================
# [DASHBOARD] 분석 섹션 6종을 한 번에 반환
# - 섹션 하나가 실패해도 나머지는 정상 표시 (sections 에 ok / empty / failed)
# ==========================================================
@router.get("")
async def get_dashboard(client: ResourceClient = Depends(get_resource_client)):
    view = await AnalyticsAggregator(client).load()
    failed = [name for name, status in view.sections.items() if status == "failed"]
    return {
        "success": True,
        "data": view.model_dump(by_alias=True, mode="json"),
        "message": "대시보드 조회 완료" if not failed else f"일부 섹션 로드 실패: {', '.join(failed)}",
    }
