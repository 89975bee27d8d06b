"""
services/analytics_aggregator.py

- 대시보드 진입 시 분석 엔드포인트 6개를 동시에 호출하고 하나의 뷰 모델로 합친다
- 한 섹션이 실패해도 대시보드 전체는 실패하지 않는다 (섹션별 기본값 + "failed" 상태)
- 정원 사용률 구간 분류는 여기서 정확히 계산한다 (하한 포함, 상한 제외)
"""

import asyncio
import logging
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple

from config.settings import settings
from schemas.analytics import (
    AnalyticsOverview,
    CapacityCategories,
    CapacityStatus,
    ClassesByDepartment,
    ClassUtilization,
    DashboardView,
    EnrollmentTrend,
    RecentActivity,
    UserDistribution,
)
from schemas.classes import coerce_capacity
from services.errors import ConsoleConfigError, ConsoleError
from services.resource_client import ResourceClient

logger = logging.getLogger(__name__)

# ==========================================================
# 정원 사용률 구간
# ==========================================================
NEAR_FULL_THRESHOLD = 0.70
ALMOST_FULL_THRESHOLD = 0.90
FULL_THRESHOLD = 1.00


def classify_utilization(utilization: float) -> str:
    """
    사용률 → 구간
    - available : < 0.70
    - nearFull  : 0.70 ≤ u < 0.90
    - almostFull: 0.90 ≤ u < 1.00
    - full      : ≥ 1.00
    """
    if utilization >= FULL_THRESHOLD:
        return "full"
    if utilization >= ALMOST_FULL_THRESHOLD:
        return "almostFull"
    if utilization >= NEAR_FULL_THRESHOLD:
        return "nearFull"
    return "available"


def utilization_of(enrolled_count: int, capacity: Optional[int]) -> float:
    return enrolled_count / coerce_capacity(capacity)


def bucket_capacity(classes: Iterable[ClassUtilization]) -> CapacityCategories:
    counts = {"available": 0, "nearFull": 0, "almostFull": 0, "full": 0}
    for item in classes:
        counts[classify_utilization(utilization_of(item.enrolled_count, item.capacity))] += 1
    return CapacityCategories.model_validate(counts)


# ==========================================================
# 섹션별 파서 (data → 스키마)
# ==========================================================

def _parse_overview(data: Any) -> AnalyticsOverview:
    return AnalyticsOverview.model_validate(data or {})


def _parse_list(model) -> Callable[[Any], List[Any]]:
    def parse(data: Any) -> List[Any]:
        return [model.model_validate(item) for item in (data or [])]
    return parse


def _parse_capacity(data: Any) -> CapacityStatus:
    # 백엔드가 구간 집계를 주면 그대로, 학급별 원본을 주면 여기서 분류
    if isinstance(data, list):
        return CapacityStatus(categories=bucket_capacity(ClassUtilization.model_validate(i) for i in data))
    if isinstance(data, dict) and isinstance(data.get("classes"), list):
        items = (ClassUtilization.model_validate(i) for i in data["classes"])
        return CapacityStatus(categories=bucket_capacity(items))
    return CapacityStatus.model_validate(data or {})


# (섹션 이름, 경로, 파서)
SECTIONS: Tuple[Tuple[str, str, Callable[[Any], Any]], ...] = (
    ("overview", "/analytics/overview", _parse_overview),
    ("enrollment_trends", "/analytics/enrollment-trends", _parse_list(EnrollmentTrend)),
    ("classes_by_department", "/analytics/classes-by-department", _parse_list(ClassesByDepartment)),
    ("capacity_status", "/analytics/capacity-status", _parse_capacity),
    ("user_distribution", "/analytics/user-distribution", _parse_list(UserDistribution)),
    ("recent_activity", "/analytics/recent-activity", _parse_list(RecentActivity)),
)


def _is_empty(value: Any) -> bool:
    if isinstance(value, list):
        return not value
    if isinstance(value, CapacityStatus):
        return not any(value.categories.model_dump().values())
    if isinstance(value, AnalyticsOverview):
        return not any(value.model_dump().values())
    return value is None


def latest_activity(items: Iterable[RecentActivity], limit: int) -> List[RecentActivity]:
    """createdAt 내림차순 정렬 후 상한까지 자른다 (중복 제거 없음)"""
    ordered = sorted(items, key=lambda a: a.created_at, reverse=True)
    return ordered[:max(0, limit)]


class AnalyticsAggregator:
    def __init__(self, client: ResourceClient, recent_activity_limit: Optional[int] = None):
        if client is None:
            raise ConsoleConfigError("대시보드에 사용할 Resource Client가 없습니다")
        self.client = client
        self.recent_activity_limit = (
            settings.RECENT_ACTIVITY_LIMIT if recent_activity_limit is None else recent_activity_limit
        )

    async def _section(self, name: str, path: str, parse: Callable[[Any], Any]) -> Any:
        data = await self.client.get_data(path)
        value = parse(data)
        if name == "recent_activity":
            # 정렬 실패도 이 섹션만 failed 로 처리되도록 섹션 안에서 자른다
            value = latest_activity(value, self.recent_activity_limit)
        return value

    async def load(self) -> DashboardView:
        """6개 섹션 동시 조회 → 섹션별 독립 폴백"""
        results = await asyncio.gather(
            *(self._section(name, path, parse) for name, path, parse in SECTIONS),
            return_exceptions=True,
        )

        values: Dict[str, Any] = {}
        statuses: Dict[str, str] = {}
        for (name, path, _), result in zip(SECTIONS, results):
            if isinstance(result, (ConsoleError, ValueError, TypeError)):
                # ValueError에는 pydantic 스키마 불일치도 포함
                message = result.message if isinstance(result, ConsoleError) else str(result)
                logger.warning("대시보드 섹션 %s (%s) 로드 실패: %s", name, path, message)
                statuses[name] = "failed"
                continue
            if isinstance(result, BaseException):
                raise result
            values[name] = result
            statuses[name] = "empty" if _is_empty(result) else "ok"

        return DashboardView(**values, sections=statuses)
