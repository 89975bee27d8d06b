"""
schemas/analytics.py

- 대시보드 분석 엔드포인트 6종의 응답 스키마 + 대시보드 뷰 모델
- 각 섹션의 기본값(default)이 곧 "데이터 없음" 폴백 상태
"""

from datetime import datetime, timezone
from typing import Dict, List, Literal, Optional

from pydantic import Field, field_validator

from schemas.common import CamelModel, RecordId

SectionStatus = Literal["ok", "empty", "failed"]
ActivityType = Literal["enrollment", "class", "user"]


# ✅ 상단 요약 카드
class AnalyticsOverview(CamelModel):
    total_users: int = 0
    total_classes: int = 0
    active_classes: int = 0
    total_enrollments: int = 0
    total_departments: int = 0
    total_subjects: int = 0


# ✅ 수강 추이 (최근 30일 시계열)
class EnrollmentTrend(CamelModel):
    date: str
    count: int = 0


# ✅ 학과별 학급 수
class ClassesByDepartment(CamelModel):
    department_name: str
    class_count: int = 0


# ✅ 정원 사용률 구간 (available <70%, nearFull 70~90%, almostFull 90~100%, full ≥100%)
class CapacityCategories(CamelModel):
    available: int = 0
    near_full: int = 0
    almost_full: int = 0
    full: int = 0


class CapacityStatus(CamelModel):
    categories: CapacityCategories = Field(default_factory=CapacityCategories)


# ✅ 정원 계산용 학급별 수강 인원 (백엔드가 categories 대신 원본을 줄 때)
class ClassUtilization(CamelModel):
    class_id: Optional[int] = None
    enrolled_count: int = 0
    capacity: Optional[int] = None


# ✅ 역할별 사용자 분포
class UserDistribution(CamelModel):
    role: str
    count: int = 0


# ✅ 최근 활동 피드 (type + id 가 표시용 고유 키)
class RecentActivity(CamelModel):
    type: ActivityType
    id: RecordId
    description: str
    created_at: datetime

    @field_validator("created_at")
    @classmethod
    def _assume_utc(cls, v: datetime) -> datetime:
        # 오프셋 없는 시각은 UTC로 본다 (오프셋 있는 값과 정렬 가능하도록)
        return v if v.tzinfo is not None else v.replace(tzinfo=timezone.utc)


# ✅ 대시보드 뷰 모델 (섹션별 독립 폴백)
class DashboardView(CamelModel):
    overview: AnalyticsOverview = Field(default_factory=AnalyticsOverview)
    enrollment_trends: List[EnrollmentTrend] = Field(default_factory=list)
    classes_by_department: List[ClassesByDepartment] = Field(default_factory=list)
    capacity_status: CapacityStatus = Field(default_factory=CapacityStatus)
    user_distribution: List[UserDistribution] = Field(default_factory=list)
    recent_activity: List[RecentActivity] = Field(default_factory=list)
    sections: Dict[str, SectionStatus] = Field(default_factory=dict)
