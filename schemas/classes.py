from datetime import datetime
from typing import Literal, Optional

from pydantic import Field, field_validator

from schemas.common import CamelModel, RecordId
from schemas.subjects import SubjectSummary
from schemas.users import TeacherSummary

# ✅ 학급 상태 Enum
ClassStatus = Literal["active", "inactive"]

DEFAULT_CAPACITY = 50


def coerce_capacity(value) -> int:
    """
    정원 값을 양의 정수로 보정
    - 없음/0/음수/숫자가 아닌 값 → 기본값 50
    - "30", 30.0 처럼 숫자로 읽히는 값은 정수로 변환
    """
    if value is None or isinstance(value, bool):
        return DEFAULT_CAPACITY
    try:
        number = int(float(value))
    except (TypeError, ValueError):
        return DEFAULT_CAPACITY
    return number if number > 0 else DEFAULT_CAPACITY


# ✅ 입력용: 학급 생성 (POST 요청)
class ClassCreate(CamelModel):
    name: str = Field(..., min_length=1)                  # 학급 이름 (예: Fall 2024 - Section A)
    subject_id: int = Field(..., gt=0)                    # 과목 ID (FK)
    teacher_id: RecordId                                  # 담당 교사 ID (FK → User)
    capacity: int = DEFAULT_CAPACITY                      # 정원 (기본 50)
    status: ClassStatus = "active"                        # 운영 상태
    description: Optional[str] = None
    banner_url: Optional[str] = None                      # 배너 이미지 URL
    banner_cld_pub_id: Optional[str] = None               # 이미지 호스팅 public id

    @field_validator("capacity", mode="before")
    @classmethod
    def _default_capacity(cls, v):
        return coerce_capacity(v)


# ✅ 수정용: 부분 수정 (PATCH)
# - capacity는 보낸 경우에만 보정 (보내지 않으면 서버 값 유지)
class ClassUpdate(CamelModel):
    name: Optional[str] = Field(default=None, min_length=1)
    subject_id: Optional[int] = Field(default=None, gt=0)
    teacher_id: Optional[RecordId] = None
    capacity: Optional[int] = None
    status: Optional[ClassStatus] = None
    description: Optional[str] = None
    banner_url: Optional[str] = None
    banner_cld_pub_id: Optional[str] = None

    @field_validator("capacity", mode="before")
    @classmethod
    def _default_capacity(cls, v):
        return coerce_capacity(v)


# ✅ 출력용: 백엔드에서 받은 학급 레코드
# - subject / teacher: 백엔드 조인으로 내장되었거나 Relational Resolver가 채우는 투영
class ClassRecord(ClassCreate):
    id: int
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    subject: Optional[SubjectSummary] = None
    teacher: Optional[TeacherSummary] = None
