from datetime import datetime
from typing import Optional

from pydantic import Field

from schemas.common import CamelModel
from schemas.departments import DepartmentSummary


# ✅ 입력용: 과목 생성 (POST 요청)
class SubjectCreate(CamelModel):
    code: str = Field(..., min_length=1, max_length=20)   # 과목 코드 (예: BIO204)
    name: str = Field(..., min_length=1)                  # 과목 이름
    department_id: int = Field(..., gt=0)                 # 소속 학과 ID (FK)
    description: Optional[str] = None                     # 과목 설명


# ✅ 수정용: 부분 수정 (PATCH)
class SubjectUpdate(CamelModel):
    code: Optional[str] = Field(default=None, min_length=1, max_length=20)
    name: Optional[str] = Field(default=None, min_length=1)
    department_id: Optional[int] = Field(default=None, gt=0)
    description: Optional[str] = None


# ✅ 출력용: 백엔드에서 받은 과목 레코드
# - department: 백엔드 조인 결과가 내장된 경우 그대로 통과, 아니면 Relational Resolver가 채움
class Subject(SubjectCreate):
    id: int
    created_at: datetime
    updated_at: datetime
    department: Optional[DepartmentSummary] = None


# ✅ 관계 해석용 경량 투영 (학급 → 과목)
class SubjectSummary(CamelModel):
    id: Optional[int] = None
    name: str
    code: Optional[str] = None
    resolved: bool = True
