from datetime import datetime
from typing import Optional

from pydantic import Field

from schemas.common import CamelModel


# ✅ 입력용: 학과 생성 (POST 요청)
# → id / createdAt / updatedAt 은 서버가 발급하므로 제외
class DepartmentCreate(CamelModel):
    code: str = Field(..., min_length=1, max_length=20)   # 학과 약어 (예: CSE, BIO)
    name: str = Field(..., min_length=1)                  # 학과 이름
    description: Optional[str] = None                     # 학과 설명


# ✅ 수정용: 부분 수정 (PATCH) → 보낸 필드만 반영
class DepartmentUpdate(CamelModel):
    code: Optional[str] = Field(default=None, min_length=1, max_length=20)
    name: Optional[str] = Field(default=None, min_length=1)
    description: Optional[str] = None


# ✅ 출력용: 백엔드에서 받은 학과 레코드
class Department(DepartmentCreate):
    id: int                                               # 학과 고유 ID (PK)
    created_at: datetime                                  # 생성 시각
    updated_at: datetime                                  # 마지막 수정 시각


# ✅ 관계 해석용 경량 투영 (과목 → 학과)
class DepartmentSummary(CamelModel):
    id: Optional[int] = None
    name: str
    code: Optional[str] = None
    resolved: bool = True                                 # 조회 실패 시 False (placeholder)
