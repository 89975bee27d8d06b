from datetime import datetime
from typing import Literal, Optional

from pydantic import EmailStr, Field

from schemas.common import CamelModel, RecordId

# ✅ 역할 Enum (admin / teacher / student)
UserRole = Literal["admin", "teacher", "student"]


# ✅ 입력용: 사용자 생성 (POST 요청)
class UserCreate(CamelModel):
    name: str = Field(..., min_length=1)                  # 이름
    email: EmailStr                                       # 이메일 (표준 주소 형식만 허용)
    role: UserRole                                        # 역할 (필수)
    image: Optional[str] = None                           # 프로필 이미지 URL


# ✅ 수정용: 부분 수정 (PATCH)
class UserUpdate(CamelModel):
    name: Optional[str] = Field(default=None, min_length=1)
    email: Optional[EmailStr] = None
    role: Optional[UserRole] = None
    image: Optional[str] = None


# ✅ 출력용: 백엔드에서 받은 사용자 레코드
class User(UserCreate):
    id: RecordId                                          # 인증 서버 발급 id (문자열일 수 있음)
    email_verified: bool = False                          # 이메일 인증 여부
    created_at: datetime
    updated_at: datetime


# ✅ 관계 해석용 경량 투영 (학급 → 담당 교사)
class TeacherSummary(CamelModel):
    id: Optional[RecordId] = None
    name: str
    resolved: bool = True
