"""
schemas/common.py

- 프로젝트 전반에서 재사용할 공용 스키마 모음
- Pydantic v2 기준
- 포함 내용:
  1) wire(camelCase) ↔ 파이썬(snake_case) 공용 베이스: CamelModel
  2) 에러 응답 표준: ErrorDetail, ErrorResponse
  3) 목록 응답: ListResult, 페이지네이션 메타: MetaInfo, make_meta()
  4) 선택 옵션: Option (드롭다운용 value/label 쌍)
"""

from __future__ import annotations

from datetime import datetime, timezone
from math import ceil
from typing import Any, Dict, Generic, List, Optional, TypeVar, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

# 사용자 id는 인증 서버가 문자열로 발급하기도 하므로 int/str 모두 허용
RecordId = Union[int, str]


# =========================================================
# 1) 공용 베이스
# =========================================================

class CamelModel(BaseModel):
    """백엔드는 camelCase, 파이썬 코드는 snake_case로 다룬다"""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )

    def to_wire(self, **kwargs) -> Dict[str, Any]:
        """요청 바디용 dict (camelCase, JSON 호환 타입)"""
        return self.model_dump(by_alias=True, mode="json", **kwargs)


# =========================================================
# 2) 에러 응답 표준
# =========================================================

class ErrorDetail(BaseModel):
    """에러 코드/메시지를 담는 최소 단위"""
    code: str = Field(..., description="에러 식별 코드 (예: INTERNAL_ERROR, NOT_FOUND)")
    message: str = Field(..., description="사람이 읽을 수 있는 에러 메시지")
    fields: Optional[Dict[str, List[str]]] = Field(
        default=None, description="필드별 검증 메시지 (VALIDATION_ERROR일 때만)"
    )


class ErrorResponse(BaseModel):
    """
    전역 에러 핸들러에서 내려주는 표준 에러 응답
    - middlewares/error_handler.py에서 이 스키마로 리턴
    """
    error: ErrorDetail
    generated_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="응답 생성 시각 (UTC)"
    )
    trace_id: Optional[str] = Field(
        default=None, description="요청 추적용 ID(X-Request-ID를 복사해 넣음)"
    )

    model_config = ConfigDict(extra="ignore")


# =========================================================
# 3) 목록 응답 / 페이지네이션 메타
# =========================================================

T = TypeVar("T")


class ListResult(BaseModel, Generic[T]):
    """Resource Client list() 결과: 현재 페이지 데이터 + 전체 건수"""
    data: List[T] = Field(default_factory=list)
    total: int = Field(0, ge=0)


class MetaInfo(BaseModel):
    """
    목록 응답에 포함시키는 메타 정보
    - total: 전체 개수
    - page/size: 현재 페이지와 크기
    - pages: 총 페이지 수
    - sort: 적용된 정렬 정보(선택)
    """
    total: int = Field(..., ge=0)
    page: int = Field(..., ge=1)
    size: int = Field(..., ge=1)
    pages: int = Field(..., ge=1)
    sort: Optional[str] = None

    model_config = ConfigDict(extra="ignore")


def make_meta(total: int, page: int, size: int, sort: Optional[str] = None) -> MetaInfo:
    """
    페이징 메타를 계산해서 생성
    - total 이 0이어도 pages는 최소 1로 보장(프론트 처리 단순화)
    """
    pages = max(1, ceil(total / max(1, size)))
    return MetaInfo(total=total, page=page, size=size, pages=pages, sort=sort)


# =========================================================
# 4) 선택 옵션
# =========================================================

class Option(BaseModel):
    """폼/필터 드롭다운에 그대로 쓰는 value/label 쌍"""
    value: RecordId
    label: str
