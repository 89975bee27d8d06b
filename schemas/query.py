from typing import Any, Literal, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field

FilterOperator = Literal["eq", "contains"]
SortOrder = Literal["asc", "desc"]
PaginationMode = Literal["server", "client"]


# ✅ 필터 조건 1건 (여러 건은 AND로 결합)
class FilterClause(BaseModel):
    field: str
    operator: FilterOperator = "eq"
    value: Any = None

    model_config = ConfigDict(frozen=True)


# ✅ 정렬 조건 (미지정 시 id 내림차순)
class SortSpec(BaseModel):
    field: str = "id"
    order: SortOrder = "desc"

    model_config = ConfigDict(frozen=True)


# ✅ 페이지 조건 (page_index는 1부터 시작)
class PaginationSpec(BaseModel):
    page_index: int = Field(1, ge=1)
    page_size: int = Field(10, ge=1)
    mode: PaginationMode = "server"

    model_config = ConfigDict(frozen=True)


# ✅ Query Builder 결과물 (불변)
# - request_page / request_size: 실제 네트워크로 보내는 값 (client 모드면 1 / 최대 크기)
class QueryDescriptor(BaseModel):
    filters: Tuple[FilterClause, ...] = ()
    sort: SortSpec = Field(default_factory=SortSpec)
    pagination: PaginationSpec = Field(default_factory=PaginationSpec)
    request_page: int = 1
    request_size: int = 10

    model_config = ConfigDict(frozen=True)

    def values_for(self, field: str) -> Tuple[Any, ...]:
        """같은 필드에 걸린 값들 (추가된 순서 유지)"""
        return tuple(c.value for c in self.filters if c.field == field)

    def last_value(self, field: str) -> Optional[Any]:
        """단일 값 전송만 지원하는 백엔드 기준: 마지막에 추가된 값이 이긴다"""
        values = self.values_for(field)
        return values[-1] if values else None
