"""
services/query_builder.py

- 테이블의 필터/정렬/페이지 상태 → Resource Client가 보낼 수 있는 QueryDescriptor
- QueryDescriptor → httpx 쿼리 파라미터 (filter[field]=value&sort=field:order&page=N&pageSize=M)
"""

from math import ceil
from typing import Any, Iterable, List, Optional, Sequence, Tuple, Union

from config.settings import settings
from schemas.query import FilterClause, PaginationSpec, QueryDescriptor, SortSpec

ClauseLike = Union[FilterClause, dict]


def _is_blank(value: Any) -> bool:
    # 빈 문자열 = "검색어 지움" → 제한 없음
    if value is None:
        return True
    return isinstance(value, str) and value.strip() == ""


def normalize_filters(filters: Optional[Iterable[ClauseLike]]) -> Tuple[FilterClause, ...]:
    """
    필터 목록 정리
    - dict도 허용 ({"field": ..., "operator": ..., "value": ...})
    - 값이 비어 있는 조건은 버린다
    - 같은 필드의 조건은 중복 제거하지 않고 추가 순서를 유지
    - 필드 이름 기준 안정 정렬 → 필드 간 순서가 달라도 같은 descriptor
    """
    clauses = []
    for raw in filters or ():
        clause = raw if isinstance(raw, FilterClause) else FilterClause(**raw)
        if _is_blank(clause.value):
            continue
        clauses.append(clause)
    return tuple(sorted(clauses, key=lambda c: c.field))


def build_query(
    filters: Optional[Iterable[ClauseLike]] = None,
    sort: Optional[SortSpec] = None,
    pagination: Optional[PaginationSpec] = None,
    client_max_page_size: Optional[int] = None,
) -> QueryDescriptor:
    pagination = pagination or PaginationSpec()
    if pagination.mode == "client":
        # 전체 매칭 집합을 한 번에 받아오고 페이지 자르기는 로컬에서
        request_page = 1
        request_size = client_max_page_size or settings.CLIENT_MODE_MAX_PAGE_SIZE
    else:
        request_page = pagination.page_index
        request_size = pagination.page_size

    return QueryDescriptor(
        filters=normalize_filters(filters),
        sort=sort or SortSpec(),
        pagination=pagination,
        request_page=request_page,
        request_size=request_size,
    )


def to_params(query: QueryDescriptor) -> List[Tuple[str, str]]:
    """
    descriptor → 쿼리 파라미터 리스트
    - eq: filter[field]=value / contains: filter[field][contains]=value
    - 같은 필드가 여러 번 나오면 파라미터를 반복해서 모두 보낸다
    """
    params: List[Tuple[str, str]] = []
    for clause in query.filters:
        key = f"filter[{clause.field}]"
        if clause.operator != "eq":
            key = f"{key}[{clause.operator}]"
        params.append((key, _stringify(clause.value)))
    params.append(("sort", f"{query.sort.field}:{query.sort.order}"))
    params.append(("page", str(query.request_page)))
    params.append(("pageSize", str(query.request_size)))
    return params


def _stringify(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def slice_page(records: Sequence[Any], page_index: int, page_size: int) -> List[Any]:
    """client 모드: 로컬에 받아둔 전체 집합에서 현재 페이지만 잘라낸다"""
    start = (max(1, page_index) - 1) * page_size
    return list(records[start:start + page_size])


def page_count(total: int, page_size: int) -> int:
    """총 페이지 수 (0건이어도 최소 1)"""
    return max(1, ceil(total / max(1, page_size)))
