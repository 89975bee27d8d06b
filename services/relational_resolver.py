"""
services/relational_resolver.py

- 외래키만 가진 레코드(학급, 과목)에 관련 엔티티의 경량 투영을 붙여 화면용 데이터로 만든다
  * 학급.subjectId  → {id, name, code}
  * 학급.teacherId  → {id, name}   (role=teacher 사용자만)
  * 과목.departmentId → {id, name, code}
- 해석 전략
  1) backend: 백엔드가 이미 subject/teacher를 내장해서 준 경우 그대로 통과
  2) client : 관련 리소스를 병렬 조회(페이지 상한 LOOKUP_PAGE_SIZE)해서 id → 요약 맵으로 병합
  3) auto   : 내장 객체가 있으면 쓰고 없으면 client 방식
- 해석 불가한 외래키는 예외 대신 placeholder(resolved=False)로 표시
- 조회 결과 캐시는 resolver 인스턴스(=화면 하나)의 수명 동안만 유지
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, List, Literal, Optional, Sequence, Tuple, Type

from pydantic import BaseModel

from config.settings import settings
from schemas.common import Option
from schemas.departments import DepartmentSummary
from schemas.query import FilterClause, PaginationSpec
from schemas.subjects import SubjectSummary
from schemas.users import TeacherSummary
from services.errors import ConsoleError
from services.query_builder import build_query
from services.resource_client import ResourceClient

logger = logging.getLogger(__name__)

Strategy = Literal["auto", "backend", "client"]
UNRESOLVED_NAME = "Unknown"

TEACHER_FILTER = (FilterClause(field="role", operator="eq", value="teacher"),)


@dataclass(frozen=True)
class Relation:
    attribute: str                          # 붙일 속성 이름 (subject)
    foreign_key: str                        # 외래키 속성 이름 (subject_id)
    target: str                             # 관련 리소스 (subjects)
    summary: Type[BaseModel]                # 투영 스키마
    filters: Tuple[FilterClause, ...] = ()  # 관련 리소스 조회 조건


RELATIONS: Dict[str, Tuple[Relation, ...]] = {
    "classes": (
        Relation("subject", "subject_id", "subjects", SubjectSummary),
        Relation("teacher", "teacher_id", "users", TeacherSummary, TEACHER_FILTER),
    ),
    "subjects": (
        Relation("department", "department_id", "departments", DepartmentSummary),
    ),
}


@dataclass(frozen=True)
class OptionSource:
    target: str
    filters: Tuple[FilterClause, ...]
    label: Callable[[Any], str]


# ✅ 폼 드롭다운 원천 (value=id, label=표시 이름)
OPTION_SOURCES: Dict[str, OptionSource] = {
    "departments": OptionSource("departments", (), lambda r: r.name),
    "subjects": OptionSource("subjects", (), lambda r: f"{r.name} ({r.code})"),
    "teachers": OptionSource("users", TEACHER_FILTER, lambda r: r.name),
}


def _key(value: Any) -> str:
    # teacherId가 "12" / 12 로 섞여 와도 같은 키로 본다
    return str(value)


def placeholder(summary_cls: Type[BaseModel], foreign_key: Any) -> BaseModel:
    """해석되지 않은 외래키 표시용 요약"""
    return summary_cls(id=foreign_key, name=UNRESOLVED_NAME, resolved=False)


def project(summary_cls: Type[BaseModel], record: BaseModel) -> BaseModel:
    values = {
        name: getattr(record, name, None)
        for name in summary_cls.model_fields
        if name != "resolved"
    }
    return summary_cls(**values)


class RelationalResolver:
    """화면 하나의 수명 동안 쓰는 관계 해석기"""

    def __init__(self, client: ResourceClient, lookup_page_size: Optional[int] = None):
        self.client = client
        self.lookup_page_size = lookup_page_size or settings.LOOKUP_PAGE_SIZE
        self._cache: Dict[Tuple[str, Tuple[FilterClause, ...]], List[BaseModel]] = {}
        self._pending: Dict[Tuple[str, Tuple[FilterClause, ...]], asyncio.Task] = {}

    def invalidate(self) -> None:
        """캐시를 비운다. 진행 중인 조회 결과는 캐시에 남기지 않는다"""
        self._cache.clear()
        self._pending.clear()

    # ===============================================================
    # 관련 리소스 조회 (캐시)
    # ===============================================================

    async def lookup(self, target: str, filters: Sequence[FilterClause] = ()) -> List[BaseModel]:
        """
        관련 리소스 목록 (페이지 상한까지만)
        - 조회 실패 시 빈 목록 → 해당 외래키는 전부 placeholder로 표시된다
        - 같은 조회가 동시에 여러 번 요청되면 한 번만 보낸다
        - 기다리던 호출 하나가 취소되어도 공유 조회는 계속된다 (shield)
        """
        key = (target, tuple(filters))
        if key in self._cache:
            return self._cache[key]
        task = self._pending.get(key)
        if task is None:
            task = asyncio.ensure_future(self._fill(key))
            self._pending[key] = task
        return await asyncio.shield(task)

    async def _fill(self, key: Tuple[str, Tuple[FilterClause, ...]]) -> List[BaseModel]:
        current = asyncio.current_task()
        try:
            records = await self._load(*key)
            if self._pending.get(key) is current:
                self._cache[key] = records
            return records
        finally:
            if self._pending.get(key) is current:
                del self._pending[key]

    async def _load(self, target: str, filters: Tuple[FilterClause, ...]) -> List[BaseModel]:
        query = build_query(
            filters, pagination=PaginationSpec(page_index=1, page_size=self.lookup_page_size)
        )
        try:
            result = await self.client.list(target, query)
        except ConsoleError as e:
            logger.warning("%s 관계 조회 실패, placeholder로 표시: %s", target, e.message)
            return []
        if result.total > len(result.data):
            logger.info(
                "%s 관계 조회가 상한(%d건)에서 잘림 (전체 %d건)",
                target, self.lookup_page_size, result.total,
            )
        return result.data

    async def _index(self, relation: Relation) -> Dict[str, BaseModel]:
        records = await self.lookup(relation.target, relation.filters)
        return {_key(r.id): r for r in records}

    # ===============================================================
    # 해석 (denormalization)
    # ===============================================================

    async def resolve(
        self,
        resource: str,
        records: Iterable[BaseModel],
        strategy: Strategy = "auto",
    ) -> List[BaseModel]:
        records = list(records)
        relations = RELATIONS.get(resource, ())
        if strategy == "backend" or not relations or not records:
            return records

        needed = [
            rel for rel in relations
            if strategy == "client" or any(getattr(r, rel.attribute, None) is None for r in records)
        ]
        if not needed:
            return records

        indexes = await asyncio.gather(*(self._index(rel) for rel in needed))
        return [self._merge(record, needed, indexes, strategy) for record in records]

    async def resolve_one(self, resource: str, record: BaseModel, strategy: Strategy = "auto") -> BaseModel:
        resolved = await self.resolve(resource, [record], strategy)
        return resolved[0]

    def _merge(
        self,
        record: BaseModel,
        relations: Sequence[Relation],
        indexes: Sequence[Dict[str, BaseModel]],
        strategy: Strategy,
    ) -> BaseModel:
        updates = {}
        for relation, index in zip(relations, indexes):
            if strategy == "auto" and getattr(record, relation.attribute, None) is not None:
                continue
            fk = getattr(record, relation.foreign_key, None)
            related = index.get(_key(fk)) if fk is not None else None
            if related is None:
                updates[relation.attribute] = placeholder(relation.summary, fk)
            else:
                updates[relation.attribute] = project(relation.summary, related)
        return record.model_copy(update=updates) if updates else record

    # ===============================================================
    # 드롭다운 / 필터 옵션
    # ===============================================================

    async def options(self, source: str) -> List[Option]:
        """생성/수정 폼용 선택지: value=id, label=표시 이름"""
        spec = OPTION_SOURCES[source]
        records = await self.lookup(spec.target, spec.filters)
        return [Option(value=r.id, label=spec.label(r)) for r in records]

    async def filter_options(self, source: str) -> List[Option]:
        """
        목록 필터용 선택지: value=이름
        - 학급 목록의 "과목으로 필터"는 학급 목록이 아니라 로드된 과목 목록에서 만든다
        """
        spec = OPTION_SOURCES[source]
        records = await self.lookup(spec.target, spec.filters)
        seen = set()
        options = []
        for r in records:
            if r.name in seen:
                continue
            seen.add(r.name)
            options.append(Option(value=r.name, label=r.name))
        return options
