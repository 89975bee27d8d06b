"""
services/record_views.py

- 상세(show) 화면: 단건 조회 + 관련 목록 (학과 → 소속 과목, 과목 → 개설 학급)
- 생성/수정 폼 제출: 검증 오류는 필드 메시지로, 그 외 오류는 일반 안내로 변환
  제출 중에는 두 번째 제출을 막는다 (create는 재시도하면 중복 생성 위험)
"""

import logging
from typing import Any, Dict, Optional, Tuple

from schemas.common import RecordId
from schemas.query import FilterClause, PaginationSpec
from schemas.views import FormResult, ShowState
from services.errors import ConsoleError, NotFoundError, ValidationError
from services.query_builder import build_query
from services.relational_resolver import RelationalResolver
from services.resource_client import Payload, ResourceClient

logger = logging.getLogger(__name__)

GENERIC_FAILURE_NOTICE = "저장하지 못했습니다. 잠시 후 다시 시도해 주세요."
DUPLICATE_SUBMIT_NOTICE = "이미 제출 중입니다."

# 상세 화면에서 함께 보여줄 관련 목록: 리소스 → (관련 리소스, 외래키 필드)
RELATED_LISTS: Dict[str, Tuple[Tuple[str, str], ...]] = {
    "departments": (("subjects", "departmentId"),),
    "subjects": (("classes", "subjectId"),),
}


async def load_show(
    client: ResourceClient,
    resource: str,
    record_id: RecordId,
    resolver: Optional[RelationalResolver] = None,
    related_page_size: int = 100,
) -> ShowState:
    """단건 상세 화면 상태 (loaded / not_found / error)"""
    try:
        record = await client.get_one(resource, record_id)
    except NotFoundError as e:
        return ShowState(status="not_found", resource=resource, record_id=record_id, message=e.message)
    except ConsoleError as e:
        logger.warning("%s/%s 상세 조회 실패: %s", resource, record_id, e.message)
        return ShowState(status="error", resource=resource, record_id=record_id, message=e.message)

    if resolver is not None:
        record = await resolver.resolve_one(resource, record)

    state = ShowState(status="loaded", resource=resource, record_id=record_id, record=record)
    for related, fk in RELATED_LISTS.get(resource, ()):
        query = build_query(
            [FilterClause(field=fk, value=record_id)],
            pagination=PaginationSpec(page_index=1, page_size=related_page_size),
        )
        try:
            rows = (await client.list(related, query)).data
            if resolver is not None:
                rows = await resolver.resolve(related, rows)
        except ConsoleError as e:
            # 관련 목록 실패는 본문 표시를 막지 않는다
            logger.warning("%s/%s 관련 %s 조회 실패: %s", resource, record_id, related, e.message)
            state.related_errors[related] = e.message
            rows = []
        state.related[related] = rows
    return state


class FormSubmitter:
    """생성/수정 폼 하나에 대응하는 제출기"""

    def __init__(self, client: ResourceClient, resource: str):
        self.client = client
        self.resource = resource
        self._in_flight = False

    @property
    def submitting(self) -> bool:
        return self._in_flight

    async def submit(self, payload: Payload, record_id: Optional[RecordId] = None) -> FormResult:
        if self._in_flight:
            return FormResult(ok=False, notice=DUPLICATE_SUBMIT_NOTICE, payload=payload, duplicate=True)

        self._in_flight = True
        try:
            if record_id is None:
                record: Any = await self.client.create(self.resource, payload)
            else:
                record = await self.client.update(self.resource, record_id, payload)
        except ValidationError as e:
            return FormResult(
                ok=False,
                field_errors=e.field_errors,
                notice=None if e.field_errors else e.message,
                payload=payload,
            )
        except NotFoundError as e:
            return FormResult(ok=False, notice=e.message, payload=payload, not_found=True)
        except ConsoleError as e:
            logger.warning("%s 저장 실패: %s", self.resource, e.message)
            return FormResult(ok=False, notice=GENERIC_FAILURE_NOTICE, payload=payload)
        finally:
            self._in_flight = False
        return FormResult(ok=True, record=record)
