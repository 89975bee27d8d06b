"""
services/table_controller.py

- 목록 화면 하나의 상태(검색어, 선택 필터, 정렬, 페이지)를 소유하고
  상태가 바뀔 때마다 Query Builder → Resource Client → (Relational Resolver) 순서로 다시 조회한다
- 늦게 도착한 이전 응답은 버린다 (last-writer-wins): 상태 변경마다 generation을 올리고,
  응답이 도착했을 때 generation이 바뀌었으면 폐기
- 검색어 입력은 디바운스로 묶어서 한 번만 조회
- client 페이징 모드에서는 페이지 이동 시 네트워크 호출 없이 로컬에서 다시 자른다
"""

import asyncio
import logging
from typing import Any, Dict, Iterable, List, Optional

from config.settings import settings
from schemas.query import FilterClause, PaginationMode, PaginationSpec, QueryDescriptor, SortOrder, SortSpec
from services.errors import ConsoleError
from services.query_builder import build_query, page_count, slice_page
from services.relational_resolver import RelationalResolver, Strategy
from services.resource_client import ResourceClient

logger = logging.getLogger(__name__)

# 드롭다운의 "전체" 선택 = 제한 없음
ALL_VALUES = ("all", "", None)


class TableController:
    def __init__(
        self,
        client: ResourceClient,
        resource: str,
        *,
        resolver: Optional[RelationalResolver] = None,
        strategy: Strategy = "auto",
        page_size: Optional[int] = None,
        mode: PaginationMode = "server",
        search_field: str = "name",
        permanent_filters: Iterable[FilterClause] = (),
        sort: Optional[SortSpec] = None,
        debounce_ms: Optional[int] = None,
    ):
        self.client = client
        self.resource = resource
        self.resolver = resolver
        self.strategy = strategy
        self.page_size = page_size or settings.LIST_PAGE_SIZE
        self.mode = mode
        self.search_field = search_field
        self.permanent_filters = tuple(permanent_filters)
        self.debounce = (settings.SEARCH_DEBOUNCE_MS if debounce_ms is None else debounce_ms) / 1000

        # 화면 상태
        self.search_text = ""
        self.selected: Dict[str, Any] = {}
        self.sort = sort or SortSpec()
        self.page = 1

        # 화면에 보이는 결과
        self.rows: List[Any] = []
        self.total = 0
        self.loading = False
        self.error: Optional[ConsoleError] = None
        self.query: Optional[QueryDescriptor] = None
        self.request_count = 0

        self._all_rows: List[Any] = []
        self._generation = 0
        self._debounce_task: Optional[asyncio.Task] = None

    # ===============================================================
    # 상태 → 쿼리
    # ===============================================================

    def current_filters(self) -> List[FilterClause]:
        clauses = list(self.permanent_filters)
        if self.search_text:
            clauses.append(FilterClause(field=self.search_field, operator="contains", value=self.search_text))
        for field, value in self.selected.items():
            if value in ALL_VALUES:
                continue
            clauses.append(FilterClause(field=field, operator="eq", value=value))
        return clauses

    def current_query(self) -> QueryDescriptor:
        return build_query(
            self.current_filters(),
            self.sort,
            PaginationSpec(page_index=self.page, page_size=self.page_size, mode=self.mode),
        )

    @property
    def page_count(self) -> int:
        return page_count(self.total, self.page_size)

    # ===============================================================
    # 상태 변경
    # ===============================================================

    async def refresh(self) -> bool:
        self._generation += 1
        return await self._fetch(self._generation)

    async def set_filter(self, field: str, value: Any) -> bool:
        self.selected[field] = value
        self.page = 1
        return await self.refresh()

    async def clear_filters(self) -> bool:
        self.selected.clear()
        self.search_text = ""
        self.page = 1
        return await self.refresh()

    async def set_sort(self, field: str, order: SortOrder = "asc") -> bool:
        self.sort = SortSpec(field=field, order=order)
        self.page = 1
        return await self.refresh()

    async def set_page_size(self, page_size: int) -> bool:
        self.page_size = max(1, page_size)
        self.page = 1
        if self.mode == "client" and self.query is not None:
            self._apply_client_page()
            return True
        return await self.refresh()

    async def set_page(self, page: int) -> bool:
        """
        페이지 이동
        - server: 현재 페이지를 요청에 실어 다시 조회
        - client: 이미 받아둔 전체 집합에서 다시 자르기만 한다 (네트워크 호출 없음)
        """
        self.page = max(1, page)
        if self.mode == "client" and self.query is not None:
            self._apply_client_page()
            return True
        return await self.refresh()

    def set_search(self, text: str) -> asyncio.Task:
        """
        검색어 변경 (디바운스)
        - 대기 중인 이전 검색은 취소되고 마지막 입력만 조회된다
        - 반환된 task(또는 settle())를 기다리면 조회 완료 시점을 알 수 있다
        """
        self.search_text = (text or "").strip()
        self.page = 1
        self._generation += 1
        generation = self._generation
        if self._debounce_task is not None and not self._debounce_task.done():
            self._debounce_task.cancel()
        self._debounce_task = asyncio.get_running_loop().create_task(self._debounced_fetch(generation))
        return self._debounce_task

    async def settle(self) -> None:
        """대기 중인 디바운스 조회가 끝날 때까지 기다린다"""
        task = self._debounce_task
        if task is None:
            return
        try:
            await task
        except asyncio.CancelledError:
            pass

    def close(self) -> None:
        if self._debounce_task is not None and not self._debounce_task.done():
            self._debounce_task.cancel()

    # ===============================================================
    # 조회
    # ===============================================================

    async def _debounced_fetch(self, generation: int) -> bool:
        await asyncio.sleep(self.debounce)
        if generation != self._generation:
            return False
        return await self._fetch(generation)

    async def _fetch(self, generation: int) -> bool:
        query = self.current_query()
        self.loading = True
        self.request_count += 1
        try:
            result = await self.client.list(self.resource, query)
            rows = result.data
            if self.resolver is not None:
                rows = await self.resolver.resolve(self.resource, rows, self.strategy)
        except ConsoleError as e:
            if generation != self._generation:
                logger.debug("%s 이전 요청 실패 무시 (generation %d)", self.resource, generation)
                return False
            logger.warning("%s 목록 조회 실패: %s", self.resource, e.message)
            self.error = e
            self.rows, self._all_rows, self.total = [], [], 0
            self.loading = False
            return False

        if generation != self._generation:
            logger.debug(
                "%s 늦게 도착한 응답 폐기 (generation %d, 현재 %d)",
                self.resource, generation, self._generation,
            )
            return False

        self.error = None
        self.query = query
        self.loading = False
        if self.mode == "client":
            if result.total > len(rows):
                logger.info("%s client 모드 조회가 %d건에서 잘림 (전체 %d건)", self.resource, len(rows), result.total)
            self._all_rows = rows
            self.total = len(rows)
            self._apply_client_page()
        else:
            self.rows = rows
            self.total = result.total
        return True

    def _apply_client_page(self) -> None:
        last = page_count(len(self._all_rows), self.page_size)
        self.page = min(self.page, last)
        self.rows = slice_page(self._all_rows, self.page, self.page_size)
