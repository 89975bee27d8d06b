"""Table Controller: 필터/검색/정렬/페이지 상태, 늦은 응답 폐기, 디바운스, client 페이징"""

import asyncio

from fake_backend import make_client
from schemas.query import FilterClause, SortSpec
from services.errors import ServerError
from services.relational_resolver import RelationalResolver
from services.table_controller import TableController


async def test_refresh_loads_first_page(client):
    table = TableController(client, "classes")
    assert await table.refresh() is True
    assert table.total == 3
    assert [c.id for c in table.rows] == [3, 2, 1]
    assert table.error is None
    assert table.loading is False


async def test_all_means_no_filter(client, backend):
    table = TableController(client, "users")
    await table.set_filter("role", "all")
    assert not any(k.startswith("filter[") for k in backend.requests[-1].url.params)
    assert table.total == 4

    await table.set_filter("role", "teacher")
    assert backend.requests[-1].url.params["filter[role]"] == "teacher"
    assert table.total == 2


async def test_filter_resets_page(client, backend):
    table = TableController(client, "users", page_size=2)
    await table.set_page(2)
    assert table.page == 2

    await table.set_filter("role", "teacher")
    assert table.page == 1
    assert backend.requests[-1].url.params["page"] == "1"


async def test_server_paging_threads_page_and_size(client, backend):
    table = TableController(client, "users", page_size=2, sort=SortSpec(field="name", order="asc"))
    await table.set_page(2)

    params = backend.requests[-1].url.params
    assert (params["page"], params["pageSize"], params["sort"]) == ("2", "2", "name:asc")
    assert [u.name for u in table.rows] == ["Grace Hopper", "Sam Student"]
    assert table.page_count == 2


async def test_client_mode_pages_locally(client, backend):
    table = TableController(client, "users", page_size=3, mode="client")
    await table.refresh()

    assert backend.requests[-1].url.params["page"] == "1"
    assert backend.requests[-1].url.params["pageSize"] == "1000"
    assert table.total == 4
    assert len(table.rows) == 3

    sent = len(backend.requests)
    await table.set_page(2)
    assert [u.id for u in table.rows] == ["usr_1"]
    await table.set_page(9)
    assert table.page == 2
    await table.set_page_size(2)
    assert table.page == 1 and len(table.rows) == 2
    assert len(backend.requests) == sent


async def test_search_is_debounced(client, backend):
    table = TableController(client, "users", search_field="search", debounce_ms=20)
    sent = len(backend.requests)

    table.set_search("a")
    table.set_search("ad")
    task = table.set_search("ada")

    assert await task is True
    assert len(backend.requests) == sent + 1
    assert backend.requests[-1].url.params["filter[search][contains]"] == "ada"
    assert [u.name for u in table.rows] == ["Ada Lovelace"]


async def test_clearing_search_removes_the_filter(client, backend):
    table = TableController(client, "users", search_field="search", debounce_ms=0)
    table.set_search("grace")
    await table.settle()
    assert table.total == 1

    table.set_search("   ")
    await table.settle()
    assert "filter[search][contains]" not in backend.requests[-1].url.params
    assert table.total == 4


async def test_late_response_is_discarded(backend):
    release_first = asyncio.Event()

    async def handler(request):
        if request.url.params.get("filter[status]") == "active":
            await release_first.wait()
        return backend.handler(request)

    async with make_client(handler) as client:
        table = TableController(client, "classes")
        first = asyncio.create_task(table.set_filter("status", "active"))
        await asyncio.sleep(0)

        assert await table.set_filter("status", "inactive") is True
        release_first.set()
        assert await first is False

    assert [c.name for c in table.rows] == ["Intro CS - Evening"]
    assert table.total == 1
    assert table.request_count == 2


async def test_errors_are_absorbed_into_state(client, backend):
    table = TableController(client, "classes")
    await table.refresh()

    backend.fail("/api/classes", 503)
    assert await table.refresh() is False
    assert isinstance(table.error, ServerError)
    assert table.rows == [] and table.total == 0

    backend.failures.clear()
    assert await table.refresh() is True
    assert table.error is None
    assert table.total == 3


async def test_rows_are_resolved_when_resolver_given(client):
    table = TableController(client, "classes", resolver=RelationalResolver(client))
    await table.set_filter("subject", "Genetics")

    assert [c.name for c in table.rows] == ["Genetics - Section A"]
    assert table.rows[0].subject.code == "BIO204"
    assert table.rows[0].teacher.name == "Ada Lovelace"


async def test_permanent_filters_are_always_sent(client, backend):
    table = TableController(
        client, "users", permanent_filters=[FilterClause(field="role", value="teacher")]
    )
    await table.clear_filters()
    assert backend.requests[-1].url.params["filter[role]"] == "teacher"
    assert table.total == 2


async def test_close_cancels_pending_search(client, backend):
    table = TableController(client, "users", debounce_ms=50)
    sent = len(backend.requests)
    table.set_search("ada")
    table.close()
    await table.settle()
    assert len(backend.requests) == sent
