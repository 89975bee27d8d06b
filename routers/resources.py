from typing import Any, Dict, Literal, Optional

from fastapi import APIRouter, Body, Depends, HTTPException, Query, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from config.settings import settings
from dependencies.clients import get_resolver, get_resource_client
from schemas.common import make_meta
from schemas.query import SortSpec
from schemas.views import FormResult
from services.record_views import FormSubmitter, load_show
from services.relational_resolver import RelationalResolver
from services.resource_client import RESOURCES, ResourceClient
from services.table_controller import TableController

router = APIRouter(tags=["리소스"])

# 목록 검색어가 걸리는 필드 (사용자 목록은 이름+이메일 통합 검색)
SEARCH_FIELDS = {"users": "search"}
FILTER_PREFIX = "filter."


def _check_resource(resource: str):
    if resource not in RESOURCES:
        raise HTTPException(status_code=404, detail=f"알 수 없는 리소스: {resource}")


def _wire(value: Any) -> Any:
    if isinstance(value, BaseModel):
        return value.model_dump(by_alias=True, mode="json")
    if isinstance(value, list):
        return [_wire(v) for v in value]
    return value


def _form_response(result: FormResult, success_status: int) -> JSONResponse:
    if result.ok:
        return JSONResponse(status_code=success_status, content={"success": True, "data": _wire(result.record)})
    if result.field_errors:
        status = 422
    elif result.not_found:
        status = 404
    else:
        status = 502
    return JSONResponse(
        status_code=status,
        content={
            "success": False,
            "error": {
                "code": "VALIDATION_ERROR" if result.field_errors else "SUBMIT_FAILED",
                "message": result.notice or "입력값을 확인해 주세요",
                "fields": result.field_errors,
            },
            "payload": result.payload,
        },
    )


# ==========================================================
# [READ] 목록 (필터 / 검색 / 정렬 / 페이지)
# - 쿼리 파라미터 filter.<field>=value 는 eq 조건, "all" 은 제한 없음
# - 학급/과목 목록은 관련 엔티티 요약(subject, teacher, department)을 붙여 반환
# ==========================================================
@router.get("/{resource}")
async def read_list(
    resource: str,
    request: Request,
    search: Optional[str] = None,
    sort: str = "id",
    order: Literal["asc", "desc"] = "desc",
    page: int = Query(1, ge=1),
    page_size: Optional[int] = Query(None, alias="pageSize", ge=1, le=200),
    mode: Literal["server", "client"] = "server",
    client: ResourceClient = Depends(get_resource_client),
    resolver: RelationalResolver = Depends(get_resolver),
):
    _check_resource(resource)
    table = TableController(
        client,
        resource,
        resolver=resolver,
        page_size=page_size or settings.LIST_PAGE_SIZE,
        mode=mode,
        search_field=SEARCH_FIELDS.get(resource, "name"),
        sort=SortSpec(field=sort, order=order),
    )
    table.search_text = (search or "").strip()
    table.selected = {
        key[len(FILTER_PREFIX):]: value
        for key, value in request.query_params.items()
        if key.startswith(FILTER_PREFIX)
    }
    table.page = page
    await table.refresh()

    if table.error is not None:
        # 목록 실패는 화면을 깨지 않고 "불러오지 못함" 상태로 내려준다
        return {
            "success": False,
            "data": [],
            "error": {"code": table.error.code, "message": table.error.message},
        }
    return {
        "success": True,
        "data": _wire(table.rows),
        "meta": make_meta(table.total, table.page, table.page_size, f"{sort}:{order}").model_dump(),
    }


# ==========================================================
# [READ] 상세 (관련 목록 포함)
# ==========================================================
@router.get("/{resource}/{record_id}")
async def read_one(
    resource: str,
    record_id: str,
    client: ResourceClient = Depends(get_resource_client),
    resolver: RelationalResolver = Depends(get_resolver),
):
    _check_resource(resource)
    state = await load_show(client, resource, record_id, resolver=resolver)
    if state.status != "loaded":
        return JSONResponse(
            status_code=404 if state.status == "not_found" else 502,
            content={
                "success": False,
                "status": state.status,
                "error": {"code": state.status.upper(), "message": state.message},
            },
        )
    return {
        "success": True,
        "status": state.status,
        "data": _wire(state.record),
        "related": {name: _wire(rows) for name, rows in state.related.items()},
        "related_errors": state.related_errors,
    }


# ==========================================================
# [CREATE] / [UPDATE]
# ==========================================================
@router.post("/{resource}")
async def create_record(
    resource: str,
    payload: Dict[str, Any] = Body(...),
    client: ResourceClient = Depends(get_resource_client),
):
    _check_resource(resource)
    result = await FormSubmitter(client, resource).submit(payload)
    return _form_response(result, 201)


@router.api_route("/{resource}/{record_id}", methods=["PATCH", "PUT"])
async def update_record(
    resource: str,
    record_id: str,
    payload: Dict[str, Any] = Body(...),
    client: ResourceClient = Depends(get_resource_client),
):
    _check_resource(resource)
    result = await FormSubmitter(client, resource).submit(payload, record_id=record_id)
    return _form_response(result, 200)


# ==========================================================
# [DELETE] 종속 레코드가 있으면 409 (에러 핸들러가 변환)
# ==========================================================
@router.delete("/{resource}/{record_id}")
async def delete_record(
    resource: str,
    record_id: str,
    client: ResourceClient = Depends(get_resource_client),
):
    _check_resource(resource)
    await client.delete(resource, record_id)
    return {"success": True, "data": {"id": record_id}, "message": f"{resource}/{record_id} 삭제 완료"}
