from fastapi import APIRouter, Depends, HTTPException

from dependencies.clients import get_resolver
from services.relational_resolver import OPTION_SOURCES, RelationalResolver

router = APIRouter(prefix="/options", tags=["선택 옵션"])


def _check_source(source: str):
    if source not in OPTION_SOURCES:
        raise HTTPException(status_code=404, detail=f"알 수 없는 옵션 원천: {source}")


# ✅ [READ] 생성/수정 폼 드롭다운 (value=id)
# - departments / subjects / teachers
@router.get("/{source}")
async def read_form_options(source: str, resolver: RelationalResolver = Depends(get_resolver)):
    _check_source(source)
    options = await resolver.options(source)
    return {"success": True, "data": [o.model_dump() for o in options]}


# ✅ [READ] 목록 필터 드롭다운 (value=이름)
# - 학급 목록의 과목/교사 필터는 로드된 과목/교사 목록에서 만든다
@router.get("/{source}/filter")
async def read_filter_options(source: str, resolver: RelationalResolver = Depends(get_resolver)):
    _check_source(source)
    options = await resolver.filter_options(source)
    return {"success": True, "data": [{"value": "all", "label": "All"}] + [o.model_dump() for o in options]}
