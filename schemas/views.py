from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

ShowStatus = Literal["loaded", "not_found", "error"]


# ✅ 상세 화면 상태
# - not_found / error 를 구분해야 프론트가 "목록으로" / "다시 시도" 를 다르게 안내할 수 있다
class ShowState(BaseModel):
    status: ShowStatus
    resource: str
    record_id: Any
    record: Optional[Any] = None
    related: Dict[str, List[Any]] = Field(default_factory=dict)
    related_errors: Dict[str, str] = Field(default_factory=dict)
    message: Optional[str] = None

    model_config = ConfigDict(arbitrary_types_allowed=True)


# ✅ 생성/수정 폼 제출 결과
# - 실패 시 payload를 그대로 돌려줘서 폼을 채운 채로 재시도할 수 있게 한다
class FormResult(BaseModel):
    ok: bool
    record: Optional[Any] = None
    field_errors: Dict[str, List[str]] = Field(default_factory=dict)
    notice: Optional[str] = None
    payload: Optional[Any] = None
    duplicate: bool = False              # 제출 중 중복 클릭으로 거부된 경우
    not_found: bool = False              # 수정 대상이 사라진 경우

    model_config = ConfigDict(arbitrary_types_allowed=True)
