"""
services/resource_client.py

- 이름 있는 리소스 컬렉션(departments / subjects / classes / users)에 대한 CRUD 클라이언트
- httpx.AsyncClient 하나를 감싸며, 전역 싱글톤 없이 명시적으로 생성해서 넘겨 쓴다
- 요청 전 payload 스키마 검증, 응답 수신 시 레코드 스키마 검증(narrowing)
- 전송/HTTP 오류 → services.errors 예외 계층으로 정규화
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple, Type, Union

import httpx
from pydantic import BaseModel
from pydantic import ValidationError as SchemaError

from config.settings import settings
from schemas.classes import ClassCreate, ClassRecord, ClassUpdate
from schemas.common import ListResult, RecordId
from schemas.departments import Department, DepartmentCreate, DepartmentUpdate
from schemas.query import FilterClause, PaginationSpec, QueryDescriptor
from schemas.subjects import Subject, SubjectCreate, SubjectUpdate
from schemas.users import User, UserCreate, UserUpdate
from services.errors import (
    ConflictError,
    ConsoleConfigError,
    NetworkError,
    NotFoundError,
    ServerError,
    ValidationError,
)
from services.query_builder import build_query, to_params

logger = logging.getLogger(__name__)

Payload = Union[BaseModel, Dict[str, Any]]


@dataclass(frozen=True)
class ResourceSchema:
    """리소스별 레코드/생성/수정 스키마 + 삭제 시 확인할 종속 관계"""
    record: Type[BaseModel]
    create: Type[BaseModel]
    update: Type[BaseModel]
    # (종속 리소스, 외래키 필드) 목록. 하나라도 남아 있으면 삭제 거부
    dependents: Tuple[Tuple[str, str], ...] = field(default_factory=tuple)


RESOURCES: Dict[str, ResourceSchema] = {
    "departments": ResourceSchema(
        Department, DepartmentCreate, DepartmentUpdate,
        dependents=(("subjects", "departmentId"),),
    ),
    "subjects": ResourceSchema(
        Subject, SubjectCreate, SubjectUpdate,
        dependents=(("classes", "subjectId"),),
    ),
    "classes": ResourceSchema(ClassRecord, ClassCreate, ClassUpdate),
    "users": ResourceSchema(
        User, UserCreate, UserUpdate,
        dependents=(("classes", "teacherId"),),
    ),
}


def get_schema(resource: str) -> ResourceSchema:
    try:
        return RESOURCES[resource]
    except KeyError:
        raise ConsoleConfigError(f"등록되지 않은 리소스입니다: {resource}") from None


class ResourceClient:
    """백엔드 리소스 API 비동기 클라이언트"""

    def __init__(
        self,
        base_url: Optional[str] = None,
        *,
        token: Optional[str] = None,
        timeout: Optional[float] = None,
        retries: Optional[int] = None,
        retry_backoff: float = 0.2,
        update_method: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        base_url = base_url if base_url is not None else settings.API_BASE_URL
        if not base_url:
            raise ConsoleConfigError("BACKEND_BASE_URL이 설정되지 않았습니다")

        token = token if token is not None else settings.BACKEND_API_TOKEN
        headers = {"Accept": "application/json"}
        if token:
            headers["Authorization"] = f"Bearer {token}"

        self.base_url = base_url.rstrip("/")
        self.retries = settings.HTTP_RETRIES if retries is None else retries
        self.retry_backoff = retry_backoff
        self.update_method = (update_method or settings.UPDATE_METHOD).upper()
        self._http = httpx.AsyncClient(
            base_url=self.base_url,
            headers=headers,
            timeout=httpx.Timeout(
                timeout or settings.HTTP_TIMEOUT, connect=settings.HTTP_CONNECT_TIMEOUT
            ),
            transport=transport,
        )

    async def __aenter__(self) -> "ResourceClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._http.aclose()

    # ===============================================================
    # 공통 HTTP 요청 처리
    # ===============================================================

    async def _send_once(
        self,
        method: str,
        path: str,
        *,
        params=None,
        json=None,
        resource: Optional[str] = None,
        record_id: Optional[RecordId] = None,
    ) -> Any:
        try:
            response = await self._http.request(method, path, params=params, json=json)
        except httpx.TimeoutException as e:
            raise NetworkError(f"백엔드 응답 시간 초과: {method} {path}") from e
        except httpx.RequestError as e:
            # 응답 디코딩 실패나 리다이렉트 초과도 네트워크 오류로 본다
            raise NetworkError(f"백엔드 연결 실패: {method} {path} ({e})") from e

        status = response.status_code
        if status >= 500:
            raise ServerError(f"백엔드 오류 (HTTP {status}): {method} {path}", upstream_status=status)
        if status == 404:
            raise NotFoundError(resource or path, record_id if record_id is not None else "")
        if status == 409:
            raise ConflictError(_error_message(response) or "다른 레코드와 충돌합니다")
        if status >= 400:
            raise ValidationError(
                _error_message(response),
                field_errors=_field_errors(response),
                source="server",
            )
        if status == 204 or not response.content:
            return None
        try:
            return response.json()
        except ValueError as e:
            raise ServerError(f"JSON이 아닌 응답입니다: {method} {path}", upstream_status=status) from e

    async def _request(self, method: str, path: str, *, retry: bool = False, **kwargs) -> Any:
        # list / getOne 처럼 멱등인 호출만 retry=True. create는 중복 생성 위험 때문에 재시도 금지
        attempts = 1 + (self.retries if retry else 0)
        for attempt in range(1, attempts + 1):
            try:
                logger.debug("%s %s%s (attempt %d)", method, self.base_url, path, attempt)
                return await self._send_once(method, path, **kwargs)
            except (NetworkError, ServerError) as e:
                if attempt >= attempts:
                    logger.warning("%s %s 실패: %s", method, path, e.message)
                    raise
                logger.info("%s %s 재시도 %d/%d: %s", method, path, attempt, attempts - 1, e.message)
                await asyncio.sleep(self.retry_backoff * attempt)

    # ===============================================================
    # 응답 narrowing
    # ===============================================================

    def _narrow(self, resource: str, raw: Any) -> BaseModel:
        schema = get_schema(resource)
        try:
            return schema.record.model_validate(raw)
        except SchemaError as e:
            raise ValidationError.from_pydantic(e, source="response") from e

    def _unwrap_record(self, resource: str, body: Any) -> BaseModel:
        if not isinstance(body, dict) or "data" not in body:
            raise ValidationError(f"{resource} 응답에 data가 없습니다", source="response")
        return self._narrow(resource, body["data"])

    # ===============================================================
    # CRUD
    # ===============================================================

    async def list(self, resource: str, query: Optional[QueryDescriptor] = None) -> ListResult:
        get_schema(resource)
        query = query or build_query()
        body = await self._request(
            "GET", f"/{resource}", params=to_params(query), resource=resource, retry=True
        )
        if not isinstance(body, dict) or not isinstance(body.get("data"), list):
            raise ValidationError(f"{resource} 목록 응답 형식이 올바르지 않습니다", source="response")
        records = [self._narrow(resource, item) for item in body["data"]]
        total = body.get("total")
        if not isinstance(total, int) or isinstance(total, bool):
            total = len(records)
        return ListResult(data=records, total=total)

    async def get_one(self, resource: str, record_id: RecordId) -> BaseModel:
        get_schema(resource)
        body = await self._request(
            "GET", f"/{resource}/{record_id}",
            resource=resource, record_id=record_id, retry=True,
        )
        return self._unwrap_record(resource, body)

    async def create(self, resource: str, payload: Payload) -> BaseModel:
        schema = get_schema(resource)
        model = _validate_payload(schema.create, payload)
        body = await self._request("POST", f"/{resource}", json=model.to_wire(), resource=resource)
        record = self._unwrap_record(resource, body)
        logger.info("%s 생성 완료: id=%s", resource, getattr(record, "id", None))
        return record

    async def update(self, resource: str, record_id: RecordId, payload: Payload) -> BaseModel:
        schema = get_schema(resource)
        model = _validate_payload(schema.update, payload)
        body = await self._request(
            self.update_method, f"/{resource}/{record_id}",
            json=model.to_wire(exclude_unset=True),
            resource=resource, record_id=record_id,
        )
        return self._unwrap_record(resource, body)

    async def count_dependents(self, resource: str, record_id: RecordId) -> Dict[str, int]:
        """삭제 전 종속 레코드 수 확인 (예: 학과에 속한 과목)"""
        schema = get_schema(resource)
        probe = PaginationSpec(page_index=1, page_size=1)
        checks = [
            self.list(dep, build_query([FilterClause(field=fk, value=record_id)], pagination=probe))
            for dep, fk in schema.dependents
        ]
        results = await asyncio.gather(*checks)
        return {
            dep: result.total
            for (dep, _), result in zip(schema.dependents, results)
            if result.total > 0
        }

    async def delete(self, resource: str, record_id: RecordId) -> None:
        """
        삭제 (종속 레코드가 있으면 거부)
        - 학과 ← 과목, 과목 ← 학급, 교사 ← 학급
        - 서버가 409를 돌려줘도 ConflictError
        """
        dependents = await self.count_dependents(resource, record_id)
        if dependents:
            detail = ", ".join(f"{name} {count}건" for name, count in dependents.items())
            raise ConflictError(
                f"{resource}/{record_id}에 종속 레코드가 있어 삭제할 수 없습니다 ({detail})",
                dependents=dependents,
            )
        await self._request("DELETE", f"/{resource}/{record_id}", resource=resource, record_id=record_id)
        logger.info("%s 삭제 완료: id=%s", resource, record_id)

    # ===============================================================
    # 고정 경로 조회 (분석 엔드포인트)
    # ===============================================================

    async def get_data(self, path: str) -> Any:
        body = await self._request("GET", path, retry=True)
        if not isinstance(body, dict) or "data" not in body:
            raise ValidationError(f"{path} 응답에 data가 없습니다", source="response")
        return body["data"]


def _validate_payload(model_cls: Type[BaseModel], payload: Payload) -> BaseModel:
    if isinstance(payload, model_cls):
        return payload
    if isinstance(payload, BaseModel):
        payload = payload.model_dump(exclude_unset=True)
    try:
        return model_cls.model_validate(payload)
    except SchemaError as e:
        raise ValidationError.from_pydantic(e, source="payload") from e


def _json_or_none(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return None


def _error_message(response: httpx.Response) -> str:
    body = _json_or_none(response)
    if isinstance(body, dict):
        error = body.get("error")
        if isinstance(error, dict) and error.get("message"):
            return str(error["message"])
        if body.get("message"):
            return str(body["message"])
    return f"HTTP {response.status_code}"


def _field_errors(response: httpx.Response) -> Dict[str, List[str]]:
    body = _json_or_none(response)
    if not isinstance(body, dict):
        return {}
    errors = body.get("errors")
    if not isinstance(errors, dict):
        error = body.get("error")
        errors = error.get("fields") if isinstance(error, dict) else None
    if not isinstance(errors, dict):
        return {}
    return {
        str(name): [str(m) for m in messages] if isinstance(messages, list) else [str(messages)]
        for name, messages in errors.items()
    }
