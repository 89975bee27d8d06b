"""
테스트용 가짜 백엔드
- /api/{resource} 계약(필터/정렬/페이지, 단건, 생성, 수정, 삭제)과 분석 엔드포인트를 메모리로 흉내낸다
- httpx.MockTransport(backend.handler) 로 ResourceClient에 연결
"""

import json
import re
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

import httpx

BASE_TIME = datetime(2025, 3, 1, 9, 0, tzinfo=timezone.utc)
FILTER_KEY = re.compile(r"^filter\[(\w+)\](?:\[(\w+)\])?$")
RESOURCES = ("departments", "subjects", "classes", "users")


class FakeBackend:
    def __init__(self):
        self.store: Dict[str, Dict[str, dict]] = {name: {} for name in RESOURCES}
        self.requests: List[httpx.Request] = []
        self.failures: Dict[str, int] = {}       # 경로 → 강제 응답 코드
        self.embed_relations = False              # True면 학급 목록에 subject/teacher를 내장 (백엔드 조인)
        self.analytics: Dict[str, Any] = {
            "overview": {
                "totalUsers": 4, "totalClasses": 3, "activeClasses": 2,
                "totalEnrollments": 41, "totalDepartments": 2, "totalSubjects": 3,
            },
            "enrollment-trends": [{"date": "2025-03-01", "count": 5}, {"date": "2025-03-02", "count": 8}],
            "classes-by-department": [{"departmentName": "Biological Sciences", "classCount": 1}],
            "capacity-status": {"categories": {"available": 1, "nearFull": 1, "almostFull": 0, "full": 1}},
            "user-distribution": [{"role": "teacher", "count": 2}, {"role": "student", "count": 1}],
            "recent-activity": [],
        }
        self._ids = {name: 0 for name in RESOURCES}
        self._tick = 0

    # ===============================================================
    # 데이터 준비
    # ===============================================================

    def _now(self) -> str:
        self._tick += 1
        return (BASE_TIME + timedelta(seconds=self._tick)).isoformat().replace("+00:00", "Z")

    def _next_id(self, resource: str):
        self._ids[resource] += 1
        n = self._ids[resource]
        return f"usr_{n}" if resource == "users" else n

    def seed(self, resource: str, **fields) -> dict:
        record_id = fields.pop("id", None)
        if record_id is None:
            record_id = self._next_id(resource)
        elif isinstance(record_id, int):
            self._ids[resource] = max(self._ids[resource], record_id)
        now = self._now()
        record = {"id": record_id, "createdAt": now, "updatedAt": now, **fields}
        if resource == "users":
            record.setdefault("emailVerified", False)
        self.store[resource][str(record_id)] = record
        return record

    def fail(self, path: str, status: int = 500):
        self.failures[path] = status

    def paths(self) -> List[str]:
        return [r.url.path for r in self.requests]

    # ===============================================================
    # 요청 처리
    # ===============================================================

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path
        if path in self.failures:
            return httpx.Response(self.failures[path], json={"error": {"message": "forced failure"}})

        parts = path.removeprefix("/api/").strip("/").split("/")
        if parts[0] == "analytics":
            return httpx.Response(200, json={"data": self.analytics[parts[1]]})

        resource = parts[0]
        if resource not in self.store:
            return httpx.Response(404, json={"message": "unknown resource"})
        if len(parts) == 1:
            if request.method == "GET":
                return self._list(resource, request)
            if request.method == "POST":
                return self._create(resource, json.loads(request.content))
        else:
            record = self.store[resource].get(parts[1])
            if record is None:
                return httpx.Response(404, json={"message": "not found"})
            if request.method == "GET":
                return httpx.Response(200, json={"data": record})
            if request.method in ("PATCH", "PUT"):
                record.update(json.loads(request.content))
                record["updatedAt"] = self._now()
                return httpx.Response(200, json={"data": record})
            if request.method == "DELETE":
                del self.store[resource][parts[1]]
                return httpx.Response(204)
        return httpx.Response(405)

    def _matches(self, resource: str, record: dict, field: str, operator: Optional[str], value: str) -> bool:
        if operator == "contains":
            if field == "search":
                haystack = f"{record.get('name', '')} {record.get('email', '')}"
            else:
                haystack = str(record.get(field, ""))
            return value.lower() in haystack.lower()
        if resource == "classes" and field in ("subject", "teacher"):
            fk = record.get(f"{field}Id")
            related = self.store["subjects" if field == "subject" else "users"].get(str(fk), {})
            return value in (str(fk), related.get("name"))
        return str(record.get(field)) == value

    def _embed(self, record: dict) -> dict:
        subject = self.store["subjects"].get(str(record.get("subjectId")))
        teacher = self.store["users"].get(str(record.get("teacherId")))
        return {
            **record,
            "subject": {"id": subject["id"], "name": subject["name"], "code": subject["code"]} if subject else None,
            "teacher": {"id": teacher["id"], "name": teacher["name"]} if teacher else None,
        }

    def _list(self, resource: str, request: httpx.Request) -> httpx.Response:
        records = list(self.store[resource].values())
        for key, value in request.url.params.multi_items():
            m = FILTER_KEY.match(key)
            if m:
                records = [r for r in records if self._matches(resource, r, m.group(1), m.group(2), value)]

        field, _, order = request.url.params.get("sort", "id:desc").partition(":")
        records.sort(key=lambda r: (r.get(field) is None, str(r.get(field)) if field != "id" else _id_key(r)),
                     reverse=(order == "desc"))

        page = int(request.url.params.get("page", 1))
        size = int(request.url.params.get("pageSize", 10))
        window = records[(page - 1) * size: page * size]
        if resource == "classes" and self.embed_relations:
            window = [self._embed(r) for r in window]
        return httpx.Response(200, json={"data": window, "total": len(records)})

    def _create(self, resource: str, body: dict) -> httpx.Response:
        if resource == "users" and any(u["email"] == body.get("email") for u in self.store["users"].values()):
            return httpx.Response(400, json={"errors": {"email": ["Email already exists"]}})
        if resource == "departments" and any(d["code"] == body.get("code") for d in self.store["departments"].values()):
            return httpx.Response(400, json={"errors": {"code": "Code must be unique"}})
        record = self.seed(resource, **body)
        return httpx.Response(201, json={"data": record})


def _id_key(record: dict):
    value = record.get("id")
    if isinstance(value, int):
        return f"{value:010d}"
    return str(value)


def seed_school(backend: FakeBackend) -> FakeBackend:
    """학과 2 / 과목 3 / 사용자 4 / 학급 3 기본 데이터"""
    backend.seed("departments", id=1, code="CSE", name="Computer Science & Engineering")
    backend.seed("departments", id=2, code="BIO", name="Biological Sciences")
    backend.seed("subjects", id=1, code="CS101", name="Introduction to Computer Science", departmentId=1)
    backend.seed("subjects", id=2, code="ECON310", name="Macroeconomic Theory", departmentId=99)
    backend.seed("subjects", id=3, code="BIO204", name="Genetics", departmentId=2)
    backend.seed("users", id="usr_1", name="Admin Kim", email="admin@school.edu", role="admin")
    backend.seed("users", id="usr_2", name="Ada Lovelace", email="ada@school.edu", role="teacher")
    backend.seed("users", id="usr_3", name="Grace Hopper", email="grace@school.edu", role="teacher")
    backend.seed("users", id="usr_4", name="Sam Student", email="sam@school.edu", role="student")
    backend._ids["users"] = 4
    backend.seed("classes", id=1, name="Genetics - Section A", subjectId=3, teacherId="usr_2",
                 capacity=30, status="active")
    backend.seed("classes", id=2, name="Intro CS - Morning", subjectId=1, teacherId="usr_3",
                 capacity=0, status="active")
    backend.seed("classes", id=3, name="Intro CS - Evening", subjectId=1, teacherId="usr_99",
                 status="inactive")
    return backend


BACKEND_URL = "http://backend.test/api"


def make_client(handler, **kwargs):
    """MockTransport로 연결된 ResourceClient (기본: 재시도 없음)"""
    from services.resource_client import ResourceClient

    kwargs.setdefault("retries", 0)
    kwargs.setdefault("retry_backoff", 0)
    return ResourceClient(BACKEND_URL, transport=httpx.MockTransport(handler), **kwargs)
