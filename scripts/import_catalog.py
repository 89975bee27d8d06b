import asyncio
import csv
import logging
import sys
from typing import Dict, List, Optional

from config.settings import settings
from schemas.query import PaginationSpec
from services.errors import ConsoleError, ValidationError
from services.query_builder import build_query
from services.resource_client import ResourceClient

logger = logging.getLogger(__name__)

DEPARTMENTS_CSV = "data/departments.csv"  # ✅ code,name,description
SUBJECTS_CSV = "data/subjects.csv"        # ✅ code,name,department_code,description


def read_rows(path: str) -> List[Dict[str, str]]:
    with open(path, newline="", encoding="utf-8-sig") as csvfile:
        return [
            {k.strip(): (v or "").strip() for k, v in row.items() if k}
            for row in csv.DictReader(csvfile)
        ]


async def import_catalog(
    client: ResourceClient,
    departments: List[Dict[str, str]],
    subjects: List[Dict[str, str]],
) -> Dict[str, int]:
    """
    학과 → 과목 순서로 백엔드에 등록
    - 과목 CSV의 department_code 를 방금 만든(또는 이미 있는) 학과 id로 바꿔 넣는다
    - create는 재시도하지 않으므로 실패한 행은 건너뛰고 로그만 남긴다
    """
    summary = {"departments": 0, "subjects": 0, "skipped": 0}

    existing = await client.list(
        "departments", build_query(pagination=PaginationSpec(page_size=settings.LOOKUP_PAGE_SIZE))
    )
    dept_ids: Dict[str, int] = {d.code: d.id for d in existing.data}

    for row in departments:
        if row["code"] in dept_ids:
            continue
        try:
            dept = await client.create("departments", {
                "code": row["code"],                        # 학과 약어
                "name": row["name"],                        # 학과 이름
                "description": row.get("description") or None,
            })
        except ValidationError as e:
            logger.warning("학과 %s 건너뜀: %s", row.get("code"), e.field_errors or e.message)
            summary["skipped"] += 1
            continue
        dept_ids[dept.code] = dept.id
        summary["departments"] += 1

    for row in subjects:
        department_id: Optional[int] = dept_ids.get(row.get("department_code", ""))
        if department_id is None:
            logger.warning("과목 %s 건너뜀: 학과 코드 %s 없음", row.get("code"), row.get("department_code"))
            summary["skipped"] += 1
            continue
        try:
            await client.create("subjects", {
                "code": row["code"],                        # 과목 코드 (예: BIO204)
                "name": row["name"],                        # 과목 이름
                "departmentId": department_id,              # 소속 학과 ID
                "description": row.get("description") or None,
            })
        except ValidationError as e:
            logger.warning("과목 %s 건너뜀: %s", row.get("code"), e.field_errors or e.message)
            summary["skipped"] += 1
            continue
        summary["subjects"] += 1

    return summary


async def main() -> int:
    async with ResourceClient() as client:
        try:
            summary = await import_catalog(client, read_rows(DEPARTMENTS_CSV), read_rows(SUBJECTS_CSV))
        except ConsoleError as e:
            logger.error("카탈로그 등록 실패: %s", e.message)
            return 1
    print(f"✅ 학과/과목 CSV → 백엔드 등록 완료: {summary}")
    return 0


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    sys.exit(asyncio.run(main()))
