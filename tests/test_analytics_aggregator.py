"""Analytics Aggregator: 정원 구간 경계, 섹션별 독립 폴백, 최근 활동 정렬/상한"""

import pytest

from fake_backend import make_client
from schemas.analytics import ClassUtilization
from services.analytics_aggregator import (
    AnalyticsAggregator,
    bucket_capacity,
    classify_utilization,
    utilization_of,
)
from services.errors import ConsoleConfigError


@pytest.mark.parametrize(
    "utilization, bucket",
    [
        (0.0, "available"),
        (0.699, "available"),
        (0.70, "nearFull"),
        (0.899, "nearFull"),
        (0.90, "almostFull"),
        (0.999, "almostFull"),
        (1.00, "full"),
        (1.5, "full"),
    ],
)
def test_bucket_boundaries(utilization, bucket):
    assert classify_utilization(utilization) == bucket


def test_missing_capacity_uses_default():
    assert utilization_of(25, None) == 0.5
    assert utilization_of(50, 0) == 1.0


def test_bucket_capacity_counts():
    categories = bucket_capacity([
        ClassUtilization(enrolled_count=10, capacity=30),   # 0.33
        ClassUtilization(enrolled_count=21, capacity=30),   # 0.70
        ClassUtilization(enrolled_count=45, capacity=None), # 0.90
        ClassUtilization(enrolled_count=31, capacity=30),   # 1.03
    ])
    assert categories.model_dump(by_alias=True) == {
        "available": 1, "nearFull": 1, "almostFull": 1, "full": 1,
    }


def test_missing_client_is_a_config_error():
    with pytest.raises(ConsoleConfigError):
        AnalyticsAggregator(None)


async def test_all_sections_load(client):
    view = await AnalyticsAggregator(client).load()

    assert view.overview.total_enrollments == 41
    assert [t.count for t in view.enrollment_trends] == [5, 8]
    assert view.capacity_status.categories.full == 1
    assert view.sections["overview"] == "ok"
    assert view.sections["recent_activity"] == "empty"


async def test_sections_are_requested_concurrently_and_once(client, backend):
    await AnalyticsAggregator(client).load()
    analytics = [p for p in backend.paths() if p.startswith("/api/analytics/")]
    assert sorted(analytics) == sorted({
        "/api/analytics/overview",
        "/api/analytics/enrollment-trends",
        "/api/analytics/classes-by-department",
        "/api/analytics/capacity-status",
        "/api/analytics/user-distribution",
        "/api/analytics/recent-activity",
    })


async def test_one_failed_section_does_not_break_the_dashboard(backend):
    backend.fail("/api/analytics/enrollment-trends", 500)
    async with make_client(backend.handler) as client:
        view = await AnalyticsAggregator(client).load()

    assert view.sections["enrollment_trends"] == "failed"
    assert view.enrollment_trends == []
    assert view.overview.total_users == 4
    assert all(status != "failed" for name, status in view.sections.items() if name != "enrollment_trends")


async def test_malformed_section_is_marked_failed(backend):
    backend.analytics["user-distribution"] = [{"count": 3}]
    async with make_client(backend.handler) as client:
        view = await AnalyticsAggregator(client).load()

    assert view.sections["user_distribution"] == "failed"
    assert view.sections["classes_by_department"] == "ok"


async def test_capacity_from_raw_class_rows(backend):
    backend.analytics["capacity-status"] = [
        {"classId": 1, "enrolledCount": 30, "capacity": 30},
        {"classId": 2, "enrolledCount": 12, "capacity": 0},
        {"classId": 3, "enrolledCount": 36},
    ]
    async with make_client(backend.handler) as client:
        view = await AnalyticsAggregator(client).load()

    categories = view.capacity_status.categories
    assert (categories.available, categories.near_full, categories.almost_full, categories.full) == (1, 1, 0, 1)


async def test_recent_activity_is_sorted_and_capped(backend):
    backend.analytics["recent-activity"] = [
        {"type": "enrollment", "id": i, "description": f"enrollment {i}",
         "createdAt": f"2025-03-{i:02d}T10:00:00Z"}
        for i in range(1, 16)
    ] + [{"type": "class", "id": 15, "description": "class 15", "createdAt": "2025-02-01T10:00:00Z"}]
    async with make_client(backend.handler) as client:
        view = await AnalyticsAggregator(client, recent_activity_limit=10).load()

    assert len(view.recent_activity) == 10
    assert view.recent_activity[0].id == 15
    assert view.recent_activity[0].type == "enrollment"
    stamps = [a.created_at for a in view.recent_activity]
    assert stamps == sorted(stamps, reverse=True)


async def test_recent_activity_mixes_offset_and_naive_timestamps(backend):
    backend.analytics["recent-activity"] = [
        {"type": "user", "id": "usr_1", "description": "joined", "createdAt": "2025-03-01T10:00:00Z"},
        {"type": "class", "id": 2, "description": "opened", "createdAt": "2025-03-02T10:00:00"},
    ]
    async with make_client(backend.handler) as client:
        view = await AnalyticsAggregator(client).load()

    assert view.sections["recent_activity"] == "ok"
    assert [a.id for a in view.recent_activity] == [2, "usr_1"]
    assert all(a.created_at.tzinfo is not None for a in view.recent_activity)


async def test_activity_sort_failure_only_fails_that_section(client, monkeypatch):
    def broken_sort(items, limit):
        raise TypeError("cannot order activity")

    monkeypatch.setattr("services.analytics_aggregator.latest_activity", broken_sort)
    view = await AnalyticsAggregator(client).load()

    assert view.sections["recent_activity"] == "failed"
    assert view.recent_activity == []
    assert view.sections["overview"] == "ok"
    assert view.overview.total_users == 4
