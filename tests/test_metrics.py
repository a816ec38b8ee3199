"""Tests for dashboard statistics and cycle-time metrics."""

from datetime import timedelta

import pytest

from ops_tracker.models import WorkItemStatus, WorkItemType
from ops_tracker.services import MetricsService


@pytest.fixture
def service(session) -> MetricsService:
    return MetricsService(session)


class TestDashboardStats:
    async def test_counters(self, service, make_item, member, admin, clock):
        now = clock()
        await make_item(title="backlog", status=WorkItemStatus.BACKLOG, due_at=now - timedelta(days=1))
        await make_item(title="blocked", status=WorkItemStatus.BLOCKED, owner_id=member.id)
        await make_item(
            title="in progress", status=WorkItemStatus.IN_PROGRESS,
            owner_id=member.id, due_at=now + timedelta(days=2),
        )
        await make_item(
            title="done recently", status=WorkItemStatus.DONE, owner_id=admin.id,
            completed_at=now - timedelta(days=2), due_at=now - timedelta(days=5),
        )
        await make_item(
            title="done long ago", status=WorkItemStatus.DONE,
            completed_at=now - timedelta(days=30),
        )

        stats = await service.dashboard_stats(now)

        assert stats.total_items == 5
        assert stats.active_items == 2
        assert stats.overdue_items == 1
        assert stats.blocked_items == 1
        assert stats.done_this_week == 1
        assert {"name": "Morgan Member", "count": 2} in stats.workload_by_owner
        assert {"name": "Unassigned", "count": 1} in stats.workload_by_owner
        assert stats.workload_by_type == [{"type": "GENERAL", "count": 3}]
        assert [u.title for u in stats.upcoming_items] == ["in progress"]
        assert stats.upcoming_items[0].owner_name == "Morgan Member"

    async def test_upcoming_limited_to_five_soonest(self, service, make_item, clock):
        now = clock()
        for days in range(7, 0, -1):
            await make_item(title=f"due in {days}", due_at=now + timedelta(days=days))

        stats = await service.dashboard_stats(now)

        assert [u.title for u in stats.upcoming_items] == [
            "due in 1", "due in 2", "due in 3", "due in 4", "due in 5",
        ]

    async def test_empty_board(self, service, clock):
        stats = await service.dashboard_stats(clock())

        assert stats.total_items == 0
        assert stats.workload_by_owner == []
        assert stats.upcoming_items == []


class TestCycleTime:
    async def test_average_and_median_per_type(self, service, make_item, clock):
        now = clock()
        for days in (2, 4, 9):
            await make_item(
                type=WorkItemType.SOCIAL_ASSET_REQUEST,
                status=WorkItemStatus.DONE,
                created_at=now - timedelta(days=20),
                completed_at=now - timedelta(days=20 - days),
            )
        await make_item(
            type=WorkItemType.GENERAL,
            status=WorkItemStatus.DONE,
            created_at=now - timedelta(days=3),
            completed_at=now - timedelta(days=2),
        )
        # Reopened items have no completed_at and are excluded
        await make_item(type=WorkItemType.GENERAL, status=WorkItemStatus.IN_PROGRESS)

        report = await service.cycle_time(now)

        assert report.overall_count == 4
        assert report.overall_avg_days == 4.0
        assert report.overall_median_days == 3.0
        assert [(r.type, r.avg_days, r.median_days, r.count) for r in report.by_type] == [
            (WorkItemType.SOCIAL_ASSET_REQUEST, 5.0, 4.0, 3),
            (WorkItemType.GENERAL, 1.0, 1.0, 1),
        ]

    async def test_no_completed_items(self, service, clock):
        report = await service.cycle_time(clock())

        assert report.overall_avg_days is None
        assert report.overall_median_days is None
        assert report.by_type == []

    async def test_bottlenecks(self, service, make_item, clock):
        now = clock()
        await make_item(
            title="stuck blocked", status=WorkItemStatus.BLOCKED,
            status_changed_at=now - timedelta(days=5),
        )
        await make_item(
            title="fresh blocked", status=WorkItemStatus.BLOCKED,
            status_changed_at=now - timedelta(days=1),
        )
        await make_item(
            title="stuck qa", status=WorkItemStatus.NEEDS_QA,
            updated_at=now - timedelta(days=4),
        )
        await make_item(
            title="old but active", status=WorkItemStatus.IN_PROGRESS,
            status_changed_at=now - timedelta(days=10),
        )

        report = await service.cycle_time(now)

        assert [(b.title, b.days_stuck) for b in report.blocked] == [("stuck blocked", 5)]
        assert [(b.title, b.days_stuck) for b in report.needs_qa] == [("stuck qa", 4)]

    async def test_bottlenecks_capped_oldest_first(self, service, make_item, clock):
        now = clock()
        for days in range(4, 30):
            await make_item(
                title=f"blocked {days}d", status=WorkItemStatus.BLOCKED,
                status_changed_at=now - timedelta(days=days),
            )

        report = await service.cycle_time(now)

        assert len(report.blocked) == 20
        assert report.blocked[0].title == "blocked 29d"
        assert report.blocked[-1].days_stuck == 10


class TestWorkloadOrdering:
    async def test_busiest_owner_first(self, service, make_item, member, admin, clock):
        await make_item(owner_id=admin.id)
        for _ in range(3):
            await make_item(owner_id=member.id)
        await make_item(status=WorkItemStatus.DONE, owner_id=admin.id)

        stats = await service.dashboard_stats(clock())

        assert stats.workload_by_owner == [
            {"name": "Morgan Member", "count": 3},
            {"name": "Avery Admin", "count": 1},
        ]
        assert stats.total_items == 5
