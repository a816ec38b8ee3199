"""Metrics service: dashboard counters and cycle-time analysis.

Counting, grouping and averaging run in SQL. Medians use ``percentile_cont``
on PostgreSQL; SQLite has no equivalent, so there the duration column alone
is fetched and the median is taken in Python.
"""

import statistics
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from uuid import UUID

from sqlalchemy import extract, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.config import get_settings
from ..models import (
    User,
    WorkItem,
    WorkItemPriority,
    WorkItemStatus,
    WorkItemType,
    as_utc,
)

UPCOMING_LIMIT = 5
BOTTLENECK_LIMIT = 20
UNASSIGNED = "Unassigned"


# =============================================================================
# REPORT STRUCTURES
# =============================================================================


@dataclass
class UpcomingItem:
    id: UUID
    title: str
    type: WorkItemType
    priority: WorkItemPriority
    due_at: datetime
    owner_name: str | None


@dataclass
class DashboardStats:
    total_items: int
    active_items: int
    overdue_items: int
    blocked_items: int
    done_this_week: int
    workload_by_owner: list[dict] = field(default_factory=list)  # [{"name", "count"}]
    workload_by_type: list[dict] = field(default_factory=list)  # [{"type", "count"}]
    upcoming_items: list[UpcomingItem] = field(default_factory=list)


@dataclass
class TypeCycleTime:
    type: WorkItemType
    avg_days: float
    median_days: float
    count: int


@dataclass
class Bottleneck:
    id: UUID
    title: str
    type: WorkItemType
    owner_name: str | None
    days_stuck: int


@dataclass
class CycleTimeReport:
    overall_avg_days: float | None
    overall_median_days: float | None
    overall_count: int
    by_type: list[TypeCycleTime] = field(default_factory=list)
    blocked: list[Bottleneck] = field(default_factory=list)
    needs_qa: list[Bottleneck] = field(default_factory=list)


def _round(value) -> float | None:
    # PostgreSQL averages come back as Decimal
    return round(float(value), 1) if value is not None else None


# =============================================================================
# METRICS SERVICE
# =============================================================================


class MetricsService:
    def __init__(self, session: AsyncSession):
        self.session = session

    @property
    def _dialect(self) -> str:
        return self.session.get_bind().dialect.name

    # =========================================================================
    # DASHBOARD
    # =========================================================================

    async def dashboard_stats(self, now: datetime) -> DashboardStats:
        """Board-level counters as of ``now``."""
        week_ago = now - timedelta(days=7)
        not_done = WorkItem.status != WorkItemStatus.DONE

        counts = (await self.session.execute(
            select(
                func.count(WorkItem.id).label("total"),
                func.count(WorkItem.id).filter(
                    WorkItem.status.notin_([WorkItemStatus.DONE, WorkItemStatus.BACKLOG])
                ).label("active"),
                func.count(WorkItem.id).filter(
                    not_done, WorkItem.due_at < now
                ).label("overdue"),
                func.count(WorkItem.id).filter(
                    WorkItem.status == WorkItemStatus.BLOCKED
                ).label("blocked"),
                func.count(WorkItem.id).filter(
                    WorkItem.status == WorkItemStatus.DONE,
                    func.coalesce(WorkItem.completed_at, WorkItem.updated_at) >= week_ago,
                ).label("done_this_week"),
            )
        )).one()

        # By owner
        owner_name = func.coalesce(User.name, UNASSIGNED).label("owner_name")
        owner_count = func.count(WorkItem.id).label("item_count")
        owner_result = await self.session.execute(
            select(owner_name, owner_count)
            .select_from(WorkItem)
            .outerjoin(User, WorkItem.owner_id == User.id)
            .where(not_done)
            .group_by(WorkItem.owner_id, User.name)
            .order_by(owner_count.desc(), owner_name)
        )

        # By type
        type_count = func.count(WorkItem.id).label("item_count")
        type_result = await self.session.execute(
            select(WorkItem.type, type_count)
            .where(not_done)
            .group_by(WorkItem.type)
            .order_by(type_count.desc(), WorkItem.type)
        )

        upcoming_result = await self.session.execute(
            select(
                WorkItem.id,
                WorkItem.title,
                WorkItem.type,
                WorkItem.priority,
                WorkItem.due_at,
                User.name.label("owner_name"),
            )
            .outerjoin(User, WorkItem.owner_id == User.id)
            .where(not_done, WorkItem.due_at >= now)
            .order_by(WorkItem.due_at)
            .limit(UPCOMING_LIMIT)
        )

        return DashboardStats(
            total_items=counts.total,
            active_items=counts.active,
            overdue_items=counts.overdue,
            blocked_items=counts.blocked,
            done_this_week=counts.done_this_week,
            workload_by_owner=[
                {"name": row.owner_name, "count": row.item_count} for row in owner_result.all()
            ],
            workload_by_type=[
                {"type": row.type.value, "count": row.item_count} for row in type_result.all()
            ],
            upcoming_items=[
                UpcomingItem(
                    id=row.id,
                    title=row.title,
                    type=row.type,
                    priority=row.priority,
                    due_at=row.due_at,
                    owner_name=row.owner_name,
                )
                for row in upcoming_result.all()
            ],
        )

    # =========================================================================
    # CYCLE TIME
    # =========================================================================

    def _duration_days(self):
        """Created-to-completed duration in days, as a SQL expression."""
        completed, created = WorkItem.completed_at, WorkItem.created_at
        if self._dialect == "postgresql":
            return extract("epoch", completed - created) / 86400
        return func.julianday(completed) - func.julianday(created)

    async def _medians(self, days, done) -> tuple[dict[WorkItemType, float], float | None]:
        if self._dialect == "postgresql":
            median = func.percentile_cont(0.5).within_group(days)
            by_type = await self.session.execute(
                select(WorkItem.type, median.label("median"))
                .where(*done)
                .group_by(WorkItem.type)
            )
            overall = await self.session.execute(select(median).where(*done))
            return {row.type: row.median for row in by_type.all()}, overall.scalar_one()

        result = await self.session.execute(
            select(WorkItem.type, days.label("days")).where(*done)
        )
        durations: dict[WorkItemType, list[float]] = {}
        for row in result.all():
            durations.setdefault(row.type, []).append(row.days)
        everything = [d for values in durations.values() for d in values]
        return (
            {t: statistics.median(values) for t, values in durations.items()},
            statistics.median(everything) if everything else None,
        )

    async def _bottlenecks(
        self,
        status: WorkItemStatus,
        now: datetime,
        cutoff: datetime,
    ) -> list[Bottleneck]:
        since = func.coalesce(WorkItem.status_changed_at, WorkItem.updated_at).label("since")
        result = await self.session.execute(
            select(
                WorkItem.id,
                WorkItem.title,
                WorkItem.type,
                User.name.label("owner_name"),
                since,
            )
            .outerjoin(User, WorkItem.owner_id == User.id)
            .where(WorkItem.status == status, since <= cutoff)
            .order_by(since)
            .limit(BOTTLENECK_LIMIT)
        )
        return [
            Bottleneck(
                id=row.id,
                title=row.title,
                type=row.type,
                owner_name=row.owner_name,
                days_stuck=int((now - as_utc(row.since)).total_seconds() // 86400),
            )
            for row in result.all()
        ]

    async def cycle_time(self, now: datetime) -> CycleTimeReport:
        """
        Created-to-completed durations for DONE items, plus items that have
        sat in BLOCKED or NEEDS_QA longer than the bottleneck threshold.
        """
        cutoff = now - timedelta(days=get_settings().bottleneck_threshold_days)
        days = self._duration_days()
        done = (
            WorkItem.status == WorkItemStatus.DONE,
            WorkItem.completed_at.is_not(None),
        )

        grouped = await self.session.execute(
            select(
                WorkItem.type,
                func.avg(days).label("avg_days"),
                func.count(WorkItem.id).label("item_count"),
            )
            .where(*done)
            .group_by(WorkItem.type)
        )
        overall = (await self.session.execute(
            select(
                func.avg(days).label("avg_days"),
                func.count(WorkItem.id).label("item_count"),
            ).where(*done)
        )).one()
        medians, overall_median = await self._medians(days, done)

        by_type = sorted(
            (
                TypeCycleTime(
                    type=row.type,
                    avg_days=_round(row.avg_days),
                    median_days=_round(medians[row.type]),
                    count=row.item_count,
                )
                for row in grouped.all()
            ),
            key=lambda row: row.avg_days,
            reverse=True,
        )

        return CycleTimeReport(
            overall_avg_days=_round(overall.avg_days),
            overall_median_days=_round(overall_median),
            overall_count=overall.item_count,
            by_type=by_type,
            blocked=await self._bottlenecks(WorkItemStatus.BLOCKED, now, cutoff),
            needs_qa=await self._bottlenecks(WorkItemStatus.NEEDS_QA, now, cutoff),
        )
