"""Pydantic schemas for dashboard and cycle-time metrics."""

from datetime import datetime
from uuid import UUID

from ..models import WorkItemPriority, WorkItemType
from .base import TrackerBaseModel


class OwnerWorkload(TrackerBaseModel):
    name: str
    count: int


class TypeWorkload(TrackerBaseModel):
    type: WorkItemType
    count: int


class UpcomingItemResponse(TrackerBaseModel):
    id: UUID
    title: str
    type: WorkItemType
    priority: WorkItemPriority
    due_at: datetime
    owner_name: str | None = None


class DashboardStatsResponse(TrackerBaseModel):
    total_items: int
    active_items: int
    overdue_items: int
    blocked_items: int
    done_this_week: int
    workload_by_owner: list[OwnerWorkload]
    workload_by_type: list[TypeWorkload]
    upcoming_items: list[UpcomingItemResponse]


class TypeCycleTimeResponse(TrackerBaseModel):
    type: WorkItemType
    avg_days: float
    median_days: float
    count: int


class BottleneckResponse(TrackerBaseModel):
    id: UUID
    title: str
    type: WorkItemType
    owner_name: str | None = None
    days_stuck: int


class CycleTimeResponse(TrackerBaseModel):
    overall_avg_days: float | None = None
    overall_median_days: float | None = None
    overall_count: int
    by_type: list[TypeCycleTimeResponse]
    blocked: list[BottleneckResponse]
    needs_qa: list[BottleneckResponse]
