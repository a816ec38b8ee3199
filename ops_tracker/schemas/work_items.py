"""Pydantic schemas for work items, subtasks and QC checkpoints."""

from datetime import datetime
from uuid import UUID

from pydantic import Field, model_validator

from ..models import QCStatus, WorkItemPriority, WorkItemStatus, WorkItemType
from .base import TrackerBaseModel, UserRef
from .conversations import AuditEntryResponse, CommentResponse


# =============================================================================
# WORK ITEM SCHEMAS
# =============================================================================


class TbpFields(TrackerBaseModel):
    """TBP / Magazine fields, required before QA on gated types."""

    tbp_graphics_location: str | None = None
    tbp_publish_date: datetime | None = None
    tbp_article_link: str | None = None
    tbp_tx_tie: str | None = None
    tbp_magazine_issue: str | None = Field(default=None, max_length=100)


class WorkItemCreate(TbpFields):
    """Schema for creating a work item."""

    type: WorkItemType
    title: str = Field(..., min_length=1, max_length=200)
    description: str = ""
    priority: WorkItemPriority = WorkItemPriority.MEDIUM
    owner_id: UUID | None = None
    due_at: datetime | None = None
    tags: list[str] = Field(default_factory=list)
    deliverable_type: str | None = Field(default=None, max_length=100)
    needs_proofing: bool = False


class WorkItemUpdate(TbpFields):
    """
    Schema for updating a work item.

    Only fields present in the request body are applied; an explicit ``null``
    clears a nullable field.
    """

    status: WorkItemStatus | None = None
    title: str | None = Field(default=None, min_length=1, max_length=200)
    description: str | None = None
    priority: WorkItemPriority | None = None
    due_at: datetime | None = None
    owner_id: UUID | None = None
    blocked_reason: str | None = None
    tags: list[str] | None = None
    expected_version: int | None = Field(
        default=None,
        ge=1,
        description="Reject the update if the item has changed since this version",
    )

    @model_validator(mode="after")
    def reject_null_for_required_fields(self) -> "WorkItemUpdate":
        for name in ("title", "description", "priority", "tags", "status"):
            if name in self.model_fields_set and getattr(self, name) is None:
                raise ValueError(f"{name} cannot be null")
        return self


class WorkItemResponse(TbpFields):
    """Work item as returned after create or update."""

    id: UUID
    type: WorkItemType
    deliverable_type: str | None = None
    title: str
    description: str
    tags: list[str]
    needs_proofing: bool
    status: WorkItemStatus
    priority: WorkItemPriority
    blocked_reason: str | None = None
    requester_id: UUID
    owner_id: UUID | None = None
    updated_by_id: UUID | None = None
    status_changed_at: datetime | None = None
    started_at: datetime | None = None
    completed_at: datetime | None = None
    due_at: datetime | None = None
    owner_changed_at: datetime | None = None
    waiting_on_user_id: UUID | None = None
    waiting_reason: str | None = None
    waiting_since: datetime | None = None
    last_contacted_at: datetime | None = None
    version: int
    created_at: datetime
    updated_at: datetime


class WorkItemListItem(WorkItemResponse):
    """Board card: work item with its owner."""

    owner: UserRef | None = None


class SubtaskResponse(TrackerBaseModel):
    id: UUID
    work_item_id: UUID
    title: str
    order: int
    completed_at: datetime | None = None
    created_at: datetime


class WorkItemDetailResponse(WorkItemListItem):
    """Full work item view."""

    requester: UserRef
    subtasks: list[SubtaskResponse] = []
    comments: list[CommentResponse] = []
    recent_audit: list[AuditEntryResponse] = []


# =============================================================================
# SUBTASK SCHEMAS
# =============================================================================


class SubtaskCreate(TrackerBaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    order: int | None = Field(default=None, ge=0)


class SubtaskUpdate(TrackerBaseModel):
    title: str | None = Field(default=None, min_length=1, max_length=200)
    order: int | None = Field(default=None, ge=0)
    completed: bool | None = None


# =============================================================================
# QC CHECK SCHEMAS
# =============================================================================


class QCCheckResponse(TrackerBaseModel):
    id: UUID
    work_item_id: UUID
    checkpoint: str
    status: QCStatus
    notes: str | None = None
    checked_at: datetime | None = None
    checked_by_id: UUID | None = None
    created_at: datetime


class QCStatsResponse(TrackerBaseModel):
    total: int
    passed: int
    failed: int
    pending: int
    completion_rate: int


class QCChecklistResponse(TrackerBaseModel):
    checks: list[QCCheckResponse]
    stats: QCStatsResponse


class QCCheckpointsCreate(TrackerBaseModel):
    """Add named checkpoints to a work item."""

    checkpoints: list[str] = Field(..., min_length=1)


class QCCheckUpdate(TrackerBaseModel):
    """Set the status of one checkpoint, identified by name."""

    checkpoint: str = Field(..., min_length=1)
    status: QCStatus
    notes: str | None = None
