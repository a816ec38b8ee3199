"""Pydantic schemas for the Ops Tracker API."""

from .base import (
    DataResponse,
    ErrorDetail,
    ErrorResponse,
    PaginatedResponse,
    TrackerBaseModel,
    UserRef,
)
from .conversations import (
    AuditEntryResponse,
    CommentCreate,
    CommentResponse,
    MessageCreate,
    MessageResponse,
)
from .inbox import InboxResponse
from .metrics import CycleTimeResponse, DashboardStatsResponse
from .templates import TemplateCreate, TemplateResponse, TemplateUpdate
from .users import UserResponse
from .work_items import (
    QCCheckpointsCreate,
    QCCheckResponse,
    QCChecklistResponse,
    QCCheckUpdate,
    SubtaskCreate,
    SubtaskResponse,
    SubtaskUpdate,
    WorkItemCreate,
    WorkItemDetailResponse,
    WorkItemListItem,
    WorkItemResponse,
    WorkItemUpdate,
)

__all__ = [
    # Base
    "TrackerBaseModel",
    "DataResponse",
    "PaginatedResponse",
    "ErrorDetail",
    "ErrorResponse",
    "UserRef",
    # Work items
    "WorkItemCreate",
    "WorkItemUpdate",
    "WorkItemResponse",
    "WorkItemListItem",
    "WorkItemDetailResponse",
    # Subtasks
    "SubtaskCreate",
    "SubtaskUpdate",
    "SubtaskResponse",
    # QC
    "QCCheckpointsCreate",
    "QCCheckUpdate",
    "QCCheckResponse",
    "QCChecklistResponse",
    # Conversations
    "CommentCreate",
    "CommentResponse",
    "MessageCreate",
    "MessageResponse",
    "AuditEntryResponse",
    # Templates
    "TemplateCreate",
    "TemplateResponse",
    "TemplateUpdate",
    # Users and inbox
    "UserResponse",
    "InboxResponse",
    # Metrics
    "DashboardStatsResponse",
    "CycleTimeResponse",
]
