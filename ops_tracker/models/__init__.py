"""SQLAlchemy ORM Models for Ops Tracker."""

from .base import Base, JSONType, TimestampMixin, UUIDMixin, as_utc, utcnow
from .models import (
    # Enums
    AuditAction,
    MessageChannel,
    MessageDirection,
    QCStatus,
    UserRole,
    WorkItemPriority,
    WorkItemStatus,
    WorkItemType,
    # Users
    User,
    # Work items
    WorkItem,
    Subtask,
    Comment,
    Message,
    QCCheck,
    # Audit
    AuditLog,
    # Templates
    TriggerTemplate,
)

__all__ = [
    # Base
    "Base",
    "JSONType",
    "UUIDMixin",
    "TimestampMixin",
    "utcnow",
    "as_utc",
    # Enums
    "AuditAction",
    "MessageChannel",
    "MessageDirection",
    "QCStatus",
    "UserRole",
    "WorkItemPriority",
    "WorkItemStatus",
    "WorkItemType",
    # Users
    "User",
    # Work items
    "WorkItem",
    "Subtask",
    "Comment",
    "Message",
    "QCCheck",
    # Audit
    "AuditLog",
    # Templates
    "TriggerTemplate",
]
