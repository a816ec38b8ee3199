"""SQLAlchemy ORM Models for Ops Tracker."""

from datetime import datetime
from enum import Enum as PyEnum
from uuid import UUID

from sqlalchemy import (
    Boolean,
    Enum,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    Uuid,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base, JSONType, TimestampMixin, UUIDMixin, utcnow


def _enum_column(enum_cls: type[PyEnum], name: str) -> Enum:
    return Enum(enum_cls, name=name, values_callable=lambda x: [e.value for e in x])


# =============================================================================
# ENUMS
# =============================================================================


class UserRole(str, PyEnum):
    ADMIN = "ADMIN"
    MEMBER = "MEMBER"


class WorkItemType(str, PyEnum):
    """Fixed set of work categories."""
    BOOK_CAMPAIGN = "BOOK_CAMPAIGN"
    SOCIAL_ASSET_REQUEST = "SOCIAL_ASSET_REQUEST"
    SPONSORED_EDITORIAL_REVIEW = "SPONSORED_EDITORIAL_REVIEW"
    TX_BOOK_PREVIEW_LEAD = "TX_BOOK_PREVIEW_LEAD"
    WEBSITE_EVENT = "WEBSITE_EVENT"
    ACCESS_REQUEST = "ACCESS_REQUEST"
    GENERAL = "GENERAL"


class WorkItemStatus(str, PyEnum):
    """Board columns, in display order."""
    BACKLOG = "BACKLOG"
    READY = "READY"
    IN_PROGRESS = "IN_PROGRESS"
    BLOCKED = "BLOCKED"
    IN_REVIEW = "IN_REVIEW"
    NEEDS_QA = "NEEDS_QA"
    DONE = "DONE"


class WorkItemPriority(str, PyEnum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    URGENT = "URGENT"

    @property
    def rank(self) -> int:
        return list(WorkItemPriority).index(self)


class QCStatus(str, PyEnum):
    PENDING = "PENDING"
    PASSED = "PASSED"
    FAILED = "FAILED"
    SKIPPED = "SKIPPED"


class MessageDirection(str, PyEnum):
    INBOUND = "INBOUND"
    OUTBOUND = "OUTBOUND"
    INTERNAL = "INTERNAL"


class MessageChannel(str, PyEnum):
    INTERNAL = "INTERNAL"
    EMAIL = "EMAIL"
    PHONE = "PHONE"
    OTHER = "OTHER"


class AuditAction(str, PyEnum):
    CREATED = "created"
    STATUS_CHANGED = "status_changed"
    OWNER_CHANGED = "owner_changed"
    COMMENT_ADDED = "comment_added"
    MESSAGE_ADDED = "message_added"


WORK_ITEM_TYPE_ENUM = _enum_column(WorkItemType, "work_item_type")


# =============================================================================
# USERS
# =============================================================================


class User(Base, UUIDMixin):
    """Team member who requests, owns or updates work."""

    __tablename__ = "users"

    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    role: Mapped[UserRole] = mapped_column(
        _enum_column(UserRole, "user_role"),
        default=UserRole.MEMBER,
        nullable=False,
    )
    created_at: Mapped[datetime] = mapped_column(default=utcnow, nullable=False)

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN


# =============================================================================
# WORK ITEMS (Core)
# =============================================================================


class WorkItem(Base, UUIDMixin, TimestampMixin):
    """The unit of work tracked on the board."""

    __tablename__ = "work_items"

    # Classification
    type: Mapped[WorkItemType] = mapped_column(
        WORK_ITEM_TYPE_ENUM, nullable=False
    )
    deliverable_type: Mapped[str | None] = mapped_column(String(100))

    # Content
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str] = mapped_column(Text, default="", nullable=False)
    tags: Mapped[list[str]] = mapped_column(JSONType, default=list, nullable=False)
    needs_proofing: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    # Workflow
    status: Mapped[WorkItemStatus] = mapped_column(
        _enum_column(WorkItemStatus, "work_item_status"),
        default=WorkItemStatus.BACKLOG,
        nullable=False,
    )
    priority: Mapped[WorkItemPriority] = mapped_column(
        _enum_column(WorkItemPriority, "work_item_priority"),
        default=WorkItemPriority.MEDIUM,
        nullable=False,
    )
    blocked_reason: Mapped[str | None] = mapped_column(Text)

    # Ownership
    requester_id: Mapped[UUID] = mapped_column(ForeignKey("users.id"), nullable=False)
    owner_id: Mapped[UUID | None] = mapped_column(ForeignKey("users.id"))
    updated_by_id: Mapped[UUID | None] = mapped_column(ForeignKey("users.id"))

    # Lifecycle timestamps
    status_changed_at: Mapped[datetime | None] = mapped_column()
    started_at: Mapped[datetime | None] = mapped_column(
        comment="First entry into IN_PROGRESS; never cleared"
    )
    completed_at: Mapped[datetime | None] = mapped_column(
        comment="Set while status is DONE; cleared on reopen"
    )
    due_at: Mapped[datetime | None] = mapped_column()
    owner_changed_at: Mapped[datetime | None] = mapped_column()

    # Waiting / communication state (driven by messages)
    waiting_on_user_id: Mapped[UUID | None] = mapped_column(ForeignKey("users.id"))
    waiting_reason: Mapped[str | None] = mapped_column(String(255))
    waiting_since: Mapped[datetime | None] = mapped_column()
    last_contacted_at: Mapped[datetime | None] = mapped_column()

    # TBP / Magazine fields
    tbp_graphics_location: Mapped[str | None] = mapped_column(Text)
    tbp_publish_date: Mapped[datetime | None] = mapped_column()
    tbp_article_link: Mapped[str | None] = mapped_column(Text)
    tbp_tx_tie: Mapped[str | None] = mapped_column(Text)
    tbp_magazine_issue: Mapped[str | None] = mapped_column(String(100))

    version: Mapped[int] = mapped_column(Integer, default=1, nullable=False)

    # Relationships
    requester: Mapped["User"] = relationship(foreign_keys=[requester_id])
    owner: Mapped["User | None"] = relationship(foreign_keys=[owner_id])
    subtasks: Mapped[list["Subtask"]] = relationship(
        back_populates="work_item",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="Subtask.order",
    )
    comments: Mapped[list["Comment"]] = relationship(
        back_populates="work_item",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="Comment.created_at",
    )
    messages: Mapped[list["Message"]] = relationship(
        back_populates="work_item",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="Message.created_at",
    )
    qc_checks: Mapped[list["QCCheck"]] = relationship(
        back_populates="work_item",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    __table_args__ = (
        Index("idx_work_items_status", "status"),
        Index("idx_work_items_owner", "owner_id"),
        Index("idx_work_items_type", "type"),
        Index("idx_work_items_due_at", "due_at"),
    )


class Subtask(Base, UUIDMixin):
    """Checklist step inside a work item."""

    __tablename__ = "subtasks"

    work_item_id: Mapped[UUID] = mapped_column(
        ForeignKey("work_items.id", ondelete="CASCADE"), nullable=False
    )
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    order: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    completed_at: Mapped[datetime | None] = mapped_column()
    created_at: Mapped[datetime] = mapped_column(default=utcnow, nullable=False)

    work_item: Mapped["WorkItem"] = relationship(back_populates="subtasks")

    __table_args__ = (
        Index("idx_subtasks_work_item", "work_item_id", "order"),
    )


class Comment(Base, UUIDMixin):
    """Free-text note on a work item."""

    __tablename__ = "comments"

    work_item_id: Mapped[UUID] = mapped_column(
        ForeignKey("work_items.id", ondelete="CASCADE"), nullable=False
    )
    user_id: Mapped[UUID] = mapped_column(ForeignKey("users.id"), nullable=False)
    body: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(default=utcnow, nullable=False)

    work_item: Mapped["WorkItem"] = relationship(back_populates="comments")
    user: Mapped["User"] = relationship()

    __table_args__ = (
        Index("idx_comments_work_item", "work_item_id", "created_at"),
    )


class Message(Base, UUIDMixin):
    """Directional communication record (reply tracking)."""

    __tablename__ = "messages"

    work_item_id: Mapped[UUID] = mapped_column(
        ForeignKey("work_items.id", ondelete="CASCADE"), nullable=False
    )
    body: Mapped[str] = mapped_column(Text, nullable=False)
    direction: Mapped[MessageDirection] = mapped_column(
        _enum_column(MessageDirection, "message_direction"), nullable=False
    )
    channel: Mapped[MessageChannel] = mapped_column(
        _enum_column(MessageChannel, "message_channel"),
        default=MessageChannel.INTERNAL,
        nullable=False,
    )
    external_email: Mapped[str | None] = mapped_column(String(255))
    external_name: Mapped[str | None] = mapped_column(String(255))
    sender_id: Mapped[UUID | None] = mapped_column(ForeignKey("users.id"))
    sent_at: Mapped[datetime | None] = mapped_column()
    created_at: Mapped[datetime] = mapped_column(default=utcnow, nullable=False)

    work_item: Mapped["WorkItem"] = relationship(back_populates="messages")

    __table_args__ = (
        Index("idx_messages_work_item", "work_item_id", "created_at"),
    )


class QCCheck(Base, UUIDMixin):
    """Named QA checkpoint on a work item."""

    __tablename__ = "qc_checks"

    work_item_id: Mapped[UUID] = mapped_column(
        ForeignKey("work_items.id", ondelete="CASCADE"), nullable=False
    )
    checkpoint: Mapped[str] = mapped_column(String(200), nullable=False)
    status: Mapped[QCStatus] = mapped_column(
        _enum_column(QCStatus, "qc_status"),
        default=QCStatus.PENDING,
        nullable=False,
    )
    notes: Mapped[str | None] = mapped_column(Text)
    checked_at: Mapped[datetime | None] = mapped_column()
    checked_by_id: Mapped[UUID | None] = mapped_column(ForeignKey("users.id"))
    created_at: Mapped[datetime] = mapped_column(default=utcnow, nullable=False)

    work_item: Mapped["WorkItem"] = relationship(back_populates="qc_checks")

    __table_args__ = (
        Index("idx_qc_checks_work_item", "work_item_id"),
    )


# =============================================================================
# AUDIT
# =============================================================================


class AuditLog(Base, UUIDMixin):
    """Append-only audit trail.

    ``work_item_id`` carries no foreign key: entries outlive the item they
    describe.
    """

    __tablename__ = "audit_log"

    work_item_id: Mapped[UUID] = mapped_column(Uuid(as_uuid=True), nullable=False)
    user_id: Mapped[UUID | None] = mapped_column(ForeignKey("users.id"))
    action: Mapped[AuditAction] = mapped_column(
        _enum_column(AuditAction, "audit_action"), nullable=False
    )
    from_value: Mapped[str | None] = mapped_column(Text)
    to_value: Mapped[str | None] = mapped_column(Text)
    meta: Mapped[dict] = mapped_column(JSONType, default=dict, nullable=False)
    created_at: Mapped[datetime] = mapped_column(default=utcnow, nullable=False)

    user: Mapped["User | None"] = relationship()

    __table_args__ = (
        Index("idx_audit_log_work_item", "work_item_id", "created_at"),
        Index("idx_audit_log_user", "user_id", "created_at"),
        Index("idx_audit_log_action", "action", "created_at"),
    )


# =============================================================================
# TEMPLATES
# =============================================================================


class TriggerTemplate(Base, UUIDMixin, TimestampMixin):
    """Admin-configured defaults applied when a work item is created."""

    __tablename__ = "trigger_templates"

    name: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str | None] = mapped_column(Text)
    work_item_type: Mapped[WorkItemType] = mapped_column(
        WORK_ITEM_TYPE_ENUM, nullable=False
    )
    subtasks: Mapped[list[dict]] = mapped_column(
        JSONType,
        default=list,
        nullable=False,
        comment="[{title: str, offset_days: int | None}]",
    )
    due_days_offset: Mapped[int] = mapped_column(Integer, default=7, nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    __table_args__ = (
        Index("idx_trigger_templates_type", "work_item_type", "is_active"),
    )
