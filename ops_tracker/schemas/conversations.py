"""Pydantic schemas for comments, messages and the audit trail."""

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import Field

from ..models import AuditAction, MessageChannel, MessageDirection
from .base import TrackerBaseModel, UserRef


class CommentCreate(TrackerBaseModel):
    body: str = Field(..., min_length=1)


class CommentResponse(TrackerBaseModel):
    id: UUID
    work_item_id: UUID
    body: str
    user: UserRef
    created_at: datetime


class MessageCreate(TrackerBaseModel):
    body: str = Field(..., min_length=1)
    direction: MessageDirection
    channel: MessageChannel = MessageChannel.INTERNAL
    external_email: str | None = Field(default=None, max_length=255)
    external_name: str | None = Field(default=None, max_length=255)


class MessageResponse(TrackerBaseModel):
    id: UUID
    work_item_id: UUID
    body: str
    direction: MessageDirection
    channel: MessageChannel
    external_email: str | None = None
    external_name: str | None = None
    sender_id: UUID | None = None
    sent_at: datetime | None = None
    created_at: datetime


class AuditEntryResponse(TrackerBaseModel):
    """Single audit log entry."""

    id: UUID
    work_item_id: UUID
    user: UserRef | None = None
    action: AuditAction
    from_value: str | None = None
    to_value: str | None = None
    meta: dict[str, Any] = {}
    created_at: datetime
