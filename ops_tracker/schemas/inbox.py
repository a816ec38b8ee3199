"""Pydantic schemas for the inbox view."""

from .base import TrackerBaseModel
from .conversations import MessageResponse
from .work_items import WorkItemListItem


class AwaitingReplyResponse(TrackerBaseModel):
    work_item: WorkItemListItem
    waiting_days: int


class InboundMessageResponse(TrackerBaseModel):
    message: MessageResponse
    work_item_title: str


class InboxCounts(TrackerBaseModel):
    awaiting: int
    blocked: int
    inbound: int


class InboxResponse(TrackerBaseModel):
    awaiting_reply: list[AwaitingReplyResponse]
    blocked: list[WorkItemListItem]
    recent_inbound: list[InboundMessageResponse]
    counts: InboxCounts
