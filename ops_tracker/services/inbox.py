"""Inbox service: work items that are waiting on someone.

The inbox holds three lists:
- Items awaiting a reply (reply-pending state left by an OUTBOUND message,
  or an explicit ``waiting_on_user_id``), oldest wait first
- BLOCKED items, least recently touched first
- INBOUND messages received in the last 48 hours
"""

from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from uuid import UUID

from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from ..models import Message, MessageDirection, WorkItem, WorkItemStatus, as_utc, utcnow

RECENT_INBOUND_WINDOW = timedelta(hours=48)


@dataclass
class AwaitingReply:
    work_item: WorkItem
    waiting_days: int


@dataclass
class InboundMessage:
    message: Message
    work_item_title: str


@dataclass
class Inbox:
    awaiting_reply: list[AwaitingReply] = field(default_factory=list)
    blocked: list[WorkItem] = field(default_factory=list)
    recent_inbound: list[InboundMessage] = field(default_factory=list)

    @property
    def counts(self) -> dict[str, int]:
        return {
            "awaiting": len(self.awaiting_reply),
            "blocked": len(self.blocked),
            "inbound": len(self.recent_inbound),
        }


class InboxService:
    def __init__(
        self,
        session: AsyncSession,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.session = session
        self.clock = clock

    async def get_inbox(self, owner_id: UUID | None = None) -> Inbox:
        """Build the inbox, optionally restricted to items owned by ``owner_id``."""
        now = self.clock()
        owned = [WorkItem.owner_id == owner_id] if owner_id else []

        awaiting_result = await self.session.execute(
            select(WorkItem)
            .where(
                or_(
                    WorkItem.waiting_on_user_id.is_not(None),
                    WorkItem.waiting_since.is_not(None),
                ),
                WorkItem.status != WorkItemStatus.DONE,
                *owned,
            )
            .options(selectinload(WorkItem.owner))
            .execution_options(populate_existing=True)
            .order_by(
                WorkItem.waiting_since.is_(None),
                WorkItem.waiting_since,
                WorkItem.due_at.is_(None),
                WorkItem.due_at,
            )
        )
        awaiting = [
            AwaitingReply(
                work_item=item,
                waiting_days=(
                    int((now - as_utc(item.waiting_since)).total_seconds() // 86400)
                    if item.waiting_since
                    else 0
                ),
            )
            for item in awaiting_result.scalars().all()
        ]

        blocked_result = await self.session.execute(
            select(WorkItem)
            .where(WorkItem.status == WorkItemStatus.BLOCKED, *owned)
            .options(selectinload(WorkItem.owner))
            .execution_options(populate_existing=True)
            .order_by(WorkItem.updated_at)
        )

        inbound_query = (
            select(Message, WorkItem.title)
            .join(WorkItem, Message.work_item_id == WorkItem.id)
            .where(
                Message.direction == MessageDirection.INBOUND,
                Message.created_at >= now - RECENT_INBOUND_WINDOW,
                *owned,
            )
            .order_by(Message.created_at.desc())
        )
        inbound_result = await self.session.execute(inbound_query)

        return Inbox(
            awaiting_reply=awaiting,
            blocked=list(blocked_result.scalars().all()),
            recent_inbound=[
                InboundMessage(message=message, work_item_title=title)
                for message, title in inbound_result.all()
            ],
        )
