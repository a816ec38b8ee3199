"""Conversation service: comments and directional messages on a work item.

Messages double as reply tracking: sending an OUTBOUND message puts the item
into a waiting state, an INBOUND reply clears it.
"""

import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from datetime import datetime
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from ..models import (
    AuditAction,
    Comment,
    Message,
    MessageChannel,
    MessageDirection,
    WorkItem,
    utcnow,
)
from .audit import AuditService
from .errors import WorkItemNotFoundError

logger = logging.getLogger(__name__)

AWAITING_REPLY = "Awaiting reply"


@dataclass
class AddMessageInput:
    body: str
    direction: MessageDirection
    channel: MessageChannel = MessageChannel.INTERNAL
    external_email: str | None = None
    external_name: str | None = None


class ConversationService:
    def __init__(
        self,
        session: AsyncSession,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.session = session
        self.clock = clock
        self.audit = AuditService(session)

    # =========================================================================
    # COMMENTS
    # =========================================================================

    async def list_comments(self, work_item_id: UUID) -> Sequence[Comment]:
        await self._get_work_item_or_raise(work_item_id)
        result = await self.session.execute(
            select(Comment)
            .where(Comment.work_item_id == work_item_id)
            .options(selectinload(Comment.user))
            .order_by(Comment.created_at)
        )
        return result.scalars().all()

    async def add_comment(self, work_item_id: UUID, body: str, user_id: UUID) -> Comment:
        await self._get_work_item_or_raise(work_item_id)

        comment = Comment(
            work_item_id=work_item_id,
            user_id=user_id,
            body=body,
            created_at=self.clock(),
        )
        self.session.add(comment)
        await self.audit.record(
            work_item_id=work_item_id,
            action=AuditAction.COMMENT_ADDED,
            user_id=user_id,
        )
        await self.session.flush()
        await self.session.refresh(comment, attribute_names=["user"])
        return comment

    # =========================================================================
    # MESSAGES
    # =========================================================================

    async def list_messages(self, work_item_id: UUID) -> Sequence[Message]:
        await self._get_work_item_or_raise(work_item_id)
        result = await self.session.execute(
            select(Message)
            .where(Message.work_item_id == work_item_id)
            .order_by(Message.created_at)
        )
        return result.scalars().all()

    async def add_message(
        self,
        work_item_id: UUID,
        data: AddMessageInput,
        user_id: UUID,
    ) -> Message:
        """Record a message and update the item's waiting state."""
        item = await self._get_work_item_or_raise(work_item_id)
        direction = MessageDirection(data.direction)
        channel = MessageChannel(data.channel)
        now = self.clock()

        message = Message(
            work_item_id=work_item_id,
            body=data.body,
            direction=direction,
            channel=channel,
            external_email=data.external_email,
            external_name=data.external_name,
            sender_id=user_id,
            sent_at=now if direction != MessageDirection.INBOUND else None,
            created_at=now,
        )
        self.session.add(message)

        if direction == MessageDirection.OUTBOUND:
            item.waiting_reason = AWAITING_REPLY
            item.waiting_since = now
            item.last_contacted_at = now
        elif direction == MessageDirection.INBOUND:
            item.waiting_on_user_id = None
            item.waiting_reason = None
            item.waiting_since = None

        await self.audit.record(
            work_item_id=work_item_id,
            action=AuditAction.MESSAGE_ADDED,
            user_id=user_id,
            meta={"direction": direction.value, "channel": channel.value},
        )
        await self.session.flush()

        logger.info(f"{direction.value} message added to work item {work_item_id}")
        return message

    async def _get_work_item_or_raise(self, work_item_id: UUID) -> WorkItem:
        item = await self.session.get(WorkItem, work_item_id)
        if not item:
            raise WorkItemNotFoundError(work_item_id)
        return item
