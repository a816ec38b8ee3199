"""Tests for comments, messages and reply tracking."""

from uuid import uuid4

import pytest
from sqlalchemy import select

from ops_tracker.models import AuditAction, AuditLog, MessageChannel, MessageDirection
from ops_tracker.services import AddMessageInput, ConversationService, WorkItemNotFoundError
from ops_tracker.services.conversations import AWAITING_REPLY


@pytest.fixture
def service(session, clock) -> ConversationService:
    return ConversationService(session, clock=clock)


async def audit_actions(session, work_item_id) -> list[AuditAction]:
    result = await session.execute(
        select(AuditLog.action).where(AuditLog.work_item_id == work_item_id)
    )
    return list(result.scalars().all())


class TestComments:
    async def test_add_and_list(self, service, session, make_item, member):
        item = await make_item()

        comment = await service.add_comment(item.id, "Looks good", user_id=member.id)

        assert comment.user.name == "Morgan Member"
        assert [c.body for c in await service.list_comments(item.id)] == ["Looks good"]
        assert await audit_actions(session, item.id) == [AuditAction.COMMENT_ADDED]

    async def test_missing_item(self, service, member):
        with pytest.raises(WorkItemNotFoundError):
            await service.add_comment(uuid4(), "Hello?", user_id=member.id)


class TestMessages:
    async def test_outbound_starts_waiting(self, service, session, make_item, member, clock):
        item = await make_item()

        sent_at = clock.advance(hours=1)
        message = await service.add_message(
            item.id,
            AddMessageInput(
                body="Could you send the cover art?",
                direction=MessageDirection.OUTBOUND,
                channel=MessageChannel.EMAIL,
                external_email="author@example.com",
            ),
            user_id=member.id,
        )

        assert message.sent_at == sent_at
        assert item.waiting_reason == AWAITING_REPLY
        assert item.waiting_since == sent_at
        assert item.last_contacted_at == sent_at

        entry = (await session.execute(
            select(AuditLog).where(AuditLog.work_item_id == item.id)
        )).scalar_one()
        assert entry.action == AuditAction.MESSAGE_ADDED
        assert entry.meta == {"direction": "OUTBOUND", "channel": "EMAIL"}

    async def test_inbound_clears_waiting(self, service, make_item, member, admin, clock):
        item = await make_item(waiting_on_user_id=admin.id)
        await service.add_message(
            item.id,
            AddMessageInput(body="Following up", direction=MessageDirection.OUTBOUND),
            user_id=member.id,
        )
        contacted_at = item.last_contacted_at

        clock.advance(days=1)
        message = await service.add_message(
            item.id,
            AddMessageInput(body="Attached!", direction=MessageDirection.INBOUND),
            user_id=member.id,
        )

        assert message.sent_at is None
        assert item.waiting_on_user_id is None
        assert item.waiting_reason is None
        assert item.waiting_since is None
        assert item.last_contacted_at == contacted_at

    async def test_internal_note_leaves_waiting_state(self, service, make_item, member, clock):
        item = await make_item(waiting_reason="Awaiting legal")

        message = await service.add_message(
            item.id,
            AddMessageInput(body="Pinged legal again", direction=MessageDirection.INTERNAL),
            user_id=member.id,
        )

        assert message.sent_at == clock()
        assert item.waiting_reason == "Awaiting legal"

    async def test_list_in_order(self, service, make_item, member, clock):
        item = await make_item()
        for body in ("one", "two"):
            clock.advance(minutes=1)
            await service.add_message(
                item.id,
                AddMessageInput(body=body, direction=MessageDirection.INTERNAL),
                user_id=member.id,
            )

        assert [m.body for m in await service.list_messages(item.id)] == ["one", "two"]
