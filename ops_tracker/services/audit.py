"""Audit service: append-only trail of work-item changes."""

import logging
from collections.abc import Sequence
from typing import Any
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from ..models import AuditAction, AuditLog

logger = logging.getLogger(__name__)


class AuditService:
    """Writes and reads AuditLog rows. Rows are never updated or deleted."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def record(
        self,
        work_item_id: UUID,
        action: AuditAction,
        user_id: UUID | None = None,
        from_value: str | None = None,
        to_value: str | None = None,
        meta: dict[str, Any] | None = None,
    ) -> AuditLog:
        """Append an audit entry to the current transaction."""
        entry = AuditLog(
            work_item_id=work_item_id,
            user_id=user_id,
            action=action,
            from_value=from_value,
            to_value=to_value,
            meta=meta or {},
        )
        self.session.add(entry)
        # Flushed with the rest of the caller's unit of work
        logger.debug(f"Audit {action.value} queued for work item {work_item_id}")
        return entry

    async def list_for_work_item(
        self,
        work_item_id: UUID,
        limit: int = 50,
        offset: int = 0,
    ) -> tuple[Sequence[AuditLog], int]:
        """Audit entries for one work item, newest first."""
        query = select(AuditLog).where(AuditLog.work_item_id == work_item_id)

        count_query = select(func.count()).select_from(query.subquery())
        total = (await self.session.execute(count_query)).scalar_one()

        query = (
            query.options(selectinload(AuditLog.user))
            .order_by(AuditLog.created_at.desc())
            .limit(limit)
            .offset(offset)
        )
        result = await self.session.execute(query)
        return result.scalars().all(), total
