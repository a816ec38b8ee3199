"""Subtask service: checklist steps inside a work item."""

import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from datetime import datetime
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from ..models import Subtask, WorkItem, utcnow
from .errors import NotFoundError, WorkItemNotFoundError

logger = logging.getLogger(__name__)


@dataclass
class UpdateSubtaskInput:
    title: str | None = None
    order: int | None = None
    completed: bool | None = None


class SubtaskService:
    def __init__(
        self,
        session: AsyncSession,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.session = session
        self.clock = clock

    async def list_subtasks(self, work_item_id: UUID) -> Sequence[Subtask]:
        await self._ensure_work_item(work_item_id)
        result = await self.session.execute(
            select(Subtask)
            .where(Subtask.work_item_id == work_item_id)
            .order_by(Subtask.order, Subtask.created_at)
        )
        return result.scalars().all()

    async def add_subtask(
        self,
        work_item_id: UUID,
        title: str,
        order: int | None = None,
    ) -> Subtask:
        """Append a subtask; without an explicit order it goes last."""
        await self._ensure_work_item(work_item_id)

        if order is None:
            result = await self.session.execute(
                select(func.coalesce(func.max(Subtask.order), -1) + 1).where(
                    Subtask.work_item_id == work_item_id
                )
            )
            order = result.scalar_one()

        subtask = Subtask(
            work_item_id=work_item_id,
            title=title,
            order=order,
            created_at=self.clock(),
        )
        self.session.add(subtask)
        await self.session.flush()
        return subtask

    async def update_subtask(
        self,
        subtask_id: UUID,
        data: UpdateSubtaskInput,
    ) -> Subtask:
        subtask = await self._get_subtask_or_raise(subtask_id)

        if data.title is not None:
            subtask.title = data.title
        if data.order is not None:
            subtask.order = data.order
        if data.completed is not None:
            if data.completed and subtask.completed_at is None:
                subtask.completed_at = self.clock()
            elif not data.completed:
                subtask.completed_at = None

        await self.session.flush()
        return subtask

    async def delete_subtask(self, subtask_id: UUID) -> None:
        subtask = await self._get_subtask_or_raise(subtask_id)
        await self.session.delete(subtask)
        await self.session.flush()
        logger.info(f"Subtask {subtask_id} deleted from work item {subtask.work_item_id}")

    async def _get_subtask_or_raise(self, subtask_id: UUID) -> Subtask:
        subtask = await self.session.get(Subtask, subtask_id)
        if not subtask:
            raise NotFoundError(f"Subtask {subtask_id} not found")
        return subtask

    async def _ensure_work_item(self, work_item_id: UUID) -> None:
        result = await self.session.execute(
            select(WorkItem.id).where(WorkItem.id == work_item_id)
        )
        if result.scalar_one_or_none() is None:
            raise WorkItemNotFoundError(work_item_id)
