"""QC checklist service: named QA checkpoints on a work item.

The checklist drives ``needs_proofing`` on the parent item and is read by the
workflow engine's QA gate before an item may be marked DONE.
"""

import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from datetime import datetime
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..models import QCCheck, QCStatus, WorkItem, utcnow
from .errors import InvalidOperationError, NotFoundError, WorkItemNotFoundError

logger = logging.getLogger(__name__)

# Statuses that count as resolved for proofing purposes
RESOLVED_STATUSES = frozenset({QCStatus.PASSED, QCStatus.SKIPPED})
STAMPED_STATUSES = frozenset({QCStatus.PASSED, QCStatus.FAILED})


@dataclass
class QCStats:
    total: int
    passed: int
    failed: int
    pending: int
    completion_rate: int  # percent, rounded

    @classmethod
    def from_checks(cls, checks: Sequence[QCCheck]) -> "QCStats":
        total = len(checks)
        passed = sum(1 for c in checks if c.status == QCStatus.PASSED)
        failed = sum(1 for c in checks if c.status == QCStatus.FAILED)
        pending = sum(1 for c in checks if c.status == QCStatus.PENDING)
        return cls(
            total=total,
            passed=passed,
            failed=failed,
            pending=pending,
            completion_rate=round(passed / total * 100) if total else 0,
        )


@dataclass
class QCChecklist:
    checks: Sequence[QCCheck]
    stats: QCStats


class QCCheckService:
    def __init__(
        self,
        session: AsyncSession,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.session = session
        self.clock = clock

    async def get_checklist(self, work_item_id: UUID) -> QCChecklist:
        await self._get_work_item_or_raise(work_item_id)
        checks = await self._list_checks(work_item_id)
        return QCChecklist(checks=checks, stats=QCStats.from_checks(checks))

    async def add_checkpoints(
        self,
        work_item_id: UUID,
        checkpoints: list[str],
    ) -> Sequence[QCCheck]:
        """Add PENDING checkpoints and flag the item as needing proofing."""
        if not checkpoints:
            raise InvalidOperationError("At least one checkpoint is required")

        item = await self._get_work_item_or_raise(work_item_id)
        now = self.clock()

        created = []
        for name in checkpoints:
            check = QCCheck(
                work_item_id=work_item_id,
                checkpoint=name,
                status=QCStatus.PENDING,
                created_at=now,
            )
            self.session.add(check)
            created.append(check)

        item.needs_proofing = True
        await self.session.flush()

        logger.info(f"Added {len(created)} QC checkpoints to work item {work_item_id}")
        return created

    async def update_checkpoint(
        self,
        work_item_id: UUID,
        checkpoint: str,
        status: QCStatus,
        user_id: UUID,
        notes: str | None = None,
    ) -> QCCheck:
        """Set the status of one checkpoint, looked up by name."""
        item = await self._get_work_item_or_raise(work_item_id)
        status = QCStatus(status)

        result = await self.session.execute(
            select(QCCheck).where(
                QCCheck.work_item_id == work_item_id,
                QCCheck.checkpoint == checkpoint,
            )
        )
        check = result.scalars().first()
        if not check:
            raise NotFoundError(f"Checkpoint '{checkpoint}' not found")

        check.status = status
        if notes is not None:
            check.notes = notes
        if status in STAMPED_STATUSES:
            check.checked_at = self.clock()
            check.checked_by_id = user_id
        else:
            check.checked_at = None
            check.checked_by_id = None
        await self.session.flush()

        checks = await self._list_checks(work_item_id)
        if checks and all(c.status in RESOLVED_STATUSES for c in checks):
            item.needs_proofing = False
            await self.session.flush()

        return check

    async def _list_checks(self, work_item_id: UUID) -> Sequence[QCCheck]:
        result = await self.session.execute(
            select(QCCheck)
            .where(QCCheck.work_item_id == work_item_id)
            .order_by(QCCheck.created_at, QCCheck.checkpoint)
        )
        return result.scalars().all()

    async def _get_work_item_or_raise(self, work_item_id: UUID) -> WorkItem:
        item = await self.session.get(WorkItem, work_item_id)
        if not item:
            raise WorkItemNotFoundError(work_item_id)
        return item
