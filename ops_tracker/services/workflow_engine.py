"""
Workflow Engine: work-item status transitions and field updates.

Every update to a work item goes through ``WorkflowEngine.transition``:
- Completeness gates run before any attribute is touched
- Lifecycle timestamps are stamped from the status change itself
- Status or owner changes append exactly one audit entry
- Everything happens inside the caller's transaction
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..models import (
    AuditAction,
    AuditLog,
    QCCheck,
    WorkItem,
    WorkItemPriority,
    WorkItemStatus,
    utcnow,
)
from .audit import AuditService
from .errors import ConcurrencyError, GateValidationError, WorkItemNotFoundError
from .validators import (
    TBP_GATED_STATUSES,
    TBP_REQUIRED_FIELDS,
    qa_checklist_complete,
    tbp_fields_complete,
    type_requires_tbp_gating,
)

logger = logging.getLogger(__name__)

# Fields a transition may patch alongside (or instead of) a status change
PATCHABLE_FIELDS: frozenset[str] = frozenset({
    "title",
    "description",
    "priority",
    "due_at",
    "owner_id",
    "blocked_reason",
    "tags",
    "tbp_graphics_location",
    "tbp_publish_date",
    "tbp_article_link",
    "tbp_tx_tie",
    "tbp_magazine_issue",
})


# =============================================================================
# DATA TRANSFER OBJECTS
# =============================================================================


@dataclass
class TransitionInput:
    """Input for updating a work item.

    ``patch`` holds only the fields the caller actually supplied; a key
    mapped to ``None`` clears that field.
    """
    status: WorkItemStatus | None = None
    patch: dict[str, Any] = field(default_factory=dict)
    expected_version: int | None = None  # Optimistic locking


@dataclass
class TransitionResult:
    """Outcome of a successful transition."""
    work_item: WorkItem
    status_changed: bool
    owner_changed: bool
    audit_entry: AuditLog | None = None


# =============================================================================
# WORKFLOW ENGINE
# =============================================================================


class WorkflowEngine:
    """Applies validated updates to work items."""

    def __init__(
        self,
        session: AsyncSession,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.session = session
        self.clock = clock
        self.audit = AuditService(session)

    async def transition(
        self,
        work_item_id: UUID,
        input: TransitionInput,
        user_id: UUID,
    ) -> TransitionResult:
        """
        Update a work item, optionally moving it to a new status.

        Raises:
            WorkItemNotFoundError: No such work item
            ConcurrencyError: ``expected_version`` does not match
            GateValidationError: TBP fields or QA checklist incomplete
        """
        unknown = set(input.patch) - PATCHABLE_FIELDS
        if unknown:
            raise ValueError(f"Fields not patchable: {', '.join(sorted(unknown))}")

        item = await self._get_work_item_or_raise(work_item_id)

        if input.expected_version is not None and item.version != input.expected_version:
            raise ConcurrencyError(
                f"Version mismatch: expected {input.expected_version}, "
                f"current is {item.version}"
            )

        new_status = WorkItemStatus(input.status) if input.status is not None else None
        if new_status is not None:
            await self._check_gates(item, new_status, input.patch)

        # Gates passed: mutate
        previous_status = item.status
        previous_owner = item.owner_id
        now = self.clock()

        for name, value in input.patch.items():
            setattr(item, name, self._coerce(name, value))

        status_changed = new_status is not None and new_status != previous_status
        if status_changed:
            item.status = new_status
            item.status_changed_at = now
            if new_status == WorkItemStatus.IN_PROGRESS and item.started_at is None:
                item.started_at = now
            if new_status == WorkItemStatus.DONE:
                item.completed_at = now
            elif previous_status == WorkItemStatus.DONE:
                item.completed_at = None

        owner_changed = "owner_id" in input.patch and item.owner_id != previous_owner
        if owner_changed:
            item.owner_changed_at = now

        item.updated_by_id = user_id
        item.updated_at = now
        item.version += 1

        audit_entry = None
        if status_changed or owner_changed:
            audit_entry = await self._log_change(
                item,
                user_id,
                previous_status if status_changed else None,
                previous_owner,
                owner_changed,
            )
        await self.session.flush()

        logger.info(
            f"Work item {item.id} updated by {user_id} "
            f"(status {previous_status.value} -> {item.status.value}, "
            f"fields: {sorted(input.patch)})"
        )

        return TransitionResult(
            work_item=item,
            status_changed=status_changed,
            owner_changed=owner_changed,
            audit_entry=audit_entry,
        )

    # =========================================================================
    # GATES
    # =========================================================================

    async def _check_gates(
        self,
        item: WorkItem,
        new_status: WorkItemStatus,
        patch: dict[str, Any],
    ) -> None:
        if new_status in TBP_GATED_STATUSES and type_requires_tbp_gating(item.type):
            # A key present in the patch wins even when None: the gate checks
            # the values the item will hold, so a gated field cannot be
            # cleared while entering a gated status.
            merged = {
                name: patch[name] if name in patch else getattr(item, name)
                for name in TBP_REQUIRED_FIELDS
            }
            tbp = tbp_fields_complete(merged)
            if not tbp.valid:
                message = f"Cannot move to {new_status.value}: {', '.join(tbp.errors)}"
                logger.info(f"TBP gate rejected work item {item.id}: {tbp.missing_fields}")
                raise GateValidationError("tbp", message, tbp.errors)

        if new_status == WorkItemStatus.DONE:
            statuses = await self._get_qc_statuses(item.id)
            if statuses:
                qa = qa_checklist_complete(statuses)
                if not qa.valid:
                    message = (
                        f"Cannot mark as DONE: QA not complete "
                        f"({qa.passed}/{qa.total} passed, {qa.failed} failed)"
                    )
                    logger.info(f"QA gate rejected work item {item.id}: {message}")
                    raise GateValidationError("qa", message)

    async def _get_qc_statuses(self, work_item_id: UUID) -> list:
        result = await self.session.execute(
            select(QCCheck.status).where(QCCheck.work_item_id == work_item_id)
        )
        return list(result.scalars().all())

    # =========================================================================
    # HELPER METHODS
    # =========================================================================

    async def _get_work_item_or_raise(self, work_item_id: UUID) -> WorkItem:
        result = await self.session.execute(
            select(WorkItem).where(WorkItem.id == work_item_id)
        )
        item = result.scalar_one_or_none()
        if not item:
            raise WorkItemNotFoundError(work_item_id)
        return item

    @staticmethod
    def _coerce(name: str, value: Any) -> Any:
        if name == "priority" and value is not None:
            return WorkItemPriority(value)
        return value

    async def _log_change(
        self,
        item: WorkItem,
        user_id: UUID,
        previous_status: WorkItemStatus | None,
        previous_owner: UUID | None,
        owner_changed: bool,
    ) -> AuditLog:
        """Write one audit row; status takes precedence over owner as the label."""
        meta: dict[str, Any] = {}
        if previous_status is not None:
            meta["status"] = {"from": previous_status.value, "to": item.status.value}
        if owner_changed:
            meta["owner_id"] = {
                "from": _str_or_none(previous_owner),
                "to": _str_or_none(item.owner_id),
            }

        if previous_status is not None:
            action = AuditAction.STATUS_CHANGED
            from_value, to_value = previous_status.value, item.status.value
        else:
            action = AuditAction.OWNER_CHANGED
            from_value, to_value = _str_or_none(previous_owner), _str_or_none(item.owner_id)

        return await self.audit.record(
            work_item_id=item.id,
            action=action,
            user_id=user_id,
            from_value=from_value,
            to_value=to_value,
            meta=meta,
        )


def _str_or_none(value: UUID | None) -> str | None:
    return str(value) if value is not None else None
