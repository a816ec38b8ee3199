"""Work item service: creation, lookup, listing and deletion."""

import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from uuid import UUID

from sqlalchemy import case, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from ..core.config import get_settings
from ..models import (
    AuditAction,
    AuditLog,
    Comment,
    Subtask,
    TriggerTemplate,
    WorkItem,
    WorkItemPriority,
    WorkItemStatus,
    WorkItemType,
    utcnow,
)
from .audit import AuditService
from .errors import WorkItemNotFoundError

logger = logging.getLogger(__name__)

RECENT_AUDIT_LIMIT = 20


@dataclass
class CreateWorkItemInput:
    """Input for creating a work item."""
    type: WorkItemType
    title: str
    description: str = ""
    priority: WorkItemPriority = WorkItemPriority.MEDIUM
    owner_id: UUID | None = None
    due_at: datetime | None = None
    tags: list[str] = field(default_factory=list)
    deliverable_type: str | None = None
    needs_proofing: bool = False
    tbp_graphics_location: str | None = None
    tbp_publish_date: datetime | None = None
    tbp_article_link: str | None = None
    tbp_tx_tie: str | None = None
    tbp_magazine_issue: str | None = None


@dataclass
class WorkItemFilters:
    status: WorkItemStatus | None = None
    type: WorkItemType | None = None
    owner_id: UUID | None = None
    assigned_to: UUID | None = None  # "my items"
    unassigned: bool = False


@dataclass
class WorkItemDetail:
    work_item: WorkItem
    recent_audit: Sequence[AuditLog]


class WorkItemService:
    """Service for managing work items outside of status transitions."""

    def __init__(
        self,
        session: AsyncSession,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.session = session
        self.clock = clock
        self.audit = AuditService(session)

    # =========================================================================
    # CREATE
    # =========================================================================

    async def create_work_item(
        self,
        data: CreateWorkItemInput,
        requester_id: UUID,
    ) -> WorkItem:
        """Create a work item, applying the active template for its type."""
        settings = get_settings()
        now = self.clock()
        template = await self._get_active_template(WorkItemType(data.type))

        due_at = data.due_at
        if due_at is None:
            offset = template.due_days_offset if template else settings.default_due_days
            due_at = now + timedelta(days=offset)

        item = WorkItem(
            type=WorkItemType(data.type),
            title=data.title,
            description=data.description,
            priority=WorkItemPriority(data.priority),
            requester_id=requester_id,
            owner_id=data.owner_id,
            due_at=due_at,
            tags=list(data.tags),
            deliverable_type=data.deliverable_type,
            needs_proofing=data.needs_proofing,
            tbp_graphics_location=data.tbp_graphics_location,
            tbp_publish_date=data.tbp_publish_date,
            tbp_article_link=data.tbp_article_link,
            tbp_tx_tie=data.tbp_tx_tie,
            tbp_magazine_issue=data.tbp_magazine_issue,
            status=WorkItemStatus.BACKLOG,
            updated_by_id=requester_id,
            created_at=now,
            updated_at=now,
        )
        self.session.add(item)
        await self.session.flush()  # Get the work item ID

        if template:
            for index, entry in enumerate(template.subtasks or []):
                self.session.add(Subtask(
                    work_item_id=item.id,
                    title=entry["title"],
                    order=index,
                ))

        await self.audit.record(
            work_item_id=item.id,
            action=AuditAction.CREATED,
            user_id=requester_id,
            meta={"title": item.title, "type": item.type.value},
        )
        await self.session.flush()

        logger.info(
            f"Work item {item.id} ({item.type.value}) created by {requester_id}"
            + (f" from template {template.id}" if template else "")
        )
        return item

    # =========================================================================
    # READ
    # =========================================================================

    async def get_work_item(self, work_item_id: UUID) -> WorkItem | None:
        query = (
            select(WorkItem)
            .where(WorkItem.id == work_item_id)
            .options(
                selectinload(WorkItem.subtasks),
                selectinload(WorkItem.comments).selectinload(Comment.user),
                selectinload(WorkItem.owner),
                selectinload(WorkItem.requester),
            )
            .execution_options(populate_existing=True)
        )
        result = await self.session.execute(query)
        return result.scalar_one_or_none()

    async def get_work_item_detail(self, work_item_id: UUID) -> WorkItemDetail:
        """Work item with subtasks, comments and its most recent audit entries."""
        item = await self.get_work_item(work_item_id)
        if not item:
            raise WorkItemNotFoundError(work_item_id)

        entries, _ = await self.audit.list_for_work_item(
            work_item_id, limit=RECENT_AUDIT_LIMIT
        )
        return WorkItemDetail(work_item=item, recent_audit=entries)

    async def list_work_items(
        self,
        filters: WorkItemFilters | None = None,
        limit: int | None = None,
    ) -> Sequence[WorkItem]:
        """
        List work items for the board.

        Ordered by status column, then priority (most urgent first), then
        due date with undated items last.
        """
        filters = filters or WorkItemFilters()
        limit = limit or get_settings().work_item_list_limit

        conditions = []
        if filters.status:
            conditions.append(WorkItem.status == WorkItemStatus(filters.status))
        if filters.type:
            conditions.append(WorkItem.type == WorkItemType(filters.type))
        if filters.owner_id:
            conditions.append(WorkItem.owner_id == filters.owner_id)
        if filters.assigned_to:
            conditions.append(WorkItem.owner_id == filters.assigned_to)
        if filters.unassigned:
            conditions.append(WorkItem.owner_id.is_(None))

        status_order = case(
            *[(WorkItem.status == s, i) for i, s in enumerate(WorkItemStatus)],
            else_=len(WorkItemStatus),
        )
        priority_rank = case(
            *[(WorkItem.priority == p, p.rank) for p in WorkItemPriority],
            else_=0,
        )

        query = (
            select(WorkItem)
            .where(*conditions)
            .options(selectinload(WorkItem.owner))
            .order_by(
                status_order,
                priority_rank.desc(),
                WorkItem.due_at.is_(None),
                WorkItem.due_at,
            )
            .limit(limit)
        )
        result = await self.session.execute(query)
        return result.scalars().all()

    # =========================================================================
    # DELETE
    # =========================================================================

    async def delete_work_item(self, work_item_id: UUID, user_id: UUID) -> None:
        """Delete a work item; subtasks, comments, messages and QC checks cascade.

        Audit entries are kept.
        """
        result = await self.session.execute(
            select(WorkItem).where(WorkItem.id == work_item_id)
        )
        item = result.scalar_one_or_none()
        if not item:
            raise WorkItemNotFoundError(work_item_id)

        await self.session.delete(item)
        await self.session.flush()
        logger.info(f"Work item {work_item_id} deleted by {user_id}")

    # =========================================================================
    # HELPER METHODS
    # =========================================================================

    async def _get_active_template(
        self, work_item_type: WorkItemType
    ) -> TriggerTemplate | None:
        result = await self.session.execute(
            select(TriggerTemplate)
            .where(
                TriggerTemplate.work_item_type == work_item_type,
                TriggerTemplate.is_active.is_(True),
            )
            .order_by(TriggerTemplate.created_at.desc())
            .limit(1)
        )
        return result.scalar_one_or_none()
