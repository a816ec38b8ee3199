"""Trigger template service: per-type defaults applied on work item creation."""

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..models import TriggerTemplate, WorkItemType, utcnow
from .errors import NotFoundError

logger = logging.getLogger(__name__)

# Fields an admin may change after creation; the type is fixed
UPDATABLE_FIELDS: frozenset[str] = frozenset({
    "name",
    "description",
    "subtasks",
    "due_days_offset",
    "is_active",
})


@dataclass
class CreateTemplateInput:
    name: str
    work_item_type: WorkItemType
    description: str | None = None
    subtasks: list[dict] = field(default_factory=list)  # [{"title": str, "offset_days": int | None}]
    due_days_offset: int = 7
    is_active: bool = True


class TemplateService:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def list_templates(self, include_inactive: bool = False) -> Sequence[TriggerTemplate]:
        query = select(TriggerTemplate)
        if not include_inactive:
            query = query.where(TriggerTemplate.is_active.is_(True))
        query = query.order_by(TriggerTemplate.work_item_type, TriggerTemplate.name)

        result = await self.session.execute(query)
        return result.scalars().all()

    async def create_template(self, data: CreateTemplateInput) -> TriggerTemplate:
        template = TriggerTemplate(
            name=data.name,
            description=data.description,
            work_item_type=WorkItemType(data.work_item_type),
            subtasks=[dict(s) for s in data.subtasks],
            due_days_offset=data.due_days_offset,
            is_active=data.is_active,
        )
        self.session.add(template)
        await self.session.flush()

        logger.info(f"Template '{template.name}' created for {template.work_item_type.value}")
        return template

    async def get_template(self, template_id: UUID) -> TriggerTemplate:
        template = await self.session.get(TriggerTemplate, template_id)
        if not template:
            raise NotFoundError(f"Template {template_id} not found")
        return template

    async def update_template(self, template_id: UUID, changes: dict[str, Any]) -> TriggerTemplate:
        """Apply ``changes`` (only the supplied fields) to a template.

        Setting ``is_active`` to False retires the template without deleting it.
        """
        unknown = set(changes) - UPDATABLE_FIELDS
        if unknown:
            raise ValueError(f"Fields cannot be updated: {sorted(unknown)}")

        template = await self.get_template(template_id)
        for name, value in changes.items():
            if name == "subtasks":
                value = [dict(s) for s in value]
            setattr(template, name, value)
        template.updated_at = utcnow()
        await self.session.flush()

        logger.info(f"Template {template_id} updated: {sorted(changes)}")
        return template

    async def delete_template(self, template_id: UUID) -> None:
        template = await self.get_template(template_id)
        await self.session.delete(template)
        await self.session.flush()

        logger.info(f"Template {template_id} deleted")
