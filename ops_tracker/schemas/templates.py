"""Pydantic schemas for trigger templates."""

from datetime import datetime
from uuid import UUID

from pydantic import Field, model_validator

from ..models import WorkItemType
from .base import TrackerBaseModel


class TemplateSubtask(TrackerBaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    offset_days: int | None = None


class TemplateCreate(TrackerBaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    description: str | None = None
    work_item_type: WorkItemType
    subtasks: list[TemplateSubtask] = Field(default_factory=list)
    due_days_offset: int = Field(default=7, ge=0)
    is_active: bool = True


class TemplateUpdate(TrackerBaseModel):
    """Partial update; only supplied fields change."""

    name: str | None = Field(default=None, min_length=1, max_length=200)
    description: str | None = None
    subtasks: list[TemplateSubtask] | None = None
    due_days_offset: int | None = Field(default=None, ge=0)
    is_active: bool | None = None

    @model_validator(mode="after")
    def reject_null_for_required_fields(self) -> "TemplateUpdate":
        for name in ("name", "subtasks", "due_days_offset", "is_active"):
            if name in self.model_fields_set and getattr(self, name) is None:
                raise ValueError(f"{name} cannot be null")
        return self


class TemplateResponse(TrackerBaseModel):
    id: UUID
    name: str
    description: str | None = None
    work_item_type: WorkItemType
    subtasks: list[TemplateSubtask]
    due_days_offset: int
    is_active: bool
    created_at: datetime
    updated_at: datetime
