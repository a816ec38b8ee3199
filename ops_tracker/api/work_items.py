"""
Work Item API Routes: board listing, creation and the transition endpoint.

PATCH /work-items/{id} is the only way to change a work item's status; it
runs through the workflow engine so gates and audit entries always apply.
"""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response, status

from ..core import AdminDep, CurrentUserDep, SessionDep
from ..models import WorkItemStatus, WorkItemType
from ..schemas import (
    AuditEntryResponse,
    DataResponse,
    PaginatedResponse,
    WorkItemCreate,
    WorkItemDetailResponse,
    WorkItemListItem,
    WorkItemResponse,
    WorkItemUpdate,
)
from ..services import (
    AuditService,
    CreateWorkItemInput,
    TransitionInput,
    WorkflowEngine,
    WorkItemFilters,
    WorkItemService,
)

router = APIRouter(prefix="/work-items", tags=["work-items"])


def get_work_item_service(session: SessionDep) -> WorkItemService:
    return WorkItemService(session)


def get_workflow_engine(session: SessionDep) -> WorkflowEngine:
    return WorkflowEngine(session)


WorkItemServiceDep = Annotated[WorkItemService, Depends(get_work_item_service)]
WorkflowEngineDep = Annotated[WorkflowEngine, Depends(get_workflow_engine)]


@router.get("", response_model=DataResponse[list[WorkItemListItem]])
async def list_work_items(
    current_user: CurrentUserDep,
    service: WorkItemServiceDep,
    status: WorkItemStatus | None = None,
    type: WorkItemType | None = None,
    owner_id: UUID | None = None,
    my_items: bool = Query(False, description="Only items owned by the caller"),
    unassigned: bool = Query(False, description="Only items with no owner"),
):
    """List work items, ordered by status, priority and due date."""
    items = await service.list_work_items(
        WorkItemFilters(
            status=status,
            type=type,
            owner_id=owner_id,
            assigned_to=current_user.id if my_items else None,
            unassigned=unassigned,
        )
    )
    return DataResponse(data=[WorkItemListItem.model_validate(i) for i in items])


@router.post(
    "",
    response_model=DataResponse[WorkItemResponse],
    status_code=status.HTTP_201_CREATED,
)
async def create_work_item(
    request: WorkItemCreate,
    current_user: CurrentUserDep,
    service: WorkItemServiceDep,
):
    """Create a work item. Defaults come from the active template for its type."""
    item = await service.create_work_item(
        CreateWorkItemInput(**request.model_dump()),
        requester_id=current_user.id,
    )
    return DataResponse(data=WorkItemResponse.model_validate(item))


@router.get("/{work_item_id}", response_model=DataResponse[WorkItemDetailResponse])
async def get_work_item(
    work_item_id: UUID,
    current_user: CurrentUserDep,
    service: WorkItemServiceDep,
):
    detail = await service.get_work_item_detail(work_item_id)
    response = WorkItemDetailResponse.model_validate(detail.work_item)
    response.recent_audit = [
        AuditEntryResponse.model_validate(e) for e in detail.recent_audit
    ]
    return DataResponse(data=response)


@router.patch("/{work_item_id}", response_model=DataResponse[WorkItemResponse])
async def update_work_item(
    work_item_id: UUID,
    request: WorkItemUpdate,
    current_user: CurrentUserDep,
    engine: WorkflowEngineDep,
):
    """
    Update fields and/or move the item to a new status.

    Moving a TBP/Magazine item to NEEDS_QA or DONE requires its TBP fields;
    moving any item with QC checkpoints to DONE requires every checkpoint to
    have passed. Failed gates return 400 and leave the item untouched.
    """
    patch = request.model_dump(exclude_unset=True)
    new_status = patch.pop("status", None)
    expected_version = patch.pop("expected_version", None)

    result = await engine.transition(
        work_item_id,
        TransitionInput(
            status=new_status,
            patch=patch,
            expected_version=expected_version,
        ),
        user_id=current_user.id,
    )
    return DataResponse(data=WorkItemResponse.model_validate(result.work_item))


@router.delete("/{work_item_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_work_item(
    work_item_id: UUID,
    current_user: AdminDep,
    service: WorkItemServiceDep,
):
    await service.delete_work_item(work_item_id, user_id=current_user.id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/{work_item_id}/audit", response_model=DataResponse[PaginatedResponse])
async def get_work_item_audit(
    work_item_id: UUID,
    current_user: CurrentUserDep,
    session: SessionDep,
    page: int = Query(1, ge=1),
    page_size: int = Query(50, ge=1, le=200),
):
    """Audit trail for a work item, newest first. Survives item deletion."""
    entries, total = await AuditService(session).list_for_work_item(
        work_item_id,
        limit=page_size,
        offset=(page - 1) * page_size,
    )
    return DataResponse(
        data=PaginatedResponse.create(
            items=[AuditEntryResponse.model_validate(e) for e in entries],
            total=total,
            page=page,
            page_size=page_size,
        )
    )
