"""API routes for work item subtasks."""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Response, status

from ..core import CurrentUserDep, SessionDep
from ..schemas import DataResponse, SubtaskCreate, SubtaskResponse, SubtaskUpdate
from ..services import SubtaskService, UpdateSubtaskInput

router = APIRouter(tags=["subtasks"])


def get_subtask_service(session: SessionDep) -> SubtaskService:
    return SubtaskService(session)


SubtaskServiceDep = Annotated[SubtaskService, Depends(get_subtask_service)]


@router.get(
    "/work-items/{work_item_id}/subtasks",
    response_model=DataResponse[list[SubtaskResponse]],
)
async def list_subtasks(
    work_item_id: UUID,
    current_user: CurrentUserDep,
    service: SubtaskServiceDep,
):
    subtasks = await service.list_subtasks(work_item_id)
    return DataResponse(data=[SubtaskResponse.model_validate(s) for s in subtasks])


@router.post(
    "/work-items/{work_item_id}/subtasks",
    response_model=DataResponse[SubtaskResponse],
    status_code=status.HTTP_201_CREATED,
)
async def add_subtask(
    work_item_id: UUID,
    request: SubtaskCreate,
    current_user: CurrentUserDep,
    service: SubtaskServiceDep,
):
    subtask = await service.add_subtask(work_item_id, request.title, order=request.order)
    return DataResponse(data=SubtaskResponse.model_validate(subtask))


@router.patch("/subtasks/{subtask_id}", response_model=DataResponse[SubtaskResponse])
async def update_subtask(
    subtask_id: UUID,
    request: SubtaskUpdate,
    current_user: CurrentUserDep,
    service: SubtaskServiceDep,
):
    """Rename, reorder or (un)complete a subtask."""
    subtask = await service.update_subtask(
        subtask_id,
        UpdateSubtaskInput(
            title=request.title,
            order=request.order,
            completed=request.completed,
        ),
    )
    return DataResponse(data=SubtaskResponse.model_validate(subtask))


@router.delete("/subtasks/{subtask_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_subtask(
    subtask_id: UUID,
    current_user: CurrentUserDep,
    service: SubtaskServiceDep,
):
    await service.delete_subtask(subtask_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
