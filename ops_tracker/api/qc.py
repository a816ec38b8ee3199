"""API routes for QC checkpoints."""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, status

from ..core import CurrentUserDep, SessionDep
from ..schemas import (
    DataResponse,
    QCCheckpointsCreate,
    QCCheckResponse,
    QCChecklistResponse,
    QCCheckUpdate,
)
from ..services import QCCheckService

router = APIRouter(prefix="/work-items/{work_item_id}/qc", tags=["qc"])


def get_qc_service(session: SessionDep) -> QCCheckService:
    return QCCheckService(session)


QCCheckServiceDep = Annotated[QCCheckService, Depends(get_qc_service)]


@router.get("", response_model=DataResponse[QCChecklistResponse])
async def get_checklist(
    work_item_id: UUID,
    current_user: CurrentUserDep,
    service: QCCheckServiceDep,
):
    """Checkpoints with pass/fail counts and completion rate."""
    checklist = await service.get_checklist(work_item_id)
    return DataResponse(data=QCChecklistResponse.model_validate(checklist))


@router.post(
    "",
    response_model=DataResponse[list[QCCheckResponse]],
    status_code=status.HTTP_201_CREATED,
)
async def add_checkpoints(
    work_item_id: UUID,
    request: QCCheckpointsCreate,
    current_user: CurrentUserDep,
    service: QCCheckServiceDep,
):
    checks = await service.add_checkpoints(work_item_id, request.checkpoints)
    return DataResponse(data=[QCCheckResponse.model_validate(c) for c in checks])


@router.patch("", response_model=DataResponse[QCCheckResponse])
async def update_checkpoint(
    work_item_id: UUID,
    request: QCCheckUpdate,
    current_user: CurrentUserDep,
    service: QCCheckServiceDep,
):
    check = await service.update_checkpoint(
        work_item_id,
        checkpoint=request.checkpoint,
        status=request.status,
        user_id=current_user.id,
        notes=request.notes,
    )
    return DataResponse(data=QCCheckResponse.model_validate(check))
