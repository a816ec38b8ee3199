"""API routes for the inbox: items awaiting a reply, blocked items, recent replies."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query

from ..core import CurrentUserDep, SessionDep
from ..schemas import DataResponse, InboxResponse
from ..services import InboxService

router = APIRouter(prefix="/inbox", tags=["inbox"])


def get_inbox_service(session: SessionDep) -> InboxService:
    return InboxService(session)


InboxServiceDep = Annotated[InboxService, Depends(get_inbox_service)]


@router.get("", response_model=DataResponse[InboxResponse])
async def get_inbox(
    current_user: CurrentUserDep,
    service: InboxServiceDep,
    mine: bool = Query(False, description="Only items owned by the current user"),
):
    inbox = await service.get_inbox(owner_id=current_user.id if mine else None)
    return DataResponse(data=InboxResponse.model_validate(inbox))
