"""API routes for comments and messages."""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, status

from ..core import CurrentUserDep, SessionDep
from ..schemas import (
    CommentCreate,
    CommentResponse,
    DataResponse,
    MessageCreate,
    MessageResponse,
)
from ..services import AddMessageInput, ConversationService

router = APIRouter(prefix="/work-items/{work_item_id}", tags=["conversations"])


def get_conversation_service(session: SessionDep) -> ConversationService:
    return ConversationService(session)


ConversationServiceDep = Annotated[ConversationService, Depends(get_conversation_service)]


# =============================================================================
# COMMENTS
# =============================================================================


@router.get("/comments", response_model=DataResponse[list[CommentResponse]])
async def list_comments(
    work_item_id: UUID,
    current_user: CurrentUserDep,
    service: ConversationServiceDep,
):
    comments = await service.list_comments(work_item_id)
    return DataResponse(data=[CommentResponse.model_validate(c) for c in comments])


@router.post(
    "/comments",
    response_model=DataResponse[CommentResponse],
    status_code=status.HTTP_201_CREATED,
)
async def add_comment(
    work_item_id: UUID,
    request: CommentCreate,
    current_user: CurrentUserDep,
    service: ConversationServiceDep,
):
    comment = await service.add_comment(work_item_id, request.body, user_id=current_user.id)
    return DataResponse(data=CommentResponse.model_validate(comment))


# =============================================================================
# MESSAGES
# =============================================================================


@router.get("/messages", response_model=DataResponse[list[MessageResponse]])
async def list_messages(
    work_item_id: UUID,
    current_user: CurrentUserDep,
    service: ConversationServiceDep,
):
    messages = await service.list_messages(work_item_id)
    return DataResponse(data=[MessageResponse.model_validate(m) for m in messages])


@router.post(
    "/messages",
    response_model=DataResponse[MessageResponse],
    status_code=status.HTTP_201_CREATED,
)
async def add_message(
    work_item_id: UUID,
    request: MessageCreate,
    current_user: CurrentUserDep,
    service: ConversationServiceDep,
):
    """Record a message. OUTBOUND starts waiting for a reply; INBOUND ends it."""
    message = await service.add_message(
        work_item_id,
        AddMessageInput(**request.model_dump()),
        user_id=current_user.id,
    )
    return DataResponse(data=MessageResponse.model_validate(message))
