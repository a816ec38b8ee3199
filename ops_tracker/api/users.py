"""API routes for the user directory."""

from fastapi import APIRouter

from ..core import CurrentUserDep, SessionDep
from ..schemas import DataResponse, UserResponse
from ..services import UserService

router = APIRouter(prefix="/users", tags=["users"])


@router.get("", response_model=DataResponse[list[UserResponse]])
async def list_users(current_user: CurrentUserDep, session: SessionDep):
    """Everyone who can own or request work, by name."""
    users = await UserService(session).list_users()
    return DataResponse(data=[UserResponse.model_validate(u) for u in users])
