"""Pydantic schemas for the user directory."""

from ..models import UserRole
from .base import UserRef


class UserResponse(UserRef):
    role: UserRole
