"""API routes for Ops Tracker."""

from fastapi import APIRouter

from .conversations import router as conversations_router
from .inbox import router as inbox_router
from .metrics import router as metrics_router
from .qc import router as qc_router
from .subtasks import router as subtasks_router
from .templates import router as templates_router
from .users import router as users_router
from .work_items import router as work_items_router

# Main API router
api_router = APIRouter()

# Work items and their children
api_router.include_router(work_items_router)
api_router.include_router(subtasks_router)
api_router.include_router(qc_router)
api_router.include_router(conversations_router)
api_router.include_router(inbox_router)

# Admin-configured defaults and the user directory
api_router.include_router(templates_router)
api_router.include_router(users_router)

# Dashboard
api_router.include_router(metrics_router)

__all__ = ["api_router"]
