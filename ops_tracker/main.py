"""Ops Tracker: Main FastAPI Application.

Work-item board for a small operations team: typed work items move through
a fixed set of statuses, with completeness gates before QA and DONE and an
audit trail of every status and owner change.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .api import api_router
from .core import close_db, get_settings, init_db
from .schemas import ErrorDetail, ErrorResponse
from .services import (
    ConcurrencyError,
    GateValidationError,
    InvalidOperationError,
    NotFoundError,
    TrackerError,
    TTLCache,
)

settings = get_settings()

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan: startup and shutdown."""
    logger.info(f"Starting {settings.app_name} {settings.app_version} ({settings.environment})")

    # Tables are managed by migrations in production
    if settings.environment != "production":
        await init_db()
    yield
    await close_db()


def create_stats_cache() -> TTLCache:
    return TTLCache(ttl=settings.stats_cache_ttl_seconds, key_fn=lambda: "dashboard")


app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description="""
    ## Ops Tracker API

    Work items move across a fixed board of statuses.

    ### Key Features

    - **Completeness gates**: TBP/Magazine items need their publication fields before QA;
      items with QC checkpoints need every checkpoint passed before DONE.
    - **Lifecycle timestamps**: started, completed and status-change times are stamped automatically.
    - **Audit Trail**: every status and owner change is recorded.

    ### Authentication

    All endpoints require a valid JWT token in the `Authorization: Bearer <token>` header.
    """,
    openapi_url=f"{settings.api_prefix}/openapi.json",
    docs_url=f"{settings.api_prefix}/docs",
    redoc_url=f"{settings.api_prefix}/redoc",
    lifespan=lifespan,
)

app.state.stats_cache = create_stats_cache()

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "DELETE", "OPTIONS", "PATCH", "HEAD"],
    allow_headers=["*"],
    max_age=86400,
)


# =============================================================================
# EXCEPTION HANDLERS
# =============================================================================


def _error_response(status_code: int, error: str, message: str, details=None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(
            error=error,
            message=message,
            details=details or [],
        ).model_dump(),
    )


@app.exception_handler(GateValidationError)
async def gate_validation_handler(request: Request, exc: GateValidationError):
    return _error_response(
        status.HTTP_400_BAD_REQUEST,
        "gate_validation_failed",
        exc.message,
        [ErrorDetail(message=e, code=exc.gate) for e in exc.errors],
    )


@app.exception_handler(NotFoundError)
async def not_found_handler(request: Request, exc: NotFoundError):
    return _error_response(status.HTTP_404_NOT_FOUND, "not_found", str(exc))


@app.exception_handler(ConcurrencyError)
async def concurrency_handler(request: Request, exc: ConcurrencyError):
    return _error_response(status.HTTP_409_CONFLICT, "conflict", str(exc))


@app.exception_handler(InvalidOperationError)
async def invalid_operation_handler(request: Request, exc: InvalidOperationError):
    return _error_response(status.HTTP_400_BAD_REQUEST, "invalid_operation", str(exc))


@app.exception_handler(TrackerError)
async def tracker_error_handler(request: Request, exc: TrackerError):
    logger.error(f"Unmapped tracker error on {request.url.path}: {exc}")
    return _error_response(status.HTTP_400_BAD_REQUEST, "bad_request", str(exc))


# Global exception handler
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Handle unexpected exceptions."""
    logger.exception(f"Unhandled exception on {request.method} {request.url.path}")
    message = "An unexpected error occurred"
    if settings.debug:
        message = f"{message}: {str(exc)[:200]}"
    return _error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, "internal_error", message)


# Health check endpoint
@app.get(f"{settings.api_prefix}/health", tags=["health"])
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy", "version": settings.app_version}


# Include API routes
app.include_router(api_router, prefix=settings.api_prefix)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "ops_tracker.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.debug,
    )
