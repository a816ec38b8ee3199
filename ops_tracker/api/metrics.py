"""API routes for dashboard statistics and cycle-time metrics."""

from typing import Annotated

from fastapi import APIRouter, Depends, Request

from ..core import CurrentUserDep, SessionDep
from ..models import utcnow
from ..schemas import CycleTimeResponse, DashboardStatsResponse, DataResponse
from ..services import MetricsService, TTLCache

router = APIRouter(tags=["metrics"])


def get_metrics_service(session: SessionDep) -> MetricsService:
    return MetricsService(session)


def get_stats_cache(request: Request) -> TTLCache:
    return request.app.state.stats_cache


MetricsServiceDep = Annotated[MetricsService, Depends(get_metrics_service)]
StatsCacheDep = Annotated[TTLCache, Depends(get_stats_cache)]


@router.get("/stats", response_model=DataResponse[DashboardStatsResponse])
async def get_dashboard_stats(
    current_user: CurrentUserDep,
    service: MetricsServiceDep,
    cache: StatsCacheDep,
):
    """Board counters, workload breakdowns and upcoming deadlines (cached)."""

    async def load() -> DashboardStatsResponse:
        stats = await service.dashboard_stats(utcnow())
        return DashboardStatsResponse.model_validate(stats)

    stats = await cache.get_or_load(load)
    return DataResponse(data=stats)


@router.get("/metrics/cycle-time", response_model=DataResponse[CycleTimeResponse])
async def get_cycle_time(
    current_user: CurrentUserDep,
    service: MetricsServiceDep,
):
    report = await service.cycle_time(utcnow())
    return DataResponse(data=CycleTimeResponse.model_validate(report))
