"""API routes for trigger templates."""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response, status

from ..core import AdminDep, CurrentUserDep, SessionDep
from ..schemas import DataResponse, TemplateCreate, TemplateResponse, TemplateUpdate
from ..services import CreateTemplateInput, TemplateService

router = APIRouter(prefix="/templates", tags=["templates"])


def get_template_service(session: SessionDep) -> TemplateService:
    return TemplateService(session)


TemplateServiceDep = Annotated[TemplateService, Depends(get_template_service)]


@router.get("", response_model=DataResponse[list[TemplateResponse]])
async def list_templates(
    current_user: CurrentUserDep,
    service: TemplateServiceDep,
    include_inactive: bool = Query(False, description="Admins only"),
):
    templates = await service.list_templates(
        include_inactive=include_inactive and current_user.is_admin
    )
    return DataResponse(data=[TemplateResponse.model_validate(t) for t in templates])


@router.post(
    "",
    response_model=DataResponse[TemplateResponse],
    status_code=status.HTTP_201_CREATED,
)
async def create_template(
    request: TemplateCreate,
    current_user: AdminDep,
    service: TemplateServiceDep,
):
    template = await service.create_template(
        CreateTemplateInput(**request.model_dump())
    )
    return DataResponse(data=TemplateResponse.model_validate(template))


@router.get("/{template_id}", response_model=DataResponse[TemplateResponse])
async def get_template(
    template_id: UUID,
    current_user: AdminDep,
    service: TemplateServiceDep,
):
    template = await service.get_template(template_id)
    return DataResponse(data=TemplateResponse.model_validate(template))


@router.put("/{template_id}", response_model=DataResponse[TemplateResponse])
async def update_template(
    template_id: UUID,
    request: TemplateUpdate,
    current_user: AdminDep,
    service: TemplateServiceDep,
):
    """Edit a template, or retire it with ``is_active: false``."""
    template = await service.update_template(
        template_id, request.model_dump(exclude_unset=True)
    )
    return DataResponse(data=TemplateResponse.model_validate(template))


@router.delete("/{template_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_template(
    template_id: UUID,
    current_user: AdminDep,
    service: TemplateServiceDep,
):
    await service.delete_template(template_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
