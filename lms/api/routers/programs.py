"""
Program catalog router.
"""
from typing import Optional

from fastapi import APIRouter, Depends, Query, status

from lms.api.dependencies import (
    get_catalog_service,
    get_current_tenant,
    get_current_user,
    get_engagement_service,
)
from lms.config import get_settings
from lms.models.schemas import Enrollment, Page, Program, Tenant, User
from lms.services.catalog import CatalogService
from lms.services.engagement import EngagementService

router = APIRouter(prefix="/api/lms/programs", tags=["programs"])


@router.get("", response_model=Page[Program], summary="List Programs")
async def list_programs(
    category: Optional[str] = Query(default=None),
    level: Optional[str] = Query(default=None, description="Difficulty, or All"),
    search: Optional[str] = Query(default=None, max_length=200),
    page: int = Query(default=1, ge=1),
    limit: Optional[int] = Query(default=None, ge=1),
    tenant: Tenant = Depends(get_current_tenant),
    catalog: CatalogService = Depends(get_catalog_service),
) -> Page[Program]:
    settings = get_settings()
    effective_limit = min(limit or settings.DEFAULT_PAGE_LIMIT, settings.MAX_PAGE_LIMIT)

    return await catalog.list_programs(
        tenant.id,
        category=category,
        level=level,
        search=search,
        page=page,
        limit=effective_limit,
    )


@router.get(
    "/{program_id}",
    response_model=Program,
    summary="Get Program",
    responses={404: {"description": "Program not found in this tenant"}},
)
async def get_program(
    program_id: str,
    tenant: Tenant = Depends(get_current_tenant),
    catalog: CatalogService = Depends(get_catalog_service),
) -> Program:
    """Program with lessons in display order."""
    return await catalog.get_program(tenant.id, program_id)


@router.post(
    "/{program_id}/enroll",
    response_model=Enrollment,
    status_code=status.HTTP_201_CREATED,
    summary="Enroll in Program",
    responses={
        403: {"description": "Plan does not include this program"},
        409: {"description": "Already enrolled or program full"},
    },
)
async def enroll(
    program_id: str,
    tenant: Tenant = Depends(get_current_tenant),
    user: User = Depends(get_current_user),
    engagement: EngagementService = Depends(get_engagement_service),
) -> Enrollment:
    return await engagement.enroll(tenant.id, user, program_id)
