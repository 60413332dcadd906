"""
Dashboard discovery router: featured content and search.
"""
from typing import Optional

from fastapi import APIRouter, Depends, Query

from lms.api.dependencies import get_catalog_service, get_current_tenant
from lms.models.schemas import FeaturedContent, SearchResponse, Tenant
from lms.services.catalog import CatalogService

router = APIRouter(prefix="/api/lms", tags=["search"])


@router.get("/featured-content", response_model=FeaturedContent, summary="Featured Content")
async def featured_content(
    tenant: Tenant = Depends(get_current_tenant),
    catalog: CatalogService = Depends(get_catalog_service),
) -> FeaturedContent:
    return await catalog.featured_content(tenant.id)


@router.get(
    "/search",
    response_model=SearchResponse,
    summary="Search",
    description="""
    Search videos, programs and dashboard sections of the current tenant.
    An empty query returns no results.
    """,
)
async def search(
    q: Optional[str] = Query(default=None, max_length=200),
    limit: int = Query(default=10, ge=1, le=50),
    tenant: Tenant = Depends(get_current_tenant),
    catalog: CatalogService = Depends(get_catalog_service),
) -> SearchResponse:
    return await catalog.search(tenant.id, q, limit=limit)
