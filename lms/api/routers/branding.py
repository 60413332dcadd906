"""
Branding and domain lookup router (public).
"""
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request, Response

from lms.api.dependencies import get_branding_service, get_optional_tenant, get_tenant_resolver
from lms.models.schemas import BrandingResponse, DomainInfo, Tenant
from lms.services.branding import BrandingService
from lms.services.tenancy import TenantResolver

router = APIRouter(prefix="/api", tags=["branding"])


@router.get(
    "/branding",
    response_model=BrandingResponse,
    summary="Get Tenant Branding",
    description="""
    Resolve branding for the tenant of the request.

    Falls back to the agency owner's branding, then to the most recently
    updated branding document, then to built-in defaults.
    """,
)
async def get_branding(
    response: Response,
    tenant_ref: Optional[str] = Query(default=None, alias="tenant", description="Tenant id or slug"),
    tenant: Optional[Tenant] = Depends(get_optional_tenant),
    resolver: TenantResolver = Depends(get_tenant_resolver),
    branding_service: BrandingService = Depends(get_branding_service),
) -> BrandingResponse:
    if tenant_ref:
        tenant = await resolver.get_tenant(tenant_ref)

    response.headers["Cache-Control"] = "public, max-age=60"
    return await branding_service.get_branding(tenant.id if tenant else None)


@router.get("/domain-info", response_model=DomainInfo, summary="Get Domain Info")
async def domain_info(
    request: Request,
    domain: Optional[str] = Query(default=None, description="Hostname, defaults to the Host header"),
    resolver: TenantResolver = Depends(get_tenant_resolver),
) -> DomainInfo:
    return await resolver.domain_info(domain or request.headers.get("host", ""))
