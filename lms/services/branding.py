"""
Branding lookup with a fallback chain:
tenant -> agency owner -> most recently updated -> built-in default.
"""
import logging
from typing import Optional

from lms.models.schemas import Branding, BrandingResponse
from lms.repositories.memory import InMemoryDatabase

logger = logging.getLogger(__name__)


def default_branding() -> Branding:
    return Branding(id="default", tenant_id="default", name="Multi-Tenant Platform")


class BrandingService:
    def __init__(self, db: InMemoryDatabase) -> None:
        self._db = db

    async def get_branding(self, tenant_id: Optional[str]) -> BrandingResponse:
        if tenant_id:
            branding = await self._for_tenant(tenant_id)
            if branding is not None:
                return BrandingResponse(tenant_id=tenant_id, source="tenant", branding=branding)

        agency = await self._db.tenants.find_one(lambda t: t.is_agency_owner)
        if agency is not None:
            branding = await self._for_tenant(agency.id)
            if branding is not None:
                return BrandingResponse(tenant_id=agency.id, source="agency", branding=branding)

        latest = await self._db.branding.find(sort="-updated_at", limit=1)
        if latest.docs:
            branding = latest.docs[0]
            logger.info(f"Using fallback branding from tenant={branding.tenant_id}")
            return BrandingResponse(
                tenant_id=branding.tenant_id, source="fallback", branding=branding
            )

        logger.warning("No branding documents found, serving default branding")
        return BrandingResponse(tenant_id=None, source="default", branding=default_branding())

    async def _for_tenant(self, tenant_id: str) -> Optional[Branding]:
        return await self._db.branding.find_one(lambda b: b.tenant_id == tenant_id)
