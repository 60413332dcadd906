"""
Tenant resolution service.
Maps an incoming request (header, cookie, Host) onto a tenant document.
"""
import logging
from typing import Optional

from lms.config.settings import Settings
from lms.core.cache import InMemoryCache
from lms.models.schemas import Domain, DomainInfo, Tenant, TenantSummary
from lms.repositories.memory import InMemoryDatabase

logger = logging.getLogger(__name__)

LOCAL_HOSTS = ("localhost", "127.0.0.1")


def normalize_host(host: Optional[str]) -> str:
    """Lower-case hostname with any port stripped."""
    if not host:
        return ""
    return host.strip().lower().split(":")[0]


class TenantResolver:
    """
    Resolve the tenant of a request.

    Priority:
        1. Explicit tenant reference (X-Tenant-ID header, then tenant cookie)
        2. Exact active domain match on the hostname
        3. localhost -> agency owner tenant
        4. Subdomain match against domains, then tenant slugs
        5. Configured default tenant

    Host lookups (2-5) are cached per hostname.
    """

    def __init__(
        self,
        db: InMemoryDatabase,
        settings: Settings,
        cache: Optional[InMemoryCache[str]] = None,
    ) -> None:
        self._db = db
        self._settings = settings
        self._cache: InMemoryCache[str] = cache or InMemoryCache(
            default_ttl_seconds=settings.TENANT_CACHE_TTL_SEC
        )

    async def resolve(
        self,
        host: Optional[str],
        cookie_tenant: Optional[str] = None,
        header_tenant: Optional[str] = None,
    ) -> Optional[Tenant]:
        """
        Resolve a tenant for the request.

        Args:
            host: Host header value, port allowed
            cookie_tenant: Tenant cookie value (id or slug)
            header_tenant: Tenant header value (id or slug), overrides the rest

        Returns:
            The tenant, or None when nothing matches
        """
        for reference in (header_tenant, cookie_tenant):
            if reference:
                tenant = await self.get_tenant(reference)
                if tenant is not None:
                    return tenant
                logger.debug(f"Ignoring unknown tenant reference: {reference}")

        hostname = normalize_host(host)
        tenant_id = await self._cache.get_or_load(
            hostname or "<none>", lambda: self._resolve_host(hostname)
        )
        if tenant_id is None:
            return None
        return await self._db.tenants.find_by_id(tenant_id)

    async def get_tenant(self, reference: str) -> Optional[Tenant]:
        """Look a tenant up by id, falling back to slug."""
        tenant = await self._db.tenants.find_by_id(reference)
        if tenant is None:
            tenant = await self._db.tenants.find_one(lambda t: t.slug == reference)
        return tenant

    async def agency_owner(self) -> Optional[Tenant]:
        tenant = await self._db.tenants.find_one(lambda t: t.is_agency_owner)
        if tenant is None:
            tenant = await self._db.tenants.find_one(
                lambda t: t.slug == self._settings.AGENCY_OWNER_SLUG
            )
        return tenant

    async def domain_info(self, domain: str) -> DomainInfo:
        """Tenant and domain record for a hostname."""
        hostname = normalize_host(domain)
        record = await self._find_domain(hostname)
        if record is not None:
            tenant = await self._db.tenants.find_by_id(record.tenant_id)
        else:
            tenant = await self.resolve(hostname)

        summary = None
        if tenant is not None:
            summary = TenantSummary(
                id=tenant.id,
                name=tenant.name,
                slug=tenant.slug,
                status=tenant.status,
                is_agency_owner=tenant.is_agency_owner,
            )
        return DomainInfo(domain=hostname, tenant=summary, domain_record=record)

    async def _find_domain(self, hostname: str) -> Optional[Domain]:
        return await self._db.domains.find_one(
            lambda d: d.is_active and d.domain.lower() == hostname
        )

    async def _resolve_host(self, hostname: str) -> Optional[str]:
        if hostname:
            record = await self._find_domain(hostname)
            if record is not None:
                logger.debug(f"Tenant resolved by domain: {hostname}")
                return record.tenant_id

            if hostname in LOCAL_HOSTS:
                tenant = await self.agency_owner()
                if tenant is not None:
                    return tenant.id

            subdomain = self._subdomain(hostname)
            if subdomain:
                record = await self._db.domains.find_one(
                    lambda d: d.is_active and subdomain in d.domain.lower()
                )
                if record is not None:
                    logger.debug(f"Tenant resolved by subdomain domain match: {subdomain}")
                    return record.tenant_id
                tenant = await self._db.tenants.find_one(lambda t: t.slug == subdomain)
                if tenant is not None:
                    logger.debug(f"Tenant resolved by subdomain slug: {subdomain}")
                    return tenant.id

        default_id = self._settings.DEFAULT_TENANT_ID
        if default_id and await self._db.tenants.find_by_id(default_id) is not None:
            return default_id

        logger.info(f"No tenant found for host: {hostname or '<none>'}")
        return None

    @staticmethod
    def _subdomain(hostname: str) -> Optional[str]:
        parts = hostname.split(".")
        # First label of any dotted host: acme.com, acme.localhost, acme.lms.io
        if len(parts) > 1 and parts[0]:
            return parts[0]
        return None
