"""
Dependency injection container.
Creates and wires all application components.
Uses FastAPI's dependency injection system.
"""
from functools import lru_cache
from typing import Awaitable, Callable, Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from lms.config import get_settings
from lms.config.logging import tenant_id_var
from lms.core.cache import InMemoryCache
from lms.core.circuit_breaker import CircuitBreaker
from lms.core.exceptions import (
    AuthenticationError,
    PermissionDeniedError,
    TenantNotFoundError,
    ValidationError,
)
from lms.core.security import PasswordHasher, TokenManager
from lms.models.interfaces import PaymentGateway
from lms.models.schemas import Tenant, User
from lms.repositories.memory import InMemoryDatabase
from lms.services.access import can_access_tenant, has_required_role
from lms.services.achievements import AchievementService
from lms.services.auth import AuthService
from lms.services.billing import BillingService
from lms.services.branding import BrandingService
from lms.services.catalog import CatalogService
from lms.services.engagement import EngagementService
from lms.services.notifications import NotificationService
from lms.services.payments import StripeGateway
from lms.services.tenancy import TenantResolver

bearer_scheme = HTTPBearer(auto_error=False)


# =============================================================================
# Singleton Instances (Application Lifetime)
# =============================================================================


@lru_cache()
def get_database() -> InMemoryDatabase:
    """Get singleton document database (seeded at startup)."""
    return InMemoryDatabase()


@lru_cache()
def get_password_hasher() -> PasswordHasher:
    return PasswordHasher(rounds=get_settings().BCRYPT_ROUNDS)


@lru_cache()
def get_token_manager() -> TokenManager:
    settings = get_settings()
    return TokenManager(
        secret_key=settings.JWT_SECRET_KEY,
        algorithm=settings.JWT_ALGORITHM,
        expire_minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES,
    )


@lru_cache()
def get_tenant_cache() -> InMemoryCache[str]:
    """Get singleton host -> tenant id cache."""
    return InMemoryCache(default_ttl_seconds=get_settings().TENANT_CACHE_TTL_SEC)


@lru_cache()
def get_payment_circuit_breaker() -> CircuitBreaker:
    """Get singleton circuit breaker for the payment gateway."""
    settings = get_settings()
    return CircuitBreaker(
        name="stripe",
        failure_threshold=settings.CIRCUIT_BREAKER_FAILURE_THRESHOLD,
        recovery_timeout_sec=settings.CIRCUIT_BREAKER_RECOVERY_TIMEOUT_SEC,
        ignored_exceptions=(ValidationError,),
    )


@lru_cache()
def get_payment_gateway() -> PaymentGateway:
    return StripeGateway(api_version=get_settings().STRIPE_API_VERSION)


# =============================================================================
# Request-Scoped Services
# =============================================================================


def get_tenant_resolver(db: InMemoryDatabase = Depends(get_database)) -> TenantResolver:
    return TenantResolver(db, get_settings(), cache=get_tenant_cache())


def get_auth_service(
    db: InMemoryDatabase = Depends(get_database),
    hasher: PasswordHasher = Depends(get_password_hasher),
    tokens: TokenManager = Depends(get_token_manager),
) -> AuthService:
    return AuthService(db, hasher, tokens)


def get_branding_service(db: InMemoryDatabase = Depends(get_database)) -> BrandingService:
    return BrandingService(db)


def get_catalog_service(db: InMemoryDatabase = Depends(get_database)) -> CatalogService:
    return CatalogService(db, results_per_type=get_settings().SEARCH_RESULTS_PER_TYPE)


def get_engagement_service(db: InMemoryDatabase = Depends(get_database)) -> EngagementService:
    settings = get_settings()
    return EngagementService(
        db,
        completion_threshold=settings.COMPLETION_THRESHOLD,
        monthly_goal=settings.MONTHLY_VIDEO_GOAL,
        default_rating=settings.DEFAULT_VIDEO_RATING,
    )


def get_achievement_service(db: InMemoryDatabase = Depends(get_database)) -> AchievementService:
    return AchievementService(db)


def get_notification_service(db: InMemoryDatabase = Depends(get_database)) -> NotificationService:
    return NotificationService(db, limit=get_settings().NOTIFICATIONS_LIMIT)


def get_billing_service(
    db: InMemoryDatabase = Depends(get_database),
    gateway: PaymentGateway = Depends(get_payment_gateway),
    circuit_breaker: CircuitBreaker = Depends(get_payment_circuit_breaker),
) -> BillingService:
    return BillingService(db, gateway, circuit_breaker, get_settings())


# =============================================================================
# Tenant & User Resolution
# =============================================================================


async def get_optional_tenant(
    request: Request,
    resolver: TenantResolver = Depends(get_tenant_resolver),
) -> Optional[Tenant]:
    """Tenant from the tenant header, tenant cookie or Host, if any."""
    settings = get_settings()
    tenant = await resolver.resolve(
        host=request.headers.get("host"),
        cookie_tenant=request.cookies.get(settings.TENANT_COOKIE_NAME),
        header_tenant=request.headers.get(settings.TENANT_HEADER_NAME),
    )
    if tenant is not None:
        tenant_id_var.set(tenant.id)
    return tenant


async def get_current_tenant(
    request: Request,
    tenant: Optional[Tenant] = Depends(get_optional_tenant),
) -> Tenant:
    """Active tenant of the request. Raises TenantNotFoundError."""
    if tenant is None or not tenant.is_active:
        raise TenantNotFoundError(request.headers.get("host"))
    return tenant


async def get_optional_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    auth_service: AuthService = Depends(get_auth_service),
) -> Optional[User]:
    """User of the bearer token or session cookie; None when no token is sent."""
    token = credentials.credentials if credentials else None
    if not token:
        token = request.cookies.get(get_settings().AUTH_COOKIE_NAME)
    if not token:
        return None
    return await auth_service.current_user(token)


async def get_current_user(
    tenant: Tenant = Depends(get_current_tenant),
    user: Optional[User] = Depends(get_optional_user),
) -> User:
    """Authenticated user that belongs to the current tenant."""
    if user is None:
        raise AuthenticationError()
    if not can_access_tenant(user, tenant.id):
        raise PermissionDeniedError(
            "User does not have access to this tenant",
            details={"tenant_id": tenant.id},
        )
    return user


def require_role(role: str) -> Callable[..., Awaitable[User]]:
    """Dependency factory enforcing a minimum role in the hierarchy."""

    async def checker(user: User = Depends(get_current_user)) -> User:
        if not has_required_role(user, role):
            raise PermissionDeniedError(
                f"Requires role '{role}' or higher",
                details={"required_role": role},
            )
        return user

    return checker


# =============================================================================
# Cleanup Functions
# =============================================================================


def clear_caches() -> None:
    """Clear all cached singleton instances (for testing)."""
    get_database.cache_clear()
    get_password_hasher.cache_clear()
    get_token_manager.cache_clear()
    get_tenant_cache.cache_clear()
    get_payment_circuit_breaker.cache_clear()
    get_payment_gateway.cache_clear()
