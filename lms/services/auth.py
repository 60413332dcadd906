"""
Authentication service.
Credential checks, self-service registration and token-to-user lookup,
always relative to the tenant the request was resolved to.
"""
import logging
from typing import Optional

from lms.core.exceptions import (
    AuthenticationError,
    ConflictError,
    PermissionDeniedError,
    ValidationError,
)
from lms.core.security import PasswordHasher, TokenManager
from lms.models.schemas import AuthResponse, LMSUser, Tenant, TenantMembership, User, utcnow
from lms.repositories.memory import InMemoryDatabase
from lms.services.access import can_access_tenant

logger = logging.getLogger(__name__)


def to_lms_user(user: User, tenant_id: Optional[str] = None) -> LMSUser:
    """Project a stored user onto the dashboard view for one tenant."""
    membership = user.membership(tenant_id) if tenant_id else None
    return LMSUser(
        id=user.id,
        email=user.email,
        name=user.display_name,
        roles=list(user.roles),
        tier=user.tier,
        tenant_id=tenant_id,
        tenant_roles=list(membership.roles) if membership else [],
    )


class AuthService:
    """Login, registration and session lookup."""

    def __init__(
        self,
        db: InMemoryDatabase,
        hasher: PasswordHasher,
        tokens: TokenManager,
    ) -> None:
        self._db = db
        self._hasher = hasher
        self._tokens = tokens

    async def find_by_email(self, email: str) -> Optional[User]:
        normalized = email.strip().lower()
        return await self._db.users.find_one(lambda u: u.email.lower() == normalized)

    async def login(self, email: str, password: str, tenant: Tenant) -> AuthResponse:
        """
        Verify credentials and issue an access token for the tenant.

        Raises:
            AuthenticationError: Unknown email or wrong password
            PermissionDeniedError: User is not a member of the tenant
        """
        user = await self.find_by_email(email)
        if user is None or not self._hasher.verify(password, user.password_hash):
            logger.info(f"Failed login attempt: tenant={tenant.id}")
            raise AuthenticationError("Invalid email or password")

        if not can_access_tenant(user, tenant.id):
            logger.warning(f"Login rejected, no membership: user={user.id}, tenant={tenant.id}")
            raise PermissionDeniedError(
                "User does not have access to this tenant",
                details={"tenant_id": tenant.id},
            )

        user = await self._db.users.update(user.id, last_login_at=utcnow())
        logger.info(f"User logged in: user={user.id}, tenant={tenant.id}")
        return self._issue(user, tenant)

    async def register(
        self,
        email: str,
        password: str,
        tenant: Tenant,
        name: Optional[str] = None,
    ) -> AuthResponse:
        """
        Create a regular basic-tier user with viewer membership in the tenant.

        An existing account from another tenant is linked to this tenant
        when the supplied password matches it.
        """
        email = email.strip().lower()
        if "@" not in email:
            raise ValidationError("A valid email address is required", details={"field": "email"})

        existing = await self.find_by_email(email)
        if existing is not None:
            if existing.membership(tenant.id) is not None:
                raise ConflictError("User already exists", details={"email": email})
            if not self._hasher.verify(password, existing.password_hash):
                raise ConflictError(
                    "An account with this email already exists",
                    details={"email": email},
                )
            memberships = existing.tenants + [TenantMembership(tenant_id=tenant.id)]
            user = await self._db.users.update(existing.id, tenants=memberships)
            logger.info(f"Existing user joined tenant: user={user.id}, tenant={tenant.id}")
            return self._issue(user, tenant)

        user = await self._db.users.create(User(
            email=email,
            name=name,
            password_hash=self._hasher.hash(password),
            roles=["regular"],
            tier="basic",
            tenants=[TenantMembership(tenant_id=tenant.id)],
        ))
        logger.info(f"User registered: user={user.id}, tenant={tenant.id}")
        return self._issue(user, tenant)

    async def current_user(self, token: str) -> User:
        """Resolve a bearer token to its stored user."""
        claims = self._tokens.decode(token)
        user = await self._db.users.find_by_id(claims.sub)
        if user is None:
            raise AuthenticationError("User no longer exists")
        return user

    async def update_profile(self, user: User, name: str) -> User:
        return await self._db.users.update(user.id, name=name.strip())

    def _issue(self, user: User, tenant: Tenant) -> AuthResponse:
        token = self._tokens.create_access_token(
            user_id=user.id,
            tenant_id=tenant.id,
            roles=list(user.roles),
        )
        return AuthResponse(
            access_token=token,
            expires_in=self._tokens.expires_in,
            user=to_lms_user(user, tenant.id),
        )
