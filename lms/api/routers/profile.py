"""
Profile and permissions router.
"""
from fastapi import APIRouter, Depends

from lms.api.dependencies import get_auth_service, get_current_tenant, get_current_user, require_role
from lms.models.schemas import LMSUser, ProfileUpdate, Tenant, User, UserPermissions
from lms.services.access import get_user_permissions
from lms.services.auth import AuthService, to_lms_user

router = APIRouter(prefix="/api/lms", tags=["profile"])


@router.get("/profile", response_model=LMSUser, summary="Get Profile")
async def get_profile(
    tenant: Tenant = Depends(get_current_tenant),
    user: User = Depends(get_current_user),
) -> LMSUser:
    return to_lms_user(user, tenant.id)


@router.patch("/profile", response_model=LMSUser, summary="Update Profile")
async def update_profile(
    body: ProfileUpdate,
    tenant: Tenant = Depends(get_current_tenant),
    user: User = Depends(get_current_user),
    auth_service: AuthService = Depends(get_auth_service),
) -> LMSUser:
    """Only the display name is editable."""
    updated = await auth_service.update_profile(user, body.name)
    return to_lms_user(updated, tenant.id)


@router.get("/permissions", response_model=UserPermissions, summary="Dashboard Permissions")
async def permissions(user: User = Depends(require_role("regular"))) -> UserPermissions:
    """Dashboard feature flags. Any role in the hierarchy may ask."""
    return get_user_permissions(user)
