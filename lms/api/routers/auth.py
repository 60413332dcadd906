"""
Authentication router.
Token login/registration for the resolved tenant. The access token is
returned in the body and also set as an HTTP-only cookie for the dashboard.
"""
import logging

from fastapi import APIRouter, Depends, Response, status

from lms.api.dependencies import get_auth_service, get_current_tenant, get_current_user
from lms.config import get_settings
from lms.models.schemas import AuthResponse, LMSUser, LoginRequest, RegisterRequest, Tenant, User
from lms.services.access import get_user_permissions, is_admin_or_higher, is_tenant_admin
from lms.services.auth import AuthService, to_lms_user

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["auth"])


def _set_session_cookie(response: Response, auth: AuthResponse) -> None:
    settings = get_settings()
    response.set_cookie(
        key=settings.AUTH_COOKIE_NAME,
        value=auth.access_token,
        max_age=auth.expires_in,
        httponly=True,
        samesite="lax",
        secure=not settings.DEBUG,
    )


@router.post(
    "/login",
    response_model=AuthResponse,
    summary="Log In",
    responses={
        401: {"description": "Invalid email or password"},
        403: {"description": "User is not a member of this tenant"},
        404: {"description": "Tenant not found"},
    },
)
async def login(
    body: LoginRequest,
    response: Response,
    tenant: Tenant = Depends(get_current_tenant),
    auth_service: AuthService = Depends(get_auth_service),
) -> AuthResponse:
    auth = await auth_service.login(body.email, body.password, tenant)
    _set_session_cookie(response, auth)
    return auth


@router.post(
    "/register",
    response_model=AuthResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register",
    responses={409: {"description": "User already exists"}},
)
async def register(
    body: RegisterRequest,
    response: Response,
    tenant: Tenant = Depends(get_current_tenant),
    auth_service: AuthService = Depends(get_auth_service),
) -> AuthResponse:
    """Create a regular (basic tier) account in the current tenant."""
    auth = await auth_service.register(body.email, body.password, tenant, name=body.name)
    _set_session_cookie(response, auth)
    return auth


@router.post("/logout", summary="Log Out")
async def logout(response: Response) -> dict:
    response.delete_cookie(get_settings().AUTH_COOKIE_NAME)
    return {"success": True}


@router.get("/me", response_model=LMSUser, summary="Current User")
async def me(
    user: User = Depends(get_current_user),
    tenant: Tenant = Depends(get_current_tenant),
) -> LMSUser:
    return to_lms_user(user, tenant.id)


@router.get("/check-admin", summary="Check Admin Access")
async def check_admin(
    user: User = Depends(get_current_user),
    tenant: Tenant = Depends(get_current_tenant),
) -> dict:
    """Global admin flag plus admin rights over the current tenant."""
    return {
        "is_admin": is_admin_or_higher(user),
        "is_tenant_admin": is_tenant_admin(user, tenant.id),
        "roles": list(user.roles),
        "permissions": get_user_permissions(user).model_dump(),
    }
