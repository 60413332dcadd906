"""API package - FastAPI routes and dependencies."""
from .dependencies import get_current_tenant, get_current_user, require_role
from .routers import (
    auth_router,
    billing_router,
    branding_router,
    health_router,
    notifications_router,
    profile_router,
    programs_router,
    progress_router,
    search_router,
    stripe_router,
    videos_router,
)

__all__ = [
    "auth_router",
    "billing_router",
    "branding_router",
    "get_current_tenant",
    "get_current_user",
    "health_router",
    "notifications_router",
    "profile_router",
    "programs_router",
    "progress_router",
    "require_role",
    "search_router",
    "stripe_router",
    "videos_router",
]
