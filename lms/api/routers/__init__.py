"""API routers package."""
from .achievements import router as achievements_router
from .auth import router as auth_router
from .billing import router as billing_router
from .branding import router as branding_router
from .health import router as health_router
from .notifications import router as notifications_router
from .profile import router as profile_router
from .programs import router as programs_router
from .progress import router as progress_router
from .search import router as search_router
from .stripe import router as stripe_router
from .videos import router as videos_router

__all__ = [
    "achievements_router",
    "auth_router",
    "billing_router",
    "branding_router",
    "health_router",
    "notifications_router",
    "profile_router",
    "programs_router",
    "progress_router",
    "search_router",
    "stripe_router",
    "videos_router",
]
