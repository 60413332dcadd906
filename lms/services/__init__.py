"""Services package - business logic layer."""
from .auth import AuthService, to_lms_user
from .billing import BillingService
from .branding import BrandingService
from .catalog import CatalogService
from .engagement import EngagementService
from .notifications import NotificationService
from .payments import StripeGateway
from .tenancy import TenantResolver

__all__ = [
    "AuthService",
    "BillingService",
    "BrandingService",
    "CatalogService",
    "EngagementService",
    "NotificationService",
    "StripeGateway",
    "TenantResolver",
    "to_lms_user",
]
