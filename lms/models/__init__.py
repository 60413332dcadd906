"""Models package - domain documents, API schemas and interfaces."""
from .interfaces import Collection, PaymentGateway
from .schemas import (
    Achievement,
    AchievementCriteria,
    Branding,
    Comment,
    Document,
    Domain,
    Enrollment,
    ErrorResponse,
    LMSUser,
    Lesson,
    Notification,
    Page,
    Product,
    ProductPrice,
    Program,
    Subscription,
    Tenant,
    TenantMembership,
    TenantStripeSettings,
    Transaction,
    User,
    UserAchievement,
    UserPermissions,
    Video,
    VideoProgress,
)

__all__ = [
    # Interfaces
    "Collection",
    "PaymentGateway",
    # Documents
    "Achievement",
    "AchievementCriteria",
    "Branding",
    "Comment",
    "Document",
    "Domain",
    "Enrollment",
    "Lesson",
    "Notification",
    "Product",
    "ProductPrice",
    "Program",
    "Subscription",
    "Tenant",
    "TenantMembership",
    "TenantStripeSettings",
    "Transaction",
    "User",
    "UserAchievement",
    "Video",
    "VideoProgress",
    # API
    "ErrorResponse",
    "LMSUser",
    "Page",
    "UserPermissions",
]
