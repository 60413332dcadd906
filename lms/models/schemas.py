"""
Domain models using Pydantic.
Documents stored in the tenant-scoped collections, plus request/response
shapes for the HTTP API.
"""
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, Generic, List, Literal, Optional, TypeVar

from pydantic import BaseModel, Field, computed_field

T = TypeVar("T")

UserRole = Literal["regular", "business", "admin", "super-admin"]
UserTier = Literal["basic", "premium", "pro"]
TenantRole = Literal["tenant-admin", "tenant-viewer"]
TenantStatus = Literal["active", "inactive", "suspended"]
ContentStatus = Literal["draft", "published", "archived"]
Difficulty = Literal["beginner", "intermediate", "advanced"]
AccessLevel = Literal["free", "basic", "premium", "vip"]


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_id() -> str:
    """24-char hex identifier, same shape as a document-database object id."""
    return uuid.uuid4().hex[:24]


# =============================================================================
# Documents (Internal)
# =============================================================================


class Document(BaseModel):
    """Base for every stored document."""

    id: str = Field(default_factory=new_id)
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)


class TenantScoped(Document):
    """Document owned by exactly one tenant."""

    tenant_id: str = Field(..., description="Owning tenant")


class TenantStripeSettings(BaseModel):
    """Per-tenant Stripe account configuration."""

    enabled: bool = False
    secret_key: Optional[str] = None
    publishable_key: Optional[str] = None
    webhook_secret: Optional[str] = None
    is_test_mode: Optional[bool] = None


class Tenant(Document):
    """Customer/organization boundary."""

    name: str
    slug: str = Field(..., description="URL-safe identifier, unique")
    is_agency_owner: bool = Field(default=False, description="System default tenant")
    status: TenantStatus = "active"
    allow_public_read: bool = False
    description: Optional[str] = None
    stripe: TenantStripeSettings = Field(default_factory=TenantStripeSettings)

    @property
    def is_active(self) -> bool:
        return self.status == "active"


class Domain(TenantScoped):
    """Hostname mapped to a tenant."""

    domain: str = Field(..., description="Hostname without port")
    is_active: bool = True
    is_default: bool = False


class MediaAsset(BaseModel):
    url: str
    filename: str
    mime_type: str
    width: Optional[int] = None
    height: Optional[int] = None


class NavLink(BaseModel):
    label: str
    url: str


class Branding(TenantScoped):
    """Per-tenant visual/theming configuration."""

    name: str
    logo: Optional[MediaAsset] = None
    icon: Optional[MediaAsset] = None
    favicon: Optional[MediaAsset] = None
    og_image: Optional[MediaAsset] = None
    title_suffix: str = "- Multi-Tenant Platform"
    meta_description: str = "Multi-Tenant SaaS Platform"
    og_title: str = "Multi-Tenant Dashboard"
    og_description: str = "Multi-Tenant Dashboard"
    primary_color: str = "#0C0C0C"
    accent_color: str = "#ffffff"
    header_background_color: str = "transparent"
    header_text_color: str = "#000000"
    header_links: List[NavLink] = Field(default_factory=list)
    footer_background_color: str = "#000000"
    footer_text_color: str = "#ffffff"
    footer_link_color: str = "#ffffff"
    footer_links: List[NavLink] = Field(default_factory=list)
    copyright_text: Optional[str] = None


class TenantMembership(BaseModel):
    tenant_id: str
    roles: List[TenantRole] = Field(default_factory=lambda: ["tenant-viewer"])


class User(Document):
    email: str
    name: Optional[str] = None
    password_hash: Optional[str] = None
    roles: List[UserRole] = Field(default_factory=lambda: ["regular"])
    tier: Optional[UserTier] = None
    tenants: List[TenantMembership] = Field(default_factory=list)
    stripe_customer_id: Optional[str] = None
    last_login_at: Optional[datetime] = None

    def membership(self, tenant_id: str) -> Optional[TenantMembership]:
        for membership in self.tenants:
            if membership.tenant_id == tenant_id:
                return membership
        return None

    @property
    def display_name(self) -> str:
        return self.name or self.email.split("@")[0]


class Chapter(BaseModel):
    title: str
    start_time: int = Field(..., ge=0, description="Start time in seconds")
    description: Optional[str] = None


class Video(TenantScoped):
    title: str
    slug: str
    description: Optional[str] = None
    video_url: Optional[str] = None
    thumbnail_url: Optional[str] = None
    duration: Optional[int] = Field(default=None, ge=0, description="Seconds")
    category: Optional[str] = None
    tags: List[str] = Field(default_factory=list)
    chapters: List[Chapter] = Field(default_factory=list)
    instructor_id: Optional[str] = None
    difficulty: Difficulty = "beginner"
    status: ContentStatus = "draft"
    featured: bool = False
    access_level: AccessLevel = "free"
    likes: int = 0


class Lesson(BaseModel):
    title: str
    description: Optional[str] = None
    video_id: Optional[str] = None
    duration: Optional[int] = Field(default=None, description="Minutes")
    order: int
    is_preview: bool = False
    type: Optional[str] = Field(default=None, description="e.g. Live Session, Clinic")
    scheduled_at: Optional[datetime] = Field(default=None, description="Live lessons only")


class Program(TenantScoped):
    title: str
    slug: str
    description: Optional[str] = None
    short_description: Optional[str] = None
    thumbnail_url: Optional[str] = None
    instructor_id: str
    category: Optional[str] = None
    lessons: List[Lesson] = Field(default_factory=list)
    difficulty: Difficulty = "beginner"
    duration: Optional[float] = Field(default=None, description="Hours")
    price: Optional[float] = Field(default=None, ge=0)
    access_level: AccessLevel = "free"
    status: ContentStatus = "draft"
    featured: bool = False
    enrollment_limit: int = Field(default=0, ge=0, description="0 means unlimited")
    tags: List[str] = Field(default_factory=list)

    @computed_field
    @property
    def lessons_count(self) -> int:
        return len(self.lessons)


class Comment(TenantScoped):
    video_id: Optional[str] = None
    program_id: Optional[str] = None
    user_id: str
    content: str
    parent_comment_id: Optional[str] = None
    status: Literal["pending", "approved", "rejected"] = "approved"
    likes: int = 0


class VideoProgress(TenantScoped):
    user_id: str
    video_id: str
    progress: float = Field(default=0.0, ge=0, le=100, description="Percent watched")
    current_time: float = Field(default=0.0, ge=0, description="Playback position, seconds")
    duration: Optional[float] = None
    completed: bool = False
    watch_time: float = Field(default=0.0, ge=0, description="Total seconds watched")
    bookmarked: bool = False
    first_watched_at: datetime = Field(default_factory=utcnow)
    last_watched_at: datetime = Field(default_factory=utcnow)


class Enrollment(TenantScoped):
    user_id: str
    program_id: str
    status: Literal["active", "completed", "paused", "cancelled"] = "active"
    progress: float = Field(default=0.0, ge=0, le=100)
    completed_lessons: List[int] = Field(default_factory=list)
    enrolled_at: datetime = Field(default_factory=utcnow)
    completed_at: Optional[datetime] = None
    last_accessed_at: Optional[datetime] = None
    total_time_spent: float = 0.0


AchievementType = Literal[
    "video_completion", "program_completion", "streak", "time_spent",
    "first_login", "comment", "special",
]


class AchievementCriteria(BaseModel):
    """Thresholds; only the one matching the achievement type is read."""

    videos_to_complete: Optional[int] = Field(default=None, ge=1)
    programs_to_complete: Optional[int] = Field(default=None, ge=1)
    streak_days: Optional[int] = Field(default=None, ge=1)
    time_spent_hours: Optional[float] = Field(default=None, gt=0)


class Achievement(TenantScoped):
    title: str
    description: str
    type: AchievementType
    points: int = Field(default=10, ge=0)
    icon_url: Optional[str] = None
    criteria: AchievementCriteria = Field(default_factory=AchievementCriteria)
    status: Literal["active", "inactive"] = "active"
    rarity: Literal["common", "uncommon", "rare", "epic", "legendary"] = "common"


class UserAchievement(TenantScoped):
    user_id: str
    achievement_id: str
    earned_at: datetime = Field(default_factory=utcnow)
    progress: float = Field(default=100.0, ge=0, le=100)


NotificationType = Literal[
    "achievement", "comment", "progress", "enrollment", "live_session", "system"
]


class Notification(TenantScoped):
    user_id: str
    title: str
    message: str
    type: NotificationType = "system"
    read: bool = False
    action_url: Optional[str] = None
    metadata: Dict[str, Any] = Field(default_factory=dict)


class ProductPrice(BaseModel):
    amount: int = Field(..., ge=0, description="Minor currency units")
    currency: Literal["usd", "eur", "gbp"] = "usd"
    interval: Optional[Literal["week", "month", "year"]] = None
    stripe_price_id: Optional[str] = None
    label: Optional[str] = None


class Product(TenantScoped):
    name: str
    description: Optional[str] = None
    type: Literal["one_time", "subscription", "course_access", "program_bundle"] = "one_time"
    prices: List[ProductPrice] = Field(default_factory=list)
    stripe_product_id: Optional[str] = None
    features: List[str] = Field(default_factory=list)
    access_level: Literal["basic", "premium", "vip", "enterprise"] = "basic"
    active: bool = True
    featured: bool = False

    def find_price(self, stripe_price_id: str) -> Optional[ProductPrice]:
        for price in self.prices:
            if price.stripe_price_id == stripe_price_id:
                return price
        return None


SubscriptionStatus = Literal[
    "active", "past_due", "canceled", "unpaid", "incomplete",
    "incomplete_expired", "trialing", "paused",
]


class Subscription(TenantScoped):
    user_id: Optional[str] = None
    product_id: Optional[str] = None
    stripe_subscription_id: str
    stripe_customer_id: Optional[str] = None
    status: SubscriptionStatus = "incomplete"
    current_period_start: Optional[datetime] = None
    current_period_end: Optional[datetime] = None
    cancel_at_period_end: bool = False
    canceled_at: Optional[datetime] = None
    metadata: Dict[str, Any] = Field(default_factory=dict)


class Transaction(TenantScoped):
    user_id: Optional[str] = None
    product_id: Optional[str] = None
    stripe_payment_intent_id: Optional[str] = None
    stripe_customer_id: Optional[str] = None
    amount: int = Field(..., ge=0)
    currency: str = "usd"
    status: Literal[
        "pending", "succeeded", "failed", "canceled", "refunded", "partially_refunded"
    ] = "pending"
    type: Literal["payment", "refund", "subscription_payment", "setup_fee"] = "payment"
    description: Optional[str] = None
    metadata: Dict[str, Any] = Field(default_factory=dict)


# =============================================================================
# API Models (External)
# =============================================================================


class Page(BaseModel, Generic[T]):
    """Paginated query result, shaped like a CMS find() response."""

    docs: List[T]
    total_docs: int
    total_pages: int
    page: int
    limit: int
    has_next_page: bool
    has_prev_page: bool


class ErrorResponse(BaseModel):
    """Standard error response format."""

    error: Dict[str, Any] = Field(..., description="Error details")


class BrandingResponse(BaseModel):
    tenant_id: Optional[str] = None
    source: Literal["tenant", "agency", "fallback", "default"]
    branding: Branding


class TenantSummary(BaseModel):
    id: str
    name: str
    slug: str
    status: TenantStatus
    is_agency_owner: bool


class DomainInfo(BaseModel):
    domain: str
    tenant: Optional[TenantSummary] = None
    domain_record: Optional[Domain] = None


class LMSUser(BaseModel):
    """User as seen by the dashboard within the current tenant."""

    id: str
    email: str
    name: str
    roles: List[str]
    tier: Optional[str] = None
    tenant_id: Optional[str] = None
    tenant_roles: List[str] = Field(default_factory=list)


class UserPermissions(BaseModel):
    can_access_admin: bool = False
    can_access_programs: bool = False
    can_access_live_lessons: bool = False
    can_access_videos: bool = False
    can_access_achievements: bool = False
    tier: Optional[str] = None


class LoginRequest(BaseModel):
    email: str = Field(..., min_length=3)
    password: str = Field(..., min_length=1)


class RegisterRequest(BaseModel):
    email: str = Field(..., min_length=3)
    password: str = Field(..., min_length=8)
    name: Optional[str] = None


class AuthResponse(BaseModel):
    access_token: str
    token_type: str = "Bearer"
    expires_in: int
    user: LMSUser


class CommentView(BaseModel):
    id: str
    user: str
    avatar: Optional[str] = None
    content: str
    timestamp: str = Field(..., description="Relative time, e.g. '3 hours ago'")
    likes: int
    created_at: datetime


class CommentCreate(BaseModel):
    content: str = Field(..., min_length=1, max_length=5000)
    parent_comment_id: Optional[str] = None


class VideoStats(BaseModel):
    views: int = Field(..., description="Unique viewers")
    likes: int
    rating: float
    duration: str
    comments_count: int
    total_watch_time: float = Field(..., description="Hours, one decimal")
    completion_rate: int = Field(..., description="Percent of viewers who completed")
    upload_date: datetime
    last_viewed: Optional[datetime] = None


class VideoAction(BaseModel):
    action: str = Field(..., description="like or view")
    watch_time: Optional[float] = Field(default=None, ge=0)
    completed: Optional[bool] = None
    current_time: Optional[float] = Field(default=None, ge=0)


class ProgressUpdate(BaseModel):
    current_time: float = Field(..., ge=0)
    duration: Optional[float] = Field(default=None, gt=0)
    progress: Optional[float] = Field(default=None, ge=0, le=100)
    watched_seconds: float = Field(default=0.0, ge=0, description="Seconds watched since last update")


class UserProgressSummary(BaseModel):
    overall_progress: int
    monthly_progress: int
    goal_progress: int
    monthly_videos_completed: int
    monthly_goal: int
    total_watch_time: float = Field(..., description="Seconds")
    current_streak: int
    completed_enrollments: int
    total_enrollments: int
    total_programs: int


class EnrollmentView(BaseModel):
    enrollment: Enrollment
    program: Optional[Program] = None


class RecentVideoProgress(BaseModel):
    video_id: str
    title: str
    thumbnail_url: Optional[str] = None
    progress: float
    completed: bool
    current_time: float
    last_watched_at: datetime


class SearchResult(BaseModel):
    id: str
    title: str
    description: str
    type: Literal["video", "program", "page", "setting"]
    url: str
    thumbnail_url: Optional[str] = None
    category: str


class SearchResponse(BaseModel):
    results: List[SearchResult]
    query: str
    total: int


class FeaturedContent(BaseModel):
    videos: List[Video]
    programs: List[Program]


class NotificationList(BaseModel):
    notifications: List[Notification]
    unread_count: int
    total: int


class MarkReadRequest(BaseModel):
    notification_ids: List[str] = Field(default_factory=list)
    mark_all: bool = False


class ProfileUpdate(BaseModel):
    name: str = Field(..., min_length=1, max_length=120)


class StripeConfig(BaseModel):
    secret_key: Optional[str] = None
    publishable_key: Optional[str] = None
    webhook_secret: Optional[str] = None
    is_test_mode: bool = True
    enabled: bool = False


class CheckoutSessionRequest(BaseModel):
    price_id: Optional[str] = None
    mode: Literal["payment", "subscription", "setup"] = "payment"
    success_url: Optional[str] = None
    cancel_url: Optional[str] = None
    customer_id: Optional[str] = None
    metadata: Dict[str, str] = Field(default_factory=dict)


class CheckoutSessionResponse(BaseModel):
    session_id: str
    url: Optional[str] = None


class PaymentIntentRequest(BaseModel):
    amount: Optional[int] = Field(default=None, gt=0, description="Minor currency units")
    currency: str = "usd"
    customer_id: Optional[str] = None
    payment_method_id: Optional[str] = None
    metadata: Dict[str, str] = Field(default_factory=dict)


class PaymentIntentResponse(BaseModel):
    id: str
    client_secret: Optional[str] = None
    amount: int
    currency: str
    status: str


class SubscriptionAction(BaseModel):
    subscription_id: str
    action: Literal["cancel", "resume"] = "cancel"


class UserBilling(BaseModel):
    subscriptions: List[Subscription]
    transactions: List[Transaction]
    active_subscription: Optional[Subscription] = None


class BookmarkRequest(BaseModel):
    bookmarked: bool = True


class BookmarkStatus(BaseModel):
    video_id: str
    bookmarked: bool


class LearningTimeBreakdown(BaseModel):
    hours: int
    minutes: int
    seconds: int


class LearningTime(BaseModel):
    total_watch_time_seconds: float = Field(..., description="Sum of playback positions")
    formatted_time: str = Field(..., description="e.g. '2h 15m', '37m 24s', '45s'")
    total_videos_watched: int
    total_videos_completed: int
    breakdown: LearningTimeBreakdown


class UpcomingLesson(BaseModel):
    id: str
    title: str
    description: Optional[str] = None
    instructor: str
    type: str
    program_id: str
    program_title: str
    scheduled_at: datetime
    date: str = Field(..., description="e.g. 'Monday, Jun 3'")
    time: str = Field(..., description="e.g. '2:30 PM'")


class UpcomingLessons(BaseModel):
    lessons: List[UpcomingLesson]
    total_count: int
    message: Optional[str] = None


class AchievementView(BaseModel):
    """Achievement as listed on the dashboard, locked or earned."""

    id: str
    title: str
    description: str
    type: AchievementType
    points: int
    rarity: str
    icon_url: Optional[str] = None
    earned: bool = False
    earned_at: Optional[datetime] = None


class UserPoints(BaseModel):
    total_points: int
    achievements: List[AchievementView]
    completed_videos: int
