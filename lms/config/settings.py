"""
Centralized configuration using Pydantic BaseSettings.
All environment variables are loaded here - no hardcoded values.
"""
from functools import lru_cache
from typing import Optional

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Application
    APP_NAME: str = "Multi-Tenant LMS API"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False

    # Tenancy
    BASE_DOMAIN: str = "lms.example.com"
    DEFAULT_TENANT_ID: Optional[str] = None
    AGENCY_OWNER_SLUG: str = "agency-owner"
    TENANT_COOKIE_NAME: str = "tenant"
    TENANT_HEADER_NAME: str = "X-Tenant-ID"
    TENANT_CACHE_TTL_SEC: int = 300  # 5 minutes

    # Authentication
    JWT_SECRET_KEY: str = "change-me-in-production"
    JWT_ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24
    AUTH_COOKIE_NAME: str = "lms-token"
    BCRYPT_ROUNDS: int = 12

    # Pagination
    DEFAULT_PAGE_LIMIT: int = 12
    MAX_PAGE_LIMIT: int = 100
    NOTIFICATIONS_LIMIT: int = 50
    SEARCH_RESULTS_PER_TYPE: int = 5

    # Progress tracking
    COMPLETION_THRESHOLD: float = 95.0  # Percent watched that counts as completed
    MONTHLY_VIDEO_GOAL: int = 20
    DEFAULT_VIDEO_RATING: float = 4.5

    # Stripe (fallback when a tenant has no keys of its own)
    STRIPE_SECRET_KEY: Optional[str] = None
    STRIPE_PUBLISHABLE_KEY: Optional[str] = None
    STRIPE_WEBHOOK_SECRET: Optional[str] = None
    STRIPE_API_VERSION: str = "2024-06-20"

    # Circuit Breaker (payment gateway)
    CIRCUIT_BREAKER_FAILURE_THRESHOLD: int = 5
    CIRCUIT_BREAKER_RECOVERY_TIMEOUT_SEC: int = 30

    # Telemetry
    ENABLE_OTEL: bool = False  # Default to False to prevent gRPC errors in dev
    ENABLE_PROMETHEUS: bool = True

    # Seed the in-memory database with demo tenants and content
    SEED_DEMO_DATA: bool = True

    class Config:
        env_file = ".env"
        case_sensitive = True


@lru_cache()
def get_settings() -> Settings:
    """Cached settings instance - singleton pattern."""
    return Settings()
