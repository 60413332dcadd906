"""Core infrastructure components."""
from .cache import CacheInterface, InMemoryCache
from .circuit_breaker import CircuitBreaker, CircuitState
from .exceptions import (
    AppException,
    AuthenticationError,
    CircuitBreakerOpenError,
    ConflictError,
    NotFoundError,
    PaymentConfigurationError,
    PaymentProviderError,
    PermissionDeniedError,
    ServiceUnavailableError,
    TenantNotFoundError,
    ValidationError,
)
from .security import PasswordHasher, TokenClaims, TokenManager

__all__ = [
    "AppException",
    "AuthenticationError",
    "CacheInterface",
    "CircuitBreaker",
    "CircuitBreakerOpenError",
    "CircuitState",
    "ConflictError",
    "InMemoryCache",
    "NotFoundError",
    "PasswordHasher",
    "PaymentConfigurationError",
    "PaymentProviderError",
    "PermissionDeniedError",
    "ServiceUnavailableError",
    "TenantNotFoundError",
    "TokenClaims",
    "TokenManager",
    "ValidationError",
]
