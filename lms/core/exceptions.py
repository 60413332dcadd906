"""
Custom exception hierarchy for centralized error handling.
All exceptions map to appropriate HTTP status codes.
"""
from typing import Any, Dict, Optional


class AppException(Exception):
    """Base exception for all application errors."""

    def __init__(
        self,
        message: str,
        status_code: int = 500,
        error_code: str = "INTERNAL_ERROR",
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.message = message
        self.status_code = status_code
        self.error_code = error_code
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to API response format."""
        return {
            "error": {
                "code": self.error_code,
                "message": self.message,
                "details": self.details,
            }
        }


class ValidationError(AppException):
    """Invalid input data."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(
            message=message,
            status_code=400,
            error_code="VALIDATION_ERROR",
            details=details,
        )


class AuthenticationError(AppException):
    """Missing, invalid or expired credentials."""

    def __init__(self, message: str = "Authentication required") -> None:
        super().__init__(
            message=message,
            status_code=401,
            error_code="UNAUTHENTICATED",
        )


class PermissionDeniedError(AppException):
    """Authenticated but not allowed."""

    def __init__(
        self,
        message: str = "You do not have access to this resource",
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(
            message=message,
            status_code=403,
            error_code="FORBIDDEN",
            details=details,
        )


class NotFoundError(AppException):
    """Resource not found."""

    def __init__(self, resource: str, identifier: str) -> None:
        super().__init__(
            message=f"{resource} not found: {identifier}",
            status_code=404,
            error_code="NOT_FOUND",
            details={"resource": resource, "identifier": identifier},
        )


class TenantNotFoundError(AppException):
    """No active tenant could be resolved for the request."""

    def __init__(self, host: Optional[str] = None) -> None:
        super().__init__(
            message="Tenant not found",
            status_code=404,
            error_code="TENANT_NOT_FOUND",
            details={"host": host} if host else {},
        )


class ConflictError(AppException):
    """Resource already exists or conflicts with current state."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(
            message=message,
            status_code=409,
            error_code="CONFLICT",
            details=details,
        )


class PaymentConfigurationError(AppException):
    """Payment processor is not configured for the tenant."""

    def __init__(self, message: str = "Stripe is not configured for this tenant") -> None:
        super().__init__(
            message=message,
            status_code=400,
            error_code="PAYMENTS_NOT_CONFIGURED",
        )


class PaymentProviderError(AppException):
    """Payment processor rejected or failed a call."""

    def __init__(self, operation: str, reason: str = "Unknown error") -> None:
        super().__init__(
            message=f"Payment provider error during {operation}: {reason}",
            status_code=502,
            error_code="PAYMENT_PROVIDER_ERROR",
            details={"operation": operation, "reason": reason},
        )


class ServiceUnavailableError(AppException):
    """Dependency service is unavailable."""

    def __init__(self, service_name: str) -> None:
        super().__init__(
            message=f"Service temporarily unavailable: {service_name}",
            status_code=503,
            error_code="SERVICE_UNAVAILABLE",
            details={"service": service_name},
        )


class CircuitBreakerOpenError(AppException):
    """Circuit breaker is open - service calls blocked."""

    def __init__(self, service_name: str) -> None:
        super().__init__(
            message=f"Circuit breaker open for: {service_name}",
            status_code=503,
            error_code="CIRCUIT_BREAKER_OPEN",
            details={"service": service_name},
        )
