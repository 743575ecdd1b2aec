from typing import Any, Mapping, Optional


class FitMealError(Exception):
    """Base class for errors raised by the service layer.

    Attributes:
        message: human-readable message
        details: optional mapping with extra context (field errors, validation info)
        code: machine-readable error code
        http_status: suggested HTTP status code for handlers
    """

    http_status = 500
    default_message = "Unexpected error"
    default_code = "ERROR"

    def __init__(
        self,
        message: Optional[str] = None,
        details: Optional[Mapping[str, Any]] = None,
        code: Optional[str] = None,
    ):
        message = message or self.default_message
        super().__init__(message)
        self.message = message
        self.details = details
        self.code = code or self.default_code

    def to_dict(self) -> dict:
        payload: dict[str, Any] = {"code": self.code, "message": self.message}
        if self.details:
            payload["details"] = dict(self.details)
        return payload

    def __str__(self) -> str:
        return self.message


class ServiceValidationError(FitMealError):
    """Raised when input data is invalid or a precondition for a service call is not met."""

    http_status = 400
    default_message = "Invalid input"
    default_code = "VALIDATION_ERROR"


class UnauthorizedError(FitMealError):
    """Raised when authentication fails."""

    http_status = 401
    default_message = "Unauthorized"
    default_code = "UNAUTHORIZED"


class PaymentRequiredError(FitMealError):
    """Raised when a trainer's tier does not allow another resource."""

    http_status = 402
    default_message = "Tier limit reached"
    default_code = "TIER_LIMIT_REACHED"


class ForbiddenError(FitMealError):
    """Raised when an authenticated user may not perform an action."""

    http_status = 403
    default_message = "Forbidden"
    default_code = "FORBIDDEN"


class NotFoundError(FitMealError):
    """Raised when a requested resource was not found."""

    http_status = 404
    default_message = "Not found"
    default_code = "NOT_FOUND"


class ConflictError(FitMealError):
    """Raised when a resource conflict occurs (e.g., duplicate entry)."""

    http_status = 409
    default_message = "Conflict"
    default_code = "CONFLICT"


class GoneError(FitMealError):
    """Raised when a resource existed but is no longer usable."""

    http_status = 410
    default_message = "Gone"
    default_code = "GONE"


class TooManyRequestsError(FitMealError):
    http_status = 429
    default_message = "Too many requests"
    default_code = "TOO_MANY_REQUESTS"


class ExternalServiceError(FitMealError):
    """Raised when Stripe, OpenAI, Mailgun or object storage fail."""

    http_status = 502
    default_message = "External service failure"
    default_code = "EXTERNAL_SERVICE_ERROR"
