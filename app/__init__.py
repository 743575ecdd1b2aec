"""
App package - Application configuration and core utilities.
Contains settings, exceptions, and security primitives.
"""

from app.config import settings
from app.exceptions import (
    FitMealError,
    ServiceValidationError,
    UnauthorizedError,
    PaymentRequiredError,
    ForbiddenError,
    NotFoundError,
    ConflictError,
    GoneError,
    TooManyRequestsError,
    ExternalServiceError,
)

__all__ = [
    "settings",
    "FitMealError",
    "ServiceValidationError",
    "UnauthorizedError",
    "PaymentRequiredError",
    "ForbiddenError",
    "NotFoundError",
    "ConflictError",
    "GoneError",
    "TooManyRequestsError",
    "ExternalServiceError",
]
