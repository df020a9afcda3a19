"""
Structured application errors.

Every error the API surfaces on purpose is an AppError subclass carrying a
category, an HTTP status and optional details. The handlers in
passgate.main turn them into the common error envelope.
"""

from typing import Optional


class ErrorCategory:
    """Error categories for structured error handling"""
    VALIDATION = "validation_error"
    AUTHENTICATION = "authentication_error"
    AUTHORIZATION = "authorization_error"
    NOT_FOUND = "not_found_error"
    CONFLICT = "conflict_error"
    RATE_LIMIT = "rate_limit_error"
    DATABASE = "database_error"
    CONFIGURATION = "configuration_error"
    INTERNAL = "internal_error"


class AppError(Exception):
    """Base application error with structured information"""

    def __init__(
        self,
        message: str,
        category: str = ErrorCategory.INTERNAL,
        status_code: int = 500,
        details: Optional[dict] = None,
        retry_after: Optional[int] = None
    ):
        self.message = message
        self.category = category
        self.status_code = status_code
        self.details = details or {}
        self.retry_after = retry_after
        super().__init__(self.message)


class ValidationError(AppError):
    """Malformed input, rejected before any store access"""
    def __init__(self, message: str, field: Optional[str] = None, details: Optional[dict] = None):
        merged = {"field": field} if field else {}
        merged.update(details or {})
        super().__init__(
            message=message,
            category=ErrorCategory.VALIDATION,
            status_code=400,
            details=merged
        )


class AuthenticationError(AppError):
    """Missing or unverifiable bearer token"""
    def __init__(self, message: str = "Could not validate credentials"):
        super().__init__(
            message=message,
            category=ErrorCategory.AUTHENTICATION,
            status_code=401
        )


class ForbiddenError(AppError):
    """Authenticated, but the role is not allowed to do this"""
    def __init__(self, message: str = "Forbidden: Insufficient admin role"):
        super().__init__(
            message=message,
            category=ErrorCategory.AUTHORIZATION,
            status_code=403
        )


class NotFoundError(AppError):
    """Referenced document does not exist"""
    def __init__(self, resource: str, resource_id: Optional[str] = None):
        details = {"resource": resource}
        if resource_id:
            details["id"] = resource_id
        super().__init__(
            message=f"{resource} not found",
            category=ErrorCategory.NOT_FOUND,
            status_code=404,
            details=details
        )


class ConflictError(AppError):
    """Requested transition is not valid from the document's current state"""
    def __init__(self, message: str):
        super().__init__(
            message=message,
            category=ErrorCategory.CONFLICT,
            status_code=400
        )


class RateLimitError(AppError):
    """Rate limit exceeded errors"""
    def __init__(self, message: str = "Too many requests. Please slow down.", retry_after: int = 60):
        super().__init__(
            message=message,
            category=ErrorCategory.RATE_LIMIT,
            status_code=429,
            retry_after=retry_after
        )


class StoreUnavailableError(AppError):
    """The document store could not be reached or failed mid-request"""
    def __init__(self, message: str = "Document store temporarily unavailable. Please try again."):
        super().__init__(
            message=message,
            category=ErrorCategory.DATABASE,
            status_code=503,
            retry_after=30
        )


class MissingIndexError(AppError):
    """A query needs an index that was never declared (deploy-time gap)"""
    def __init__(self, collection: str, fields: list):
        super().__init__(
            message=(
                f"The '{collection}' query requires a composite index on "
                f"({', '.join(fields)}). Declare the index in the store "
                "configuration and redeploy."
            ),
            category=ErrorCategory.CONFIGURATION,
            status_code=500,
            details={"collection": collection, "fields": fields}
        )


class ConfigurationError(AppError):
    """A required secret or setting is missing"""
    def __init__(self, message: str):
        super().__init__(
            message=message,
            category=ErrorCategory.CONFIGURATION,
            status_code=500
        )
