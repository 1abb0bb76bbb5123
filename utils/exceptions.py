"""
Custom exception classes for Lambda handlers and services.

Domain errors form a closed family rooted at ``AppError``; each carries the
``ErrorKind`` tag that the error mapper turns into an HTTP status and code.
"""
from enum import Enum
from typing import Optional, Any


class ErrorKind(Enum):
    """Taxonomy tags understood by the error mapper."""

    VALIDATION = "validation"
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    UNAUTHORIZED = "unauthorized"
    FORBIDDEN = "forbidden"
    BUSINESS_LOGIC = "business_logic"
    STORAGE_CONDITIONAL_CHECK = "storage_conditional_check"
    STORAGE_RESOURCE_NOT_FOUND = "storage_resource_not_found"
    STORAGE_THROTTLED = "storage_throttled"
    STORAGE_PAYLOAD_TOO_LARGE = "storage_payload_too_large"
    STORAGE_VALIDATION = "storage_validation"
    STORAGE_ACCESS_DENIED = "storage_access_denied"
    STORAGE_UNAVAILABLE = "storage_unavailable"
    MALFORMED_BODY = "malformed_body"
    TIMEOUT = "timeout"
    UNCLASSIFIED = "unclassified"


class AppError(Exception):
    """Base class for domain errors raised by handlers."""

    kind: ErrorKind = ErrorKind.UNCLASSIFIED
    default_message: str = "Application error"

    def __init__(self, message: Optional[str] = None, details: Any = None):
        """
        Initialize domain error.

        Args:
            message: Error message (defaults to the class default message)
            details: Structured payload returned to the caller if available
        """
        self.message = message or self.default_message
        super().__init__(self.message)
        self.details = details


class ValidationError(AppError):
    """Exception raised for validation errors."""

    kind = ErrorKind.VALIDATION
    default_message = "Validation failed"


class NotFoundError(AppError):
    """Exception raised when a requested resource does not exist."""

    kind = ErrorKind.NOT_FOUND
    default_message = "Resource not found"

    def __init__(
        self,
        message: Optional[str] = None,
        resource: Optional[str] = None,
        id: Optional[str] = None,
        details: Any = None
    ):
        """
        Initialize not found error.

        Args:
            message: Error message; built from resource and id when omitted
            resource: Resource type that was not found if available
            id: Resource identifier that was not found if available
            details: Structured payload; defaults to resource and id
        """
        if message is None and (resource or id):
            message = f"{resource or 'Resource'} with ID '{id or 'unknown'}' not found"
        if details is None and (resource or id):
            details = {"resource": resource, "id": id}
        super().__init__(message, details)
        self.resource = resource
        self.id = id


class ConflictError(AppError):
    kind = ErrorKind.CONFLICT
    default_message = "Resource conflict"


class UnauthorizedError(AppError):
    kind = ErrorKind.UNAUTHORIZED
    default_message = "Unauthorized"


class ForbiddenError(AppError):
    kind = ErrorKind.FORBIDDEN
    default_message = "Forbidden"


class BusinessLogicError(AppError):
    kind = ErrorKind.BUSINESS_LOGIC
    default_message = "Business logic error"


class MiddlewareError(Exception):
    """Exception raised when a middleware chain is wired incorrectly."""


class MiddlewareChainExhausted(MiddlewareError):
    """Raised when the last middleware step calls ``next_step``."""


class AnnotationConflictError(MiddlewareError):
    """Raised when a step tries to overwrite an annotation set earlier."""

    def __init__(self, key: str):
        super().__init__(f"Annotation '{key}' has already been set")
        self.key = key
