"""
Error classification for Lambda handlers.

Domain errors carry their ``ErrorKind``; exceptions raised by collaborators
(botocore, requests, json) are adapted to a kind at the boundary by
``classify_foreign_error``. ``ErrorMapper`` turns the kind into a status,
a stable code and a response envelope.
"""
import json
import traceback
from dataclasses import dataclass
from typing import Any, Dict, Mapping, NamedTuple, Optional

import requests
from botocore.exceptions import (
    ClientError,
    ConnectTimeoutError,
    ReadTimeoutError,
)

from config import get_config
from logger_config import get_logger
from utils.constants import SENSITIVE_HEADERS
from utils.exceptions import AppError, ErrorKind
from utils.response import Response, ResponseBuilder, generate_correlation_id

logger = get_logger(__name__)


class ErrorMapping(NamedTuple):
    status_code: int
    code: str
    message: Optional[str]


# Storage and service messages are fixed; domain kinds use the error's own message
ERROR_MAPPINGS: Dict[ErrorKind, ErrorMapping] = {
    ErrorKind.VALIDATION: ErrorMapping(400, "VALIDATION_ERROR", None),
    ErrorKind.NOT_FOUND: ErrorMapping(404, "NOT_FOUND", None),
    ErrorKind.CONFLICT: ErrorMapping(409, "CONFLICT", None),
    ErrorKind.UNAUTHORIZED: ErrorMapping(401, "UNAUTHORIZED", None),
    ErrorKind.FORBIDDEN: ErrorMapping(403, "FORBIDDEN", None),
    ErrorKind.BUSINESS_LOGIC: ErrorMapping(400, "BUSINESS_LOGIC_ERROR", None),
    ErrorKind.STORAGE_CONDITIONAL_CHECK: ErrorMapping(
        409, "CONFLICT", "Resource has been modified by another request"
    ),
    ErrorKind.STORAGE_RESOURCE_NOT_FOUND: ErrorMapping(404, "NOT_FOUND", "Resource not found"),
    ErrorKind.STORAGE_THROTTLED: ErrorMapping(
        503, "SERVICE_UNAVAILABLE", "Service temporarily unavailable. Please try again later."
    ),
    ErrorKind.STORAGE_PAYLOAD_TOO_LARGE: ErrorMapping(
        413, "REQUEST_TOO_LARGE", "Request payload too large"
    ),
    ErrorKind.STORAGE_VALIDATION: ErrorMapping(
        400, "VALIDATION_ERROR", "Invalid request parameters"
    ),
    ErrorKind.STORAGE_ACCESS_DENIED: ErrorMapping(
        403, "FORBIDDEN", "Access denied to requested resource"
    ),
    ErrorKind.STORAGE_UNAVAILABLE: ErrorMapping(
        503, "SERVICE_UNAVAILABLE", "Service temporarily unavailable"
    ),
    ErrorKind.MALFORMED_BODY: ErrorMapping(400, "VALIDATION_ERROR", "Invalid JSON in request body"),
    ErrorKind.TIMEOUT: ErrorMapping(408, "REQUEST_TIMEOUT", "Request timeout"),
    ErrorKind.UNCLASSIFIED: ErrorMapping(500, "INTERNAL_SERVER_ERROR", "Internal server error"),
}

# AWS error codes surfaced by the storage layer (DynamoDB and friends)
STORAGE_ERROR_CODES: Dict[str, ErrorKind] = {
    "ConditionalCheckFailedException": ErrorKind.STORAGE_CONDITIONAL_CHECK,
    "ResourceNotFoundException": ErrorKind.STORAGE_RESOURCE_NOT_FOUND,
    "ProvisionedThroughputExceededException": ErrorKind.STORAGE_THROTTLED,
    "ThrottlingException": ErrorKind.STORAGE_THROTTLED,
    "ItemCollectionSizeLimitExceededException": ErrorKind.STORAGE_PAYLOAD_TOO_LARGE,
    "ValidationException": ErrorKind.STORAGE_VALIDATION,
    "AccessDeniedException": ErrorKind.STORAGE_ACCESS_DENIED,
    "InternalServerError": ErrorKind.STORAGE_UNAVAILABLE,
    "ServiceUnavailableException": ErrorKind.STORAGE_UNAVAILABLE,
}

_TIMEOUT_ERRORS = (
    TimeoutError,
    requests.Timeout,
    ConnectTimeoutError,
    ReadTimeoutError,
)


@dataclass(frozen=True)
class ErrorRecord:
    """A classified failure, ready to be logged and rendered."""

    kind: ErrorKind
    message: str
    details: Any = None
    correlation_id: str = ""


@dataclass(frozen=True)
class MappedError:
    status_code: int
    code: str
    message: str
    details: Any = None


def client_error_code(error: ClientError) -> str:
    return error.response.get("Error", {}).get("Code", "")


def classify_foreign_error(error: BaseException) -> ErrorKind:
    """
    Adapt an exception raised outside the domain error family to a kind.

    Args:
        error: Exception from botocore, requests, json or anywhere else

    Returns:
        The matching ErrorKind, ``UNCLASSIFIED`` when nothing matches
    """
    if isinstance(error, ClientError):
        return STORAGE_ERROR_CODES.get(client_error_code(error), ErrorKind.UNCLASSIFIED)
    if isinstance(error, json.JSONDecodeError):
        return ErrorKind.MALFORMED_BODY
    if isinstance(error, _TIMEOUT_ERRORS):
        return ErrorKind.TIMEOUT
    return ErrorKind.UNCLASSIFIED


def describe_error(error: BaseException) -> str:
    """``str(error)``, or the exception type name when that itself fails."""
    try:
        return str(error)
    except Exception:
        return type(error).__name__


def is_storage_error(error: BaseException) -> bool:
    return isinstance(error, ClientError) and client_error_code(error) in STORAGE_ERROR_CODES


def sanitize_headers(headers: Optional[Mapping[str, Any]]) -> Dict[str, Any]:
    """Copy headers with credentials redacted, for logging."""
    if not headers:
        return {}
    return {
        key: "[REDACTED]" if key.lower() in SENSITIVE_HEADERS else value
        for key, value in headers.items()
    }


class ErrorMapper:
    """
    Maps any exception to a status code, stable error code and message.

    The mapper never raises: a failure while classifying falls back to the
    500 ``INTERNAL_SERVER_ERROR`` mapping, and a failure while logging is
    itself logged and skipped.
    """

    def __init__(self, production: Optional[bool] = None):
        """
        Initialize error mapper.

        Args:
            production: Hide stack traces and exception types; defaults to
                the configured stage
        """
        self._production = production

    @property
    def production(self) -> bool:
        if self._production is not None:
            return self._production
        try:
            return get_config().is_production
        except ValueError as e:
            # Misconfigured stage: hide internals
            logger.warning(f"Could not load configuration: {str(e)}, assuming production")
            return True

    def classify(self, error: BaseException, correlation_id: Optional[str] = None) -> ErrorRecord:
        correlation_id = correlation_id or generate_correlation_id()
        try:
            return self._classify(error, correlation_id)
        except Exception:
            logger.exception(
                "Error classification failed",
                extra={"correlation_id": correlation_id},
            )
            return ErrorRecord(
                ErrorKind.UNCLASSIFIED,
                ERROR_MAPPINGS[ErrorKind.UNCLASSIFIED].message,
                None,
                correlation_id,
            )

    def _classify(self, error: BaseException, correlation_id: str) -> ErrorRecord:
        if isinstance(error, AppError):
            kind = error.kind
            message = error.message
            details = error.details
        else:
            kind = classify_foreign_error(error)
            message = ERROR_MAPPINGS[kind].message
            details = None
            if kind is ErrorKind.STORAGE_VALIDATION:
                details = {"dynamoDbError": describe_error(error)}
            elif kind is ErrorKind.MALFORMED_BODY:
                details = {"parseError": describe_error(error)}

        if kind is ErrorKind.UNCLASSIFIED and not self.production:
            details = {
                "stack": "".join(
                    traceback.format_exception(type(error), error, error.__traceback__)
                ),
                "errorType": type(error).__name__,
            }
        elif kind is ErrorKind.UNCLASSIFIED:
            message = ERROR_MAPPINGS[kind].message
            details = None

        return ErrorRecord(kind, message or ERROR_MAPPINGS[kind].message, details, correlation_id)

    def map(self, error: BaseException, correlation_id: Optional[str] = None) -> MappedError:
        record = self.classify(error, correlation_id)
        mapping = ERROR_MAPPINGS.get(record.kind, ERROR_MAPPINGS[ErrorKind.UNCLASSIFIED])
        return MappedError(mapping.status_code, mapping.code, record.message, record.details)

    def log(self, error: BaseException, record: ErrorRecord, context: Any = None) -> None:
        """Emit one structured line; stack traces only outside production."""
        fields = {
            "correlation_id": record.correlation_id,
            "error_kind": record.kind.value,
            "error_message": describe_error(error),
            "function_name": getattr(context, "function_name", None),
        }
        if self.production:
            logger.error("Lambda function error", extra=fields)
        else:
            logger.error("Lambda function error", extra=fields, exc_info=error)

    def to_response(
        self,
        error: BaseException,
        correlation_id: Optional[str] = None,
        context: Any = None
    ) -> Response:
        """
        Classify, log and render an error.

        Args:
            error: Exception to render
            correlation_id: Correlation id of the failing invocation
            context: Lambda context for log enrichment

        Returns:
            Error response envelope
        """
        correlation_id = correlation_id or getattr(context, "aws_request_id", None)
        record = self.classify(error, correlation_id)
        try:
            self.log(error, record, context)
        except Exception:
            logger.exception(
                "Error logging failed",
                extra={"correlation_id": record.correlation_id},
            )
        mapping = ERROR_MAPPINGS.get(record.kind, ERROR_MAPPINGS[ErrorKind.UNCLASSIFIED])
        try:
            return ResponseBuilder.error(
                record.message,
                mapping.status_code,
                mapping.code,
                record.details,
                record.correlation_id,
            )
        except Exception:
            # details that fail to serialize must not hide the error
            return ResponseBuilder.error(
                ERROR_MAPPINGS[ErrorKind.UNCLASSIFIED].message,
                500,
                "INTERNAL_SERVER_ERROR",
                None,
                record.correlation_id,
            )
