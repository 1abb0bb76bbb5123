"""
Shared constants for Lambda handlers and services.
"""
from config import get_config

HTTP_STATUS = {
    "OK": 200,
    "CREATED": 201,
    "NO_CONTENT": 204,
    "BAD_REQUEST": 400,
    "UNAUTHORIZED": 401,
    "FORBIDDEN": 403,
    "NOT_FOUND": 404,
    "REQUEST_TIMEOUT": 408,
    "CONFLICT": 409,
    "REQUEST_TOO_LARGE": 413,
    "TOO_MANY_REQUESTS": 429,
    "INTERNAL_SERVER_ERROR": 500,
    "SERVICE_UNAVAILABLE": 503,
}

ERROR_CODES = {
    "VALIDATION_ERROR": "VALIDATION_ERROR",
    "NOT_FOUND": "NOT_FOUND",
    "CONFLICT": "CONFLICT",
    "UNAUTHORIZED": "UNAUTHORIZED",
    "FORBIDDEN": "FORBIDDEN",
    "BUSINESS_LOGIC_ERROR": "BUSINESS_LOGIC_ERROR",
    "INTERNAL_SERVER_ERROR": "INTERNAL_SERVER_ERROR",
    "SERVICE_UNAVAILABLE": "SERVICE_UNAVAILABLE",
    "REQUEST_TOO_LARGE": "REQUEST_TOO_LARGE",
    "REQUEST_TIMEOUT": "REQUEST_TIMEOUT",
    "RATE_LIMIT_EXCEEDED": "RATE_LIMIT_EXCEEDED",
    "INVALID_JSON": "INVALID_JSON",
}

DEFAULT_CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Credentials": "true",
    "Access-Control-Allow-Headers": (
        "Content-Type,X-Amz-Date,Authorization,X-Api-Key,"
        "X-Amz-Security-Token,X-Correlation-ID"
    ),
    "Access-Control-Allow-Methods": "GET,POST,PUT,DELETE,OPTIONS",
}

# Preflight responses are cached by browsers for 24 hours
CORS_MAX_AGE_SECONDS = 86400

CORRELATION_ID_HEADER = "X-Correlation-ID"
REQUEST_ID_HEADER = "X-Request-ID"

PAGINATION = {
    "DEFAULT_LIMIT": 20,
    "MAX_LIMIT": 100,
    "DEFAULT_OFFSET": 0,
}

RATE_LIMIT = {
    "MAX_REQUESTS": 100,
    "WINDOW_SECONDS": 60,
}

TIMEOUTS = {
    "HTTP_REQUEST_SECONDS": 30,
    "PRESIGNED_URL_SECONDS": 3600,
}

SENSITIVE_HEADERS = ("authorization", "x-api-key", "cookie")


def get_table_name(table_name: str) -> str:
    """Prefix a DynamoDB table name with stage and service: ``dev.orders.sequence``."""
    config = get_config()
    return f"{config.stage}.{config.service_name}.{table_name}"


def get_s3_key(file_name: str) -> str:
    """Prefix an S3 key with stage and service: ``dev/orders/status.json``."""
    config = get_config()
    return f"{config.stage}/{config.service_name}/{file_name}"
