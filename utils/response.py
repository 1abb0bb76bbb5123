"""
HTTP response envelope with CORS headers for Lambda proxy integrations.
"""
import json
import time
import uuid
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Any, Dict, List, Mapping, Optional

from requests.structures import CaseInsensitiveDict

from utils.constants import (
    CORRELATION_ID_HEADER,
    DEFAULT_CORS_HEADERS,
    ERROR_CODES,
    REQUEST_ID_HEADER,
)


def _json_default(o):
    if isinstance(o, Decimal):
        return int(o) if o % 1 == 0 else float(o)
    if isinstance(o, (datetime, date)):
        return o.isoformat()
    if isinstance(o, set):
        return sorted(o)
    raise TypeError(f"Object of type {type(o).__name__} is not JSON serializable")


def to_json(data: Any) -> str:
    """Serialize response data, including DynamoDB ``Decimal`` values."""
    return json.dumps(data, default=_json_default)


def generate_correlation_id() -> str:
    """Generate an id unique per call: ``req_<epoch millis>_<random suffix>``."""
    return f"req_{int(time.time() * 1000)}_{uuid.uuid4().hex[:9]}"


def merge_headers(*header_maps: Optional[Mapping[str, Any]]) -> Dict[str, str]:
    """Merge header maps left to right; keys are unique case-insensitively."""
    merged = CaseInsensitiveDict()
    for headers in header_maps:
        for key, value in (headers or {}).items():
            merged[key] = str(value)
    return dict(merged.items())


@dataclass(frozen=True)
class Response:
    """Response envelope returned once per invocation."""

    status_code: int
    headers: Dict[str, str] = field(default_factory=dict)
    body: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Lambda proxy integration shape."""
        result: Dict[str, Any] = {
            "statusCode": self.status_code,
            "headers": dict(self.headers),
        }
        if self.body is not None:
            result["body"] = self.body
        return result

    def header(self, name: str) -> Optional[str]:
        """Case-insensitive header lookup."""
        return CaseInsensitiveDict(self.headers).get(name)

    def json(self) -> Any:
        return json.loads(self.body) if self.body else None


class ResponseBuilder:
    """Builds success and error envelopes with the standard headers."""

    generate_correlation_id = staticmethod(generate_correlation_id)

    @staticmethod
    def standard_headers(correlation_id: str, content_type: bool = True) -> Dict[str, str]:
        return merge_headers(
            {"Content-Type": "application/json"} if content_type else None,
            DEFAULT_CORS_HEADERS,
            {CORRELATION_ID_HEADER: correlation_id, REQUEST_ID_HEADER: correlation_id},
        )

    @classmethod
    def success(
        cls,
        data: Any,
        status_code: int = 200,
        correlation_id: Optional[str] = None,
        extra_headers: Optional[Mapping[str, Any]] = None
    ) -> Response:
        """
        Create a successful response.

        Args:
            data: Response data (serialized to JSON)
            status_code: HTTP status code
            correlation_id: Correlation id; generated when not supplied
            extra_headers: Headers overriding the standard ones

        Returns:
            Response envelope
        """
        request_id = correlation_id or generate_correlation_id()
        return Response(
            status_code=status_code,
            headers=merge_headers(cls.standard_headers(request_id), extra_headers),
            body=to_json(data),
        )

    @classmethod
    def error(
        cls,
        message: str,
        status_code: int = 500,
        code: Optional[str] = None,
        details: Any = None,
        correlation_id: Optional[str] = None,
        extra_headers: Optional[Mapping[str, Any]] = None
    ) -> Response:
        """
        Create an error response.

        The body is ``{error: {message, code?, details?}, requestId,
        correlationId, timestamp}`` where ``requestId`` equals
        ``correlationId``.
        """
        request_id = correlation_id or generate_correlation_id()

        error_body: Dict[str, Any] = {"message": message}
        if code is not None:
            error_body["code"] = code
        if details is not None:
            error_body["details"] = details

        payload = {
            "error": error_body,
            "requestId": request_id,
            "correlationId": request_id,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }
        return Response(
            status_code=status_code,
            headers=merge_headers(cls.standard_headers(request_id), extra_headers),
            body=to_json(payload),
        )

    @classmethod
    def validation_error(
        cls, message: str, details: Any = None, correlation_id: Optional[str] = None
    ) -> Response:
        return cls.error(message, 400, ERROR_CODES["VALIDATION_ERROR"], details, correlation_id)

    @classmethod
    def not_found(cls, resource: str, id: str, correlation_id: Optional[str] = None) -> Response:
        return cls.error(
            f"{resource} with ID '{id}' not found",
            404,
            ERROR_CODES["NOT_FOUND"],
            {"resource": resource, "id": id},
            correlation_id,
        )

    @classmethod
    def conflict(
        cls, message: str, details: Any = None, correlation_id: Optional[str] = None
    ) -> Response:
        return cls.error(message, 409, ERROR_CODES["CONFLICT"], details, correlation_id)

    @classmethod
    def unauthorized(
        cls, message: str = "Unauthorized", correlation_id: Optional[str] = None
    ) -> Response:
        return cls.error(message, 401, ERROR_CODES["UNAUTHORIZED"], None, correlation_id)

    @classmethod
    def forbidden(
        cls, message: str = "Forbidden", correlation_id: Optional[str] = None
    ) -> Response:
        return cls.error(message, 403, ERROR_CODES["FORBIDDEN"], None, correlation_id)

    @classmethod
    def created(cls, data: Any, correlation_id: Optional[str] = None) -> Response:
        return cls.success(data, 201, correlation_id)

    @classmethod
    def no_content(cls, correlation_id: Optional[str] = None) -> Response:
        """204 with no body and no Content-Type."""
        request_id = correlation_id or generate_correlation_id()
        return Response(
            status_code=204,
            headers=cls.standard_headers(request_id, content_type=False),
            body=None,
        )

    @classmethod
    def paginated(
        cls,
        items: List[Any],
        pagination: Optional[Mapping[str, Any]] = None,
        correlation_id: Optional[str] = None
    ) -> Response:
        """
        Wrap items with pagination metadata.

        ``count`` is computed from ``items``; a ``count`` key present in
        ``pagination`` overrides it.
        """
        data = {
            "items": items,
            "pagination": {"count": len(items), **dict(pagination or {})},
        }
        return cls.success(data, 200, correlation_id)
