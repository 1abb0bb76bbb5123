"""
Request event passed through the middleware pipeline.
"""
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, Mapping, Optional

from requests.structures import CaseInsensitiveDict

from utils.constants import CORRELATION_ID_HEADER, REQUEST_ID_HEADER
from utils.exceptions import AnnotationConflictError
from utils.response import generate_correlation_id, to_json


class Annotations(Mapping):
    """
    Append-only bag of values derived by middleware.

    A key can be set once per invocation; later steps read it but cannot
    replace it.
    """

    def __init__(self) -> None:
        self._values: Dict[str, Any] = {}

    def set(self, key: str, value: Any) -> None:
        if key in self._values:
            raise AnnotationConflictError(key)
        self._values[key] = value

    def update(self, values: Mapping[str, Any]) -> None:
        for key in values:
            if key in self._values:
                raise AnnotationConflictError(key)
        self._values.update(values)

    def __getitem__(self, key: str) -> Any:
        return self._values[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __repr__(self) -> str:
        return f"Annotations({self._values!r})"


@dataclass
class RequestEvent:
    """One inbound invocation, owned by the pipeline until a response is produced."""

    method: str = "GET"
    path: str = "/"
    path_parameters: Dict[str, str] = field(default_factory=dict)
    query_parameters: Dict[str, str] = field(default_factory=dict)
    headers: CaseInsensitiveDict = field(default_factory=CaseInsensitiveDict)
    body: Optional[str] = None
    source_ip: Optional[str] = None
    correlation_id: str = field(default_factory=generate_correlation_id)
    raw: Dict[str, Any] = field(default_factory=dict)
    annotations: Annotations = field(default_factory=Annotations)

    def __post_init__(self) -> None:
        if not isinstance(self.headers, CaseInsensitiveDict):
            self.headers = CaseInsensitiveDict(self.headers or {})

    @property
    def parsed_body(self) -> Any:
        return self.annotations.get("parsed_body")

    @property
    def validated_data(self) -> Any:
        return self.annotations.get("validated_data")

    @property
    def validated_query(self) -> Optional[Dict[str, Any]]:
        return self.annotations.get("validated_query")

    @property
    def user(self) -> Any:
        return self.annotations.get("user")

    @classmethod
    def from_lambda(cls, event: Mapping[str, Any], context: Any = None) -> "RequestEvent":
        """
        Build a request event from an API Gateway proxy event.

        Args:
            event: Lambda event dictionary (REST or HTTP API payload)
            context: Lambda context, used as a correlation id fallback

        Returns:
            RequestEvent
        """
        event = event or {}
        request_context = event.get("requestContext") or {}
        http_context = request_context.get("http") or {}
        identity = request_context.get("identity") or {}

        headers = CaseInsensitiveDict(event.get("headers") or {})
        correlation_id = (
            headers.get(CORRELATION_ID_HEADER)
            or headers.get(REQUEST_ID_HEADER)
            or getattr(context, "aws_request_id", None)
            or generate_correlation_id()
        )

        body = event.get("body")
        if body is not None and not isinstance(body, str):
            # Direct invocations may hand over an already decoded payload
            body = to_json(body)

        return cls(
            method=(event.get("httpMethod") or http_context.get("method") or "GET").upper(),
            path=event.get("path") or event.get("rawPath") or "/",
            path_parameters=dict(event.get("pathParameters") or {}),
            query_parameters=dict(event.get("queryStringParameters") or {}),
            headers=headers,
            body=body,
            source_ip=identity.get("sourceIp") or http_context.get("sourceIp"),
            correlation_id=correlation_id,
            raw=dict(event),
        )
