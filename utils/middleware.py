"""
Middleware pipeline for Lambda proxy handlers.

A middleware step is called as ``step(event, context, next_step)`` and
returns a ``Response``. Steps run strictly in declared order, each at most
once. A step that returns without calling ``next_step`` short-circuits the
chain.

Most steps only need to decide between letting the request through and
answering it directly; they subclass ``GateMiddleware`` and return either
``Continue`` (optionally carrying annotations to merge into the event) or
``Respond``.
"""
import json
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Mapping, Optional, Sequence, Union

from config import get_config
from logger_config import get_logger
from utils.constants import CORS_MAX_AGE_SECONDS, DEFAULT_CORS_HEADERS, ERROR_CODES, HTTP_STATUS
from utils.errors import ErrorMapper, describe_error, sanitize_headers
from utils.exceptions import MiddlewareChainExhausted, MiddlewareError
from utils.rate_limit import RateLimiter
from utils.request import RequestEvent
from utils.response import Response, ResponseBuilder, merge_headers
from utils.validation import ValidationResult

logger = get_logger(__name__)

NextStep = Callable[[RequestEvent, Any], Response]
Handler = Callable[[RequestEvent, Any], Response]


@dataclass(frozen=True)
class Continue:
    """Let the request through, merging ``annotations`` into the event."""

    annotations: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class Respond:
    """Answer the request now; later steps and the handler do not run."""

    response: Response


StepResult = Union[Continue, Respond]


class Middleware:
    """A step in the chain: ``(event, context, next_step) -> Response``."""

    def __call__(self, event: RequestEvent, context: Any, next_step: NextStep) -> Response:
        raise NotImplementedError


class GateMiddleware(Middleware):
    """Middleware that either continues or responds, decided by ``process``."""

    def process(self, event: RequestEvent, context: Any) -> StepResult:
        raise NotImplementedError

    def __call__(self, event: RequestEvent, context: Any, next_step: NextStep) -> Response:
        result = self.process(event, context)
        if isinstance(result, Respond):
            return result.response
        if not isinstance(result, Continue):
            raise MiddlewareError(
                f"{type(self).__name__}.process must return Continue or Respond, "
                f"got {type(result).__name__}"
            )
        if result.annotations:
            event.annotations.update(result.annotations)
        return next_step(event, context)


def compose(steps: Sequence[Callable[[RequestEvent, Any, NextStep], Response]]) -> Handler:
    """
    Compose steps into a single handler.

    ``steps[0]`` is invoked with a ``next_step`` bound to ``steps[1]`` and so
    on. The last step calling ``next_step`` is a wiring bug and raises
    ``MiddlewareChainExhausted``; so does any step calling ``next_step``
    twice.
    """
    steps = list(steps)

    def handler(event: RequestEvent, context: Any) -> Response:
        def dispatch(index: int) -> NextStep:
            called = False

            def next_step(evt: RequestEvent, ctx: Any) -> Response:
                nonlocal called
                if called:
                    raise MiddlewareError(
                        f"next_step called more than once by middleware #{index - 1}"
                    )
                called = True
                if index >= len(steps):
                    raise MiddlewareChainExhausted("No more middleware to execute")
                return steps[index](evt, ctx, dispatch(index + 1))

            return next_step

        return dispatch(0)(event, context)

    return handler


class TerminalHandler(Middleware):
    """Last step of a chain: calls the business handler and never ``next_step``."""

    def __init__(self, handler: Callable[[RequestEvent, Any], Any]):
        self.handler = handler

    def __call__(self, event: RequestEvent, context: Any, next_step: NextStep) -> Response:
        result = self.handler(event, context)
        if isinstance(result, Response):
            return result
        return ResponseBuilder.success(result, correlation_id=event.correlation_id)


def with_middleware(
    handler: Callable[[RequestEvent, Any], Any],
    *steps: Callable[[RequestEvent, Any, NextStep], Response]
) -> Callable[[Union[RequestEvent, Mapping[str, Any]], Any], Response]:
    """
    Wrap a business handler with middleware steps.

    The returned callable accepts either a ``RequestEvent`` or a raw Lambda
    proxy event dictionary. The handler may return a ``Response`` or plain
    data, which is wrapped in a 200 success envelope.
    """
    chain = compose([*steps, TerminalHandler(handler)])

    def wrapped(event: Union[RequestEvent, Mapping[str, Any]], context: Any) -> Response:
        if not isinstance(event, RequestEvent):
            event = RequestEvent.from_lambda(event, context)
        return chain(event, context)

    wrapped.__name__ = getattr(handler, "__name__", "wrapped")
    wrapped.__doc__ = getattr(handler, "__doc__", None)
    return wrapped


def add_cors_headers(response: Response, custom_headers: Optional[Mapping[str, Any]] = None) -> Response:
    """Return a copy of ``response`` with CORS defaults; its own headers win."""
    return Response(
        status_code=response.status_code,
        headers=merge_headers(DEFAULT_CORS_HEADERS, custom_headers, response.headers),
        body=response.body,
    )


class CorsMiddleware(GateMiddleware):
    """Answer preflight requests directly."""

    def __init__(self, max_age: int = CORS_MAX_AGE_SECONDS):
        self.max_age = max_age

    def process(self, event: RequestEvent, context: Any) -> StepResult:
        if event.method != "OPTIONS":
            return Continue()
        return Respond(Response(
            status_code=HTTP_STATUS["OK"],
            headers=merge_headers(
                ResponseBuilder.standard_headers(event.correlation_id, content_type=False),
                {"Access-Control-Max-Age": self.max_age},
            ),
            body="",
        ))


class JsonBodyParser(GateMiddleware):
    """Decode the raw body into the ``parsed_body`` annotation."""

    def process(self, event: RequestEvent, context: Any) -> StepResult:
        if not event.body:
            return Continue()
        try:
            parsed = json.loads(event.body)
        except json.JSONDecodeError:
            logger.warning(
                "Invalid JSON in request body",
                extra={
                    "correlation_id": event.correlation_id,
                    "body_preview": event.body[:200],
                },
            )
            return Respond(ResponseBuilder.error(
                "Invalid JSON in request body",
                HTTP_STATUS["BAD_REQUEST"],
                ERROR_CODES["INVALID_JSON"],
                correlation_id=event.correlation_id,
            ))
        return Continue({"parsed_body": parsed})


class ValidationMiddleware(GateMiddleware):
    """Validate body, path and query parameters into ``validated_data``."""

    def __init__(
        self,
        validator: Callable[[Any, Dict[str, str], Dict[str, str]], ValidationResult]
    ):
        """
        Initialize validation middleware.

        Args:
            validator: Called as ``validator(body, path_parameters,
                query_parameters)``; ``body`` is the parsed body when a parser
                ran earlier, the raw body otherwise
        """
        self.validator = validator

    def process(self, event: RequestEvent, context: Any) -> StepResult:
        body = event.parsed_body if "parsed_body" in event.annotations else event.body
        validation = self.validator(body, event.path_parameters, event.query_parameters)
        if not validation.is_valid:
            return Respond(ResponseBuilder.error(
                "Validation failed",
                HTTP_STATUS["BAD_REQUEST"],
                ERROR_CODES["VALIDATION_ERROR"],
                validation.errors,
                event.correlation_id,
            ))
        return Continue({"validated_data": validation.value})


class _ParameterValidation(GateMiddleware):
    message = "Invalid parameters"
    annotation = ""

    def __init__(self, validators: Mapping[str, Callable[[Any], ValidationResult]]):
        """
        Args:
            validators: Parameter name to validator; every parameter is
                checked and all failures are reported together
        """
        self.validators = dict(validators)

    def parameters(self, event: RequestEvent) -> Mapping[str, str]:
        raise NotImplementedError

    def process(self, event: RequestEvent, context: Any) -> StepResult:
        parameters = self.parameters(event)
        errors: Dict[str, Any] = {}
        validated: Dict[str, Any] = {}

        for name, validator in self.validators.items():
            result = validator(parameters.get(name))
            if not result.is_valid:
                errors[name] = result.errors
            else:
                validated[name] = result.value

        if errors:
            return Respond(ResponseBuilder.error(
                self.message,
                HTTP_STATUS["BAD_REQUEST"],
                ERROR_CODES["VALIDATION_ERROR"],
                errors,
                event.correlation_id,
            ))
        return Continue({self.annotation: validated})


class PathParameterValidation(_ParameterValidation):
    message = "Invalid path parameters"
    annotation = "validated_path"

    def parameters(self, event: RequestEvent) -> Mapping[str, str]:
        return event.path_parameters


class QueryParameterValidation(_ParameterValidation):
    message = "Invalid query parameters"
    annotation = "validated_query"

    def parameters(self, event: RequestEvent) -> Mapping[str, str]:
        return event.query_parameters


class RequestLoggingMiddleware(Middleware):
    """Log the request, then its duration and outcome."""

    def __init__(self, request_logger=None):
        self.logger = request_logger or logger

    def __call__(self, event: RequestEvent, context: Any, next_step: NextStep) -> Response:
        start_time = time.monotonic()

        self.logger.info(
            "Incoming request",
            extra={
                "correlation_id": event.correlation_id,
                "http_method": event.method,
                "path": event.path,
                "path_parameters": event.path_parameters,
                "query_parameters": event.query_parameters,
                "headers": sanitize_headers(event.headers),
                "source_ip": event.source_ip,
                "body_size": len(event.body) if event.body else 0,
                "function_name": getattr(context, "function_name", None),
            },
        )

        try:
            response = next_step(event, context)
        except Exception as e:
            duration_ms = int((time.monotonic() - start_time) * 1000)
            self.logger.error(
                "Request failed",
                extra={
                    "correlation_id": event.correlation_id,
                    "duration_ms": duration_ms,
                    "error_type": type(e).__name__,
                    "error_message": describe_error(e),
                    "success": False,
                },
            )
            raise

        duration_ms = int((time.monotonic() - start_time) * 1000)
        self.logger.info(
            "Request completed",
            extra={
                "correlation_id": event.correlation_id,
                "status_code": response.status_code,
                "duration_ms": duration_ms,
                "response_size": len(response.body) if response.body else 0,
                "success": response.status_code < 400,
            },
        )
        return response


class ErrorHandlingMiddleware(Middleware):
    """Convert any exception raised further down into an error response."""

    def __init__(self, mapper: Optional[ErrorMapper] = None):
        self.mapper = mapper or ErrorMapper()

    def __call__(self, event: RequestEvent, context: Any, next_step: NextStep) -> Response:
        try:
            return next_step(event, context)
        except MiddlewareError:
            # Wiring bugs surface to the caller untouched
            raise
        except Exception as e:
            return self.mapper.to_response(e, event.correlation_id, context)


def source_ip_identity(event: RequestEvent) -> str:
    return event.source_ip or "unknown"


class RateLimitingMiddleware(GateMiddleware):
    """Refuse callers that exceeded their request budget with a 429."""

    def __init__(
        self,
        limiter: Optional[RateLimiter] = None,
        identity_resolver: Callable[[RequestEvent], str] = source_ip_identity
    ):
        """
        Initialize rate limiting middleware.

        Args:
            limiter: Shared limiter; one with the configured budget is
                created when omitted
            identity_resolver: Maps a request to the caller identity
        """
        if limiter is None:
            config = get_config()
            limiter = RateLimiter(config.rate_limit_max_requests, config.rate_limit_window_seconds)
        self.limiter = limiter
        self.identity_resolver = identity_resolver

    def process(self, event: RequestEvent, context: Any) -> StepResult:
        identity = self.identity_resolver(event)
        decision = self.limiter.acquire(identity)
        if decision.allowed:
            return Continue()

        logger.warning(
            "Rate limit exceeded",
            extra={"correlation_id": event.correlation_id, "identity": identity},
        )
        return Respond(ResponseBuilder.error(
            "Too many requests",
            HTTP_STATUS["TOO_MANY_REQUESTS"],
            ERROR_CODES["RATE_LIMIT_EXCEEDED"],
            correlation_id=event.correlation_id,
            extra_headers={"Retry-After": decision.retry_after},
        ))


class AuthenticationMiddleware(GateMiddleware):
    """Require a bearer token and store the resolved identity as ``user``."""

    scheme = "bearer"

    def __init__(self, validator: Callable[[str], ValidationResult]):
        """
        Initialize authentication middleware.

        Args:
            validator: Called with the bearer token; a valid result's value
                is the authenticated user
        """
        self.validator = validator

    def _unauthorized(self, message: str, event: RequestEvent) -> Respond:
        return Respond(ResponseBuilder.error(
            message,
            HTTP_STATUS["UNAUTHORIZED"],
            ERROR_CODES["UNAUTHORIZED"],
            correlation_id=event.correlation_id,
        ))

    def process(self, event: RequestEvent, context: Any) -> StepResult:
        auth_header = event.headers.get("Authorization")
        if not auth_header:
            return self._unauthorized("Authorization header required", event)

        scheme, _, token = auth_header.strip().partition(" ")
        if scheme.lower() != self.scheme or not token.strip():
            return self._unauthorized("Invalid authorization token", event)

        validation = self.validator(token.strip())
        if not validation.is_valid:
            return self._unauthorized("Invalid authorization token", event)

        return Continue({"user": validation.value})
