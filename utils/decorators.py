"""
Handler decorators for error handling, logging, and response formatting.
"""
import functools
from typing import Any, Callable, Dict, Optional

from logger_config import get_logger
from utils.errors import ErrorMapper
from utils.middleware import ErrorHandlingMiddleware, with_middleware
from utils.request import RequestEvent

logger = get_logger(__name__)


def api_handler(*steps: Any, mapper: Optional[ErrorMapper] = None) -> Callable:
    """
    Decorator for API Gateway Lambda handlers.

    Provides:
    - Request parsing into a ``RequestEvent`` with a correlation id
    - The given middleware steps, run in order
    - Error handling with structured error responses, outermost
    - Response formatting into the Lambda proxy dictionary

    Args:
        *steps: Middleware steps to run before the handler
        mapper: Error mapper for uncaught exceptions

    Returns:
        Decorator producing ``handler(event, context) -> dict``
    """
    def decorator(
        func: Callable[[RequestEvent, Any], Any]
    ) -> Callable[[Any, Any], Dict[str, Any]]:
        pipeline = with_middleware(func, ErrorHandlingMiddleware(mapper), *steps)

        @functools.wraps(func)
        def wrapper(event: Any, context: Any) -> Dict[str, Any]:
            response = pipeline(event, context)
            logger.debug(
                f"Handler {func.__name__} responded with {response.status_code}",
                extra={"handler": func.__name__, "status_code": response.status_code},
            )
            return response.to_dict()

        return wrapper

    return decorator
