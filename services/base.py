"""
Shared plumbing for AWS service wrappers.
"""
from typing import Any, Optional

import boto3
from botocore.exceptions import ClientError

from config import get_config
from logger_config import get_logger

logger = get_logger(__name__)

_MISSING = object()


class AWSService:
    """
    Base class holding a lazily created boto3 client.

    Subclasses set ``service_name`` to the boto3 service identifier.
    """

    service_name: str = ""

    def __init__(self, region_name: Optional[str] = None, client: Any = None) -> None:
        """
        Initialize AWS service.

        Args:
            region_name: AWS region; defaults to the configured region
            client: Pre-built boto3 client, mainly for tests
        """
        self._region_name = region_name
        self._client = client

    @property
    def region_name(self) -> str:
        if self._region_name is None:
            self._region_name = get_config().aws_region
        return self._region_name

    @property
    def client(self):
        """Lazy initialization of the boto3 client."""
        if self._client is None:
            self._client = boto3.client(self.service_name, region_name=self.region_name)
        return self._client

    def _handle_error(self, error: Exception, method: str, fallback: Any = _MISSING) -> Any:
        """
        Log a failed call, then return ``fallback`` or re-raise.

        Args:
            error: Exception raised by the AWS call
            method: Name of the failing wrapper method
            fallback: Value returned instead of raising, when given

        Raises:
            Exception: The original error when no fallback is given
        """
        fields = {"service_class": type(self).__name__, "method": method}
        if isinstance(error, ClientError):
            metadata = error.response.get("ResponseMetadata", {})
            fields.update({
                "error_code": error.response.get("Error", {}).get("Code"),
                "status_code": metadata.get("HTTPStatusCode"),
                "request_id": metadata.get("RequestId"),
            })
        logger.error(f"{type(self).__name__}.{method} failed: {str(error)}", extra=fields)

        if fallback is not _MISSING:
            return fallback
        raise error
