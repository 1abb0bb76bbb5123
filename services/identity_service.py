"""
STS service for the caller identity.
"""
from typing import Any, Dict, Optional

from botocore.exceptions import ClientError

from services.base import AWSService


class IdentityService(AWSService):
    service_name = "sts"

    def get(self) -> Optional[Dict[str, Any]]:
        """Caller identity (``Account``, ``Arn``, ``UserId``); None on failure."""
        try:
            return self.client.get_caller_identity()
        except ClientError as e:
            return self._handle_error(e, 'get', fallback=None)
