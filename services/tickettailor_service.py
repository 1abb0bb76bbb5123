"""
Ticket Tailor API service.
"""
from typing import Any, Dict, Optional

import requests
from requests.auth import HTTPBasicAuth

from config import get_config
from logger_config import get_logger
from utils.constants import TIMEOUTS

logger = get_logger(__name__)


class TicketTailorService:
    """Service for Ticket Tailor API operations, authenticated with the API key."""

    DEFAULT_HEADERS = {
        'Accept': 'application/json',
    }

    def __init__(self, api_key: str, api_domain: Optional[str] = None) -> None:
        """
        Initialize Ticket Tailor service.

        Args:
            api_key: Ticket Tailor API key, sent as basic-auth username
            api_domain: API base URL; defaults to TICKET_TAILOR_API_DOMAIN
        """
        self.api_domain = (api_domain or get_config().ticket_tailor_api_domain).rstrip('/')
        self.auth = HTTPBasicAuth(api_key, '')
        self.headers = dict(self.DEFAULT_HEADERS)

    def _url(self, endpoint: str) -> str:
        return f"{self.api_domain}/{endpoint.lstrip('/')}"

    def _request(self, method: str, endpoint: str, **kwargs: Any) -> Any:
        try:
            response = requests.request(
                method,
                self._url(endpoint),
                auth=self.auth,
                headers=self.headers,
                timeout=TIMEOUTS["HTTP_REQUEST_SECONDS"],
                **kwargs,
            )
            response.raise_for_status()
        except requests.RequestException as e:
            logger.error(f'Ticket Tailor {method} {endpoint} failed: {str(e)}')
            raise
        return response.json()

    def get(self, endpoint: str, params: Optional[Dict[str, Any]] = None) -> Any:
        """
        GET an API resource.

        Args:
            endpoint: Path such as ``/v1/events``
            params: Query string parameters

        Returns:
            Decoded JSON payload

        Raises:
            requests.RequestException: If the API request fails
        """
        return self._request('GET', endpoint, params=params)

    def post(self, endpoint: str, data: Optional[Dict[str, Any]] = None) -> Any:
        """POST a JSON body to an API resource."""
        return self._request('POST', endpoint, json=data)
