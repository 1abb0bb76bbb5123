"""
WhatsApp Cloud API service for template messages.
"""
from typing import Any, Dict, List, Optional

import requests

from config import get_config
from logger_config import get_logger
from utils.constants import TIMEOUTS

logger = get_logger(__name__)


class WhatsAppService:
    """Service for WhatsApp Cloud API operations."""

    def __init__(
        self,
        phone_number_id: str,
        access_token: str,
        api_endpoint: Optional[str] = None,
        language_code: str = 'en_GB'
    ) -> None:
        """
        Initialize WhatsApp service.

        Args:
            phone_number_id: Sending phone number id
            access_token: Bearer token of the WhatsApp business app
            api_endpoint: Graph API base URL; defaults to WHATSAPP_API_ENDPOINT
            language_code: Template language
        """
        self.phone_number_id = phone_number_id
        self.access_token = access_token
        self.api_endpoint = (api_endpoint or get_config().whatsapp_api_endpoint).rstrip('/')
        self.language_code = language_code

    @classmethod
    def from_credentials(cls, credentials: Dict[str, str], **kwargs: Any) -> "WhatsAppService":
        """Build from a secret shaped ``{"phoneNumberId": ..., "accessToken": ...}``."""
        return cls(credentials['phoneNumberId'], credentials['accessToken'], **kwargs)

    @property
    def messages_url(self) -> str:
        return f"{self.api_endpoint}/{self.phone_number_id}/messages"

    def send(
        self,
        to: str,
        template_name: str,
        components: Optional[List[Dict[str, Any]]] = None
    ) -> Dict[str, Any]:
        """
        Send a template message.

        Args:
            to: Recipient phone number
            template_name: Approved template name
            components: Template components (header/body parameters)

        Returns:
            API response payload

        Raises:
            requests.RequestException: If the API request fails
        """
        payload = {
            'messaging_product': 'whatsapp',
            'to': to,
            'type': 'template',
            'template': {
                'name': template_name,
                'language': {'code': self.language_code},
                'components': components or [],
            },
        }
        try:
            response = requests.post(
                self.messages_url,
                json=payload,
                headers={'Authorization': f'Bearer {self.access_token}'},
                timeout=TIMEOUTS["HTTP_REQUEST_SECONDS"],
            )
            response.raise_for_status()
        except requests.RequestException as e:
            logger.error(f'Failed to send WhatsApp template {template_name}: {str(e)}')
            raise

        logger.info(f'Sent WhatsApp template {template_name}')
        return response.json()
