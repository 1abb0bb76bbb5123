"""
Pinpoint service for SMS delivery.
"""
from typing import Any, Dict, Optional

from botocore.exceptions import ClientError

from logger_config import get_logger
from services.base import AWSService

logger = get_logger(__name__)


class ChannelService(AWSService):
    """Service for sending SMS through a Pinpoint application."""

    service_name = "pinpoint"

    DEFAULT_SMS_CONFIG = {
        'application_id': None,
        'origination_number': None,
        'message_type': 'TRANSACTIONAL',
        'registered_keyword': None,
        'sender_id': None,
    }

    def __init__(
        self,
        region_name: Optional[str] = None,
        client: Any = None,
        **sms_config: Any
    ) -> None:
        """
        Initialize channel service.

        Args:
            region_name: AWS region
            client: Pre-built Pinpoint client
            **sms_config: Defaults for send_sms (application_id,
                origination_number, message_type, registered_keyword, sender_id)
        """
        super().__init__(region_name, client)
        self.sms_config = {**self.DEFAULT_SMS_CONFIG}
        self.update_default_config(**sms_config)

    def update_default_config(self, **sms_config: Any) -> None:
        unknown = set(sms_config) - set(self.DEFAULT_SMS_CONFIG)
        if unknown:
            raise ValueError(f"Unknown SMS settings: {', '.join(sorted(unknown))}")
        self.sms_config.update(sms_config)

    def send_sms(self, destination_number: str, message: str, **overrides: Any) -> Dict[str, Any]:
        """
        Send one SMS.

        Args:
            destination_number: E.164 phone number
            message: Message body
            **overrides: Per-call replacements for the default SMS settings

        Returns:
            Raw SendMessages response

        Raises:
            ValueError: If no application id is configured
            ClientError: If Pinpoint rejects the request
        """
        settings = {**self.sms_config, **overrides}
        if not settings['application_id']:
            raise ValueError("A Pinpoint application_id is required to send SMS")

        sms_message = {'Body': message, 'MessageType': settings['message_type']}
        if settings['origination_number']:
            sms_message['OriginationNumber'] = settings['origination_number']
        if settings['registered_keyword']:
            sms_message['Keyword'] = settings['registered_keyword']
        if settings['sender_id']:
            sms_message['SenderId'] = settings['sender_id']

        try:
            response = self.client.send_messages(
                ApplicationId=settings['application_id'],
                MessageRequest={
                    'Addresses': {destination_number: {'ChannelType': 'SMS'}},
                    'MessageConfiguration': {'SMSMessage': sms_message},
                },
            )
        except ClientError as e:
            return self._handle_error(e, 'send_sms')

        result = response['MessageResponse']['Result'].get(destination_number, {})
        logger.info(f"Message sent! {result.get('StatusMessage')}")
        return response
