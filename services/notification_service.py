"""
SNS service for notifications.
"""
from typing import Any, Dict, Optional

from botocore.exceptions import ClientError

from services.base import AWSService


class NotificationService(AWSService):
    service_name = "sns"

    def publish(
        self,
        message: str,
        topic_arn: Optional[str] = None,
        subject: Optional[str] = None,
        **kwargs: Any
    ) -> Dict[str, Any]:
        """
        Publish a message to a topic, or to a phone number via ``PhoneNumber``.

        Returns:
            Raw Publish response with ``MessageId``
        """
        params: Dict[str, Any] = {'Message': message, **kwargs}
        if topic_arn:
            params['TopicArn'] = topic_arn
        if subject:
            params['Subject'] = subject
        try:
            return self.client.publish(**params)
        except ClientError as e:
            return self._handle_error(e, 'publish')

    def subscribe(self, topic_arn: str, protocol: str, endpoint: str, **kwargs: Any) -> Dict[str, Any]:
        try:
            return self.client.subscribe(
                TopicArn=topic_arn, Protocol=protocol, Endpoint=endpoint, **kwargs
            )
        except ClientError as e:
            return self._handle_error(e, 'subscribe')
