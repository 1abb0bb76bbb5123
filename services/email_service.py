"""
SES service for templated email.
"""
from typing import Any, Dict, List

from botocore.exceptions import ClientError

from services.base import AWSService
from utils.response import to_json


class EmailService(AWSService):
    service_name = "ses"

    def send(
        self,
        source: str,
        to_addresses: List[str],
        template: str,
        template_data: Dict[str, Any],
        **kwargs: Any
    ) -> Dict[str, Any]:
        """
        Send an email rendered from a template stored in SES.

        Args:
            source: Sender address
            to_addresses: Recipient addresses
            template: SES template name
            template_data: Values substituted into the template
            **kwargs: Extra SendTemplatedEmail parameters (ReplyToAddresses, ...)

        Returns:
            Raw SendTemplatedEmail response with ``MessageId``

        Raises:
            ClientError: If SES rejects the message
        """
        try:
            return self.client.send_templated_email(
                Source=source,
                Destination={'ToAddresses': list(to_addresses)},
                Template=template,
                TemplateData=to_json(template_data),
                **kwargs,
            )
        except ClientError as e:
            return self._handle_error(e, 'send')
