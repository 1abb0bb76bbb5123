"""
SQS service for queue messaging.
"""
import json
from typing import Any, Dict, List

from botocore.exceptions import ClientError

from logger_config import get_logger
from services.base import AWSService

logger = get_logger(__name__)


class MessageService(AWSService):
    service_name = "sqs"

    def send(self, queue_url: str, body: Any, **kwargs: Any) -> Dict[str, Any]:
        """
        Send a message.

        Args:
            queue_url: Target queue URL
            body: Message body; non-string bodies are sent as JSON
            **kwargs: Extra SendMessage parameters (DelaySeconds, ...)

        Returns:
            Raw SendMessage response with ``MessageId``
        """
        if not isinstance(body, str):
            body = json.dumps(body)
        try:
            return self.client.send_message(QueueUrl=queue_url, MessageBody=body, **kwargs)
        except ClientError as e:
            return self._handle_error(e, 'send')

    def receive(self, queue_url: str, max_messages: int = 1, **kwargs: Any) -> List[Dict[str, Any]]:
        """Receive up to ``max_messages`` messages; ``[]`` when the queue is empty."""
        try:
            response = self.client.receive_message(
                QueueUrl=queue_url, MaxNumberOfMessages=max_messages, **kwargs
            )
            return response.get('Messages', [])
        except ClientError as e:
            return self._handle_error(e, 'receive')

    def delete_message(self, queue_url: str, receipt_handle: str) -> Dict[str, Any]:
        try:
            return self.client.delete_message(QueueUrl=queue_url, ReceiptHandle=receipt_handle)
        except ClientError as e:
            return self._handle_error(e, 'delete_message')

    def receive_and_delete(self, queue_url: str, max_messages: int = 1, **kwargs: Any) -> List[Dict[str, Any]]:
        """
        Receive messages and delete every one of them from the queue.

        Returns:
            The received messages, ``[]`` when the queue is empty

        Raises:
            ClientError: If receiving or deleting fails
        """
        messages = self.receive(queue_url, max_messages, **kwargs)
        for message in messages:
            self.delete_message(queue_url, message['ReceiptHandle'])
        if messages:
            logger.info(f'Received and deleted {len(messages)} messages from {queue_url}')
        return messages
