"""
Secrets Manager service.
"""
import base64
import json
from typing import Any, Dict, Optional

from botocore.exceptions import ClientError

from logger_config import get_logger
from services.base import AWSService

logger = get_logger(__name__)


class SecretService(AWSService):
    service_name = "secretsmanager"

    def get_secret_value(self, secret_id: str, **kwargs: Any) -> Optional[str]:
        """
        Get a secret as text.

        Binary secrets are decoded as UTF-8 text.

        Args:
            secret_id: Secret name or ARN
            **kwargs: Extra GetSecretValue parameters (VersionStage, ...)

        Returns:
            Secret text, None if the secret cannot be read

        Raises:
            ValueError: If a binary secret is not UTF-8 text
        """
        try:
            response = self.client.get_secret_value(SecretId=secret_id, **kwargs)
        except ClientError as e:
            return self._handle_error(e, 'get_secret_value', fallback=None)

        if 'SecretString' in response:
            return response['SecretString']
        binary = response['SecretBinary']
        if isinstance(binary, str):
            binary = base64.b64decode(binary)
        try:
            return binary.decode('utf-8')
        except UnicodeDecodeError as e:
            logger.error(f'Secret {secret_id} binary is not UTF-8 text: {str(e)}')
            raise ValueError(f"Secret {secret_id} binary is not UTF-8 text") from e

    def get_secret_json(self, secret_id: str) -> Optional[Dict[str, Any]]:
        """
        Get a secret holding a JSON object.

        Raises:
            ValueError: If the secret is not valid JSON
        """
        secret_string = self.get_secret_value(secret_id)
        if secret_string is None:
            return None
        try:
            return json.loads(secret_string)
        except json.JSONDecodeError as e:
            logger.error(f'Secret {secret_id} is not valid JSON: {str(e)}')
            raise ValueError(f"Secret {secret_id} is not valid JSON") from e

    def put_secret_value(self, secret_id: str, secret_string: str, **kwargs: Any) -> Dict[str, Any]:
        try:
            response = self.client.put_secret_value(
                SecretId=secret_id, SecretString=secret_string, **kwargs
            )
            logger.info(f'Stored new version of secret {secret_id}')
            return response
        except ClientError as e:
            return self._handle_error(e, 'put_secret_value')
