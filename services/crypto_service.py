"""
KMS service for encrypted environment variables.
"""
import base64
import os
from typing import Any, Dict, Optional

from botocore.exceptions import ClientError

from logger_config import get_logger
from services.base import AWSService

logger = get_logger(__name__)


class CryptoService(AWSService):
    service_name = "kms"

    def decrypt(self, env_name: str) -> str:
        """
        Decrypt a base64 ciphertext stored in an environment variable.

        The ciphertext must have been encrypted with the Lambda function name
        as ``LambdaFunctionName`` encryption context, as the Lambda console
        does for encryption helpers.

        Args:
            env_name: Environment variable holding the ciphertext

        Returns:
            Plaintext

        Raises:
            ValueError: If the environment variable is not set
            ClientError: If KMS rejects the ciphertext
        """
        encrypted = os.environ.get(env_name)
        if not encrypted:
            raise ValueError(f"Environment variable {env_name} not found")

        try:
            response = self.client.decrypt(
                CiphertextBlob=base64.b64decode(encrypted),
                EncryptionContext={
                    'LambdaFunctionName': os.environ.get('AWS_LAMBDA_FUNCTION_NAME', '')
                },
            )
        except ClientError as e:
            return self._handle_error(e, 'decrypt')

        logger.info(f'Environment variable {env_name} decrypted')
        return response['Plaintext'].decode('ascii')

    def encrypt(
        self,
        plaintext: str,
        key_id: str,
        encryption_context: Optional[Dict[str, str]] = None
    ) -> str:
        """Encrypt text with a KMS key and return base64 ciphertext."""
        params: Dict[str, Any] = {'KeyId': key_id, 'Plaintext': plaintext.encode('UTF-8')}
        if encryption_context:
            params['EncryptionContext'] = encryption_context
        try:
            response = self.client.encrypt(**params)
        except ClientError as e:
            return self._handle_error(e, 'encrypt')

        logger.info('Data encrypted successfully')
        return base64.b64encode(response['CiphertextBlob']).decode('ascii')
