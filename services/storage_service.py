"""
S3 service for object storage operations.
"""
import json
from typing import Any, Dict, List, Optional

from botocore.exceptions import ClientError

from config import get_config
from logger_config import get_logger
from services.base import AWSService
from utils.constants import TIMEOUTS, get_s3_key
from utils.response import to_json

logger = get_logger(__name__)

OPERATIONS = ('get_object', 'put_object', 'delete_object', 'select_object_content')


class StorageService(AWSService):
    """Service for S3 operations."""

    service_name = "s3"

    def __init__(
        self,
        bucket_name: Optional[str] = None,
        region_name: Optional[str] = None,
        client: Any = None
    ) -> None:
        """
        Initialize S3 service.

        Args:
            bucket_name: Name of the S3 bucket; defaults to S3_BUCKET
            region_name: AWS region
            client: Pre-built S3 client
        """
        super().__init__(region_name, client)
        self._bucket_name = bucket_name

    @property
    def bucket_name(self) -> str:
        if self._bucket_name is None:
            self._bucket_name = get_config().s3_bucket
            if not self._bucket_name:
                raise ValueError("No bucket given and S3_BUCKET is not set")
        return self._bucket_name

    def list_bucket(self, prefix: str = '') -> List[str]:
        """
        List the immediate "sub-folders" under a prefix.

        Args:
            prefix: Key prefix, usually ending with ``/``

        Returns:
            Folder names relative to the prefix, ``[]`` on failure
        """
        try:
            response = self.client.list_objects_v2(
                Bucket=self.bucket_name, Prefix=prefix, Delimiter='/'
            )
            return [
                common_prefix['Prefix'][len(prefix):].replace('/', '', 1)
                for common_prefix in response.get('CommonPrefixes', [])
            ]
        except ClientError as e:
            return self._handle_error(e, 'list_bucket', fallback=[])

    def list_folder(self, prefix: str = '') -> List[str]:
        """List object keys under a prefix, relative to it; ``[]`` on failure."""
        try:
            response = self.client.list_objects_v2(Bucket=self.bucket_name, Prefix=prefix)
            return [obj['Key'][len(prefix):] for obj in response.get('Contents', [])]
        except ClientError as e:
            return self._handle_error(e, 'list_folder', fallback=[])

    def get_object(self, key: str) -> Optional[Dict[str, Any]]:
        """
        Get an object.

        Returns:
            The raw GetObject response (``Body`` is a stream), None on failure
        """
        try:
            return self.client.get_object(Bucket=self.bucket_name, Key=key)
        except ClientError as e:
            return self._handle_error(e, 'get_object', fallback=None)

    def get_json_object(self, key: str) -> Optional[Any]:
        response = self.get_object(key)
        if response is None:
            return None
        return json.loads(response['Body'].read())

    def head_object(self, key: str) -> Optional[Dict[str, Any]]:
        try:
            return self.client.head_object(Bucket=self.bucket_name, Key=key)
        except ClientError as e:
            return self._handle_error(e, 'head_object', fallback=None)

    def object_exists(self, key: str) -> bool:
        """
        Check if an object exists in the bucket.

        Returns:
            True if object exists, False otherwise
        """
        try:
            self.client.head_object(Bucket=self.bucket_name, Key=key)
            return True
        except ClientError as e:
            error_code = e.response.get('Error', {}).get('Code', '')
            if error_code in ('404', 'NoSuchKey', 'NotFound'):
                return False
            return self._handle_error(e, 'object_exists')

    def put_object(
        self,
        key: str,
        body: bytes | str,
        content_type: Optional[str] = None,
        metadata: Optional[Dict[str, str]] = None
    ) -> Dict[str, Any]:
        """
        Put an object into the bucket.

        Args:
            key: S3 object key
            body: Object body (bytes or string)
            content_type: Optional Content-Type
            metadata: Optional metadata dictionary

        Raises:
            ClientError: If S3 operation fails
        """
        put_kwargs: Dict[str, Any] = {
            'Bucket': self.bucket_name,
            'Key': key,
            'Body': body.encode('UTF-8') if isinstance(body, str) else body,
        }
        if content_type:
            put_kwargs['ContentType'] = content_type
        if metadata:
            put_kwargs['Metadata'] = metadata

        try:
            response = self.client.put_object(**put_kwargs)
            logger.info(f'Successfully put object to s3://{self.bucket_name}/{key}')
            return response
        except ClientError as e:
            return self._handle_error(e, 'put_object')

    def put_json_object(
        self,
        key: str,
        data: Any,
        metadata: Optional[Dict[str, str]] = None
    ) -> Dict[str, Any]:
        """Serialize ``data`` to JSON and put it with an ``application/json`` type."""
        return self.put_object(key, to_json(data), 'application/json', metadata)

    def delete_object(self, key: str) -> Dict[str, Any]:
        try:
            return self.client.delete_object(Bucket=self.bucket_name, Key=key)
        except ClientError as e:
            return self._handle_error(e, 'delete_object')

    def select_object_content(self, key: str, expression: str) -> Optional[List[Any]]:
        """
        Run an S3 Select SQL expression over a JSON document.

        Args:
            key: S3 object key
            expression: SQL expression, e.g. ``SELECT * FROM S3Object s``

        Returns:
            Records decoded from the event stream, None on failure
        """
        try:
            response = self.client.select_object_content(
                Bucket=self.bucket_name,
                Key=key,
                ExpressionType='SQL',
                Expression=expression,
                InputSerialization={'CompressionType': 'NONE', 'JSON': {'Type': 'DOCUMENT'}},
                OutputSerialization={'JSON': {}},
            )
            payload = ''.join(
                event['Records']['Payload'].decode('UTF-8')
                for event in response['Payload']
                if 'Records' in event
            )
            return [json.loads(line) for line in payload.splitlines() if line.strip()]
        except ClientError as e:
            return self._handle_error(e, 'select_object_content', fallback=None)

    def _presigned_url(self, client_method: str, key: str, expires_in: int) -> str:
        try:
            return self.client.generate_presigned_url(
                client_method,
                Params={'Bucket': self.bucket_name, 'Key': key},
                ExpiresIn=expires_in,
            )
        except ClientError as e:
            return self._handle_error(e, client_method)

    def get_object_signed_url(
        self, key: str, expires_in: int = TIMEOUTS["PRESIGNED_URL_SECONDS"]
    ) -> str:
        return self._presigned_url('get_object', key, expires_in)

    def put_object_signed_url(
        self, key: str, expires_in: int = TIMEOUTS["PRESIGNED_URL_SECONDS"]
    ) -> str:
        return self._presigned_url('put_object', key, expires_in)

    def operation(self, action: str, name: str, data: Any = None) -> Any:
        """
        Run a JSON document operation on ``<stage>/<service>/<name>.json``.

        Args:
            action: One of get_object, put_object, delete_object,
                select_object_content
            name: Document name without extension
            data: Document for put_object, SQL expression for
                select_object_content

        Returns:
            Decoded document for get_object, records for
            select_object_content, the raw response otherwise

        Raises:
            ValueError: If the action is unknown
        """
        if action not in OPERATIONS:
            raise ValueError(f"Unknown storage operation '{action}', expected one of {OPERATIONS}")

        key = get_s3_key(f"{name}.json")
        if action == 'get_object':
            return self.get_json_object(key)
        if action == 'put_object':
            return self.put_json_object(key, data)
        if action == 'delete_object':
            return self.delete_object(key)
        return self.select_object_content(key, data)
