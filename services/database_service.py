"""
DynamoDB service for table operations.

Items are plain Python values; boto3's resource layer handles the
DynamoDB attribute-value encoding (numbers come back as ``Decimal``).
"""
from typing import Any, Dict, List, Optional, Tuple

import boto3
from botocore.exceptions import ClientError

from logger_config import get_logger
from services.base import AWSService

logger = get_logger(__name__)


class DatabaseService(AWSService):
    """Service for DynamoDB operations."""

    service_name = "dynamodb"

    def __init__(self, region_name: Optional[str] = None, resource: Any = None) -> None:
        super().__init__(region_name)
        self._resource = resource

    @property
    def resource(self):
        """Lazy initialization of DynamoDB resource."""
        if self._resource is None:
            self._resource = boto3.resource(self.service_name, region_name=self.region_name)
        return self._resource

    def table(self, table_name: str):
        return self.resource.Table(table_name)

    def put(self, table_name: str, item: Dict[str, Any], **kwargs: Any) -> Dict[str, Any]:
        """
        Put an item into a table.

        Args:
            table_name: Name of the DynamoDB table
            item: Item dictionary
            **kwargs: Extra PutItem parameters (ConditionExpression, ...)

        Returns:
            Raw PutItem response

        Raises:
            ClientError: If DynamoDB operation fails
        """
        try:
            response = self.table(table_name).put_item(Item=item, **kwargs)
            logger.info(f'Successfully put item to DynamoDB table {table_name}')
            return response
        except ClientError as e:
            return self._handle_error(e, 'put')

    def get(self, table_name: str, key: Dict[str, Any], **kwargs: Any) -> Optional[Dict[str, Any]]:
        """
        Get an item from a table.

        Returns:
            Item dictionary if found, None otherwise

        Raises:
            ClientError: If DynamoDB operation fails
        """
        try:
            response = self.table(table_name).get_item(Key=key, **kwargs)
            return response.get('Item')
        except ClientError as e:
            return self._handle_error(e, 'get')

    def update(self, table_name: str, key: Dict[str, Any], **kwargs: Any) -> Optional[Dict[str, Any]]:
        """
        Update an item.

        Args:
            table_name: Name of the DynamoDB table
            key: Primary key of the item
            **kwargs: UpdateItem parameters (UpdateExpression, ReturnValues, ...)

        Returns:
            The ``Attributes`` requested through ReturnValues, if any
        """
        try:
            response = self.table(table_name).update_item(Key=key, **kwargs)
            return response.get('Attributes')
        except ClientError as e:
            return self._handle_error(e, 'update')

    def delete(self, table_name: str, key: Dict[str, Any], **kwargs: Any) -> Dict[str, Any]:
        try:
            return self.table(table_name).delete_item(Key=key, **kwargs)
        except ClientError as e:
            return self._handle_error(e, 'delete')

    def batch_write(self, request_items: Dict[str, List[Dict[str, Any]]]) -> Dict[str, Any]:
        """
        Write a batch of put/delete requests across tables.

        Args:
            request_items: ``{table_name: [{'PutRequest': {...}} | {'DeleteRequest': {...}}]}``

        Returns:
            Raw BatchWriteItem response, including ``UnprocessedItems``
        """
        try:
            return self.resource.batch_write_item(RequestItems=request_items)
        except ClientError as e:
            return self._handle_error(e, 'batch_write')

    def batch_get(self, request_items: Dict[str, Dict[str, Any]], table_name: str) -> List[Dict[str, Any]]:
        """
        Read a batch of items and return those of ``table_name``.

        Args:
            request_items: ``{table_name: {'Keys': [...]}}``
            table_name: Table whose responses are returned

        Returns:
            List of items found in ``table_name``
        """
        try:
            response = self.resource.batch_get_item(RequestItems=request_items)
            return response.get('Responses', {}).get(table_name, [])
        except ClientError as e:
            return self._handle_error(e, 'batch_get')

    def _paginate(self, operation, method: str, **kwargs: Any) -> List[Dict[str, Any]]:
        items: List[Dict[str, Any]] = []
        try:
            while True:
                response = operation(**kwargs)
                items.extend(response.get('Items', []))
                last_key = response.get('LastEvaluatedKey')
                if not last_key:
                    return items
                kwargs['ExclusiveStartKey'] = last_key
        except ClientError as e:
            return self._handle_error(e, method)

    def _page(
        self, operation, method: str, **kwargs: Any
    ) -> Tuple[List[Dict[str, Any]], Optional[Dict[str, Any]]]:
        try:
            response = operation(**kwargs)
        except ClientError as e:
            return self._handle_error(e, method)
        return response.get('Items', []), response.get('LastEvaluatedKey')

    def _read(self, operation, method: str, **kwargs: Any) -> List[Dict[str, Any]]:
        # An explicit page size or start key asks for exactly one page
        if 'Limit' in kwargs or 'ExclusiveStartKey' in kwargs:
            items, _ = self._page(operation, method, **kwargs)
            return items
        return self._paginate(operation, method, **kwargs)

    def query(self, table_name: str, **kwargs: Any) -> List[Dict[str, Any]]:
        """
        Query a table.

        Without ``Limit`` or ``ExclusiveStartKey`` every page is fetched by
        following ``LastEvaluatedKey``; with either, a single call is made.
        Use ``query_page`` to get the cursor back.

        Args:
            table_name: Name of the DynamoDB table
            **kwargs: Query parameters (KeyConditionExpression, IndexName, ...)

        Returns:
            Matching items
        """
        return self._read(self.table(table_name).query, 'query', **kwargs)

    def scan(self, table_name: str, **kwargs: Any) -> List[Dict[str, Any]]:
        """Scan a table; paging follows the same rules as ``query``."""
        return self._read(self.table(table_name).scan, 'scan', **kwargs)

    def query_page(
        self,
        table_name: str,
        limit: Optional[int] = None,
        start_key: Optional[Dict[str, Any]] = None,
        **kwargs: Any
    ) -> Tuple[List[Dict[str, Any]], Optional[Dict[str, Any]]]:
        """
        Fetch one page of a query.

        Args:
            table_name: Name of the DynamoDB table
            limit: Maximum number of items to evaluate
            start_key: ``LastEvaluatedKey`` of the previous page
            **kwargs: Query parameters

        Returns:
            Tuple of (items, last_evaluated_key); the key is None on the last page
        """
        if limit is not None:
            kwargs['Limit'] = limit
        if start_key:
            kwargs['ExclusiveStartKey'] = start_key
        return self._page(self.table(table_name).query, 'query_page', **kwargs)

    def scan_page(
        self,
        table_name: str,
        limit: Optional[int] = None,
        start_key: Optional[Dict[str, Any]] = None,
        **kwargs: Any
    ) -> Tuple[List[Dict[str, Any]], Optional[Dict[str, Any]]]:
        """Fetch one page of a scan; see ``query_page``."""
        if limit is not None:
            kwargs['Limit'] = limit
        if start_key:
            kwargs['ExclusiveStartKey'] = start_key
        return self._page(self.table(table_name).scan, 'scan_page', **kwargs)
