"""
Data Access Layer (DAL) for DynamoDB operations.

Wraps the table operations request handlers use with consistent error
translation. Failures are recorded on the owning invocation for the deferred
flush, except conditional check conflicts, which are an expected outcome of
optimistic concurrency and are only raised.
"""

from functools import lru_cache
from typing import Any, Callable, Dict, List, Optional, TypeVar

import boto3
from aws_lambda_powertools.metrics import MetricUnit
from botocore.exceptions import BotoCoreError, ClientError

from lambda_kit.handlers.utils.errors import CollaboratorError, ConditionalCheckFailedError
from lambda_kit.handlers.utils.observability import logger, metrics, tracer
from lambda_kit.logic.invocation import Invocation

SERVICE_NAME = 'DynamoDB'

T = TypeVar('T')


@lru_cache(maxsize=None)
def get_dynamodb_resource(region_name: Optional[str] = None, endpoint_url: Optional[str] = None):
    """DynamoDB resource shared per region/endpoint for the process lifetime."""
    session_config = {}
    if region_name:
        session_config['region_name'] = region_name
    if endpoint_url:
        session_config['endpoint_url'] = endpoint_url
    return boto3.resource('dynamodb', **session_config)


class DynamoDBHandler:
    """DynamoDB table access bound to one invocation."""

    def __init__(
        self,
        table_name: str,
        invocation: Invocation,
        region_name: Optional[str] = None,
        endpoint_url: Optional[str] = None,
        resource: Any = None,
    ):
        """
        Initialize DynamoDB handler.

        Args:
            table_name: Name of the DynamoDB table
            invocation: Invocation receiving error records
            region_name: AWS region name
            endpoint_url: DynamoDB endpoint URL (for local testing)
            resource: Pre-built boto3 DynamoDB resource
        """
        self.table_name = table_name
        self.invocation = invocation
        self.dynamodb = resource or get_dynamodb_resource(region_name, endpoint_url)
        self.table = self.dynamodb.Table(table_name)

    def _handle_dynamodb_errors(self, operation: str) -> Callable[[Callable[[], T]], Callable[[], T]]:
        """Decorator to handle DynamoDB errors consistently."""

        def decorator(func: Callable[[], T]) -> Callable[[], T]:
            def wrapper() -> T:
                try:
                    result = func()
                    tracer.put_annotation("dynamodb_operation", operation)
                    return result

                except ClientError as e:
                    error_code = e.response['Error']['Code']
                    error_message = e.response['Error']['Message']

                    if error_code == 'ConditionalCheckFailedException':
                        logger.info(f"DynamoDB {operation} conditional check failed", extra={
                            "table_name": self.table_name,
                        })
                        raise ConditionalCheckFailedError(self.table_name, operation) from e

                    metrics.add_metric(name="CollaboratorFailure", unit=MetricUnit.Count, value=1)
                    logger.error(f"DynamoDB {operation} error", extra={
                        "error_code": error_code,
                        "error_message": error_message,
                        "table_name": self.table_name,
                        "operation": operation,
                    })
                    error = CollaboratorError(
                        message=f"DynamoDB error: {error_message}",
                        service_name=SERVICE_NAME,
                        status_code=e.response.get('ResponseMetadata', {}).get('HTTPStatusCode', 500),
                        details={"operation": operation, "table_name": self.table_name, "code": error_code},
                    )
                    self.invocation.record_error(error)
                    raise error from e

                except BotoCoreError as e:
                    metrics.add_metric(name="CollaboratorFailure", unit=MetricUnit.Count, value=1)
                    logger.error(f"DynamoDB connection error during {operation}", extra={
                        "error": str(e),
                        "table_name": self.table_name,
                    })
                    error = CollaboratorError(
                        message=f"Database connection error: {e}",
                        service_name=SERVICE_NAME,
                        details={"operation": operation, "table_name": self.table_name},
                    )
                    self.invocation.record_error(error)
                    raise error from e

            return wrapper
        return decorator

    @tracer.capture_method
    def get_item(self, key: Dict[str, Any], consistent_read: bool = False) -> Optional[Dict[str, Any]]:
        """
        Get a single item.

        Returns:
            Item data or None if not found
        """

        @self._handle_dynamodb_errors("GetItem")
        def _get_item():
            response = self.table.get_item(Key=key, ConsistentRead=consistent_read)
            return response.get('Item')

        return _get_item()

    @tracer.capture_method
    def put_item(self, item: Dict[str, Any], condition_expression: Optional[Any] = None) -> Dict[str, Any]:
        """
        Put an item.

        Raises:
            ConditionalCheckFailedError: If condition check fails
            CollaboratorError: If the operation fails otherwise
        """

        @self._handle_dynamodb_errors("PutItem")
        def _put_item():
            put_item_kwargs: Dict[str, Any] = {'Item': item}
            if condition_expression is not None:
                put_item_kwargs['ConditionExpression'] = condition_expression
            self.table.put_item(**put_item_kwargs)
            return item

        return _put_item()

    @tracer.capture_method
    def update_item(
        self,
        key: Dict[str, Any],
        update_expression: str,
        expression_attribute_values: Optional[Dict[str, Any]] = None,
        expression_attribute_names: Optional[Dict[str, str]] = None,
        condition_expression: Optional[Any] = None,
        return_values: str = "ALL_NEW",
    ) -> Optional[Dict[str, Any]]:
        """
        Update an item.

        Returns:
            Attributes selected by ``return_values``, or None
        """

        @self._handle_dynamodb_errors("UpdateItem")
        def _update_item():
            update_kwargs: Dict[str, Any] = {
                'Key': key,
                'UpdateExpression': update_expression,
                'ReturnValues': return_values,
            }
            if expression_attribute_values:
                update_kwargs['ExpressionAttributeValues'] = expression_attribute_values
            if expression_attribute_names:
                update_kwargs['ExpressionAttributeNames'] = expression_attribute_names
            if condition_expression is not None:
                update_kwargs['ConditionExpression'] = condition_expression

            response = self.table.update_item(**update_kwargs)
            return response.get('Attributes')

        return _update_item()

    @tracer.capture_method
    def query_items(
        self,
        key_condition: Any,
        filter_expression: Optional[Any] = None,
        limit: Optional[int] = None,
        scan_index_forward: bool = True,
        exclusive_start_key: Optional[Dict[str, Any]] = None,
        index_name: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        Query items.

        Returns:
            Dictionary with 'items', 'count' and optional 'last_evaluated_key'
        """

        @self._handle_dynamodb_errors("Query")
        def _query_items():
            query_kwargs: Dict[str, Any] = {
                'KeyConditionExpression': key_condition,
                'ScanIndexForward': scan_index_forward,
            }
            if filter_expression is not None:
                query_kwargs['FilterExpression'] = filter_expression
            if limit:
                query_kwargs['Limit'] = limit
            if exclusive_start_key:
                query_kwargs['ExclusiveStartKey'] = exclusive_start_key
            if index_name:
                query_kwargs['IndexName'] = index_name

            return self._page(self.table.query(**query_kwargs))

        return _query_items()

    @tracer.capture_method
    def scan_items(
        self,
        filter_expression: Optional[Any] = None,
        limit: Optional[int] = None,
        exclusive_start_key: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        """
        Scan items.

        Returns:
            Dictionary with 'items', 'count' and optional 'last_evaluated_key'
        """

        @self._handle_dynamodb_errors("Scan")
        def _scan_items():
            scan_kwargs: Dict[str, Any] = {}
            if filter_expression is not None:
                scan_kwargs['FilterExpression'] = filter_expression
            if limit:
                scan_kwargs['Limit'] = limit
            if exclusive_start_key:
                scan_kwargs['ExclusiveStartKey'] = exclusive_start_key

            return self._page(self.table.scan(**scan_kwargs))

        return _scan_items()

    @staticmethod
    def _page(response: Dict[str, Any]) -> Dict[str, Any]:
        items: List[Dict[str, Any]] = response.get('Items', [])
        result: Dict[str, Any] = {
            'items': items,
            'count': response.get('Count', len(items)),
        }
        if 'LastEvaluatedKey' in response:
            result['last_evaluated_key'] = response['LastEvaluatedKey']
        return result
