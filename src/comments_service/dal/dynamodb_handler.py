"""
Data Access Layer (DAL) for DynamoDB operations.

This module provides the table wrapper used by the comment service, with
consistent translation of botocore errors into service errors and per-call
tracing and metrics.
"""

import functools
import time
from typing import Any, Callable, Dict, Optional, TypeVar

import boto3
from aws_lambda_powertools.metrics import MetricUnit
from botocore.exceptions import BotoCoreError, ClientError

from comments_service.handlers.utils.errors import (
    BaseServiceError,
    ErrorCategory,
    ErrorContext,
    ErrorSeverity,
    ExternalServiceError,
)
from comments_service.handlers.utils.observability import logger, metrics, tracer

T = TypeVar('T')


class DALError(BaseServiceError):
    """Base exception for Data Access Layer errors."""

    def __init__(
        self,
        message: str,
        operation: str,
        table_name: str,
        error_code: str = "DAL_ERROR",
        severity: ErrorSeverity = ErrorSeverity.HIGH,
        context: Optional[ErrorContext] = None,
        retry_after: Optional[int] = None,
    ):
        super().__init__(
            message=message,
            error_code=error_code,
            severity=severity,
            category=ErrorCategory.INFRASTRUCTURE,
            context=context,
            retry_after=retry_after,
            user_message="A database error occurred. Please try again later.",
        )
        self.operation = operation
        self.table_name = table_name


class ConditionalCheckFailedError(DALError):
    """Raised when a conditional check fails in DynamoDB."""

    def __init__(
        self,
        table_name: str,
        operation: str,
        context: Optional[ErrorContext] = None,
    ):
        super().__init__(
            message=f"Conditional check failed during {operation}",
            operation=operation,
            table_name=table_name,
            error_code="CONDITIONAL_CHECK_FAILED",
            severity=ErrorSeverity.MEDIUM,
            context=context,
        )


class DynamoDBHandler:
    """DynamoDB table handler with error translation and observability."""

    def __init__(
        self,
        table_name: str,
        endpoint_url: Optional[str] = None,
    ):
        """
        Initialize DynamoDB handler.

        Args:
            table_name: Name of the DynamoDB table
            endpoint_url: DynamoDB endpoint URL (for local testing)
        """
        self.table_name = table_name

        resource_kwargs = {}
        if endpoint_url:
            resource_kwargs['endpoint_url'] = endpoint_url

        self.dynamodb = boto3.resource('dynamodb', **resource_kwargs)
        self.table = self.dynamodb.Table(table_name)

        logger.info("DynamoDB handler initialized", extra={
            "table_name": table_name,
            "endpoint_url": endpoint_url,
        })

    def _execute(self, operation: str, call: Callable[[], T], context: Optional[ErrorContext] = None) -> T:
        """Run a table call, recording metrics and translating botocore errors."""
        operation_start = time.time()
        metrics.add_metric(name=f"DynamoDB{operation}Count", unit=MetricUnit.Count, value=1)

        try:
            result = call()
        except ClientError as e:
            error_code = e.response['Error']['Code']
            error_message = e.response['Error'].get('Message', '')

            metrics.add_metric(name=f"DynamoDB{operation}Error", unit=MetricUnit.Count, value=1)

            if error_code == 'ConditionalCheckFailedException':
                logger.info(f"DynamoDB {operation} condition not met", extra={
                    "table_name": self.table_name,
                    "operation": operation,
                })
                raise ConditionalCheckFailedError(
                    table_name=self.table_name,
                    operation=operation,
                    context=context,
                ) from e

            logger.error(f"DynamoDB {operation} error", extra={
                "error_code": error_code,
                "error_message": error_message,
                "table_name": self.table_name,
                "operation": operation,
            })

            if error_code == 'ResourceNotFoundException':
                raise DALError(
                    message=f"Table {self.table_name} not found",
                    operation=operation,
                    table_name=self.table_name,
                    error_code="TABLE_NOT_FOUND",
                    context=context,
                ) from e
            elif error_code == 'ProvisionedThroughputExceededException':
                raise DALError(
                    message="DynamoDB throughput exceeded",
                    operation=operation,
                    table_name=self.table_name,
                    error_code="THROUGHPUT_EXCEEDED",
                    context=context,
                    retry_after=60,
                ) from e
            elif error_code == 'ThrottlingException':
                raise DALError(
                    message="DynamoDB throttling detected",
                    operation=operation,
                    table_name=self.table_name,
                    error_code="THROTTLING_ERROR",
                    context=context,
                    retry_after=30,
                ) from e
            else:
                raise DALError(
                    message=f"DynamoDB error: {error_message}",
                    operation=operation,
                    table_name=self.table_name,
                    error_code=f"DYNAMODB_{error_code}",
                    context=context,
                ) from e

        except BotoCoreError as e:
            metrics.add_metric(name=f"DynamoDB{operation}Error", unit=MetricUnit.Count, value=1)
            logger.error(f"DynamoDB connection error during {operation}", extra={
                "error": str(e),
                "table_name": self.table_name,
            })
            raise ExternalServiceError(
                message=f"Database connection error: {str(e)}",
                service_name="DynamoDB",
                error_code="DATABASE_CONNECTION_ERROR",
                context=context,
            ) from e

        operation_duration = (time.time() - operation_start) * 1000
        metrics.add_metric(name=f"DynamoDB{operation}Duration", unit=MetricUnit.Milliseconds, value=operation_duration)
        tracer.put_annotation("dynamodb_operation", operation)

        return result

    @tracer.capture_method
    def get_item(
        self,
        key: Dict[str, Any],
        consistent_read: bool = False,
        context: Optional[ErrorContext] = None,
    ) -> Optional[Dict[str, Any]]:
        """
        Get a single item from DynamoDB.

        Args:
            key: Primary key of the item to retrieve
            consistent_read: Whether to use strongly consistent read
            context: Error context for tracing

        Returns:
            Item data or None if not found

        Raises:
            DALError: If DynamoDB operation fails
        """
        response = self._execute(
            "GetItem",
            functools.partial(self.table.get_item, Key=key, ConsistentRead=consistent_read),
            context,
        )
        item = response.get('Item')

        logger.debug("Item lookup completed", extra={
            "table_name": self.table_name,
            "key": key,
            "found": item is not None,
        })

        return item

    @tracer.capture_method
    def put_item(
        self,
        item: Dict[str, Any],
        condition_expression: Optional[Any] = None,
        context: Optional[ErrorContext] = None,
    ) -> Dict[str, Any]:
        """
        Put an item into DynamoDB.

        Args:
            item: Item data to store
            condition_expression: Conditional expression for the put operation
            context: Error context for tracing

        Returns:
            The stored item data

        Raises:
            DALError: If DynamoDB operation fails
            ConditionalCheckFailedError: If condition check fails
        """
        put_item_kwargs = {'Item': item}
        if condition_expression is not None:
            put_item_kwargs['ConditionExpression'] = condition_expression

        self._execute("PutItem", functools.partial(self.table.put_item, **put_item_kwargs), context)

        logger.info("Item stored successfully", extra={
            "table_name": self.table_name,
            "item_id": item.get('id', 'unknown'),
        })

        return item

    @tracer.capture_method
    def update_item(
        self,
        key: Dict[str, Any],
        update_expression: str,
        expression_attribute_values: Optional[Dict[str, Any]] = None,
        expression_attribute_names: Optional[Dict[str, str]] = None,
        condition_expression: Optional[Any] = None,
        context: Optional[ErrorContext] = None,
    ) -> Optional[Dict[str, Any]]:
        """
        Update an item in DynamoDB.

        Args:
            key: Primary key of the item to update
            update_expression: Update expression
            expression_attribute_values: Expression attribute values
            expression_attribute_names: Expression attribute names
            condition_expression: Conditional expression for the update
            context: Error context for tracing

        Returns:
            Updated item data or None

        Raises:
            DALError: If DynamoDB operation fails
            ConditionalCheckFailedError: If condition check fails
        """
        update_kwargs = {
            'Key': key,
            'UpdateExpression': update_expression,
            'ReturnValues': 'ALL_NEW',
        }

        if expression_attribute_values:
            update_kwargs['ExpressionAttributeValues'] = expression_attribute_values

        if expression_attribute_names:
            update_kwargs['ExpressionAttributeNames'] = expression_attribute_names

        if condition_expression is not None:
            update_kwargs['ConditionExpression'] = condition_expression

        response = self._execute("UpdateItem", functools.partial(self.table.update_item, **update_kwargs), context)

        logger.info("Item updated successfully", extra={
            "table_name": self.table_name,
            "key": key,
        })

        return response.get('Attributes')

    @tracer.capture_method
    def delete_item(
        self,
        key: Dict[str, Any],
        condition_expression: Optional[Any] = None,
        context: Optional[ErrorContext] = None,
    ) -> bool:
        """
        Delete an item from DynamoDB.

        Args:
            key: Primary key of the item to delete
            condition_expression: Conditional expression for the delete
            context: Error context for tracing

        Returns:
            True if item was deleted, False if not found

        Raises:
            DALError: If DynamoDB operation fails
            ConditionalCheckFailedError: If condition check fails
        """
        delete_kwargs = {
            'Key': key,
            'ReturnValues': 'ALL_OLD',
        }

        if condition_expression is not None:
            delete_kwargs['ConditionExpression'] = condition_expression

        response = self._execute("DeleteItem", functools.partial(self.table.delete_item, **delete_kwargs), context)

        if response.get('Attributes'):
            logger.info("Item deleted successfully", extra={
                "table_name": self.table_name,
                "key": key,
            })
            return True

        logger.warning("Item not found for deletion", extra={
            "table_name": self.table_name,
            "key": key,
        })
        return False

    @tracer.capture_method
    def scan_items(
        self,
        limit: Optional[int] = None,
        exclusive_start_key: Optional[Dict[str, Any]] = None,
        context: Optional[ErrorContext] = None,
    ) -> Dict[str, Any]:
        """
        Scan one page of items from DynamoDB.

        Args:
            limit: Maximum number of items to evaluate
            exclusive_start_key: Pagination token
            context: Error context for tracing

        Returns:
            Dictionary with 'items', 'count', 'scanned_count' and optional 'last_evaluated_key'

        Raises:
            DALError: If DynamoDB operation fails
        """
        scan_kwargs = {}

        if limit:
            scan_kwargs['Limit'] = limit

        if exclusive_start_key:
            scan_kwargs['ExclusiveStartKey'] = exclusive_start_key

        response = self._execute("Scan", functools.partial(self.table.scan, **scan_kwargs), context)

        result = {
            'items': response.get('Items', []),
            'count': response.get('Count', 0),
            'scanned_count': response.get('ScannedCount', 0),
        }

        if 'LastEvaluatedKey' in response:
            result['last_evaluated_key'] = response['LastEvaluatedKey']

        logger.info("Scan completed successfully", extra={
            "table_name": self.table_name,
            "items_count": result['count'],
            "scanned_count": result['scanned_count'],
            "has_more_results": 'last_evaluated_key' in result,
        })

        return result
