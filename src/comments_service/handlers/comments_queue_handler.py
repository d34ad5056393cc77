"""
Comments Queue Handler - SQS consumer that applies queued comment writes.

Each record carries one CommentMessage produced by the user comments API in
queued mode. Records that cannot be parsed are logged and dropped, since a
retry would never succeed. Failures talking to DynamoDB, and creates whose id
already holds a different comment, are reported back as batch item failures so
SQS redelivers only those records.
"""

import os
from typing import Any, Dict, Optional

from aws_lambda_powertools.metrics import MetricUnit
from aws_lambda_powertools.utilities.batch import BatchProcessor, EventType, process_partial_response
from aws_lambda_powertools.utilities.data_classes.sqs_event import SQSRecord
from aws_lambda_powertools.utilities.typing import LambdaContext
from pydantic import ValidationError as PydanticValidationError

from comments_service.dal.dynamodb_handler import DynamoDBHandler
from comments_service.handlers.models.env_vars import get_handler_env_vars
from comments_service.handlers.utils.errors import create_error_context
from comments_service.handlers.utils.observability import logger, metrics, tracer
from comments_service.logic.comment_service import CommentService
from comments_service.models.messages import CommentMessage

processor = BatchProcessor(event_type=EventType.SQS)

_comment_service: Optional[CommentService] = None


def get_comment_service() -> CommentService:
    """Get or create the comment service used to apply queued writes."""
    global _comment_service

    if _comment_service is None:
        env_vars = get_handler_env_vars()
        _comment_service = CommentService(
            comments_dal=DynamoDBHandler(
                table_name=env_vars.TABLE_NAME,
                endpoint_url=env_vars.DYNAMODB_ENDPOINT,
            ),
        )

    return _comment_service


@tracer.capture_method
def record_handler(record: SQSRecord) -> Optional[str]:
    """
    Apply a single queued comment write.

    Returns:
        The outcome of the write, or None when the record was dropped
    """
    try:
        message = CommentMessage.model_validate_json(record.body)
    except PydanticValidationError as e:
        metrics.add_metric(name="InvalidQueuedMessage", unit=MetricUnit.Count, value=1)
        logger.error("Dropping malformed comment message", extra={
            "message_id": record.message_id,
            "validation_errors": str(e),
        })
        return None

    tracer.put_annotation("comment_id", message.comment_id)
    context = create_error_context(
        request_id=record.message_id,
        operation=f"apply_{message.action.value}",
        resource_id=message.comment_id,
        user_id=message.user_id,
    )

    outcome = get_comment_service().apply_message(message, context=context)
    metrics.add_metric(name="QueuedWriteProcessed", unit=MetricUnit.Count, value=1)

    return outcome


@logger.inject_lambda_context(clear_state=True)
@tracer.capture_lambda_handler
@metrics.log_metrics(capture_cold_start_metric=True)
def lambda_handler(event: Dict[str, Any], context: LambdaContext) -> Dict[str, Any]:
    """
    Main Lambda handler function.

    Args:
        event: SQS event with one or more comment messages
        context: Lambda context object

    Returns:
        Partial batch response listing the records to redeliver
    """
    tracer.put_annotation("service", "comments-worker")
    tracer.put_annotation("environment", os.environ.get("ENVIRONMENT", "unknown"))
    metrics.add_metric(name="QueuedBatchSize", unit=MetricUnit.Count, value=len(event.get("Records", [])))

    return process_partial_response(
        event=event,
        record_handler=record_handler,
        processor=processor,
        context=context,
    )
