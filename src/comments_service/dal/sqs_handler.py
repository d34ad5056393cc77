"""
Queue access for asynchronous comment writes.

Thin wrapper around the SQS client that sends JSON message bodies and maps
client failures onto the service error hierarchy.
"""

import json
from typing import Any, Dict, Optional

import boto3
from aws_lambda_powertools.metrics import MetricUnit
from botocore.exceptions import BotoCoreError, ClientError

from comments_service.handlers.utils.errors import ErrorContext, ExternalServiceError
from comments_service.handlers.utils.observability import logger, metrics, tracer


class SQSHandler:
    """SQS queue handler for comment write messages."""

    def __init__(self, queue_url: str):
        self.queue_url = queue_url
        self.sqs = boto3.client('sqs')

        logger.info("SQS handler initialized", extra={"queue_url": queue_url})

    @tracer.capture_method
    def send_message(
        self,
        body: Dict[str, Any],
        message_attributes: Optional[Dict[str, str]] = None,
        context: Optional[ErrorContext] = None,
    ) -> str:
        """
        Send a JSON message to the queue.

        Args:
            body: JSON-serializable message body
            message_attributes: Optional string attributes attached to the message
            context: Error context for tracing

        Returns:
            The queue message id

        Raises:
            ExternalServiceError: If the queue rejects the message or is unreachable
        """
        send_kwargs = {
            'QueueUrl': self.queue_url,
            'MessageBody': json.dumps(body),
        }

        if message_attributes:
            send_kwargs['MessageAttributes'] = {
                name: {'DataType': 'String', 'StringValue': value}
                for name, value in message_attributes.items()
            }

        try:
            response = self.sqs.send_message(**send_kwargs)
        except (ClientError, BotoCoreError) as e:
            metrics.add_metric(name="QueueSendError", unit=MetricUnit.Count, value=1)
            logger.error("Failed to send message to queue", extra={
                "queue_url": self.queue_url,
                "error": str(e),
            })
            raise ExternalServiceError(
                message=f"Queue send failed: {str(e)}",
                service_name="SQS",
                error_code="QUEUE_UNAVAILABLE",
                context=context,
            ) from e

        message_id = response['MessageId']
        metrics.add_metric(name="QueueMessageSent", unit=MetricUnit.Count, value=1)
        logger.info("Message sent to queue", extra={
            "queue_url": self.queue_url,
            "message_id": message_id,
        })

        return message_id
