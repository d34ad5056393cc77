"""
Lambda function entry point for the comments queue consumer.

This module delegates to the handler in the comments_service package.
"""

import os
import sys
from typing import Any, Dict

# Add the service module to the Python path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from aws_lambda_powertools.utilities.typing import LambdaContext
from comments_service.handlers.comments_queue_handler import lambda_handler as comments_queue_handler


def lambda_handler(event: Dict[str, Any], context: LambdaContext) -> Dict[str, Any]:
    """
    Lambda function entry point for the comments queue consumer.

    Args:
        event: SQS event
        context: Lambda context object

    Returns:
        Partial batch response dictionary
    """
    return comments_queue_handler(event, context)
