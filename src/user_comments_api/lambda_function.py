"""
Lambda function entry point for the claims-authorized comments API.

This module delegates to the handler in the comments_service package.
"""

import os
import sys
from typing import Any, Dict

# Add the service module to the Python path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from aws_lambda_powertools.utilities.typing import LambdaContext
from comments_service.handlers.user_comments_handler import lambda_handler as user_comments_handler


def lambda_handler(event: Dict[str, Any], context: LambdaContext) -> Dict[str, Any]:
    """
    Lambda function entry point for the claims-authorized comments API.

    Args:
        event: API Gateway event with authorizer claims
        context: Lambda context object

    Returns:
        API Gateway response dictionary
    """
    return user_comments_handler(event, context)
