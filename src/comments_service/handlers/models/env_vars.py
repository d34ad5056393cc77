"""
Environment variable models for type-safe configuration.

This module defines the Pydantic model for environment variables used by the
comment handlers, parsed and cached by aws-lambda-env-modeler.
"""

from typing import Annotated, Optional

from aws_lambda_env_modeler import get_environment_variables
from pydantic import BaseModel, Field


class CommentsHandlerEnvVars(BaseModel):
    """Environment variables for the comment handlers."""

    # DynamoDB table name for storing comments
    TABLE_NAME: Annotated[str, Field(
        description='DynamoDB table name for comment storage',
        min_length=1
    )] = 'CommentsTable'

    # SQS queue receiving offloaded writes; queued mode is off when unset
    COMMENTS_QUEUE_URL: Annotated[Optional[str], Field(
        description='SQS queue URL for asynchronous comment writes'
    )] = None

    # DynamoDB endpoint override for local testing
    DYNAMODB_ENDPOINT: Annotated[Optional[str], Field(
        description='DynamoDB endpoint URL (DynamoDB Local, LocalStack)'
    )] = None

    # Environment name (dev, staging, prod, test)
    ENVIRONMENT: Annotated[str, Field(
        description='Deployment environment name',
        pattern=r'^(dev|staging|prod|test)$'
    )] = 'dev'

    # Log level for AWS Powertools Logger
    LOG_LEVEL: Annotated[str, Field(
        description='Log level for application logging',
        pattern=r'^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$'
    )] = 'INFO'

    CORS_ALLOW_ORIGIN: Annotated[str, Field(
        description='CORS allowed origins for API responses'
    )] = '*'

    @property
    def async_writes_enabled(self) -> bool:
        """Check if writes are offloaded to the comments queue."""
        return bool(self.COMMENTS_QUEUE_URL)


def get_handler_env_vars() -> CommentsHandlerEnvVars:
    """
    Get typed environment variables for the comment handlers.

    Returns:
        Validated environment variables model instance
    """
    return get_environment_variables(model=CommentsHandlerEnvVars)
