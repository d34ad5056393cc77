"""
Data Access Layer (DAL) for the comments service.

The DAL wraps the managed services the handlers depend on: the DynamoDB
comments table and the SQS queue used for offloaded writes.
"""

from comments_service.dal.dynamodb_handler import ConditionalCheckFailedError, DALError, DynamoDBHandler
from comments_service.dal.sqs_handler import SQSHandler

__all__ = [
    "ConditionalCheckFailedError",
    "DALError",
    "DynamoDBHandler",
    "SQSHandler",
]
