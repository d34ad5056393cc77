"""
Pytest configuration and shared fixtures for the comments service.

Environment variables are set at import time, before any handler module is
imported, because handlers read their configuration when they are loaded.
"""

import json
import os
from typing import Any, Callable, Dict, Optional
from unittest.mock import Mock

import boto3
import pytest
from moto import mock_aws

os.environ.update({
    "AWS_DEFAULT_REGION": "us-east-1",
    "AWS_ACCESS_KEY_ID": "testing",
    "AWS_SECRET_ACCESS_KEY": "testing",
    "AWS_SECURITY_TOKEN": "testing",
    "AWS_SESSION_TOKEN": "testing",
    "TABLE_NAME": "test-comments-table",
    "ENVIRONMENT": "test",
    "LOG_LEVEL": "DEBUG",
    "POWERTOOLS_SERVICE_NAME": "test-comments-service",
    "POWERTOOLS_METRICS_NAMESPACE": "TestCommentsService",
    "POWERTOOLS_TRACE_DISABLED": "true",  # Disable X-Ray in tests
})
os.environ.pop("COMMENTS_QUEUE_URL", None)

from comments_service.dal.dynamodb_handler import DynamoDBHandler  # noqa: E402
from comments_service.dal.sqs_handler import SQSHandler  # noqa: E402
from comments_service.logic.comment_service import CommentService  # noqa: E402
from comments_service.security.auth import UserClaims  # noqa: E402

TABLE_NAME = "test-comments-table"
QUEUE_NAME = "test-comments-queue"

OWNER_CLAIMS = {
    "sub": "user-owner-1",
    "email": "owner@example.com",
    "cognito:username": "owner",
    "name": "Olive Owner",
}

OTHER_CLAIMS = {
    "sub": "user-other-2",
    "email": "other@example.com",
    "cognito:username": "other",
}


# AWS fixtures
@pytest.fixture
def aws():
    """Mock every AWS service for the duration of a test."""
    with mock_aws():
        yield


@pytest.fixture
def comments_table(aws):
    """Create a mock comments table keyed by id."""
    dynamodb = boto3.resource("dynamodb", region_name="us-east-1")
    table = dynamodb.create_table(
        TableName=TABLE_NAME,
        KeySchema=[{"AttributeName": "id", "KeyType": "HASH"}],
        AttributeDefinitions=[{"AttributeName": "id", "AttributeType": "S"}],
        BillingMode="PAY_PER_REQUEST",
    )
    table.wait_until_exists()
    yield table


@pytest.fixture
def comments_queue_url(aws) -> str:
    """Create a mock comments queue and return its URL."""
    sqs = boto3.client("sqs", region_name="us-east-1")
    return sqs.create_queue(QueueName=QUEUE_NAME)["QueueUrl"]


@pytest.fixture
def receive_queued(comments_queue_url) -> Callable[[], list]:
    """Return a helper that drains the comments queue."""
    sqs = boto3.client("sqs", region_name="us-east-1")

    def receive() -> list:
        response = sqs.receive_message(
            QueueUrl=comments_queue_url,
            MaxNumberOfMessages=10,
            MessageAttributeNames=["All"],
        )
        return response.get("Messages", [])

    return receive


@pytest.fixture
def comments_dal(comments_table) -> DynamoDBHandler:
    return DynamoDBHandler(TABLE_NAME)


@pytest.fixture
def comment_service(comments_dal) -> CommentService:
    """Comment service writing straight to the table."""
    return CommentService(comments_dal)


@pytest.fixture
def queued_comment_service(comments_dal, comments_queue_url) -> CommentService:
    """Comment service offloading owned writes to the queue."""
    return CommentService(comments_dal, queue=SQSHandler(comments_queue_url))


# Sample data fixtures
@pytest.fixture
def seed_comment(comments_table) -> Callable[..., Dict[str, Any]]:
    """Return a helper that writes a comment item directly to the table."""

    def seed(comment_id: str, content: str = "Seeded comment", author: str = "Seeder", **extra: Any) -> Dict[str, Any]:
        item = {
            "id": comment_id,
            "content": content,
            "author": author,
            "createdAt": "2024-01-15T10:30:00.000Z",
            "updatedAt": "2024-01-15T10:30:00.000Z",
            **extra,
        }
        comments_table.put_item(Item=item)
        return item

    return seed


@pytest.fixture
def seed_owned_comment(seed_comment) -> Callable[..., Dict[str, Any]]:
    """Return a helper that writes a comment owned by the given claims."""

    def seed(comment_id: str, claims: Dict[str, Any] = OWNER_CLAIMS, content: str = "Owned comment") -> Dict[str, Any]:
        return seed_comment(
            comment_id,
            content=content,
            author=claims.get("name") or claims["cognito:username"],
            userId=claims["sub"],
            userEmail=claims["email"],
        )

    return seed


@pytest.fixture
def owner_claims() -> UserClaims:
    return UserClaims.from_claims(OWNER_CLAIMS)


@pytest.fixture
def other_claims() -> UserClaims:
    return UserClaims.from_claims(OTHER_CLAIMS)


# Event fixtures
@pytest.fixture
def api_gateway_event() -> Callable[..., Dict[str, Any]]:
    """Return a builder for API Gateway REST proxy events."""

    def build(
        method: str,
        path: str,
        body: Optional[Any] = None,
        claims: Optional[Dict[str, Any]] = None,
        path_parameters: Optional[Dict[str, str]] = None,
    ) -> Dict[str, Any]:
        if body is not None and not isinstance(body, str):
            body = json.dumps(body)

        request_context: Dict[str, Any] = {
            "requestId": "test-request-id-123",
            "accountId": "123456789012",
            "stage": "test",
            "httpMethod": method,
            "path": path,
            "resourcePath": path,
            "protocol": "HTTP/1.1",
            "requestTime": "15/Jan/2024:10:30:00 +0000",
            "requestTimeEpoch": 1705314600000,
            "identity": {
                "sourceIp": "127.0.0.1",
                "userAgent": "test-agent/1.0",
            },
        }
        if claims is not None:
            request_context["authorizer"] = {"claims": claims}

        return {
            "resource": path,
            "httpMethod": method,
            "path": path,
            "headers": {
                "Content-Type": "application/json",
                "User-Agent": "test-agent/1.0",
            },
            "multiValueHeaders": {},
            "body": body,
            "requestContext": request_context,
            "pathParameters": path_parameters,
            "queryStringParameters": None,
            "multiValueQueryStringParameters": None,
            "stageVariables": None,
            "isBase64Encoded": False,
        }

    return build


@pytest.fixture
def sqs_event() -> Callable[..., Dict[str, Any]]:
    """Return a builder for SQS events from (message_id, body) pairs."""

    def build(*records: tuple) -> Dict[str, Any]:
        return {
            "Records": [
                {
                    "messageId": message_id,
                    "receiptHandle": f"receipt-{message_id}",
                    "body": body if isinstance(body, str) else json.dumps(body),
                    "attributes": {
                        "ApproximateReceiveCount": "1",
                        "SentTimestamp": "1705314600000",
                        "SenderId": "123456789012",
                        "ApproximateFirstReceiveTimestamp": "1705314600001",
                    },
                    "messageAttributes": {},
                    "md5OfBody": "",
                    "eventSource": "aws:sqs",
                    "eventSourceARN": f"arn:aws:sqs:us-east-1:123456789012:{QUEUE_NAME}",
                    "awsRegion": "us-east-1",
                }
                for message_id, body in records
            ]
        }

    return build


@pytest.fixture
def lambda_context():
    """Create a mock Lambda context for testing."""
    context = Mock()
    context.function_name = "test-comments-function"
    context.function_version = "1"
    context.invoked_function_arn = "arn:aws:lambda:us-east-1:123456789012:function:test-comments-function"
    context.memory_limit_in_mb = 512
    context.get_remaining_time_in_millis = lambda: 30000
    context.aws_request_id = "test-request-id-123"
    context.log_group_name = "/aws/lambda/test-comments-function"
    context.log_stream_name = "2024/01/15/[$LATEST]test123"
    return context


# Response helpers
def response_json(response: Dict[str, Any]) -> Any:
    """Decode the JSON body of a proxy response."""
    return json.loads(response["body"])


def response_header(response: Dict[str, Any], name: str) -> Optional[str]:
    """Read a header from a proxy response, single or multi-value."""
    headers = response.get("headers") or {}
    if name in headers:
        return headers[name]
    values = (response.get("multiValueHeaders") or {}).get(name)
    return values[0] if values else None


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their location."""
    for item in items:
        if "unit" in str(item.fspath):
            item.add_marker(pytest.mark.unit)
        elif "integration" in str(item.fspath):
            item.add_marker(pytest.mark.integration)
