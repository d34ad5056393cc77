"""
Comments Service Module.

This package contains the comments service implementation following a
three-layer architecture:

- handlers: Lambda entry points for the basic API, the claims-authorized API
  and the queue consumer
- logic: Comment operations, ownership rules and queued writes
- dal: DynamoDB and SQS access
- models: Pydantic models for comments, requests, responses and queue messages
- security: Authorizer claim extraction and ownership checks
"""

__version__ = "1.0.0"
__description__ = "Serverless comments API with claims-based ownership and queued writes"

from comments_service.models.comment import Comment
from comments_service.models.input import (
    CreateCommentRequest,
    CreateUserCommentRequest,
    UpdateCommentRequest,
    UpdateUserCommentRequest,
)
from comments_service.models.messages import CommentAction, CommentMessage
from comments_service.handlers.utils.observability import logger, tracer, metrics

__all__ = [
    "Comment",
    "CommentAction",
    "CommentMessage",
    "CreateCommentRequest",
    "CreateUserCommentRequest",
    "UpdateCommentRequest",
    "UpdateUserCommentRequest",
    "logger",
    "tracer",
    "metrics",
]
