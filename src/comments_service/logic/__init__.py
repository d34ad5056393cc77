"""
Business Logic Layer Module.

This module contains the comment operations that sit between the handlers and
the data access layer: ownership rules, queued write submission, and the
consumer-side application of queued writes.
"""

from comments_service.logic.comment_service import (
    CommentIdConflictError,
    CommentNotFoundError,
    CommentService,
    QueueNotConfiguredError,
)

__all__ = [
    "CommentIdConflictError",
    "CommentNotFoundError",
    "CommentService",
    "QueueNotConfiguredError",
]
