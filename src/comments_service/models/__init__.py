"""
Service Models Package

This package contains all Pydantic models used throughout the service,
including input validation models, output response models, queue messages
and the Comment domain model.
"""

from .comment import Comment, generate_comment_id, utc_now_iso
from .input import (
    CreateCommentRequest,
    CreateUserCommentRequest,
    UpdateCommentRequest,
    UpdateUserCommentRequest,
)
from .messages import CommentAction, CommentMessage
from .output import CommentAcceptedOutput, DeleteCommentOutput

__all__ = [
    # Input models
    "CreateCommentRequest",
    "UpdateCommentRequest",
    "CreateUserCommentRequest",
    "UpdateUserCommentRequest",

    # Output models
    "CommentAcceptedOutput",
    "DeleteCommentOutput",

    # Queue messages
    "CommentAction",
    "CommentMessage",

    # Domain models
    "Comment",
    "generate_comment_id",
    "utc_now_iso",
]
