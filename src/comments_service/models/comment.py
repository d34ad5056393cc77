"""
Comment domain model for the business logic layer.

This module defines the core Comment entity used throughout the application.
Comments are stored and serialized with camelCase attribute names.
"""

import secrets
import time
from datetime import datetime, timezone
from typing import Annotated, Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

CONTENT_MAX_LENGTH = 1000
AUTHOR_MAX_LENGTH = 50


def generate_comment_id() -> str:
    """
    Generate a comment identifier from the current epoch milliseconds.

    A random hex suffix keeps ids created in the same millisecond apart,
    e.g. 1705314600000-9f2c4a1b.
    """
    return f'{time.time_ns() // 1_000_000}-{secrets.token_hex(4)}'


def utc_now_iso() -> str:
    """Current UTC time as ISO-8601 with millisecond precision, e.g. 2024-01-15T10:30:00.000Z."""
    return datetime.now(timezone.utc).isoformat(timespec='milliseconds').replace('+00:00', 'Z')


class Comment(BaseModel):
    """Core Comment domain model."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        json_schema_extra={
            "example": {
                "id": "1705314600000-9f2c4a1b",
                "content": "Great article, thanks for sharing!",
                "author": "Jane Smith",
                "userId": "3f1c9a52-8a4e-4cb1-9d55-0c1f2a4b7e21",
                "userEmail": "jane@example.com",
                "createdAt": "2024-01-15T10:30:00.000Z",
                "updatedAt": "2024-01-15T10:30:00.000Z",
            }
        },
    )

    id: Annotated[str, Field(
        min_length=1,
        description='Unique identifier for the comment',
        examples=['1705314600000-9f2c4a1b']
    )]

    content: Annotated[str, Field(
        min_length=1,
        max_length=CONTENT_MAX_LENGTH,
        description='Comment text',
    )]

    author: Annotated[str, Field(
        min_length=1,
        max_length=AUTHOR_MAX_LENGTH,
        description='Display name of the comment author',
        examples=['Jane Smith']
    )]

    user_id: Annotated[Optional[str], Field(
        description='Identifier of the owning user, taken from identity claims'
    )] = None

    user_email: Annotated[Optional[str], Field(
        description='Email of the owning user, taken from identity claims'
    )] = None

    created_at: Annotated[str, Field(
        description='ISO timestamp when the comment was created'
    )]

    updated_at: Annotated[str, Field(
        description='ISO timestamp when the comment was last updated'
    )]

    @classmethod
    def create(
        cls,
        content: str,
        author: str,
        user_id: Optional[str] = None,
        user_email: Optional[str] = None,
    ) -> 'Comment':
        """
        Create a new comment with generated ID and timestamps.

        Args:
            content: Comment text
            author: Display name of the author
            user_id: Owning user identifier, when the caller is authenticated
            user_email: Owning user email, when the caller is authenticated

        Returns:
            New Comment instance with generated fields
        """
        now = utc_now_iso()
        return cls(
            id=generate_comment_id(),
            content=content,
            author=author,
            user_id=user_id,
            user_email=user_email,
            created_at=now,
            updated_at=now,
        )

    def with_new_id(self) -> 'Comment':
        """Copy of this comment under a freshly generated ID."""
        return self.model_copy(update={'id': generate_comment_id()})

    def is_same_write(self, item: Dict[str, Any]) -> bool:
        """Check whether a stored item was written from this comment."""
        return item.get('userId') == self.user_id and item.get('createdAt') == self.created_at

    def is_owned_by(self, user_id: str) -> bool:
        """Check whether the given user owns this comment."""
        return self.user_id is not None and self.user_id == user_id

    def to_item(self) -> Dict[str, Any]:
        """Convert the comment to a DynamoDB item, omitting unset owner fields."""
        return self.model_dump(by_alias=True, exclude_none=True)

    def to_response(self) -> Dict[str, Any]:
        """Convert the comment to its JSON response shape."""
        return self.model_dump(mode='json', by_alias=True, exclude_none=True)
