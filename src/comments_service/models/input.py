"""
Input models for request validation using Pydantic.

This module defines all input models used for validating incoming request
bodies to the comment handlers.
"""

from typing import Annotated, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from comments_service.models.comment import AUTHOR_MAX_LENGTH, CONTENT_MAX_LENGTH

ContentField = Annotated[str, Field(
    min_length=1,
    max_length=CONTENT_MAX_LENGTH,
    description='Comment text',
    examples=['Great article, thanks for sharing!']
)]

AuthorField = Annotated[str, Field(
    min_length=1,
    max_length=AUTHOR_MAX_LENGTH,
    description='Display name of the comment author',
    examples=['Jane Smith']
)]


class CreateCommentRequest(BaseModel):
    """Request model for creating a comment with an explicit author."""

    content: ContentField
    author: AuthorField


class UpdateCommentRequest(BaseModel):
    """Request model for updating a comment with an explicit author."""

    content: Optional[ContentField] = None
    author: Optional[AuthorField] = None

    @model_validator(mode='after')
    def validate_has_changes(self) -> 'UpdateCommentRequest':
        """Validate that at least one field is being updated."""
        if self.content is None and self.author is None:
            raise ValueError('At least one field must be updated')
        return self


class CreateUserCommentRequest(BaseModel):
    """
    Request model for creating a comment as the authenticated user.

    Author, user id and email come from identity claims; any such fields sent
    by the client are ignored.
    """

    model_config = ConfigDict(extra='ignore')

    content: ContentField

    @field_validator('content')
    @classmethod
    def validate_content_not_blank(cls, v: str) -> str:
        """Validate that content is not only whitespace."""
        if not v.strip():
            raise ValueError('Comment content cannot be blank')
        return v


class UpdateUserCommentRequest(BaseModel):
    """Request model for updating the content of the authenticated user's comment."""

    model_config = ConfigDict(extra='ignore')

    content: ContentField

    @field_validator('content')
    @classmethod
    def validate_content_not_blank(cls, v: str) -> str:
        """Validate that content is not only whitespace."""
        if not v.strip():
            raise ValueError('Comment content cannot be blank')
        return v
