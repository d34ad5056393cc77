"""
Output models for API responses using Pydantic.

Comment bodies are serialized straight from the Comment domain model; the
models here cover the remaining response shapes.
"""

from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class DeleteCommentOutput(BaseModel):
    """Response model for a completed deletion."""

    message: Annotated[str, Field(
        description='Human readable outcome',
        examples=['Comment deleted successfully']
    )] = 'Comment deleted successfully'


class CommentAcceptedOutput(BaseModel):
    """Response model for a write accepted onto the comments queue."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    message: Annotated[str, Field(
        description='Human readable outcome',
        examples=['Comment creation accepted']
    )]

    action: Annotated[str, Field(
        description='Queued write action',
        examples=['create', 'update', 'delete']
    )]

    comment_id: Annotated[str, Field(
        description='Identifier of the comment the write applies to',
        examples=['1705314600000-9f2c4a1b']
    )]

    message_id: Annotated[str, Field(
        description='Queue message identifier',
        examples=['5fea7756-0ea4-451a-a703-a558b933e274']
    )]
