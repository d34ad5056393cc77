"""Queue message models for asynchronous comment writes."""

from enum import Enum
from typing import Annotated, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

from comments_service.models.comment import AUTHOR_MAX_LENGTH, CONTENT_MAX_LENGTH, Comment, utc_now_iso

# ISO-8601 UTC with milliseconds, as written by utc_now_iso
ISO_TIMESTAMP_PATTERN = r'^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}\.\d{3}Z$'


class CommentAction(str, Enum):
    """Write actions carried by queue messages."""

    CREATE = 'create'
    UPDATE = 'update'
    DELETE = 'delete'


class CommentMessage(BaseModel):
    """A comment write waiting on the queue."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    action: CommentAction
    comment_id: Annotated[str, Field(min_length=1)]
    user_id: Annotated[str, Field(min_length=1)]
    user_email: Optional[str] = None
    author: Optional[Annotated[str, Field(min_length=1, max_length=AUTHOR_MAX_LENGTH)]] = None
    content: Optional[Annotated[str, Field(min_length=1, max_length=CONTENT_MAX_LENGTH)]] = None
    requested_at: str = Field(default_factory=utc_now_iso, pattern=ISO_TIMESTAMP_PATTERN)

    @model_validator(mode='after')
    def validate_action_payload(self) -> 'CommentMessage':
        """Create messages need content and author, update messages need content."""
        if self.action in (CommentAction.CREATE, CommentAction.UPDATE) and self.content is None:
            raise ValueError(f'{self.action.value} message requires content')
        if self.action == CommentAction.CREATE and not self.author:
            raise ValueError('create message requires author')
        return self

    @classmethod
    def for_create(cls, comment: Comment) -> 'CommentMessage':
        return cls(
            action=CommentAction.CREATE,
            comment_id=comment.id,
            user_id=comment.user_id,
            user_email=comment.user_email,
            author=comment.author,
            content=comment.content,
            requested_at=comment.created_at,
        )

    @classmethod
    def for_update(cls, comment_id: str, user_id: str, content: str) -> 'CommentMessage':
        return cls(action=CommentAction.UPDATE, comment_id=comment_id, user_id=user_id, content=content)

    @classmethod
    def for_delete(cls, comment_id: str, user_id: str) -> 'CommentMessage':
        return cls(action=CommentAction.DELETE, comment_id=comment_id, user_id=user_id)

    def to_comment(self) -> Comment:
        """Build the comment a create message describes."""
        return Comment(
            id=self.comment_id,
            content=self.content,
            author=self.author,
            user_id=self.user_id,
            user_email=self.user_email,
            created_at=self.requested_at,
            updated_at=self.requested_at,
        )

    def to_body(self) -> dict:
        """Serialize to the JSON-compatible queue body."""
        return self.model_dump(mode='json', by_alias=True, exclude_none=True)
