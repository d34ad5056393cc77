"""
Unit tests for Pydantic models.

This module tests the validation, serialization, and helper behaviour of the
comment, request, response and queue message models.
"""

import json
import re
import time

import pytest
from pydantic import ValidationError

from comments_service.models.comment import Comment, generate_comment_id, utc_now_iso
from comments_service.models.input import (
    CreateCommentRequest,
    CreateUserCommentRequest,
    UpdateCommentRequest,
    UpdateUserCommentRequest,
)
from comments_service.models.messages import CommentAction, CommentMessage
from comments_service.models.output import CommentAcceptedOutput, DeleteCommentOutput

ISO_MILLIS_UTC = re.compile(r'^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}\.\d{3}Z$')
COMMENT_ID = re.compile(r'^\d{13}-[0-9a-f]{8}$')


class TestCommentModel:
    """Test cases for the Comment domain model."""

    def test_create_generates_id_and_timestamps(self):
        """Test comment creation with generated fields."""
        comment = Comment.create(content="Hello world", author="Jane")

        assert COMMENT_ID.match(comment.id)
        assert comment.content == "Hello world"
        assert comment.author == "Jane"
        assert comment.user_id is None
        assert comment.user_email is None
        assert ISO_MILLIS_UTC.match(comment.created_at)
        assert comment.created_at == comment.updated_at

    def test_create_with_owner(self):
        """Test comment creation with owner fields."""
        comment = Comment.create(
            content="Owned",
            author="Olive",
            user_id="user-1",
            user_email="olive@example.com",
        )

        assert comment.user_id == "user-1"
        assert comment.user_email == "olive@example.com"
        assert comment.is_owned_by("user-1")
        assert not comment.is_owned_by("user-2")

    def test_comment_without_owner_is_owned_by_nobody(self):
        """Test comment without an owner matches no user."""
        comment = Comment.create(content="Anonymous", author="Anon")

        assert not comment.is_owned_by("user-1")

    def test_to_item_uses_camel_case_and_omits_missing_owner(self):
        """Test DynamoDB item uses camelCase keys and omits unset owner."""
        comment = Comment.create(content="Hello", author="Jane")

        item = comment.to_item()

        assert set(item) == {"id", "content", "author", "createdAt", "updatedAt"}

    def test_to_item_includes_owner_fields(self):
        """Test DynamoDB item includes owner fields when set."""
        comment = Comment.create(content="Hello", author="Jane", user_id="u-1", user_email="j@example.com")

        item = comment.to_item()

        assert item["userId"] == "u-1"
        assert item["userEmail"] == "j@example.com"

    def test_validates_stored_item(self):
        """Test validation of a stored DynamoDB item."""
        comment = Comment.model_validate({
            "id": "1705314600000-9f2c4a1b",
            "content": "Stored",
            "author": "Jane",
            "userId": "u-1",
            "createdAt": "2024-01-15T10:30:00.000Z",
            "updatedAt": "2024-01-15T10:31:00.000Z",
        })

        assert comment.user_id == "u-1"
        assert comment.updated_at == "2024-01-15T10:31:00.000Z"

    def test_content_over_limit_rejected(self):
        """Test content longer than the limit is rejected."""
        with pytest.raises(ValidationError):
            Comment.create(content="x" * 1001, author="Jane")

    def test_generated_ids_are_epoch_milliseconds(self):
        """Test generated IDs start with epoch milliseconds."""
        comment_id = generate_comment_id()

        assert COMMENT_ID.match(comment_id)
        assert abs(int(comment_id.split("-")[0]) - int(time.time() * 1000)) < 60_000

    def test_ids_created_together_are_distinct(self):
        """Test IDs generated back to back do not collide."""
        assert len({generate_comment_id() for _ in range(100)}) == 100

    def test_with_new_id_keeps_content_and_owner(self):
        """Test re-keying a comment keeps every other field."""
        comment = Comment.create(content="Hello", author="Jane", user_id="u-1")

        rekeyed = comment.with_new_id()

        assert rekeyed.id != comment.id
        assert rekeyed.model_dump(exclude={"id"}) == comment.model_dump(exclude={"id"})

    def test_is_same_write_compares_owner_and_creation_time(self):
        """Test matching a stored item against the comment that wrote it."""
        comment = Comment.create(content="Hello", author="Jane", user_id="u-1")
        item = comment.to_item()

        assert comment.is_same_write(item)
        assert not comment.is_same_write({**item, "userId": "u-2"})
        assert not comment.is_same_write({**item, "createdAt": "2024-01-15T10:30:00.000Z"})

    def test_utc_now_iso_format(self):
        """Test timestamp format."""
        assert ISO_MILLIS_UTC.match(utc_now_iso())


class TestCreateCommentRequest:
    """Test cases for CreateCommentRequest model."""

    def test_valid_request(self):
        """Test valid create request."""
        request = CreateCommentRequest(content="Nice post", author="Jane")

        assert request.content == "Nice post"
        assert request.author == "Jane"

    def test_content_boundaries(self):
        """Test content at the length boundaries."""
        assert CreateCommentRequest(content="x", author="Jane").content == "x"
        assert len(CreateCommentRequest(content="x" * 1000, author="Jane").content) == 1000

    @pytest.mark.parametrize("content", ["", "x" * 1001])
    def test_invalid_content_length(self, content):
        """Test content outside the length limits is rejected."""
        with pytest.raises(ValidationError) as exc_info:
            CreateCommentRequest(content=content, author="Jane")

        assert exc_info.value.errors()[0]["loc"] == ("content",)

    def test_author_too_long(self):
        """Test author longer than the limit is rejected."""
        with pytest.raises(ValidationError) as exc_info:
            CreateCommentRequest(content="Hello", author="a" * 51)

        assert exc_info.value.errors()[0]["loc"] == ("author",)

    def test_missing_fields(self):
        """Test missing required fields."""
        with pytest.raises(ValidationError) as exc_info:
            CreateCommentRequest.model_validate({})

        fields = {error["loc"][0] for error in exc_info.value.errors()}
        assert fields == {"content", "author"}

    def test_non_string_content_rejected(self):
        """Test non-string content is rejected."""
        with pytest.raises(ValidationError):
            CreateCommentRequest.model_validate({"content": 123, "author": "Jane"})


class TestUpdateCommentRequest:
    """Test cases for UpdateCommentRequest model."""

    def test_content_only(self):
        """Test update with content only."""
        request = UpdateCommentRequest(content="Edited")

        assert request.content == "Edited"
        assert request.author is None

    def test_author_only(self):
        """Test update with author only."""
        request = UpdateCommentRequest(author="New Name")

        assert request.content is None
        assert request.author == "New Name"

    def test_empty_update_rejected(self):
        """Test update with no fields is rejected."""
        with pytest.raises(ValidationError) as exc_info:
            UpdateCommentRequest()

        assert "At least one field must be updated" in str(exc_info.value)

    def test_empty_content_rejected(self):
        """Test update with empty content is rejected."""
        with pytest.raises(ValidationError):
            UpdateCommentRequest(content="")


class TestUserCommentRequests:
    """Test cases for the claims-owned request models."""

    def test_client_supplied_identity_is_ignored(self):
        """Test client-sent identity fields are ignored."""
        request = CreateUserCommentRequest.model_validate({
            "content": "Mine",
            "author": "Impostor",
            "userId": "someone-else",
        })

        assert request.content == "Mine"
        assert not hasattr(request, "author")

    @pytest.mark.parametrize("model", [CreateUserCommentRequest, UpdateUserCommentRequest])
    def test_blank_content_rejected(self, model):
        """Test whitespace-only content is rejected."""
        with pytest.raises(ValidationError) as exc_info:
            model(content="   ")

        assert "cannot be blank" in str(exc_info.value)

    def test_update_requires_content(self):
        """Test owned update requires content."""
        with pytest.raises(ValidationError):
            UpdateUserCommentRequest.model_validate({"author": "Jane"})


class TestOutputModels:
    """Test cases for response models."""

    def test_delete_output_default_message(self):
        """Test default delete response message."""
        assert DeleteCommentOutput().model_dump() == {"message": "Comment deleted successfully"}

    def test_accepted_output_serializes_camel_case(self):
        """Test accepted response serializes with camelCase keys."""
        output = CommentAcceptedOutput(
            message="Comment creation accepted",
            action="create",
            comment_id="1705314600000-9f2c4a1b",
            message_id="msg-1",
        )

        body = json.loads(output.model_dump_json(by_alias=True))

        assert body == {
            "message": "Comment creation accepted",
            "action": "create",
            "commentId": "1705314600000-9f2c4a1b",
            "messageId": "msg-1",
        }


class TestCommentMessage:
    """Test cases for queue messages."""

    def test_for_create_carries_full_comment(self):
        """Test create message round-trips the comment."""
        comment = Comment.create(content="Queued", author="Olive", user_id="u-1", user_email="o@example.com")

        message = CommentMessage.for_create(comment)

        assert message.action == CommentAction.CREATE
        assert message.comment_id == comment.id
        assert message.requested_at == comment.created_at
        assert message.to_comment() == comment

    def test_body_is_camel_case_json(self):
        """Test message body uses camelCase keys."""
        message = CommentMessage.for_update("123", "u-1", "Edited")

        body = message.to_body()

        assert body["action"] == "update"
        assert body["commentId"] == "123"
        assert body["userId"] == "u-1"
        assert body["content"] == "Edited"
        assert "author" not in body
        assert ISO_MILLIS_UTC.match(body["requestedAt"])

    def test_parses_queue_body(self):
        """Test parsing a queue message body."""
        message = CommentMessage.model_validate_json(json.dumps({
            "action": "delete",
            "commentId": "123",
            "userId": "u-1",
            "requestedAt": "2024-01-15T10:30:00.000Z",
        }))

        assert message.action == CommentAction.DELETE
        assert message.content is None

    def test_update_without_content_rejected(self):
        """Test update message without content is rejected."""
        with pytest.raises(ValidationError):
            CommentMessage(action=CommentAction.UPDATE, comment_id="123", user_id="u-1")

    def test_create_without_author_rejected(self):
        """Test create message without author is rejected."""
        with pytest.raises(ValidationError):
            CommentMessage(action=CommentAction.CREATE, comment_id="123", user_id="u-1", content="Hi")

    def test_unknown_action_rejected(self):
        """Test unknown message action is rejected."""
        with pytest.raises(ValidationError):
            CommentMessage.model_validate({"action": "archive", "commentId": "123", "userId": "u-1"})

    def test_create_author_over_limit_rejected(self):
        """Test create message with an author longer than the limit is rejected."""
        with pytest.raises(ValidationError) as exc_info:
            CommentMessage.model_validate_json(json.dumps({
                "action": "create",
                "commentId": "1",
                "userId": "u",
                "author": "a" * 51,
                "content": "hi",
                "requestedAt": "2024-01-15T10:30:00.000Z",
            }))

        assert exc_info.value.errors()[0]["loc"] == ("author",)

    def test_content_over_limit_rejected(self):
        """Test update message with content longer than the limit is rejected."""
        with pytest.raises(ValidationError):
            CommentMessage.for_update("123", "u-1", "x" * 1001)

    @pytest.mark.parametrize("requested_at", ["yesterday", "2024-01-15", "2024-01-15T10:30:00+00:00"])
    def test_malformed_requested_at_rejected(self, requested_at):
        """Test requestedAt must be an ISO timestamp with milliseconds."""
        with pytest.raises(ValidationError) as exc_info:
            CommentMessage.model_validate({
                "action": "delete",
                "commentId": "123",
                "userId": "u-1",
                "requestedAt": requested_at,
            })

        assert exc_info.value.errors()[0]["loc"] == ("requestedAt",)
