"""
Business Logic Layer for Comment Management.

This module contains the comment operations shared by the HTTP handlers and
the queue consumer: reads, author-supplied writes, claims-owned writes, and
the queued variants of the owned writes.
"""

from typing import Any, Dict, List, Optional

from aws_lambda_powertools.metrics import MetricUnit
from boto3.dynamodb.conditions import Attr

from comments_service.dal.dynamodb_handler import ConditionalCheckFailedError, DynamoDBHandler
from comments_service.dal.sqs_handler import SQSHandler
from comments_service.handlers.utils.errors import BaseServiceError, ErrorContext, ErrorSeverity, ResourceNotFoundError
from comments_service.handlers.utils.observability import logger, metrics, tracer
from comments_service.models.comment import Comment, utc_now_iso
from comments_service.models.input import (
    CreateCommentRequest,
    CreateUserCommentRequest,
    UpdateCommentRequest,
    UpdateUserCommentRequest,
)
from comments_service.models.messages import CommentAction, CommentMessage
from comments_service.models.output import CommentAcceptedOutput
from comments_service.security.auth import UserClaims, authorize_comment_owner

# Conditional puts tried before a create gives up on fresh ids
CREATE_ID_ATTEMPTS = 3


class CommentNotFoundError(ResourceNotFoundError):
    """Raised when a comment is not found."""

    def __init__(self, comment_id: str, context: Optional[ErrorContext] = None):
        super().__init__(
            resource_type="Comment",
            resource_id=comment_id,
            context=context,
        )


class QueueNotConfiguredError(BaseServiceError):
    """Raised when a queued write is requested but no queue is configured."""

    def __init__(self, context: Optional[ErrorContext] = None):
        super().__init__(
            message="Comments queue is not configured",
            error_code="QUEUE_NOT_CONFIGURED",
            context=context,
        )


class CommentIdConflictError(BaseServiceError):
    """Raised when a queued create finds its ID taken by a different comment."""

    def __init__(self, comment_id: str, context: Optional[ErrorContext] = None):
        super().__init__(
            message=f"Comment ID '{comment_id}' is already used by another comment",
            error_code="COMMENT_ID_CONFLICT",
            severity=ErrorSeverity.HIGH,
            context=context,
        )
        self.comment_id = comment_id


class CommentService:
    """Business logic service for comment management."""

    def __init__(
        self,
        comments_dal: DynamoDBHandler,
        queue: Optional[SQSHandler] = None,
    ):
        """
        Initialize comment service.

        Args:
            comments_dal: DynamoDB handler for the comments table
            queue: SQS handler for offloaded writes; writes are synchronous when omitted
        """
        self.comments_dal = comments_dal
        self.queue = queue

        logger.info("Comment service initialized", extra={
            "table_name": comments_dal.table_name,
            "async_writes": self.async_writes,
        })

    @property
    def async_writes(self) -> bool:
        """Whether owned writes are offloaded to the queue."""
        return self.queue is not None

    @staticmethod
    def _key(comment_id: str) -> Dict[str, str]:
        return {'id': comment_id}

    # Reads

    @tracer.capture_method
    def list_comments(self, context: Optional[ErrorContext] = None) -> List[Comment]:
        """
        List every comment in the table.

        Follows scan pagination until the table is exhausted.
        """
        items: List[Dict[str, Any]] = []
        last_evaluated_key = None

        while True:
            page = self.comments_dal.scan_items(
                exclusive_start_key=last_evaluated_key,
                context=context,
            )
            items.extend(page['items'])
            last_evaluated_key = page.get('last_evaluated_key')
            if not last_evaluated_key:
                break

        comments = [Comment.model_validate(item) for item in items]

        metrics.add_metric(name="CommentsListed", unit=MetricUnit.Count, value=len(comments))
        logger.info("Comments listed", extra={"comments_count": len(comments)})

        return comments

    @tracer.capture_method
    def get_comment(
        self,
        comment_id: str,
        context: Optional[ErrorContext] = None,
        consistent_read: bool = False,
    ) -> Comment:
        """
        Get a comment by ID.

        Writes that check the comment first read it consistently so that a
        comment created just before is always found.

        Raises:
            CommentNotFoundError: If the comment does not exist
        """
        item = self.comments_dal.get_item(
            key=self._key(comment_id),
            consistent_read=consistent_read,
            context=context,
        )

        if not item:
            raise CommentNotFoundError(comment_id=comment_id, context=context)

        metrics.add_metric(name="CommentRetrieved", unit=MetricUnit.Count, value=1)
        return Comment.model_validate(item)

    # Author-supplied writes

    @tracer.capture_method
    def create_comment(self, request: CreateCommentRequest, context: Optional[ErrorContext] = None) -> Comment:
        """Create a comment whose author name is supplied by the client."""
        comment = Comment.create(content=request.content, author=request.author)
        return self._insert_new_comment(comment, context)

    @tracer.capture_method
    def update_comment(
        self,
        comment_id: str,
        request: UpdateCommentRequest,
        context: Optional[ErrorContext] = None,
    ) -> Comment:
        """
        Update the content and/or author of a comment.

        Raises:
            CommentNotFoundError: If the comment does not exist
        """
        self.get_comment(comment_id, context, consistent_read=True)

        update_parts = ['#updatedAt = :updatedAt']
        names = {'#updatedAt': 'updatedAt'}
        values: Dict[str, Any] = {':updatedAt': utc_now_iso()}

        if request.content is not None:
            update_parts.append('#content = :content')
            names['#content'] = 'content'
            values[':content'] = request.content

        if request.author is not None:
            update_parts.append('#author = :author')
            names['#author'] = 'author'
            values[':author'] = request.author

        try:
            attributes = self.comments_dal.update_item(
                key=self._key(comment_id),
                update_expression='SET ' + ', '.join(update_parts),
                expression_attribute_names=names,
                expression_attribute_values=values,
                condition_expression=Attr('id').exists(),
                context=context,
            )
        except ConditionalCheckFailedError:
            raise CommentNotFoundError(comment_id=comment_id, context=context)

        metrics.add_metric(name="CommentUpdated", unit=MetricUnit.Count, value=1)
        logger.info("Comment updated", extra={
            "comment_id": comment_id,
            "updated_fields": sorted(name.lstrip('#') for name in names),
        })

        return Comment.model_validate(attributes)

    @tracer.capture_method
    def delete_comment(self, comment_id: str, context: Optional[ErrorContext] = None) -> None:
        """
        Delete a comment.

        Raises:
            CommentNotFoundError: If the comment does not exist
        """
        deleted = self.comments_dal.delete_item(key=self._key(comment_id), context=context)

        if not deleted:
            raise CommentNotFoundError(comment_id=comment_id, context=context)

        metrics.add_metric(name="CommentDeleted", unit=MetricUnit.Count, value=1)
        logger.info("Comment deleted", extra={"comment_id": comment_id})

    # Claims-owned writes

    @tracer.capture_method
    def create_user_comment(
        self,
        request: CreateUserCommentRequest,
        claims: UserClaims,
        context: Optional[ErrorContext] = None,
    ) -> Comment:
        """Create a comment owned by the authenticated user."""
        comment = self._build_user_comment(request, claims)
        return self._insert_new_comment(comment, context)

    @tracer.capture_method
    def update_user_comment(
        self,
        comment_id: str,
        request: UpdateUserCommentRequest,
        claims: UserClaims,
        context: Optional[ErrorContext] = None,
    ) -> Comment:
        """
        Update the content of a comment owned by the authenticated user.

        Raises:
            CommentNotFoundError: If the comment does not exist
            AuthorizationError: If the comment belongs to another user
        """
        existing = self.get_comment(comment_id, context, consistent_read=True)
        authorize_comment_owner(claims, existing, context)

        try:
            return self._update_owned_content(
                comment_id=comment_id,
                user_id=claims.user_id,
                content=request.content,
                updated_at=utc_now_iso(),
                context=context,
            )
        except ConditionalCheckFailedError:
            raise CommentNotFoundError(comment_id=comment_id, context=context)

    @tracer.capture_method
    def delete_user_comment(
        self,
        comment_id: str,
        claims: UserClaims,
        context: Optional[ErrorContext] = None,
    ) -> None:
        """
        Delete a comment owned by the authenticated user.

        Raises:
            CommentNotFoundError: If the comment does not exist
            AuthorizationError: If the comment belongs to another user
        """
        existing = self.get_comment(comment_id, context, consistent_read=True)
        authorize_comment_owner(claims, existing, context)

        try:
            self._delete_owned(comment_id, claims.user_id, context)
        except ConditionalCheckFailedError:
            raise CommentNotFoundError(comment_id=comment_id, context=context)

    # Queued writes

    @tracer.capture_method
    def submit_user_comment(
        self,
        request: CreateUserCommentRequest,
        claims: UserClaims,
        context: Optional[ErrorContext] = None,
    ) -> CommentAcceptedOutput:
        """Queue the creation of a comment owned by the authenticated user."""
        comment = self._build_user_comment(request, claims)
        return self._enqueue(CommentMessage.for_create(comment), "Comment creation accepted", context)

    @tracer.capture_method
    def submit_user_comment_update(
        self,
        comment_id: str,
        request: UpdateUserCommentRequest,
        claims: UserClaims,
        context: Optional[ErrorContext] = None,
    ) -> CommentAcceptedOutput:
        """Check ownership, then queue a content update."""
        existing = self.get_comment(comment_id, context, consistent_read=True)
        authorize_comment_owner(claims, existing, context)

        message = CommentMessage.for_update(comment_id, claims.user_id, request.content)
        return self._enqueue(message, "Comment update accepted", context)

    @tracer.capture_method
    def submit_user_comment_delete(
        self,
        comment_id: str,
        claims: UserClaims,
        context: Optional[ErrorContext] = None,
    ) -> CommentAcceptedOutput:
        """Check ownership, then queue a deletion."""
        existing = self.get_comment(comment_id, context, consistent_read=True)
        authorize_comment_owner(claims, existing, context)

        message = CommentMessage.for_delete(comment_id, claims.user_id)
        return self._enqueue(message, "Comment deletion accepted", context)

    @tracer.capture_method
    def apply_message(self, message: CommentMessage, context: Optional[ErrorContext] = None) -> str:
        """
        Apply a queued write to the table.

        Writes are conditional so that redelivered or stale messages are
        skipped instead of failing the batch. A create is only skipped when the
        stored comment came from the same request.

        Returns:
            One of 'created', 'updated', 'deleted' or 'skipped'

        Raises:
            CommentIdConflictError: If a different comment already holds the ID
        """
        if message.action == CommentAction.CREATE:
            return self._apply_create(message, context)

        try:
            if message.action == CommentAction.UPDATE:
                self._update_owned_content(
                    comment_id=message.comment_id,
                    user_id=message.user_id,
                    content=message.content,
                    updated_at=message.requested_at,
                    context=context,
                )
                outcome = 'updated'
            else:
                self._delete_owned(message.comment_id, message.user_id, context)
                outcome = 'deleted'
        except ConditionalCheckFailedError:
            metrics.add_metric(name="QueuedWriteSkipped", unit=MetricUnit.Count, value=1)
            logger.warning("Queued comment write skipped, condition not met", extra={
                "action": message.action.value,
                "comment_id": message.comment_id,
                "user_id": message.user_id,
            })
            return 'skipped'

        logger.info("Queued comment write applied", extra={
            "action": message.action.value,
            "comment_id": message.comment_id,
        })
        return outcome

    def _apply_create(self, message: CommentMessage, context: Optional[ErrorContext]) -> str:
        comment = message.to_comment()

        try:
            self._store_new_comment(comment, context)
        except ConditionalCheckFailedError:
            existing = self.comments_dal.get_item(
                key=self._key(comment.id),
                consistent_read=True,
                context=context,
            )
            if existing is None or not comment.is_same_write(existing):
                metrics.add_metric(name="QueuedCreateConflict", unit=MetricUnit.Count, value=1)
                raise CommentIdConflictError(comment_id=comment.id, context=context)

            metrics.add_metric(name="QueuedWriteSkipped", unit=MetricUnit.Count, value=1)
            logger.warning("Queued comment create skipped, already applied", extra={
                "comment_id": comment.id,
                "user_id": comment.user_id,
            })
            return 'skipped'

        logger.info("Queued comment write applied", extra={
            "action": message.action.value,
            "comment_id": comment.id,
        })
        return 'created'

    # Helpers

    @staticmethod
    def _build_user_comment(request: CreateUserCommentRequest, claims: UserClaims) -> Comment:
        return Comment.create(
            content=request.content,
            author=claims.display_name,
            user_id=claims.user_id,
            user_email=claims.email,
        )

    def _insert_new_comment(self, comment: Comment, context: Optional[ErrorContext]) -> Comment:
        """Store a new comment, moving to a fresh ID when the current one is taken."""
        for attempt in range(1, CREATE_ID_ATTEMPTS + 1):
            try:
                return self._store_new_comment(comment, context)
            except ConditionalCheckFailedError:
                if attempt == CREATE_ID_ATTEMPTS:
                    raise
                metrics.add_metric(name="CommentIdCollision", unit=MetricUnit.Count, value=1)
                logger.warning("Comment ID already taken, retrying with a new ID", extra={
                    "comment_id": comment.id,
                    "attempt": attempt,
                })
                comment = comment.with_new_id()

    def _store_new_comment(self, comment: Comment, context: Optional[ErrorContext]) -> Comment:
        self.comments_dal.put_item(
            item=comment.to_item(),
            condition_expression=Attr('id').not_exists(),
            context=context,
        )

        metrics.add_metric(name="CommentCreated", unit=MetricUnit.Count, value=1)
        logger.info("Comment created", extra={
            "comment_id": comment.id,
            "user_id": comment.user_id,
        })

        return comment

    def _update_owned_content(
        self,
        comment_id: str,
        user_id: str,
        content: str,
        updated_at: str,
        context: Optional[ErrorContext],
    ) -> Comment:
        attributes = self.comments_dal.update_item(
            key=self._key(comment_id),
            update_expression='SET #content = :content, #updatedAt = :updatedAt',
            expression_attribute_names={'#content': 'content', '#updatedAt': 'updatedAt'},
            expression_attribute_values={':content': content, ':updatedAt': updated_at},
            condition_expression=Attr('id').exists() & Attr('userId').eq(user_id),
            context=context,
        )

        metrics.add_metric(name="CommentUpdated", unit=MetricUnit.Count, value=1)
        logger.info("Comment content updated", extra={"comment_id": comment_id, "user_id": user_id})

        return Comment.model_validate(attributes)

    def _delete_owned(self, comment_id: str, user_id: str, context: Optional[ErrorContext]) -> None:
        self.comments_dal.delete_item(
            key=self._key(comment_id),
            condition_expression=Attr('id').exists() & Attr('userId').eq(user_id),
            context=context,
        )

        metrics.add_metric(name="CommentDeleted", unit=MetricUnit.Count, value=1)
        logger.info("Comment deleted", extra={"comment_id": comment_id, "user_id": user_id})

    def _enqueue(
        self,
        message: CommentMessage,
        description: str,
        context: Optional[ErrorContext],
    ) -> CommentAcceptedOutput:
        if self.queue is None:
            raise QueueNotConfiguredError(context=context)

        message_id = self.queue.send_message(
            body=message.to_body(),
            message_attributes={'action': message.action.value},
            context=context,
        )

        metrics.add_metric(name=f"Comment{message.action.value.capitalize()}Queued", unit=MetricUnit.Count, value=1)

        return CommentAcceptedOutput(
            message=description,
            action=message.action.value,
            comment_id=message.comment_id,
            message_id=message_id,
        )
