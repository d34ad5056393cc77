"""
User Comments Handler - Lambda function for the claims-authorized comments API.

Callers are identified by the claims the API Gateway authorizer injects into
the event. The author name, user id and email of new comments come from those
claims, and only the owner may change or delete a comment.

When COMMENTS_QUEUE_URL is set, creates, updates and deletes are validated and
authorized here, then handed to the comments queue and answered with 202; the
queue consumer applies them to the table.
"""

import json
import os
from typing import Any, Dict, Optional

from aws_lambda_powertools.event_handler import Response
from aws_lambda_powertools.logging import correlation_paths
from aws_lambda_powertools.metrics import MetricUnit
from aws_lambda_powertools.utilities.typing import LambdaContext

from comments_service.dal.dynamodb_handler import DynamoDBHandler
from comments_service.dal.sqs_handler import SQSHandler
from comments_service.handlers.models.env_vars import get_handler_env_vars
from comments_service.handlers.utils.errors import ValidationError as ServiceValidationError
from comments_service.handlers.utils.observability import logger, metrics, tracer
from comments_service.handlers.utils.rest_api_resolver import (
    COMMENT_PATH,
    COMMENTS_PATH,
    create_api_response,
    create_resolver,
    handle_service_errors,
    parse_request_body,
    request_error_context,
)
from comments_service.logic.comment_service import CommentService
from comments_service.models.input import CreateUserCommentRequest, UpdateUserCommentRequest
from comments_service.models.output import DeleteCommentOutput
from comments_service.security.auth import UserClaims, extract_user_claims

app = create_resolver(allow_origin=get_handler_env_vars().CORS_ALLOW_ORIGIN)

_comment_service: Optional[CommentService] = None


def get_comment_service() -> CommentService:
    """Get or create the comment service, with a queue when queued writes are enabled."""
    global _comment_service

    if _comment_service is None:
        env_vars = get_handler_env_vars()
        queue = SQSHandler(queue_url=env_vars.COMMENTS_QUEUE_URL) if env_vars.async_writes_enabled else None
        _comment_service = CommentService(
            comments_dal=DynamoDBHandler(
                table_name=env_vars.TABLE_NAME,
                endpoint_url=env_vars.DYNAMODB_ENDPOINT,
            ),
            queue=queue,
        )

    return _comment_service


def _current_claims(operation: str, resource_id: Optional[str] = None) -> UserClaims:
    context = request_error_context(app, operation=operation, resource_id=resource_id)
    return extract_user_claims(app.current_event.raw_event, context)


@app.get(COMMENTS_PATH)
@tracer.capture_method
@handle_service_errors
def list_comments() -> Response:
    """List every comment."""
    claims = _current_claims("list_comments")
    context = request_error_context(app, operation="list_comments", user_id=claims.user_id)

    comments = get_comment_service().list_comments(context=context)

    return create_api_response(
        status_code=200,
        body=[comment.to_response() for comment in comments],
    )


@app.get(COMMENT_PATH)
@tracer.capture_method
@handle_service_errors
def get_comment(comment_id: str) -> Response:
    """Get a comment by ID."""
    claims = _current_claims("get_comment", comment_id)
    context = request_error_context(app, operation="get_comment", resource_id=comment_id, user_id=claims.user_id)
    tracer.put_annotation("comment_id", comment_id)

    comment = get_comment_service().get_comment(comment_id, context=context)

    return create_api_response(status_code=200, body=comment)


@app.post(COMMENTS_PATH)
@tracer.capture_method
@handle_service_errors
def create_comment() -> Response:
    """Create a comment owned by the caller, or queue its creation."""
    claims = _current_claims("create_comment")
    context = request_error_context(app, operation="create_comment", user_id=claims.user_id)

    create_request = parse_request_body(app, CreateUserCommentRequest, context)
    service = get_comment_service()

    if service.async_writes:
        accepted = service.submit_user_comment(create_request, claims, context=context)
        return create_api_response(status_code=202, body=accepted)

    comment = service.create_user_comment(create_request, claims, context=context)

    return create_api_response(
        status_code=201,
        body=comment,
        headers={"Location": f"{COMMENTS_PATH}/{comment.id}"},
    )


@app.put(COMMENT_PATH)
@tracer.capture_method
@handle_service_errors
def update_comment(comment_id: str) -> Response:
    """Update the content of the caller's comment, or queue the update."""
    claims = _current_claims("update_comment", comment_id)
    context = request_error_context(app, operation="update_comment", resource_id=comment_id, user_id=claims.user_id)
    tracer.put_annotation("comment_id", comment_id)

    update_request = parse_request_body(app, UpdateUserCommentRequest, context)
    service = get_comment_service()

    if service.async_writes:
        accepted = service.submit_user_comment_update(comment_id, update_request, claims, context=context)
        return create_api_response(status_code=202, body=accepted)

    comment = service.update_user_comment(comment_id, update_request, claims, context=context)

    return create_api_response(status_code=200, body=comment)


@app.delete(COMMENT_PATH)
@tracer.capture_method
@handle_service_errors
def delete_comment(comment_id: str) -> Response:
    """Delete the caller's comment, or queue the deletion."""
    claims = _current_claims("delete_comment", comment_id)
    context = request_error_context(app, operation="delete_comment", resource_id=comment_id, user_id=claims.user_id)
    tracer.put_annotation("comment_id", comment_id)

    service = get_comment_service()

    if service.async_writes:
        accepted = service.submit_user_comment_delete(comment_id, claims, context=context)
        return create_api_response(status_code=202, body=accepted)

    service.delete_user_comment(comment_id, claims, context=context)

    return create_api_response(status_code=200, body=DeleteCommentOutput())


@app.route(COMMENTS_PATH, method=["PUT", "DELETE"])
@handle_service_errors
def comment_id_required() -> Response:
    """Reject writes addressed to the collection instead of a comment."""
    _current_claims("comment_id_required")
    raise ServiceValidationError(message="Comment ID is required")


@logger.inject_lambda_context(correlation_id_path=correlation_paths.API_GATEWAY_REST, clear_state=True)
@tracer.capture_lambda_handler
@metrics.log_metrics(capture_cold_start_metric=True)
def lambda_handler(event: Dict[str, Any], context: LambdaContext) -> Dict[str, Any]:
    """
    Main Lambda handler function.

    Args:
        event: API Gateway proxy event with authorizer claims
        context: Lambda context object

    Returns:
        API Gateway proxy response
    """
    try:
        metrics.add_metric(name="RequestCount", unit=MetricUnit.Count, value=1)
        tracer.put_annotation("service", "user-comments-api")
        tracer.put_annotation("environment", os.environ.get("ENVIRONMENT", "unknown"))

        return app.resolve(event, context)

    except Exception as e:
        metrics.add_metric(name="RequestError", unit=MetricUnit.Count, value=1)
        logger.exception("Unhandled error in lambda handler", extra={"error": str(e)})

        return {
            "statusCode": 500,
            "headers": {"Content-Type": "application/json"},
            "body": json.dumps({
                "error": {
                    "code": "INTERNAL_SERVER_ERROR",
                    "message": "An unexpected error occurred",
                    "error_id": context.aws_request_id,
                }
            }),
        }
