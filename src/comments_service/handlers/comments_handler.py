"""
Comments Handler - Lambda function for the basic comments API.

The author name is supplied in the request body and no identity is required.
Routes map one-to-one onto the comment service:

- GET    /comments        list every comment
- GET    /comments/{id}   get one comment
- POST   /comments        create a comment
- PUT    /comments/{id}   update content and/or author
- DELETE /comments/{id}   delete a comment
"""

import json
import os
from typing import Any, Dict, Optional

from aws_lambda_powertools.event_handler import Response
from aws_lambda_powertools.logging import correlation_paths
from aws_lambda_powertools.metrics import MetricUnit
from aws_lambda_powertools.utilities.typing import LambdaContext

from comments_service.dal.dynamodb_handler import DynamoDBHandler
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
from comments_service.models.input import CreateCommentRequest, UpdateCommentRequest
from comments_service.models.output import DeleteCommentOutput

app = create_resolver(allow_origin=get_handler_env_vars().CORS_ALLOW_ORIGIN)

_comment_service: Optional[CommentService] = None


def get_comment_service() -> CommentService:
    """Get or create the comment service for this execution environment."""
    global _comment_service

    if _comment_service is None:
        env_vars = get_handler_env_vars()
        _comment_service = CommentService(
            comments_dal=DynamoDBHandler(
                table_name=env_vars.TABLE_NAME,
                endpoint_url=env_vars.DYNAMODB_ENDPOINT,
            ),
        )

    return _comment_service


@app.get(COMMENTS_PATH)
@tracer.capture_method
@handle_service_errors
def list_comments() -> Response:
    """List every comment."""
    context = request_error_context(app, operation="list_comments")

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
    context = request_error_context(app, operation="get_comment", resource_id=comment_id)
    tracer.put_annotation("comment_id", comment_id)

    comment = get_comment_service().get_comment(comment_id, context=context)

    return create_api_response(status_code=200, body=comment)


@app.post(COMMENTS_PATH)
@tracer.capture_method
@handle_service_errors
def create_comment() -> Response:
    """Create a comment with the author given in the body."""
    context = request_error_context(app, operation="create_comment")

    create_request = parse_request_body(app, CreateCommentRequest, context)
    comment = get_comment_service().create_comment(create_request, context=context)

    return create_api_response(
        status_code=201,
        body=comment,
        headers={"Location": f"{COMMENTS_PATH}/{comment.id}"},
    )


@app.put(COMMENT_PATH)
@tracer.capture_method
@handle_service_errors
def update_comment(comment_id: str) -> Response:
    """Update the content and/or author of a comment."""
    context = request_error_context(app, operation="update_comment", resource_id=comment_id)
    tracer.put_annotation("comment_id", comment_id)

    update_request = parse_request_body(app, UpdateCommentRequest, context)
    comment = get_comment_service().update_comment(comment_id, update_request, context=context)

    return create_api_response(status_code=200, body=comment)


@app.delete(COMMENT_PATH)
@tracer.capture_method
@handle_service_errors
def delete_comment(comment_id: str) -> Response:
    """Delete a comment."""
    context = request_error_context(app, operation="delete_comment", resource_id=comment_id)
    tracer.put_annotation("comment_id", comment_id)

    get_comment_service().delete_comment(comment_id, context=context)

    return create_api_response(status_code=200, body=DeleteCommentOutput())


@app.route(COMMENTS_PATH, method=["PUT", "DELETE"])
@handle_service_errors
def comment_id_required() -> Response:
    """Reject writes addressed to the collection instead of a comment."""
    raise ServiceValidationError(message="Comment ID is required")


@logger.inject_lambda_context(correlation_id_path=correlation_paths.API_GATEWAY_REST, clear_state=True)
@tracer.capture_lambda_handler
@metrics.log_metrics(capture_cold_start_metric=True)
def lambda_handler(event: Dict[str, Any], context: LambdaContext) -> Dict[str, Any]:
    """
    Main Lambda handler function.

    Args:
        event: API Gateway proxy event
        context: Lambda context object

    Returns:
        API Gateway proxy response
    """
    try:
        metrics.add_metric(name="RequestCount", unit=MetricUnit.Count, value=1)
        tracer.put_annotation("service", "comments-api")
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
