"""
REST API resolver utilities for the comment handlers.

This module builds configured API Gateway REST resolvers and holds the helpers
every route shares: request body parsing, JSON responses, security headers,
and translation of service errors into HTTP responses.
"""

import functools
import json
from typing import Any, Callable, Dict, Optional, Type, TypeVar

from aws_lambda_powertools.event_handler import APIGatewayRestResolver, CORSConfig, Response, content_types
from aws_lambda_powertools.event_handler.exceptions import NotFoundError
from aws_lambda_powertools.event_handler.middlewares import NextMiddleware
from aws_lambda_powertools.metrics import MetricUnit
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from comments_service.handlers.utils.errors import (
    BaseServiceError,
    ErrorCategory,
    ErrorContext,
    ErrorSeverity,
    MethodNotAllowedError,
    ValidationError as ServiceValidationError,
    create_error_context,
    format_error_response,
    get_http_status_code,
    log_error_metrics,
)
from comments_service.handlers.utils.observability import logger, metrics

M = TypeVar('M', bound=BaseModel)

# API path constants
COMMENTS_PATH = '/comments'
COMMENT_PATH = '/comments/<comment_id>'

SECURITY_HEADERS = {
    'X-Content-Type-Options': 'nosniff',
    'X-Frame-Options': 'DENY',
    'Strict-Transport-Security': 'max-age=31536000; includeSubDomains',
    'Referrer-Policy': 'strict-origin-when-cross-origin',
}


def is_comments_resource(path: str) -> bool:
    """Check whether a path is the comments collection or a single comment."""
    if path == COMMENTS_PATH:
        return True
    comment_id = path[len(COMMENTS_PATH) + 1:] if path.startswith(COMMENTS_PATH + '/') else ''
    return bool(comment_id) and '/' not in comment_id


def add_security_headers(app: APIGatewayRestResolver, next_middleware: NextMiddleware) -> Response:
    """Add security headers to all responses."""
    response = next_middleware(app)
    response.headers.update(SECURITY_HEADERS)
    return response


def create_resolver(allow_origin: str = '*') -> APIGatewayRestResolver:
    """
    Create an API Gateway REST resolver for a comments API.

    Unknown verbs on /comments and /comments/{id} answer 405, any other unknown path 404.

    Args:
        allow_origin: CORS allowed origin

    Returns:
        Configured resolver
    """
    cors_config = CORSConfig(
        allow_origin=allow_origin,
        max_age=600,
        allow_headers=["content-type", "authorization", "x-amz-date", "x-api-key", "x-amz-security-token"],
    )

    app = APIGatewayRestResolver(cors=cors_config)
    app.use(middlewares=[add_security_headers])

    @app.not_found
    def handle_not_found(exc: NotFoundError) -> Response:
        method = app.current_event.http_method
        path = app.current_event.path

        if is_comments_resource(path):
            error: BaseServiceError = MethodNotAllowedError(method=method, path=path)
            headers = {"Allow": "GET,POST,PUT,DELETE,OPTIONS"}
        else:
            error = BaseServiceError(
                message=f"No route for {method} {path}",
                error_code="RESOURCE_NOT_FOUND",
                severity=ErrorSeverity.LOW,
                user_message="Not Found",
            )
            headers = None

        logger.info("Unmatched route", extra={"http_method": method, "path": path})

        return create_api_response(
            status_code=get_http_status_code(error),
            body=format_error_response(error),
            headers=headers,
        )

    return app


def create_api_response(
    status_code: int,
    body: Any,
    headers: Optional[Dict[str, str]] = None,
) -> Response:
    """Create a JSON API Gateway response."""
    if isinstance(body, BaseModel):
        body = body.model_dump_json(by_alias=True, exclude_none=True)
    elif not isinstance(body, str):
        body = json.dumps(body)

    return Response(
        status_code=status_code,
        content_type=content_types.APPLICATION_JSON,
        body=body,
        headers=headers or {},
    )


def request_error_context(
    app: APIGatewayRestResolver,
    operation: str,
    resource_id: Optional[str] = None,
    user_id: Optional[str] = None,
) -> ErrorContext:
    """Build an error context from the current API Gateway event."""
    request_context = app.current_event.request_context
    request_id = request_context.request_id if request_context and request_context.request_id else "unknown"

    return create_error_context(
        request_id=request_id,
        operation=operation,
        resource_id=resource_id,
        user_id=user_id,
    )


def parse_request_body(app: APIGatewayRestResolver, model: Type[M], context: Optional[ErrorContext] = None) -> M:
    """
    Parse and validate the JSON request body.

    Raises:
        ValidationError: If the body is not a JSON object
        pydantic.ValidationError: If the body does not match the model
    """
    try:
        payload = json.loads(app.current_event.decoded_body or '{}')
    except json.JSONDecodeError:
        raise ServiceValidationError(message="Invalid JSON in request body", context=context)

    if not isinstance(payload, dict):
        raise ServiceValidationError(message="Request body must be a JSON object", context=context)

    return model.model_validate(payload)


def handle_service_errors(func: Callable[..., Response]) -> Callable[..., Response]:
    """Decorator to handle service errors and convert them to HTTP responses."""

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except BaseServiceError as e:
            log_error_metrics(e)

            headers = {"Retry-After": str(e.retry_after)} if e.retry_after else None
            return create_api_response(
                status_code=get_http_status_code(e),
                body=format_error_response(e),
                headers=headers,
            )

        except PydanticValidationError as e:
            logger.warning("Request validation failed", extra={
                "validation_errors": str(e),
                "error_count": e.error_count(),
            })
            metrics.add_metric(name="ValidationError", unit=MetricUnit.Count, value=1)

            field_errors = [
                {
                    "field": ".".join(str(part) for part in error["loc"]) or "body",
                    "message": error["msg"],
                }
                for error in e.errors()
            ]

            validation_error = ServiceValidationError(
                message="Request validation failed",
                field_errors=field_errors,
            )

            return create_api_response(
                status_code=400,
                body=format_error_response(validation_error),
            )

        except Exception as e:
            logger.exception("Unexpected error in handler", extra={
                "error": str(e),
                "function_name": func.__name__,
            })
            metrics.add_metric(name="UnexpectedError", unit=MetricUnit.Count, value=1)

            unexpected_error = BaseServiceError(
                message="An unexpected error occurred",
                error_code="INTERNAL_SERVER_ERROR",
                severity=ErrorSeverity.CRITICAL,
                category=ErrorCategory.INFRASTRUCTURE,
            )

            return create_api_response(
                status_code=500,
                body=format_error_response(unexpected_error),
            )

    return wrapper
