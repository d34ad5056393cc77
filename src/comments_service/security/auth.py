"""
Identity claims and ownership checks for the comment handlers.

Tokens are verified upstream by the API Gateway authorizer (Cognito user pool
or JWT authorizer). This module only reads the claims the authorizer injected
into the event and compares the caller with the comment owner.
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional

from aws_lambda_powertools.metrics import MetricUnit

from comments_service.handlers.utils.errors import AuthenticationError, AuthorizationError, ErrorContext
from comments_service.handlers.utils.observability import logger, metrics, tracer
from comments_service.models.comment import AUTHOR_MAX_LENGTH, Comment


@dataclass
class UserClaims:
    """User claims from the request authorizer."""

    user_id: str
    email: Optional[str] = None
    username: Optional[str] = None
    name: Optional[str] = None

    @classmethod
    def from_claims(cls, claims: Dict[str, Any]) -> 'UserClaims':
        return cls(
            user_id=claims['sub'],
            email=claims.get('email') or None,
            username=claims.get('cognito:username') or claims.get('username') or None,
            name=claims.get('name') or None,
        )

    @property
    def display_name(self) -> str:
        """Author display name for comments written by this user."""
        for candidate in (self.name, self.username, self._email_local_part()):
            if candidate and candidate.strip():
                return candidate.strip()[:AUTHOR_MAX_LENGTH]
        return self.user_id[:AUTHOR_MAX_LENGTH]

    def _email_local_part(self) -> Optional[str]:
        if self.email and '@' in self.email:
            return self.email.split('@', 1)[0]
        return self.email


def _authorizer_claims(event: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    authorizer = (event.get('requestContext') or {}).get('authorizer') or {}
    # REST API Cognito authorizer
    claims = authorizer.get('claims')
    if claims is None:
        # HTTP API JWT authorizer
        claims = (authorizer.get('jwt') or {}).get('claims')
    return claims or None


@tracer.capture_method
def extract_user_claims(event: Dict[str, Any], context: Optional[ErrorContext] = None) -> UserClaims:
    """
    Extract the caller's identity from an API Gateway proxy event.

    Args:
        event: Raw API Gateway proxy event
        context: Error context for tracing

    Returns:
        Claims of the authenticated caller

    Raises:
        AuthenticationError: If the event carries no claims or no subject
    """
    claims = _authorizer_claims(event)

    if not claims or not claims.get('sub'):
        metrics.add_metric(name="MissingIdentityClaims", unit=MetricUnit.Count, value=1)
        raise AuthenticationError(context=context)

    user_claims = UserClaims.from_claims(claims)
    tracer.put_annotation("user_id", user_claims.user_id)
    logger.append_keys(user_id=user_claims.user_id)

    return user_claims


def authorize_comment_owner(
    claims: UserClaims,
    comment: Comment,
    context: Optional[ErrorContext] = None,
) -> None:
    """
    Check that the caller owns the comment.

    Raises:
        AuthorizationError: If the comment belongs to another user
    """
    if not comment.is_owned_by(claims.user_id):
        metrics.add_metric(name="CommentOwnershipDenied", unit=MetricUnit.Count, value=1)
        logger.warning("Comment ownership check failed", extra={
            "comment_id": comment.id,
            "owner_id": comment.user_id,
            "caller_id": claims.user_id,
        })
        raise AuthorizationError(
            message=f"User '{claims.user_id}' does not own comment '{comment.id}'",
            context=context,
        )
