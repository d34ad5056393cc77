"""
Security Module for the comment handlers.

Authentication is performed upstream by the API Gateway authorizer; this
package reads the verified claims and enforces comment ownership.
"""

from .auth import (
    UserClaims,
    authorize_comment_owner,
    extract_user_claims,
)

__all__ = [
    'UserClaims',
    'authorize_comment_owner',
    'extract_user_claims',
]
