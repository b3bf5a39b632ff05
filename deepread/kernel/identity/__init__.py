"""
Identity - platform sign-in handling and API tokens.
"""

from deepread.kernel.identity.jwt import (
    AccessToken,
    AccessTokenPayload,
    JWTManager,
    get_jwt_manager,
)
from deepread.kernel.identity.auth_manager import (
    AuthManager,
    AuthorizationCredential,
    AuthorizationResult,
    CloudAccountStatus,
    CredentialKind,
    get_signed_in_identifier,
)

__all__ = [
    "AccessToken",
    "AccessTokenPayload",
    "JWTManager",
    "get_jwt_manager",
    "AuthManager",
    "AuthorizationCredential",
    "AuthorizationResult",
    "CloudAccountStatus",
    "CredentialKind",
    "get_signed_in_identifier",
]
