"""
Authentication schemas.
"""

from typing import Optional

from pydantic import BaseModel

from deepread.kernel.identity.auth_manager import CloudAccountStatus, CredentialKind


class AppleSignInRequest(BaseModel):
    """Result of the platform sign-in sheet, forwarded by the client."""

    credential_kind: Optional[CredentialKind] = None
    user: Optional[str] = None
    error: Optional[str] = None


class TokenResponse(BaseModel):
    """Bearer token response."""

    access_token: str
    token_type: str = "bearer"
    expires_in: int


class AuthStatusResponse(BaseModel):
    """Signed-in state."""

    is_signed_in: bool
    user_identifier: Optional[str] = None


class CloudStatusRequest(BaseModel):
    """Cloud account status of the app container, plus the default container's as fallback."""

    status: CloudAccountStatus
    fallback_status: Optional[CloudAccountStatus] = None


class CloudStatusResponse(BaseModel):
    cloud_account_available: bool
