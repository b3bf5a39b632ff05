"""
Authentication endpoints.
"""

from fastapi import APIRouter, HTTPException, status

from deepread.api.deps import JWT, CurrentUser, DbSession
from deepread.kernel.identity.auth_manager import (
    AuthManager,
    AuthorizationCredential,
    AuthorizationResult,
)
from deepread.schemas.auth import (
    AppleSignInRequest,
    AuthStatusResponse,
    CloudStatusRequest,
    CloudStatusResponse,
    TokenResponse,
)
from deepread.schemas.common import SuccessResponse

router = APIRouter()


@router.post("/apple", response_model=TokenResponse)
async def sign_in_with_apple(
    data: AppleSignInRequest,
    db: DbSession,
    jwt_manager: JWT,
):
    """
    Exchange a Sign in with Apple result for a bearer token.

    A failed sign-in, or a credential that is not an Apple ID, returns 401
    with the error message to show the user.
    """
    credential = None
    if data.credential_kind is not None:
        credential = AuthorizationCredential(kind=data.credential_kind, user=data.user)
    result = AuthorizationResult(credential=credential, error=data.error)

    manager = AuthManager(db, jwt_manager=jwt_manager)
    token = await manager.handle_authorization(result)
    if token is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=manager.auth_error_message,
        )

    return TokenResponse(
        access_token=token.access_token,
        token_type=token.token_type,
        expires_in=token.expires_in,
    )


@router.post("/sign-out", response_model=SuccessResponse)
async def sign_out(
    current_user: CurrentUser,
    db: DbSession,
):
    """Forget the signed-in user. Issued tokens stop working."""
    manager = await AuthManager(db).load()
    await manager.sign_out()
    return SuccessResponse(message="Signed out")


@router.get("/status", response_model=AuthStatusResponse)
async def auth_status(db: DbSession):
    """Whether a user is signed in on this store."""
    manager = await AuthManager(db).load()
    return AuthStatusResponse(
        is_signed_in=manager.is_signed_in,
        user_identifier=manager.user_identifier,
    )


@router.post("/cloud-status", response_model=CloudStatusResponse)
async def cloud_status(
    data: CloudStatusRequest,
    db: DbSession,
):
    """Resolve whether cloud sync is usable from the reported account statuses."""
    manager = AuthManager(db)
    available = manager.check_cloud_account_status(data.status, data.fallback_status)
    return CloudStatusResponse(cloud_account_available=available)
