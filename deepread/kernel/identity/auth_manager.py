"""
Auth manager - handles the platform sign-in result and the signed-in state.

The identity provider (Sign in with Apple) issues credentials; this module
only consumes the result. The provider's user identifier is kept in the
credential store and exchanged for an API bearer token.
"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from deepread.kernel.events.event_store import EventStore
from deepread.kernel.identity.jwt import AccessToken, JWTManager, get_jwt_manager
from deepread.kernel.models.auth_credential import AuthCredential
from deepread.kernel.models.event_log import EventType
from deepread.logging_config import get_logger

logger = get_logger(__name__)

INVALID_CREDENTIAL_MESSAGE = "Invalid Apple credential."


class CredentialKind(str, Enum):
    APPLE_ID = "apple_id"
    PASSWORD = "password"
    OTHER = "other"


class CloudAccountStatus(str, Enum):
    AVAILABLE = "available"
    NO_ACCOUNT = "no_account"
    RESTRICTED = "restricted"
    COULD_NOT_DETERMINE = "could_not_determine"
    TEMPORARILY_UNAVAILABLE = "temporarily_unavailable"


# Transient states count as available to avoid false negatives on launch
_AVAILABLE_STATUSES = {
    CloudAccountStatus.AVAILABLE,
    CloudAccountStatus.COULD_NOT_DETERMINE,
    CloudAccountStatus.TEMPORARILY_UNAVAILABLE,
}


class AuthorizationCredential(BaseModel):
    kind: CredentialKind
    user: Optional[str] = None


class AuthorizationResult(BaseModel):
    """Outcome of the platform sign-in sheet: a credential, or an error message."""

    credential: Optional[AuthorizationCredential] = None
    error: Optional[str] = None

    @property
    def succeeded(self) -> bool:
        return self.error is None and self.credential is not None


class AuthManager:
    """Signed-in state plus the cloud-account availability flag and the last auth error."""

    USER_ID_KEY = "apple_user_id"

    def __init__(self, session: AsyncSession, jwt_manager: Optional[JWTManager] = None):
        self.session = session
        self.jwt_manager = jwt_manager or get_jwt_manager()
        self.event_store = EventStore(session)

        self.user_identifier: Optional[str] = None
        self.cloud_account_available: bool = True
        self.auth_error_message: Optional[str] = None

    @property
    def is_signed_in(self) -> bool:
        return self.user_identifier is not None

    async def load(self) -> "AuthManager":
        """Restore the signed-in identifier from the credential store."""
        credential = await self.session.get(AuthCredential, self.USER_ID_KEY)
        self.user_identifier = credential.value if credential else None
        return self

    async def handle_authorization(self, result: AuthorizationResult) -> Optional[AccessToken]:
        """
        Apply a sign-in result.

        Returns a bearer token on success; otherwise sets `auth_error_message`
        and returns None.
        """
        if not result.succeeded:
            self.auth_error_message = result.error or INVALID_CREDENTIAL_MESSAGE
            logger.info("Sign-in failed: %s", self.auth_error_message)
            return None

        credential = result.credential
        if credential.kind != CredentialKind.APPLE_ID or not credential.user:
            self.auth_error_message = INVALID_CREDENTIAL_MESSAGE
            logger.info("Sign-in rejected credential of kind %s", credential.kind.value)
            return None

        await self._store_identifier(credential.user)
        self.user_identifier = credential.user
        self.auth_error_message = None
        await self.event_store.log(
            event_type=EventType.USER_SIGNED_IN,
            entity_type="user",
            entity_id=credential.user,
        )
        logger.info("User signed in")
        return self.jwt_manager.create_access_token(credential.user)

    async def sign_out(self) -> None:
        """Forget the stored identifier."""
        credential = await self.session.get(AuthCredential, self.USER_ID_KEY)
        previous = self.user_identifier or (credential.value if credential else None)
        if credential is not None:
            await self.session.delete(credential)
            await self.session.flush()
        self.user_identifier = None
        if previous:
            await self.event_store.log(
                event_type=EventType.USER_SIGNED_OUT,
                entity_type="user",
                entity_id=previous,
            )

    def check_cloud_account_status(
        self,
        status: CloudAccountStatus,
        fallback_status: Optional[CloudAccountStatus] = None,
    ) -> bool:
        """
        Update `cloud_account_available` from the app container's account status.

        When the app container reports no usable account, the default
        container's status (`fallback_status`) decides, since a freshly
        provisioned container can lag behind.
        """
        if status in _AVAILABLE_STATUSES:
            self.cloud_account_available = True
        elif fallback_status is not None:
            self.cloud_account_available = fallback_status in _AVAILABLE_STATUSES
        else:
            self.cloud_account_available = False
        return self.cloud_account_available

    async def _store_identifier(self, user_identifier: str) -> None:
        credential = await self.session.get(AuthCredential, self.USER_ID_KEY)
        if credential is None:
            self.session.add(AuthCredential(key=self.USER_ID_KEY, value=user_identifier))
        else:
            credential.value = user_identifier
        await self.session.flush()


async def get_signed_in_identifier(session: AsyncSession) -> Optional[str]:
    """Identifier of the signed-in user, if any."""
    result = await session.execute(
        select(AuthCredential.value).where(AuthCredential.key == AuthManager.USER_ID_KEY)
    )
    return result.scalar_one_or_none()
