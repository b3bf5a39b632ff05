"""
Bearer tokens for the API.

Sign-in is done by the platform identity provider; the provider's user
identifier is then exchanged for a short JWT signed with the app secret.
"""

import uuid
from datetime import datetime, timedelta, timezone
from typing import Optional

from jose import JWTError, jwt
from pydantic import BaseModel

from deepread.config import get_settings

TOKEN_ISSUER = "deepread"
TOKEN_TYPE = "access"


class AccessTokenPayload(BaseModel):
    """Verified claims of an access token."""

    sub: str  # Platform user identifier
    exp: datetime
    iat: datetime
    jti: str


class AccessToken(BaseModel):
    """Issued bearer token."""

    access_token: str
    token_type: str = "bearer"
    expires_in: int  # Seconds


class JWTManager:
    """Issues and verifies access tokens. Defaults come from settings."""

    def __init__(
        self,
        secret_key: Optional[str] = None,
        algorithm: Optional[str] = None,
        access_token_expire_minutes: Optional[int] = None,
    ):
        settings = get_settings()
        self.secret_key = secret_key or settings.secret_key
        self.algorithm = algorithm or settings.algorithm
        self.lifetime = timedelta(
            minutes=access_token_expire_minutes or settings.access_token_expire_minutes
        )

    def create_access_token(
        self,
        user_identifier: str,
        expires_delta: Optional[timedelta] = None,
    ) -> AccessToken:
        issued_at = datetime.now(timezone.utc)
        lifetime = expires_delta if expires_delta is not None else self.lifetime
        claims = {
            "iss": TOKEN_ISSUER,
            "sub": user_identifier,
            "iat": issued_at,
            "exp": issued_at + lifetime,
            "jti": uuid.uuid4().hex,
            "type": TOKEN_TYPE,
        }
        return AccessToken(
            access_token=jwt.encode(claims, self.secret_key, algorithm=self.algorithm),
            expires_in=int(lifetime.total_seconds()),
        )

    def verify_access_token(self, token: str) -> Optional[AccessTokenPayload]:
        """Claims of a valid, unexpired access token; None for anything else."""
        try:
            claims = jwt.decode(
                token,
                self.secret_key,
                algorithms=[self.algorithm],
                issuer=TOKEN_ISSUER,
            )
        except JWTError:
            return None

        if claims.get("type") != TOKEN_TYPE or not claims.get("sub"):
            return None

        return AccessTokenPayload(
            sub=claims["sub"],
            exp=datetime.fromtimestamp(claims["exp"], tz=timezone.utc),
            iat=datetime.fromtimestamp(claims["iat"], tz=timezone.utc),
            jti=claims["jti"],
        )


_jwt_manager: Optional[JWTManager] = None


def get_jwt_manager() -> JWTManager:
    """Process-wide manager built from settings (FastAPI dependency)."""
    global _jwt_manager
    if _jwt_manager is None:
        _jwt_manager = JWTManager()
    return _jwt_manager
