"""
FastAPI dependencies for authentication and database sessions.
"""

from typing import Annotated, Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from deepread.ai.primer_service import PrimerService
from deepread.database import get_db
from deepread.kernel.identity.auth_manager import get_signed_in_identifier
from deepread.kernel.identity.jwt import JWTManager, get_jwt_manager


# Security scheme
security = HTTPBearer(auto_error=False)


DbSession = Annotated[AsyncSession, Depends(get_db)]
JWT = Annotated[JWTManager, Depends(get_jwt_manager)]


async def get_current_user(
    credentials: Annotated[Optional[HTTPAuthorizationCredentials], Depends(security)],
    db: DbSession,
    jwt_manager: JWT,
) -> str:
    """Identifier of the signed-in user, or 401."""
    if not credentials:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )

    payload = jwt_manager.verify_access_token(credentials.credentials)
    if not payload:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
            headers={"WWW-Authenticate": "Bearer"},
        )

    # Tokens stop working once the user signs out
    if await get_signed_in_identifier(db) != payload.sub:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Signed out",
            headers={"WWW-Authenticate": "Bearer"},
        )

    return payload.sub


CurrentUser = Annotated[str, Depends(get_current_user)]


def get_primer_service(db: DbSession) -> PrimerService:
    """Primer service bound to the request session."""
    return PrimerService(db)


Primers = Annotated[PrimerService, Depends(get_primer_service)]
