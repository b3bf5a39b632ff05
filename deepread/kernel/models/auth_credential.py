"""
Stored sign-in credentials (key/value, one row per key).
"""

from datetime import datetime

from sqlalchemy import DateTime, String
from sqlalchemy.orm import Mapped, mapped_column

from deepread.kernel.models.base import Base, utcnow


class AuthCredential(Base):
    """Secure-store entry, e.g. key "apple_user_id" -> the platform user identifier."""

    __tablename__ = "auth_credentials"

    key: Mapped[str] = mapped_column(String(100), primary_key=True)
    value: Mapped[str] = mapped_column(String(500), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        onupdate=utcnow,
        nullable=False,
    )
