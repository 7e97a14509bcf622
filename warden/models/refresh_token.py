"""ORM model for refresh tokens stored on each successful login."""

import uuid

from sqlalchemy import Column, DateTime, ForeignKey, Text, Uuid, func

from warden.models.base import Base


class RefreshToken(Base):
    """One row per login. revoked_at is never set by the service today."""

    __tablename__ = "refresh_tokens"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(
        Uuid,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    token = Column(Text, nullable=False)
    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )
    expires_at = Column(DateTime(timezone=True), nullable=False)
    revoked_at = Column(DateTime(timezone=True), nullable=True)
