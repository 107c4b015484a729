"""
StreetPaws Backend — Auth Token Model
=======================================

What:  ORM model for the `auth_tokens` table (issued bearer credentials).
How:   The raw token is handed to the client once; only its SHA-256 digest
       is stored, so a database leak does not leak usable credentials.
"""

import uuid
from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Index, String, Uuid, text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from streetpaws.database import Base
from streetpaws.models.user import User, utcnow


class AuthToken(Base):
    __tablename__ = "auth_tokens"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    token_hash: Mapped[str] = mapped_column(String(64), nullable=False, unique=True)
    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        server_default=text("CURRENT_TIMESTAMP"),
    )
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    user: Mapped[User] = relationship(lazy="raise")

    __table_args__ = (
        Index("idx_auth_tokens_user", "user_id"),
    )

    def __repr__(self) -> str:
        return f"<AuthToken(user_id={self.user_id}, expires_at='{self.expires_at}')>"
