"""
StreetPaws Backend — Pet, Comment and Cheer Models
====================================================

What:  ORM models for the `pets`, `comments` and `pet_cheers` tables.
Why:   A pet listing owns an ordered list of comments and a set of cheering
       users. Relationally that is:
         - comments:   child table with FK to pets, ordered by
                       (position, created_at)
         - pet_cheers: membership table whose composite primary key
                       (pet_id, user_id) guarantees set semantics
Who:   Used by PetService for every listing operation and by Alembic.

Query Patterns:
    - Default listing: WHERE is_active ORDER BY created_at DESC LIMIT/OFFSET
      → idx_pets_created_at
    - Filtered listing: WHERE type = ? AND status = ?  → idx_pets_type_status
    - Per-owner listing and stats: WHERE posted_by_id = ? → idx_pets_posted_by
    - Comment removal: comments primary key lookup
    - Full-text search (PostgreSQL only): GIN index created by the migration
"""

import uuid
from datetime import datetime
from typing import List, Optional

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Table,
    Text,
    Uuid,
    text as sql_text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from streetpaws.database import Base
from streetpaws.models.user import User, utcnow


PET_TYPES = ("Dog", "Cat", "Bird", "Rat", "Other")
URGENCY_LEVELS = ("Low", "Medium", "High", "Critical")
PET_STATUSES = ("Available", "Adopted", "Fostered")


pet_cheers = Table(
    "pet_cheers",
    Base.metadata,
    Column("pet_id", Uuid, ForeignKey("pets.id", ondelete="CASCADE"), primary_key=True),
    Column("user_id", Uuid, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
    Column("created_at", DateTime(timezone=True), nullable=False, default=utcnow),
)


class Comment(Base):
    """
    A comment on a pet listing.

    `position` is the per-pet insertion sequence (0, 1, 2, ...). Two
    concurrent appends may pick the same position; created_at then breaks
    the tie.
    """

    __tablename__ = "comments"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    pet_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("pets.id", ondelete="CASCADE"), nullable=False
    )
    author_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id"), nullable=False
    )
    text: Mapped[str] = mapped_column(String(500), nullable=False)
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        server_default=sql_text("CURRENT_TIMESTAMP"),
    )

    author: Mapped[User] = relationship(lazy="raise")

    __table_args__ = (
        Index("idx_comments_pet_position", "pet_id", "position"),
    )

    def __repr__(self) -> str:
        return f"<Comment(id={self.id}, pet_id={self.pet_id}, position={self.position})>"


class Pet(Base):
    """
    A pet listing.

    Lifecycle:
        1. Created by an authenticated user (status='Available', views=0)
        2. Updated by owner or admin (fields and status, transitions unconstrained)
        3. Comments appended/removed, cheers toggled, views incremented
        4. Soft-deleted (is_active=False); the row and its children stay
    """

    __tablename__ = "pets"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    name: Mapped[str] = mapped_column(String(100), nullable=False)
    type: Mapped[str] = mapped_column(String(20), nullable=False)
    age: Mapped[str] = mapped_column(String(100), nullable=False)
    location: Mapped[str] = mapped_column(String(255), nullable=False)

    # [longitude, latitude]; optional
    longitude: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    latitude: Mapped[Optional[float]] = mapped_column(Float, nullable=True)

    description: Mapped[str] = mapped_column(String(1000), nullable=False)
    image_url: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    contact_number: Mapped[str] = mapped_column(String(50), nullable=False)
    contact_name: Mapped[str] = mapped_column(String(100), nullable=False)

    posted_by_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id"), nullable=False
    )

    urgency: Mapped[str] = mapped_column(
        String(20), nullable=False, default="Medium", server_default=sql_text("'Medium'")
    )
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default="Available", server_default=sql_text("'Available'")
    )
    traits: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)

    views: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0, server_default=sql_text("0")
    )
    is_active: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=True, server_default=sql_text("true")
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        server_default=sql_text("CURRENT_TIMESTAMP"),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        onupdate=utcnow,
        server_default=sql_text("CURRENT_TIMESTAMP"),
    )

    # ── Relationships ─────────────────────────────────────────────────────
    # lazy="raise": async sessions cannot lazy-load, so every query that
    # needs these must ask for them via selectinload (see PetService)
    posted_by: Mapped[User] = relationship(lazy="raise")
    comments: Mapped[List[Comment]] = relationship(
        order_by=[Comment.position, Comment.created_at],
        cascade="all, delete-orphan",
        lazy="raise",
    )
    cheers: Mapped[List[User]] = relationship(
        secondary=pet_cheers,
        order_by=pet_cheers.c.created_at,
        lazy="raise",
        viewonly=True,
    )

    __table_args__ = (
        Index("idx_pets_type_status", "type", "status"),
        Index("idx_pets_urgency", "urgency"),
        Index("idx_pets_posted_by", "posted_by_id"),
        Index("idx_pets_created_at", created_at.desc()),
    )

    @property
    def coordinates(self) -> Optional[List[float]]:
        if self.longitude is None or self.latitude is None:
            return None
        return [self.longitude, self.latitude]

    @property
    def cheers_count(self) -> int:
        return len(self.cheers)

    @property
    def comments_count(self) -> int:
        return len(self.comments)

    def __repr__(self) -> str:
        return (
            f"<Pet(id={self.id}, name='{self.name}', type='{self.type}', "
            f"status='{self.status}', active={self.is_active})>"
        )
