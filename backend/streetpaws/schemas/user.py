"""
StreetPaws Backend — User & Auth Schemas
==========================================

What:  Request bodies for registration/login/profile changes and the public
       and private shapes of a user.
Why:   The password hash never leaves the server, and the flattened
       profile_* columns are re-nested under `profile` for clients.

Shapes:
    UserSummary   id, username, profile{firstName, lastName, avatar}
                  (embedded in pets as postedBy and comment authors)
    CheerUser     id, username (embedded in pets' cheers list)
    UserPublic    + role, full profile, createdAt (GET /api/users/{id})
    UserPrivate   + email, isActive, lastLogin, updatedAt (the caller's own record)
"""

import uuid
from datetime import datetime
from typing import Optional

from pydantic import EmailStr, Field

from streetpaws.models.user import User
from streetpaws.schemas.common import ApiModel, RequestModel


# ══════════════════════════════════════════════════════════════════════════
# Response Models
# ══════════════════════════════════════════════════════════════════════════


class ProfileSummary(ApiModel):
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    avatar: Optional[str] = None


class Profile(ProfileSummary):
    phone: Optional[str] = None
    location: Optional[str] = None
    bio: Optional[str] = None


class UserSummary(ApiModel):
    id: uuid.UUID
    username: str
    profile: ProfileSummary

    @classmethod
    def from_user(cls, user: User) -> "UserSummary":
        return cls(
            id=user.id,
            username=user.username,
            profile=ProfileSummary(
                first_name=user.first_name,
                last_name=user.last_name,
                avatar=user.avatar,
            ),
        )


class CheerUser(ApiModel):
    id: uuid.UUID
    username: str


class UserPublic(ApiModel):
    id: uuid.UUID
    username: str
    role: str
    profile: Profile
    created_at: datetime

    @staticmethod
    def _profile(user: User) -> Profile:
        return Profile(
            first_name=user.first_name,
            last_name=user.last_name,
            phone=user.phone,
            location=user.location,
            bio=user.bio,
            avatar=user.avatar,
        )

    @classmethod
    def from_user(cls, user: User) -> "UserPublic":
        return cls(
            id=user.id,
            username=user.username,
            role=user.role,
            profile=cls._profile(user),
            created_at=user.created_at,
        )


class UserPrivate(UserPublic):
    email: str
    is_active: bool
    last_login: Optional[datetime] = None
    updated_at: datetime

    @classmethod
    def from_user(cls, user: User) -> "UserPrivate":
        return cls(
            id=user.id,
            username=user.username,
            email=user.email,
            role=user.role,
            profile=cls._profile(user),
            is_active=user.is_active,
            last_login=user.last_login,
            created_at=user.created_at,
            updated_at=user.updated_at,
        )


class AuthPayload(ApiModel):
    """`data` of register/login: the account plus a fresh bearer token."""
    user: UserPrivate
    token: str


class TokenPayload(ApiModel):
    token: str


# ══════════════════════════════════════════════════════════════════════════
# Request Models
# ══════════════════════════════════════════════════════════════════════════


class RegisterRequest(RequestModel):
    username: str = Field(min_length=3, max_length=50)
    email: EmailStr
    password: str = Field(min_length=6, max_length=72)
    first_name: Optional[str] = Field(default=None, max_length=100)
    last_name: Optional[str] = Field(default=None, max_length=100)
    phone: Optional[str] = Field(default=None, max_length=50)


class LoginRequest(RequestModel):
    # email or username
    identifier: str = Field(min_length=1)
    password: str = Field(min_length=1)


class ProfileUpdateRequest(RequestModel):
    first_name: Optional[str] = Field(default=None, max_length=100)
    last_name: Optional[str] = Field(default=None, max_length=100)
    phone: Optional[str] = Field(default=None, max_length=50)
    location: Optional[str] = Field(default=None, max_length=255)
    bio: Optional[str] = Field(default=None, max_length=2000)
    avatar: Optional[str] = Field(default=None, max_length=500)


class DetailsUpdateRequest(RequestModel):
    """Account details; avatar is changed through the profile endpoint only."""
    username: Optional[str] = Field(default=None, min_length=3, max_length=50)
    email: Optional[EmailStr] = None
    first_name: Optional[str] = Field(default=None, max_length=100)
    last_name: Optional[str] = Field(default=None, max_length=100)
    phone: Optional[str] = Field(default=None, max_length=50)
    location: Optional[str] = Field(default=None, max_length=255)
    bio: Optional[str] = Field(default=None, max_length=2000)


class PasswordUpdateRequest(RequestModel):
    current_password: str = Field(min_length=1)
    new_password: str = Field(min_length=6, max_length=72)
