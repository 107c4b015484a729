"""
StreetPaws Backend — User Service (Accounts & Credentials)
============================================================

What:  Registration, login, bearer-token issue/resolve/revoke, and profile,
       detail and password updates.
Who:   Called by the auth and users routers and by the auth guard
       (streetpaws.auth).

Credential Model:
    - Passwords are hashed with bcrypt (work factor from settings).
    - A bearer token is 32 random bytes, URL-safe encoded. The client gets
      the raw value once; the database stores only its SHA-256 digest with
      an expiry. Logout deletes the row, and a password change deletes every
      other token the user holds.

Uniqueness:
    Username and email are unique at the database level. The service checks
    first for a friendly error, and still maps an IntegrityError from a
    concurrent registration to ConflictError.
"""

import hashlib
import logging
import secrets
from datetime import datetime, timedelta, timezone
from typing import Optional, Tuple
from uuid import UUID

import bcrypt
from sqlalchemy import delete, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.concurrency import run_in_threadpool

from streetpaws.config import settings
from streetpaws.exceptions import ConflictError, NotFoundError, UnauthorizedError
from streetpaws.models.auth_token import AuthToken
from streetpaws.models.user import User
from streetpaws.schemas.user import (
    DetailsUpdateRequest,
    PasswordUpdateRequest,
    ProfileUpdateRequest,
    RegisterRequest,
)

logger = logging.getLogger(__name__)


# ── Password & Token Helpers ──────────────────────────────────────────────

def _hash(password: str) -> str:
    salt = bcrypt.gensalt(rounds=settings.bcrypt_rounds)
    return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")


def _check(password: str, password_hash: str) -> bool:
    return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))


# bcrypt is CPU-bound: always run it off the event loop

async def hash_password(password: str) -> str:
    return await run_in_threadpool(_hash, password)


async def verify_password(password: str, password_hash: str) -> bool:
    try:
        return await run_in_threadpool(_check, password, password_hash)
    except ValueError:
        # Malformed stored hash
        logger.warning("Unreadable password hash encountered")
        return False


def digest_token(raw_token: str) -> str:
    return hashlib.sha256(raw_token.encode("utf-8")).hexdigest()


def _as_aware(value: datetime) -> datetime:
    # SQLite hands back naive datetimes; everything is stored in UTC
    return value if value.tzinfo else value.replace(tzinfo=timezone.utc)


class UserService:
    """
    Business logic for user accounts.

    Stateless like the other services: every method receives the request's
    session and, where relevant, the already-authenticated user.
    """

    # ── Tokens ────────────────────────────────────────────────────────────

    async def issue_token(self, db: AsyncSession, user: User) -> str:
        raw = secrets.token_urlsafe(32)
        now = datetime.now(timezone.utc)
        db.add(
            AuthToken(
                token_hash=digest_token(raw),
                user_id=user.id,
                created_at=now,
                expires_at=now + timedelta(hours=settings.token_ttl_hours),
            )
        )
        await db.flush()
        return raw

    async def resolve_token(self, db: AsyncSession, raw_token: str) -> User:
        """
        Map a raw bearer token to its active user.

        Raises:
            UnauthorizedError: unknown or expired token, missing user, or
                               deactivated account
        """
        result = await db.execute(
            select(AuthToken, User)
            .join(User, User.id == AuthToken.user_id)
            .where(AuthToken.token_hash == digest_token(raw_token))
        )
        row = result.first()
        if row is None:
            raise UnauthorizedError()

        token, user = row
        if _as_aware(token.expires_at) <= datetime.now(timezone.utc):
            raise UnauthorizedError(message="Session expired, please log in again")
        if not user.is_active:
            raise UnauthorizedError(message="User account is deactivated")
        return user

    async def revoke_token(self, db: AsyncSession, raw_token: str) -> None:
        await db.execute(
            delete(AuthToken).where(AuthToken.token_hash == digest_token(raw_token))
        )

    # ── Accounts ──────────────────────────────────────────────────────────

    async def _ensure_unique(
        self,
        db: AsyncSession,
        username: Optional[str],
        email: Optional[str],
        exclude_id: Optional[UUID] = None,
    ) -> None:
        clauses = []
        if username:
            clauses.append(User.username == username)
        if email:
            clauses.append(User.email == email)
        if not clauses:
            return
        query = select(User.id).where(or_(*clauses))
        if exclude_id is not None:
            query = query.where(User.id != exclude_id)
        if (await db.execute(query.limit(1))).first() is not None:
            raise ConflictError()

    async def _flush_unique(self, db: AsyncSession) -> None:
        try:
            await db.flush()
        except IntegrityError as e:
            logger.info("Unique constraint hit while saving user: %s", type(e).__name__)
            raise ConflictError()

    async def register(self, db: AsyncSession, payload: RegisterRequest) -> Tuple[User, str]:
        email = payload.email.lower()
        await self._ensure_unique(db, payload.username, email)

        user = User(
            username=payload.username,
            email=email,
            password_hash=await hash_password(payload.password),
            first_name=payload.first_name,
            last_name=payload.last_name,
            phone=payload.phone,
        )
        db.add(user)
        await self._flush_unique(db)
        token = await self.issue_token(db, user)
        logger.info("Registered user %s (%s)", user.username, user.id)
        return user, token

    async def login(self, db: AsyncSession, identifier: str, password: str) -> Tuple[User, str]:
        """
        Authenticate by email or username.

        The same message is used for unknown user and wrong password.
        """
        result = await db.execute(
            select(User).where(
                or_(User.email == identifier.lower(), User.username == identifier)
            )
        )
        user = result.scalars().first()
        if user is None or not await verify_password(password, user.password_hash):
            raise UnauthorizedError(message="Invalid credentials")
        if not user.is_active:
            raise UnauthorizedError(message="Account is deactivated")

        user.last_login = datetime.now(timezone.utc)
        token = await self.issue_token(db, user)
        logger.info("User %s logged in", user.id)
        return user, token

    async def get_user(self, db: AsyncSession, user_id: UUID) -> User:
        user = await db.get(User, user_id)
        if user is None:
            raise NotFoundError(resource="user", resource_id=str(user_id))
        return user

    async def update_profile(
        self, db: AsyncSession, user: User, payload: ProfileUpdateRequest
    ) -> User:
        # Fields left out of the body are unchanged
        for field, value in payload.model_dump(exclude_unset=True).items():
            setattr(user, field, value)
        user.updated_at = datetime.now(timezone.utc)
        await db.flush()
        return user

    async def update_details(
        self, db: AsyncSession, user: User, payload: DetailsUpdateRequest
    ) -> User:
        changes = payload.model_dump(exclude_unset=True)
        if changes.get("email"):
            changes["email"] = changes["email"].lower()
        # username/email may not be cleared
        for key in ("username", "email"):
            if key in changes and not changes[key]:
                changes.pop(key)

        await self._ensure_unique(
            db, changes.get("username"), changes.get("email"), exclude_id=user.id
        )
        for field, value in changes.items():
            setattr(user, field, value)
        user.updated_at = datetime.now(timezone.utc)
        await self._flush_unique(db)
        return user

    async def update_password(
        self, db: AsyncSession, user: User, payload: PasswordUpdateRequest
    ) -> str:
        """Change the password, revoke every existing token, and issue a new one."""
        if not await verify_password(payload.current_password, user.password_hash):
            raise UnauthorizedError(message="Password is incorrect")

        user.password_hash = await hash_password(payload.new_password)
        user.updated_at = datetime.now(timezone.utc)
        await db.execute(delete(AuthToken).where(AuthToken.user_id == user.id))
        return await self.issue_token(db, user)


# ── Singleton Instance ────────────────────────────────────────────────────
user_service = UserService()
