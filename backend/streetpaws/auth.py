"""
StreetPaws Backend — Authentication Guard
===========================================

What:  FastAPI dependencies that turn a bearer token into the calling User.
How:   The token is taken from `Authorization: Bearer <token>` or, failing
       that, from the `token` cookie, then resolved by UserService against
       the stored digest (expiry and is_active are checked there).

    get_current_user   → User, or UnauthorizedError (401) before the route runs
    get_optional_user  → User or None; never fails on a bad token

The resolved user is loaded through the request's own session, so routes
and services can hand it to ORM relationships directly.
"""

from typing import Optional

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from streetpaws.database import get_db_session
from streetpaws.exceptions import UnauthorizedError
from streetpaws.models.user import User
from streetpaws.services.user_service import user_service

TOKEN_COOKIE = "token"


def extract_token(request: Request) -> Optional[str]:
    header = request.headers.get("authorization", "")
    scheme, _, credentials = header.partition(" ")
    if scheme.lower() == "bearer" and credentials.strip():
        return credentials.strip()
    return request.cookies.get(TOKEN_COOKIE) or None


async def get_current_user(
    request: Request,
    db: AsyncSession = Depends(get_db_session),
) -> User:
    token = extract_token(request)
    if token is None:
        raise UnauthorizedError()
    return await user_service.resolve_token(db, token)


async def get_optional_user(
    request: Request,
    db: AsyncSession = Depends(get_db_session),
) -> Optional[User]:
    token = extract_token(request)
    if token is None:
        return None
    try:
        return await user_service.resolve_token(db, token)
    except UnauthorizedError:
        return None
