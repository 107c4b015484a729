"""
StreetPaws Backend — Auth Route Handlers
==========================================

What:  /api/auth: register, login, current user, logout, and changes to
       account details and password.
How:   Register and login return `{user, token}`. The token is sent back as
       `Authorization: Bearer <token>` (or a `token` cookie). Logout revokes
       the presented token and clears the cookie.
"""

import logging

from fastapi import APIRouter, Depends, Request, Response
from sqlalchemy.ext.asyncio import AsyncSession

from streetpaws.auth import TOKEN_COOKIE, extract_token, get_current_user
from streetpaws.database import get_db_session
from streetpaws.models.user import User
from streetpaws.schemas.common import DataResponse, EmptyResponse, ErrorResponse
from streetpaws.schemas.user import (
    AuthPayload,
    DetailsUpdateRequest,
    LoginRequest,
    PasswordUpdateRequest,
    RegisterRequest,
    TokenPayload,
    UserPrivate,
)
from streetpaws.services.user_service import user_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["Auth"])

_unauthorized = {401: {"description": "Missing or invalid credentials", "model": ErrorResponse}}


@router.post(
    "/register",
    response_model=DataResponse[AuthPayload],
    status_code=201,
    responses={
        400: {"description": "Invalid input", "model": ErrorResponse},
        409: {"description": "Username or email taken", "model": ErrorResponse},
    },
    summary="Create an account",
)
async def register(
    payload: RegisterRequest,
    db: AsyncSession = Depends(get_db_session),
) -> DataResponse[AuthPayload]:
    user, token = await user_service.register(db, payload)
    return DataResponse[AuthPayload](
        data=AuthPayload(user=UserPrivate.from_user(user), token=token)
    )


@router.post(
    "/login",
    response_model=DataResponse[AuthPayload],
    responses=_unauthorized,
    summary="Log in with email or username",
)
async def login(
    payload: LoginRequest,
    db: AsyncSession = Depends(get_db_session),
) -> DataResponse[AuthPayload]:
    user, token = await user_service.login(db, payload.identifier, payload.password)
    return DataResponse[AuthPayload](
        data=AuthPayload(user=UserPrivate.from_user(user), token=token)
    )


@router.get(
    "/me",
    response_model=DataResponse[UserPrivate],
    responses=_unauthorized,
    summary="The authenticated user",
)
async def me(user: User = Depends(get_current_user)) -> DataResponse[UserPrivate]:
    return DataResponse[UserPrivate](data=UserPrivate.from_user(user))


@router.post(
    "/logout",
    response_model=EmptyResponse,
    responses=_unauthorized,
    summary="Revoke the current token",
)
async def logout(
    request: Request,
    response: Response,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> EmptyResponse:
    token = extract_token(request)
    if token is not None:
        await user_service.revoke_token(db, token)
    response.delete_cookie(TOKEN_COOKIE, httponly=True)
    logger.info("User %s logged out", user.id)
    return EmptyResponse()


@router.put(
    "/updatedetails",
    response_model=DataResponse[UserPrivate],
    responses={
        **_unauthorized,
        409: {"description": "Username or email taken", "model": ErrorResponse},
    },
    summary="Update username, email and profile fields",
)
async def update_details(
    payload: DetailsUpdateRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> DataResponse[UserPrivate]:
    user = await user_service.update_details(db, user, payload)
    return DataResponse[UserPrivate](data=UserPrivate.from_user(user))


@router.put(
    "/updatepassword",
    response_model=DataResponse[TokenPayload],
    responses=_unauthorized,
    summary="Change password (revokes all other sessions)",
)
async def update_password(
    payload: PasswordUpdateRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> DataResponse[TokenPayload]:
    token = await user_service.update_password(db, user, payload)
    return DataResponse[TokenPayload](data=TokenPayload(token=token))
