"""
StreetPaws Backend — User Route Handlers
==========================================

What:  /api/users: the caller's own profile, public user records, and each
       user's pets and statistics.

Route Order:
    /profile is declared before /{user_id}.
"""

import logging
from typing import Optional, Union
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from streetpaws.auth import get_current_user, get_optional_user
from streetpaws.config import settings
from streetpaws.database import get_db_session
from streetpaws.models.user import User
from streetpaws.schemas.common import DataResponse, ErrorResponse, PageResponse
from streetpaws.schemas.pet import PetResponse, PetStats
from streetpaws.schemas.user import ProfileUpdateRequest, UserPrivate, UserPublic
from streetpaws.services.pet_service import SORT_NEWEST, pet_service
from streetpaws.services.user_service import user_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/users", tags=["Users"])

_unauthorized = {401: {"description": "Missing or invalid token", "model": ErrorResponse}}


@router.get(
    "/profile",
    response_model=DataResponse[UserPrivate],
    responses=_unauthorized,
    summary="The caller's own profile",
)
async def get_profile(user: User = Depends(get_current_user)) -> DataResponse[UserPrivate]:
    return DataResponse[UserPrivate](data=UserPrivate.from_user(user))


@router.put(
    "/profile",
    response_model=DataResponse[UserPrivate],
    responses=_unauthorized,
    summary="Update the caller's profile fields",
)
async def update_profile(
    payload: ProfileUpdateRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> DataResponse[UserPrivate]:
    user = await user_service.update_profile(db, user, payload)
    return DataResponse[UserPrivate](data=UserPrivate.from_user(user))


@router.get(
    "/{user_id}/pets",
    response_model=PageResponse[PetResponse],
    summary="A user's active pets, newest first",
)
async def list_user_pets(
    user_id: UUID,
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=settings.default_page_size, ge=1, le=settings.max_page_size),
    db: AsyncSession = Depends(get_db_session),
) -> PageResponse[PetResponse]:
    logger.info("Listing pets of user %s: page=%d limit=%d", user_id, page, limit)
    items, pagination = await pet_service.list_pets(
        db, posted_by=user_id, sort=SORT_NEWEST, page=page, limit=limit
    )
    return PageResponse[PetResponse](data=items, pagination=pagination)


@router.get(
    "/{user_id}/stats",
    response_model=DataResponse[PetStats],
    summary="Statistics over a user's active pets",
)
async def user_stats(
    user_id: UUID,
    db: AsyncSession = Depends(get_db_session),
) -> DataResponse[PetStats]:
    stats = await pet_service.get_stats(db, posted_by=user_id)
    return DataResponse[PetStats](data=stats)


@router.get(
    "/{user_id}",
    response_model=DataResponse[Union[UserPrivate, UserPublic]],
    responses={404: {"description": "User not found", "model": ErrorResponse}},
    summary="Public user record",
)
async def get_user(
    user_id: UUID,
    viewer: Optional[User] = Depends(get_optional_user),
    db: AsyncSession = Depends(get_db_session),
) -> DataResponse[Union[UserPrivate, UserPublic]]:
    """
    Public fields for anyone; a signed-in user looking at their own record
    also gets the private fields (email, lastLogin, ...).
    """
    user = await user_service.get_user(db, user_id)
    if viewer is not None and viewer.id == user.id:
        return DataResponse[Union[UserPrivate, UserPublic]](data=UserPrivate.from_user(user))
    return DataResponse[Union[UserPrivate, UserPublic]](data=UserPublic.from_user(user))
