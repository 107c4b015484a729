"""
StreetPaws Backend — Pet Route Handlers
=========================================

What:  /api/pets: listing and search, single pet, create/update/delete,
       comments, cheers and overview statistics.
How:   Parses query/path/body, resolves the caller where required, and
       delegates to PetService. Responses use the shared envelopes.

Route Order:
    /stats/overview and /comments/{comment_id} are declared before
    /{pet_id} so they are not captured as a pet id.
"""

import logging
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from streetpaws.auth import get_current_user
from streetpaws.config import settings
from streetpaws.database import get_db_session
from streetpaws.models.user import User
from streetpaws.schemas.common import DataResponse, EmptyResponse, ErrorResponse, PageResponse
from streetpaws.schemas.pet import (
    CheerResult,
    CommentCreate,
    CommentResponse,
    PetCreate,
    PetResponse,
    PetStats,
    PetUpdate,
)
from streetpaws.services.pet_service import pet_service

logger = logging.getLogger(__name__)

# ── Router Configuration ──────────────────────────────────────────────────
router = APIRouter(prefix="/api/pets", tags=["Pets"])

_errors = {
    400: {"description": "Invalid input", "model": ErrorResponse},
    404: {"description": "Pet not found", "model": ErrorResponse},
}
_auth_errors = {
    **_errors,
    401: {"description": "Missing or invalid token", "model": ErrorResponse},
    403: {"description": "Not the owner or an admin", "model": ErrorResponse},
}


@router.get(
    "",
    response_model=PageResponse[PetResponse],
    responses={400: _errors[400]},
    summary="List and search active pets",
)
async def list_pets(
    search: Optional[str] = Query(
        default=None,
        description="Free text matched against name, location and description (any term)",
    ),
    type: Optional[str] = Query(default=None, description="Dog, Cat, Bird, Rat, Other or All"),
    status: Optional[str] = Query(default=None, description="Available, Adopted, Fostered or All"),
    urgency: Optional[str] = Query(default=None, description="Low, Medium, High, Critical or All"),
    posted_by: Optional[UUID] = Query(
        default=None, alias="postedBy", description="Only pets posted by this user"
    ),
    sort: Optional[str] = Query(
        default=None,
        description="-createdAt (newest first, default) or createdAt (oldest first)",
    ),
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=settings.default_page_size, ge=1, le=settings.max_page_size),
    db: AsyncSession = Depends(get_db_session),
) -> PageResponse[PetResponse]:
    """
    Page through active pets.

    With `search` and no `sort`, results come back by relevance on
    PostgreSQL; otherwise newest first.
    """
    logger.info(
        "Listing pets: search=%r type=%s status=%s urgency=%s postedBy=%s page=%d limit=%d",
        search, type, status, urgency, posted_by, page, limit,
    )
    items, pagination = await pet_service.list_pets(
        db,
        search=search,
        type=type,
        status=status,
        urgency=urgency,
        posted_by=posted_by,
        sort=sort,
        page=page,
        limit=limit,
    )
    return PageResponse[PetResponse](data=items, pagination=pagination)


@router.get(
    "/stats/overview",
    response_model=DataResponse[PetStats],
    summary="Aggregate statistics over active pets",
)
async def stats_overview(
    db: AsyncSession = Depends(get_db_session),
) -> DataResponse[PetStats]:
    stats = await pet_service.get_stats(db)
    return DataResponse[PetStats](data=stats)


@router.delete(
    "/comments/{comment_id}",
    response_model=EmptyResponse,
    responses={
        401: _auth_errors[401],
        403: _auth_errors[403],
        404: {"description": "Comment not found", "model": ErrorResponse},
    },
    summary="Remove a comment (author or admin)",
)
async def remove_comment(
    comment_id: UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> EmptyResponse:
    await pet_service.remove_comment(db, comment_id, user)
    return EmptyResponse()


@router.get(
    "/{pet_id}",
    response_model=DataResponse[PetResponse],
    responses={404: _errors[404]},
    summary="Get one pet (counts a view)",
)
async def get_pet(
    pet_id: UUID,
    db: AsyncSession = Depends(get_db_session),
) -> DataResponse[PetResponse]:
    pet = await pet_service.get_pet(db, pet_id)
    return DataResponse[PetResponse](data=pet)


@router.post(
    "",
    response_model=DataResponse[PetResponse],
    status_code=201,
    responses={400: _errors[400], 401: _auth_errors[401]},
    summary="Create a pet listing",
)
async def create_pet(
    payload: PetCreate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> DataResponse[PetResponse]:
    pet = await pet_service.create_pet(db, payload, user)
    return DataResponse[PetResponse](data=pet)


@router.put(
    "/{pet_id}",
    response_model=DataResponse[PetResponse],
    responses=_auth_errors,
    summary="Update a pet (owner or admin)",
)
async def update_pet(
    pet_id: UUID,
    payload: PetUpdate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> DataResponse[PetResponse]:
    pet = await pet_service.update_pet(db, pet_id, payload, user)
    return DataResponse[PetResponse](data=pet)


@router.delete(
    "/{pet_id}",
    response_model=EmptyResponse,
    responses=_auth_errors,
    summary="Soft-delete a pet (owner or admin)",
)
async def delete_pet(
    pet_id: UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> EmptyResponse:
    await pet_service.delete_pet(db, pet_id, user)
    return EmptyResponse()


@router.post(
    "/{pet_id}/comments",
    response_model=DataResponse[CommentResponse],
    status_code=201,
    responses={400: _errors[400], 401: _auth_errors[401], 404: _errors[404]},
    summary="Comment on a pet",
)
async def add_comment(
    pet_id: UUID,
    payload: CommentCreate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> DataResponse[CommentResponse]:
    """Appends the comment and pushes `new-comment` to the pet's channel."""
    comment = await pet_service.add_comment(db, pet_id, payload.text, user)
    return DataResponse[CommentResponse](data=comment)


@router.post(
    "/{pet_id}/cheer",
    response_model=DataResponse[CheerResult],
    responses={401: _auth_errors[401], 404: _errors[404]},
    summary="Toggle the caller's cheer on a pet",
)
async def toggle_cheer(
    pet_id: UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> DataResponse[CheerResult]:
    result = await pet_service.toggle_cheer(db, pet_id, user)
    return DataResponse[CheerResult](data=result)
