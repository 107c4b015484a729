"""
StreetPaws Backend — Pet Service (Listing Business Logic)
===========================================================

What:  The only code that changes pet listings: listing/search, fetch with
       view counting, create/update/soft delete, comments, cheers and stats.
Why:   Keeps every rule about pets (ownership, visibility of inactive rows,
       population of related users) out of the HTTP layer.
Who:   Called by routes/pets.py and routes/users.py.

Visibility:
    Inactive (soft-deleted) pets behave exactly like missing ones: they are
    filtered out of lists, search and stats, and fetching, updating,
    commenting on or cheering one raises NotFoundError.

Population:
    Relationships are lazy="raise". Anything returned to a client is loaded
    through _populated(): owner, comments with their authors, and the users
    who cheered, each with one extra SELECT ... IN query.

Transactions:
    Most methods only flush; get_db_session commits when the request ends.
    add_comment and toggle_cheer commit before broadcasting so that a client
    reacting to the event re-fetches committed data.

Concurrency:
    - View increment is a single UPDATE ... SET views = views + 1.
    - Comment positions are max + 1; two concurrent appends may share a
      position and fall back to created_at ordering.
    - Cheer toggle is read-then-write. The composite primary key on
      pet_cheers keeps membership a set; the insert skips a row that a
      concurrent request already added.
"""

import logging
import math
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple
from uuid import UUID

from sqlalchemy import delete, func, insert, or_, select, update
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from streetpaws.config import settings
from streetpaws.exceptions import (
    DatabaseError,
    ForbiddenError,
    NotFoundError,
    StreetPawsError,
    ValidationError,
)
from streetpaws.models.pet import (
    PET_STATUSES,
    PET_TYPES,
    URGENCY_LEVELS,
    Comment,
    Pet,
    pet_cheers,
)
from streetpaws.models.user import User
from streetpaws.realtime.hub import CHEER_UPDATE, NEW_COMMENT, ChannelHub, hub
from streetpaws.schemas.common import Pagination
from streetpaws.schemas.pet import (
    CheerResult,
    CommentResponse,
    PetCreate,
    PetResponse,
    PetStats,
    PetUpdate,
)

logger = logging.getLogger(__name__)

SORT_NEWEST = "-createdAt"
SORT_OLDEST = "createdAt"
SORT_OPTIONS = (SORT_NEWEST, SORT_OLDEST)

# Filter value meaning "no filter"
ALL = "All"


def _populated() -> List[Any]:
    return [
        selectinload(Pet.posted_by),
        selectinload(Pet.comments).selectinload(Comment.author),
        selectinload(Pet.cheers),
    ]


def _enum_filter(field: str, value: Optional[str], allowed: Tuple[str, ...]) -> Optional[str]:
    if value is None or value == "" or value == ALL:
        return None
    if value not in allowed:
        raise ValidationError(
            message=f"Invalid {field}: must be one of {', '.join(allowed)} or {ALL}",
            field=field,
        )
    return value


def _like_pattern(term: str) -> str:
    escaped = term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


def _dialect(db: AsyncSession) -> str:
    return db.get_bind().dialect.name


class PetService:
    """
    Business logic layer for pet listings.

    Args:
        notifier: Channel hub used to push comment and cheer events. The
                  module singleton uses the process-wide hub; tests pass
                  their own.
    """

    def __init__(self, notifier: ChannelHub):
        self.notifier = notifier

    # ── Internal Helpers ──────────────────────────────────────────────────

    async def _get_active(self, db: AsyncSession, pet_id: UUID) -> Pet:
        result = await db.execute(
            select(Pet).where(Pet.id == pet_id, Pet.is_active.is_(True))
        )
        pet = result.scalar_one_or_none()
        if pet is None:
            raise NotFoundError(resource="pet", resource_id=str(pet_id))
        return pet

    async def _load_populated(self, db: AsyncSession, pet_id: UUID) -> Pet:
        # populate_existing: the pet may already sit in the identity map
        # with stale scalar values or unloaded relationships
        result = await db.execute(
            select(Pet)
            .options(*_populated())
            .where(Pet.id == pet_id)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one()

    @staticmethod
    def _ensure_can_modify(owner_id: UUID, user: User, action: str) -> None:
        if owner_id != user.id and not user.is_admin:
            raise ForbiddenError(message=f"Not authorized to {action}")

    async def _notify(self, pet_id: UUID, event: str, data: Dict[str, Any]) -> None:
        try:
            await self.notifier.broadcast(pet_id, event, data)
        except Exception as e:
            # The write is already committed; a push failure must not undo it
            logger.error("Failed to broadcast %s for pet %s: %s", event, pet_id, e, exc_info=True)

    # ── Listing ───────────────────────────────────────────────────────────

    async def list_pets(
        self,
        db: AsyncSession,
        search: Optional[str] = None,
        type: Optional[str] = None,
        status: Optional[str] = None,
        urgency: Optional[str] = None,
        posted_by: Optional[UUID] = None,
        sort: Optional[str] = None,
        page: int = 1,
        limit: Optional[int] = None,
    ) -> Tuple[List[PetResponse], Pagination]:
        """
        Filtered, searched, sorted and paginated list of active pets.

        Search:
            PostgreSQL: full-text match of any term against name, location
            and description, ranked by ts_rank unless `sort` is given.
            Other databases: case-insensitive substring match of any term.

        Returns:
            (items, pagination) with pages = max(1, ceil(total / limit))

        Raises:
            ValidationError: unknown filter or sort value, page < 1, or
                             limit outside 1..max_page_size
        """
        limit = settings.default_page_size if limit is None else limit
        if page < 1:
            raise ValidationError(message="page must be at least 1", field="page")
        if not 1 <= limit <= settings.max_page_size:
            raise ValidationError(
                message=f"limit must be between 1 and {settings.max_page_size}",
                field="limit",
            )
        if sort is not None and sort not in SORT_OPTIONS:
            raise ValidationError(
                message=f"sort must be one of {', '.join(SORT_OPTIONS)}", field="sort"
            )

        filters: List[Any] = [Pet.is_active.is_(True)]
        for column, field, value, allowed in (
            (Pet.type, "type", type, PET_TYPES),
            (Pet.status, "status", status, PET_STATUSES),
            (Pet.urgency, "urgency", urgency, URGENCY_LEVELS),
        ):
            selected = _enum_filter(field, value, allowed)
            if selected is not None:
                filters.append(column == selected)
        if posted_by is not None:
            filters.append(Pet.posted_by_id == posted_by)

        rank = None
        terms = search.split() if search else []
        if terms:
            if _dialect(db) == "postgresql":
                document = func.to_tsvector(
                    "english",
                    func.concat_ws(" ", Pet.name, Pet.location, Pet.description),
                )
                query = func.websearch_to_tsquery("english", " or ".join(terms))
                filters.append(document.op("@@")(query))
                rank = func.ts_rank(document, query)
            else:
                filters.append(
                    or_(
                        *(
                            or_(
                                Pet.name.ilike(_like_pattern(t), escape="\\"),
                                Pet.location.ilike(_like_pattern(t), escape="\\"),
                                Pet.description.ilike(_like_pattern(t), escape="\\"),
                            )
                            for t in terms
                        )
                    )
                )

        if sort == SORT_OLDEST:
            ordering = [Pet.created_at.asc(), Pet.id.asc()]
        elif sort is None and rank is not None:
            ordering = [rank.desc(), Pet.created_at.desc(), Pet.id.desc()]
        else:
            ordering = [Pet.created_at.desc(), Pet.id.desc()]

        try:
            total = (
                await db.execute(select(func.count()).select_from(Pet).where(*filters))
            ).scalar_one()

            result = await db.execute(
                select(Pet)
                .options(*_populated())
                .where(*filters)
                .order_by(*ordering)
                .offset((page - 1) * limit)
                .limit(limit)
            )
            pets = result.scalars().all()
        except SQLAlchemyError as e:
            logger.error("Database error listing pets: %s", e, exc_info=True)
            raise DatabaseError(message="Could not retrieve pets. Please try again.")

        pagination = Pagination(
            page=page,
            pages=max(1, math.ceil(total / limit)),
            total=total,
            limit=limit,
        )
        return [PetResponse.from_pet(p) for p in pets], pagination

    async def get_pet(self, db: AsyncSession, pet_id: UUID) -> PetResponse:
        """
        Fetch one active pet, counting the view.

        Every call raises `views` by exactly one, also under concurrency:
        the increment is done by the database in a single UPDATE.
        """
        try:
            result = await db.execute(
                update(Pet)
                .where(Pet.id == pet_id, Pet.is_active.is_(True))
                .values(views=Pet.views + 1)
                .execution_options(synchronize_session=False)
            )
            if result.rowcount == 0:
                raise NotFoundError(resource="pet", resource_id=str(pet_id))

            pet = await self._load_populated(db, pet_id)
            return PetResponse.from_pet(pet)

        except StreetPawsError:
            raise
        except SQLAlchemyError as e:
            logger.error("Database error fetching pet %s: %s", pet_id, e, exc_info=True)
            raise DatabaseError(
                message="Could not retrieve the pet. Please try again.",
                context={"pet_id": str(pet_id)},
            )

    # ── Create / Update / Delete ──────────────────────────────────────────

    async def create_pet(self, db: AsyncSession, payload: PetCreate, user: User) -> PetResponse:
        fields = payload.model_dump(exclude={"coordinates"})
        pet = Pet(**fields, posted_by_id=user.id)
        if payload.coordinates is not None:
            pet.longitude, pet.latitude = payload.coordinates

        db.add(pet)
        await db.flush()
        logger.info("Pet %s created by user %s", pet.id, user.id)

        return PetResponse.from_pet(await self._load_populated(db, pet.id))

    async def update_pet(
        self, db: AsyncSession, pet_id: UUID, payload: PetUpdate, user: User
    ) -> PetResponse:
        """
        Apply a partial update.

        Only fields present in the body change. An empty body still
        refreshes updated_at.

        Raises:
            NotFoundError: pet missing or inactive
            ForbiddenError: caller is neither the owner nor an admin
        """
        pet = await self._get_active(db, pet_id)
        self._ensure_can_modify(pet.posted_by_id, user, "update this pet")

        changes = payload.model_dump(exclude_unset=True)
        if "coordinates" in changes:
            coordinates = changes.pop("coordinates")
            pet.longitude, pet.latitude = coordinates if coordinates else (None, None)
        for field, value in changes.items():
            setattr(pet, field, value)
        pet.updated_at = datetime.now(timezone.utc)

        await db.flush()
        logger.info("Pet %s updated by user %s (%s)", pet.id, user.id, ", ".join(changes) or "no fields")

        return PetResponse.from_pet(await self._load_populated(db, pet.id))

    async def delete_pet(self, db: AsyncSession, pet_id: UUID, user: User) -> None:
        """Soft delete: the row, its comments and cheers stay in storage."""
        pet = await self._get_active(db, pet_id)
        self._ensure_can_modify(pet.posted_by_id, user, "delete this pet")

        pet.is_active = False
        await db.flush()
        logger.info("Pet %s deactivated by user %s", pet.id, user.id)

    # ── Comments ──────────────────────────────────────────────────────────

    async def add_comment(
        self, db: AsyncSession, pet_id: UUID, text: str, user: User
    ) -> CommentResponse:
        pet = await self._get_active(db, pet_id)

        next_position = (
            await db.execute(
                select(func.coalesce(func.max(Comment.position) + 1, 0)).where(
                    Comment.pet_id == pet.id
                )
            )
        ).scalar_one()

        comment = Comment(pet_id=pet.id, author=user, text=text, position=next_position)
        db.add(comment)
        await db.flush()
        await db.commit()

        response = CommentResponse.from_comment(comment)
        await self._notify(
            pet.id,
            NEW_COMMENT,
            {"petId": str(pet.id), "comment": response.model_dump(mode="json", by_alias=True)},
        )
        return response

    async def remove_comment(self, db: AsyncSession, comment_id: UUID, user: User) -> None:
        """
        Delete one comment by id, wherever it lives.

        Only the comment's author or an admin may remove it. Nothing is
        broadcast.
        """
        comment = await db.get(Comment, comment_id)
        if comment is None:
            raise NotFoundError(resource="comment", resource_id=str(comment_id))
        self._ensure_can_modify(comment.author_id, user, "delete this comment")

        await db.delete(comment)
        await db.flush()
        logger.info("Comment %s removed by user %s", comment_id, user.id)

    # ── Cheers ────────────────────────────────────────────────────────────

    async def toggle_cheer(self, db: AsyncSession, pet_id: UUID, user: User) -> CheerResult:
        pet = await self._get_active(db, pet_id)
        membership = (pet_cheers.c.pet_id == pet.id, pet_cheers.c.user_id == user.id)

        existing = (
            await db.execute(select(pet_cheers.c.pet_id).where(*membership))
        ).first()

        if existing is not None:
            await db.execute(delete(pet_cheers).where(*membership))
            cheered = False
        else:
            dialect = _dialect(db)
            if dialect == "postgresql":
                stmt = pg_insert(pet_cheers).on_conflict_do_nothing()
            elif dialect == "sqlite":
                stmt = sqlite_insert(pet_cheers).on_conflict_do_nothing()
            else:
                stmt = insert(pet_cheers)
            await db.execute(stmt.values(pet_id=pet.id, user_id=user.id))
            cheered = True

        cheers_count = (
            await db.execute(
                select(func.count()).select_from(pet_cheers).where(pet_cheers.c.pet_id == pet.id)
            )
        ).scalar_one()
        await db.commit()

        await self._notify(
            pet.id,
            CHEER_UPDATE,
            {"petId": str(pet.id), "cheersCount": cheers_count, "cheered": cheered},
        )
        return CheerResult(cheered=cheered, cheers_count=cheers_count)

    # ── Statistics ────────────────────────────────────────────────────────

    async def get_stats(self, db: AsyncSession, posted_by: Optional[UUID] = None) -> PetStats:
        """Aggregates over active pets, optionally only one owner's."""
        filters: List[Any] = [Pet.is_active.is_(True)]
        if posted_by is not None:
            filters.append(Pet.posted_by_id == posted_by)

        try:
            total_pets, total_views = (
                await db.execute(
                    select(func.count(Pet.id), func.coalesce(func.sum(Pet.views), 0)).where(*filters)
                )
            ).one()

            total_cheers = (
                await db.execute(
                    select(func.count())
                    .select_from(pet_cheers)
                    .join(Pet, Pet.id == pet_cheers.c.pet_id)
                    .where(*filters)
                )
            ).scalar_one()

            total_comments = (
                await db.execute(
                    select(func.count(Comment.id))
                    .select_from(Comment)
                    .join(Pet, Pet.id == Comment.pet_id)
                    .where(*filters)
                )
            ).scalar_one()

            by_status = await db.execute(
                select(Pet.status, func.count(Pet.id)).where(*filters).group_by(Pet.status)
            )
            by_type = await db.execute(
                select(Pet.type, func.count(Pet.id)).where(*filters).group_by(Pet.type)
            )
        except SQLAlchemyError as e:
            logger.error("Database error computing stats: %s", e, exc_info=True)
            raise DatabaseError(message="Could not compute statistics. Please try again.")

        return PetStats(
            total_pets=total_pets,
            total_cheers=total_cheers,
            total_comments=total_comments,
            total_views=int(total_views),
            by_status={status: count for status, count in by_status.all()},
            by_type={pet_type: count for pet_type, count in by_type.all()},
        )


# ── Singleton Instance ────────────────────────────────────────────────────
pet_service = PetService(hub)
