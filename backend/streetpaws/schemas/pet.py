"""
StreetPaws Backend — Pet Request/Response Schemas
===================================================

What:  Pydantic models defining the pet listing API contract.
Why:   Field-level validation (required, length bounds, enums) happens here,
       before the service runs. FastAPI's validation failures are reshaped
       into 400 envelopes by the handler in main.py.

Validation rules (shared by create and update):
    name           1-100 chars
    type           Dog | Cat | Bird | Rat | Other
    age, location  non-empty free text
    description    1-1000 chars
    contactNumber  non-empty
    contactName    non-empty
    urgency        Low | Medium | High | Critical   (create default: Medium)
    status         Available | Adopted | Fostered  (update only)
    traits         up to 200 chars
    imageUrl       free text
    coordinates    [longitude, latitude]

Strings are trimmed before the length checks; unknown fields are rejected.
"""

import uuid
from datetime import datetime
from typing import Annotated, Dict, List, Literal, Optional

from pydantic import AfterValidator, Field, model_validator

from streetpaws.models.pet import Comment, Pet
from streetpaws.schemas.common import ApiModel, RequestModel
from streetpaws.schemas.user import CheerUser, UserSummary


PetType = Literal["Dog", "Cat", "Bird", "Rat", "Other"]
Urgency = Literal["Low", "Medium", "High", "Critical"]
PetStatus = Literal["Available", "Adopted", "Fostered"]


def _check_coordinates(value: List[float]) -> List[float]:
    if len(value) != 2:
        raise ValueError("coordinates must be [longitude, latitude]")
    longitude, latitude = value
    if not -180 <= longitude <= 180:
        raise ValueError("longitude must be between -180 and 180")
    if not -90 <= latitude <= 90:
        raise ValueError("latitude must be between -90 and 90")
    return value


Coordinates = Annotated[List[float], AfterValidator(_check_coordinates)]


# ══════════════════════════════════════════════════════════════════════════
# Request Models
# ══════════════════════════════════════════════════════════════════════════


class PetCreate(RequestModel):
    name: str = Field(min_length=1, max_length=100)
    type: PetType
    age: str = Field(min_length=1, max_length=100)
    location: str = Field(min_length=1, max_length=255)
    description: str = Field(min_length=1, max_length=1000)
    contact_number: str = Field(min_length=1, max_length=50)
    contact_name: str = Field(min_length=1, max_length=100)
    urgency: Urgency = "Medium"
    traits: Optional[str] = Field(default=None, max_length=200)
    image_url: Optional[str] = None
    coordinates: Optional[Coordinates] = None


# Columns that cannot be cleared by sending an explicit null
_REQUIRED_ON_UPDATE = {
    "name", "type", "age", "location", "description",
    "contact_number", "contact_name", "urgency", "status",
}


class PetUpdate(RequestModel):
    """Partial update: only the fields present in the body are written."""

    name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    type: Optional[PetType] = None
    age: Optional[str] = Field(default=None, min_length=1, max_length=100)
    location: Optional[str] = Field(default=None, min_length=1, max_length=255)
    description: Optional[str] = Field(default=None, min_length=1, max_length=1000)
    contact_number: Optional[str] = Field(default=None, min_length=1, max_length=50)
    contact_name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    urgency: Optional[Urgency] = None
    status: Optional[PetStatus] = None
    traits: Optional[str] = Field(default=None, max_length=200)
    image_url: Optional[str] = None
    coordinates: Optional[Coordinates] = None

    @model_validator(mode="after")
    def reject_null_required_fields(self) -> "PetUpdate":
        for name in self.model_fields_set & _REQUIRED_ON_UPDATE:
            if getattr(self, name) is None:
                raise ValueError(f"{name} cannot be null")
        return self


class CommentCreate(RequestModel):
    text: str = Field(min_length=1, max_length=500)


# ══════════════════════════════════════════════════════════════════════════
# Response Models
# ══════════════════════════════════════════════════════════════════════════


class CommentResponse(ApiModel):
    id: uuid.UUID
    text: str
    author: UserSummary
    created_at: datetime

    @classmethod
    def from_comment(cls, comment: Comment) -> "CommentResponse":
        return cls(
            id=comment.id,
            text=comment.text,
            author=UserSummary.from_user(comment.author),
            created_at=comment.created_at,
        )


class PetResponse(ApiModel):
    """
    A fully populated pet: owner summary, comments with author summaries,
    and the users who cheered it.
    """
    id: uuid.UUID
    name: str
    type: str
    age: str
    location: str
    coordinates: Optional[List[float]] = None
    description: str
    image_url: Optional[str] = None
    contact_number: str
    contact_name: str
    posted_by: UserSummary
    urgency: str
    status: str
    traits: Optional[str] = None
    comments: List[CommentResponse]
    cheers: List[CheerUser]
    cheers_count: int
    comments_count: int
    views: int
    is_active: bool
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_pet(cls, pet: Pet) -> "PetResponse":
        return cls(
            id=pet.id,
            name=pet.name,
            type=pet.type,
            age=pet.age,
            location=pet.location,
            coordinates=pet.coordinates,
            description=pet.description,
            image_url=pet.image_url,
            contact_number=pet.contact_number,
            contact_name=pet.contact_name,
            posted_by=UserSummary.from_user(pet.posted_by),
            urgency=pet.urgency,
            status=pet.status,
            traits=pet.traits,
            comments=[CommentResponse.from_comment(c) for c in pet.comments],
            cheers=[CheerUser(id=u.id, username=u.username) for u in pet.cheers],
            cheers_count=pet.cheers_count,
            comments_count=pet.comments_count,
            views=pet.views,
            is_active=pet.is_active,
            created_at=pet.created_at,
            updated_at=pet.updated_at,
        )


class CheerResult(ApiModel):
    cheered: bool
    cheers_count: int


class PetStats(ApiModel):
    """
    Aggregates over active pets (optionally one owner's).

    Computed fresh on every request.
    """
    total_pets: int = 0
    total_cheers: int = 0
    total_comments: int = 0
    total_views: int = 0
    by_status: Dict[str, int] = Field(default_factory=dict)
    by_type: Dict[str, int] = Field(default_factory=dict)
