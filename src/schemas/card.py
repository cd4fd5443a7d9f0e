"""Card schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator

from src.models.enums import Priority

MAX_TAGS = 10
MAX_TAG_LENGTH = 30


def unique_tags(tags: list[str]) -> list[str]:
    """Drop duplicate tags, keeping first-seen order."""
    for tag in tags:
        if len(tag) > MAX_TAG_LENGTH:
            raise ValueError(f"Tags must be at most {MAX_TAG_LENGTH} characters")
    return list(dict.fromkeys(tags))


class CardCreate(BaseModel):
    """Create a new card at the end of a column."""

    title: str = Field(..., min_length=1, max_length=200)
    description: str | None = Field(None, max_length=2000)
    priority: Priority = Priority.MEDIUM
    tags: list[str] = Field(default_factory=list, max_length=MAX_TAGS)
    deadline: datetime | None = None

    @field_validator("tags")
    @classmethod
    def dedupe_tags(cls, v: list[str]) -> list[str]:
        return unique_tags(v)


class CardUpdate(BaseModel):
    """Update card fields. Position is changed through move, not here.

    Only fields present in the request are applied; ``description`` and
    ``deadline`` may be sent as null to clear them.
    """

    title: str | None = Field(None, min_length=1, max_length=200)
    description: str | None = Field(None, max_length=2000)
    priority: Priority | None = None
    tags: list[str] | None = Field(None, max_length=MAX_TAGS)
    deadline: datetime | None = None

    @field_validator("tags")
    @classmethod
    def dedupe_tags(cls, v: list[str] | None) -> list[str] | None:
        return None if v is None else unique_tags(v)


class CardMove(BaseModel):
    """Move a card to a column (possibly its own) at a position."""

    column_id: str = Field(..., min_length=1)
    position: int = Field(..., ge=0)


class CardReorder(BaseModel):
    """Full new ordering of a column's active cards."""

    column_id: str = Field(..., min_length=1)
    card_ids: list[str]


class CardResponse(BaseModel):
    """Card response."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    column_id: str
    title: str
    description: str | None
    priority: Priority
    tags: list[str]
    deadline: datetime | None
    position: int
    archived: bool
    archived_at: datetime | None
    created_at: datetime
    updated_at: datetime


class ArchivedCardResponse(CardResponse):
    """Archived card with the title of the column it will be restored into."""

    column_title: str | None = None
