"""Column schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from src.schemas.card import CardResponse


class ColumnCreate(BaseModel):
    """Create a column at the end of a board."""

    title: str = Field(..., min_length=1, max_length=50)


class ColumnUpdate(BaseModel):
    """Rename a column and/or move it to a new position on its board."""

    title: str | None = Field(None, min_length=1, max_length=50)
    position: int | None = Field(None, ge=0)


class ColumnReorder(BaseModel):
    """Full new ordering of a board's columns."""

    board_id: str = Field(..., min_length=1)
    column_ids: list[str]


class ColumnResponse(BaseModel):
    """Column response."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    board_id: str
    title: str
    position: int
    created_at: datetime
    updated_at: datetime


class ColumnWithCardsResponse(ColumnResponse):
    """Column with its active cards in display order."""

    cards: list[CardResponse] = Field(default_factory=list, validation_alias="active_cards")
