"""Board schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from src.schemas.column import ColumnWithCardsResponse


class BoardCreate(BaseModel):
    """Create a new board."""

    title: str = Field(..., min_length=1, max_length=100)
    icon: str | None = Field(None, max_length=8)


class BoardUpdate(BaseModel):
    """Update a board. Send ``icon: null`` to clear the icon."""

    title: str | None = Field(None, min_length=1, max_length=100)
    icon: str | None = Field(None, max_length=8)


class BoardResponse(BaseModel):
    """Board response."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    title: str
    icon: str | None
    is_favorite: bool
    user_id: str
    created_at: datetime
    updated_at: datetime
    column_count: int = 0


class BoardDetailResponse(BoardResponse):
    """Board with its columns and their active cards."""

    columns: list[ColumnWithCardsResponse] = []
