"""Pydantic schemas for API requests and responses."""

from src.schemas.attachment import AttachmentResponse
from src.schemas.auth import AuthResponse, ProfileUpdate, UserLogin, UserRegister, UserResponse
from src.schemas.board import BoardCreate, BoardDetailResponse, BoardResponse, BoardUpdate
from src.schemas.card import (
    ArchivedCardResponse,
    CardCreate,
    CardMove,
    CardReorder,
    CardResponse,
    CardUpdate,
)
from src.schemas.column import (
    ColumnCreate,
    ColumnReorder,
    ColumnResponse,
    ColumnUpdate,
    ColumnWithCardsResponse,
)

__all__ = [
    "UserRegister",
    "UserLogin",
    "ProfileUpdate",
    "AuthResponse",
    "UserResponse",
    "BoardCreate",
    "BoardUpdate",
    "BoardResponse",
    "BoardDetailResponse",
    "ColumnCreate",
    "ColumnUpdate",
    "ColumnReorder",
    "ColumnResponse",
    "ColumnWithCardsResponse",
    "CardCreate",
    "CardUpdate",
    "CardMove",
    "CardReorder",
    "CardResponse",
    "ArchivedCardResponse",
    "AttachmentResponse",
]
