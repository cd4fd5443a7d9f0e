"""SQLAlchemy models."""

from src.models.attachment import Attachment
from src.models.board import Board
from src.models.card import Card
from src.models.column import BoardColumn
from src.models.enums import Priority
from src.models.user import User

__all__ = [
    "User",
    "Board",
    "BoardColumn",
    "Card",
    "Attachment",
    "Priority",
]
