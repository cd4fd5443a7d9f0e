"""Ownership checks for boards and everything they contain.

Each lookup walks the entity up to its board and compares the board owner with
the acting user in a single query. A missing entity and an entity owned by
someone else raise the same ``NotFoundError``.
"""

from sqlalchemy.orm import Session, contains_eager

from src.models.attachment import Attachment
from src.models.board import Board
from src.models.card import Card
from src.models.column import BoardColumn
from src.services.exceptions import NotFoundError

BOARD_NOT_FOUND = "Board not found"
COLUMN_NOT_FOUND = "Column not found"
CARD_NOT_FOUND = "Card not found"
ATTACHMENT_NOT_FOUND = "Attachment not found"


def get_owned_board(db: Session, board_id: str, user_id: str, refresh: bool = False) -> Board:
    """Get a board owned by the user."""
    query = db.query(Board).filter(Board.id == board_id, Board.user_id == user_id)
    if refresh:
        query = query.populate_existing()
    board = query.first()
    if board is None:
        raise NotFoundError(BOARD_NOT_FOUND)
    return board


def get_owned_column(
    db: Session, column_id: str, user_id: str, refresh: bool = False
) -> BoardColumn:
    """Get a column whose board is owned by the user, with the board loaded."""
    query = (
        db.query(BoardColumn)
        .join(BoardColumn.board)
        .options(contains_eager(BoardColumn.board))
        .filter(BoardColumn.id == column_id, Board.user_id == user_id)
    )
    if refresh:
        query = query.populate_existing()
    column = query.first()
    if column is None:
        raise NotFoundError(COLUMN_NOT_FOUND)
    return column


def get_owned_card(db: Session, card_id: str, user_id: str, refresh: bool = False) -> Card:
    """Get a card whose board is owned by the user, with column and board loaded."""
    query = (
        db.query(Card)
        .join(Card.column)
        .join(BoardColumn.board)
        .options(contains_eager(Card.column).contains_eager(BoardColumn.board))
        .filter(Card.id == card_id, Board.user_id == user_id)
    )
    if refresh:
        query = query.populate_existing()
    card = query.first()
    if card is None:
        raise NotFoundError(CARD_NOT_FOUND)
    return card


def get_owned_attachment(db: Session, attachment_id: str, user_id: str) -> Attachment:
    """Get an attachment whose card sits on a board owned by the user."""
    attachment = (
        db.query(Attachment)
        .join(Attachment.card)
        .join(Card.column)
        .join(BoardColumn.board)
        .options(
            contains_eager(Attachment.card)
            .contains_eager(Card.column)
            .contains_eager(BoardColumn.board)
        )
        .filter(Attachment.id == attachment_id, Board.user_id == user_id)
        .first()
    )
    if attachment is None:
        raise NotFoundError(ATTACHMENT_NOT_FOUND)
    return attachment
