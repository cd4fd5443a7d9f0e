"""Board service: creation with default columns, updates, deletion and archive listing."""

import logging
from typing import Any

from sqlalchemy import func
from sqlalchemy.orm import Session, selectinload

from src.config import get_settings
from src.models.attachment import Attachment
from src.models.board import Board
from src.models.card import Card
from src.models.column import BoardColumn
from src.schemas.board import BoardResponse
from src.services.ownership import get_owned_board
from src.services.realtime import BoardEvent, BoardEventType, ChangeNotifier
from src.services.transactions import atomic
from src.tasks.attachment_cleanup import schedule_file_purge

logger = logging.getLogger(__name__)
settings = get_settings()

EDITABLE_FIELDS = ("title", "icon")


class BoardService:
    """Service for board-level operations."""

    def __init__(self, db: Session, notifier: ChangeNotifier):
        self.db = db
        self.notifier = notifier

    def list_boards(self, user_id: str) -> list[tuple[Board, int]]:
        """Get the user's boards, newest first, with their column counts."""
        rows = (
            self.db.query(Board, func.count(BoardColumn.id))
            .outerjoin(BoardColumn, BoardColumn.board_id == Board.id)
            .filter(Board.user_id == user_id)
            .group_by(Board.id)
            .order_by(Board.created_at.desc(), Board.id)
            .all()
        )
        return [(board, count) for board, count in rows]

    def get_board(self, board_id: str, user_id: str) -> Board:
        """Get a board with columns and cards loaded."""
        get_owned_board(self.db, board_id, user_id)
        return (
            self.db.query(Board)
            .options(selectinload(Board.columns).selectinload(BoardColumn.cards))
            .filter(Board.id == board_id)
            .one()
        )

    def create_board(self, user_id: str, title: str, icon: str | None = None) -> Board:
        """Create a board together with its starter columns in one transaction."""
        with atomic(self.db):
            board = Board(title=title, icon=icon, user_id=user_id)
            self.db.add(board)
            for position, column_title in enumerate(settings.default_board_columns):
                board.columns.append(BoardColumn(title=column_title, position=position))

        self.db.refresh(board)
        logger.info(f"Created board {board.id} for user {user_id}")
        return board

    def update_board(self, board_id: str, user_id: str, changes: dict[str, Any]) -> Board:
        """Apply title/icon changes. ``icon`` may be set to None; ``title`` may not."""
        with atomic(self.db):
            board = get_owned_board(self.db, board_id, user_id)
            for field in EDITABLE_FIELDS:
                if field not in changes:
                    continue
                if field == "title" and changes[field] is None:
                    continue
                setattr(board, field, changes[field])

        self._publish_updated(board)
        return board

    def toggle_favorite(self, board_id: str, user_id: str) -> Board:
        """Flip the board's favorite flag."""
        with atomic(self.db):
            board = get_owned_board(self.db, board_id, user_id)
            board.is_favorite = not board.is_favorite

        self._publish_updated(board)
        return board

    def delete_board(self, board_id: str, user_id: str) -> None:
        """Delete a board with all its columns, cards and attachment records."""
        with atomic(self.db):
            board = get_owned_board(self.db, board_id, user_id)
            paths = [
                path
                for (path,) in self.db.query(Attachment.path)
                .join(Attachment.card)
                .join(Card.column)
                .filter(BoardColumn.board_id == board.id)
                .all()
            ]
            self.db.delete(board)

        logger.info(f"Deleted board {board_id} ({len(paths)} attachment files to purge)")
        schedule_file_purge(paths)
        self.notifier.publish(
            BoardEvent(BoardEventType.BOARD_DELETED, board_id, {"id": board_id})
        )

    def list_archived_cards(self, board_id: str, user_id: str) -> list[Card]:
        """Get archived cards across the board, most recently archived first."""
        board = get_owned_board(self.db, board_id, user_id)
        return (
            self.db.query(Card)
            .join(Card.column)
            .filter(BoardColumn.board_id == board.id, Card.archived.is_(True))
            .order_by(Card.archived_at.desc())
            .all()
        )

    def _publish_updated(self, board: Board) -> None:
        data = BoardResponse.model_validate(board).model_dump(mode="json")
        self.notifier.publish(BoardEvent(BoardEventType.BOARD_UPDATED, board.id, data))
