"""Column service: ordered lanes within a board."""

import logging

from sqlalchemy import func
from sqlalchemy.orm import Session

from src.models.attachment import Attachment
from src.models.board import Board
from src.models.card import Card
from src.models.column import BoardColumn
from src.schemas.column import ColumnResponse
from src.services.ownership import get_owned_board, get_owned_column
from src.services.positions import plan_append, plan_move, plan_removal, plan_reorder
from src.services.realtime import BoardEvent, BoardEventType, ChangeNotifier
from src.services.transactions import apply_shifts, atomic, lock_scopes, write_positions
from src.tasks.attachment_cleanup import schedule_file_purge

logger = logging.getLogger(__name__)


class ColumnService:
    """Service for column operations.

    Every positional change locks the owning board row for the length of the
    transaction, so concurrent column edits on one board run one at a time.
    """

    def __init__(self, db: Session, notifier: ChangeNotifier):
        self.db = db
        self.notifier = notifier

    def _column_count(self, board_id: str) -> int:
        return (
            self.db.query(func.count(BoardColumn.id))
            .filter(BoardColumn.board_id == board_id)
            .scalar()
        )

    def _ordered_columns(self, board_id: str) -> list[BoardColumn]:
        return (
            self.db.query(BoardColumn)
            .filter(BoardColumn.board_id == board_id)
            .order_by(BoardColumn.position)
            .all()
        )

    def create_column(self, board_id: str, user_id: str, title: str) -> BoardColumn:
        """Append a column to the end of the board."""
        with atomic(self.db):
            board = get_owned_board(self.db, board_id, user_id)
            lock_scopes(self.db, Board, [board.id])
            placement = plan_append(board.id, self._column_count(board.id))
            column = BoardColumn(board_id=board.id, title=title, position=placement.position)
            self.db.add(column)

        self._publish(BoardEventType.COLUMN_CREATED, column)
        return column

    def update_column(
        self,
        column_id: str,
        user_id: str,
        title: str | None = None,
        position: int | None = None,
    ) -> BoardColumn:
        """Rename a column and/or move it to another slot on its board.

        A new position is applied as a move: the columns in between shift to
        keep the board's positions dense.
        """
        with atomic(self.db):
            column = get_owned_column(self.db, column_id, user_id)
            if position is not None:
                lock_scopes(self.db, Board, [column.board_id])
                column = get_owned_column(self.db, column_id, user_id, refresh=True)
                placement = plan_move(
                    column.board_id,
                    column.position,
                    column.board_id,
                    position,
                    self._column_count(column.board_id),
                )
                apply_shifts(self.db, BoardColumn, BoardColumn.board_id, placement.shifts)
                column.position = placement.position
            if title is not None:
                column.title = title

        self._publish(BoardEventType.COLUMN_UPDATED, column)
        return column

    def delete_column(self, column_id: str, user_id: str) -> None:
        """Delete a column with its cards and close the gap it leaves."""
        with atomic(self.db):
            column = get_owned_column(self.db, column_id, user_id)
            lock_scopes(self.db, Board, [column.board_id])
            column = get_owned_column(self.db, column_id, user_id, refresh=True)
            board_id = column.board_id
            paths = [
                path
                for (path,) in self.db.query(Attachment.path)
                .join(Attachment.card)
                .filter(Card.column_id == column.id)
                .all()
            ]
            shifts = plan_removal(board_id, column.position)
            self.db.delete(column)
            self.db.flush()
            apply_shifts(self.db, BoardColumn, BoardColumn.board_id, shifts)

        logger.info(f"Deleted column {column_id} from board {board_id}")
        schedule_file_purge(paths)
        self.notifier.publish(
            BoardEvent(BoardEventType.COLUMN_DELETED, board_id, {"id": column_id})
        )

    def reorder_columns(
        self, board_id: str, user_id: str, column_ids: list[str]
    ) -> list[BoardColumn]:
        """Give the board's columns the order of ``column_ids``.

        The list must name every column of the board exactly once.
        """
        with atomic(self.db):
            board = get_owned_board(self.db, board_id, user_id)
            lock_scopes(self.db, Board, [board.id])
            current_ids = [
                column_id
                for (column_id,) in self.db.query(BoardColumn.id).filter(
                    BoardColumn.board_id == board.id
                )
            ]
            positions = plan_reorder(column_ids, current_ids)
            write_positions(self.db, BoardColumn, positions)

        self.notifier.publish(
            BoardEvent(BoardEventType.COLUMNS_REORDERED, board_id, {"column_ids": column_ids})
        )
        return self._ordered_columns(board_id)

    def _publish(self, event_type: BoardEventType, column: BoardColumn) -> None:
        data = ColumnResponse.model_validate(column).model_dump(mode="json")
        self.notifier.publish(BoardEvent(event_type, column.board_id, data))
