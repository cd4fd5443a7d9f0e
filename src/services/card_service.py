"""Card service: create, edit, move, reorder and the archive lifecycle.

Only active cards take part in a column's position sequence. Archiving closes
the card's gap and leaves its stored position untouched; restoring appends it
to the end of its original column.
"""

import logging
from typing import Any

from sqlalchemy import func
from sqlalchemy.orm import Session

from src.models.card import Card
from src.models.column import BoardColumn
from src.models.enums import Priority
from src.schemas.card import CardResponse
from src.services.exceptions import InvalidStateError
from src.services.ownership import get_owned_card, get_owned_column
from src.services.positions import (
    plan_append,
    plan_move,
    plan_removal,
    plan_reorder,
    plan_restore,
)
from src.services.realtime import BoardEvent, BoardEventType, ChangeNotifier
from src.services.transactions import apply_shifts, atomic, lock_scopes, write_positions
from src.tasks.attachment_cleanup import schedule_file_purge

logger = logging.getLogger(__name__)

# Fields that are skipped when sent as null; the rest are cleared by null.
REQUIRED_FIELDS = ("title", "priority", "tags")
OPTIONAL_FIELDS = ("description", "deadline")

ACTIVE = Card.archived.is_(False)


class CardService:
    """Service for card operations.

    Positional changes lock the affected column row(s) for the length of the
    transaction.
    """

    def __init__(self, db: Session, notifier: ChangeNotifier):
        self.db = db
        self.notifier = notifier

    def _active_count(self, column_id: str) -> int:
        return (
            self.db.query(func.count(Card.id))
            .filter(Card.column_id == column_id, ACTIVE)
            .scalar()
        )

    def _active_cards(self, column_id: str) -> list[Card]:
        return (
            self.db.query(Card)
            .filter(Card.column_id == column_id, ACTIVE)
            .order_by(Card.position)
            .all()
        )

    def _lock_card(self, card: Card, user_id: str, *extra_columns: str) -> Card:
        """Lock the card's column (plus any extra columns) and re-read the card.

        A concurrent move can change the card's column before the lock is
        granted; in that case the new column is locked too and the card is
        read again until the column it sits in is held.
        """
        locked: set[str] = set()
        while card.column_id not in locked:
            pending = {card.column_id, *extra_columns} - locked
            lock_scopes(self.db, BoardColumn, pending)
            locked |= pending
            card = get_owned_card(self.db, card.id, user_id, refresh=True)
        return card

    def create_card(
        self,
        column_id: str,
        user_id: str,
        title: str,
        description: str | None = None,
        priority: Priority = Priority.MEDIUM,
        tags: list[str] | None = None,
        deadline: Any = None,
    ) -> Card:
        """Append a card to the end of the column's active cards."""
        with atomic(self.db):
            column = get_owned_column(self.db, column_id, user_id)
            lock_scopes(self.db, BoardColumn, [column.id])
            placement = plan_append(column.id, self._active_count(column.id))
            card = Card(
                column_id=column.id,
                title=title,
                description=description,
                priority=priority,
                tags=tags or [],
                deadline=deadline,
                position=placement.position,
            )
            self.db.add(card)

        self._publish(BoardEventType.CARD_CREATED, card)
        return card

    def update_card(self, card_id: str, user_id: str, changes: dict[str, Any]) -> Card:
        """Apply field changes. Has no effect on ordering."""
        with atomic(self.db):
            card = get_owned_card(self.db, card_id, user_id)
            for field in REQUIRED_FIELDS:
                if changes.get(field) is not None:
                    setattr(card, field, changes[field])
            for field in OPTIONAL_FIELDS:
                if field in changes:
                    setattr(card, field, changes[field])

        self._publish(BoardEventType.CARD_UPDATED, card)
        return card

    def delete_card(self, card_id: str, user_id: str) -> None:
        """Delete a card. An active card's later siblings move up one slot."""
        with atomic(self.db):
            card = self._lock_card(get_owned_card(self.db, card_id, user_id), user_id)
            board_id = card.board_id
            column_id = card.column_id
            paths = [attachment.path for attachment in card.attachments]
            shifts = () if card.archived else plan_removal(column_id, card.position)
            self.db.delete(card)
            self.db.flush()
            apply_shifts(self.db, Card, Card.column_id, shifts, ACTIVE)

        schedule_file_purge(paths)
        self.notifier.publish(
            BoardEvent(
                BoardEventType.CARD_DELETED, board_id, {"id": card_id, "column_id": column_id}
            )
        )

    def move_card(self, card_id: str, user_id: str, column_id: str, position: int) -> Card:
        """Move an active card to ``position`` in ``column_id`` (its own column or another).

        The target column must be on the same board and owned by the user.
        Out-of-range positions are clamped to the end of the target column.
        """
        with atomic(self.db):
            card = get_owned_card(self.db, card_id, user_id)
            target = get_owned_column(self.db, column_id, user_id)
            if target.board_id != card.board_id:
                raise InvalidStateError("Cards can only move between columns of the same board")

            card = self._lock_card(card, user_id, target.id)
            if card.archived:
                raise InvalidStateError("Archived cards cannot be moved")

            source_column_id = card.column_id
            source_position = card.position
            placement = plan_move(
                source_column_id,
                source_position,
                target.id,
                position,
                self._active_count(target.id),
            )
            apply_shifts(self.db, Card, Card.column_id, placement.shifts, ACTIVE)
            card.column_id = target.id
            card.position = placement.position
            board_id = target.board_id

        logger.info(
            f"Moved card {card_id}: {source_column_id}@{source_position} -> "
            f"{column_id}@{placement.position}"
        )
        self.notifier.publish(
            BoardEvent(
                BoardEventType.CARD_MOVED,
                board_id,
                {
                    "card_id": card_id,
                    "from_column_id": source_column_id,
                    "to_column_id": target.id,
                    "position": placement.position,
                },
            )
        )
        return card

    def reorder_cards(self, column_id: str, user_id: str, card_ids: list[str]) -> list[Card]:
        """Give the column's active cards the order of ``card_ids``.

        The list must name every active card of the column exactly once.
        """
        with atomic(self.db):
            column = get_owned_column(self.db, column_id, user_id)
            lock_scopes(self.db, BoardColumn, [column.id])
            current_ids = [
                card_id
                for (card_id,) in self.db.query(Card.id).filter(Card.column_id == column.id, ACTIVE)
            ]
            positions = plan_reorder(card_ids, current_ids)
            write_positions(self.db, Card, positions)
            board_id = column.board_id

        self.notifier.publish(
            BoardEvent(
                BoardEventType.CARDS_REORDERED,
                board_id,
                {"column_id": column_id, "card_ids": card_ids},
            )
        )
        return self._active_cards(column_id)

    def archive_card(self, card_id: str, user_id: str) -> Card:
        """Take an active card out of its column's ordering."""
        with atomic(self.db):
            card = self._lock_card(get_owned_card(self.db, card_id, user_id), user_id)
            if card.archived:
                raise InvalidStateError("Card is already archived")
            shifts = plan_removal(card.column_id, card.position)
            apply_shifts(self.db, Card, Card.column_id, shifts, ACTIVE)
            card.archive()

        logger.info(f"Archived card {card_id}")
        self._publish(BoardEventType.CARD_ARCHIVED, card)
        return card

    def restore_card(self, card_id: str, user_id: str) -> Card:
        """Return an archived card to the end of its original column."""
        with atomic(self.db):
            card = self._lock_card(get_owned_card(self.db, card_id, user_id), user_id)
            if not card.archived:
                raise InvalidStateError("Card is not archived")
            placement = plan_restore(card.column_id, self._active_count(card.column_id))
            card.unarchive()
            card.position = placement.position

        logger.info(f"Restored card {card_id} at position {placement.position}")
        self._publish(BoardEventType.CARD_RESTORED, card)
        return card

    def permanent_delete_card(self, card_id: str, user_id: str) -> None:
        """Delete an archived card for good. Active cards go through ``delete_card``."""
        with atomic(self.db):
            card = self._lock_card(get_owned_card(self.db, card_id, user_id), user_id)
            if not card.archived:
                raise InvalidStateError("Only archived cards can be permanently deleted")
            board_id = card.board_id
            column_id = card.column_id
            paths = [attachment.path for attachment in card.attachments]
            self.db.delete(card)

        schedule_file_purge(paths)
        self.notifier.publish(
            BoardEvent(
                BoardEventType.CARD_DELETED, board_id, {"id": card_id, "column_id": column_id}
            )
        )

    def _publish(self, event_type: BoardEventType, card: Card) -> None:
        data = CardResponse.model_validate(card).model_dump(mode="json")
        self.notifier.publish(BoardEvent(event_type, card.board_id, data))
