"""Transaction and scope-lock helpers shared by the mutation services."""

import logging
from collections.abc import Iterable, Iterator
from contextlib import contextmanager
from typing import Any

from sqlalchemy.orm import Session

from src.services.positions import Shift

logger = logging.getLogger(__name__)


@contextmanager
def atomic(db: Session) -> Iterator[Session]:
    """Run a block as one all-or-nothing unit.

    Commits when the block finishes, rolls back and re-raises on any error.
    """
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise


def lock_scopes(db: Session, model: Any, scope_ids: Iterable[str]) -> None:
    """Take row locks on the parent rows that own the position sequences.

    Locks are taken in sorted id order so two movers touching the same pair
    of columns cannot deadlock. SQLite ignores ``FOR UPDATE``; its database
    lock already serializes writers.
    """
    for scope_id in sorted(set(scope_ids)):
        db.query(model.id).filter(model.id == scope_id).with_for_update().first()


def apply_shifts(
    db: Session,
    model: Any,
    scope_column: Any,
    shifts: Iterable[Shift],
    *criteria: Any,
) -> int:
    """Execute planned shifts as bulk ``UPDATE`` statements.

    ``scope_column`` is the foreign key that defines the scope (``board_id`` or
    ``column_id``); ``criteria`` narrows the rows further, e.g. to active cards.
    Returns the number of rows touched.
    """
    touched = 0
    for shift in shifts:
        query = db.query(model).filter(
            scope_column == shift.scope_id,
            model.position >= shift.start,
            *criteria,
        )
        if shift.end is not None:
            query = query.filter(model.position <= shift.end)
        touched += query.update(
            {model.position: model.position + shift.delta},
            synchronize_session="fetch",
        )
    logger.debug(f"Applied shifts on {model.__tablename__}: {touched} rows")
    return touched


def write_position(db: Session, model: Any, entity_id: str, position: int) -> None:
    """Set one row's position directly."""
    db.query(model).filter(model.id == entity_id).update(
        {model.position: position}, synchronize_session="fetch"
    )


def write_positions(db: Session, model: Any, positions: dict[str, int]) -> None:
    """Write a whole reorder batch, one ``UPDATE`` per id, inside the caller's transaction."""
    for entity_id, position in positions.items():
        write_position(db, model, entity_id, position)
