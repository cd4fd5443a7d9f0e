"""Mixins for SQLAlchemy models."""

import uuid
from datetime import UTC, datetime

from sqlalchemy import Boolean, Column, DateTime, func


def generate_id() -> str:
    """Generate an opaque string primary key."""
    return str(uuid.uuid4())


class TimestampMixin:
    """Mixin to add created_at and updated_at timestamp columns."""

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )


class ArchiveMixin:
    """Mixin to add archive (soft delete) state.

    Archiving does not touch any ordering column; callers own positional
    bookkeeping.
    """

    archived = Column(Boolean, default=False, nullable=False, index=True)
    archived_at = Column(DateTime(timezone=True), nullable=True)

    def archive(self) -> None:
        """Mark the record archived."""
        self.archived = True
        self.archived_at = datetime.now(UTC)

    def unarchive(self) -> None:
        """Clear the archived state."""
        self.archived = False
        self.archived_at = None
