"""Card model."""

from sqlalchemy import JSON, Column, DateTime, Enum, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import relationship

from src.database import Base
from src.models.enums import Priority
from src.models.mixins import ArchiveMixin, TimestampMixin, generate_id


class Card(Base, TimestampMixin, ArchiveMixin):
    """Task unit within a column.

    Only active (non-archived) cards take part in the column's dense position
    sequence; an archived card keeps whatever position it had when archived.
    """

    __tablename__ = "cards"
    __table_args__ = (
        Index("ix_cards_column_active_position", "column_id", "archived", "position"),
    )

    id = Column(String(36), primary_key=True, default=generate_id)
    column_id = Column(
        String(36), ForeignKey("columns.id", ondelete="CASCADE"), nullable=False, index=True
    )
    title = Column(String(200), nullable=False)
    description = Column(Text, nullable=True)
    priority = Column(
        Enum(Priority, name="priority", values_callable=lambda e: [m.value for m in e]),
        default=Priority.MEDIUM,
        nullable=False,
    )
    tags = Column(JSON, nullable=False, default=list)
    deadline = Column(DateTime(timezone=True), nullable=True)
    position = Column(Integer, nullable=False, default=0)

    # Relationships
    column = relationship("BoardColumn", back_populates="cards")
    attachments = relationship(
        "Attachment",
        back_populates="card",
        cascade="all, delete-orphan",
        order_by="Attachment.created_at.desc()",
    )

    @property
    def board_id(self) -> str:
        """Owning board, through the column."""
        return self.column.board_id
