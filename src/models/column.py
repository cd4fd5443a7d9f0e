"""Board column model."""

from sqlalchemy import Column, ForeignKey, Index, Integer, String
from sqlalchemy.orm import relationship

from src.database import Base
from src.models.mixins import TimestampMixin, generate_id


class BoardColumn(Base, TimestampMixin):
    """A lane within a board.

    ``position`` is dense and 0-based within the board.
    """

    __tablename__ = "columns"
    __table_args__ = (Index("ix_columns_board_position", "board_id", "position"),)

    id = Column(String(36), primary_key=True, default=generate_id)
    board_id = Column(
        String(36), ForeignKey("boards.id", ondelete="CASCADE"), nullable=False, index=True
    )
    title = Column(String(50), nullable=False)
    position = Column(Integer, nullable=False, default=0)

    # Relationships
    board = relationship("Board", back_populates="columns")
    cards = relationship(
        "Card",
        back_populates="column",
        cascade="all, delete-orphan",
        order_by="Card.position",
    )

    @property
    def active_cards(self) -> list:
        """Non-archived cards in display order."""
        return [card for card in self.cards if not card.archived]
