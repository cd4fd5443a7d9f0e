"""Board model."""

from sqlalchemy import Boolean, Column, ForeignKey, String
from sqlalchemy.orm import relationship

from src.database import Base
from src.models.mixins import TimestampMixin, generate_id


class Board(Base, TimestampMixin):
    """Board model: a workspace owning an ordered list of columns."""

    __tablename__ = "boards"

    id = Column(String(36), primary_key=True, default=generate_id)
    title = Column(String(100), nullable=False)
    user_id = Column(
        String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    icon = Column(String(8), nullable=True)  # emoji
    is_favorite = Column(Boolean, default=False, nullable=False)

    # Relationships
    owner = relationship("User", back_populates="boards")
    columns = relationship(
        "BoardColumn",
        back_populates="board",
        cascade="all, delete-orphan",
        order_by="BoardColumn.position",
    )
