"""Attachment model."""

from sqlalchemy import BigInteger, Column, DateTime, ForeignKey, String, func
from sqlalchemy.orm import relationship

from src.database import Base
from src.models.mixins import generate_id


class Attachment(Base):
    """Metadata for a file attached to a card. Bytes live in the upload directory."""

    __tablename__ = "attachments"

    id = Column(String(36), primary_key=True, default=generate_id)
    card_id = Column(
        String(36), ForeignKey("cards.id", ondelete="CASCADE"), nullable=False, index=True
    )
    user_id = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)
    filename = Column(String(255), nullable=False)  # generated, on-disk name
    original_name = Column(String(255), nullable=False)
    mime_type = Column(String(255), nullable=False)
    size = Column(BigInteger, nullable=False)
    path = Column(String(500), nullable=False)  # relative to the upload directory
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    # Relationships
    card = relationship("Card", back_populates="attachments")
    uploader = relationship("User")
