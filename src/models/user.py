"""User model."""

from sqlalchemy import Column, String
from sqlalchemy.orm import relationship

from src.database import Base
from src.models.mixins import TimestampMixin, generate_id


class User(Base, TimestampMixin):
    """User model for authentication and board ownership."""

    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=generate_id)
    email = Column(String(255), unique=True, nullable=False, index=True)
    password_hash = Column(String(255), nullable=False)
    first_name = Column(String(100), nullable=True)
    last_name = Column(String(100), nullable=True)

    # Relationships
    boards = relationship("Board", back_populates="owner", cascade="all, delete-orphan")
