"""Attachment schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict


class AttachmentResponse(BaseModel):
    """Attachment metadata response."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    card_id: str
    user_id: str
    filename: str
    original_name: str
    mime_type: str
    size: int
    created_at: datetime
