"""Attachment service: file metadata records for cards."""

import logging
from pathlib import Path

from sqlalchemy.orm import Session

from src.config import get_settings
from src.models.attachment import Attachment
from src.schemas.attachment import AttachmentResponse
from src.services.exceptions import AttachmentRejectedError, NotFoundError
from src.services.ownership import get_owned_attachment, get_owned_card
from src.services.realtime import BoardEvent, BoardEventType, ChangeNotifier
from src.services.storage import (
    ALLOWED_MIME_TYPES,
    FileStorage,
    generate_filename,
    repair_filename_encoding,
)
from src.services.transactions import atomic

logger = logging.getLogger(__name__)
settings = get_settings()


class AttachmentService:
    """Service for card attachments.

    Attachments carry no ordering, so nothing here touches positions.
    """

    def __init__(self, db: Session, notifier: ChangeNotifier, storage: FileStorage | None = None):
        self.db = db
        self.notifier = notifier
        self.storage = storage or FileStorage()

    def create_attachment(
        self,
        card_id: str,
        user_id: str,
        original_name: str,
        mime_type: str,
        content: bytes,
    ) -> Attachment:
        """Store an uploaded file and record it against the card."""
        card = get_owned_card(self.db, card_id, user_id)
        board_id = card.column.board_id

        if mime_type not in ALLOWED_MIME_TYPES:
            raise AttachmentRejectedError(f"File type {mime_type} is not allowed")
        if not content:
            raise AttachmentRejectedError("File is empty")
        if len(content) > settings.max_upload_size:
            max_mb = settings.max_upload_size // (1024 * 1024)
            raise AttachmentRejectedError(
                f"File too large. Maximum size is {max_mb}MB.", too_large=True
            )

        original_name = repair_filename_encoding(original_name)
        filename = generate_filename(original_name, mime_type)
        path = self.storage.save(user_id, card.id, filename, content)

        try:
            with atomic(self.db):
                attachment = Attachment(
                    card_id=card.id,
                    user_id=user_id,
                    filename=filename,
                    original_name=original_name,
                    mime_type=mime_type,
                    size=len(content),
                    path=path,
                )
                self.db.add(attachment)
        except Exception:
            # Row never committed; don't leave the bytes behind.
            self.storage.delete(path)
            raise

        logger.info(f"Stored attachment {attachment.id} ({len(content)} bytes) on card {card_id}")
        self.notifier.publish(
            BoardEvent(
                BoardEventType.ATTACHMENT_CREATED,
                board_id,
                {
                    "card_id": card_id,
                    "attachment": AttachmentResponse.model_validate(attachment).model_dump(
                        mode="json"
                    ),
                },
            )
        )
        return attachment

    def list_attachments(self, card_id: str, user_id: str) -> list[Attachment]:
        """Get a card's attachments, newest first."""
        card = get_owned_card(self.db, card_id, user_id)
        return (
            self.db.query(Attachment)
            .filter(Attachment.card_id == card.id)
            .order_by(Attachment.created_at.desc())
            .all()
        )

    def get_attachment(self, attachment_id: str, user_id: str) -> Attachment:
        return get_owned_attachment(self.db, attachment_id, user_id)

    def open_attachment(self, attachment_id: str, user_id: str) -> tuple[Attachment, Path]:
        """Resolve an attachment to its file on disk for download."""
        attachment = get_owned_attachment(self.db, attachment_id, user_id)
        if not self.storage.exists(attachment.path):
            logger.warning(f"Attachment {attachment_id} has no file at {attachment.path}")
            raise NotFoundError("File not found on disk")
        return attachment, self.storage.absolute_path(attachment.path)

    def delete_attachment(self, attachment_id: str, user_id: str) -> None:
        """Delete the record, then the file."""
        with atomic(self.db):
            attachment = get_owned_attachment(self.db, attachment_id, user_id)
            board_id = attachment.card.column.board_id
            card_id = attachment.card_id
            path = attachment.path
            self.db.delete(attachment)

        self.storage.delete(path)
        self.notifier.publish(
            BoardEvent(
                BoardEventType.ATTACHMENT_DELETED,
                board_id,
                {"id": attachment_id, "card_id": card_id},
            )
        )
