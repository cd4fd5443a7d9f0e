"""Attachment API endpoints."""

from typing import Annotated

from fastapi import APIRouter, Depends, File, UploadFile, status
from fastapi.responses import FileResponse

from src.api.dependencies import get_attachment_service, get_current_user
from src.models.user import User
from src.schemas.attachment import AttachmentResponse
from src.services.attachment_service import AttachmentService

router = APIRouter(prefix="/api/v1", tags=["attachments"])


@router.post(
    "/cards/{card_id}/attachments",
    response_model=AttachmentResponse,
    status_code=status.HTTP_201_CREATED,
)
async def upload_attachment(
    card_id: str,
    file: Annotated[UploadFile, File(description="File to attach (max 10MB)")],
    current_user: Annotated[User, Depends(get_current_user)],
    service: Annotated[AttachmentService, Depends(get_attachment_service)],
):
    """Upload a file and attach it to a card.

    Note: This endpoint must remain async because UploadFile.read() is async.
    """
    content = await file.read()
    return service.create_attachment(
        card_id,
        current_user.id,
        original_name=file.filename or "file",
        mime_type=file.content_type or "application/octet-stream",
        content=content,
    )


@router.get("/cards/{card_id}/attachments", response_model=list[AttachmentResponse])
def get_attachments(
    card_id: str,
    current_user: Annotated[User, Depends(get_current_user)],
    service: Annotated[AttachmentService, Depends(get_attachment_service)],
):
    """Get all attachments for a card."""
    return service.list_attachments(card_id, current_user.id)


@router.get("/attachments/{attachment_id}/download")
def download_attachment(
    attachment_id: str,
    current_user: Annotated[User, Depends(get_current_user)],
    service: Annotated[AttachmentService, Depends(get_attachment_service)],
):
    """Download an attachment's file."""
    attachment, path = service.open_attachment(attachment_id, current_user.id)
    return FileResponse(path, media_type=attachment.mime_type, filename=attachment.original_name)


@router.delete("/attachments/{attachment_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_attachment(
    attachment_id: str,
    current_user: Annotated[User, Depends(get_current_user)],
    service: Annotated[AttachmentService, Depends(get_attachment_service)],
):
    """Delete an attachment and its file."""
    service.delete_attachment(attachment_id, current_user.id)
