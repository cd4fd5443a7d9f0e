"""FastAPI dependencies for authentication, database and services."""

from typing import Annotated

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from src.database import get_db
from src.models.user import User
from src.services.attachment_service import AttachmentService
from src.services.auth import get_user_from_token
from src.services.board_service import BoardService
from src.services.card_service import CardService
from src.services.column_service import ColumnService
from src.services.realtime import ChangeNotifier, get_notifier
from src.services.storage import FileStorage

security = HTTPBearer()


def get_current_user(
    credentials: Annotated[HTTPAuthorizationCredentials, Depends(security)],
    db: Annotated[Session, Depends(get_db)],
) -> User:
    """Get the current authenticated user from JWT token."""
    user = get_user_from_token(db, credentials.credentials)
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid authentication credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return user


def get_file_storage() -> FileStorage:
    """Get file storage rooted at the configured upload directory."""
    return FileStorage()


def get_board_service(
    db: Annotated[Session, Depends(get_db)],
    notifier: Annotated[ChangeNotifier, Depends(get_notifier)],
) -> BoardService:
    """Get board service with dependencies."""
    return BoardService(db, notifier)


def get_column_service(
    db: Annotated[Session, Depends(get_db)],
    notifier: Annotated[ChangeNotifier, Depends(get_notifier)],
) -> ColumnService:
    """Get column service with dependencies."""
    return ColumnService(db, notifier)


def get_card_service(
    db: Annotated[Session, Depends(get_db)],
    notifier: Annotated[ChangeNotifier, Depends(get_notifier)],
) -> CardService:
    """Get card service with dependencies."""
    return CardService(db, notifier)


def get_attachment_service(
    db: Annotated[Session, Depends(get_db)],
    notifier: Annotated[ChangeNotifier, Depends(get_notifier)],
    storage: Annotated[FileStorage, Depends(get_file_storage)],
) -> AttachmentService:
    """Get attachment service with dependencies."""
    return AttachmentService(db, notifier, storage)
