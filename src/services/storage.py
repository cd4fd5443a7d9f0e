"""On-disk storage for attachment files.

Files live under ``<upload_dir>/<user_id>/<card_id>/<filename>``; the
database stores the path relative to ``upload_dir``.
"""

import logging
import mimetypes
import re
import secrets
import time
from pathlib import Path

from src.config import get_settings

logger = logging.getLogger(__name__)

ALLOWED_MIME_TYPES = {
    # Images
    "image/jpeg",
    "image/jpg",
    "image/png",
    "image/gif",
    "image/webp",
    "image/svg+xml",
    # Documents
    "application/pdf",
    "application/msword",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    "text/plain",
    "text/csv",
    "application/rtf",
    # Spreadsheets
    "application/vnd.ms-excel",
    "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    # Presentations
    "application/vnd.ms-powerpoint",
    "application/vnd.openxmlformats-officedocument.presentationml.presentation",
    # Archives
    "application/zip",
    "application/x-rar-compressed",
    "application/x-7z-compressed",
}

# Extensions the stdlib mimetypes table does not know or guesses oddly
EXTRA_EXTENSIONS = {
    "image/jpg": ".jpg",
    "application/x-rar-compressed": ".rar",
    "application/x-7z-compressed": ".7z",
}

CYRILLIC_PATTERN = re.compile(r"[а-яё]", re.IGNORECASE)


def repair_filename_encoding(name: str) -> str:
    """Undo the latin-1 mis-decoding multipart parsers apply to UTF-8 filenames.

    Only the repaired name is returned when it decodes cleanly and contains
    Cyrillic letters; anything else comes back unchanged.
    """
    try:
        decoded = name.encode("latin-1").decode("utf-8")
    except (UnicodeEncodeError, UnicodeDecodeError):
        return name
    if decoded != name and CYRILLIC_PATTERN.search(decoded):
        return decoded
    return name


def file_extension(original_name: str, mime_type: str) -> str:
    """Extension from the original name, falling back to the MIME type."""
    suffix = Path(original_name).suffix.lower()
    if suffix:
        return suffix
    return EXTRA_EXTENSIONS.get(mime_type) or mimetypes.guess_extension(mime_type) or ""


def generate_filename(original_name: str, mime_type: str) -> str:
    """Unique on-disk name: ``<epoch-ms>-<16 hex chars><ext>``."""
    timestamp = int(time.time() * 1000)
    return f"{timestamp}-{secrets.token_hex(8)}{file_extension(original_name, mime_type)}"


class FileStorage:
    """Reads and writes attachment bytes beneath one root directory."""

    def __init__(self, root: str | Path | None = None):
        self.root = Path(root or get_settings().upload_dir).resolve()

    def absolute_path(self, relative_path: str) -> Path:
        """Resolve a stored relative path, refusing anything outside the root."""
        path = (self.root / relative_path).resolve()
        if not path.is_relative_to(self.root):
            raise ValueError(f"Path escapes upload directory: {relative_path}")
        return path

    def save(self, user_id: str, card_id: str, filename: str, content: bytes) -> str:
        """Write bytes and return the path relative to the root."""
        directory = self.root / user_id / card_id
        directory.mkdir(parents=True, exist_ok=True)
        path = directory / filename
        path.write_bytes(content)
        return path.relative_to(self.root).as_posix()

    def exists(self, relative_path: str) -> bool:
        return self.absolute_path(relative_path).is_file()

    def delete(self, relative_path: str) -> None:
        """Delete a stored file and prune directories it leaves empty.

        A file that is already gone is not an error.
        """
        path = self.absolute_path(relative_path)
        try:
            path.unlink()
        except FileNotFoundError:
            logger.warning(f"Attachment file already missing: {relative_path}")
        self.cleanup_empty_directories(path.parent)

    def cleanup_empty_directories(self, directory: Path) -> None:
        """Remove empty directories from ``directory`` up to, not including, the root."""
        current = directory
        while current != self.root and current.is_relative_to(self.root):
            try:
                current.rmdir()
            except OSError:
                # Not empty (or already gone); stop climbing.
                break
            current = current.parent
