"""Celery tasks for removing attachment files from disk."""

import logging

from kombu.exceptions import OperationalError

from src.celery_app import app as celery_app
from src.services.storage import FileStorage

logger = logging.getLogger(__name__)


@celery_app.task(bind=True, max_retries=3, default_retry_delay=30)
def purge_attachment_files(self, paths: list[str]) -> dict:
    """Delete attachment files whose database rows are already gone.

    Runs after a board, column or card delete has cascaded through its
    attachment rows.

    Args:
        paths: Attachment paths relative to the upload directory

    Returns:
        dict with the number of files removed and failed
    """
    storage = FileStorage()
    removed = 0
    failed: list[str] = []

    for path in paths:
        try:
            storage.delete(path)
            removed += 1
        except (OSError, ValueError) as e:
            logger.error(f"Failed to purge attachment file {path}: {e}")
            failed.append(path)

    if failed and self.request.retries < self.max_retries:
        raise self.retry(args=[failed])

    logger.info(f"Attachment purge complete: {removed} removed, {len(failed)} failed")
    return {"removed": removed, "failed": len(failed)}


def schedule_file_purge(paths: list[str]) -> None:
    """Queue a purge for files orphaned by a committed cascade delete."""
    if not paths:
        return
    try:
        purge_attachment_files.delay(paths)
    except OperationalError as e:
        # The delete already committed; the files stay orphaned until a manual sweep.
        logger.error(f"Could not queue attachment purge for {len(paths)} files: {e}")
