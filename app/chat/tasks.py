"""
Celery tasks for chat app.

This module defines async tasks for:
- Media blob cleanup after a message or conversation delete

Blob cleanup never runs inside the database transaction of the delete
that caused it: services enqueue it post-commit through
schedule_media_cleanup(), so a blob store outage cannot fail the delete.

Related files:
    - services.py: MessageService, ModerationService
    - storage.py: ChatMediaStorage

Usage:
    from chat.tasks import schedule_media_cleanup

    schedule_media_cleanup(["chat/conversations/<id>/messages/<id>/a.png"])
"""

from __future__ import annotations

import logging
from functools import partial

from celery import shared_task
from django.db import transaction

logger = logging.getLogger(__name__)


class MediaCleanupError(Exception):
    """Raised when some blobs could not be deleted, so the task retries."""


@shared_task(
    bind=True,
    autoretry_for=(MediaCleanupError,),
    retry_backoff=True,
    retry_kwargs={"max_retries": 3},
)
def delete_chat_media(self, object_paths: list[str]) -> int:
    """
    Delete chat media blobs.

    Each path is attempted independently; deletes are idempotent, so a
    retry after partial failure is safe.

    Args:
        object_paths: Storage object keys

    Returns:
        Number of blobs actually deleted
    """
    from chat.storage import ChatMediaStorage

    deleted = 0
    failed = []
    for path in object_paths:
        try:
            if ChatMediaStorage.delete_file(path):
                deleted += 1
        except Exception:
            logger.warning(f"Failed to delete chat media {path}", exc_info=True)
            failed.append(path)

    if failed:
        raise MediaCleanupError(f"{len(failed)} chat media blob(s) not deleted: {failed}")

    logger.info(f"Chat media cleanup finished: {deleted}/{len(object_paths)} deleted")
    return deleted


def _enqueue_media_cleanup(object_paths: list[str]) -> None:
    try:
        delete_chat_media.delay(object_paths)
    except Exception:
        logger.warning(
            f"Could not enqueue chat media cleanup for {len(object_paths)} blob(s)",
            exc_info=True,
        )


def schedule_media_cleanup(object_paths: list[str]) -> None:
    """
    Enqueue blob cleanup once the current transaction commits.

    Outside a transaction the task is enqueued immediately. Enqueue
    failures are logged and never reach the caller.
    """
    if not object_paths:
        return
    transaction.on_commit(partial(_enqueue_media_cleanup, list(object_paths)), robust=True)
