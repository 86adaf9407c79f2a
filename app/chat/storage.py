"""
Blob store adapter for chat media.

Chat media (message images/audio, group icons) is uploaded out of band;
the chat service only validates descriptors and deletes blobs when their
message or conversation goes away. Deletion goes through a Django storage
backend (settings.CHAT_MEDIA_STORAGE_ALIAS), so any backend configured in
STORAGES (filesystem locally, object storage in deployment) works.

Stored references come in several shapes; extract_object_path()
normalizes each to the storage object key:
    https://res.cloudinary.com/<cloud>/image/upload/v123/<key>.<ext>
    https://storage.googleapis.com/<bucket>/<key>
    gs://<bucket>/<key>  (also s3://)
    <key>  (already an object key)

Blobs a conversation owns live under media_folder(conversation_id); only
keys under that prefix are ever accepted on messages or deleted with them.

Usage:
    from chat.storage import ChatMediaStorage, media_folder, media_object_paths

    for path in media_object_paths(message.media, media_folder(conversation.pk)):
        ChatMediaStorage.delete_file(path)
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Any
from urllib.parse import unquote, urlparse

from django.conf import settings
from django.core.files.storage import storages

from chat.constants import MEDIA_CONFIG

logger = logging.getLogger(__name__)

_CDN_HOST = "res.cloudinary.com"
_OBJECT_STORAGE_HOST = "storage.googleapis.com"
_RAW_SCHEMES = ("gs", "s3")
_VERSION_SEGMENT = re.compile(r"^v\d+$")

# Descriptor keys that may point at a blob
_REFERENCE_KEYS = ("objectPath", "url", "thumbnailUrl")


def extract_object_path(reference: str | None) -> str | None:
    """
    Canonical object key for a stored media reference.

    Returns None for anything that cannot be resolved; callers skip those.
    """
    if not reference or not isinstance(reference, str):
        return None
    reference = reference.strip()

    try:
        parsed = urlparse(reference)
    except ValueError:
        return None

    if parsed.scheme in ("http", "https"):
        host = (parsed.hostname or "").lower()
        if host == _CDN_HOST:
            return _safe_key(_cdn_object_path(parsed.path))
        if host == _OBJECT_STORAGE_HOST:
            segments = [segment for segment in parsed.path.split("/") if segment]
            if len(segments) >= 2:
                return _safe_key(unquote("/".join(segments[1:])))
        return None

    if parsed.scheme in _RAW_SCHEMES:
        return _safe_key(parsed.path.lstrip("/"))

    if parsed.scheme or reference.startswith("/"):
        return None

    return _safe_key(reference)


def _safe_key(key: str | None) -> str | None:
    """Key without relative segments, or None."""
    if not key or key.startswith("/"):
        return None
    if any(segment in (".", "..") for segment in key.split("/")):
        return None
    return key


def _cdn_object_path(path: str) -> str | None:
    """Public id after /upload/, without version segment or extension."""
    marker = "/upload/"
    index = path.find(marker)
    if index == -1:
        return None

    parts = path[index + len(marker):].split("/")
    if parts and _VERSION_SEGMENT.match(parts[0]):
        parts = parts[1:]
    if not parts:
        return None

    last = parts.pop()
    if "." in last:
        last = last[: last.rfind(".")]
    public_id = "/".join([*parts, last]).strip("/")
    return unquote(public_id) or None


def media_folder(conversation_id: Any) -> str:
    """Object key prefix owned by one conversation."""
    return MEDIA_CONFIG.FOLDER_PATTERN.format(conversation_id=conversation_id)


def is_in_folder(object_path: str | None, folder: str) -> bool:
    return bool(object_path) and object_path.startswith(folder) and object_path != folder


@dataclass
class MediaValidation:
    valid: bool
    error: str | None = None
    code: str | None = None


def validate_media_descriptor(message_type: str, media: Any, folder: str) -> MediaValidation:
    """
    Validate the media descriptor of an image or audio message.

    The descriptor must reference the blob (objectPath or url) and carry
    a MIME type and byte size inside the limits for its type. Every
    reference that resolves to an object key must sit under folder, the
    sending conversation's media_folder().
    """
    from chat.exceptions import ChatErrorCode

    if message_type == "image":
        allowed, max_bytes = MEDIA_CONFIG.IMAGE_MIME_TYPES, MEDIA_CONFIG.IMAGE_MAX_BYTES
    elif message_type == "audio":
        if not MEDIA_CONFIG.audio_enabled():
            return MediaValidation(
                False, "audio messages are disabled", ChatErrorCode.MEDIA_TYPE_DISABLED
            )
        allowed, max_bytes = MEDIA_CONFIG.AUDIO_MIME_TYPES, MEDIA_CONFIG.AUDIO_MAX_BYTES
    else:
        return MediaValidation(
            False, f"Unsupported media type: {message_type}", ChatErrorCode.INVALID_MEDIA
        )

    if not isinstance(media, dict):
        return MediaValidation(
            False, f"Media is required for {message_type} messages", ChatErrorCode.INVALID_MEDIA
        )

    if not (media.get("objectPath") or media.get("url")):
        return MediaValidation(
            False, "Media must include objectPath or url", ChatErrorCode.INVALID_MEDIA
        )

    for key in _REFERENCE_KEYS:
        reference = media.get(key)
        if reference is None:
            continue
        object_path = extract_object_path(reference)
        if key == "objectPath" and object_path is None:
            return MediaValidation(
                False, "objectPath must be a storage object key", ChatErrorCode.INVALID_MEDIA
            )
        if object_path is not None and not is_in_folder(object_path, folder):
            return MediaValidation(
                False, f"Media must be stored under {folder}", ChatErrorCode.INVALID_MEDIA
            )

    mime = media.get("mime")
    if mime not in allowed:
        return MediaValidation(
            False,
            f"Unsupported MIME type: {mime}. Allowed: {', '.join(allowed)}",
            ChatErrorCode.INVALID_MEDIA,
        )

    size = media.get("size")
    if isinstance(size, bool) or not isinstance(size, int) or size <= 0:
        return MediaValidation(False, "Media size is required", ChatErrorCode.INVALID_MEDIA)
    if size > max_bytes:
        return MediaValidation(
            False,
            f"File too large. Maximum size: {max_bytes // (1024 * 1024)}MB",
            ChatErrorCode.INVALID_MEDIA,
        )

    return MediaValidation(True)


def media_object_paths(media: Any, folder: str) -> list[str]:
    """
    Object keys under folder referenced by a media descriptor.

    Keys outside folder belong to someone else and are never returned
    for deletion.
    """
    if not isinstance(media, dict):
        return []
    paths = []
    for key in _REFERENCE_KEYS:
        path = extract_object_path(media.get(key))
        if is_in_folder(path, folder) and path not in paths:
            paths.append(path)
    return paths


class ChatMediaStorage:
    """
    Idempotent blob deletion on the configured storage backend.

    Usage:
        ChatMediaStorage.delete_file("chat/conversations/<id>/messages/<id>/a.png")
    """

    @staticmethod
    def get_storage():
        return storages[settings.CHAT_MEDIA_STORAGE_ALIAS]

    @classmethod
    def delete_file(cls, object_path: str) -> bool:
        """
        Delete one object.

        Returns:
            True if the object existed and was deleted, False if it was
            already absent. Backend failures propagate to the caller.
        """
        storage = cls.get_storage()
        if not storage.exists(object_path):
            logger.debug(f"Chat media already absent: {object_path}")
            return False
        storage.delete(object_path)
        logger.info(f"Deleted chat media: {object_path}")
        return True
