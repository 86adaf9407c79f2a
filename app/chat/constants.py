"""
Constants and configuration for chat module features.

This module centralizes configuration values for:
- Conversation limits (titles, previews, scan windows)
- Message operations (editing, content limits, history pages)
- Media attachments (allowed MIME types, sizes, storage layout)
- Reactions
- Presence

Deployment-tunable values (scan windows, audio on/off) are read from
Django settings at call time; see config/settings.py.

Import example:
    from chat.constants import MESSAGE_CONFIG, REACTION_CONFIG
"""

from typing import Final

from django.conf import settings


# =============================================================================
# Conversation Configuration
# =============================================================================


class CONVERSATION_CONFIG:
    """Configuration for conversations and participants."""

    MAX_TITLE_LENGTH: Final[int] = 80
    MAX_PREVIEW_LENGTH: Final[int] = 100

    DIRECT_MEMBER_COUNT: Final[int] = 2
    MIN_GROUP_MEMBER_COUNT: Final[int] = 2

    # Listing
    DEFAULT_PAGE_SIZE: Final[int] = 20
    MAX_PAGE_SIZE: Final[int] = 50

    # Separator for canonical direct-pair keys ("<low>_<high>")
    PAIR_KEY_SEPARATOR: Final[str] = "_"

    @staticmethod
    def scan_window() -> int:
        """Cap on rows read by listing and direct-pair fallback scans."""
        return settings.CHAT_SCAN_WINDOW


# =============================================================================
# Message Configuration
# =============================================================================


class MESSAGE_CONFIG:
    """Configuration for message operations."""

    # Content limits (applied before sanitizing)
    MAX_TEXT_LENGTH: Final[int] = 5000

    # Edit settings
    EDIT_TIME_LIMIT_SECONDS: Final[int] = 900  # 15 minutes

    # History pages
    DEFAULT_PAGE_SIZE: Final[int] = 30
    MAX_PAGE_SIZE: Final[int] = 100

    ORDER_ASC: Final[str] = "asc"
    ORDER_DESC: Final[str] = "desc"

    @staticmethod
    def scan_window() -> int:
        """Cap on rows read per message history page."""
        return settings.CHAT_MESSAGE_SCAN_WINDOW


# =============================================================================
# Media Configuration
# =============================================================================


class MEDIA_CONFIG:
    """
    Configuration for image and audio messages.

    Uploads happen out of band through signed URLs; a message only
    carries a descriptor (objectPath or url, mime, size, dimensions or
    duration) that is validated here.
    """

    IMAGE_MIME_TYPES: Final[tuple] = ("image/jpeg", "image/png", "image/webp")
    IMAGE_MAX_BYTES: Final[int] = 5 * 1024 * 1024  # 5MB

    AUDIO_MIME_TYPES: Final[tuple] = ("audio/mpeg", "audio/aac", "audio/webm")
    AUDIO_MAX_BYTES: Final[int] = 20 * 1024 * 1024  # 20MB

    # Object key prefix owned by one conversation (message media, icon)
    FOLDER_PATTERN: Final[str] = "chat/conversations/{conversation_id}/"

    IMAGE_PREVIEW: Final[str] = "\U0001f4f7 Image"
    AUDIO_PREVIEW: Final[str] = "\U0001f3b5 Audio"

    @staticmethod
    def audio_enabled() -> bool:
        return settings.CHAT_AUDIO_ENABLED


# =============================================================================
# Reaction Configuration
# =============================================================================


class REACTION_CONFIG:
    """Configuration for message reactions."""

    # Max characters for a single reaction (handles compound emojis)
    MAX_VALUE_LENGTH: Final[int] = 10

    # Common quick reactions for UI hints (suggestions only, not restrictions)
    QUICK_REACTIONS: Final[tuple] = (
        "\U0001f44d",
        "❤️",
        "\U0001f602",
        "\U0001f62e",
        "\U0001f622",
        "\U0001f389",
    )


# =============================================================================
# Presence Configuration
# =============================================================================


class PRESENCE_CONFIG:
    """Configuration for presence and typing."""

    STATE_ONLINE: Final[str] = "online"
    STATE_OFFLINE: Final[str] = "offline"

    # Clients stop showing a typing indicator older than this
    TYPING_STALE_SECONDS: Final[int] = 10


# =============================================================================
# Participant Display
# =============================================================================


class DISPLAY_CONFIG:
    """Fallbacks used when hydrating user display data."""

    ANONYMOUS_NICKNAME: Final[str] = "Anonymous"


# =============================================================================
# Block Configuration
# =============================================================================


class BLOCK_CONFIG:
    """Configuration for the blocked-users list."""

    DEFAULT_PAGE_SIZE: Final[int] = 20
    MAX_PAGE_SIZE: Final[int] = 100
