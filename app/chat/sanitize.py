"""
Text sanitizing and previews for chat messages.

Chat text is plain text: HTML is stripped entirely and lightweight
markdown markers (**bold**, *italic*, _underline_, `code`) are reduced to
their inner text. Sanitizing is a pure function; services call it before
persisting and before building conversation previews.

Usage:
    from chat.sanitize import sanitize_chat_text, build_message_preview

    sanitize_chat_text("<b>hi</b> **there**")  # "hi there"
    build_message_preview("x" * 200)            # 97 chars + "..."
"""

from __future__ import annotations

import re

from django.utils.html import strip_tags

from chat.constants import CONVERSATION_CONFIG, MEDIA_CONFIG, MESSAGE_CONFIG

# Elements whose content is dropped along with the tags
_NON_TEXT_BLOCKS = re.compile(
    r"<(script|style|textarea|noscript)\b[^>]*>.*?</\1\s*>",
    re.IGNORECASE | re.DOTALL,
)
_BOLD = re.compile(r"\*\*(.*?)\*\*")
_ITALIC = re.compile(r"\*(.*?)\*")
_UNDERLINE = re.compile(r"_(.*?)_")
_CODE = re.compile(r"`(.*?)`")
_NEWLINES = re.compile(r"\r\n|\r|\n")

ELLIPSIS = "..."


def sanitize_chat_text(text: str | None) -> str:
    """
    Normalize user-supplied chat text.

    Truncates to the message limit, strips markup and newlines, trims.
    Non-string input sanitizes to an empty string.
    """
    if not text or not isinstance(text, str):
        return ""

    text = text[: MESSAGE_CONFIG.MAX_TEXT_LENGTH]
    text = strip_tags(_NON_TEXT_BLOCKS.sub("", text))

    text = _BOLD.sub(r"\1", text)
    text = _ITALIC.sub(r"\1", text)
    text = _UNDERLINE.sub(r"\1", text)
    text = _CODE.sub(r"\1", text)
    text = _NEWLINES.sub(" ", text)
    return text.strip()


def truncate_preview(text: str, max_length: int) -> str:
    if len(text) <= max_length:
        return text
    return text[: max_length - len(ELLIPSIS)] + ELLIPSIS


def build_message_preview(
    text: str | None, max_length: int = CONVERSATION_CONFIG.MAX_PREVIEW_LENGTH
) -> str:
    """Sanitized preview of message text, ending in '...' when cut."""
    if not text:
        return ""
    return truncate_preview(sanitize_chat_text(text), max_length)


def build_last_message_preview(
    message_type: str | None,
    text: str | None = None,
    max_length: int = CONVERSATION_CONFIG.MAX_PREVIEW_LENGTH,
) -> str:
    """
    Conversation-list preview for a message of the given type.

    Media messages get a fixed label instead of their (absent) text.
    """
    if not message_type:
        return ""
    if message_type == "text":
        return build_message_preview(text, max_length)
    if message_type == "image":
        return MEDIA_CONFIG.IMAGE_PREVIEW
    if message_type == "audio":
        return MEDIA_CONFIG.AUDIO_PREVIEW
    return "Message"
