"""
Chat failure codes.

Every failure a chat service can return has a stable, machine-readable
code. Each code belongs to exactly one ErrorKind, which decides the HTTP
status; clients branch on the code (NOT_PARTICIPANT vs CONVERSATION_LOCKED
vs NOT_AUTHOR) without matching on messages.

Usage:
    from chat.exceptions import ChatErrorCode, chat_failure

    return chat_failure(ChatErrorCode.CONVERSATION_LOCKED, "Conversation is locked")
"""

from __future__ import annotations

from django.db import models

from core.services import ErrorKind, ServiceResult


class ChatErrorCode(models.TextChoices):
    # Validation
    INVALID_TYPE = "INVALID_TYPE"
    INVALID_MEMBERS = "INVALID_MEMBERS"
    TITLE_REQUIRED = "TITLE_REQUIRED"
    TITLE_TOO_LONG = "TITLE_TOO_LONG"
    INVALID_ICON = "INVALID_ICON"
    INVALID_MEDIA = "INVALID_MEDIA"
    MEDIA_TYPE_DISABLED = "MEDIA_TYPE_DISABLED"
    TEXT_REQUIRED = "TEXT_REQUIRED"
    TEXT_TOO_LONG = "TEXT_TOO_LONG"
    EMPTY_AFTER_SANITIZE = "EMPTY_AFTER_SANITIZE"
    INVALID_REACTION = "INVALID_REACTION"
    NO_UPDATES = "NO_UPDATES"
    INVALID_ROLE = "INVALID_ROLE"
    INVALID_PRESENCE_STATE = "INVALID_PRESENCE_STATE"
    CANNOT_BLOCK_SELF = "CANNOT_BLOCK_SELF"

    # Not found
    CONVERSATION_NOT_FOUND = "CONVERSATION_NOT_FOUND"
    MESSAGE_NOT_FOUND = "MESSAGE_NOT_FOUND"
    PARTICIPANT_NOT_FOUND = "PARTICIPANT_NOT_FOUND"
    REACTION_NOT_FOUND = "REACTION_NOT_FOUND"
    USER_NOT_FOUND = "USER_NOT_FOUND"
    BLOCK_NOT_FOUND = "BLOCK_NOT_FOUND"

    # Permission denied
    NOT_PARTICIPANT = "NOT_PARTICIPANT"
    NOT_AUTHOR = "NOT_AUTHOR"
    NOT_MODERATOR = "NOT_MODERATOR"
    NOT_OWNER = "NOT_OWNER"
    NOT_AUTHOR_OR_MODERATOR = "NOT_AUTHOR_OR_MODERATOR"
    CONVERSATION_LOCKED = "CONVERSATION_LOCKED"
    CANNOT_BAN_OWNER = "CANNOT_BAN_OWNER"
    CANNOT_BAN_SELF = "CANNOT_BAN_SELF"
    USER_BANNED = "USER_BANNED"
    USER_BLOCKED = "USER_BLOCKED"

    # Conflict
    ALREADY_PARTICIPANT = "ALREADY_PARTICIPANT"
    ALREADY_BANNED = "ALREADY_BANNED"
    NOT_BANNED = "NOT_BANNED"
    ALREADY_LOCKED = "ALREADY_LOCKED"
    NOT_LOCKED = "NOT_LOCKED"
    EDIT_WINDOW_EXPIRED = "EDIT_WINDOW_EXPIRED"
    MESSAGE_DELETED = "MESSAGE_DELETED"
    MESSAGE_ALREADY_DELETED = "MESSAGE_ALREADY_DELETED"
    MESSAGE_NOT_DELETED = "MESSAGE_NOT_DELETED"
    REACTION_VALUE_MISMATCH = "REACTION_VALUE_MISMATCH"
    OWNER_CANNOT_LEAVE = "OWNER_CANNOT_LEAVE"
    DIRECT_MEMBERSHIP_FIXED = "DIRECT_MEMBERSHIP_FIXED"
    CANNOT_CHANGE_OWNER_ROLE = "CANNOT_CHANGE_OWNER_ROLE"
    SAME_USER = "SAME_USER"

    # Internal
    INTERNAL_ERROR = "INTERNAL_ERROR"


_KIND_GROUPS: dict[str, tuple[str, ...]] = {
    ErrorKind.VALIDATION: (
        ChatErrorCode.INVALID_TYPE,
        ChatErrorCode.INVALID_MEMBERS,
        ChatErrorCode.TITLE_REQUIRED,
        ChatErrorCode.TITLE_TOO_LONG,
        ChatErrorCode.INVALID_ICON,
        ChatErrorCode.INVALID_MEDIA,
        ChatErrorCode.MEDIA_TYPE_DISABLED,
        ChatErrorCode.TEXT_REQUIRED,
        ChatErrorCode.TEXT_TOO_LONG,
        ChatErrorCode.EMPTY_AFTER_SANITIZE,
        ChatErrorCode.INVALID_REACTION,
        ChatErrorCode.NO_UPDATES,
        ChatErrorCode.INVALID_ROLE,
        ChatErrorCode.INVALID_PRESENCE_STATE,
        ChatErrorCode.CANNOT_BLOCK_SELF,
    ),
    ErrorKind.NOT_FOUND: (
        ChatErrorCode.CONVERSATION_NOT_FOUND,
        ChatErrorCode.MESSAGE_NOT_FOUND,
        ChatErrorCode.PARTICIPANT_NOT_FOUND,
        ChatErrorCode.REACTION_NOT_FOUND,
        ChatErrorCode.USER_NOT_FOUND,
        ChatErrorCode.BLOCK_NOT_FOUND,
    ),
    ErrorKind.PERMISSION_DENIED: (
        ChatErrorCode.NOT_PARTICIPANT,
        ChatErrorCode.NOT_AUTHOR,
        ChatErrorCode.NOT_MODERATOR,
        ChatErrorCode.NOT_OWNER,
        ChatErrorCode.NOT_AUTHOR_OR_MODERATOR,
        ChatErrorCode.CONVERSATION_LOCKED,
        ChatErrorCode.CANNOT_BAN_OWNER,
        ChatErrorCode.CANNOT_BAN_SELF,
        ChatErrorCode.USER_BANNED,
        ChatErrorCode.USER_BLOCKED,
    ),
    ErrorKind.CONFLICT: (
        ChatErrorCode.ALREADY_PARTICIPANT,
        ChatErrorCode.ALREADY_BANNED,
        ChatErrorCode.NOT_BANNED,
        ChatErrorCode.ALREADY_LOCKED,
        ChatErrorCode.NOT_LOCKED,
        ChatErrorCode.EDIT_WINDOW_EXPIRED,
        ChatErrorCode.MESSAGE_DELETED,
        ChatErrorCode.MESSAGE_ALREADY_DELETED,
        ChatErrorCode.MESSAGE_NOT_DELETED,
        ChatErrorCode.REACTION_VALUE_MISMATCH,
        ChatErrorCode.OWNER_CANNOT_LEAVE,
        ChatErrorCode.DIRECT_MEMBERSHIP_FIXED,
        ChatErrorCode.CANNOT_CHANGE_OWNER_ROLE,
        ChatErrorCode.SAME_USER,
    ),
    ErrorKind.INTERNAL: (ChatErrorCode.INTERNAL_ERROR,),
}

ERROR_KIND_BY_CODE: dict[str, str] = {
    str(code): str(kind) for kind, codes in _KIND_GROUPS.items() for code in codes
}


def kind_for_code(code: str) -> str:
    """ErrorKind for a chat failure code (unknown codes are INTERNAL)."""
    return ERROR_KIND_BY_CODE.get(str(code), str(ErrorKind.INTERNAL))


def chat_failure(code: str, message: str) -> ServiceResult:
    """Build a failed ServiceResult carrying the code's kind."""
    return ServiceResult.failure(
        message,
        error_code=str(code),
        error_kind=kind_for_code(code),
    )

