"""
Service-level authorization for chat operations.

This module centralizes every chat permission predicate so the many
mutation entry points in services.py cannot drift apart. It is distinct
from DRF permission classes, which only decide whether a request is
authenticated.

Key Components:
    PermissionCheck: Structured outcome (allowed, reason code, message)
    ChatAuthorizationService: Stateless predicates over participant,
        conversation and message state

Reason Codes (see chat.exceptions.ChatErrorCode):
    NOT_PARTICIPANT: No live (non-banned) participant row
    CONVERSATION_LOCKED: Conversation is locked
    NOT_AUTHOR / NOT_AUTHOR_OR_MODERATOR: Caller does not own the message
    MESSAGE_DELETED / MESSAGE_ALREADY_DELETED: Message is soft deleted
    EDIT_WINDOW_EXPIRED: Older than the edit window
    NOT_MODERATOR / NOT_OWNER: Role too low

Usage:
    check = ChatAuthorizationService.can_send_message(user_id, conversation)
    if not check:
        return check.as_failure()
    participant = check.participant
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta
from typing import TYPE_CHECKING

from django.utils import timezone

from chat.constants import MESSAGE_CONFIG
from chat.exceptions import ChatErrorCode, chat_failure
from chat.models import MODERATOR_ROLES, Participant, ParticipantRole

if TYPE_CHECKING:
    from datetime import datetime

    from chat.models import Conversation, Message
    from core.services import ServiceResult


@dataclass(frozen=True)
class PermissionCheck:
    """
    Outcome of a permission predicate.

    Truthy when allowed. On denial, reason is a ChatErrorCode and message
    is safe to show to the caller.
    """

    allowed: bool
    reason: str | None = None
    message: str = ""
    participant: Participant | None = None

    @classmethod
    def allow(cls, participant: Participant | None = None) -> PermissionCheck:
        return cls(allowed=True, participant=participant)

    @classmethod
    def deny(cls, reason: str, message: str) -> PermissionCheck:
        return cls(allowed=False, reason=str(reason), message=message)

    def as_failure(self) -> ServiceResult:
        return chat_failure(self.reason, self.message)

    def __bool__(self) -> bool:
        return self.allowed


class ChatAuthorizationService:
    """
    Stateless permission predicates.

    Predicates only read. Conversation arguments accept either a
    Conversation instance or its id.
    """

    @staticmethod
    def _conversation_id(conversation) -> object:
        return getattr(conversation, "pk", conversation)

    @classmethod
    def is_participant(cls, user_id, conversation) -> Participant | None:
        """
        Live participant row for the user, or None.

        Banned users keep their row but are never participants.
        """
        if user_id is None:
            return None
        return Participant.objects.filter(
            conversation_id=cls._conversation_id(conversation),
            user_id=user_id,
            is_banned=False,
        ).first()

    @classmethod
    def is_moderator(cls, user_id, conversation) -> bool:
        participant = cls.is_participant(user_id, conversation)
        return bool(participant and participant.role in MODERATOR_ROLES)

    @classmethod
    def is_owner(cls, user_id, conversation) -> bool:
        participant = cls.is_participant(user_id, conversation)
        return bool(participant and participant.role == ParticipantRole.OWNER)

    @classmethod
    def can_send_message(cls, user_id, conversation: Conversation) -> PermissionCheck:
        """
        Participant and lock check for sending.

        Moderator exemption from the lock is decided by the caller;
        this predicate denies every sender of a locked conversation.
        """
        participant = cls.is_participant(user_id, conversation)
        if participant is None:
            return PermissionCheck.deny(
                ChatErrorCode.NOT_PARTICIPANT,
                "You are not a participant in this conversation",
            )
        if conversation.is_locked:
            return PermissionCheck.deny(
                ChatErrorCode.CONVERSATION_LOCKED,
                "This conversation is locked by moderators",
            )
        return PermissionCheck.allow(participant)

    @classmethod
    def can_edit_message(
        cls, user_id, message: Message, now: datetime | None = None
    ) -> PermissionCheck:
        """Author only, live message, within the edit window (inclusive)."""
        if message.author_id is None or message.author_id != user_id:
            return PermissionCheck.deny(
                ChatErrorCode.NOT_AUTHOR, "You can only edit your own messages"
            )
        if message.is_deleted:
            return PermissionCheck.deny(
                ChatErrorCode.MESSAGE_DELETED, "Cannot edit deleted messages"
            )

        now = now or timezone.now()
        window = timedelta(seconds=MESSAGE_CONFIG.EDIT_TIME_LIMIT_SECONDS)
        if now - message.created_at > window:
            return PermissionCheck.deny(
                ChatErrorCode.EDIT_WINDOW_EXPIRED,
                "Messages can only be edited within 15 minutes",
            )
        return PermissionCheck.allow()

    @classmethod
    def can_delete_message(
        cls, user_id, message: Message, conversation=None
    ) -> PermissionCheck:
        """Author, or moderator of the message's conversation."""
        conversation = conversation if conversation is not None else message.conversation_id
        is_author = message.author_id is not None and message.author_id == user_id
        if not is_author and not cls.is_moderator(user_id, conversation):
            return PermissionCheck.deny(
                ChatErrorCode.NOT_AUTHOR_OR_MODERATOR,
                "You can only delete your own messages",
            )
        if message.is_deleted:
            return PermissionCheck.deny(
                ChatErrorCode.MESSAGE_ALREADY_DELETED, "Message is already deleted"
            )
        return PermissionCheck.allow()

    @classmethod
    def require_participant(cls, user_id, conversation) -> PermissionCheck:
        participant = cls.is_participant(user_id, conversation)
        if participant is None:
            return PermissionCheck.deny(
                ChatErrorCode.NOT_PARTICIPANT,
                "You are not a participant in this conversation",
            )
        return PermissionCheck.allow(participant)

    @classmethod
    def require_moderator(cls, user_id, conversation) -> PermissionCheck:
        """Live participant with moderator or owner role."""
        check = cls.require_participant(user_id, conversation)
        if not check:
            return check
        if check.participant.role not in MODERATOR_ROLES:
            return PermissionCheck.deny(
                ChatErrorCode.NOT_MODERATOR,
                "Only moderators can perform this action",
            )
        return check

    @classmethod
    def require_owner(cls, user_id, conversation) -> PermissionCheck:
        check = cls.require_participant(user_id, conversation)
        if not check:
            return check
        if check.participant.role != ParticipantRole.OWNER:
            return PermissionCheck.deny(
                ChatErrorCode.NOT_OWNER,
                "Only the conversation owner can perform this action",
            )
        return check
