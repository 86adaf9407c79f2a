"""
Chat system service layer.

This module provides the business logic for the chat system, encapsulating
all operations on conversations, participants, messages and reactions.

Services:
    ConversationService: Conversation lifecycle, membership, roles
    MessageService: Send, history, edit, soft delete
    ReactionService: One reaction per user per message
    ModerationService: Cascade delete, ban/unban, lock/unlock, restore
    PresenceService: Typing, read markers, global presence
    BlockService: User-to-user blocks gating direct conversations

Design Principles:
    - Services are stateless (use class methods)
    - Callers are identified by user id
    - Expected failures return ServiceResult failures carrying a
      ChatErrorCode and its ErrorKind
    - Write paths propagate database faults; read paths (history,
      conversation list, last message) degrade to empty results
    - Multi-row mutations run in one transaction
    - Blob cleanup runs post-commit on Celery (see chat.tasks)

Usage:
    from chat.services import ConversationService, MessageService

    result = ConversationService.create_conversation(
        conversation_type="group",
        creator_id=owner.id,
        member_ids=[owner.id, friend.id],
        title="Weekend",
    )
    if result.success:
        conversation_id = result.data["id"]

    result = MessageService.send_message(
        conversation_id=conversation_id,
        author_id=owner.id,
        text="Hi",
    )
"""

from __future__ import annotations

import uuid
from typing import TYPE_CHECKING, Any

from django.contrib.auth import get_user_model
from django.db import DatabaseError, IntegrityError, transaction
from django.db.models import F, Q
from django.utils import timezone

from authentication.services import PlatformRoleService
from core.services import BaseService, ServiceResult

from chat.authorization import ChatAuthorizationService
from chat.constants import BLOCK_CONFIG, CONVERSATION_CONFIG, MESSAGE_CONFIG, REACTION_CONFIG
from chat.exceptions import ChatErrorCode, chat_failure
from chat.models import (
    Conversation,
    ConversationType,
    DirectConversationPair,
    Message,
    MessageReaction,
    MessageType,
    Participant,
    ParticipantRole,
    PresenceState,
    UserBlock,
    UserPresence,
)
from chat.pagination import ChatCursor, Page, clamp_page_size, cursor_boundary, paginate_items
from chat.sanitize import build_last_message_preview, sanitize_chat_text
from chat.storage import (
    extract_object_path,
    is_in_folder,
    media_folder,
    media_object_paths,
    validate_media_descriptor,
)
from chat.summaries import (
    build_conversation_summary,
    build_message_summary,
    build_participant_summary,
    build_reaction_list,
    build_user_summary,
    hydrate_users,
)
from chat.tasks import schedule_media_cleanup

if TYPE_CHECKING:
    from datetime import datetime

Auth = ChatAuthorizationService

MEDIA_DESCRIPTOR_KEYS = (
    "objectPath",
    "url",
    "thumbnailUrl",
    "mime",
    "size",
    "width",
    "height",
    "durationMs",
)


def parse_uuid(value: Any) -> uuid.UUID | None:
    """UUID from client input, or None when malformed."""
    if isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(str(value))
    except (TypeError, ValueError, AttributeError):
        return None


def _conversation_not_found() -> ServiceResult:
    return chat_failure(ChatErrorCode.CONVERSATION_NOT_FOUND, "Conversation not found")


def _message_not_found() -> ServiceResult:
    return chat_failure(ChatErrorCode.MESSAGE_NOT_FOUND, "Message not found")


def _load_conversation(conversation_id, for_update: bool = False) -> Conversation | None:
    pk = parse_uuid(conversation_id)
    if pk is None:
        return None
    queryset = Conversation.objects.all()
    if for_update:
        queryset = queryset.select_for_update()
    return queryset.filter(pk=pk).first()


def _load_message(message_id, for_update: bool = False) -> Message | None:
    """Message including soft-deleted ones."""
    pk = parse_uuid(message_id)
    if pk is None:
        return None
    queryset = Message.objects.select_related("conversation")
    if for_update:
        queryset = Message.objects.select_for_update()
    return queryset.filter(pk=pk).first()


def _validate_text(text: Any) -> tuple[str | None, ServiceResult | None]:
    """Sanitized text, or the failure explaining why there is none."""
    if text is None or not isinstance(text, str) or not text.strip():
        return None, chat_failure(ChatErrorCode.TEXT_REQUIRED, "Message text is required")
    if len(text) > MESSAGE_CONFIG.MAX_TEXT_LENGTH:
        return None, chat_failure(
            ChatErrorCode.TEXT_TOO_LONG,
            f"Message text cannot exceed {MESSAGE_CONFIG.MAX_TEXT_LENGTH} characters",
        )
    sanitized = sanitize_chat_text(text)
    if not sanitized:
        return None, chat_failure(
            ChatErrorCode.EMPTY_AFTER_SANITIZE, "Message is empty after removing formatting"
        )
    return sanitized, None


def _validate_title(title: Any) -> tuple[str | None, ServiceResult | None]:
    if title is None or not isinstance(title, str) or not title.strip():
        return None, chat_failure(
            ChatErrorCode.TITLE_REQUIRED, "Group conversations require a title"
        )
    title = title.strip()
    if len(title) > CONVERSATION_CONFIG.MAX_TITLE_LENGTH:
        return None, chat_failure(
            ChatErrorCode.TITLE_TOO_LONG,
            f"Title cannot exceed {CONVERSATION_CONFIG.MAX_TITLE_LENGTH} characters",
        )
    return title, None


def _validate_icon(icon: Any) -> tuple[str, ServiceResult | None]:
    """Empty string clears the icon; anything else must resolve to a blob."""
    if icon is None or icon == "":
        return "", None
    if not isinstance(icon, str) or len(icon) > 500 or extract_object_path(icon) is None:
        return "", chat_failure(
            ChatErrorCode.INVALID_ICON, "Icon must be a storage path or a supported media URL"
        )
    return icon.strip(), None


class _DirectPairTaken(Exception):
    """Another request wrote the direct-pair row first."""


class ConversationService(BaseService):
    """
    Service for conversation lifecycle operations.

    Methods:
        create_conversation: Create a group, or get-or-create a direct conversation
        get_conversation: Hydrated conversation for a live participant
        list_conversations: Caller's conversations, most recent activity first
        join_conversation / leave_conversation: Group membership
        update_conversation: Partial update of title, icon, lock flag
        toggle_mute: Per-user mute
        transfer_ownership / set_participant_role: Owner-only role changes
    """

    DIRECT_CREATE_ATTEMPTS = 3

    @classmethod
    def create_conversation(
        cls,
        conversation_type: str,
        creator_id: int,
        member_ids: list,
        title: str | None = None,
        icon: str | None = None,
    ) -> ServiceResult[dict]:
        """
        Create a conversation.

        Direct conversations are unique per user pair: an existing one
        with both users still live is returned instead of a new one.

        Args:
            conversation_type: "direct" or "group"
            creator_id: Calling user
            member_ids: All members including the creator; the first id
                becomes the owner
            title: Required for groups
            icon: Optional storage path or media URL (groups only)

        Returns:
            ServiceResult with the hydrated conversation summary

        Error codes:
            INVALID_TYPE, INVALID_MEMBERS, SAME_USER, TITLE_REQUIRED,
            TITLE_TOO_LONG, INVALID_ICON, USER_BLOCKED
        """
        if conversation_type not in ConversationType.values:
            return chat_failure(
                ChatErrorCode.INVALID_TYPE, "Conversation type must be 'direct' or 'group'"
            )

        try:
            members = [int(member_id) for member_id in member_ids or []]
        except (TypeError, ValueError):
            return chat_failure(ChatErrorCode.INVALID_MEMBERS, "Member ids must be user ids")

        if creator_id not in members:
            return chat_failure(
                ChatErrorCode.INVALID_MEMBERS, "The creator must be one of the members"
            )

        if conversation_type == ConversationType.DIRECT:
            if len(members) == 2 and members[0] == members[1]:
                return chat_failure(
                    ChatErrorCode.SAME_USER,
                    "Cannot create a direct conversation with yourself",
                )
            if len(members) != CONVERSATION_CONFIG.DIRECT_MEMBER_COUNT:
                return chat_failure(
                    ChatErrorCode.INVALID_MEMBERS,
                    "Direct conversations must have exactly 2 members",
                )
        else:
            if len(members) < CONVERSATION_CONFIG.MIN_GROUP_MEMBER_COUNT:
                return chat_failure(
                    ChatErrorCode.INVALID_MEMBERS,
                    "Group conversations must have at least 2 members",
                )
            if len(set(members)) != len(members):
                return chat_failure(ChatErrorCode.INVALID_MEMBERS, "Duplicate member ids")

        User = get_user_model()
        if User.objects.filter(pk__in=members, is_active=True).count() != len(members):
            return chat_failure(ChatErrorCode.INVALID_MEMBERS, "Unknown or inactive users")

        if conversation_type == ConversationType.DIRECT:
            if BlockService.is_blocked_between(members[0], members[1]):
                return chat_failure(
                    ChatErrorCode.USER_BLOCKED, "You cannot start a conversation with this user"
                )
        elif BlockService.blocked_by_any(creator_id, members):
            return chat_failure(
                ChatErrorCode.USER_BLOCKED, "A member has blocked you and cannot be added"
            )

        if conversation_type == ConversationType.DIRECT:
            conversation, created = cls._get_or_create_direct(creator_id, members)
        else:
            title, failure = _validate_title(title)
            if failure is not None:
                return failure
            icon, failure = _validate_icon(icon)
            if failure is not None:
                return failure

            with cls.atomic():
                conversation = cls._create_with_participants(
                    ConversationType.GROUP, creator_id, members, title=title, icon=icon
                )
            created = True

        if created:
            cls.get_logger().info(
                f"Created {conversation.conversation_type} conversation {conversation.pk} "
                f"by user {creator_id} with {len(members)} members"
            )
        return ServiceResult.success(cls._summarize(conversation))

    @classmethod
    def _create_with_participants(
        cls,
        conversation_type: str,
        creator_id: int,
        members: list[int],
        title: str = "",
        icon: str = "",
    ) -> Conversation:
        """Conversation plus its full participant set. Caller owns the transaction."""
        now = timezone.now()
        conversation = Conversation.objects.create(
            conversation_type=conversation_type,
            title=title,
            icon=icon,
            created_by_id=creator_id,
            member_count=len(members),
            last_message_at=now,
        )
        Participant.objects.bulk_create(
            [
                Participant(
                    conversation=conversation,
                    user_id=user_id,
                    role=ParticipantRole.OWNER if index == 0 else ParticipantRole.MEMBER,
                    joined_at=now,
                    last_read_at=now,
                )
                for index, user_id in enumerate(members)
            ]
        )
        return conversation

    @classmethod
    def _has_both_live(cls, conversation_id, user_a: int, user_b: int) -> bool:
        return (
            Participant.objects.filter(
                conversation_id=conversation_id,
                user_id__in=(user_a, user_b),
                is_banned=False,
            ).count()
            == 2
        )

    @classmethod
    def find_direct_conversation(
        cls, user_a: int, user_b: int
    ) -> tuple[Conversation | None, DirectConversationPair | None]:
        """
        Existing direct conversation where both users are live.

        The pair index is tried first and re-validated; a stale or missing
        index falls back to a bounded scan of recent direct conversations.

        Returns:
            (conversation or None, pair row as read or None)
        """
        pair_key = DirectConversationPair.build_key(user_a, user_b)
        pair = (
            DirectConversationPair.objects.select_related("conversation")
            .filter(pk=pair_key)
            .first()
        )
        if pair is not None:
            if cls._has_both_live(pair.conversation_id, user_a, user_b):
                return pair.conversation, pair
            cls.get_logger().warning(
                f"Stale direct pair {pair_key} -> {pair.conversation_id}, scanning"
            )

        candidate_ids = list(
            Conversation.objects.filter(
                conversation_type=ConversationType.DIRECT,
                participants__user_id=user_a,
                participants__is_banned=False,
            )
            .order_by("-last_message_at", "-id")
            .values_list("pk", flat=True)[: CONVERSATION_CONFIG.scan_window()]
        )
        if candidate_ids:
            match_id = (
                Participant.objects.filter(
                    conversation_id__in=candidate_ids,
                    user_id=user_b,
                    is_banned=False,
                )
                .order_by("conversation__created_at", "conversation_id")
                .values_list("conversation_id", flat=True)
                .first()
            )
            if match_id is not None:
                return Conversation.objects.get(pk=match_id), pair

        return None, pair

    @classmethod
    def _get_or_create_direct(
        cls, creator_id: int, members: list[int]
    ) -> tuple[Conversation, bool]:
        """
        Converge concurrent creators on one direct conversation.

        The pair row's primary key arbitrates: a creator whose pair write
        conflicts rolls its conversation back and adopts the winner's.
        Any other failure to write the pair row is logged and ignored.
        """
        user_a, user_b = members
        pair_key = DirectConversationPair.build_key(user_a, user_b)

        for _ in range(cls.DIRECT_CREATE_ATTEMPTS):
            try:
                with cls.atomic():
                    existing, pair = cls.find_direct_conversation(user_a, user_b)
                    if existing is not None:
                        if pair is None or pair.conversation_id != existing.pk:
                            cls._write_pair(pair_key, existing, pair, strict=False)
                        return existing, False

                    conversation = cls._create_with_participants(
                        ConversationType.DIRECT, creator_id, members
                    )
                    cls._write_pair(pair_key, conversation, pair, strict=True)
                    return conversation, True
            except _DirectPairTaken:
                cls.get_logger().info(
                    f"Lost direct conversation race for {pair_key}, re-reading"
                )

        existing, _ = cls.find_direct_conversation(user_a, user_b)
        if existing is None:
            raise DatabaseError(f"Direct conversation for {pair_key} could not be resolved")
        return existing, False

    @classmethod
    def _write_pair(
        cls,
        pair_key: str,
        conversation: Conversation,
        previous: DirectConversationPair | None,
        strict: bool,
    ) -> None:
        """
        Point the pair index at conversation.

        Repointing is compare-and-set against the row as it was read. When
        strict, losing to a concurrent writer raises _DirectPairTaken so the
        caller can roll back its new conversation.
        """
        try:
            with transaction.atomic():
                if previous is None:
                    DirectConversationPair.objects.create(
                        pair_key=pair_key, conversation=conversation
                    )
                    return
                updated = DirectConversationPair.objects.filter(
                    pk=pair_key, conversation_id=previous.conversation_id
                ).update(conversation=conversation, updated_at=timezone.now())
        except IntegrityError:
            if strict:
                raise _DirectPairTaken(pair_key)
            cls.get_logger().warning(f"Direct pair {pair_key} written concurrently")
            return
        except DatabaseError:
            cls.get_logger().warning(f"Failed to write direct pair {pair_key}", exc_info=True)
            return

        if not updated and strict:
            raise _DirectPairTaken(pair_key)

    @classmethod
    def _resolve_last_message(cls, conversation: Conversation) -> Message | None:
        """Most recent live message, or None if it cannot be read."""
        try:
            return (
                Message.live.filter(conversation=conversation)
                .order_by("-created_at", "-id")
                .first()
            )
        except DatabaseError:
            cls.get_logger().warning(
                f"Could not resolve last message of {conversation.pk}", exc_info=True
            )
            return None

    @classmethod
    def _summarize(
        cls,
        conversation: Conversation,
        participants: list[Participant] | None = None,
        with_last_message: bool = True,
    ) -> dict:
        if participants is None:
            participants = list(conversation.participants.order_by("joined_at", "id"))
        last_message = cls._resolve_last_message(conversation) if with_last_message else None

        user_ids = [participant.user_id for participant in participants]
        if last_message is not None:
            user_ids.append(last_message.author_id)
        return build_conversation_summary(
            conversation, participants, hydrate_users(user_ids), last_message
        )

    @classmethod
    def get_conversation(cls, conversation_id, user_id: int) -> ServiceResult[dict]:
        """
        Conversation with all participants and its last live message.

        Error codes:
            CONVERSATION_NOT_FOUND, NOT_PARTICIPANT
        """
        conversation = _load_conversation(conversation_id)
        if conversation is None:
            return _conversation_not_found()

        check = Auth.require_participant(user_id, conversation)
        if not check:
            return check.as_failure()

        return ServiceResult.success(cls._summarize(conversation))

    @classmethod
    def list_conversations(
        cls, user_id: int, cursor: str | None = None, page_size: Any = None
    ) -> ServiceResult[dict]:
        """
        Caller's live conversations, most recent activity first.

        Reads at most the scan window past the cursor. Degrades to an
        empty page on store faults.

        Returns:
            {"conversations": [...], "next_cursor": str | None, "has_more": bool}
        """
        size = clamp_page_size(
            page_size, CONVERSATION_CONFIG.DEFAULT_PAGE_SIZE, CONVERSATION_CONFIG.MAX_PAGE_SIZE
        )
        decoded = ChatCursor.decode(cursor, id_type=uuid.UUID)

        try:
            window = min(CONVERSATION_CONFIG.scan_window(), size + 1)
            candidates = list(
                Conversation.objects.filter(
                    participants__user_id=user_id,
                    participants__is_banned=False,
                )
                .filter(cursor_boundary(decoded, "last_message_at", descending=True))
                .order_by("-last_message_at", "-id")
                .prefetch_related("participants")[:window]
            )
            page = paginate_items(
                candidates,
                cursor=decoded,
                page_size=size,
                key=lambda conversation: (conversation.last_message_at, conversation.pk),
                descending=True,
            )

            summaries = []
            for conversation in page.items:
                participants = sorted(
                    conversation.participants.all(), key=lambda p: (p.joined_at, p.pk)
                )
                summaries.append(cls._summarize(conversation, participants))
        except Exception:
            cls.get_logger().exception(f"Listing conversations failed for user {user_id}")
            page, summaries = Page.empty(), []

        return ServiceResult.success(
            {
                "conversations": summaries,
                "next_cursor": page.next_cursor,
                "has_more": page.has_more,
            }
        )

    @classmethod
    def join_conversation(cls, conversation_id, user_id: int) -> ServiceResult[dict]:
        """
        Join a group conversation as a member.

        Error codes:
            CONVERSATION_NOT_FOUND, DIRECT_MEMBERSHIP_FIXED, USER_BANNED,
            ALREADY_PARTICIPANT
        """
        with cls.atomic():
            conversation = _load_conversation(conversation_id, for_update=True)
            if conversation is None:
                return _conversation_not_found()
            if conversation.is_direct:
                return chat_failure(
                    ChatErrorCode.DIRECT_MEMBERSHIP_FIXED,
                    "Direct conversation membership cannot change",
                )

            existing = Participant.objects.filter(
                conversation=conversation, user_id=user_id
            ).first()
            if existing is not None:
                if existing.is_banned:
                    return chat_failure(
                        ChatErrorCode.USER_BANNED, "You are banned from this conversation"
                    )
                return chat_failure(
                    ChatErrorCode.ALREADY_PARTICIPANT,
                    "You are already a participant in this conversation",
                )

            try:
                with transaction.atomic():
                    participant = Participant.objects.create(
                        conversation=conversation,
                        user_id=user_id,
                        role=ParticipantRole.MEMBER,
                        last_read_at=timezone.now(),
                    )
            except IntegrityError:
                return chat_failure(
                    ChatErrorCode.ALREADY_PARTICIPANT,
                    "You are already a participant in this conversation",
                )

            Conversation.objects.filter(pk=conversation.pk).update(
                member_count=F("member_count") + 1
            )

        cls.get_logger().info(f"User {user_id} joined conversation {conversation.pk}")
        return ServiceResult.success(
            build_participant_summary(participant, hydrate_users([user_id]))
        )

    @classmethod
    def leave_conversation(cls, conversation_id, user_id: int) -> ServiceResult[dict]:
        """
        Leave a group conversation; the participant row is deleted.

        The owner must transfer ownership first.

        Error codes:
            CONVERSATION_NOT_FOUND, DIRECT_MEMBERSHIP_FIXED, NOT_PARTICIPANT,
            OWNER_CANNOT_LEAVE
        """
        with cls.atomic():
            conversation = _load_conversation(conversation_id, for_update=True)
            if conversation is None:
                return _conversation_not_found()
            if conversation.is_direct:
                return chat_failure(
                    ChatErrorCode.DIRECT_MEMBERSHIP_FIXED,
                    "Direct conversation membership cannot change",
                )

            check = Auth.require_participant(user_id, conversation)
            if not check:
                return check.as_failure()
            if check.participant.is_owner:
                return chat_failure(
                    ChatErrorCode.OWNER_CANNOT_LEAVE,
                    "Transfer ownership before leaving the conversation",
                )

            check.participant.delete()
            Conversation.objects.filter(pk=conversation.pk, member_count__gt=0).update(
                member_count=F("member_count") - 1
            )

        cls.get_logger().info(f"User {user_id} left conversation {conversation.pk}")
        return ServiceResult.success({"conversation_id": conversation.pk, "left": True})

    @classmethod
    def update_conversation(
        cls, conversation_id, user_id: int, changes: dict[str, Any]
    ) -> ServiceResult[dict]:
        """
        Partial update by a moderator.

        Args:
            changes: Any of title, icon ("" or None clears), is_locked

        Error codes:
            NO_UPDATES, CONVERSATION_NOT_FOUND, NOT_PARTICIPANT, NOT_MODERATOR,
            INVALID_TYPE, TITLE_REQUIRED, TITLE_TOO_LONG, INVALID_ICON
        """
        changes = {
            key: value
            for key, value in (changes or {}).items()
            if key in ("title", "icon", "is_locked")
        }
        if not changes:
            return chat_failure(ChatErrorCode.NO_UPDATES, "No updatable fields provided")

        with cls.atomic():
            conversation = _load_conversation(conversation_id, for_update=True)
            if conversation is None:
                return _conversation_not_found()

            check = Auth.require_moderator(user_id, conversation)
            if not check:
                return check.as_failure()

            update_fields = []
            if "title" in changes:
                if conversation.is_direct:
                    return chat_failure(
                        ChatErrorCode.INVALID_TYPE, "Direct conversations have no title"
                    )
                title, failure = _validate_title(changes["title"])
                if failure is not None:
                    return failure
                conversation.title = title
                update_fields.append("title")
            if "icon" in changes:
                icon, failure = _validate_icon(changes["icon"])
                if failure is not None:
                    return failure
                conversation.icon = icon
                update_fields.append("icon")
            if "is_locked" in changes:
                conversation.is_locked = bool(changes["is_locked"])
                update_fields.append("is_locked")

            conversation.save(update_fields=[*update_fields, "updated_at"])

        cls.get_logger().info(
            f"Conversation {conversation.pk} updated by {user_id}: {sorted(update_fields)}"
        )
        return ServiceResult.success(cls._summarize(conversation))

    @classmethod
    def toggle_mute(cls, conversation_id, user_id: int, muted: bool) -> ServiceResult[dict]:
        conversation = _load_conversation(conversation_id)
        if conversation is None:
            return _conversation_not_found()

        check = Auth.require_participant(user_id, conversation)
        if not check:
            return check.as_failure()

        Participant.objects.filter(pk=check.participant.pk).update(
            is_muted=bool(muted), updated_at=timezone.now()
        )
        return ServiceResult.success(
            {"conversation_id": conversation.pk, "is_muted": bool(muted)}
        )

    @classmethod
    def transfer_ownership(
        cls, conversation_id, owner_id: int, new_owner_id: int
    ) -> ServiceResult[dict]:
        """
        Hand the owner role to another live participant.

        The previous owner becomes a moderator.

        Error codes:
            SAME_USER, CONVERSATION_NOT_FOUND, NOT_PARTICIPANT, NOT_OWNER,
            PARTICIPANT_NOT_FOUND
        """
        if owner_id == new_owner_id:
            return chat_failure(ChatErrorCode.SAME_USER, "You already own this conversation")

        with cls.atomic():
            conversation = _load_conversation(conversation_id, for_update=True)
            if conversation is None:
                return _conversation_not_found()

            check = Auth.require_owner(owner_id, conversation)
            if not check:
                return check.as_failure()

            target = Auth.is_participant(new_owner_id, conversation)
            if target is None:
                return chat_failure(
                    ChatErrorCode.PARTICIPANT_NOT_FOUND,
                    "New owner must be a participant in this conversation",
                )

            owner = check.participant
            owner.role = ParticipantRole.MODERATOR
            owner.save(update_fields=["role", "updated_at"])
            target.role = ParticipantRole.OWNER
            target.save(update_fields=["role", "updated_at"])

        cls.get_logger().info(
            f"Ownership of {conversation.pk} transferred from {owner_id} to {new_owner_id}"
        )
        return ServiceResult.success(
            {"conversation_id": conversation.pk, "owner_id": new_owner_id}
        )

    @classmethod
    def set_participant_role(
        cls, conversation_id, owner_id: int, target_id: int, role: str
    ) -> ServiceResult[dict]:
        """
        Promote a member to moderator or demote a moderator.

        Error codes:
            INVALID_ROLE, CONVERSATION_NOT_FOUND, NOT_PARTICIPANT, NOT_OWNER,
            CANNOT_CHANGE_OWNER_ROLE, PARTICIPANT_NOT_FOUND
        """
        if role not in (ParticipantRole.MEMBER, ParticipantRole.MODERATOR):
            return chat_failure(
                ChatErrorCode.INVALID_ROLE, "Role must be 'member' or 'moderator'"
            )

        with cls.atomic():
            conversation = _load_conversation(conversation_id, for_update=True)
            if conversation is None:
                return _conversation_not_found()

            check = Auth.require_owner(owner_id, conversation)
            if not check:
                return check.as_failure()
            if target_id == owner_id:
                return chat_failure(
                    ChatErrorCode.CANNOT_CHANGE_OWNER_ROLE,
                    "Transfer ownership to change the owner's role",
                )

            target = Auth.is_participant(target_id, conversation)
            if target is None:
                return chat_failure(
                    ChatErrorCode.PARTICIPANT_NOT_FOUND,
                    "User is not a participant in this conversation",
                )

            target.role = role
            target.save(update_fields=["role", "updated_at"])

        cls.get_logger().info(
            f"User {target_id} is now {role} in {conversation.pk} (by {owner_id})"
        )
        return ServiceResult.success(
            build_participant_summary(target, hydrate_users([target_id]))
        )


class MessageService(BaseService):
    """
    Service for message operations.

    Methods:
        send_message: Insert a message and advance the conversation preview
        get_messages: Cursor-paginated history (degrades on store faults)
        edit_message: Author edit within the edit window
        delete_message: Soft delete by author or moderator
    """

    @classmethod
    def send_message(
        cls,
        conversation_id,
        author_id: int,
        message_type: str = MessageType.TEXT,
        text: str | None = None,
        media: dict | None = None,
        reply_to_message_id=None,
    ) -> ServiceResult[dict]:
        """
        Send a message.

        The message insert, the conversation's last_message_at/preview and
        the author's read marker commit together.

        Moderators and the owner may send into a locked conversation.

        Error codes:
            INVALID_TYPE, CONVERSATION_NOT_FOUND, NOT_PARTICIPANT,
            CONVERSATION_LOCKED, TEXT_REQUIRED, TEXT_TOO_LONG,
            EMPTY_AFTER_SANITIZE, INVALID_MEDIA, MEDIA_TYPE_DISABLED,
            MESSAGE_NOT_FOUND (reply target), USER_BLOCKED (direct only)
        """
        if message_type not in MessageType.values:
            return chat_failure(
                ChatErrorCode.INVALID_TYPE, "Message type must be text, image or audio"
            )

        conversation = _load_conversation(conversation_id)
        if conversation is None:
            return _conversation_not_found()

        check = Auth.can_send_message(author_id, conversation)
        if not check:
            exempt = check.reason == ChatErrorCode.CONVERSATION_LOCKED and Auth.is_moderator(
                author_id, conversation
            )
            if not exempt:
                return check.as_failure()

        if conversation.is_direct:
            other_ids = Participant.objects.filter(conversation=conversation).exclude(
                user_id=author_id
            ).values_list("user_id", flat=True)
            if any(BlockService.is_blocked_between(author_id, other) for other in other_ids):
                return chat_failure(
                    ChatErrorCode.USER_BLOCKED, "You cannot message this user"
                )

        if message_type == MessageType.TEXT:
            if media is not None:
                return chat_failure(
                    ChatErrorCode.INVALID_MEDIA, "Text messages cannot carry media"
                )
            body, failure = _validate_text(text)
            if failure is not None:
                return failure
            descriptor = None
        else:
            if text is not None and str(text).strip():
                return chat_failure(
                    ChatErrorCode.INVALID_MEDIA, f"{message_type} messages cannot carry text"
                )
            validation = validate_media_descriptor(
                message_type, media, media_folder(conversation.pk)
            )
            if not validation.valid:
                return chat_failure(validation.code, validation.error)
            body = ""
            descriptor = {key: media[key] for key in MEDIA_DESCRIPTOR_KEYS if key in media}

        reply_to = None
        if reply_to_message_id is not None:
            reply_to = Message.objects.filter(
                pk=parse_uuid(reply_to_message_id), conversation=conversation
            ).first()
            if reply_to is None:
                return _message_not_found()

        with cls.atomic():
            message = Message.objects.create(
                conversation=conversation,
                author_id=author_id,
                message_type=message_type,
                text=body,
                media=descriptor,
                reply_to=reply_to,
            )
            Conversation.objects.filter(pk=conversation.pk).update(
                last_message_at=message.created_at,
                last_message_preview=build_last_message_preview(message_type, body),
                updated_at=message.created_at,
            )
            Participant.objects.filter(conversation=conversation, user_id=author_id).update(
                last_read_at=message.created_at
            )

        cls.get_logger().debug(
            f"Message {message.pk} ({message_type}) sent to {conversation.pk} by {author_id}"
        )
        return ServiceResult.success(
            build_message_summary(message, hydrate_users([author_id]))
        )

    @classmethod
    def get_messages(
        cls,
        conversation_id,
        user_id: int,
        cursor: str | None = None,
        page_size: Any = None,
        order: str = MESSAGE_CONFIG.ORDER_DESC,
    ) -> ServiceResult[dict]:
        """
        Live messages of a conversation, one page at a time.

        Ordering is created_at then id, newest first unless order="asc".
        Store faults degrade to an empty page; permission failures do not.

        Returns:
            {"messages": [...], "next_cursor": str | None, "has_more": bool}

        Error codes:
            CONVERSATION_NOT_FOUND, NOT_PARTICIPANT
        """
        conversation = _load_conversation(conversation_id)
        if conversation is None:
            return _conversation_not_found()

        check = Auth.require_participant(user_id, conversation)
        if not check:
            return check.as_failure()

        size = clamp_page_size(
            page_size, MESSAGE_CONFIG.DEFAULT_PAGE_SIZE, MESSAGE_CONFIG.MAX_PAGE_SIZE
        )
        descending = order != MESSAGE_CONFIG.ORDER_ASC
        decoded = ChatCursor.decode(cursor, id_type=uuid.UUID)
        ordering = ("-created_at", "-id") if descending else ("created_at", "id")

        try:
            window = min(MESSAGE_CONFIG.scan_window(), size + 1)
            candidates = list(
                Message.live.filter(conversation=conversation)
                .filter(cursor_boundary(decoded, "created_at", descending=descending))
                .order_by(*ordering)[:window]
            )
            page = paginate_items(
                candidates,
                cursor=decoded,
                page_size=size,
                key=lambda message: (message.created_at, message.pk),
                descending=descending,
            )
            users = hydrate_users(message.author_id for message in page.items)
            messages = [build_message_summary(message, users) for message in page.items]
        except Exception:
            cls.get_logger().exception(
                f"Reading messages of {conversation.pk} failed, returning empty page"
            )
            page, messages = Page.empty(), []

        return ServiceResult.success(
            {
                "messages": messages,
                "next_cursor": page.next_cursor,
                "has_more": page.has_more,
            }
        )

    @classmethod
    def edit_message(cls, message_id, user_id: int, text: str) -> ServiceResult[dict]:
        """
        Replace the text of one's own message within the edit window.

        Error codes:
            MESSAGE_NOT_FOUND, NOT_AUTHOR, MESSAGE_DELETED, EDIT_WINDOW_EXPIRED,
            NOT_PARTICIPANT, INVALID_TYPE, TEXT_REQUIRED, TEXT_TOO_LONG,
            EMPTY_AFTER_SANITIZE
        """
        message = _load_message(message_id)
        if message is None:
            return _message_not_found()

        check = Auth.can_edit_message(user_id, message)
        if not check:
            return check.as_failure()
        participant_check = Auth.require_participant(user_id, message.conversation_id)
        if not participant_check:
            return participant_check.as_failure()

        if message.message_type != MessageType.TEXT:
            return chat_failure(ChatErrorCode.INVALID_TYPE, "Only text messages can be edited")

        body, failure = _validate_text(text)
        if failure is not None:
            return failure

        message.text = body
        message.edited_at = timezone.now()
        message.save(update_fields=["text", "edited_at", "updated_at"])

        cls.get_logger().debug(f"Message {message.pk} edited by {user_id}")
        return ServiceResult.success(build_message_summary(message, hydrate_users([user_id])))

    @classmethod
    def delete_message(cls, message_id, user_id: int) -> ServiceResult[dict]:
        """
        Soft delete a message.

        deleted_by_mod is set when the caller is not the author. Attached
        media is removed post-commit; that cleanup never fails the delete.

        Error codes:
            MESSAGE_NOT_FOUND, NOT_AUTHOR_OR_MODERATOR, MESSAGE_ALREADY_DELETED
        """
        message = _load_message(message_id)
        if message is None:
            return _message_not_found()

        check = Auth.can_delete_message(user_id, message, message.conversation)
        if not check:
            return check.as_failure()

        with cls.atomic():
            locked = _load_message(message.pk, for_update=True)
            if locked is None:
                return _message_not_found()
            if locked.is_deleted:
                return chat_failure(
                    ChatErrorCode.MESSAGE_ALREADY_DELETED, "Message is already deleted"
                )
            locked.deleted_by_mod = locked.author_id != user_id
            locked.soft_delete(extra_fields=["deleted_by_mod"])
            schedule_media_cleanup(
                media_object_paths(locked.media, media_folder(locked.conversation_id))
            )

        cls.get_logger().info(
            f"Message {locked.pk} deleted by {user_id}"
            f"{' (moderator)' if locked.deleted_by_mod else ''}"
        )
        return ServiceResult.success(
            build_message_summary(locked, hydrate_users([locked.author_id]))
        )


class ReactionService(BaseService):
    """
    Service for message reactions.

    Each user holds at most one reaction per message: adding again
    replaces the value, removing requires the current value.
    """

    @classmethod
    def _message_for_participant(
        cls, message_id, user_id: int
    ) -> tuple[Message | None, ServiceResult | None]:
        message = _load_message(message_id)
        if message is None:
            return None, _message_not_found()
        check = Auth.require_participant(user_id, message.conversation_id)
        if not check:
            return None, check.as_failure()
        return message, None

    @classmethod
    def add_reaction(cls, message_id, user_id: int, value: str) -> ServiceResult[dict]:
        """
        Set the caller's reaction on a message.

        Error codes:
            INVALID_REACTION, MESSAGE_NOT_FOUND, NOT_PARTICIPANT, MESSAGE_DELETED
        """
        value = value.strip() if isinstance(value, str) else ""
        if not value or len(value) > REACTION_CONFIG.MAX_VALUE_LENGTH:
            return chat_failure(
                ChatErrorCode.INVALID_REACTION,
                f"Reaction must be 1-{REACTION_CONFIG.MAX_VALUE_LENGTH} characters",
            )

        message, failure = cls._message_for_participant(message_id, user_id)
        if failure is not None:
            return failure
        if message.is_deleted:
            return chat_failure(
                ChatErrorCode.MESSAGE_DELETED, "Cannot react to deleted messages"
            )

        with cls.atomic():
            reaction, created = MessageReaction.objects.update_or_create(
                message=message,
                user_id=user_id,
                defaults={"value": value},
            )

        cls.get_logger().debug(
            f"User {user_id} {'added' if created else 'changed'} reaction on {message.pk}"
        )
        return ServiceResult.success(
            {
                "message_id": message.pk,
                "user_id": user_id,
                "value": reaction.value,
                "created_at": reaction.created_at,
            }
        )

    @classmethod
    def remove_reaction(cls, message_id, user_id: int, value: str) -> ServiceResult[dict]:
        """
        Remove the caller's reaction if it still has the given value.

        Error codes:
            MESSAGE_NOT_FOUND, NOT_PARTICIPANT, REACTION_NOT_FOUND,
            REACTION_VALUE_MISMATCH
        """
        message, failure = cls._message_for_participant(message_id, user_id)
        if failure is not None:
            return failure

        with cls.atomic():
            reaction = (
                MessageReaction.objects.select_for_update()
                .filter(message=message, user_id=user_id)
                .first()
            )
            if reaction is None:
                return chat_failure(ChatErrorCode.REACTION_NOT_FOUND, "No reaction to remove")
            if reaction.value != (value.strip() if isinstance(value, str) else value):
                return chat_failure(
                    ChatErrorCode.REACTION_VALUE_MISMATCH,
                    "Your current reaction has a different value",
                )
            reaction.delete()

        cls.get_logger().debug(f"User {user_id} removed reaction on {message.pk}")
        return ServiceResult.success({"message_id": message.pk, "removed": True})

    @classmethod
    def get_reactions(cls, message_id, user_id: int) -> ServiceResult[dict]:
        """Hydrated reactions of a message plus per-value counts."""
        message, failure = cls._message_for_participant(message_id, user_id)
        if failure is not None:
            return failure

        reactions = list(message.reactions.order_by("created_at", "id"))
        users = hydrate_users(reaction.user_id for reaction in reactions)
        data = build_reaction_list(reactions, users)
        data["message_id"] = message.pk
        return ServiceResult.success(data)


class ModerationService(BaseService):
    """
    Moderation and cascade deletion.

    Methods:
        delete_conversation: Owner or platform admin; exhaustive cascade
        ban_user / unban_user: Moderator; owner and self cannot be banned
        lock_conversation / unlock_conversation: Moderator
        restore_message: Moderator undo of a soft delete
    """

    @classmethod
    def delete_conversation(cls, conversation_id, user_id: int) -> ServiceResult[dict]:
        """
        Delete a conversation and everything that depends on it.

        Every message loses its reactions and its row; attached media and
        the icon are queued for blob cleanup; participants go; the
        conversation row goes last. Each sub-step is best-effort and safe to
        re-run after a partial failure. Only the final conversation delete
        propagates errors.

        Error codes:
            CONVERSATION_NOT_FOUND, NOT_OWNER
        """
        conversation = _load_conversation(conversation_id)
        if conversation is None:
            return _conversation_not_found()

        if not (
            Auth.is_owner(user_id, conversation)
            or PlatformRoleService.is_platform_admin(user_id)
        ):
            return chat_failure(
                ChatErrorCode.NOT_OWNER,
                "Only the owner or a platform admin can delete this conversation",
            )

        logger = cls.get_logger()
        folder = media_folder(conversation.pk)
        media_paths: list[str] = []
        stats = {"messages": 0, "reactions": 0, "participants": 0, "failures": 0}

        message_ids = list(
            Message.objects.filter(conversation=conversation).values_list("pk", flat=True)
        )
        for message_pk in message_ids:
            try:
                reactions_deleted, _ = MessageReaction.objects.filter(
                    message_id=message_pk
                ).delete()
                stats["reactions"] += reactions_deleted
            except DatabaseError:
                stats["failures"] += 1
                logger.warning(f"Failed to delete reactions of {message_pk}", exc_info=True)

            try:
                message = Message.objects.filter(pk=message_pk).first()
                if message is None:
                    continue
                media_paths.extend(media_object_paths(message.media, folder))
                message.hard_delete()
                stats["messages"] += 1
            except DatabaseError:
                stats["failures"] += 1
                logger.warning(f"Failed to delete message {message_pk}", exc_info=True)

        try:
            stats["participants"], _ = Participant.objects.filter(
                conversation=conversation
            ).delete()
        except DatabaseError:
            stats["failures"] += 1
            logger.warning(
                f"Failed to delete participants of {conversation.pk}", exc_info=True
            )

        icon_path = extract_object_path(conversation.icon)
        if is_in_folder(icon_path, folder):
            media_paths.append(icon_path)

        conversation_pk = conversation.pk
        conversation.delete()
        schedule_media_cleanup(media_paths)

        logger.info(
            f"Conversation {conversation_pk} deleted by {user_id}: "
            f"{stats['messages']} messages, {stats['reactions']} reactions, "
            f"{stats['participants']} participants, {len(media_paths)} blobs queued, "
            f"{stats['failures']} failures"
        )
        return ServiceResult.success(
            {"conversation_id": conversation_pk, "deleted": True, **stats}
        )

    @classmethod
    def _set_ban(
        cls, conversation_id, moderator_id: int, target_id: int, banned: bool
    ) -> ServiceResult[dict]:
        with cls.atomic():
            conversation = _load_conversation(conversation_id, for_update=True)
            if conversation is None:
                return _conversation_not_found()

            check = Auth.require_moderator(moderator_id, conversation)
            if not check:
                return check.as_failure()

            target = Participant.objects.filter(
                conversation=conversation, user_id=target_id
            ).first()
            if target is None:
                return chat_failure(
                    ChatErrorCode.PARTICIPANT_NOT_FOUND,
                    "User is not a participant in this conversation",
                )

            if banned:
                if target.is_owner:
                    return chat_failure(
                        ChatErrorCode.CANNOT_BAN_OWNER, "The owner cannot be banned"
                    )
                if target.is_banned:
                    return chat_failure(ChatErrorCode.ALREADY_BANNED, "User is already banned")
                target.is_banned = True
                target.is_typing = False
                target.save(update_fields=["is_banned", "is_typing", "updated_at"])
            else:
                if not target.is_banned:
                    return chat_failure(ChatErrorCode.NOT_BANNED, "User is not banned")
                target.is_banned = False
                target.save(update_fields=["is_banned", "updated_at"])

        cls.get_logger().info(
            f"User {target_id} {'banned from' if banned else 'unbanned in'} "
            f"{conversation.pk} by {moderator_id}"
        )
        return ServiceResult.success(
            {"conversation_id": conversation.pk, "user_id": target_id, "is_banned": banned}
        )

    @classmethod
    def ban_user(cls, conversation_id, moderator_id: int, target_id: int) -> ServiceResult[dict]:
        """
        Ban a participant. The row stays, flagged, so the user cannot rejoin.

        Error codes:
            CANNOT_BAN_SELF, CONVERSATION_NOT_FOUND, NOT_PARTICIPANT,
            NOT_MODERATOR, PARTICIPANT_NOT_FOUND, CANNOT_BAN_OWNER,
            ALREADY_BANNED
        """
        if moderator_id == target_id:
            return chat_failure(ChatErrorCode.CANNOT_BAN_SELF, "You cannot ban yourself")
        return cls._set_ban(conversation_id, moderator_id, target_id, banned=True)

    @classmethod
    def unban_user(
        cls, conversation_id, moderator_id: int, target_id: int
    ) -> ServiceResult[dict]:
        return cls._set_ban(conversation_id, moderator_id, target_id, banned=False)

    @classmethod
    def _set_lock(cls, conversation_id, moderator_id: int, locked: bool) -> ServiceResult[dict]:
        with cls.atomic():
            conversation = _load_conversation(conversation_id, for_update=True)
            if conversation is None:
                return _conversation_not_found()

            check = Auth.require_moderator(moderator_id, conversation)
            if not check:
                return check.as_failure()

            if conversation.is_locked == locked:
                if locked:
                    return chat_failure(
                        ChatErrorCode.ALREADY_LOCKED, "Conversation is already locked"
                    )
                return chat_failure(ChatErrorCode.NOT_LOCKED, "Conversation is not locked")

            conversation.is_locked = locked
            conversation.save(update_fields=["is_locked", "updated_at"])

        cls.get_logger().info(
            f"Conversation {conversation.pk} {'locked' if locked else 'unlocked'} "
            f"by {moderator_id}"
        )
        return ServiceResult.success({"conversation_id": conversation.pk, "is_locked": locked})

    @classmethod
    def lock_conversation(cls, conversation_id, moderator_id: int) -> ServiceResult[dict]:
        return cls._set_lock(conversation_id, moderator_id, locked=True)

    @classmethod
    def unlock_conversation(cls, conversation_id, moderator_id: int) -> ServiceResult[dict]:
        return cls._set_lock(conversation_id, moderator_id, locked=False)

    @classmethod
    def restore_message(cls, message_id, moderator_id: int) -> ServiceResult[dict]:
        """
        Undo a soft delete.

        Error codes:
            MESSAGE_NOT_FOUND, NOT_PARTICIPANT, NOT_MODERATOR, MESSAGE_NOT_DELETED
        """
        message = _load_message(message_id)
        if message is None:
            return _message_not_found()

        check = Auth.require_moderator(moderator_id, message.conversation_id)
        if not check:
            return check.as_failure()
        if not message.is_deleted:
            return chat_failure(ChatErrorCode.MESSAGE_NOT_DELETED, "Message is not deleted")

        message.deleted_by_mod = False
        message.restore(extra_fields=["deleted_by_mod"])

        cls.get_logger().info(f"Message {message.pk} restored by {moderator_id}")
        return ServiceResult.success(
            build_message_summary(message, hydrate_users([message.author_id]))
        )


class PresenceService(BaseService):
    """
    Typing indicators, read markers and global presence.

    Each call touches a single row; there are no cross-entity invariants.
    """

    @classmethod
    def _participant(cls, conversation_id, user_id: int):
        conversation = _load_conversation(conversation_id)
        if conversation is None:
            return None, _conversation_not_found()
        check = Auth.require_participant(user_id, conversation)
        if not check:
            return None, check.as_failure()
        return check.participant, None

    @classmethod
    def set_typing_status(
        cls, conversation_id, user_id: int, is_typing: bool
    ) -> ServiceResult[dict]:
        participant, failure = cls._participant(conversation_id, user_id)
        if failure is not None:
            return failure

        now = timezone.now()
        Participant.objects.filter(pk=participant.pk).update(
            is_typing=bool(is_typing), typing_updated_at=now, updated_at=now
        )
        cls.get_logger().debug(f"User {user_id} typing={bool(is_typing)} in {conversation_id}")
        return ServiceResult.success(
            {
                "conversation_id": participant.conversation_id,
                "user_id": user_id,
                "is_typing": bool(is_typing),
                "typing_updated_at": now,
            }
        )

    @classmethod
    def mark_as_read(
        cls, conversation_id, user_id: int, at: datetime | None = None
    ) -> ServiceResult[dict]:
        """Move the caller's read marker to `at` (default: now)."""
        participant, failure = cls._participant(conversation_id, user_id)
        if failure is not None:
            return failure

        read_at = at or timezone.now()
        Participant.objects.filter(pk=participant.pk).update(
            last_read_at=read_at, updated_at=timezone.now()
        )
        return ServiceResult.success(
            {"conversation_id": participant.conversation_id, "last_read_at": read_at}
        )

    @classmethod
    def update_presence(cls, user_id: int, state: str) -> ServiceResult[dict]:
        if state not in PresenceState.values:
            return chat_failure(
                ChatErrorCode.INVALID_PRESENCE_STATE, "State must be 'online' or 'offline'"
            )

        presence, _ = UserPresence.objects.update_or_create(
            user_id=user_id,
            defaults={"state": state, "last_seen_at": timezone.now()},
        )
        return ServiceResult.success(
            {"user_id": user_id, "state": presence.state, "last_seen_at": presence.last_seen_at}
        )

    @classmethod
    def get_presence(cls, user_id: int) -> ServiceResult[dict]:
        presence = UserPresence.objects.filter(user_id=user_id).first()
        if presence is None:
            return ServiceResult.success(
                {"user_id": user_id, "state": PresenceState.OFFLINE, "last_seen_at": None}
            )
        return ServiceResult.success(
            {"user_id": user_id, "state": presence.state, "last_seen_at": presence.last_seen_at}
        )


class BlockService(BaseService):
    """
    User-to-user blocking.

    A block stops direct conversations in both directions: neither user can
    open one with the other, and neither can send into one they already
    share. Group messaging is unaffected, but a user cannot create a group
    containing a member who blocked them.

    Methods:
        block_user / unblock_user: Idempotent block, strict unblock
        list_blocked_users: Caller's blocks, newest first
        is_blocked_between: Either user blocked the other
        blocked_by_any: Which of the given users blocked a user
    """

    @classmethod
    def block_user(cls, user_id: int, blocked_user_id) -> ServiceResult[dict]:
        """
        Block a user. Blocking someone already blocked succeeds again.

        Error codes:
            CANNOT_BLOCK_SELF, USER_NOT_FOUND
        """
        try:
            target_id = int(blocked_user_id)
        except (TypeError, ValueError):
            return chat_failure(ChatErrorCode.USER_NOT_FOUND, "User not found")

        if target_id == user_id:
            return chat_failure(ChatErrorCode.CANNOT_BLOCK_SELF, "You cannot block yourself")

        User = get_user_model()
        if not User.objects.filter(pk=target_id, is_active=True).exists():
            return chat_failure(ChatErrorCode.USER_NOT_FOUND, "User not found")

        try:
            with transaction.atomic():
                block, created = UserBlock.objects.get_or_create(
                    blocker_id=user_id, blocked_id=target_id
                )
        except IntegrityError:
            # Concurrent block of the same pair
            block = UserBlock.objects.get(blocker_id=user_id, blocked_id=target_id)
            created = False

        if created:
            cls.get_logger().info(f"User {user_id} blocked {target_id}")
        return ServiceResult.success(
            {**cls._summarize(block, hydrate_users([target_id])), "created": created}
        )

    @classmethod
    def unblock_user(cls, user_id: int, blocked_user_id) -> ServiceResult[dict]:
        """
        Remove a block.

        Error codes:
            BLOCK_NOT_FOUND
        """
        try:
            target_id = int(blocked_user_id)
        except (TypeError, ValueError):
            return chat_failure(ChatErrorCode.BLOCK_NOT_FOUND, "Block not found")

        deleted, _ = UserBlock.objects.filter(blocker_id=user_id, blocked_id=target_id).delete()
        if not deleted:
            return chat_failure(ChatErrorCode.BLOCK_NOT_FOUND, "Block not found")

        cls.get_logger().info(f"User {user_id} unblocked {target_id}")
        return ServiceResult.success({"blocked_user_id": target_id, "unblocked": True})

    @classmethod
    def list_blocked_users(
        cls, user_id: int, cursor: str | None = None, page_size: Any = None
    ) -> ServiceResult[dict]:
        """
        Users the caller has blocked, most recent block first.

        Returns:
            {"blocks": [...], "next_cursor": str | None, "has_more": bool}
        """
        size = clamp_page_size(
            page_size, BLOCK_CONFIG.DEFAULT_PAGE_SIZE, BLOCK_CONFIG.MAX_PAGE_SIZE
        )
        decoded = ChatCursor.decode(cursor, id_type=int)

        rows = list(
            UserBlock.objects.filter(blocker_id=user_id)
            .filter(cursor_boundary(decoded, "created_at", descending=True))
            .order_by("-created_at", "-id")[: size + 1]
        )
        has_more = len(rows) > size
        rows = rows[:size]
        next_cursor = None
        if has_more:
            next_cursor = ChatCursor.for_item(rows[-1].created_at, rows[-1].pk).encode()

        users = hydrate_users([row.blocked_id for row in rows])
        return ServiceResult.success(
            {
                "blocks": [cls._summarize(row, users) for row in rows],
                "next_cursor": next_cursor,
                "has_more": has_more,
            }
        )

    @classmethod
    def is_blocked_between(cls, user_a: int, user_b: int) -> bool:
        if user_a == user_b:
            return False
        return UserBlock.objects.filter(
            Q(blocker_id=user_a, blocked_id=user_b) | Q(blocker_id=user_b, blocked_id=user_a)
        ).exists()

    @classmethod
    def blocked_by_any(cls, user_id: int, other_ids) -> list[int]:
        """Ids among other_ids that have blocked user_id."""
        return list(
            UserBlock.objects.filter(blocked_id=user_id, blocker_id__in=list(other_ids))
            .exclude(blocker_id=user_id)
            .values_list("blocker_id", flat=True)
        )

    @staticmethod
    def _summarize(block: UserBlock, users: dict) -> dict:
        return {
            "blocked_user": build_user_summary(block.blocked_id, users),
            "created_at": block.created_at,
        }
