"""
Chat system models.

This module defines the data models for the chat system supporting:
- Direct conversations between exactly two users
- Group conversations with role-based moderation

Models:
    Conversation: Container for messages between participants
    Participant: A user's membership in a conversation (role, read marker,
        typing, ban and mute flags)
    DirectConversationPair: Best-effort index from a user pair to their
        direct conversation
    Message: Text, image or audio message within a conversation
    MessageReaction: One reaction per user per message
    UserPresence: Global online/offline state per user
    UserBlock: One user blocking another

Design Decisions:
    - Direct conversations keep exactly two participants for their lifetime
      (no join/leave)
    - Group conversations use a three-tier role hierarchy: owner > moderator > member
    - Leaving deletes the Participant row; banning keeps it with is_banned=True
      so a banned user cannot rejoin
    - member_count counts Participant rows, banned included
    - Messages are soft deleted; only a conversation cascade hard-deletes them
    - DirectConversationPair is a cache, not the source of truth: membership
      rows are. Services re-validate it on every read
"""

from __future__ import annotations

from django.conf import settings
from django.db import models
from django.db.models import Q
from django.utils import timezone

from core.managers import SoftDeleteManager
from core.model_mixins import SoftDeleteMixin, UUIDPrimaryKeyMixin
from core.models import BaseModel


class ConversationType(models.TextChoices):
    """
    Type of conversation.

    DIRECT: Exactly two participants, fixed membership
    GROUP: Two or more participants, open membership, title required
    """

    DIRECT = "direct", "Direct Message"
    GROUP = "group", "Group"


class ParticipantRole(models.TextChoices):
    """
    Role within a conversation.

    Hierarchy: OWNER > MODERATOR > MEMBER

    OWNER: Exactly one per conversation. Everything a moderator can do, plus
        delete the conversation, transfer ownership and change roles
    MODERATOR: Update/lock the conversation, ban users, delete any message
    MEMBER: Send messages, edit/delete own messages, react, leave
    """

    OWNER = "owner", "Owner"
    MODERATOR = "moderator", "Moderator"
    MEMBER = "member", "Member"


MODERATOR_ROLES = (ParticipantRole.OWNER, ParticipantRole.MODERATOR)


class MessageType(models.TextChoices):
    """
    Type of message content.

    TEXT: Sanitized user text, no media
    IMAGE: Media descriptor of an uploaded image, no text
    AUDIO: Media descriptor of an uploaded audio clip, no text
    """

    TEXT = "text", "Text"
    IMAGE = "image", "Image"
    AUDIO = "audio", "Audio"


class PresenceState(models.TextChoices):
    ONLINE = "online", "Online"
    OFFLINE = "offline", "Offline"


class Conversation(UUIDPrimaryKeyMixin, BaseModel):
    """
    A conversation between two or more users.

    Fields:
        conversation_type: Type of conversation (direct or group)
        title: Group title (empty for direct)
        icon: Optional icon URL or storage path
        created_by: User who created the conversation
        last_message_at: Time of most recent message (creation time until then)
        last_message_preview: Short preview of the most recent message
        member_count: Cached number of Participant rows
        is_locked: When locked, only moderators can send

    Relationships:
        participants: All Participant records for this conversation
        messages: All Message records for this conversation
    """

    conversation_type = models.CharField(
        max_length=10,
        choices=ConversationType.choices,
        default=ConversationType.GROUP,
        db_index=True,
        help_text="Type of conversation (direct or group)",
    )

    title = models.CharField(
        max_length=80,
        blank=True,
        default="",
        help_text="Title for group conversations (empty for direct)",
    )

    icon = models.CharField(
        max_length=500,
        blank=True,
        default="",
        help_text="Icon URL or storage object path",
    )

    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="created_conversations",
        help_text="User who created this conversation",
    )

    last_message_at = models.DateTimeField(
        default=timezone.now,
        db_index=True,
        help_text="Timestamp of most recent message (for sorting conversation lists)",
    )

    last_message_preview = models.CharField(
        max_length=100,
        blank=True,
        default="",
        help_text="Preview of the most recent message",
    )

    member_count = models.PositiveIntegerField(
        default=0,
        help_text="Number of participant rows (cached for listing)",
    )

    is_locked = models.BooleanField(
        default=False,
        help_text="Whether only moderators may send messages",
    )

    class Meta:
        db_table = "chat_conversation"
        ordering = ["-last_message_at", "-id"]
        indexes = [
            # Recent direct conversations (dedup fallback scan)
            models.Index(
                fields=["conversation_type", "-last_message_at"],
                name="chat_conv_type_recent_idx",
            ),
        ]

    def __str__(self) -> str:
        if self.conversation_type == ConversationType.DIRECT:
            return f"Direct({self.pk})"
        if self.title:
            return f"Group: {self.title}"
        return f"Group({self.pk})"

    @property
    def is_direct(self) -> bool:
        return self.conversation_type == ConversationType.DIRECT

    @property
    def is_group(self) -> bool:
        return self.conversation_type == ConversationType.GROUP

    def get_live_participants(self):
        """Participants who are not banned."""
        return self.participants.filter(is_banned=False)

    def get_live_participant(self, user_id) -> Participant | None:
        return self.participants.filter(user_id=user_id, is_banned=False).first()


class Participant(BaseModel):
    """
    A user's membership in a conversation.

    Membership Lifecycle:
        1. Created with the conversation (first member is OWNER) or on join
        2. Banned: row kept with is_banned=True; fails every participant check
        3. Leave: row deleted
        4. Conversation deleted: all rows deleted by the cascade

    Fields:
        conversation: Conversation this membership belongs to
        user: Member
        role: owner, moderator or member
        joined_at: When the user joined
        last_read_at: Read marker for unread counts
        is_typing / typing_updated_at: Typing indicator
        is_banned: Banned users keep a row but lose access
        is_muted: Per-user notification mute

    Constraints:
        - UniqueConstraint(conversation, user): one row per user per conversation
        - UniqueConstraint(conversation) WHERE role=owner: one owner
    """

    conversation = models.ForeignKey(
        Conversation,
        on_delete=models.CASCADE,
        related_name="participants",
        help_text="Conversation this membership belongs to",
    )

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="conversation_participations",
        help_text="User participating in the conversation",
    )

    role = models.CharField(
        max_length=10,
        choices=ParticipantRole.choices,
        default=ParticipantRole.MEMBER,
        help_text="Role in the conversation",
    )

    joined_at = models.DateTimeField(
        default=timezone.now,
        help_text="When the user joined this conversation",
    )

    last_read_at = models.DateTimeField(
        null=True,
        blank=True,
        help_text="Last time user marked conversation as read (for unread counts)",
    )

    is_typing = models.BooleanField(
        default=False,
        help_text="Whether the user is currently typing",
    )

    typing_updated_at = models.DateTimeField(
        null=True,
        blank=True,
        help_text="When the typing flag last changed",
    )

    is_banned = models.BooleanField(
        default=False,
        db_index=True,
        help_text="Banned participants keep their row but lose all access",
    )

    is_muted = models.BooleanField(
        default=False,
        help_text="Whether the user muted this conversation",
    )

    class Meta:
        db_table = "chat_participant"
        ordering = ["joined_at", "id"]
        indexes = [
            # User's live conversations
            models.Index(
                fields=["user", "is_banned"],
                name="chat_part_user_live_idx",
            ),
            models.Index(
                fields=["conversation", "role"],
                name="chat_part_conv_role_idx",
            ),
        ]
        constraints = [
            models.UniqueConstraint(
                fields=["conversation", "user"],
                name="unique_conversation_participant",
            ),
            models.UniqueConstraint(
                fields=["conversation"],
                condition=Q(role="owner"),
                name="unique_conversation_owner",
            ),
        ]

    def __str__(self) -> str:
        banned = " [banned]" if self.is_banned else ""
        return f"Participant: {self.user_id} in {self.conversation_id} ({self.role}){banned}"

    @property
    def is_owner(self) -> bool:
        return self.role == ParticipantRole.OWNER

    @property
    def is_moderator(self) -> bool:
        """Moderator or owner."""
        return self.role in MODERATOR_ROLES


class DirectConversationPair(models.Model):
    """
    Index from a user pair to their direct conversation.

    The key is canonical ("<lower id>_<higher id>") so both users resolve to
    the same row. The unique key makes concurrent creators converge: the
    second writer fails and adopts the first writer's conversation.

    The row is a cache. It can be stale (the conversation lost a member to
    a ban) or missing; services re-validate it against Participant rows and
    fall back to a bounded scan before creating anything.
    """

    pair_key = models.CharField(
        max_length=64,
        primary_key=True,
        help_text="Canonical '<lower>_<higher>' user id pair",
    )

    conversation = models.ForeignKey(
        Conversation,
        on_delete=models.CASCADE,
        related_name="direct_pairs",
        help_text="Direct conversation for this pair",
    )

    created_at = models.DateTimeField(
        auto_now_add=True,
        help_text="Timestamp when this record was created",
    )

    updated_at = models.DateTimeField(
        auto_now=True,
        help_text="Timestamp when this record was last repointed",
    )

    class Meta:
        db_table = "chat_direct_conversation_pair"

    def __str__(self) -> str:
        return f"DirectPair({self.pair_key} -> {self.conversation_id})"

    @staticmethod
    def build_key(user_a_id, user_b_id) -> str:
        from chat.constants import CONVERSATION_CONFIG

        low, high = sorted((int(user_a_id), int(user_b_id)))
        return f"{low}{CONVERSATION_CONFIG.PAIR_KEY_SEPARATOR}{high}"


class Message(UUIDPrimaryKeyMixin, SoftDeleteMixin, BaseModel):
    """
    A message within a conversation.

    Message Types:
        TEXT: text is set, media is null
        IMAGE/AUDIO: media is set, text is empty

    Soft Delete Behavior:
        - is_deleted/deleted_at set by the author or a moderator
        - deleted_by_mod is True when the deleter was not the author
        - Deleted messages are hidden from history; only a moderator
          restore brings them back
        - Hard deleted only by the conversation cascade

    Fields:
        conversation: Conversation this message belongs to
        author: User who sent the message
        message_type: text, image or audio
        text: Sanitized text (text messages)
        media: Descriptor {objectPath|url, mime, size, width/height | durationMs}
        edited_at: Last edit time
        deleted_by_mod: Deleted by someone other than the author
        reply_to: Reserved for replies
    """

    conversation = models.ForeignKey(
        Conversation,
        on_delete=models.CASCADE,
        related_name="messages",
        help_text="Conversation this message belongs to",
    )

    author = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="chat_messages",
        help_text="User who sent this message",
    )

    message_type = models.CharField(
        max_length=10,
        choices=MessageType.choices,
        default=MessageType.TEXT,
        help_text="Type of message (text, image or audio)",
    )

    text = models.TextField(
        blank=True,
        default="",
        help_text="Sanitized message text (text messages only)",
    )

    media = models.JSONField(
        null=True,
        blank=True,
        help_text="Media descriptor for image/audio messages",
    )

    edited_at = models.DateTimeField(
        null=True,
        blank=True,
        help_text="When the message was last edited",
    )

    deleted_by_mod = models.BooleanField(
        default=False,
        help_text="True if deleted by a moderator rather than the author",
    )

    reply_to = models.ForeignKey(
        "self",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="replies",
        help_text="Message this one replies to (reserved)",
    )

    objects = models.Manager()
    live = SoftDeleteManager()

    class Meta:
        db_table = "chat_message"
        ordering = ["created_at", "id"]
        indexes = [
            # Messages in a conversation (cursor pagination)
            models.Index(
                fields=["conversation", "created_at", "id"],
                name="chat_msg_conv_cursor_idx",
            ),
            models.Index(
                fields=["author", "-created_at"],
                name="chat_msg_author_idx",
            ),
        ]

    def __str__(self) -> str:
        deleted = " [deleted]" if self.is_deleted else ""
        body = self.text[:50] if self.message_type == MessageType.TEXT else self.message_type
        return f"User {self.author_id}: {body}{deleted}"

    @property
    def has_media(self) -> bool:
        return bool(self.media)


class MessageReaction(BaseModel):
    """
    A user's reaction to a message.

    At most one per user per message: reacting again replaces the value.
    """

    message = models.ForeignKey(
        Message,
        on_delete=models.CASCADE,
        related_name="reactions",
        help_text="Message this reaction belongs to",
    )

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="message_reactions",
        help_text="User who added this reaction",
    )

    value = models.CharField(
        max_length=10,
        help_text="Emoji (or short token) used for this reaction",
    )

    class Meta:
        db_table = "chat_message_reaction"
        ordering = ["created_at", "id"]
        constraints = [
            models.UniqueConstraint(
                fields=["message", "user"],
                name="unique_user_message_reaction",
            ),
        ]
        indexes = [
            models.Index(
                fields=["message", "value"],
                name="chat_reaction_msg_value_idx",
            ),
        ]

    def __str__(self) -> str:
        return f"{self.user_id} reacted {self.value} on {self.message_id}"


class UserPresence(models.Model):
    """Global online/offline state of a user, independent of conversations."""

    user = models.OneToOneField(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        primary_key=True,
        related_name="chat_presence",
        help_text="User this presence belongs to",
    )

    state = models.CharField(
        max_length=10,
        choices=PresenceState.choices,
        default=PresenceState.OFFLINE,
        help_text="Current presence state",
    )

    last_seen_at = models.DateTimeField(
        default=timezone.now,
        help_text="When the state was last reported",
    )

    class Meta:
        db_table = "chat_user_presence"

    def __str__(self) -> str:
        return f"{self.user_id}: {self.state}"


class UserBlock(BaseModel):
    """
    One user blocking another.

    Blocks are directional rows but act both ways on direct conversations:
    neither user can open one with the other or send into an existing one.
    In groups a user cannot create a group containing someone who blocked
    them; group messaging is unaffected.
    """

    blocker = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="chat_blocks",
        help_text="User who created the block",
    )

    blocked = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="chat_blocked_by",
        help_text="User who is blocked",
    )

    class Meta:
        db_table = "chat_user_block"
        ordering = ["-created_at", "-id"]
        constraints = [
            models.UniqueConstraint(
                fields=["blocker", "blocked"],
                name="unique_user_block",
            ),
        ]
        indexes = [
            models.Index(fields=["blocked"], name="chat_block_blocked_idx"),
        ]

    def __str__(self) -> str:
        return f"{self.blocker_id} blocked {self.blocked_id}"
