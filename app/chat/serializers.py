"""
Request serializers for chat API.

Serializers here only shape and type-check incoming data. Business rules
(title length, member counts, media limits, reaction length) live in the
services, so every rule has one owner and one error code.

Serializer Groups:
    Conversations: create, update, list query, mute
    Membership: target user, role change
    Messages: create, edit, list query
    Reactions: value
    Presence: typing, read marker, state
"""

from __future__ import annotations

from rest_framework import serializers

from chat.constants import MESSAGE_CONFIG
from chat.models import ConversationType, MessageType


# =============================================================================
# Conversations
# =============================================================================


class ConversationCreateSerializer(serializers.Serializer):
    """
    Create a conversation.

    member_ids includes the caller; the first id becomes the owner.
    """

    type = serializers.ChoiceField(choices=ConversationType.choices)
    member_ids = serializers.ListField(
        child=serializers.IntegerField(min_value=1),
        allow_empty=False,
    )
    title = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    icon = serializers.CharField(required=False, allow_blank=True, allow_null=True)


class ConversationUpdateSerializer(serializers.Serializer):
    """Partial update; only provided fields change."""

    title = serializers.CharField(required=False, allow_blank=True)
    icon = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    is_locked = serializers.BooleanField(required=False)


class CursorQuerySerializer(serializers.Serializer):
    cursor = serializers.CharField(required=False, allow_blank=True)
    page_size = serializers.IntegerField(required=False, min_value=1)


class MuteSerializer(serializers.Serializer):
    muted = serializers.BooleanField()


# =============================================================================
# Membership
# =============================================================================


class TargetUserSerializer(serializers.Serializer):
    user_id = serializers.IntegerField(min_value=1)


class RoleChangeSerializer(TargetUserSerializer):
    role = serializers.CharField()


# =============================================================================
# Messages
# =============================================================================


class MessageCreateSerializer(serializers.Serializer):
    """
    Send a message.

    Text messages carry text; image/audio messages carry a media
    descriptor (objectPath or url, mime, size, dimensions or durationMs).
    """

    type = serializers.ChoiceField(choices=MessageType.choices, default=MessageType.TEXT)
    text = serializers.CharField(
        required=False, allow_blank=True, allow_null=True, trim_whitespace=False
    )
    media = serializers.JSONField(required=False, allow_null=True)
    reply_to_message_id = serializers.UUIDField(required=False, allow_null=True)


class MessageEditSerializer(serializers.Serializer):
    text = serializers.CharField(allow_blank=True, trim_whitespace=False)


class MessageListQuerySerializer(CursorQuerySerializer):
    order = serializers.ChoiceField(
        choices=[MESSAGE_CONFIG.ORDER_ASC, MESSAGE_CONFIG.ORDER_DESC],
        default=MESSAGE_CONFIG.ORDER_DESC,
    )


# =============================================================================
# Reactions
# =============================================================================


class ReactionSerializer(serializers.Serializer):
    value = serializers.CharField()


# =============================================================================
# Presence
# =============================================================================


class TypingSerializer(serializers.Serializer):
    is_typing = serializers.BooleanField()


class MarkReadSerializer(serializers.Serializer):
    at = serializers.DateTimeField(required=False, allow_null=True)


class PresenceSetSerializer(serializers.Serializer):
    state = serializers.CharField()
