"""
Django admin configuration for chat models.

Provides admin interfaces for:
- Conversation management
- Participant viewing (roles, bans)
- Message moderation (including soft-deleted messages)
- Reactions, presence and user blocks
"""

from django.contrib import admin

from chat.models import (
    Conversation,
    DirectConversationPair,
    Message,
    MessageReaction,
    Participant,
    UserBlock,
    UserPresence,
)
from chat.sanitize import truncate_preview


class ParticipantInline(admin.TabularInline):
    """Inline display of participants in conversation admin."""

    model = Participant
    extra = 0
    readonly_fields = ["joined_at", "last_read_at", "typing_updated_at"]
    raw_id_fields = ["user"]


@admin.register(Conversation)
class ConversationAdmin(admin.ModelAdmin):
    """Admin interface for Conversation model."""

    list_display = [
        "id",
        "conversation_type",
        "title",
        "member_count",
        "is_locked",
        "created_at",
        "last_message_at",
    ]
    list_filter = ["conversation_type", "is_locked", "created_at"]
    search_fields = ["title", "id"]
    readonly_fields = [
        "created_at",
        "updated_at",
        "member_count",
        "last_message_at",
        "last_message_preview",
    ]
    raw_id_fields = ["created_by"]
    inlines = [ParticipantInline]
    ordering = ["-last_message_at"]


@admin.register(DirectConversationPair)
class DirectConversationPairAdmin(admin.ModelAdmin):
    """Admin interface for DirectConversationPair model."""

    list_display = ["pair_key", "conversation", "updated_at"]
    raw_id_fields = ["conversation"]
    search_fields = ["pair_key"]


@admin.register(Participant)
class ParticipantAdmin(admin.ModelAdmin):
    """Admin interface for Participant model."""

    list_display = [
        "id",
        "conversation",
        "user",
        "role",
        "is_banned",
        "is_muted",
        "joined_at",
    ]
    list_filter = ["role", "is_banned", "joined_at"]
    search_fields = ["user__email", "conversation__title"]
    readonly_fields = ["created_at", "updated_at", "joined_at"]
    raw_id_fields = ["conversation", "user"]
    ordering = ["-joined_at"]


@admin.register(Message)
class MessageAdmin(admin.ModelAdmin):
    """Admin interface for Message model."""

    list_display = [
        "id",
        "conversation",
        "author",
        "message_type",
        "text_preview",
        "is_deleted",
        "deleted_by_mod",
        "created_at",
    ]
    list_filter = ["message_type", "is_deleted", "deleted_by_mod", "created_at"]
    search_fields = ["text", "author__email"]
    readonly_fields = ["created_at", "updated_at", "deleted_at", "edited_at"]
    raw_id_fields = ["conversation", "author", "reply_to"]
    ordering = ["-created_at"]

    @admin.display(description="Text")
    def text_preview(self, obj: Message) -> str:
        return truncate_preview(obj.text, 50)


@admin.register(MessageReaction)
class MessageReactionAdmin(admin.ModelAdmin):
    list_display = ["message", "user", "value", "created_at"]
    raw_id_fields = ["message", "user"]


@admin.register(UserPresence)
class UserPresenceAdmin(admin.ModelAdmin):
    list_display = ["user", "state", "last_seen_at"]
    list_filter = ["state"]
    raw_id_fields = ["user"]


@admin.register(UserBlock)
class UserBlockAdmin(admin.ModelAdmin):
    list_display = ["blocker", "blocked", "created_at"]
    raw_id_fields = ["blocker", "blocked"]
