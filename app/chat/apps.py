"""
Chat application configuration.

This app provides the chat system with:
- Direct (1:1) and group conversations
- Role-based moderation (owner, moderator, member)
- Message soft deletion, edit window and reactions
- Read markers, typing and presence
"""

from django.apps import AppConfig


class ChatConfig(AppConfig):
    """Configuration for the chat application."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "chat"
    verbose_name = "Chat"
