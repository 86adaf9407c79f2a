"""
Tests for chat app.

This package contains test modules for:
- test_authorization.py: Permission predicates
- test_pagination.py: Cursor codec and in-memory pagination
- test_sanitize.py: Text sanitizing and previews
- test_storage.py: Media validation and object path resolution
- test_services.py: ConversationService tests
- test_message_services.py: MessageService and ReactionService tests
- test_moderation_services.py: ModerationService and PresenceService tests
- test_tasks.py: Media cleanup task tests
- test_views.py: REST API endpoint tests

Usage:
    pytest app/chat/tests/
    pytest app/chat/tests/test_message_services.py
"""
