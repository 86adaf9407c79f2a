"""
URL configuration for chat API.

URL Structure:
    Conversations:
        /conversations/                              GET, POST
        /conversations/{id}/                         GET, PATCH, DELETE
        /conversations/{id}/{action}/                POST (join, leave, mute,
            read, typing, transfer-ownership, role, ban, unban, lock, unlock)

    Messages:
        /conversations/{id}/messages/                GET, POST
        /messages/{id}/                              PATCH, DELETE
        /messages/{id}/restore/                      POST

    Reactions:
        /messages/{id}/reactions/                    GET, POST, DELETE

    Presence:
        /presence/                                   POST
        /presence/{user_id}/                         GET

    Blocks:
        /blocks/                                     GET, POST
        /blocks/{user_id}/                           DELETE

All URLs are prefixed with /api/v1/chat/ in the main URL configuration.
"""

from django.urls import include, path
from rest_framework.routers import DefaultRouter

from chat.views import (
    BlockViewSet,
    ConversationMessageViewSet,
    ConversationViewSet,
    MessageViewSet,
    PresenceViewSet,
)

# Main router for conversations
router = DefaultRouter()
router.register(r"conversations", ConversationViewSet, basename="conversation")

app_name = "chat"

urlpatterns = [
    path("", include(router.urls)),
    # Nested routes for messages
    path(
        "conversations/<str:conversation_pk>/messages/",
        ConversationMessageViewSet.as_view({"get": "list", "post": "create"}),
        name="conversation-message-list",
    ),
    # Message routes by id
    path(
        "messages/<str:pk>/",
        MessageViewSet.as_view({"patch": "partial_update", "delete": "destroy"}),
        name="message-detail",
    ),
    path(
        "messages/<str:pk>/restore/",
        MessageViewSet.as_view({"post": "restore"}),
        name="message-restore",
    ),
    # Reaction routes
    path(
        "messages/<str:pk>/reactions/",
        MessageViewSet.as_view({"get": "reactions", "post": "reactions", "delete": "reactions"}),
        name="message-reactions",
    ),
    # Presence endpoints
    path("presence/", PresenceViewSet.as_view({"post": "create"}), name="presence"),
    path(
        "presence/<int:user_id>/",
        PresenceViewSet.as_view({"get": "retrieve"}),
        name="presence-user",
    ),
    # Block endpoints
    path(
        "blocks/",
        BlockViewSet.as_view({"get": "list", "post": "create"}),
        name="block-list",
    ),
    path(
        "blocks/<int:user_id>/",
        BlockViewSet.as_view({"delete": "destroy"}),
        name="block-detail",
    ),
]
