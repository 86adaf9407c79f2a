"""
Test configuration and fixtures for chat tests.

This module provides:
- User fixtures with different conversation roles
- Conversation fixtures (direct and group) with participants in place
- Message fixtures
- API client helpers for authenticated requests
- A media cleanup spy so no test reaches the blob store or broker

Usage:
    def test_example(group_conversation, owner_client):
        response = owner_client.get(
            f"/api/v1/chat/conversations/{group_conversation.id}/"
        )
        assert response.status_code == 200
"""

from unittest.mock import patch

import pytest
from rest_framework.test import APIClient

from authentication.tests.factories import UserFactory
from chat.models import ConversationType, ParticipantRole
from chat.storage import media_folder
from chat.tests.factories import ConversationFactory, MessageFactory, add_participant


# =============================================================================
# User Fixtures
# =============================================================================


@pytest.fixture
def owner_user(db):
    """User who owns group_conversation."""
    return UserFactory(nickname="owner")


@pytest.fixture
def moderator_user(db):
    """User who moderates group_conversation."""
    return UserFactory(nickname="mod")


@pytest.fixture
def member_user(db):
    """Plain member of group_conversation."""
    return UserFactory(nickname="member")


@pytest.fixture
def other_user(db):
    """User with no membership anywhere."""
    return UserFactory()


# =============================================================================
# Conversation Fixtures
# =============================================================================


@pytest.fixture
def group_conversation(owner_user, moderator_user, member_user):
    """Group with an owner, a moderator and a member."""
    conversation = ConversationFactory(
        conversation_type=ConversationType.GROUP,
        title="Weekend Plans",
        created_by=owner_user,
    )
    add_participant(conversation, owner_user, ParticipantRole.OWNER)
    add_participant(conversation, moderator_user, ParticipantRole.MODERATOR)
    add_participant(conversation, member_user, ParticipantRole.MEMBER)
    return conversation


@pytest.fixture
def direct_conversation(owner_user, member_user):
    """Direct conversation between owner_user and member_user."""
    conversation = ConversationFactory(
        conversation_type=ConversationType.DIRECT,
        title="",
        created_by=owner_user,
    )
    add_participant(conversation, owner_user, ParticipantRole.OWNER)
    add_participant(conversation, member_user, ParticipantRole.MEMBER)
    return conversation


@pytest.fixture
def member_message(group_conversation, member_user):
    """Text message written by member_user in group_conversation."""
    return MessageFactory(conversation=group_conversation, author=member_user, text="hello")


@pytest.fixture
def image_media(group_conversation):
    """Image descriptor stored in group_conversation's media folder."""
    return {
        "objectPath": f"{media_folder(group_conversation.pk)}photo.png",
        "mime": "image/png",
        "size": 2048,
        "width": 640,
        "height": 480,
    }


# =============================================================================
# Side Effects
# =============================================================================


@pytest.fixture
def media_cleanup():
    """Capture blob cleanup requests instead of enqueueing them."""
    with patch("chat.services.schedule_media_cleanup") as mock_schedule:
        yield mock_schedule


# =============================================================================
# API Clients
# =============================================================================


def _client_for(user):
    client = APIClient()
    client.force_authenticate(user=user)
    return client


@pytest.fixture
def api_client():
    """Unauthenticated client."""
    return APIClient()


@pytest.fixture
def owner_client(owner_user):
    return _client_for(owner_user)


@pytest.fixture
def moderator_client(moderator_user):
    return _client_for(moderator_user)


@pytest.fixture
def member_client(member_user):
    return _client_for(member_user)


@pytest.fixture
def other_client(other_user):
    return _client_for(other_user)
