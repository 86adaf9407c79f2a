"""
Factory Boy factories for chat models.

Provides test data for:
- Conversation: Direct and group conversations
- Participant: User membership in conversations
- Message: Text and media messages
- MessageReaction: One reaction per user per message
- UserBlock: One user blocking another

Factories only build rows; they never go through the services, so a test
can set up states the services would refuse to create (e.g. a banned
owner) when it needs to.

Usage:
    from chat.tests.factories import (
        ConversationFactory,
        ParticipantFactory,
        MessageFactory,
    )

    conversation = ConversationFactory()
    ParticipantFactory(conversation=conversation, user=user, role="owner")
    message = MessageFactory(conversation=conversation, author=user)
"""

import factory
from django.utils import timezone

from authentication.tests.factories import UserFactory
from chat.models import (
    Conversation,
    ConversationType,
    Message,
    MessageReaction,
    MessageType,
    Participant,
    ParticipantRole,
    UserBlock,
)


class ConversationFactory(factory.django.DjangoModelFactory):
    """
    Factory for Conversation model.

    Creates a group conversation by default, with no participants.

    Examples:
        conversation = ConversationFactory(title="Project Team")
        direct = ConversationFactory(conversation_type="direct", title="")
    """

    class Meta:
        model = Conversation

    conversation_type = ConversationType.GROUP
    title = factory.Sequence(lambda n: f"Group Chat {n}")
    created_by = factory.SubFactory(UserFactory)
    member_count = 0
    last_message_at = factory.LazyFunction(timezone.now)


class ParticipantFactory(factory.django.DjangoModelFactory):
    """
    Factory for Participant model.

    Note: does not touch Conversation.member_count; use add_participant()
    when the count matters.
    """

    class Meta:
        model = Participant

    conversation = factory.SubFactory(ConversationFactory)
    user = factory.SubFactory(UserFactory)
    role = ParticipantRole.MEMBER
    joined_at = factory.LazyFunction(timezone.now)
    last_read_at = None


class MessageFactory(factory.django.DjangoModelFactory):
    """
    Factory for Message model.

    Examples:
        message = MessageFactory(conversation=conversation, author=user)
        image = MessageFactory(
            message_type="image",
            text="",
            media={"objectPath": "chat/a.png", "mime": "image/png", "size": 10},
        )
    """

    class Meta:
        model = Message

    conversation = factory.SubFactory(ConversationFactory)
    author = factory.SubFactory(UserFactory)
    message_type = MessageType.TEXT
    text = factory.Sequence(lambda n: f"Message {n}")
    media = None


class MessageReactionFactory(factory.django.DjangoModelFactory):
    class Meta:
        model = MessageReaction

    message = factory.SubFactory(MessageFactory)
    user = factory.SubFactory(UserFactory)
    value = "\U0001f44d"


class UserBlockFactory(factory.django.DjangoModelFactory):
    class Meta:
        model = UserBlock

    blocker = factory.SubFactory(UserFactory)
    blocked = factory.SubFactory(UserFactory)


def add_participant(conversation, user, role=ParticipantRole.MEMBER, **kwargs):
    """Create a participant and keep the cached member count in step."""
    participant = ParticipantFactory(conversation=conversation, user=user, role=role, **kwargs)
    Conversation.objects.filter(pk=conversation.pk).update(
        member_count=conversation.participants.count()
    )
    conversation.refresh_from_db()
    return participant
