"""
Tests for SoftDeleteMixin and the soft delete managers.

This module tests:
- soft_delete() sets is_deleted and deleted_at
- restore() clears them
- hard_delete() permanently removes the record
- SoftDeleteManager hides deleted rows; the default manager sees everything

Chat messages are the soft-deleted model exercised here.
"""

import pytest

from chat.models import Message
from chat.tests.factories import MessageFactory


@pytest.fixture
def message(db):
    return MessageFactory()


@pytest.mark.django_db
class TestSoftDelete:
    """Tests for soft_delete() method."""

    def test_soft_delete_sets_flag_and_timestamp(self, message):
        """
        soft_delete should set is_deleted and deleted_at.

        Why it matters: Core soft delete functionality.
        """
        message.soft_delete()

        message.refresh_from_db()
        assert message.is_deleted is True
        assert message.deleted_at is not None

    def test_soft_delete_saves_extra_fields(self, message):
        """
        Fields changed alongside the delete land in the same update.

        Why it matters: Moderator deletes set deleted_by_mod atomically.
        """
        message.deleted_by_mod = True

        message.soft_delete(extra_fields=["deleted_by_mod"])

        message.refresh_from_db()
        assert message.deleted_by_mod is True

    def test_row_is_kept(self, message):
        message.soft_delete()

        assert Message.objects.filter(pk=message.pk).exists()


@pytest.mark.django_db
class TestRestore:
    def test_restore_clears_flag_and_timestamp(self, message):
        message.soft_delete()

        message.restore()

        message.refresh_from_db()
        assert message.is_deleted is False
        assert message.deleted_at is None


@pytest.mark.django_db
class TestHardDelete:
    def test_hard_delete_removes_row(self, message):
        message.hard_delete()

        assert not Message.objects.filter(pk=message.pk).exists()


@pytest.mark.django_db
class TestManagers:
    @pytest.fixture
    def messages(self, message):
        deleted = MessageFactory(conversation=message.conversation)
        deleted.soft_delete()
        return message, deleted

    def test_live_manager_hides_deleted(self, messages):
        live, deleted = messages

        assert list(Message.live.all()) == [live]

    def test_default_manager_sees_everything(self, messages):
        assert Message.objects.count() == 2

    def test_live_manager_chains_filters(self, messages):
        live, deleted = messages

        assert list(Message.live.filter(conversation=deleted.conversation)) == [live]

    def test_default_manager_is_unfiltered(self):
        """
        The unfiltered manager stays the default.

        Why it matters: Moderator restore and the conversation cascade look
        up deleted messages through it.
        """
        assert Message._default_manager is Message.objects
