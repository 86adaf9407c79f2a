"""
Tests for MessageService and ReactionService.

This module tests:
- Sending text and media messages (validation, lock, preview update)
- History pagination in both directions
- Editing within the 15 minute window
- Soft delete by author and moderator, with media cleanup
- Reactions: one per user, replace, remove with value check
"""

from datetime import timedelta
from unittest.mock import patch

import pytest
from django.utils import timezone
from freezegun import freeze_time

from chat.constants import MEDIA_CONFIG
from chat.exceptions import ChatErrorCode
from chat.models import Message, MessageReaction, Participant
from chat.services import MessageService, ReactionService
from chat.tests.factories import MessageFactory, MessageReactionFactory

class TestSendMessage:
    def test_send_text(self, group_conversation, member_user):
        result = MessageService.send_message(
            group_conversation.pk, member_user.pk, text="  **hello** <b>world</b> "
        )

        assert result.success
        assert result.data["text"] == "hello world"
        assert result.data["type"] == "text"
        assert result.data["author"]["nickname"] == "member"
        assert Message.objects.filter(conversation=group_conversation).count() == 1

    def test_updates_conversation_and_read_marker(self, group_conversation, member_user):
        """
        The message, the conversation preview and the sender's read marker
        move together.

        Why it matters: Inbox ordering and unread counts depend on it.
        """
        result = MessageService.send_message(group_conversation.pk, member_user.pk, text="hi")

        group_conversation.refresh_from_db()
        participant = Participant.objects.get(conversation=group_conversation, user=member_user)
        assert group_conversation.last_message_at == result.data["created_at"]
        assert group_conversation.last_message_preview == "hi"
        assert participant.last_read_at == result.data["created_at"]

    def test_long_preview_is_truncated(self, group_conversation, member_user):
        MessageService.send_message(group_conversation.pk, member_user.pk, text="y" * 300)

        group_conversation.refresh_from_db()
        assert len(group_conversation.last_message_preview) == 100
        assert group_conversation.last_message_preview.endswith("...")

    @pytest.mark.parametrize(
        ("text", "code"),
        [
            (None, ChatErrorCode.TEXT_REQUIRED),
            ("   ", ChatErrorCode.TEXT_REQUIRED),
            ("x" * 5001, ChatErrorCode.TEXT_TOO_LONG),
            ("<p></p>", ChatErrorCode.EMPTY_AFTER_SANITIZE),
        ],
    )
    def test_text_validation(self, group_conversation, member_user, text, code):
        result = MessageService.send_message(group_conversation.pk, member_user.pk, text=text)

        assert result.error_code == code
        assert not Message.objects.exists()

    def test_text_at_limit_is_accepted(self, group_conversation, member_user):
        result = MessageService.send_message(
            group_conversation.pk, member_user.pk, text="x" * 5000
        )

        assert result.success

    def test_outsider_cannot_send(self, group_conversation, other_user):
        result = MessageService.send_message(group_conversation.pk, other_user.pk, text="hi")

        assert result.error_code == ChatErrorCode.NOT_PARTICIPANT

    def test_banned_user_cannot_send(self, group_conversation, member_user):
        Participant.objects.filter(user=member_user).update(is_banned=True)

        result = MessageService.send_message(group_conversation.pk, member_user.pk, text="hi")

        assert result.error_code == ChatErrorCode.NOT_PARTICIPANT

    def test_locked_blocks_members(self, group_conversation, member_user):
        group_conversation.is_locked = True
        group_conversation.save()

        result = MessageService.send_message(group_conversation.pk, member_user.pk, text="hi")

        assert result.error_code == ChatErrorCode.CONVERSATION_LOCKED
        assert result.http_status == 403

    @pytest.mark.parametrize("role_fixture", ["owner_user", "moderator_user"])
    def test_locked_allows_moderators(self, request, group_conversation, role_fixture):
        """Moderators keep talking in a locked conversation."""
        user = request.getfixturevalue(role_fixture)
        group_conversation.is_locked = True
        group_conversation.save()

        result = MessageService.send_message(group_conversation.pk, user.pk, text="announce")

        assert result.success

    def test_unknown_conversation(self, member_user):
        result = MessageService.send_message("nope", member_user.pk, text="hi")

        assert result.error_code == ChatErrorCode.CONVERSATION_NOT_FOUND

    def test_invalid_type(self, group_conversation, member_user):
        result = MessageService.send_message(
            group_conversation.pk, member_user.pk, message_type="video", text="hi"
        )

        assert result.error_code == ChatErrorCode.INVALID_TYPE

    def test_send_image(self, group_conversation, member_user, image_media):
        result = MessageService.send_message(
            group_conversation.pk,
            member_user.pk,
            message_type="image",
            media={**image_media, "extra": "dropped"},
        )

        assert result.success
        assert result.data["text"] == ""
        assert result.data["media"] == image_media
        group_conversation.refresh_from_db()
        assert group_conversation.last_message_preview == MEDIA_CONFIG.IMAGE_PREVIEW

    def test_image_with_text_rejected(self, group_conversation, member_user, image_media):
        result = MessageService.send_message(
            group_conversation.pk,
            member_user.pk,
            message_type="image",
            text="hi",
            media=image_media,
        )

        assert result.error_code == ChatErrorCode.INVALID_MEDIA

    def test_text_with_media_rejected(self, group_conversation, member_user, image_media):
        result = MessageService.send_message(
            group_conversation.pk, member_user.pk, text="hi", media=image_media
        )

        assert result.error_code == ChatErrorCode.INVALID_MEDIA

    def test_oversized_image_rejected(self, group_conversation, member_user, image_media):
        result = MessageService.send_message(
            group_conversation.pk,
            member_user.pk,
            message_type="image",
            media={**image_media, "size": 50 * 1024 * 1024},
        )

        assert result.error_code == ChatErrorCode.INVALID_MEDIA

    @pytest.mark.parametrize(
        "object_path",
        [
            "avatars/victim.png",
            "chat/conversations/00000000-0000-0000-0000-000000000000/photo.png",
            "chat/conversations/../avatars/victim.png",
        ],
    )
    def test_media_outside_conversation_folder_rejected(
        self, group_conversation, member_user, image_media, object_path
    ):
        """
        A message can only reference blobs stored under its own conversation.

        Why it matters: Deleting the message deletes its blobs, so a foreign
        objectPath would let any member remove another user's files.
        """
        result = MessageService.send_message(
            group_conversation.pk,
            member_user.pk,
            message_type="image",
            media={**image_media, "objectPath": object_path},
        )

        assert result.error_code == ChatErrorCode.INVALID_MEDIA
        assert not Message.objects.filter(conversation=group_conversation).exists()

    def test_audio_disabled(self, settings, group_conversation, member_user):
        settings.CHAT_AUDIO_ENABLED = False

        result = MessageService.send_message(
            group_conversation.pk,
            member_user.pk,
            message_type="audio",
            media={"objectPath": "chat/a.webm", "mime": "audio/webm", "size": 10},
        )

        assert result.error_code == ChatErrorCode.MEDIA_TYPE_DISABLED

    def test_reply_to_message_in_same_conversation(
        self, group_conversation, member_user, member_message
    ):
        result = MessageService.send_message(
            group_conversation.pk,
            member_user.pk,
            text="reply",
            reply_to_message_id=str(member_message.pk),
        )

        assert result.data["reply_to_message_id"] == member_message.pk

    def test_reply_to_foreign_message(self, group_conversation, member_user):
        foreign = MessageFactory()

        result = MessageService.send_message(
            group_conversation.pk, member_user.pk, text="reply", reply_to_message_id=foreign.pk
        )

        assert result.error_code == ChatErrorCode.MESSAGE_NOT_FOUND


class TestGetMessages:
    @pytest.fixture
    def history(self, group_conversation, member_user):
        """Five messages one minute apart, oldest first."""
        start = timezone.now() - timedelta(hours=1)
        messages = []
        for index in range(5):
            with freeze_time(start + timedelta(minutes=index)):
                messages.append(
                    MessageFactory(
                        conversation=group_conversation, author=member_user, text=f"m{index}"
                    )
                )
        return messages

    def test_newest_first_by_default(self, group_conversation, member_user, history):
        result = MessageService.get_messages(group_conversation.pk, member_user.pk)

        assert [m["text"] for m in result.data["messages"]] == ["m4", "m3", "m2", "m1", "m0"]
        assert result.data["has_more"] is False

    def test_ascending_pages(self, group_conversation, member_user, history):
        first = MessageService.get_messages(
            group_conversation.pk, member_user.pk, page_size=2, order="asc"
        )
        second = MessageService.get_messages(
            group_conversation.pk,
            member_user.pk,
            cursor=first.data["next_cursor"],
            page_size=2,
            order="asc",
        )

        assert [m["text"] for m in first.data["messages"]] == ["m0", "m1"]
        assert [m["text"] for m in second.data["messages"]] == ["m2", "m3"]
        assert second.data["has_more"] is True

    def test_deleted_messages_hidden(self, group_conversation, member_user, history):
        history[2].soft_delete()

        result = MessageService.get_messages(group_conversation.pk, member_user.pk)

        assert "m2" not in [m["text"] for m in result.data["messages"]]

    def test_same_timestamp_messages_not_skipped(self, group_conversation, member_user):
        """
        Messages sharing a timestamp page cleanly on id.

        Why it matters: Bursts of messages land in the same instant.
        """
        with freeze_time("2026-03-01 10:00:00"):
            created = {
                MessageFactory(conversation=group_conversation, author=member_user).pk
                for _ in range(4)
            }

        seen = []
        cursor = None
        for _ in range(4):
            result = MessageService.get_messages(
                group_conversation.pk, member_user.pk, cursor=cursor, page_size=1
            )
            seen.extend(m["id"] for m in result.data["messages"])
            cursor = result.data["next_cursor"]
            if not result.data["has_more"]:
                break

        assert len(seen) == 4
        assert set(seen) == created

    def test_outsider_denied(self, group_conversation, other_user):
        result = MessageService.get_messages(group_conversation.pk, other_user.pk)

        assert result.error_code == ChatErrorCode.NOT_PARTICIPANT

    def test_store_fault_returns_empty_page(self, group_conversation, member_user, history):
        with patch("chat.services.paginate_items", side_effect=RuntimeError("db down")):
            result = MessageService.get_messages(group_conversation.pk, member_user.pk)

        assert result.success
        assert result.data["messages"] == []
        assert result.data["has_more"] is False


class TestEditMessage:
    def test_edit_within_window(self, member_message, member_user):
        result = MessageService.edit_message(member_message.pk, member_user.pk, "*updated*")

        assert result.success
        assert result.data["text"] == "updated"
        assert result.data["edited_at"] is not None

    def test_edit_at_exactly_fifteen_minutes(self, group_conversation, member_user):
        with freeze_time("2026-03-01 10:00:00"):
            message = MessageFactory(conversation=group_conversation, author=member_user)

        with freeze_time("2026-03-01 10:15:00"):
            result = MessageService.edit_message(message.pk, member_user.pk, "still ok")

        assert result.success

    def test_edit_after_fifteen_minutes(self, group_conversation, member_user):
        with freeze_time("2026-03-01 10:00:00"):
            message = MessageFactory(conversation=group_conversation, author=member_user)

        with freeze_time("2026-03-01 10:15:01"):
            result = MessageService.edit_message(message.pk, member_user.pk, "too late")

        assert result.error_code == ChatErrorCode.EDIT_WINDOW_EXPIRED
        assert result.http_status == 409

    def test_non_author_cannot_edit(self, member_message, owner_user):
        result = MessageService.edit_message(member_message.pk, owner_user.pk, "mine now")

        assert result.error_code == ChatErrorCode.NOT_AUTHOR

    def test_banned_author_cannot_edit(self, member_message, member_user):
        Participant.objects.filter(user=member_user).update(is_banned=True)

        result = MessageService.edit_message(member_message.pk, member_user.pk, "x")

        assert result.error_code == ChatErrorCode.NOT_PARTICIPANT

    def test_deleted_message_cannot_be_edited(self, member_message, member_user):
        member_message.soft_delete()

        result = MessageService.edit_message(member_message.pk, member_user.pk, "x")

        assert result.error_code == ChatErrorCode.MESSAGE_DELETED

    def test_image_cannot_be_edited(self, group_conversation, member_user, image_media):
        message = MessageFactory(
            conversation=group_conversation,
            author=member_user,
            message_type="image",
            text="",
            media=image_media,
        )

        result = MessageService.edit_message(message.pk, member_user.pk, "caption")

        assert result.error_code == ChatErrorCode.INVALID_TYPE

    def test_empty_edit_rejected(self, member_message, member_user):
        result = MessageService.edit_message(member_message.pk, member_user.pk, "   ")

        assert result.error_code == ChatErrorCode.TEXT_REQUIRED


class TestDeleteMessage:
    def test_author_soft_deletes(self, member_message, member_user, media_cleanup):
        result = MessageService.delete_message(member_message.pk, member_user.pk)

        assert result.success
        member_message.refresh_from_db()
        assert member_message.is_deleted is True
        assert member_message.deleted_at is not None
        assert member_message.deleted_by_mod is False

    def test_moderator_delete_is_flagged(self, member_message, moderator_user, media_cleanup):
        """
        Deleting someone else's message marks it as a moderator delete.

        Why it matters: Clients render "removed by a moderator".
        """
        result = MessageService.delete_message(member_message.pk, moderator_user.pk)

        assert result.data["deleted_by_mod"] is True

    def test_member_cannot_delete_others(self, group_conversation, member_user, owner_user):
        message = MessageFactory(conversation=group_conversation, author=owner_user)

        result = MessageService.delete_message(message.pk, member_user.pk)

        assert result.error_code == ChatErrorCode.NOT_AUTHOR_OR_MODERATOR

    def test_second_delete_rejected(self, member_message, member_user, media_cleanup):
        MessageService.delete_message(member_message.pk, member_user.pk)

        result = MessageService.delete_message(member_message.pk, member_user.pk)

        assert result.error_code == ChatErrorCode.MESSAGE_ALREADY_DELETED

    def test_media_scheduled_for_cleanup(
        self, group_conversation, member_user, media_cleanup, image_media
    ):
        message = MessageFactory(
            conversation=group_conversation,
            author=member_user,
            message_type="image",
            text="",
            media=image_media,
        )

        MessageService.delete_message(message.pk, member_user.pk)

        media_cleanup.assert_called_once_with([image_media["objectPath"]])

    def test_foreign_paths_in_stored_media_not_cleaned(
        self, group_conversation, member_user, media_cleanup, image_media
    ):
        message = MessageFactory(
            conversation=group_conversation,
            author=member_user,
            message_type="image",
            text="",
            media={**image_media, "thumbnailUrl": "gs://bucket/avatars/victim.png"},
        )

        MessageService.delete_message(message.pk, member_user.pk)

        media_cleanup.assert_called_once_with([image_media["objectPath"]])

    def test_cleanup_runs_after_commit(
        self, group_conversation, member_user, image_media, django_capture_on_commit_callbacks
    ):
        """Blob deletion is enqueued only once the delete has committed."""
        message = MessageFactory(
            conversation=group_conversation,
            author=member_user,
            message_type="image",
            text="",
            media=image_media,
        )

        with patch("chat.tasks.delete_chat_media.delay") as mock_delay:
            with django_capture_on_commit_callbacks(execute=True) as callbacks:
                MessageService.delete_message(message.pk, member_user.pk)

        assert len(callbacks) == 1
        mock_delay.assert_called_once_with([image_media["objectPath"]])

    def test_unknown_message(self, member_user):
        result = MessageService.delete_message("00000000-0000-0000-0000-000000000000", member_user.pk)

        assert result.error_code == ChatErrorCode.MESSAGE_NOT_FOUND


class TestReactions:
    def test_add_reaction(self, member_message, owner_user):
        result = ReactionService.add_reaction(member_message.pk, owner_user.pk, " \U0001f44d ")

        assert result.success
        assert result.data["value"] == "\U0001f44d"

    def test_second_reaction_replaces_first(self, member_message, owner_user):
        """
        A user holds at most one reaction per message.

        Why it matters: Counts in the summary must be one per user.
        """
        ReactionService.add_reaction(member_message.pk, owner_user.pk, "\U0001f44d")
        ReactionService.add_reaction(member_message.pk, owner_user.pk, "\U0001f602")

        reactions = MessageReaction.objects.filter(message=member_message)
        assert reactions.count() == 1
        assert reactions.get().value == "\U0001f602"

    @pytest.mark.parametrize("value", ["", "   ", "x" * 11, None])
    def test_invalid_value(self, member_message, owner_user, value):
        result = ReactionService.add_reaction(member_message.pk, owner_user.pk, value)

        assert result.error_code == ChatErrorCode.INVALID_REACTION

    def test_deleted_message_rejects_reactions(self, member_message, owner_user):
        member_message.soft_delete()

        result = ReactionService.add_reaction(member_message.pk, owner_user.pk, "\U0001f44d")

        assert result.error_code == ChatErrorCode.MESSAGE_DELETED

    def test_outsider_cannot_react(self, member_message, other_user):
        result = ReactionService.add_reaction(member_message.pk, other_user.pk, "\U0001f44d")

        assert result.error_code == ChatErrorCode.NOT_PARTICIPANT

    def test_remove_reaction(self, member_message, owner_user):
        MessageReactionFactory(message=member_message, user=owner_user, value="\U0001f44d")

        result = ReactionService.remove_reaction(member_message.pk, owner_user.pk, "\U0001f44d")

        assert result.success
        assert not MessageReaction.objects.exists()

    def test_remove_with_wrong_value(self, member_message, owner_user):
        MessageReactionFactory(message=member_message, user=owner_user, value="\U0001f44d")

        result = ReactionService.remove_reaction(member_message.pk, owner_user.pk, "\U0001f602")

        assert result.error_code == ChatErrorCode.REACTION_VALUE_MISMATCH
        assert MessageReaction.objects.count() == 1

    def test_remove_missing(self, member_message, owner_user):
        result = ReactionService.remove_reaction(member_message.pk, owner_user.pk, "\U0001f44d")

        assert result.error_code == ChatErrorCode.REACTION_NOT_FOUND

    def test_get_reactions_summary(self, member_message, owner_user, moderator_user, member_user):
        MessageReactionFactory(message=member_message, user=owner_user, value="\U0001f44d")
        MessageReactionFactory(message=member_message, user=moderator_user, value="\U0001f44d")
        MessageReactionFactory(message=member_message, user=member_user, value="\U0001f602")

        result = ReactionService.get_reactions(member_message.pk, member_user.pk)

        summary = result.data["summary"]
        assert summary["\U0001f44d"]["count"] == 2
        assert set(summary["\U0001f44d"]["users"]) == {owner_user.pk, moderator_user.pk}
        assert summary["\U0001f602"] == {"count": 1, "users": [member_user.pk]}
        assert len(result.data["reactions"]) == 3
        assert {r["user"]["nickname"] for r in result.data["reactions"]} == {
            "owner",
            "mod",
            "member",
        }
