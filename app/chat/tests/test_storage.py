"""
Tests for chat media storage helpers.

This module tests:
- extract_object_path() for each stored reference shape
- validate_media_descriptor() limits and codes
- Folder ownership of media references
- media_object_paths()
- ChatMediaStorage.delete_file() idempotency
"""

from unittest.mock import MagicMock, patch

import pytest

from chat.exceptions import ChatErrorCode
from chat.storage import (
    ChatMediaStorage,
    extract_object_path,
    is_in_folder,
    media_folder,
    media_object_paths,
    validate_media_descriptor,
)


class TestExtractObjectPath:
    @pytest.mark.parametrize(
        ("reference", "expected"),
        [
            (
                "https://res.cloudinary.com/demo/image/upload/v1712/chat/conv/a.png",
                "chat/conv/a",
            ),
            ("https://res.cloudinary.com/demo/image/upload/chat/b.jpg", "chat/b"),
            ("https://storage.googleapis.com/bucket/chat/c%20d.png", "chat/c d.png"),
            ("gs://bucket/chat/e.png", "chat/e.png"),
            ("s3://bucket/chat/f.png", "chat/f.png"),
            ("chat/conversations/1/messages/2/g.png", "chat/conversations/1/messages/2/g.png"),
        ],
    )
    def test_resolves_supported_shapes(self, reference, expected):
        assert extract_object_path(reference) == expected

    @pytest.mark.parametrize(
        "reference",
        [
            None,
            "",
            "https://example.com/a.png",
            "https://res.cloudinary.com/demo/image/fetch/a.png",
            "https://storage.googleapis.com/bucket-only",
            "/absolute/path.png",
            "chat/../secrets",
            "gs://bucket/chat/conversations/c1/../../avatars/victim.png",
            "https://storage.googleapis.com/bucket/chat/%2e%2e/avatars/victim.png",
            "https://res.cloudinary.com/demo/image/upload/v1/chat/conversations/c1/../x.png",
            "ftp://host/a.png",
        ],
    )
    def test_unresolvable_references_are_none(self, reference):
        """
        Anything unrecognized is skipped rather than guessed.

        Why it matters: A wrong guess could delete an unrelated blob.
        """
        assert extract_object_path(reference) is None


FOLDER = media_folder("c1")


class TestMediaFolder:
    def test_layout(self):
        assert FOLDER == "chat/conversations/c1/"

    @pytest.mark.parametrize(
        ("object_path", "expected"),
        [
            ("chat/conversations/c1/a.png", True),
            ("chat/conversations/c1/messages/m1/a.png", True),
            ("chat/conversations/c1/", False),
            ("chat/conversations/c10/a.png", False),
            ("avatars/victim.png", False),
            (None, False),
        ],
    )
    def test_is_in_folder(self, object_path, expected):
        """
        Only keys strictly below a conversation's prefix belong to it.

        Why it matters: A sibling conversation whose id shares a prefix
        must not be matched.
        """
        assert is_in_folder(object_path, FOLDER) is expected


class TestValidateMediaDescriptor:
    def _image(self, **overrides):
        media = {"objectPath": "chat/conversations/c1/a.png", "mime": "image/png", "size": 1024}
        media.update(overrides)
        return media

    def test_valid_image(self):
        assert validate_media_descriptor("image", self._image(), FOLDER).valid

    def test_url_instead_of_object_path(self):
        media = self._image(objectPath=None, url="gs://bucket/chat/conversations/c1/a.png")

        assert validate_media_descriptor("image", media, FOLDER).valid

    def test_missing_reference(self):
        result = validate_media_descriptor("image", self._image(objectPath=None), FOLDER)

        assert result.valid is False
        assert result.code == ChatErrorCode.INVALID_MEDIA

    def test_wrong_mime(self):
        result = validate_media_descriptor("image", self._image(mime="image/gif"), FOLDER)

        assert result.valid is False
        assert "Unsupported MIME type" in result.error

    def test_oversized_image(self):
        result = validate_media_descriptor(
            "image", self._image(size=6 * 1024 * 1024), FOLDER
        )

        assert result.valid is False
        assert "5MB" in result.error

    @pytest.mark.parametrize("size", [None, 0, -1, "100", True])
    def test_size_must_be_positive_int(self, size):
        assert validate_media_descriptor("image", self._image(size=size), FOLDER).valid is False

    def test_not_a_dict(self):
        assert validate_media_descriptor("image", "chat/a.png", FOLDER).valid is False

    def test_valid_audio(self):
        media = {"objectPath": "chat/conversations/c1/a.webm", "mime": "audio/webm", "size": 2048}

        assert validate_media_descriptor("audio", media, FOLDER).valid

    def test_audio_disabled(self, settings):
        """Audio can be switched off by configuration."""
        settings.CHAT_AUDIO_ENABLED = False
        media = {"objectPath": "chat/conversations/c1/a.webm", "mime": "audio/webm", "size": 2048}

        result = validate_media_descriptor("audio", media, FOLDER)

        assert result.valid is False
        assert result.code == ChatErrorCode.MEDIA_TYPE_DISABLED

    @pytest.mark.parametrize(
        "overrides",
        [
            {"objectPath": "avatars/victim.png"},
            {"objectPath": "chat/conversations/c2/a.png"},
            {"objectPath": "chat/conversations/c1/../../avatars/victim.png"},
            {"objectPath": "https://example.com/a.png"},
            {"url": "gs://bucket/avatars/victim.png"},
            {"thumbnailUrl": "gs://bucket/chat/conversations/c2/t.png"},
        ],
    )
    def test_references_outside_folder_rejected(self, overrides):
        """
        Every resolvable reference must sit in the sender's conversation folder.

        Why it matters: Deleting the message deletes what it references;
        a foreign key here would let a member remove someone else's blob.
        """
        result = validate_media_descriptor("image", self._image(**overrides), FOLDER)

        assert result.valid is False
        assert result.code == ChatErrorCode.INVALID_MEDIA

    def test_unresolvable_url_is_display_only(self):
        media = self._image(url="https://example.com/a.png")

        assert validate_media_descriptor("image", media, FOLDER).valid


class TestMediaObjectPaths:
    def test_collects_unique_paths(self):
        media = {
            "objectPath": "chat/conversations/c1/a.png",
            "url": "gs://bucket/chat/conversations/c1/a.png",
            "thumbnailUrl": "gs://bucket/chat/conversations/c1/a_thumb.png",
        }

        assert media_object_paths(media, FOLDER) == [
            "chat/conversations/c1/a.png",
            "chat/conversations/c1/a_thumb.png",
        ]

    def test_skips_paths_outside_folder(self):
        """
        Stored descriptors predating the folder check never delete foreign blobs.

        Why it matters: Cleanup trusts this list blindly.
        """
        media = {
            "objectPath": "avatars/victim.png",
            "thumbnailUrl": "gs://bucket/chat/conversations/c1/t.png",
        }

        assert media_object_paths(media, FOLDER) == ["chat/conversations/c1/t.png"]

    def test_none_media(self):
        assert media_object_paths(None, FOLDER) == []


class TestChatMediaStorage:
    def test_deletes_existing_object(self):
        storage = MagicMock()
        storage.exists.return_value = True

        with patch.object(ChatMediaStorage, "get_storage", return_value=storage):
            assert ChatMediaStorage.delete_file("chat/a.png") is True

        storage.delete.assert_called_once_with("chat/a.png")

    def test_missing_object_is_not_an_error(self):
        storage = MagicMock()
        storage.exists.return_value = False

        with patch.object(ChatMediaStorage, "get_storage", return_value=storage):
            assert ChatMediaStorage.delete_file("chat/a.png") is False

        storage.delete.assert_not_called()

    def test_filesystem_backend(self, settings, tmp_path):
        """Deletes go through the configured storage alias."""
        settings.MEDIA_ROOT = tmp_path
        blob = tmp_path / "chat" / "a.png"
        blob.parent.mkdir(parents=True)
        blob.write_bytes(b"png")

        assert ChatMediaStorage.delete_file("chat/a.png") is True
        assert not blob.exists()
