"""
Tests for chat cursor pagination.

This module tests:
- Cursor decoding of malformed input
- Page cutting, has_more and next_cursor
- Tie-breaking by id on equal timestamps
- Page size clamping
"""

import base64
import uuid
from datetime import datetime, timedelta
from datetime import timezone as dt_timezone
from types import SimpleNamespace

import pytest

from chat.pagination import ChatCursor, clamp_page_size, cursor_boundary, paginate_items

BASE = datetime(2026, 1, 1, 12, 0, tzinfo=dt_timezone.utc)


def _items(count, same_timestamp=False):
    return [
        SimpleNamespace(
            ts=BASE if same_timestamp else BASE + timedelta(seconds=index),
            id=f"{index:04d}",
        )
        for index in range(count)
    ]


def _key(item):
    return (item.ts, item.id)


class TestChatCursorDecode:
    @pytest.mark.parametrize("value", [None, "", "not-base64!!", 42])
    def test_malformed_input_is_no_cursor(self, value):
        """
        Garbage cursors restart the listing instead of failing.

        Why it matters: Cursors are client input.
        """
        assert ChatCursor.decode(value) is None

    def test_valid_json_missing_fields_is_no_cursor(self):
        token = base64.urlsafe_b64encode(b'{"ts": "2026-01-01T00:00:00+00:00"}').decode()

        assert ChatCursor.decode(token) is None

    @pytest.mark.parametrize("depth", [3000, 300])
    def test_deeply_nested_json_is_no_cursor(self, depth):
        """
        Deeply nested arrays decode to no cursor instead of raising.

        Why it matters: A RecursionError escaping decode() would turn a
        list request into a 500.
        """
        token = base64.urlsafe_b64encode(b"[" * depth).decode()

        assert ChatCursor.decode(token) is None

    def test_oversized_token_is_no_cursor(self):
        """
        A well-formed but oversized cursor is ignored unread.

        Why it matters: Decoding cost stays bounded for any client input.
        """
        token = ChatCursor(timestamp=BASE, id="x" * 1000).encode()

        assert ChatCursor.decode(token) is None

    def test_non_object_json_is_no_cursor(self):
        token = base64.urlsafe_b64encode(b'["ts", "id"]').decode()

        assert ChatCursor.decode(token) is None

    def test_id_type_rejects_wrong_ids(self):
        token = ChatCursor(timestamp=BASE, id="not-a-uuid").encode()

        assert ChatCursor.decode(token, id_type=uuid.UUID) is None

    def test_naive_timestamp_is_treated_as_utc(self):
        payload = b'{"ts": "2026-01-01T12:00:00", "id": "a"}'
        token = base64.urlsafe_b64encode(payload).decode().rstrip("=")

        cursor = ChatCursor.decode(token)

        assert cursor.timestamp == BASE

    def test_encoded_cursor_decodes_to_same_key(self):
        cursor = ChatCursor.for_item(BASE, uuid.UUID(int=7))

        decoded = ChatCursor.decode(cursor.encode(), id_type=uuid.UUID)

        assert decoded == cursor


class TestPaginateItems:
    def test_first_page_descending(self):
        page = paginate_items(_items(5), cursor=None, page_size=2, key=_key, descending=True)

        assert [item.id for item in page.items] == ["0004", "0003"]
        assert page.has_more is True
        assert page.next_cursor is not None

    def test_walks_all_pages_without_gaps_or_repeats(self):
        items = _items(7)
        seen = []
        cursor = None
        while True:
            page = paginate_items(
                items, cursor=ChatCursor.decode(cursor), page_size=3, key=_key, descending=False
            )
            seen.extend(item.id for item in page.items)
            if not page.has_more:
                break
            cursor = page.next_cursor

        assert seen == [item.id for item in items]

    def test_equal_timestamps_tie_break_on_id(self):
        """
        Items sharing a timestamp are ordered by id across page boundaries.

        Why it matters: Messages sent in the same millisecond must not be
        skipped or repeated.
        """
        items = _items(4, same_timestamp=True)

        first = paginate_items(items, cursor=None, page_size=2, key=_key, descending=True)
        second = paginate_items(
            items,
            cursor=ChatCursor.decode(first.next_cursor),
            page_size=2,
            key=_key,
            descending=True,
        )

        assert [item.id for item in first.items] == ["0003", "0002"]
        assert [item.id for item in second.items] == ["0001", "0000"]
        assert second.has_more is False
        assert second.next_cursor is None

    def test_exact_page_has_no_more(self):
        page = paginate_items(_items(3), cursor=None, page_size=3, key=_key)

        assert page.has_more is False
        assert page.next_cursor is None

    def test_empty_input(self):
        page = paginate_items([], cursor=None, page_size=3, key=_key)

        assert page.items == []
        assert page.has_more is False


class TestCursorBoundary:
    def test_no_cursor_is_empty_filter(self):
        assert not cursor_boundary(None, "created_at", descending=True)

    def test_descending_uses_less_than(self):
        q = cursor_boundary(ChatCursor(BASE, "a"), "created_at", descending=True)

        assert "created_at__lt" in str(q)
        assert "id__lt" in str(q)


class TestClampPageSize:
    @pytest.mark.parametrize(
        ("value", "expected"),
        [(None, 20), ("abc", 20), (0, 1), (-5, 1), (10, 10), ("15", 15), (500, 50)],
    )
    def test_clamps_into_range(self, value, expected):
        assert clamp_page_size(value, default=20, maximum=50) == expected
