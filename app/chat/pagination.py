"""
Cursor pagination for chat lists.

Cursors are opaque tokens: URL-safe base64 of a JSON object holding the
sort key of the last item on a page, {"ts": <ISO timestamp>, "id": <id>}.
Items are ordered by timestamp, then id as the tie-break, so pages are
stable under concurrent inserts.

Cursors come from clients and are never trusted: anything that fails to
decode is treated as "no cursor" and listing starts from the beginning.

Usage:
    from chat.pagination import ChatCursor, paginate_items

    page = paginate_items(
        messages,
        cursor=ChatCursor.decode(request_cursor),
        page_size=30,
        key=lambda m: (m.created_at, m.id),
        descending=True,
    )
    page.items, page.next_cursor, page.has_more
"""

from __future__ import annotations

import base64
import binascii
import json
import logging
from dataclasses import dataclass, field
from datetime import datetime
from datetime import timezone as dt_timezone
from typing import TYPE_CHECKING, Any

from django.db.models import Q
from django.utils import timezone

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable

logger = logging.getLogger(__name__)

# Encoded cursors are ~100 characters; anything much longer is not ours
MAX_CURSOR_LENGTH = 512


@dataclass(frozen=True)
class ChatCursor:
    """Sort key (timestamp, id) of the last item a client has seen."""

    timestamp: datetime
    id: str

    def encode(self) -> str:
        """Encode cursor as URL-safe base64 JSON."""
        payload = json.dumps(
            {"ts": self.timestamp.isoformat(), "id": self.id},
            separators=(",", ":"),
        )
        return base64.urlsafe_b64encode(payload.encode()).decode()

    @classmethod
    def decode(
        cls, encoded: str | None, id_type: Callable[[str], Any] | None = None
    ) -> ChatCursor | None:
        """
        Decode a cursor token.

        id_type (e.g. uuid.UUID) validates and canonicalizes the id.
        Returns None for missing or malformed input instead of raising.
        """
        if not encoded or not isinstance(encoded, str):
            return None
        if len(encoded) > MAX_CURSOR_LENGTH:
            logger.debug("Ignoring oversized cursor")
            return None
        try:
            padded = encoded + "=" * (-len(encoded) % 4)
            data = json.loads(base64.urlsafe_b64decode(padded.encode()).decode())
            timestamp = datetime.fromisoformat(data["ts"])
            item_id = data["id"]
        except (
            binascii.Error,
            UnicodeError,
            ValueError,
            TypeError,
            KeyError,
            RecursionError,
        ):
            logger.debug("Ignoring undecodable cursor")
            return None

        if not isinstance(item_id, str) or not item_id:
            return None
        if id_type is not None:
            try:
                item_id = str(id_type(item_id))
            except (TypeError, ValueError):
                return None
        if timezone.is_naive(timestamp):
            timestamp = timezone.make_aware(timestamp, dt_timezone.utc)
        return cls(timestamp=timestamp, id=item_id)

    @classmethod
    def for_item(cls, timestamp: datetime, item_id: Any) -> ChatCursor:
        return cls(timestamp=timestamp, id=str(item_id))

    def sort_key(self) -> tuple[datetime, str]:
        return (self.timestamp, self.id)


@dataclass
class Page:
    """One page of results plus the cursor for the next one."""

    items: list = field(default_factory=list)
    next_cursor: str | None = None
    has_more: bool = False

    @classmethod
    def empty(cls) -> Page:
        return cls()


def clamp_page_size(page_size: Any, default: int, maximum: int) -> int:
    """Coerce a client page size into [1, maximum]."""
    try:
        value = int(page_size)
    except (TypeError, ValueError):
        return default
    return max(1, min(value, maximum))


def cursor_boundary(
    cursor: ChatCursor | None,
    timestamp_field: str,
    descending: bool,
    id_field: str = "id",
) -> Q:
    """
    Queryset filter selecting rows strictly after the cursor.

    Used to push the cursor boundary into the bounded read so a page
    never needs more than page_size + 1 rows.
    """
    if cursor is None:
        return Q()
    op = "lt" if descending else "gt"
    return Q(**{f"{timestamp_field}__{op}": cursor.timestamp}) | Q(
        **{timestamp_field: cursor.timestamp, f"{id_field}__{op}": cursor.id}
    )


def paginate_items(
    items: Iterable,
    cursor: ChatCursor | None,
    page_size: int,
    key: Callable[[Any], tuple[datetime, Any]],
    descending: bool = True,
) -> Page:
    """
    Sort, apply the cursor boundary and cut one page, in memory.

    Args:
        items: Candidate items (any order)
        cursor: Decoded cursor, or None to start from the beginning
        page_size: Maximum items on the page
        key: Returns (timestamp, id) for an item
        descending: Newest first when True

    Returns:
        Page whose next_cursor encodes the last item when more remain
    """

    def normalized(item) -> tuple[datetime, str]:
        timestamp, item_id = key(item)
        return (timestamp, str(item_id))

    ordered = sorted(items, key=normalized, reverse=descending)

    if cursor is not None:
        boundary = cursor.sort_key()
        if descending:
            ordered = [item for item in ordered if normalized(item) < boundary]
        else:
            ordered = [item for item in ordered if normalized(item) > boundary]

    page_items = ordered[:page_size]
    has_more = len(ordered) > page_size

    next_cursor = None
    if has_more and page_items:
        timestamp, item_id = normalized(page_items[-1])
        next_cursor = ChatCursor(timestamp=timestamp, id=item_id).encode()

    return Page(items=page_items, next_cursor=next_cursor, has_more=has_more)
