"""
Response shapes for chat reads.

Builders here turn model instances into plain dicts for API responses.
User display data (nickname, avatar) is not stored on chat rows; it is
hydrated in one batch from authentication.services.UserDirectory, and a
missing user degrades to an anonymous entry rather than an error.

Usage:
    from chat.summaries import build_conversation_summary, hydrate_users

    users = hydrate_users(p.user_id for p in participants)
    summary = build_conversation_summary(conversation, participants, users)
"""

from __future__ import annotations

import logging
from collections import defaultdict
from typing import TYPE_CHECKING, Any

from authentication.services import UserDirectory

from chat.constants import DISPLAY_CONFIG

if TYPE_CHECKING:
    from collections.abc import Iterable

    from chat.models import Conversation, Message, MessageReaction, Participant

logger = logging.getLogger(__name__)


def hydrate_users(user_ids: Iterable[Any]) -> dict[int, dict | None]:
    """
    Display data for the given users.

    Hydration is decoration, not data: a directory failure is logged and
    every user comes back unresolved.
    """
    ids = [user_id for user_id in user_ids if user_id is not None]
    if not ids:
        return {}
    try:
        return UserDirectory.get_display_info(ids)
    except Exception:
        logger.warning("User display hydration failed", exc_info=True)
        return {}


def build_user_summary(user_id, users: dict[int, dict | None]) -> dict | None:
    if user_id is None:
        return None
    info = users.get(user_id) or {}
    return {
        "id": user_id,
        "nickname": info.get("nickname") or DISPLAY_CONFIG.ANONYMOUS_NICKNAME,
        "avatar_url": info.get("avatar_url"),
    }


def build_participant_summary(
    participant: Participant, users: dict[int, dict | None]
) -> dict:
    summary = build_user_summary(participant.user_id, users)
    summary.update(
        {
            "role": participant.role,
            "joined_at": participant.joined_at,
            "last_read_at": participant.last_read_at,
            "is_typing": participant.is_typing,
            "is_banned": participant.is_banned,
            "is_muted": participant.is_muted,
        }
    )
    return summary


def build_message_summary(message: Message, users: dict[int, dict | None]) -> dict:
    """
    Client view of a message.

    The author block is None for messages whose author account is gone.
    """
    return {
        "id": message.pk,
        "conversation_id": message.conversation_id,
        "type": message.message_type,
        "text": message.text,
        "media": message.media,
        "created_at": message.created_at,
        "edited_at": message.edited_at,
        "is_deleted": message.is_deleted,
        "deleted_by_mod": message.deleted_by_mod,
        "reply_to_message_id": message.reply_to_id,
        "author": build_user_summary(message.author_id, users),
    }


def build_conversation_summary(
    conversation: Conversation,
    participants: Iterable[Participant],
    users: dict[int, dict | None],
    last_message: Message | None = None,
) -> dict:
    """
    Conversation with hydrated participants and, when resolved, its most
    recent live message.
    """
    return {
        "id": conversation.pk,
        "type": conversation.conversation_type,
        "title": conversation.title,
        "icon": conversation.icon or None,
        "member_count": conversation.member_count,
        "last_message_at": conversation.last_message_at,
        "last_message_preview": conversation.last_message_preview,
        "is_locked": conversation.is_locked,
        "created_at": conversation.created_at,
        "created_by": conversation.created_by_id,
        "participants": [
            build_participant_summary(participant, users) for participant in participants
        ],
        "last_message": (
            build_message_summary(last_message, users) if last_message is not None else None
        ),
    }


def build_reaction_list(
    reactions: Iterable[MessageReaction], users: dict[int, dict | None]
) -> dict:
    """
    Reactions plus a per-value summary.

    Returns:
        {"reactions": [{"user", "value", "created_at"}, ...],
         "summary": {value: {"count": int, "users": [user_id, ...]}}}
    """
    items = []
    grouped: dict[str, list] = defaultdict(list)
    for reaction in reactions:
        items.append(
            {
                "user": build_user_summary(reaction.user_id, users),
                "value": reaction.value,
                "created_at": reaction.created_at,
            }
        )
        grouped[reaction.value].append(reaction.user_id)

    return {
        "reactions": items,
        "summary": {
            value: {"count": len(user_ids), "users": user_ids}
            for value, user_ids in grouped.items()
        },
    }
