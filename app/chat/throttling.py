"""
Per-user rate limits for chat actions.

Each throttled view action maps to one or more DRF throttle scopes. Rates
live in REST_FRAMEWORK["DEFAULT_THROTTLE_RATES"] next to DRF's own anon
and user scopes; a scope with no configured rate is not enforced.

Limits:
    chat_send / chat_send_daily      Sending messages (per minute, per day)
    chat_create / chat_create_daily  Creating conversations
    chat_typing                      Typing and presence updates
    chat_block                       Blocking and unblocking

Usage:
    class ConversationViewSet(ChatViewMixin, viewsets.ViewSet):
        throttle_scopes = {"create": CREATE_SCOPES}
"""

from __future__ import annotations

from rest_framework.settings import api_settings
from rest_framework.throttling import ScopedRateThrottle, SimpleRateThrottle

SEND_SCOPES = ("chat_send", "chat_send_daily")
CREATE_SCOPES = ("chat_create", "chat_create_daily")
TYPING_SCOPES = ("chat_typing",)
BLOCK_SCOPES = ("chat_block",)


class ChatActionThrottle(ScopedRateThrottle):
    """
    ScopedRateThrottle bound to one scope at construction.

    DRF's ScopedRateThrottle reads a single scope from the view; chat
    actions need several (minute and daily windows), so the view builds
    one instance per scope in get_throttles().
    """

    def __init__(self, scope: str):
        self.scope = scope
        self.rate = self.get_rate()
        self.num_requests, self.duration = self.parse_rate(self.rate)

    def get_rate(self) -> str | None:
        # api_settings is reloaded on settings changes; THROTTLE_RATES is not
        return api_settings.DEFAULT_THROTTLE_RATES.get(self.scope)

    def allow_request(self, request, view) -> bool:
        return SimpleRateThrottle.allow_request(self, request, view)
