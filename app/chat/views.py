"""
ViewSets for chat API.

This module provides REST API endpoints for the chat system:
- ConversationViewSet: Conversation CRUD, membership, roles, moderation
- ConversationMessageViewSet: History and send (nested under conversation)
- MessageViewSet: Edit, delete, restore and reactions by message id
- PresenceViewSet: Global online/offline state

URL Structure:
    /api/v1/chat/conversations/                              GET, POST
    /api/v1/chat/conversations/{id}/                         GET, PATCH, DELETE
    /api/v1/chat/conversations/{id}/join/                    POST
    /api/v1/chat/conversations/{id}/leave/                   POST
    /api/v1/chat/conversations/{id}/mute/                    POST
    /api/v1/chat/conversations/{id}/read/                    POST
    /api/v1/chat/conversations/{id}/typing/                  POST
    /api/v1/chat/conversations/{id}/transfer-ownership/      POST
    /api/v1/chat/conversations/{id}/role/                    POST
    /api/v1/chat/conversations/{id}/ban/                     POST
    /api/v1/chat/conversations/{id}/unban/                   POST
    /api/v1/chat/conversations/{id}/lock/                    POST
    /api/v1/chat/conversations/{id}/unlock/                  POST
    /api/v1/chat/conversations/{id}/messages/                GET, POST
    /api/v1/chat/messages/{id}/                              PATCH, DELETE
    /api/v1/chat/messages/{id}/restore/                      POST
    /api/v1/chat/messages/{id}/reactions/                    GET, POST, DELETE
    /api/v1/chat/presence/                                   POST
    /api/v1/chat/presence/{user_id}/                         GET
    /api/v1/chat/blocks/                                     GET, POST
    /api/v1/chat/blocks/{user_id}/                           DELETE

Design Decisions:
    - Views are thin: validate shape with a serializer, call one service
      method, render its ServiceResult
    - Every response uses the {"ok": ...} envelope; failed results are raised
      as core.exceptions errors and rendered by the DRF exception handler
    - Authorization lives in the services, not in DRF permission classes
    - Per-action rate limits are DRF throttles declared in throttle_scopes
      (see chat.throttling)
"""

from __future__ import annotations

from drf_spectacular.utils import extend_schema
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from core.exceptions import EXCEPTION_BY_KIND, InternalError
from core.services import ErrorKind, ServiceResult

from chat.serializers import (
    ConversationCreateSerializer,
    ConversationUpdateSerializer,
    CursorQuerySerializer,
    MarkReadSerializer,
    MessageCreateSerializer,
    MessageEditSerializer,
    MessageListQuerySerializer,
    MuteSerializer,
    PresenceSetSerializer,
    ReactionSerializer,
    RoleChangeSerializer,
    TargetUserSerializer,
    TypingSerializer,
)
from chat.throttling import (
    BLOCK_SCOPES,
    CREATE_SCOPES,
    SEND_SCOPES,
    TYPING_SCOPES,
    ChatActionThrottle,
)
from chat.services import (
    BlockService,
    ConversationService,
    MessageService,
    ModerationService,
    PresenceService,
    ReactionService,
)


class ChatViewMixin:
    """Request validation and ServiceResult rendering shared by chat views."""

    permission_classes = [IsAuthenticated]

    # view action -> throttle scopes applied on top of the default throttles
    throttle_scopes: dict[str, tuple[str, ...]] = {}

    def get_throttles(self):
        scopes = self.throttle_scopes.get(getattr(self, "action", None), ())
        return [*super().get_throttles(), *(ChatActionThrottle(scope) for scope in scopes)]

    def validate(self, serializer_class, data):
        """
        Validated data, or None plus a 400 response.

        Returns:
            (validated_data, None) or (None, Response)
        """
        serializer = serializer_class(data=data)
        if serializer.is_valid():
            return serializer.validated_data, None
        failure = ServiceResult.failure(
            "Invalid request",
            error_code="VALIDATION_ERROR",
            errors=serializer.errors,
            error_kind=ErrorKind.VALIDATION,
        )
        return None, Response(failure.to_response(), status=status.HTTP_400_BAD_REQUEST)

    def render(self, result: ServiceResult, success_status: int = status.HTTP_200_OK):
        """
        Success envelope, or raise the application error for the failure.

        core.exceptions.application_exception_handler renders the raised
        error with the status of its kind.
        """
        if result.success:
            return Response(result.to_response(), status=success_status)
        exception_class = EXCEPTION_BY_KIND.get(result.error_kind, InternalError)
        raise exception_class(result.error, error_code=result.error_code, details=result.errors)


class ConversationViewSet(ChatViewMixin, viewsets.ViewSet):
    """
    Conversations the caller takes part in.

    Membership and role changes are detail actions; moderation actions
    (ban, lock) sit here too because they target a conversation.
    """

    throttle_scopes = {"create": CREATE_SCOPES, "typing": TYPING_SCOPES}

    @extend_schema(
        operation_id="list_conversations",
        summary="List conversations",
        parameters=[CursorQuerySerializer],
        tags=["Chat - Conversations"],
    )
    def list(self, request):
        params, error = self.validate(CursorQuerySerializer, request.query_params)
        if error is not None:
            return error
        result = ConversationService.list_conversations(
            user_id=request.user.pk,
            cursor=params.get("cursor"),
            page_size=params.get("page_size"),
        )
        return self.render(result)

    @extend_schema(
        operation_id="create_conversation",
        summary="Create conversation",
        request=ConversationCreateSerializer,
        tags=["Chat - Conversations"],
    )
    def create(self, request):
        data, error = self.validate(ConversationCreateSerializer, request.data)
        if error is not None:
            return error
        result = ConversationService.create_conversation(
            conversation_type=data["type"],
            creator_id=request.user.pk,
            member_ids=data["member_ids"],
            title=data.get("title"),
            icon=data.get("icon"),
        )
        return self.render(result, status.HTTP_201_CREATED)

    @extend_schema(
        operation_id="get_conversation",
        summary="Get conversation",
        tags=["Chat - Conversations"],
    )
    def retrieve(self, request, pk=None):
        return self.render(ConversationService.get_conversation(pk, request.user.pk))

    @extend_schema(
        operation_id="update_conversation",
        summary="Update conversation",
        request=ConversationUpdateSerializer,
        tags=["Chat - Conversations"],
    )
    def partial_update(self, request, pk=None):
        data, error = self.validate(ConversationUpdateSerializer, request.data)
        if error is not None:
            return error
        result = ConversationService.update_conversation(pk, request.user.pk, dict(data))
        return self.render(result)

    @extend_schema(
        operation_id="delete_conversation",
        summary="Delete conversation and all its data",
        tags=["Chat - Moderation"],
    )
    def destroy(self, request, pk=None):
        return self.render(ModerationService.delete_conversation(pk, request.user.pk))

    @extend_schema(summary="Join group conversation", request=None, tags=["Chat - Conversations"])
    @action(detail=True, methods=["post"])
    def join(self, request, pk=None):
        result = ConversationService.join_conversation(pk, request.user.pk)
        return self.render(result, status.HTTP_201_CREATED)

    @extend_schema(summary="Leave group conversation", request=None, tags=["Chat - Conversations"])
    @action(detail=True, methods=["post"])
    def leave(self, request, pk=None):
        return self.render(ConversationService.leave_conversation(pk, request.user.pk))

    @extend_schema(summary="Mute or unmute", request=MuteSerializer, tags=["Chat - Conversations"])
    @action(detail=True, methods=["post"])
    def mute(self, request, pk=None):
        data, error = self.validate(MuteSerializer, request.data)
        if error is not None:
            return error
        return self.render(ConversationService.toggle_mute(pk, request.user.pk, data["muted"]))

    @extend_schema(summary="Mark as read", request=MarkReadSerializer, tags=["Chat - Presence"])
    @action(detail=True, methods=["post"])
    def read(self, request, pk=None):
        data, error = self.validate(MarkReadSerializer, request.data)
        if error is not None:
            return error
        return self.render(PresenceService.mark_as_read(pk, request.user.pk, data.get("at")))

    @extend_schema(summary="Set typing status", request=TypingSerializer, tags=["Chat - Presence"])
    @action(detail=True, methods=["post"])
    def typing(self, request, pk=None):
        data, error = self.validate(TypingSerializer, request.data)
        if error is not None:
            return error
        result = PresenceService.set_typing_status(pk, request.user.pk, data["is_typing"])
        return self.render(result)

    @extend_schema(
        summary="Transfer ownership",
        request=TargetUserSerializer,
        tags=["Chat - Conversations"],
    )
    @action(detail=True, methods=["post"], url_path="transfer-ownership")
    def transfer_ownership(self, request, pk=None):
        data, error = self.validate(TargetUserSerializer, request.data)
        if error is not None:
            return error
        result = ConversationService.transfer_ownership(pk, request.user.pk, data["user_id"])
        return self.render(result)

    @extend_schema(
        summary="Change participant role",
        request=RoleChangeSerializer,
        tags=["Chat - Conversations"],
    )
    @action(detail=True, methods=["post"])
    def role(self, request, pk=None):
        data, error = self.validate(RoleChangeSerializer, request.data)
        if error is not None:
            return error
        result = ConversationService.set_participant_role(
            pk, request.user.pk, data["user_id"], data["role"]
        )
        return self.render(result)

    @extend_schema(summary="Ban participant", request=TargetUserSerializer, tags=["Chat - Moderation"])
    @action(detail=True, methods=["post"])
    def ban(self, request, pk=None):
        data, error = self.validate(TargetUserSerializer, request.data)
        if error is not None:
            return error
        return self.render(ModerationService.ban_user(pk, request.user.pk, data["user_id"]))

    @extend_schema(summary="Unban participant", request=TargetUserSerializer, tags=["Chat - Moderation"])
    @action(detail=True, methods=["post"])
    def unban(self, request, pk=None):
        data, error = self.validate(TargetUserSerializer, request.data)
        if error is not None:
            return error
        return self.render(ModerationService.unban_user(pk, request.user.pk, data["user_id"]))

    @extend_schema(summary="Lock conversation", request=None, tags=["Chat - Moderation"])
    @action(detail=True, methods=["post"])
    def lock(self, request, pk=None):
        return self.render(ModerationService.lock_conversation(pk, request.user.pk))

    @extend_schema(summary="Unlock conversation", request=None, tags=["Chat - Moderation"])
    @action(detail=True, methods=["post"])
    def unlock(self, request, pk=None):
        return self.render(ModerationService.unlock_conversation(pk, request.user.pk))


class ConversationMessageViewSet(ChatViewMixin, viewsets.ViewSet):
    """Message history and send, scoped to one conversation."""

    throttle_scopes = {"create": SEND_SCOPES}

    @extend_schema(
        operation_id="list_messages",
        summary="List messages",
        parameters=[MessageListQuerySerializer],
        tags=["Chat - Messages"],
    )
    def list(self, request, conversation_pk=None):
        params, error = self.validate(MessageListQuerySerializer, request.query_params)
        if error is not None:
            return error
        result = MessageService.get_messages(
            conversation_pk,
            request.user.pk,
            cursor=params.get("cursor"),
            page_size=params.get("page_size"),
            order=params["order"],
        )
        return self.render(result)

    @extend_schema(
        operation_id="send_message",
        summary="Send message",
        request=MessageCreateSerializer,
        tags=["Chat - Messages"],
    )
    def create(self, request, conversation_pk=None):
        data, error = self.validate(MessageCreateSerializer, request.data)
        if error is not None:
            return error
        result = MessageService.send_message(
            conversation_id=conversation_pk,
            author_id=request.user.pk,
            message_type=data["type"],
            text=data.get("text"),
            media=data.get("media"),
            reply_to_message_id=data.get("reply_to_message_id"),
        )
        return self.render(result, status.HTTP_201_CREATED)


class MessageViewSet(ChatViewMixin, viewsets.ViewSet):
    """Operations addressed by message id."""

    @extend_schema(
        operation_id="edit_message",
        summary="Edit message",
        request=MessageEditSerializer,
        tags=["Chat - Messages"],
    )
    def partial_update(self, request, pk=None):
        data, error = self.validate(MessageEditSerializer, request.data)
        if error is not None:
            return error
        return self.render(MessageService.edit_message(pk, request.user.pk, data["text"]))

    @extend_schema(operation_id="delete_message", summary="Delete message", tags=["Chat - Messages"])
    def destroy(self, request, pk=None):
        return self.render(MessageService.delete_message(pk, request.user.pk))

    @extend_schema(summary="Restore deleted message", request=None, tags=["Chat - Moderation"])
    def restore(self, request, pk=None):
        return self.render(ModerationService.restore_message(pk, request.user.pk))

    @extend_schema(
        operation_id="message_reactions",
        summary="List, add or remove reactions",
        request=ReactionSerializer,
        tags=["Chat - Reactions"],
    )
    def reactions(self, request, pk=None):
        if request.method == "GET":
            return self.render(ReactionService.get_reactions(pk, request.user.pk))

        # DELETE may carry the value as a query parameter
        payload = request.data if request.data else request.query_params
        data, error = self.validate(ReactionSerializer, payload)
        if error is not None:
            return error

        if request.method == "DELETE":
            result = ReactionService.remove_reaction(pk, request.user.pk, data["value"])
            return self.render(result)
        result = ReactionService.add_reaction(pk, request.user.pk, data["value"])
        return self.render(result)


class PresenceViewSet(ChatViewMixin, viewsets.ViewSet):
    """Global presence, independent of conversations."""

    throttle_scopes = {"create": TYPING_SCOPES}

    @extend_schema(
        operation_id="set_presence",
        summary="Set own presence",
        request=PresenceSetSerializer,
        tags=["Chat - Presence"],
    )
    def create(self, request):
        data, error = self.validate(PresenceSetSerializer, request.data)
        if error is not None:
            return error
        return self.render(PresenceService.update_presence(request.user.pk, data["state"]))

    @extend_schema(operation_id="get_presence", summary="Get user presence", tags=["Chat - Presence"])
    def retrieve(self, request, user_id=None):
        return self.render(PresenceService.get_presence(int(user_id)))


class BlockViewSet(ChatViewMixin, viewsets.ViewSet):
    """Users the caller has blocked."""

    throttle_scopes = {"create": BLOCK_SCOPES, "destroy": BLOCK_SCOPES}

    @extend_schema(
        operation_id="list_blocked_users",
        summary="List blocked users",
        parameters=[CursorQuerySerializer],
        tags=["Chat - Blocks"],
    )
    def list(self, request):
        params, error = self.validate(CursorQuerySerializer, request.query_params)
        if error is not None:
            return error
        result = BlockService.list_blocked_users(
            request.user.pk,
            cursor=params.get("cursor"),
            page_size=params.get("page_size"),
        )
        return self.render(result)

    @extend_schema(
        operation_id="block_user",
        summary="Block user",
        request=TargetUserSerializer,
        tags=["Chat - Blocks"],
    )
    def create(self, request):
        data, error = self.validate(TargetUserSerializer, request.data)
        if error is not None:
            return error
        result = BlockService.block_user(request.user.pk, data["user_id"])
        if result.success and result.data["created"]:
            return self.render(result, status.HTTP_201_CREATED)
        return self.render(result)

    @extend_schema(operation_id="unblock_user", summary="Unblock user", tags=["Chat - Blocks"])
    def destroy(self, request, user_id=None):
        return self.render(BlockService.unblock_user(request.user.pk, user_id))
