"""
Chat app for direct and group messaging.

This app handles:
- Conversations (direct and group) with role-based membership
- Message sending, history, edits and soft deletion
- Reactions (one per user per message)
- Moderation: bans, locks, restores and cascade deletion
- Read markers, typing indicators and presence

Related apps:
    - authentication: User directory and platform roles
    - core: ServiceResult, soft delete mixin and managers

Usage:
    from chat.services import ConversationService, MessageService

    result = ConversationService.create_conversation(
        conversation_type="direct",
        creator_id=user.id,
        member_ids=[user.id, other_user.id],
    )

    result = MessageService.send_message(
        conversation_id=result.data["id"],
        author_id=user.id,
        text="Hello!",
    )
"""
