"""
OpenAPI schema customizations for drf-spectacular.

This module provides hooks to customize the generated OpenAPI schema,
including summaries for third-party endpoints and tag groupings for better
documentation organization in ReDoc.

Tag naming follows the pattern: [App Name] - [Group Name]
Examples:
- Auth (token issuance)
- Chat - Conversations
- Chat - Messages
- Chat - Moderation
"""

# Natural language summaries for simplejwt endpoints
# Maps operation_id to (summary, description)
TOKEN_SUMMARIES = {
    "auth_token_create": (
        "Obtain tokens",
        "Authenticate with email and password to receive a JWT access/refresh pair.",
    ),
    "auth_token_refresh_create": (
        "Refresh access token",
        "Get a new access token using a valid refresh token.",
    ),
}

TAG_DESCRIPTIONS = [
    {
        "name": "Auth",
        "description": "JWT token issuance and refresh.",
    },
    {
        "name": "Chat - Conversations",
        "description": "Direct and group conversations, membership, roles and mute.",
    },
    {
        "name": "Chat - Messages",
        "description": "Message history, send, edit and soft delete.",
    },
    {
        "name": "Chat - Reactions",
        "description": "One reaction per user per message.",
    },
    {
        "name": "Chat - Moderation",
        "description": "Ban, lock, restore and cascade deletion of conversations.",
    },
    {
        "name": "Chat - Presence",
        "description": "Typing indicators, read markers and online state.",
    },
    {
        "name": "Chat - Blocks",
        "description": "Blocking users; a block closes direct conversations both ways.",
    },
]


def group_endpoints(result, generator, request, public):
    """
    Postprocessing hook to group API endpoints by function.

    Chat views set their tags through @extend_schema; this hook only
    covers the token endpoints, which come from simplejwt, and publishes
    the tag descriptions.
    """
    paths = result.get("paths", {})

    for path, methods in paths.items():
        for method, operation in methods.items():
            if not isinstance(operation, dict):
                continue

            operation_id = operation.get("operationId", "")

            if operation_id in TOKEN_SUMMARIES:
                summary, description = TOKEN_SUMMARIES[operation_id]
                operation["summary"] = summary
                operation["description"] = description

            if operation_id.startswith("auth_"):
                operation["tags"] = ["Auth"]

    result["tags"] = TAG_DESCRIPTIONS

    return result
