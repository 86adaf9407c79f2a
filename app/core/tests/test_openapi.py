"""
Tests for the OpenAPI schema postprocessing hook.
"""

from core.openapi import TAG_DESCRIPTIONS, group_endpoints


class TestGroupEndpoints:
    def test_token_endpoints_tagged_and_summarized(self):
        result = {
            "paths": {
                "/auth/token/": {
                    "post": {"operationId": "auth_token_create", "tags": ["auth"]},
                    "parameters": [],
                },
            }
        }

        processed = group_endpoints(result, generator=None, request=None, public=True)

        operation = processed["paths"]["/auth/token/"]["post"]
        assert operation["tags"] == ["Auth"]
        assert operation["summary"] == "Obtain tokens"

    def test_chat_operations_keep_their_tags(self):
        """
        Tags set on chat views are left alone.

        Why it matters: Views own their grouping through @extend_schema.
        """
        result = {
            "paths": {
                "/chat/conversations/": {
                    "get": {"operationId": "list_conversations", "tags": ["Chat - Conversations"]}
                }
            }
        }

        processed = group_endpoints(result, generator=None, request=None, public=True)

        assert processed["paths"]["/chat/conversations/"]["get"]["tags"] == [
            "Chat - Conversations"
        ]
        assert processed["tags"] == TAG_DESCRIPTIONS
