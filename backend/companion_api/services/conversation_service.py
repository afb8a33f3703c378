"""
Companion API — Conversation Service
=====================================

What:  Lists the caller's conversations, reads one with an optional message
       page, and appends messages.
How:   Ownership is always part of the query (`user_id = caller`), so a
       conversation belonging to someone else reads as "not found" and is a
       403 on send.

Message paging:
    The store returns newest first (`created_at desc`, limit/offset); the
    page is reversed before returning so clients render oldest → newest.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from companion_api.exceptions import ForbiddenError, UpstreamError, ValidationError
from companion_api.platform import PlatformClient, PlatformError
from companion_api.schemas.caller import Caller
from companion_api.schemas.requests import SendMessageRequest
from companion_api.services.schema_service import ensure_tables

logger = logging.getLogger(__name__)

DEFAULT_MESSAGE_LIMIT = 50

CONVERSATION_WITH_COMPANION = "*,companion:companions(*)"
CONVERSATION_LISTING = (
    "*,companion:companions(*),"
    "messages!inner(id,content,message_type,is_read,created_at,sender_id,companion_id)"
)


class ConversationService:
    def __init__(self, platform: PlatformClient):
        self.platform = platform

    async def _ensure(self) -> None:
        await ensure_tables(self.platform, "conversations", "messages")

    async def get(
        self,
        caller: Caller,
        conversation_id: str,
        with_messages: bool = False,
        limit: int = DEFAULT_MESSAGE_LIMIT,
        offset: int = 0,
    ) -> Optional[Dict[str, Any]]:
        """
        One conversation owned by the caller, with its companion embedded.

        When `with_messages` is set a page of messages is attached under
        `messages`; if that fetch fails the bare conversation is returned.
        """
        await self._ensure()
        records = self.platform.service().records

        try:
            conversation = await records.select_one(
                "conversations",
                eq={"id": conversation_id, "user_id": caller.id},
                columns=CONVERSATION_WITH_COMPANION,
            )
        except PlatformError as exc:
            raise UpstreamError(f"Failed to fetch conversation: {exc.message}")

        if conversation is None or not with_messages:
            return conversation

        try:
            page = await records.select_many(
                "messages",
                eq={"conversation_id": conversation_id},
                order="created_at",
                ascending=False,
                limit=limit,
                offset=offset,
            )
        except PlatformError as exc:
            logger.warning("Could not load messages for conversation %s: %s", conversation_id, exc.message)
            return conversation

        return {**conversation, "messages": list(reversed(page))}

    async def list_active(self, caller: Caller) -> List[Dict[str, Any]]:
        """Active conversations, most recent activity first, each with `last_message`."""
        await self._ensure()
        try:
            rows = await self.platform.service().records.select_many(
                "conversations",
                eq={"user_id": caller.id, "status": "active"},
                columns=CONVERSATION_LISTING,
                order="last_message_at",
                ascending=False,
            )
        except PlatformError as exc:
            raise UpstreamError(f"Failed to fetch conversations: {exc.message}")

        conversations = []
        for row in rows:
            messages = row.get("messages") or []
            conversations.append({**row, "last_message": messages[0] if messages else None})
        return conversations

    async def send_message(self, caller: Caller, request: SendMessageRequest) -> Dict[str, Any]:
        """
        Append a message from the caller to one of their conversations.

        Raises:
            ValidationError: conversation_id or content missing
            ForbiddenError:  conversation absent or owned by someone else
            UpstreamError:   the insert failed
        """
        await ensure_tables(self.platform, "messages", "conversations")

        if not request.conversation_id or not request.content:
            raise ValidationError("Missing required fields: conversation_id, content")

        records = self.platform.service().records
        try:
            conversation = await records.select_one(
                "conversations",
                eq={"id": request.conversation_id, "user_id": caller.id},
                columns="id",
            )
        except PlatformError as exc:
            logger.warning("Ownership check failed for %s: %s", request.conversation_id, exc.message)
            conversation = None

        if conversation is None:
            raise ForbiddenError(
                "Conversation not found or access denied",
                context={"conversation_id": request.conversation_id, "caller": caller.id},
            )

        try:
            message = await records.insert_one(
                "messages",
                {
                    "conversation_id": request.conversation_id,
                    "sender_id": caller.id,
                    "content": request.content,
                    "message_type": request.message_type,
                    "metadata": request.metadata,
                },
            )
        except PlatformError as exc:
            raise UpstreamError(f"Failed to send message: {exc.message}")

        try:
            await records.update(
                "conversations",
                {"last_message_at": datetime.now(timezone.utc).isoformat()},
                eq={"id": request.conversation_id},
            )
        except PlatformError as exc:
            logger.warning("Could not bump last_message_at on %s: %s", request.conversation_id, exc.message)

        return message
