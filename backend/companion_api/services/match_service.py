"""
Match reads for the caller.

`details=true` goes through the `get_user_matches_with_details` RPC, which
returns flat rows; `to_match_summary` nests them into the shape clients use.
"""

import logging
from typing import Any, Dict, List, Mapping, Optional

from companion_api.exceptions import UpstreamError
from companion_api.platform import PlatformClient, PlatformError
from companion_api.schemas.caller import Caller
from companion_api.services.schema_service import ensure_tables

logger = logging.getLogger(__name__)

MATCH_WITH_COMPANION = "*,companion:companions(*)"
DETAILS_RPC = "get_user_matches_with_details"


def to_match_summary(row: Mapping[str, Any]) -> Dict[str, Any]:
    """
    Reshape one flat RPC row.

    `conversation_id` and `last_message` are omitted (not null) when absent;
    `unread_count` is always an int.
    """
    summary: Dict[str, Any] = {
        "match_id": row.get("match_id"),
        "matched_at": row.get("matched_at"),
        "companion": {
            "id": row.get("companion_id"),
            "name": row.get("companion_name"),
            "age": row.get("companion_age"),
            "bio": row.get("companion_bio"),
            "image_url": row.get("companion_image_url"),
            "personality": row.get("companion_personality"),
            "interests": row.get("companion_interests") or [],
            "compatibility_score": row.get("companion_compatibility_score"),
        },
    }
    if row.get("conversation_id"):
        summary["conversation_id"] = row["conversation_id"]
    if row.get("last_message_content"):
        last_message = {
            "content": row["last_message_content"],
            "created_at": row.get("last_message_created_at"),
        }
        if row.get("last_message_sender_id"):
            last_message["sender_id"] = row["last_message_sender_id"]
        summary["last_message"] = last_message

    try:
        summary["unread_count"] = int(row.get("unread_count") or 0)
    except (TypeError, ValueError):
        summary["unread_count"] = 0
    return summary


class MatchService:
    def __init__(self, platform: PlatformClient):
        self.platform = platform

    async def get(self, caller: Caller, match_id: str) -> Optional[Dict[str, Any]]:
        await ensure_tables(self.platform, "matches")
        try:
            return await self.platform.service().records.select_one(
                "matches",
                eq={"id": match_id, "user_id": caller.id},
                columns=MATCH_WITH_COMPANION,
            )
        except PlatformError as exc:
            raise UpstreamError(f"Failed to fetch match: {exc.message}")

    async def list_active(self, caller: Caller) -> List[Dict[str, Any]]:
        await ensure_tables(self.platform, "matches")
        try:
            return await self.platform.service().records.select_many(
                "matches",
                eq={"user_id": caller.id, "is_active": True},
                columns=MATCH_WITH_COMPANION,
                order="matched_at",
                ascending=False,
            )
        except PlatformError as exc:
            raise UpstreamError(f"Failed to fetch matches: {exc.message}")

    async def list_with_details(self, caller: Caller) -> List[Dict[str, Any]]:
        await ensure_tables(self.platform, "matches")
        try:
            rows = await self.platform.service().records.rpc(DETAILS_RPC, {"p_user_id": caller.id})
        except PlatformError as exc:
            raise UpstreamError(f"Failed to fetch matches with details: {exc.message}")
        return [to_match_summary(row) for row in rows or []]
