"""Companion catalogue reads (active companions only)."""

import logging
from typing import Any, Dict, List, Optional

from companion_api.exceptions import UpstreamError
from companion_api.platform import PlatformClient, PlatformError
from companion_api.services.schema_service import ensure_tables

logger = logging.getLogger(__name__)

DEFAULT_COMPANION_LIMIT = 10


class CompanionService:
    def __init__(self, platform: PlatformClient):
        self.platform = platform

    async def get(self, companion_id: str) -> Optional[Dict[str, Any]]:
        """One active companion, or None."""
        await ensure_tables(self.platform, "companions")
        try:
            return await self.platform.service().records.select_one(
                "companions", eq={"id": companion_id, "is_active": True}
            )
        except PlatformError as exc:
            raise UpstreamError(f"Failed to fetch companion: {exc.message}")

    async def list_active(self, limit: int = DEFAULT_COMPANION_LIMIT) -> List[Dict[str, Any]]:
        """Active companions, best compatibility first."""
        await ensure_tables(self.platform, "companions")
        try:
            return await self.platform.service().records.select_many(
                "companions",
                eq={"is_active": True},
                order="compatibility_score",
                ascending=False,
                limit=limit,
            )
        except PlatformError as exc:
            raise UpstreamError(f"Failed to fetch companions: {exc.message}")
