"""
Companion API — Table Bootstrap & Platform Initialization
==========================================================

What:  Best-effort "ensure table exists" pre-steps, the one-shot platform
       initializer, and the single-table create call.
How:   Every table has a `create_table_<name>` RPC installed by migrations.
       Handlers call `ensure_tables()` before their real work; a failure is
       logged and ignored because migrations create the same tables.

Initialization (POST /api/initialize):
    1. Create the storage buckets (an "already exists" answer is success)
    2. Call every create_table_* RPC (a missing RPC is recorded, not an error)
    3. Report per-item results; any collected error turns 200 into 207
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, List, Sequence, Tuple

from companion_api.config import Settings
from companion_api.exceptions import UpstreamError
from companion_api.platform import PlatformClient, PlatformError
from companion_api.schemas.envelope import InitializeResponse, InitializeResults

logger = logging.getLogger(__name__)

TABLE_RPC_PREFIX = "create_table_"

ALL_TABLES: Tuple[str, ...] = (
    "user_profiles",
    "user_preferences",
    "user_stats",
    "user_profile_pics",
    "user_banners",
    "companions",
    "swipe_decisions",
    "matches",
    "conversations",
    "messages",
)

IMAGE_TYPES = ("image/jpeg", "image/png", "image/gif", "image/webp")
COMPANION_IMAGE_TYPES = ("image/jpeg", "image/png", "image/webp")

FIVE_MB = 5 * 1024 * 1024
TEN_MB = 10 * 1024 * 1024


@dataclass(frozen=True)
class BucketSpec:
    bucket_id: str
    file_size_limit: int
    allowed_mime_types: Sequence[str]
    public: bool = True


def bucket_specs(settings: Settings) -> List[BucketSpec]:
    """Buckets the application needs, honoring bucket name overrides."""
    return [
        BucketSpec(settings.bucket_for(settings.avatar_bucket, "avatars"), FIVE_MB, IMAGE_TYPES),
        BucketSpec("companion-images", TEN_MB, COMPANION_IMAGE_TYPES),
        BucketSpec(
            settings.bucket_for(settings.profile_picture_bucket, "profile-pics"),
            FIVE_MB,
            IMAGE_TYPES,
        ),
        BucketSpec(settings.bucket_for(settings.banner_bucket, "banners"), FIVE_MB, IMAGE_TYPES),
    ]


async def ensure_tables(platform: PlatformClient, *tables: str) -> None:
    """
    Call the create-table RPC for each table; never raises.

    Errors are logged at ERROR and swallowed.
    """
    records = platform.service().records
    for table in tables:
        try:
            await records.rpc(f"{TABLE_RPC_PREFIX}{table}")
        except PlatformError as exc:
            logger.error("Failed to ensure table %s exists: %s", table, exc.message)


def _rpc_missing(message: str) -> bool:
    lowered = message.lower()
    return "does not exist" in lowered or "function" in lowered


class SchemaService:
    """Administrative setup calls made with the service-role credential."""

    def __init__(self, platform: PlatformClient, settings: Settings):
        self.platform = platform
        self.settings = settings

    async def create_table(self, table: str) -> bool:
        """
        Create one table through its RPC.

        Returns:
            True when the RPC reports it created the table, False when it
            already existed.
        Raises:
            UpstreamError if the RPC call fails.
        """
        try:
            result: Any = await self.platform.service().records.rpc(f"{TABLE_RPC_PREFIX}{table}")
        except PlatformError as exc:
            raise UpstreamError(
                f"Failed to create table: {exc.message}",
                context={"table": table, "code": exc.code},
            )
        return result is True

    async def initialize(self) -> InitializeResponse:
        """Create buckets and tables, collecting per-item outcomes."""
        service = self.platform.service()
        results = InitializeResults()

        logger.info("Creating storage buckets...")
        for spec in bucket_specs(self.settings):
            try:
                await service.storage.create_bucket(
                    spec.bucket_id,
                    public=spec.public,
                    file_size_limit=spec.file_size_limit,
                    allowed_mime_types=spec.allowed_mime_types,
                )
                results.buckets[spec.bucket_id] = "created or already exists"
            except PlatformError as exc:
                if "already exists" in exc.message.lower():
                    results.buckets[spec.bucket_id] = "created or already exists"
                else:
                    results.errors.append(f"{spec.bucket_id} bucket: {exc.message}")

        logger.info("Creating database tables...")
        for table in ALL_TABLES:
            try:
                await service.records.rpc(f"{TABLE_RPC_PREFIX}{table}")
                results.tables[table] = "created or already exists"
            except PlatformError as exc:
                if _rpc_missing(exc.message):
                    results.tables[table] = "RPC function not found (may be created by migrations)"
                else:
                    results.errors.append(f"{table} table: {exc.message}")

        success = not results.errors
        if not success:
            logger.warning("Initialization completed with %d error(s)", len(results.errors))

        return InitializeResponse(
            success=success,
            message=(
                "All tables and buckets initialized successfully"
                if success
                else "Initialization completed with some errors"
            ),
            results=results,
            timestamp=datetime.now(timezone.utc),
        )
