"""
Companion API — Media Service (Upload-with-Replace)
====================================================

What:  Upload, look up, and delete the caller's single active image per kind
       (avatar, banner, profile picture).
How:   Validates MIME type and size, replaces the previous object, stores the
       new one under the caller's credential, then points the caller's record
       at the new key.
Who:   Called by routes/media.py.

Upload workflow:
    1. MIME type must start with "image/"              → 400 otherwise
    2. Size must not exceed the kind's ceiling          → 400 otherwise
    3. Ensure the record table exists                   (best effort)
    4. Look up the caller's current key; remove the old object as the caller
       (failure logged, never fatal; an orphaned object may remain)
    5. Key = {callerId}/{millis}-{random}.{ext}
    6. Upload as the caller                             → 500, record untouched
    7. Write the record (caller id → key), unique by caller id
    8. Record write failed → remove the new object (best effort), 500
    9. Return public URL + key

Object keys:
    The caller id prefix keeps storage ownership policies satisfied and no
    part of the key but the extension comes from client input.
"""

import logging
import time
import uuid
from dataclasses import dataclass
from typing import Any, Dict, Optional

from companion_api.config import Settings
from companion_api.exceptions import UpstreamError, ValidationError
from companion_api.platform import PlatformClient, PlatformError, PlatformSession
from companion_api.schemas.caller import Caller
from companion_api.services.schema_service import ensure_tables

logger = logging.getLogger(__name__)

DEFAULT_EXTENSION = "jpg"
MAX_IMAGE_SIZE = 5 * 1024 * 1024  # 5MB


@dataclass(frozen=True)
class MediaKind:
    """
    One kind of per-caller stored image.

    record_table/owner_column/value_column name the record that points at the
    active object. When `stores_url` is set the record holds the public URL
    (and is part of a larger row that must never be deleted); otherwise it
    holds the object key in a dedicated one-row-per-caller table.
    """
    name: str
    label: str
    default_bucket: str
    bucket_setting: str
    record_table: str
    owner_column: str
    value_column: str
    max_size: int = MAX_IMAGE_SIZE
    stores_url: bool = False
    verify_bucket: bool = False


AVATAR = MediaKind(
    name="avatar",
    label="avatar",
    default_bucket="avatars",
    bucket_setting="avatar_bucket",
    record_table="user_profiles",
    owner_column="id",
    value_column="avatar_url",
    stores_url=True,
)

BANNER = MediaKind(
    name="banner",
    label="banner",
    default_bucket="banners",
    bucket_setting="banner_bucket",
    record_table="user_banners",
    owner_column="user_id",
    value_column="banner_key",
    verify_bucket=True,
)

PROFILE_PICTURE = MediaKind(
    name="profile_picture",
    label="profile picture",
    default_bucket="profile-pics",
    bucket_setting="profile_picture_bucket",
    record_table="user_profile_pics",
    owner_column="user_id",
    value_column="profile_pic_key",
)


@dataclass
class StoredMedia:
    url: str
    key: str


def _capitalize(label: str) -> str:
    return label[:1].upper() + label[1:]


class MediaService:
    """Per-caller image lifecycle against object storage and the record store."""

    def __init__(self, platform: PlatformClient, settings: Settings):
        self.platform = platform
        self.settings = settings

    def bucket(self, kind: MediaKind) -> str:
        return self.settings.bucket_for(getattr(self.settings, kind.bucket_setting), kind.default_bucket)

    # ── Validation ────────────────────────────────────────────────────────

    @staticmethod
    def validate_content_type(content_type: Optional[str]) -> None:
        """Reject anything whose declared MIME type is not image/*."""
        if not content_type or not content_type.lower().startswith("image/"):
            raise ValidationError(
                message="File must be an image",
                field="file",
                context={"content_type": content_type},
            )

    @staticmethod
    def validate_size(kind: MediaKind, size: int) -> None:
        """Reject files above the kind's ceiling (the ceiling itself is allowed)."""
        if size > kind.max_size:
            max_mb = kind.max_size / (1024 * 1024)
            raise ValidationError(
                message=f"File size must be less than {max_mb:.0f}MB",
                field="file",
                context={"max_size": kind.max_size, "actual_size": size},
            )

    # ── Keys ──────────────────────────────────────────────────────────────

    @staticmethod
    def extension_for(filename: Optional[str]) -> str:
        """Lower-cased extension of `filename`, `jpg` when there is none."""
        if not filename or "." not in filename:
            return DEFAULT_EXTENSION
        ext = filename.rsplit(".", 1)[1].strip().lower()
        return ext or DEFAULT_EXTENSION

    @classmethod
    def generate_key(cls, caller_id: str, filename: Optional[str], now_ms: Optional[int] = None) -> str:
        """
        Build `{callerId}/{millis}-{random}.{ext}`.

        Example:
            "9b2c.../1718000000000-3f9a2c1b7d4e.png"
        """
        millis = now_ms if now_ms is not None else int(time.time() * 1000)
        token = uuid.uuid4().hex[:12]
        return f"{caller_id}/{millis}-{token}.{cls.extension_for(filename)}"

    # ── Record helpers ────────────────────────────────────────────────────

    def _key_from_value(self, kind: MediaKind, session: PlatformSession, value: Any) -> Optional[str]:
        if not value:
            return None
        if kind.stores_url:
            return session.storage.key_from_public_url(self.bucket(kind), str(value))
        return str(value)

    async def _fetch_record(self, kind: MediaKind, caller: Caller) -> Optional[Dict[str, Any]]:
        return await self.platform.service().records.select_one(
            kind.record_table,
            eq={kind.owner_column: caller.id},
            columns=kind.value_column,
        )

    async def _write_record(self, kind: MediaKind, caller: Caller, key: str, url: str) -> None:
        records = self.platform.service().records
        if kind.stores_url:
            await records.update(
                kind.record_table,
                {kind.value_column: url},
                eq={kind.owner_column: caller.id},
            )
        else:
            await records.upsert(
                kind.record_table,
                {kind.owner_column: caller.id, kind.value_column: key},
                on_conflict=kind.owner_column,
            )

    async def _verify_bucket(self, bucket: str) -> None:
        try:
            buckets = await self.platform.service().storage.list_buckets()
        except PlatformError as exc:
            logger.warning("Could not list buckets: %s", exc.message)
            return

        available = [b.get("id") for b in buckets if isinstance(b, dict)]
        if bucket not in available:
            logger.error("Storage bucket '%s' does not exist. Available buckets: %s", bucket, available)
            raise UpstreamError(
                f"Storage bucket '{bucket}' not found. Please create it in Supabase Studio.",
                context={"available": available},
            )

    async def _remove_quietly(self, session: PlatformSession, bucket: str, key: str, what: str) -> None:
        try:
            await session.storage.remove(bucket, [key])
        except PlatformError as exc:
            logger.warning("Failed to delete %s %s/%s: %s", what, bucket, key, exc.message)

    # ── Operations ────────────────────────────────────────────────────────

    async def upload(
        self,
        kind: MediaKind,
        caller: Caller,
        filename: Optional[str],
        content_type: Optional[str],
        content: bytes,
    ) -> StoredMedia:
        """
        Replace the caller's image of this kind.

        Raises:
            ValidationError: non-image type or oversized file
            UpstreamError:   bucket missing, upload failed, or record write failed
        """
        self.validate_content_type(content_type)
        self.validate_size(kind, len(content))

        await ensure_tables(self.platform, kind.record_table)

        bucket = self.bucket(kind)
        if kind.verify_bucket:
            await self._verify_bucket(bucket)

        caller_session = self.platform.as_caller(caller.token)

        try:
            existing = await self._fetch_record(kind, caller)
        except PlatformError as exc:
            logger.warning("Could not look up current %s for %s: %s", kind.label, caller.id, exc.message)
            existing = None

        old_key = self._key_from_value(kind, caller_session, (existing or {}).get(kind.value_column))
        if old_key:
            await self._remove_quietly(caller_session, bucket, old_key, f"old {kind.label}")

        key = self.generate_key(caller.id, filename)

        try:
            await caller_session.storage.upload(bucket, key, content, content_type or "application/octet-stream")
        except PlatformError as exc:
            logger.error(
                "Storage upload error: bucket=%s key=%s caller=%s status=%s message=%s",
                bucket, key, caller.id, exc.status, exc.message,
            )
            raise UpstreamError(
                f"Failed to upload {kind.label}: {exc.message or 'Unknown storage error'}",
                context={"bucket": bucket, "key": key},
            )

        url = self.platform.service().storage.public_url(bucket, key)

        try:
            await self._write_record(kind, caller, key, url)
        except PlatformError as exc:
            await self._remove_quietly(caller_session, bucket, key, f"new {kind.label}")
            raise UpstreamError(
                f"Failed to update {kind.label} record: {exc.message}",
                context={"table": kind.record_table, "key": key},
            )

        logger.info("Stored %s for %s at %s/%s (%d bytes)", kind.label, caller.id, bucket, key, len(content))
        return StoredMedia(url=url, key=key)

    async def get(
        self,
        kind: MediaKind,
        caller: Caller,
        cache_bust: bool = False,
    ) -> Optional[StoredMedia]:
        """
        Current image of this kind, or None when the caller has none.

        Raises:
            UpstreamError when the lookup itself fails.
        """
        await ensure_tables(self.platform, kind.record_table)

        service = self.platform.service()
        try:
            record = await self._fetch_record(kind, caller)
        except PlatformError as exc:
            raise UpstreamError(f"Failed to query {kind.label}: {exc.message}")

        key = self._key_from_value(kind, service, (record or {}).get(kind.value_column))
        if not key:
            return None

        url = service.storage.public_url(self.bucket(kind), key)
        if cache_bust:
            separator = "&" if "?" in url else "?"
            url = f"{url}{separator}t={int(time.time() * 1000)}"
        return StoredMedia(url=url, key=key)

    async def delete(self, kind: MediaKind, caller: Caller) -> str:
        """
        Remove the caller's image of this kind and its record.

        Returns:
            Human-readable outcome ("No banner to delete" when there was none).
        Raises:
            UpstreamError when the storage removal fails.
        """
        await ensure_tables(self.platform, kind.record_table)

        try:
            record = await self._fetch_record(kind, caller)
        except PlatformError as exc:
            logger.warning("Could not look up %s for %s: %s", kind.label, caller.id, exc.message)
            record = None

        caller_session = self.platform.as_caller(caller.token)
        key = self._key_from_value(kind, caller_session, (record or {}).get(kind.value_column))
        if not key:
            return f"No {kind.label} to delete"

        try:
            await caller_session.storage.remove(self.bucket(kind), [key])
        except PlatformError as exc:
            raise UpstreamError(f"Failed to delete {kind.label} from storage: {exc.message}")

        records = self.platform.service().records
        try:
            if kind.stores_url:
                await records.update(kind.record_table, {kind.value_column: None}, eq={kind.owner_column: caller.id})
            else:
                await records.delete(kind.record_table, eq={kind.owner_column: caller.id})
        except PlatformError as exc:
            # Object is already gone; the stale record is left behind
            logger.error("Failed to delete %s record for %s: %s", kind.label, caller.id, exc.message)

        return f"{_capitalize(kind.label)} deleted successfully"
