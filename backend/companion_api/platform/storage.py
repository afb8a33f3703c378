"""
Object storage gateway.

Objects are addressed by bucket + path. Uploads never overwrite
(`x-upsert: false`); public URLs are derived locally without a remote call.
"""

import logging
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Sequence
from urllib.parse import quote, unquote

if TYPE_CHECKING:
    from companion_api.platform.session import PlatformSession

logger = logging.getLogger(__name__)

DEFAULT_CACHE_CONTROL = "3600"


class ObjectStore:
    """Upload, remove, and address stored objects."""

    def __init__(self, session: "PlatformSession"):
        self._session = session

    def _public_prefix(self, bucket: str) -> str:
        return f"{self._session.base_url}/storage/v1/object/public/{bucket}/"

    async def upload(
        self,
        bucket: str,
        path: str,
        content: bytes,
        content_type: str,
        cache_control: str = DEFAULT_CACHE_CONTROL,
    ) -> str:
        """
        Store `content` at `bucket/path`.

        Returns:
            The object key (`path`) as stored.
        Raises:
            PlatformError if the object exists or storage rejects the write.
        """
        await self._session.request(
            "POST",
            f"/storage/v1/object/{bucket}/{quote(path)}",
            content=content,
            headers={
                "Content-Type": content_type,
                "cache-control": f"max-age={cache_control}",
                "x-upsert": "false",
            },
        )
        return path

    async def remove(self, bucket: str, paths: Sequence[str]) -> None:
        await self._session.request(
            "DELETE",
            f"/storage/v1/object/{bucket}",
            json={"prefixes": list(paths)},
        )

    def public_url(self, bucket: str, path: str) -> str:
        return self._public_prefix(bucket) + quote(path)

    def key_from_public_url(self, bucket: str, url: Optional[str]) -> Optional[str]:
        """Recover an object key from a public URL of the same bucket, else None."""
        if not url:
            return None
        prefix = self._public_prefix(bucket)
        if not url.startswith(prefix):
            return None
        key = url[len(prefix):].split("?", 1)[0]
        return unquote(key) or None

    async def list_buckets(self) -> List[Dict[str, Any]]:
        response = await self._session.request("GET", "/storage/v1/bucket")
        return response.json() or []

    async def create_bucket(
        self,
        bucket_id: str,
        *,
        public: bool,
        file_size_limit: Optional[int] = None,
        allowed_mime_types: Optional[Sequence[str]] = None,
    ) -> None:
        body: Dict[str, Any] = {"id": bucket_id, "name": bucket_id, "public": public}
        if file_size_limit is not None:
            body["file_size_limit"] = file_size_limit
        if allowed_mime_types is not None:
            body["allowed_mime_types"] = list(allowed_mime_types)
        await self._session.request("POST", "/storage/v1/bucket", json=body)
