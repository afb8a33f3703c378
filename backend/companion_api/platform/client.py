"""
Companion API — Platform Client (Resource Accessor)
====================================================

What:  Owns the pooled HTTP connection to the managed platform and hands out
       credentialed sessions.
How:   One httpx.AsyncClient per process (base URL + request timeout from
       Settings). `service()` and `as_caller(token)` return PlatformSession
       objects that share it.
Who:   Created by create_app(); reached by handlers through
       dependencies.get_platform.
When:  Built at startup, closed in the lifespan shutdown.

Credential choice:
    service()          records, RPCs, bucket admin, public URLs
    as_caller(token)   token verification and object upload/removal, so
                       storage ownership policies see the real caller
"""

import logging
from typing import Optional

import httpx

from companion_api.config import Settings
from companion_api.platform.session import PlatformSession

logger = logging.getLogger(__name__)


class PlatformClient:
    """Factory for credentialed platform sessions over one HTTP client."""

    def __init__(
        self,
        settings: Settings,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.settings = settings
        self._http = httpx.AsyncClient(
            base_url=settings.supabase_url or "http://platform.invalid",
            timeout=settings.platform_timeout,
            transport=transport,
        )
        logger.info(
            "PlatformClient initialized for %s (timeout=%.1fs)",
            settings.supabase_url or "<unset>",
            settings.platform_timeout,
        )

    @property
    def base_url(self) -> str:
        return self.settings.supabase_url

    def service(self) -> PlatformSession:
        """Session using the service-role key (bypasses row-level policies)."""
        key = self.settings.supabase_service_role_key
        return PlatformSession(self._http, self.base_url, api_key=key, bearer=key, role="service")

    def as_caller(self, token: str) -> PlatformSession:
        """Session acting as the caller: anon key plus the caller's own token."""
        return PlatformSession(
            self._http,
            self.base_url,
            api_key=self.settings.supabase_anon_key,
            bearer=token,
            role="caller",
        )

    async def aclose(self) -> None:
        await self._http.aclose()
        logger.info("PlatformClient closed")
