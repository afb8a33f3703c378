"""
Credentialed view of the platform.

A PlatformSession pairs the shared HTTP client with one credential:
    - service role: apikey = bearer = service-role key (bypasses row policies)
    - caller:       apikey = anon key, bearer = the caller's own token
The record, storage and auth gateways hang off the session so every call
they make carries the same credential.
"""

import logging
from typing import Any, Dict, Optional, Sequence, Tuple, Union

import httpx

from companion_api.platform.auth import AuthGateway
from companion_api.platform.errors import PlatformError
from companion_api.platform.records import RecordStore
from companion_api.platform.storage import ObjectStore

logger = logging.getLogger(__name__)

QueryParams = Union[Dict[str, Any], Sequence[Tuple[str, Any]]]


class PlatformSession:
    """One credential's access to auth, records and storage."""

    def __init__(
        self,
        http: httpx.AsyncClient,
        base_url: str,
        api_key: str,
        bearer: str,
        role: str,
    ):
        self._http = http
        self.base_url = base_url
        self.api_key = api_key
        self.bearer = bearer
        self.role = role

        self.auth = AuthGateway(self)
        self.records = RecordStore(self)
        self.storage = ObjectStore(self)

    async def request(
        self,
        method: str,
        path: str,
        *,
        params: Optional[QueryParams] = None,
        json: Any = None,
        content: Optional[bytes] = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> httpx.Response:
        """
        Send one request to the platform with this session's credential.

        Raises:
            PlatformError on transport failure, timeout, or any 4xx/5xx answer.
        """
        merged = {
            "apikey": self.api_key,
            "Authorization": f"Bearer {self.bearer}",
        }
        if headers:
            merged.update(headers)

        try:
            response = await self._http.request(
                method,
                path,
                params=params,
                json=json,
                content=content,
                headers=merged,
            )
        except httpx.TimeoutException as exc:
            raise PlatformError(f"Platform request timed out: {method} {path}") from exc
        except httpx.RequestError as exc:
            raise PlatformError(f"Request error talking to platform: {exc}") from exc

        if response.status_code >= 400:
            error = PlatformError.from_response(response)
            logger.debug("%s %s as %s failed: %r", method, path, self.role, error)
            raise error

        return response
