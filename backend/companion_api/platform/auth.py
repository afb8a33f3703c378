"""
Auth service gateway: exchanges a caller's bearer token for the user record.
"""

from typing import TYPE_CHECKING, Any, Dict

if TYPE_CHECKING:
    from companion_api.platform.session import PlatformSession


class AuthGateway:
    def __init__(self, session: "PlatformSession"):
        self._session = session

    async def get_user(self) -> Dict[str, Any]:
        """
        Return the user the session's bearer token belongs to.

        Only meaningful on a caller session. Read-only on the platform side.

        Raises:
            PlatformError when the token is expired, malformed, or revoked.
        """
        response = await self._session.request("GET", "/auth/v1/user")
        return response.json()
