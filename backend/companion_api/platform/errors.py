"""
Platform error type.

Every non-2xx answer and every transport failure from the managed platform
surfaces as a PlatformError. Services translate it into the application
exception taxonomy; only `RecordStore.select_one` inspects `code` itself,
to turn the "no rows" answer into None.
"""

from typing import Any, Optional

import httpx

# PostgREST code for "JSON object requested, multiple (or no) rows returned"
NO_ROWS_CODE = "PGRST116"


class PlatformError(Exception):
    """A failed call to the auth, record, or storage service."""

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        status: Optional[int] = None,
    ):
        self.message = message
        self.code = code
        self.status = status
        super().__init__(message)

    @classmethod
    def from_response(cls, response: httpx.Response) -> "PlatformError":
        """Build an error from a platform response body (JSON or text)."""
        body: Any
        try:
            body = response.json()
        except ValueError:
            body = None

        message = None
        code = None
        if isinstance(body, dict):
            message = (
                body.get("message")
                or body.get("msg")
                or body.get("error_description")
                or body.get("error")
            )
            code = body.get("code") or body.get("error_code") or body.get("statusCode")

        if not message:
            message = response.text or f"HTTP {response.status_code}"

        return cls(
            message=str(message),
            code=str(code) if code is not None else None,
            status=response.status_code,
        )

    def __repr__(self) -> str:
        return f"PlatformError(status={self.status}, code={self.code!r}, message={self.message!r})"
