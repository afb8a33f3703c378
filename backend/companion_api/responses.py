"""
Companion API — Envelope Builder
=================================

What:  Builds the uniform JSON envelope and the CORS header set.
How:   `success_response(...)` serializes SuccessEnvelope with only the
       fields the handler passed; `error_response(...)` serializes
       ErrorEnvelope. CORS headers are attached to every response by
       middleware/cors.py; `cors_headers()` is exposed for the few responses
       produced outside the middleware stack (unhandled exceptions).
"""

from typing import Any, Dict, Optional

from fastapi.responses import JSONResponse

from companion_api.config import DEFAULT_ALLOWED_HEADERS
from companion_api.schemas.envelope import ErrorEnvelope, SuccessEnvelope


def cors_headers(allow_headers: str = DEFAULT_ALLOWED_HEADERS) -> Dict[str, str]:
    return {
        "Access-Control-Allow-Origin": "*",
        "Access-Control-Allow-Headers": allow_headers,
    }


def success_response(
    status_code: int = 200,
    headers: Optional[Dict[str, str]] = None,
    **fields: Any,
) -> JSONResponse:
    """
    Success envelope with exactly the given fields.

    Example:
        success_response(url=None, message="No banner found")
        → 200 {"success": true, "url": null, "message": "No banner found"}
    """
    envelope = SuccessEnvelope(success=True, **fields)
    return JSONResponse(
        status_code=status_code,
        content=envelope.model_dump(mode="json", exclude_unset=True),
        headers=headers,
    )


def error_response(
    status_code: int,
    message: str,
    headers: Optional[Dict[str, str]] = None,
) -> JSONResponse:
    envelope = ErrorEnvelope(success=False, error=message)
    return JSONResponse(
        status_code=status_code,
        content=envelope.model_dump(mode="json"),
        headers=headers,
    )
