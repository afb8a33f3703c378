"""
Companion API — CORS / Preflight Middleware
============================================

What:  Answers every `OPTIONS` request with an empty 200 and stamps the two
       CORS headers on every other response.
How:   Runs before routing, so preflight never reaches a handler, never
       needs a token, and never produces a 405.

Headers:
    Access-Control-Allow-Origin:  *
    Access-Control-Allow-Headers: authorization, x-client-info, apikey, content-type
"""

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response
from starlette.types import ASGIApp

from companion_api.config import DEFAULT_ALLOWED_HEADERS
from companion_api.responses import cors_headers


class CORSHeadersMiddleware(BaseHTTPMiddleware):
    """Fixed, permissive CORS for browser clients."""

    def __init__(self, app: ASGIApp, allow_headers: str = DEFAULT_ALLOWED_HEADERS):
        super().__init__(app)
        self.headers = cors_headers(allow_headers)

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        if request.method == "OPTIONS":
            return Response(status_code=200, headers=self.headers)

        response = await call_next(request)
        response.headers.update(self.headers)
        return response
