"""
Companion API — Caller Authentication
======================================

What:  Turns an `Authorization: Bearer <token>` header into a Caller.
How:   Presents the token to the platform auth service using the caller's
       own credential. Anything short of a user record with an id is a 401.
Who:   dependencies.get_caller, once per authenticated request.

Side effects: none. Verification is a read on the auth service.
"""

import logging
from typing import Optional

from companion_api.exceptions import UnauthorizedError
from companion_api.platform import PlatformClient, PlatformError
from companion_api.schemas.caller import Caller

logger = logging.getLogger(__name__)

BEARER_SCHEME = "bearer"


def extract_bearer_token(authorization: Optional[str]) -> str:
    """
    Return the token part of a bearer Authorization header.

    Raises:
        UnauthorizedError if the header is absent, uses another scheme,
        or carries an empty token.
    """
    if not authorization:
        raise UnauthorizedError(reason="missing Authorization header")

    scheme, _, token = authorization.strip().partition(" ")
    if scheme.lower() != BEARER_SCHEME or not token.strip():
        raise UnauthorizedError(reason="malformed Authorization header")
    return token.strip()


async def resolve_caller(platform: PlatformClient, authorization: Optional[str]) -> Caller:
    """Verify the bearer token and return the caller it belongs to."""
    token = extract_bearer_token(authorization)

    try:
        user = await platform.as_caller(token).auth.get_user()
    except PlatformError as exc:
        logger.info("Token rejected by auth service: %s", exc.message)
        raise UnauthorizedError(reason=exc.message, context={"status": exc.status})

    user_id = user.get("id") if isinstance(user, dict) else None
    if not user_id:
        raise UnauthorizedError(reason="auth service returned no user")

    return Caller(id=str(user_id), email=user.get("email"), token=token)
