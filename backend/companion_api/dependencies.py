"""
Companion API — FastAPI Dependencies
=====================================

What:  Providers for settings, the platform client, the verified caller and
       the per-resource services.
How:   Settings and the PlatformClient live on `app.state` (set by
       create_app); everything else is built per request from them.

Resolution order for an authenticated handler:
    get_settings → get_platform (configuration check, 500)
                 → get_caller   (bearer verification, 401)
    The request body is parsed only after get_caller returns.
"""

import logging
from typing import Optional

from fastapi import Depends, Header, Request

from companion_api.config import Settings
from companion_api.exceptions import ConfigurationError
from companion_api.platform import PlatformClient
from companion_api.schemas.caller import Caller
from companion_api.services.auth_service import resolve_caller
from companion_api.services.companion_service import CompanionService
from companion_api.services.conversation_service import ConversationService
from companion_api.services.match_service import MatchService
from companion_api.services.media_service import MediaService
from companion_api.services.profile_service import ProfileService
from companion_api.services.schema_service import SchemaService

logger = logging.getLogger(__name__)


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def _platform_or_fail(request: Request, missing: list) -> PlatformClient:
    if missing:
        logger.error("Missing platform settings: %s", ", ".join(missing))
        raise ConfigurationError(context={"missing": missing})
    return request.app.state.platform


def get_platform(
    request: Request,
    settings: Settings = Depends(get_settings),
) -> PlatformClient:
    """Platform client for handlers that act for a caller (URL and both keys)."""
    return _platform_or_fail(request, settings.missing_platform_settings)


def get_service_platform(
    request: Request,
    settings: Settings = Depends(get_settings),
) -> PlatformClient:
    """Platform client for admin handlers (URL and service-role key only)."""
    missing = [
        name for name in settings.missing_platform_settings if name != "SUPABASE_ANON_KEY"
    ]
    return _platform_or_fail(request, missing)


async def get_caller(
    platform: PlatformClient = Depends(get_platform),
    authorization: Optional[str] = Header(default=None),
) -> Caller:
    """The verified caller; raises UnauthorizedError (401) otherwise."""
    return await resolve_caller(platform, authorization)


# ── Service providers ─────────────────────────────────────────────────────

def get_media_service(
    platform: PlatformClient = Depends(get_platform),
    settings: Settings = Depends(get_settings),
) -> MediaService:
    return MediaService(platform, settings)


def get_profile_service(platform: PlatformClient = Depends(get_platform)) -> ProfileService:
    return ProfileService(platform)


def get_companion_service(platform: PlatformClient = Depends(get_platform)) -> CompanionService:
    return CompanionService(platform)


def get_conversation_service(
    platform: PlatformClient = Depends(get_platform),
) -> ConversationService:
    return ConversationService(platform)


def get_match_service(platform: PlatformClient = Depends(get_platform)) -> MatchService:
    return MatchService(platform)


def get_schema_service(
    platform: PlatformClient = Depends(get_service_platform),
    settings: Settings = Depends(get_settings),
) -> SchemaService:
    return SchemaService(platform, settings)
