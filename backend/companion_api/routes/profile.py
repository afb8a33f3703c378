"""
Companion API — Profile Routes
===============================

Endpoints:
    GET|POST   /api/get-user-profile?type=profile|preferences|stats
    POST|PATCH /api/update-user-profile   {"type": ..., "updates": {...}}
"""

import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from companion_api.dependencies import get_caller, get_profile_service
from companion_api.responses import success_response
from companion_api.routes._body import parse_model, read_json, read_params
from companion_api.schemas.caller import Caller
from companion_api.schemas.requests import ProfileSection, UpdateProfileRequest
from companion_api.services.profile_service import ProfileService, parse_section

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Profile"])


@router.api_route(
    "/get-user-profile",
    methods=["GET", "POST"],
    summary="Read the caller's profile, preferences or stats",
)
async def get_user_profile(
    request: Request,
    caller: Caller = Depends(get_caller),
    service: ProfileService = Depends(get_profile_service),
) -> JSONResponse:
    """`data` is the record, or null when the caller has none yet."""
    params = await read_params(request)
    section = parse_section(params.get("type"))
    row = await service.get(caller, section)
    return success_response(data=row)


@router.api_route(
    "/update-user-profile",
    methods=["POST", "PATCH"],
    summary="Update the caller's profile, preferences or stats",
)
async def update_user_profile(
    request: Request,
    caller: Caller = Depends(get_caller),
    service: ProfileService = Depends(get_profile_service),
) -> JSONResponse:
    body = await read_json(request)
    # Selector is parsed on its own so an unknown value reads as "Invalid type"
    section = parse_section(body.get("type"), allow_last_active=True)
    payload = parse_model(UpdateProfileRequest, {**body, "type": section.value})

    if payload.type is ProfileSection.LAST_ACTIVE:
        await service.touch_last_active(caller)
        return success_response(message="Last active updated")

    row = await service.update(caller, payload.type, payload.updates)
    return success_response(data=row)
