"""
Companion API — Media Routes
=============================

What:  Upload / read / delete endpoints for the caller's avatar, banner and
       profile picture.
How:   Multipart field `file` for uploads; all storage semantics live in
       MediaService.

Endpoints:
    POST        /api/upload-avatar
    POST        /api/upload-banner
    GET|POST    /api/get-banner?cacheBust=true
    DELETE      /api/delete-banner
    POST        /api/upload-profile-picture
    GET|POST    /api/get-profile-picture?cacheBust=true
    DELETE      /api/delete-profile-picture
"""

import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from starlette.datastructures import UploadFile
from starlette.formparsers import MultiPartException

from companion_api.dependencies import get_caller, get_media_service
from companion_api.exceptions import ValidationError
from companion_api.responses import success_response
from companion_api.routes._body import flag, read_params
from companion_api.schemas.caller import Caller
from companion_api.services.media_service import (
    AVATAR,
    BANNER,
    PROFILE_PICTURE,
    MediaKind,
    MediaService,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Media"])

FILE_FIELD = "file"


async def _upload(request: Request, kind: MediaKind, caller: Caller, service: MediaService) -> JSONResponse:
    try:
        form = await request.form()
    except MultiPartException as exc:
        logger.info("Unreadable upload body from %s: %s", caller.id, exc)
        raise ValidationError("No file provided", field=FILE_FIELD)

    upload = form.get(FILE_FIELD)
    if not isinstance(upload, UploadFile):
        raise ValidationError("No file provided", field=FILE_FIELD)

    # Type and declared size are checked before the body is pulled into memory
    MediaService.validate_content_type(upload.content_type)
    if upload.size is not None:
        MediaService.validate_size(kind, upload.size)

    content = await upload.read(kind.max_size + 1)
    stored = await service.upload(kind, caller, upload.filename, upload.content_type, content)
    return success_response(url=stored.url, key=stored.key)


async def _get(request: Request, kind: MediaKind, caller: Caller, service: MediaService) -> JSONResponse:
    params = await read_params(request)
    stored = await service.get(kind, caller, cache_bust=flag(params.get("cacheBust")))
    if stored is None:
        return success_response(url=None, message=f"No {kind.label} found")
    return success_response(url=stored.url, key=stored.key)


# ── Avatar ────────────────────────────────────────────────────────────────

@router.post("/upload-avatar", summary="Replace the caller's avatar")
async def upload_avatar(
    request: Request,
    caller: Caller = Depends(get_caller),
    service: MediaService = Depends(get_media_service),
) -> JSONResponse:
    return await _upload(request, AVATAR, caller, service)


# ── Banner ────────────────────────────────────────────────────────────────

@router.post("/upload-banner", summary="Replace the caller's banner")
async def upload_banner(
    request: Request,
    caller: Caller = Depends(get_caller),
    service: MediaService = Depends(get_media_service),
) -> JSONResponse:
    return await _upload(request, BANNER, caller, service)


@router.api_route("/get-banner", methods=["GET", "POST"], summary="Current banner URL")
async def get_banner(
    request: Request,
    caller: Caller = Depends(get_caller),
    service: MediaService = Depends(get_media_service),
) -> JSONResponse:
    return await _get(request, BANNER, caller, service)


@router.delete("/delete-banner", summary="Remove the caller's banner")
async def delete_banner(
    caller: Caller = Depends(get_caller),
    service: MediaService = Depends(get_media_service),
) -> JSONResponse:
    return success_response(message=await service.delete(BANNER, caller))


# ── Profile picture ───────────────────────────────────────────────────────

@router.post("/upload-profile-picture", summary="Replace the caller's profile picture")
async def upload_profile_picture(
    request: Request,
    caller: Caller = Depends(get_caller),
    service: MediaService = Depends(get_media_service),
) -> JSONResponse:
    return await _upload(request, PROFILE_PICTURE, caller, service)


@router.api_route(
    "/get-profile-picture",
    methods=["GET", "POST"],
    summary="Current profile picture URL",
)
async def get_profile_picture(
    request: Request,
    caller: Caller = Depends(get_caller),
    service: MediaService = Depends(get_media_service),
) -> JSONResponse:
    return await _get(request, PROFILE_PICTURE, caller, service)


@router.delete("/delete-profile-picture", summary="Remove the caller's profile picture")
async def delete_profile_picture(
    caller: Caller = Depends(get_caller),
    service: MediaService = Depends(get_media_service),
) -> JSONResponse:
    return success_response(message=await service.delete(PROFILE_PICTURE, caller))
