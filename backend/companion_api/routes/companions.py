"""
Endpoints:
    GET|POST /api/get-companions?id=...        one active companion (or null)
    GET|POST /api/get-companions?limit=10      active companions by compatibility
"""

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from companion_api.dependencies import get_caller, get_companion_service
from companion_api.responses import success_response
from companion_api.routes._body import int_param, read_params
from companion_api.schemas.caller import Caller
from companion_api.services.companion_service import DEFAULT_COMPANION_LIMIT, CompanionService

router = APIRouter(prefix="/api", tags=["Companions"])


@router.api_route("/get-companions", methods=["GET", "POST"], summary="Browse companions")
async def get_companions(
    request: Request,
    caller: Caller = Depends(get_caller),
    service: CompanionService = Depends(get_companion_service),
) -> JSONResponse:
    params = await read_params(request)

    companion_id = params.get("id")
    if companion_id:
        return success_response(data=await service.get(str(companion_id)))

    limit = int_param(params, "limit", DEFAULT_COMPANION_LIMIT, minimum=1)
    return success_response(data=await service.list_active(limit))
