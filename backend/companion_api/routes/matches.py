"""
Endpoints:
    GET|POST /api/get-matches?id=...        one match (or null)
    GET|POST /api/get-matches?details=true  summaries with companion and last message
    GET|POST /api/get-matches               active matches, newest first
"""

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from companion_api.dependencies import get_caller, get_match_service
from companion_api.responses import success_response
from companion_api.routes._body import flag, read_params
from companion_api.schemas.caller import Caller
from companion_api.services.match_service import MatchService

router = APIRouter(prefix="/api", tags=["Matches"])


@router.api_route("/get-matches", methods=["GET", "POST"], summary="Read the caller's matches")
async def get_matches(
    request: Request,
    caller: Caller = Depends(get_caller),
    service: MatchService = Depends(get_match_service),
) -> JSONResponse:
    params = await read_params(request)

    match_id = params.get("id")
    if match_id:
        return success_response(data=await service.get(caller, str(match_id)))
    if flag(params.get("details")):
        return success_response(data=await service.list_with_details(caller))
    return success_response(data=await service.list_active(caller))
