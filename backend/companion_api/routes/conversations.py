"""
Companion API — Conversation Routes
====================================

Endpoints:
    GET|POST /api/get-conversations
        ?id=...                       one conversation (or null)
        &messages=true&limit&offset   with a page of messages, oldest first
        (no id)                       the caller's active conversations
    POST     /api/send-message        {"conversation_id", "content", "message_type"?, "metadata"?}
"""

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from companion_api.dependencies import get_caller, get_conversation_service
from companion_api.responses import success_response
from companion_api.routes._body import flag, int_param, parse_model, read_json, read_params
from companion_api.schemas.caller import Caller
from companion_api.schemas.requests import SendMessageRequest
from companion_api.services.conversation_service import DEFAULT_MESSAGE_LIMIT, ConversationService

router = APIRouter(prefix="/api", tags=["Conversations"])


@router.api_route("/get-conversations", methods=["GET", "POST"], summary="Read conversations")
async def get_conversations(
    request: Request,
    caller: Caller = Depends(get_caller),
    service: ConversationService = Depends(get_conversation_service),
) -> JSONResponse:
    params = await read_params(request)

    conversation_id = params.get("id")
    if conversation_id:
        conversation = await service.get(
            caller,
            str(conversation_id),
            with_messages=flag(params.get("messages")),
            limit=int_param(params, "limit", DEFAULT_MESSAGE_LIMIT, minimum=1),
            offset=int_param(params, "offset", 0),
        )
        return success_response(data=conversation)

    return success_response(data=await service.list_active(caller))


@router.post("/send-message", summary="Send a message in one of the caller's conversations")
async def send_message(
    request: Request,
    caller: Caller = Depends(get_caller),
    service: ConversationService = Depends(get_conversation_service),
) -> JSONResponse:
    payload = parse_model(SendMessageRequest, await read_json(request))
    message = await service.send_message(caller, payload)
    return success_response(data=message)
