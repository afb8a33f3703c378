"""
Companion API — Platform Setup Routes
======================================

What:  Administrative bootstrap endpoints. They act with the service-role
       credential only and take no caller token.

Endpoints:
    POST     /api/initialize                  buckets + every table RPC
    GET|POST /api/create-table-user-banners   the banner record table only
"""

import logging

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from companion_api.dependencies import get_schema_service
from companion_api.schemas.envelope import CreateTableResponse, InitializeResponse
from companion_api.services.schema_service import SchemaService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Setup"])

MULTI_STATUS = 207


@router.post(
    "/initialize",
    response_model=InitializeResponse,
    summary="Create storage buckets and tables",
    responses={MULTI_STATUS: {"description": "Completed with some errors"}},
)
async def initialize(service: SchemaService = Depends(get_schema_service)) -> JSONResponse:
    result = await service.initialize()
    return JSONResponse(
        status_code=200 if result.success else MULTI_STATUS,
        content=result.model_dump(mode="json"),
    )


@router.api_route(
    "/create-table-user-banners",
    methods=["GET", "POST"],
    response_model=CreateTableResponse,
    summary="Create the user_banners table",
)
async def create_table_user_banners(
    service: SchemaService = Depends(get_schema_service),
) -> CreateTableResponse:
    created = await service.create_table("user_banners")
    logger.info("user_banners table ensured (created=%s)", created)
    return CreateTableResponse(
        message="Table user_banners created or already exists",
        created=created,
    )
