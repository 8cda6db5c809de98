"""
Pipeline API Routes

Endpoints triggering mailbox sync, classification of one stored email and
reply suggestion generation. Handlers delegate to EmailPipelineService and
translate its result envelope into an HTTP response.
"""

import logging

from fastapi import APIRouter, Depends, Path, Query
from fastapi.responses import JSONResponse

from api.models.pipeline import ReplyRequest
from api.services.pipeline_service import get_pipeline_service
from api.utils.error_handlers import result_response
from src.email_processing.service import EmailPipelineService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/pipeline", tags=["Pipeline"])


@router.post("/sync", summary="Sync all active mailbox accounts")
async def sync_accounts(
    service: EmailPipelineService = Depends(get_pipeline_service)
) -> JSONResponse:
    """
    Run one sync cycle over every active account.

    Per-account failures are reported inside the result and do not fail
    the request.
    """
    logger.info("Sync requested")
    result = await service.sync_all()
    return result_response(result)


@router.post("/emails/{email_id}/classify", summary="Classify a stored email")
async def classify_email(
    email_id: str = Path(..., description="Stored email id"),
    service: EmailPipelineService = Depends(get_pipeline_service)
) -> JSONResponse:
    result = await service.classify_email(email_id)
    return result_response(result)


@router.post("/emails/{email_id}/replies", summary="Generate a reply suggestion")
async def generate_reply(
    request: ReplyRequest,
    email_id: str = Path(..., description="Stored email id"),
    service: EmailPipelineService = Depends(get_pipeline_service)
) -> JSONResponse:
    """
    Generate and store a reply suggestion.

    Only the owner of the email's account may request one.
    """
    result = await service.generate_reply(email_id, request.owner_id)
    return result_response(result)


@router.get("/emails/{email_id}/replies", summary="List reply suggestions")
async def list_replies(
    email_id: str = Path(..., description="Stored email id"),
    owner_id: str = Query(..., min_length=1, description="Id of the requesting user"),
    service: EmailPipelineService = Depends(get_pipeline_service)
) -> JSONResponse:
    result = await service.list_replies(email_id, owner_id)
    return result_response(result)
