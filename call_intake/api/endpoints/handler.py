"""Voice-platform webhook handler.

Thin HTTP layer. All pipeline logic lives in call_intake.services.pipeline.
"""

import logging

from fastapi import APIRouter, Depends, Request, Response
from fastapi.responses import JSONResponse, PlainTextResponse
from sqlalchemy.ext.asyncio import AsyncSession

from call_intake.core.database import get_db
from call_intake.core.dependencies import get_pipeline
from call_intake.services.pipeline import IngestionPipeline, PipelineOutcome

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post("/handler")
async def handle_event(
    request: Request,
    db: AsyncSession = Depends(get_db),
    pipeline: IngestionPipeline = Depends(get_pipeline),
):
    """Receive tool-call and end-of-call-report messages.

    The body is read raw so that text/plain and application/json
    deliveries are treated the same.
    """
    raw = await request.body()
    outcome = await pipeline.handle(raw, db)
    logger.info("POST /api/handler → %d", outcome.status_code)
    return to_response(outcome)


def to_response(outcome: PipelineOutcome) -> Response:
    if outcome.body is None:
        return Response(status_code=outcome.status_code)
    if isinstance(outcome.body, str):
        return PlainTextResponse(outcome.body, status_code=outcome.status_code)
    return JSONResponse(outcome.body, status_code=outcome.status_code)
