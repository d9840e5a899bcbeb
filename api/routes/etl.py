"""
ETL trigger endpoints.

POST /etl is called by the scheduler (cron or platform job); GET /etl is a
manual trigger that requires a bearer token.
"""

import secrets
from typing import Any, Dict, Optional
from fastapi import APIRouter, Depends, Request
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from api.dependencies import get_etl_job, get_settings
from ingestion.job import ETLJob, ETLJobOutcome
from schemas.api import (
    ETLFailureData,
    ETLFailureResponse,
    ETLSuccessResponse,
    UnauthorizedResponse,
)
from core.config import Settings
import logging

logger = logging.getLogger(__name__)
router = APIRouter(tags=["ETL"])

BEARER_PREFIX = "Bearer "


def request_metadata(request: Request) -> Dict[str, Any]:
    """
    User agent and client address as seen through a proxy.

    Only the first X-Forwarded-For hop is kept; that is the original client.
    """
    forwarded = request.headers.get("x-forwarded-for", "")
    first_hop = forwarded.split(",")[0].strip()
    client_ip = (
        first_hop
        or request.headers.get("x-real-ip")
        or (request.client.host if request.client else None)
        or "unknown"
    )
    return {
        "user_agent": request.headers.get("user-agent", "unknown"),
        "ip": client_ip,
        "request_id": getattr(request.state, "request_id", None)
    }


def outcome_response(outcome: ETLJobOutcome) -> JSONResponse:
    if outcome.success:
        body = ETLSuccessResponse.build(
            run_id=outcome.run_id,
            duration_ms=outcome.duration_ms,
            results=outcome.results,
            completed_at=outcome.finished_at
        )
        return JSONResponse(status_code=200, content=jsonable_encoder(body))

    body = ETLFailureResponse(
        error=outcome.error or "Unknown error",
        data=ETLFailureData(duration_ms=outcome.duration_ms, failed_at=outcome.finished_at)
    )
    return JSONResponse(status_code=500, content=jsonable_encoder(body))


def check_bearer(authorization: Optional[str], expected_token: Optional[str]) -> Optional[str]:
    """
    Validate a manual-trigger Authorization header.

    Returns:
        None when authorized, otherwise the rejection message
    """
    if not authorization or not authorization.startswith(BEARER_PREFIX):
        return "Unauthorized: Bearer token required for manual ETL trigger"

    token = authorization[len(BEARER_PREFIX):].strip()
    if not token:
        return "Unauthorized: Bearer token required for manual ETL trigger"

    if expected_token:
        if not secrets.compare_digest(token.encode(), expected_token.encode()):
            return "Unauthorized: invalid bearer token"

    return None


@router.post(
    "/etl",
    response_model=ETLSuccessResponse,
    responses={500: {"model": ETLFailureResponse}}
)
async def trigger_etl(request: Request, job: ETLJob = Depends(get_etl_job)):
    """
    Run the full ETL pipeline.

    Returns 200 once the run completes, even if some sources failed (see
    results). Returns 500 if the run timed out or failed as a whole.
    """
    outcome = await job.run(trigger="api", request_meta=request_metadata(request))
    return outcome_response(outcome)


@router.get(
    "/etl",
    response_model=ETLSuccessResponse,
    responses={401: {"model": UnauthorizedResponse}, 500: {"model": ETLFailureResponse}}
)
async def manual_trigger_etl(
    request: Request,
    job: ETLJob = Depends(get_etl_job),
    config: Settings = Depends(get_settings)
):
    """Manual trigger for testing and debugging; same as POST once authorized"""
    rejection = check_bearer(request.headers.get("authorization"), config.ETL_API_TOKEN)
    if rejection:
        logger.warning(f"Rejected manual ETL trigger: {rejection}")
        body = UnauthorizedResponse(message=rejection)
        return JSONResponse(status_code=401, content=body.dict())

    logger.info("[ETL] Manual trigger initiated")
    outcome = await job.run(trigger="manual", request_meta=request_metadata(request))
    return outcome_response(outcome)
