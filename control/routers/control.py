"""
Control Router
Manual tick endpoints, mounted only in end-to-end test mode.
"""

import logging

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from control.models.requests import TickRequest
from control.models.responses import HealthResponse, TickResponse

router = APIRouter()
logger = logging.getLogger(__name__)


def _error(status_code: int, message: str) -> JSONResponse:
    body = TickResponse(success=False, error=message)
    return JSONResponse(status_code=status_code, content=body.model_dump(exclude_none=True))


@router.post("/tick")
async def trigger_tick(request: Request):
    """
    Queue a forced tick for a game.

    The tick runs asynchronously on the scheduler loop; a full queue drops
    the request without reporting an error.
    """
    try:
        payload = TickRequest.model_validate(await request.json())
    except ValueError:
        return _error(400, "Invalid request body")

    if not payload.game_id:
        return _error(400, "gameId is required")

    scheduler = request.app.state.scheduler
    try:
        scheduler.trigger_manual_tick(payload.game_id)
    except Exception as e:
        logger.error(f"Failed to trigger tick for {payload.game_id}: {e}")
        return _error(500, f"Failed to trigger tick: {e}")

    body = TickResponse(success=True, message=f"Tick triggered for game {payload.game_id}")
    return body.model_dump(exclude_none=True)


@router.get("/health", response_model=HealthResponse)
async def health_check():
    """Health check endpoint."""
    return HealthResponse()
