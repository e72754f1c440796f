"""Event API routes."""

from typing import Any

from pydantic import BaseModel, Field
from fastapi import APIRouter, HTTPException

from ...app import IApplication
from ...errors import NotRunningError


class EventRequest(BaseModel):
    """Request model for emitting an event."""

    input: str = Field(min_length=1)
    route: str | None = None
    data: dict[str, Any] = Field(default_factory=dict)


class HopResponse(BaseModel):
    """One agent invocation."""

    agent: str
    started_at: str
    finished_at: str
    next_agent: str | None = None


class RunResponse(BaseModel):
    """Response model for a finished run."""

    event_id: str
    status: str
    state: dict[str, Any]
    hops: list[HopResponse]
    error: str | None = None
    error_kind: str | None = None
    failed_agent: str | None = None
    started_at: str
    finished_at: str


def create_events_router(app: IApplication) -> APIRouter:
    """Create events router."""
    router = APIRouter(prefix="/api", tags=["events"])

    @router.post("/events", response_model=RunResponse)
    async def emit_event(request: EventRequest) -> dict:
        """Emit an event and wait for its chain to finish."""
        try:
            result = await app.process(
                request.input, route=request.route, data=request.data
            )
        except NotRunningError as e:
            raise HTTPException(status_code=503, detail=e.message)
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))
        return result.to_dict()

    return router
