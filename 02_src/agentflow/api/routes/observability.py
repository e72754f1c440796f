"""Observability API routes."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel
from fastapi import APIRouter, HTTPException, Query

from ...app import IApplication
from ...models import RunStatus
from .events import RunResponse


class TraceEventResponse(BaseModel):
    """Response model for trace event."""

    id: str
    event_type: str
    actor: str
    data: dict[str, Any]
    timestamp: datetime


def create_observability_router(app: IApplication) -> APIRouter:
    """Create observability router."""
    router = APIRouter(prefix="/api", tags=["observability"])

    @router.get("/trace-events", response_model=list[TraceEventResponse])
    async def get_trace_events(
        after: str | None = Query(None, description="ISO timestamp filter"),
        limit: int = Query(100, ge=1, le=1000),
        event_type: str | None = Query(None, description="Filter by event type"),
        actor: str | None = Query(None, description="Filter by actor"),
    ) -> list[dict]:
        """Get trace events with optional filters."""
        try:
            # Parse after timestamp
            after_dt = None
            if after:
                try:
                    after_dt = datetime.fromisoformat(after)
                except ValueError:
                    raise HTTPException(
                        status_code=400, detail="Invalid after timestamp format"
                    )

            event_types = [event_type] if event_type else None

            events = await app.storage.get_trace_events(
                after=after_dt,
                event_types=event_types,
                actor=actor,
                limit=limit,
            )

            return [
                {
                    "id": e.id,
                    "event_type": e.event_type,
                    "actor": e.actor,
                    "data": e.data,
                    "timestamp": e.timestamp.isoformat(),
                }
                for e in events
            ]

        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    @router.get("/runs", response_model=list[RunResponse])
    async def get_runs(
        status: str | None = Query(None, description="Filter by run status"),
        limit: int = Query(100, ge=1, le=1000),
    ) -> list[dict]:
        """List finished runs, newest first."""
        try:
            run_status = RunStatus(status) if status else None
        except ValueError:
            raise HTTPException(status_code=400, detail=f"Invalid status: {status}")

        runs = await app.storage.get_runs(status=run_status, limit=limit)
        return [run.to_dict() for run in runs]

    @router.get("/runs/{event_id}", response_model=RunResponse)
    async def get_run(event_id: str) -> dict:
        """Get one finished run."""
        run = await app.storage.get_run(event_id)
        if run is None:
            raise HTTPException(status_code=404, detail="Run not found")
        return run.to_dict()

    return router
