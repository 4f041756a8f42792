"""
FastAPI endpoints for the planning orchestrator.

Provides the REST API to open planning sessions, submit events and read
the session projections.
"""

import logging
import time
from typing import Any, Dict, Optional

from fastapi import APIRouter, Body, HTTPException, status
from pydantic import ValidationError

from tripflow.graph.config import config_from_env
from tripflow.graph.schemas import (
    CreateSessionRequest,
    EventResponse,
    HistorySummaryResponse,
    SessionSnapshot,
)
from tripflow.graph.session import PlanningSession


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/planner", tags=["planner"])

# In-memory session storage (replace with Redis/DB in production)
_sessions: Dict[str, PlanningSession] = {}


def _get_session(session_id: str) -> PlanningSession:
    session = _sessions.get(session_id)
    if session is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Session {session_id} not found",
        )
    return session


@router.post("/sessions", response_model=SessionSnapshot, status_code=status.HTTP_201_CREATED)
async def create_session(request: Optional[CreateSessionRequest] = None) -> SessionSnapshot:
    """
    Open a new planning session.

    The session starts Idle with default trip facts.
    """
    requested_id = request.session_id if request else None
    if requested_id and requested_id in _sessions:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Session {requested_id} already exists",
        )

    session = PlanningSession(session_id=requested_id, config=config_from_env())
    _sessions[session.session_id] = session
    logger.info(f"[session={session.session_id}] [graph=orchestrator] [api=create] Session created")
    return session.snapshot()


@router.post("/sessions/{session_id}/events", response_model=EventResponse)
async def submit_event(
    session_id: str, payload: Dict[str, Any] = Body(...)
) -> EventResponse:
    """
    Submit one event to a session.

    The body is a single event object discriminated on its "type" field,
    e.g. {"type": "CITY_SELECTED", "city": "Paris", "field": "to"}.
    Events that are invalid for the current state come back with
    result.status == "ignored" and an unchanged snapshot.
    """
    session = _get_session(session_id)
    _log = f"[session={session_id}] [graph=orchestrator] [api=event] "
    api_start_time = time.perf_counter()

    try:
        result = session.submit(payload)
    except ValidationError as e:
        logger.warning(f"{_log}Rejected malformed event: {e.error_count()} error(s)")
        raise HTTPException(
            status_code=422,
            detail=e.errors(include_url=False, include_context=False),
        )
    except Exception as e:
        logger.exception(f"{_log}Event processing failed: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Event processing failed: {str(e)}",
        )

    session.record_api_timing(
        endpoint=f"/api/planner/sessions/{session_id}/events",
        duration_ms=(time.perf_counter() - api_start_time) * 1000,
    )

    logger.info(
        f"{_log}Event handled | type={result.event_type}, status={result.status}, "
        f"state={result.state.value}"
    )
    return EventResponse(result=result, snapshot=session.snapshot())


@router.get("/sessions/{session_id}", response_model=SessionSnapshot)
async def get_session(session_id: str) -> SessionSnapshot:
    """Read the current projections of a session."""
    return _get_session(session_id).snapshot()


@router.get("/sessions/{session_id}/history", response_model=HistorySummaryResponse)
async def get_history_summary(session_id: str) -> HistorySummaryResponse:
    """Per-widget shown/completed/dismissed counters for a session."""
    session = _get_session(session_id)
    return HistorySummaryResponse(
        session_id=session_id, widgets=session.history_summary()
    )


@router.delete("/sessions/{session_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_session(session_id: str) -> None:
    """End a session and drop its state."""
    session = _get_session(session_id)
    session.close()
    del _sessions[session_id]
