"""
Schemas for the orchestrator's outbound side.

Dispatch results returned for every event, the read-only session
snapshot handed to the UI and to satellite services, and the API
request/response models.
"""

from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field

from tripflow.facts.schemas import TripFacts
from tripflow.graph.state import MachineStatus
from tripflow.widgets.schemas import WidgetHistoryEntry, WidgetRequest


# =============================================================================
# Dispatch
# =============================================================================


class DispatchResult(BaseModel):
    """Outcome of handing one event to the machine."""

    status: Literal["applied", "ignored"] = Field(
        description="'ignored' means the event was invalid for the current state"
    )
    event_type: str = Field(description="Type tag of the dispatched event")
    reason: Optional[str] = Field(
        default=None, description="Why the event was ignored"
    )
    state: MachineStatus = Field(description="Machine state after the event")
    path: List[MachineStatus] = Field(
        default_factory=list, description="States visited while handling the event"
    )

    @property
    def applied(self) -> bool:
        return self.status == "applied"


# =============================================================================
# Projections
# =============================================================================


class PlanningStepInfo(BaseModel):
    """One step of the high-level planning progress view."""

    id: str
    label: str
    order: int
    required: bool
    status: Literal["pending", "current", "completed"]


class SessionSnapshot(BaseModel):
    """Everything the UI and satellite services may read about a session."""

    session_id: str
    current_state: MachineStatus
    active_widget: Optional[WidgetRequest] = None
    is_ready_to_search: bool
    missing_fields: List[str] = Field(default_factory=list)
    progress_percent: int = Field(ge=0, le=100)
    history: List[WidgetHistoryEntry] = Field(default_factory=list)
    last_error: Optional[str] = None
    facts: TripFacts
    planning_steps: List[PlanningStepInfo] = Field(default_factory=list)


# =============================================================================
# API Request/Response Models
# =============================================================================


class CreateSessionRequest(BaseModel):
    """Request to open a planning session."""

    session_id: Optional[str] = Field(
        default=None, description="Client-chosen id (generated when omitted)"
    )


class EventResponse(BaseModel):
    """Response after submitting an event."""

    result: DispatchResult
    snapshot: SessionSnapshot


class HistorySummaryResponse(BaseModel):
    """Per-widget counters derived from the widget history."""

    session_id: str
    widgets: Dict[str, Dict[str, Any]] = Field(default_factory=dict)
