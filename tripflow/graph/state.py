"""
Orchestrator state schema.

Defines the state that flows through the planning orchestrator: the
machine status tag, the trip facts, the single active widget and the
append-only widget history.
"""

from enum import Enum
from typing import Annotated, List, Optional, TypedDict
import operator

from tripflow.facts.schemas import TripFacts
from tripflow.graph.events import ClassifiedIntent
from tripflow.widgets.resolver import DEFAULT_MIN_MULTI_LEGS
from tripflow.widgets.schemas import WidgetHistoryEntry, WidgetRequest


class MachineStatus(str, Enum):
    """States of the planning orchestrator."""

    IDLE = "Idle"
    PROCESSING_INPUT = "ProcessingInput"
    EVALUATING = "Evaluating"
    WIDGET_ACTIVE = "WidgetActive"
    READY_TO_SEARCH = "ReadyToSearch"
    SEARCHING = "Searching"


class OrchestratorState(TypedDict):
    """
    State schema for the planning orchestrator.

    `status` is the tag; active_widget is only ever set while the status
    is WidgetActive. `history` and `path` use operator.add so graph nodes
    append rather than replace.
    """

    # Machine tag
    status: MachineStatus

    # Collected data
    facts: TripFacts

    # Widget tracking
    active_widget: Optional[WidgetRequest]
    next_widget: Optional[WidgetRequest]
    history: Annotated[List[WidgetHistoryEntry], operator.add]

    # Input being folded in during ProcessingInput
    pending_intent: Optional[ClassifiedIntent]
    last_user_message: Optional[str]

    # Search bookkeeping
    last_error: Optional[str]
    searches_completed: int

    # States visited while handling the current event
    path: Annotated[List[MachineStatus], operator.add]

    # Checklist parameters
    min_multi_legs: int

    # Session tracking
    session_id: Optional[str]


def create_initial_state(
    session_id: Optional[str] = None,
    min_multi_legs: int = DEFAULT_MIN_MULTI_LEGS,
) -> OrchestratorState:
    """Fresh Idle state with default facts and empty history."""
    return {
        "status": MachineStatus.IDLE,
        "facts": TripFacts(),
        "active_widget": None,
        "next_widget": None,
        "history": [],
        "pending_intent": None,
        "last_user_message": None,
        "last_error": None,
        "searches_completed": 0,
        "path": [],
        "min_multi_legs": min_multi_legs,
        "session_id": session_id,
    }
