"""
Evaluation graph construction.

Builds the LangGraph that runs the automatic part of every event:

    ProcessingInput -> Evaluating -> WidgetActive | ReadyToSearch

Event-specific transitions (completions, dismissals, search results,
reset) live in tripflow.graph.machine; they hand over to this graph
whenever facts may have changed.
"""

import logging
from typing import Any, Dict

from langgraph.graph import END, START, StateGraph

from tripflow.facts.merge import fold_intent_entities, settle_derived_fields
from tripflow.graph.router import route_after_evaluation, route_entry
from tripflow.graph.state import MachineStatus, OrchestratorState
from tripflow.widgets.history import make_entry
from tripflow.widgets.resolver import resolve
from tripflow.widgets.schemas import WidgetAction, WidgetRequest


logger = logging.getLogger(__name__)


def _process_input_node(state: OrchestratorState) -> Dict[str, Any]:
    """
    Fold the pending input into the facts.

    Intent entities only fill unset fields. A bare user message carries no
    entities of its own; it just triggers a fresh evaluation.

    Args:
        state: Current orchestrator state

    Returns:
        State updates with merged facts
    """
    session_id = state.get("session_id", "unknown")
    _log = f"[session={session_id}] [graph=orchestrator] [node=process_input] "

    intent = state.get("pending_intent")
    updates: Dict[str, Any] = {
        "status": MachineStatus.PROCESSING_INPUT,
        "path": [MachineStatus.PROCESSING_INPUT],
    }

    if intent is None:
        logger.info(f"{_log}No intent to fold | message-only input")
        return updates

    facts, folded = fold_intent_entities(state["facts"], intent.entities)
    logger.info(
        f"{_log}Folded intent entities | filled={folded or 'none'}, "
        f"suggestions={len(intent.widgets_suggested)}"
    )
    updates["facts"] = facts
    return updates


def _apply_suggestions(
    request: WidgetRequest, state: OrchestratorState, _log: str
) -> WidgetRequest:
    """Let a matching classifier suggestion enrich the resolver's request."""
    intent = state.get("pending_intent")
    if intent is None or not intent.widgets_suggested:
        return request

    for suggestion in intent.widgets_suggested:
        if suggestion.type != request.type:
            logger.info(
                f"{_log}Dropping suggestion {suggestion.type.value} | "
                f"resolver chose {request.type.value}"
            )
            continue
        data = dict(request.data or {})
        data.update(suggestion.data or {})
        return WidgetRequest(
            type=request.type,
            reason=suggestion.reason or request.reason,
            data=data or None,
        )
    return request


def _evaluate_node(state: OrchestratorState) -> Dict[str, Any]:
    """
    Settle derived facts, then ask the resolver for the next widget.

    Args:
        state: Current orchestrator state

    Returns:
        State updates with the resolver's choice in next_widget
    """
    session_id = state.get("session_id", "unknown")
    _log = f"[session={session_id}] [graph=orchestrator] [node=evaluate] "

    facts, derived = settle_derived_fields(state["facts"])
    if derived:
        logger.info(
            f"{_log}Consumed duration hint | return_date={facts.return_date}"
        )

    request = resolve(facts, state["min_multi_legs"])
    if request is not None:
        request = _apply_suggestions(request, state, _log)

    logger.info(
        f"{_log}Resolver result | "
        f"next={request.type.value if request else 'none (ready)'}"
    )

    return {
        "status": MachineStatus.EVALUATING,
        "facts": facts,
        "next_widget": request,
        "pending_intent": None,
        "path": [MachineStatus.EVALUATING],
    }


def _widget_active_node(state: OrchestratorState) -> Dict[str, Any]:
    """Activate the resolved widget and record that it was shown."""
    session_id = state.get("session_id", "unknown")
    _log = f"[session={session_id}] [graph=orchestrator] [node=widget_active] "

    request = state["next_widget"]
    logger.info(f"{_log}Showing widget | type={request.type.value}, reason={request.reason}")

    return {
        "status": MachineStatus.WIDGET_ACTIVE,
        "active_widget": request,
        "next_widget": None,
        "history": [make_entry(request.type, WidgetAction.SHOWN)],
        "path": [MachineStatus.WIDGET_ACTIVE],
    }


def _ready_to_search_node(state: OrchestratorState) -> Dict[str, Any]:
    """Mark the checklist as complete; search can now be triggered."""
    session_id = state.get("session_id", "unknown")
    _log = f"[session={session_id}] [graph=orchestrator] [node=ready_to_search] "

    logger.info(f"{_log}All required facts collected -> ReadyToSearch")

    return {
        "status": MachineStatus.READY_TO_SEARCH,
        "active_widget": None,
        "next_widget": None,
        "path": [MachineStatus.READY_TO_SEARCH],
    }


def create_evaluation_graph():
    """
    Create and compile the evaluation graph.

    The graph structure is:
        Entry -> route_entry
          -> "process_input" -> evaluate
          -> "evaluate"      -> route_after_evaluation
               -> "widget_active"   -> END
               -> "ready_to_search" -> END

    Returns:
        Compiled LangGraph application ready for execution.
    """
    graph = StateGraph(OrchestratorState)

    # Add nodes
    graph.add_node("process_input", _process_input_node)
    graph.add_node("evaluate", _evaluate_node)
    graph.add_node("widget_active", _widget_active_node)
    graph.add_node("ready_to_search", _ready_to_search_node)

    # Conditional entry point - inputs are folded first, fact changes are not
    graph.add_conditional_edges(
        START,
        route_entry,
        {
            "process_input": "process_input",
            "evaluate": "evaluate",
        },
    )

    graph.add_edge("process_input", "evaluate")

    graph.add_conditional_edges(
        "evaluate",
        route_after_evaluation,
        {
            "widget_active": "widget_active",
            "ready_to_search": "ready_to_search",
        },
    )

    graph.add_edge("widget_active", END)
    graph.add_edge("ready_to_search", END)

    return graph.compile()


# Compiled graph instance (shared across sessions; it holds no state)
_graph = None


def get_evaluation_graph():
    """Get or create the shared evaluation graph."""
    global _graph
    if _graph is None:
        _graph = create_evaluation_graph()
    return _graph
