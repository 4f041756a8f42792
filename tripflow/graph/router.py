"""
Routing logic for the evaluation graph.

Decides where an evaluation pass starts and where it lands once the
resolver has run.
"""

import logging
from typing import Literal

from tripflow.graph.state import MachineStatus, OrchestratorState


logger = logging.getLogger(__name__)


def route_entry(
    state: OrchestratorState,
) -> Literal["process_input", "evaluate"]:
    """
    Pick the first node of an evaluation pass.

    Input events (messages, intents) enter through ProcessingInput; fact
    changes from widgets go straight to Evaluating.
    """
    session_id = state.get("session_id", "unknown")
    _log = f"[session={session_id}] [graph=orchestrator] [router=route_entry] "

    if state["status"] == MachineStatus.PROCESSING_INPUT:
        has_intent = state.get("pending_intent") is not None
        logger.info(f"{_log}Routing to 'process_input' | intent={has_intent}")
        return "process_input"

    logger.info(f"{_log}Routing to 'evaluate' | status={state['status'].value}")
    return "evaluate"


def route_after_evaluation(
    state: OrchestratorState,
) -> Literal["widget_active", "ready_to_search"]:
    """
    Route on the resolver outcome.

    Routing logic:
    1. If the resolver produced a widget -> show it
    2. Otherwise -> ready to search
    """
    session_id = state.get("session_id", "unknown")
    _log = f"[session={session_id}] [graph=orchestrator] [router=route_after_evaluation] "
    next_widget = state.get("next_widget")

    if next_widget is not None:
        logger.info(
            f"{_log}Routing to 'widget_active' | widget={next_widget.type.value}"
        )
        return "widget_active"

    logger.info(f"{_log}Routing to 'ready_to_search' | checklist complete")
    return "ready_to_search"
