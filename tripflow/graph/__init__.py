"""
Planning orchestrator.

Sequences a planning conversation as a state machine:
    Idle -> ProcessingInput -> Evaluating -> WidgetActive | ReadyToSearch -> Searching

The automatic evaluation chain is a compiled LangGraph; event handling,
the session facade and the HTTP router sit on top of it.
"""

from tripflow.graph.build import create_evaluation_graph
from tripflow.graph.machine import TripPlanningMachine
from tripflow.graph.session import PlanningSession
from tripflow.graph.state import MachineStatus

__all__ = [
    "create_evaluation_graph",
    "TripPlanningMachine",
    "PlanningSession",
    "MachineStatus",
]
