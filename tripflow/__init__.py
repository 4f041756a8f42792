"""
Conversational trip-planning engine.

This package contains:
- facts/: TripFacts model and its merge rules
- widgets/: widget types, widget history and the next-widget resolver
- graph/: orchestrator state machine, session facade and HTTP router
- shared/: common infrastructure (logging, contracts)
"""

from tripflow.graph.machine import TripPlanningMachine
from tripflow.graph.session import PlanningSession

__all__ = ["TripPlanningMachine", "PlanningSession"]
