"""
Planning-step view.

The high-level journey (destination -> dates -> travelers -> flights ->
hotels -> activities -> transfers -> recap) is not a second state
machine. It is derived on demand from the facts checklist and the
search bookkeeping, so it can never drift from the orchestrator.
"""

from dataclasses import dataclass
from typing import List

from tripflow.facts.schemas import TripFacts
from tripflow.graph.schemas import PlanningStepInfo
from tripflow.widgets.resolver import DEFAULT_MIN_MULTI_LEGS, missing_fields


@dataclass(frozen=True)
class StepMetadata:
    id: str
    label: str
    order: int
    required: bool


PLANNING_STEPS = (
    StepMetadata("destination", "Destination", 1, True),
    StepMetadata("dates", "Dates", 2, True),
    StepMetadata("travelers", "Travelers", 3, True),
    StepMetadata("flights", "Flights", 4, True),
    StepMetadata("hotels", "Accommodation", 5, True),
    StepMetadata("activities", "Activities", 6, False),
    StepMetadata("transfers", "Transfers", 7, False),
    StepMetadata("recap", "Recap", 8, True),
)


def step_for_field(field_id: str) -> str:
    """Map a checklist field id to the planning step that owns it."""
    if field_id.endswith("destination"):
        return "destination"
    if field_id.endswith("Date"):
        return "dates"
    if field_id == "travelers":
        return "travelers"
    return "flights"


def planning_steps(
    facts: TripFacts,
    searches_completed: int = 0,
    min_multi_legs: int = DEFAULT_MIN_MULTI_LEGS,
) -> List[PlanningStepInfo]:
    """
    Derive the status of every planning step.

    destination, dates and travelers are completed once their checklist
    entries hold; flights completes after a successful search. Hotels and
    later steps are booked outside this engine and stay pending. The first
    required step that isn't completed is the current one.
    """
    open_steps = {step_for_field(f) for f in missing_fields(facts, min_multi_legs)}

    completed = set()
    for step_id in ("destination", "dates", "travelers"):
        if step_id not in open_steps:
            completed.add(step_id)
    if searches_completed > 0 and not open_steps:
        completed.add("flights")

    result: List[PlanningStepInfo] = []
    current_assigned = False
    for meta in PLANNING_STEPS:
        if meta.id in completed:
            status = "completed"
        elif meta.required and not current_assigned:
            status = "current"
            current_assigned = True
        else:
            status = "pending"
        result.append(
            PlanningStepInfo(
                id=meta.id,
                label=meta.label,
                order=meta.order,
                required=meta.required,
                status=status,
            )
        )
    return result
