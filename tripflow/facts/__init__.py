"""
Trip facts: the canonical record of what the user has told us so far.

Exports the TripFacts model and the merge helpers that are the only
sanctioned way of writing to it.
"""

from tripflow.facts.schemas import (
    City,
    IntentEntities,
    Leg,
    PendingDerived,
    Travelers,
    TripFacts,
    TripType,
)

__all__ = [
    "City",
    "IntentEntities",
    "Leg",
    "PendingDerived",
    "Travelers",
    "TripFacts",
    "TripType",
]
