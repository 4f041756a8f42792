"""
Search request contract.

Defines the read-only snapshot of trip facts handed to the search
executor when a search is triggered. The executor never sees the live
TripFacts and reports back only through SEARCH_SUCCEEDED / SEARCH_FAILED.
"""

from datetime import date
from typing import List, Optional

from pydantic import BaseModel, Field

from tripflow.facts.schemas import City, Leg, Travelers, TripFacts, TripType


class SearchRequestV1(BaseModel):
    """
    Contract for a flight search request (v1).

    Frozen so downstream services can't write back into the session.
    """

    session_id: str = Field(description="Planning session that triggered the search")
    trip_type: TripType = Field(description="Effective trip type")
    origin: Optional[City] = Field(default=None, description="Departure city, if known")
    destination: Optional[City] = Field(
        default=None, description="Destination city (single-destination trips)"
    )
    departure_date: Optional[date] = Field(default=None)
    return_date: Optional[date] = Field(
        default=None, description="Only set for round trips"
    )
    travelers: Travelers = Field(description="Traveler counts")
    legs: List[Leg] = Field(
        default_factory=list, description="Ordered legs (multi-city trips)"
    )

    class Config:
        frozen = True

    @classmethod
    def from_facts(cls, session_id: str, facts: TripFacts) -> "SearchRequestV1":
        """Build a detached snapshot from the current facts."""
        snapshot = facts.model_copy(deep=True)
        trip_type = snapshot.effective_trip_type
        return cls(
            session_id=session_id,
            trip_type=trip_type,
            origin=snapshot.origin,
            destination=snapshot.destination,
            departure_date=snapshot.departure_date,
            return_date=snapshot.return_date if trip_type == TripType.ROUNDTRIP else None,
            travelers=snapshot.travelers,
            legs=snapshot.legs if trip_type == TripType.MULTI else [],
        )
