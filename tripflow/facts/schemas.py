"""
Schemas for trip facts.

Defines the TripFacts record collected during a planning conversation,
its nested value types (cities, legs, traveler counts) and the partial
entity payload carried by a classified intent.
"""

from datetime import date
from enum import Enum
from typing import Any, Dict, List, Literal, Optional, Tuple, Union

from pydantic import BaseModel, Field, model_validator


FieldSource = Literal["widget", "intent", "derived"]


class TripType(str, Enum):
    """Shape of the trip, which decides which facts are mandatory."""

    ROUNDTRIP = "roundtrip"
    ONEWAY = "oneway"
    MULTI = "multi"


class City(BaseModel):
    """A city picked by the user or extracted from a message."""

    name: str = Field(min_length=1, description="City name")
    country: Optional[str] = Field(default=None, description="Country name")
    country_code: Optional[str] = Field(
        default=None, alias="countryCode", description="ISO 3166 alpha-2 code"
    )
    coordinates: Optional[Tuple[float, float]] = Field(
        default=None, description="(latitude, longitude)"
    )

    class Config:
        populate_by_name = True

    @model_validator(mode="before")
    @classmethod
    def _accept_bare_name(cls, data: Any) -> Any:
        # Intent extraction frequently yields just "Paris"
        if isinstance(data, str):
            return {"name": data}
        return data


class Leg(BaseModel):
    """One origin -> destination hop of a multi-city trip."""

    origin: Optional[City] = None
    destination: Optional[City] = None
    departure_date: Optional[date] = Field(default=None, alias="departureDate")

    class Config:
        populate_by_name = True


class Travelers(BaseModel):
    """Traveler counts. Search needs at least one adult."""

    adults: int = Field(default=0, ge=0)
    children: int = Field(default=0, ge=0)
    infants: int = Field(default=0, ge=0)

    @property
    def total(self) -> int:
        return self.adults + self.children + self.infants

    @property
    def is_empty(self) -> bool:
        return self.total == 0


class PendingDerived(BaseModel):
    """
    Scratch values waiting for another fact before they can be applied.

    trip_duration_days is consumed as soon as a departure date exists,
    turning "two weeks in Lisbon" into a return date.
    """

    trip_duration_days: Optional[int] = Field(
        default=None, ge=1, alias="tripDurationDays"
    )

    class Config:
        populate_by_name = True


class TripFacts(BaseModel):
    """
    The single source of truth for collected trip data.

    trip_type is None until somebody states it; the effective trip type is
    then a round trip, so a return date is still required. field_sources
    remembers which path (widget, intent or derived) last wrote a field.
    """

    trip_type: Optional[TripType] = Field(default=None, alias="tripType")
    trip_type_confirmed: bool = Field(default=False, alias="tripTypeConfirmed")

    origin: Optional[City] = None
    destination: Optional[City] = None
    departure_date: Optional[date] = Field(default=None, alias="departureDate")
    return_date: Optional[date] = Field(default=None, alias="returnDate")

    travelers: Travelers = Field(default_factory=Travelers)
    legs: List[Leg] = Field(default_factory=list)

    pending_derived: PendingDerived = Field(
        default_factory=PendingDerived, alias="pendingDerived"
    )
    field_sources: Dict[str, FieldSource] = Field(
        default_factory=dict, alias="fieldSources"
    )

    class Config:
        populate_by_name = True

    @property
    def effective_trip_type(self) -> TripType:
        return self.trip_type or TripType.ROUNDTRIP

    @property
    def needs_return_date(self) -> bool:
        return self.effective_trip_type == TripType.ROUNDTRIP


class IntentEntities(BaseModel):
    """
    Entities extracted from a user message by the intent classifier.

    Every field is optional; only fields that are still unset on TripFacts
    are taken over (see fold_intent_entities).
    """

    origin: Optional[City] = None
    destination: Optional[City] = None
    departure_date: Optional[date] = Field(default=None, alias="departureDate")
    return_date: Optional[date] = Field(default=None, alias="returnDate")
    trip_type: Optional[TripType] = Field(default=None, alias="tripType")
    travelers: Optional[Travelers] = None
    trip_duration: Optional[Union[int, str]] = Field(
        default=None, alias="tripDuration"
    )
    legs: Optional[List[Leg]] = None

    class Config:
        populate_by_name = True
