"""
Merge rules for trip facts.

Every write to TripFacts goes through this module. Two policies apply:

- Widget selections are explicit, so they always overwrite
  (last-writer-wins) and are tagged with source "widget".
- Intent entities are inferred, so they only fill fields that are still
  unset (first-set-wins) and are tagged with source "intent".

All helpers return a new TripFacts; the input is never mutated.
"""

import logging
import re
from datetime import date, timedelta
from typing import Any, Dict, List, Optional, Tuple, Union

from pydantic import TypeAdapter

from tripflow.facts.schemas import (
    City,
    IntentEntities,
    Leg,
    Travelers,
    TripFacts,
    TripType,
)


logger = logging.getLogger(__name__)

_DATE_ADAPTER = TypeAdapter(date)

_DURATION_PATTERN = re.compile(r"(\d+)\s*(semaine|jour|week|day)", re.IGNORECASE)

_LEG_FIELD_PATTERN = re.compile(r"^legs\[(\d+)\]\.(destination|origin|departureDate)$")

# Top-level fields that FIELD_CLEARED may reset
CLEARABLE_FIELDS = (
    "origin",
    "destination",
    "departureDate",
    "returnDate",
    "travelers",
    "tripType",
)


def parse_duration(value: Union[int, str, None]) -> Optional[int]:
    """
    Convert a trip-duration hint into a number of days.

    Accepts an int (already in days) or free text such as "2 weeks",
    "10 days", "1 semaine" or "5 jours". A bare "week"/"semaine" counts
    as seven days.

    Returns:
        Number of days, or None if the hint can't be understood
    """
    if value is None:
        return None
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value if value > 0 else None

    text = value.strip().lower()
    if text.isdigit():
        days = int(text)
        return days if days > 0 else None

    match = _DURATION_PATTERN.search(text)
    if match:
        num = int(match.group(1))
        unit = match.group(2).lower()
        if unit in ("semaine", "week"):
            return num * 7 if num > 0 else None
        return num if num > 0 else None

    if "semaine" in text or "week" in text:
        return 7
    return None


def _copy(facts: TripFacts) -> TripFacts:
    return facts.model_copy(deep=True)


def _ensure_leg(facts: TripFacts, leg_index: int) -> Leg:
    """Grow the leg list so that leg_index exists, returning that leg."""
    if leg_index < 0:
        raise ValueError(f"Leg index must be >= 0, got {leg_index}")
    while len(facts.legs) <= leg_index:
        facts.legs.append(Leg())
    return facts.legs[leg_index]


def coerce_date(value: Any) -> date:
    """Parse a date or ISO string; raises ValueError on anything else."""
    return _DATE_ADAPTER.validate_python(value)


# =============================================================================
# Widget selections (last-writer-wins)
# =============================================================================


def apply_city(
    facts: TripFacts,
    city: City,
    field: str = "to",
    leg_index: Optional[int] = None,
) -> TripFacts:
    """Set the destination ("to") or origin ("from") city."""
    if field not in ("to", "from"):
        raise ValueError(f"City field must be 'to' or 'from', got {field!r}")

    updated = _copy(facts)
    attr = "destination" if field == "to" else "origin"

    if leg_index is not None:
        leg = _ensure_leg(updated, leg_index)
        setattr(leg, attr, city)
        # The next leg departs from where this one arrives
        if attr == "destination" and leg_index + 1 < len(updated.legs):
            next_leg = updated.legs[leg_index + 1]
            if next_leg.origin is None:
                next_leg.origin = city
        updated.field_sources[f"legs[{leg_index}].{attr}"] = "widget"
        return updated

    setattr(updated, attr, city)
    updated.field_sources[attr] = "widget"
    return updated


def apply_departure_date(
    facts: TripFacts, value: date, leg_index: Optional[int] = None
) -> TripFacts:
    updated = _copy(facts)
    if leg_index is not None:
        leg = _ensure_leg(updated, leg_index)
        leg.departure_date = value
        updated.field_sources[f"legs[{leg_index}].departureDate"] = "widget"
        return updated

    updated.departure_date = value
    updated.field_sources["departureDate"] = "widget"
    return updated


def apply_return_date(facts: TripFacts, value: date) -> TripFacts:
    updated = _copy(facts)
    updated.return_date = value
    updated.field_sources["returnDate"] = "widget"
    return updated


def apply_date_range(facts: TripFacts, departure: date, return_date: date) -> TripFacts:
    """
    Set both dates from a range picker.

    A range supersedes any pending duration hint. Ordering problems
    (return before departure) are left for the validation service.
    """
    updated = _copy(facts)
    updated.departure_date = departure
    updated.return_date = return_date
    updated.pending_derived.trip_duration_days = None
    updated.field_sources["departureDate"] = "widget"
    updated.field_sources["returnDate"] = "widget"
    return updated


def apply_travelers(facts: TripFacts, travelers: Travelers) -> TripFacts:
    updated = _copy(facts)
    updated.travelers = travelers.model_copy()
    updated.field_sources["travelers"] = "widget"
    return updated


def apply_trip_type_confirmation(facts: TripFacts, trip_type: TripType) -> TripFacts:
    """
    Record an explicit trip type choice.

    Switching to a multi-city trip with no legs yet seeds the first leg
    from the top-level origin, destination and departure date.
    """
    updated = _copy(facts)
    updated.trip_type = trip_type
    updated.trip_type_confirmed = True
    updated.field_sources["tripType"] = "widget"
    _seed_first_leg(updated)
    return updated


def _seed_first_leg(facts: TripFacts) -> bool:
    """
    Copy the top-level route into leg 0 of a multi-city trip with no legs.

    Mutates facts in place; callers pass their own copy.

    Returns:
        Whether a leg was added
    """
    if facts.effective_trip_type != TripType.MULTI or facts.legs:
        return False
    if facts.destination is None and facts.departure_date is None:
        return False
    facts.legs.append(
        Leg(
            origin=facts.origin,
            destination=facts.destination,
            departure_date=facts.departure_date,
        )
    )
    return True


def apply_widget_value(
    facts: TripFacts,
    widget_type: str,
    value: Any,
    request_data: Optional[Dict[str, Any]] = None,
) -> TripFacts:
    """
    Merge the raw value of a generic WIDGET_COMPLETED event.

    The shape of value depends on the widget:
        citySelector      -> City payload (dict or name), optional "field"
        datePicker        -> date / ISO string, or {"date", "dateType"}
        returnDatePicker  -> date / ISO string
        dateRangePicker   -> {"departure", "returnDate"}
        travelersSelector -> {"adults", "children", "infants"}
        tripTypeConfirm   -> "roundtrip" | "oneway" | "multi"

    Raises:
        ValueError: If the value doesn't fit the widget (pydantic
            ValidationError is a ValueError subclass)
    """
    data = request_data or {}
    leg_index = data.get("legIndex")

    if widget_type == "citySelector":
        field = data.get("field", "to")
        if isinstance(value, dict) and "field" in value:
            value = dict(value)
            field = value.pop("field")
        if isinstance(value, dict) and "city" in value and "name" not in value:
            value = {**value, "name": value["city"]}
            value.pop("city")
        city = City.model_validate(value)
        return apply_city(facts, city, field=field, leg_index=leg_index)

    if widget_type == "datePicker":
        date_type = "departure"
        if isinstance(value, dict):
            date_type = value.get("dateType", "departure")
            value = value.get("date")
        picked = coerce_date(value)
        if date_type == "return":
            if leg_index is not None:
                raise ValueError("a leg date picker only takes a departure date")
            return apply_return_date(facts, picked)
        return apply_departure_date(facts, picked, leg_index=leg_index)

    if widget_type == "returnDatePicker":
        if isinstance(value, dict):
            value = value.get("date", value.get("returnDate"))
        return apply_return_date(facts, coerce_date(value))

    if widget_type == "dateRangePicker":
        if not isinstance(value, dict):
            raise ValueError("dateRangePicker expects {'departure', 'returnDate'}")
        departure = coerce_date(value.get("departure"))
        return_value = value.get("returnDate", value.get("return_date"))
        return apply_date_range(facts, departure, coerce_date(return_value))

    if widget_type == "travelersSelector":
        return apply_travelers(facts, Travelers.model_validate(value))

    if widget_type == "tripTypeConfirm":
        if isinstance(value, dict):
            value = value.get("tripType")
        return apply_trip_type_confirmation(facts, TripType(value))

    raise ValueError(f"Unknown widget type: {widget_type}")


def clear_field(facts: TripFacts, field_id: str) -> TripFacts:
    """
    Reset one field to its unset value so the checklist asks for it again.

    Accepts the top-level ids in CLEARABLE_FIELDS and leg ids such as
    "legs[1].destination".

    Raises:
        ValueError: For an unknown field id or a leg that doesn't exist
    """
    updated = _copy(facts)

    leg_match = _LEG_FIELD_PATTERN.match(field_id)
    if leg_match:
        index = int(leg_match.group(1))
        if index >= len(updated.legs):
            raise ValueError(f"No leg at index {index}")
        attr = {
            "destination": "destination",
            "origin": "origin",
            "departureDate": "departure_date",
        }[leg_match.group(2)]
        setattr(updated.legs[index], attr, None)
        updated.field_sources.pop(field_id, None)
        return updated

    if field_id not in CLEARABLE_FIELDS:
        raise ValueError(f"Field {field_id!r} can't be cleared")

    if field_id == "travelers":
        updated.travelers = Travelers()
    elif field_id == "tripType":
        updated.trip_type = None
        updated.trip_type_confirmed = False
    else:
        attr = {
            "origin": "origin",
            "destination": "destination",
            "departureDate": "departure_date",
            "returnDate": "return_date",
        }[field_id]
        setattr(updated, attr, None)
    updated.field_sources.pop(field_id, None)
    return updated


# =============================================================================
# Intent entities (first-set-wins)
# =============================================================================


def fold_intent_entities(
    facts: TripFacts, entities: IntentEntities
) -> Tuple[TripFacts, List[str]]:
    """
    Fold inferred entities into facts without overwriting anything.

    Only fields that are currently unset are taken over. A multi-city trip
    without legs gets leg 0 seeded from the top-level route, as on an
    explicit confirmation. A duration hint lands in pending_derived until
    a departure date makes it usable.

    Returns:
        Tuple of (updated facts, list of field ids that were filled)
    """
    updated = _copy(facts)
    folded: List[str] = []

    simple_fields = (
        ("origin", "origin"),
        ("destination", "destination"),
        ("departure_date", "departureDate"),
        ("return_date", "returnDate"),
        ("trip_type", "tripType"),
    )
    for attr, field_id in simple_fields:
        incoming = getattr(entities, attr)
        if incoming is not None and getattr(updated, attr) is None:
            setattr(updated, attr, incoming)
            updated.field_sources[field_id] = "intent"
            folded.append(field_id)

    if entities.travelers is not None and updated.travelers.is_empty:
        updated.travelers = entities.travelers.model_copy()
        updated.field_sources["travelers"] = "intent"
        folded.append("travelers")

    if entities.legs and not updated.legs:
        updated.legs = [leg.model_copy(deep=True) for leg in entities.legs]
        updated.field_sources["legs"] = "intent"
        folded.append("legs")
    elif _seed_first_leg(updated):
        updated.field_sources["legs"] = "intent"
        folded.append("legs")

    if entities.trip_duration is not None:
        days = parse_duration(entities.trip_duration)
        if days is None:
            logger.info(f"Ignoring unparseable trip duration hint {entities.trip_duration!r}")
        elif (
            updated.pending_derived.trip_duration_days is None
            and updated.return_date is None
        ):
            updated.pending_derived.trip_duration_days = days
            folded.append("pendingDerived.tripDurationDays")

    return updated, folded


def settle_derived_fields(facts: TripFacts) -> Tuple[TripFacts, bool]:
    """
    Consume scratch values that have become usable.

    When a duration hint is pending and a departure date is known, the
    return date of a round trip is computed as departure + duration and
    the hint is cleared. Runs before every resolver pass; the resolver
    itself stays pure.

    Returns:
        Tuple of (facts, whether anything changed)
    """
    days = facts.pending_derived.trip_duration_days
    if days is None or facts.departure_date is None:
        return facts, False

    updated = _copy(facts)
    if updated.needs_return_date and updated.return_date is None:
        updated.return_date = updated.departure_date + timedelta(days=days)
        updated.field_sources["returnDate"] = "derived"
    updated.pending_derived.trip_duration_days = None
    return updated, True
