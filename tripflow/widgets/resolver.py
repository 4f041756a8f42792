"""
Next-widget resolver.

Maps TripFacts to the single widget the user should see next. The
decision is an ordered checklist scanned top to bottom; the first unmet
entry wins. Order (earlier entries always dominate):

    1. destination          -> citySelector
    2. departure date       -> dateRangePicker (explicit round trip) or datePicker
    3. return date          -> returnDatePicker / dateRangePicker (round trips only)
    4. at least one adult   -> travelersSelector
    5. trip type confirmed  -> tripTypeConfirm

For multi-city trips, per-leg destination and departure date entries
replace 1-3, legs in array order. The same checklist also backs the
missing-fields and progress projections so they never disagree with
resolve().

Everything here is pure: no logging, no mutation.
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from tripflow.facts.schemas import TripFacts, TripType
from tripflow.widgets.schemas import WidgetRequest, WidgetType


DEFAULT_MIN_MULTI_LEGS = 2


@dataclass(frozen=True)
class ChecklistItem:
    """
    One requirement of the readiness checklist.

    Attributes:
        field_id: Stable id of the fact this entry guards (e.g. "returnDate")
        satisfied: Whether the guard currently holds
        widget: Widget that collects the fact
        reason: Human-readable reason attached to the widget request
        data: Extra widget parameters
    """

    field_id: str
    satisfied: bool
    widget: WidgetType
    reason: str
    data: Optional[Dict[str, Any]] = None

    def to_request(self) -> WidgetRequest:
        return WidgetRequest(
            type=self.widget,
            reason=self.reason,
            data=dict(self.data) if self.data is not None else None,
        )


def _departure_widget(facts: TripFacts) -> WidgetType:
    # A pending duration hint will derive the return date, one date is enough
    if (
        facts.trip_type == TripType.ROUNDTRIP
        and facts.pending_derived.trip_duration_days is None
    ):
        return WidgetType.DATE_RANGE_PICKER
    return WidgetType.DATE_PICKER


def _single_trip_items(facts: TripFacts) -> List[ChecklistItem]:
    date_widget = _departure_widget(facts)
    items = [
        ChecklistItem(
            field_id="destination",
            satisfied=facts.destination is not None,
            widget=WidgetType.CITY_SELECTOR,
            reason="Need destination city",
            data={"field": "to"},
        ),
        ChecklistItem(
            field_id="departureDate",
            satisfied=facts.departure_date is not None,
            widget=date_widget,
            reason="Need travel dates"
            if date_widget == WidgetType.DATE_RANGE_PICKER
            else "Need departure date",
        ),
    ]

    if facts.needs_return_date:
        items.append(
            ChecklistItem(
                field_id="returnDate",
                satisfied=facts.return_date is not None,
                widget=WidgetType.RETURN_DATE_PICKER
                if facts.departure_date is not None
                else WidgetType.DATE_RANGE_PICKER,
                reason="Need return date",
            )
        )
    return items


def _multi_trip_items(facts: TripFacts, min_legs: int) -> List[ChecklistItem]:
    items: List[ChecklistItem] = []
    leg_count = max(len(facts.legs), min_legs)

    for index in range(leg_count):
        leg = facts.legs[index] if index < len(facts.legs) else None
        items.append(
            ChecklistItem(
                field_id=f"legs[{index}].destination",
                satisfied=leg is not None and leg.destination is not None,
                widget=WidgetType.CITY_SELECTOR,
                reason=f"Need destination for leg {index + 1}",
                data={"field": "to", "legIndex": index},
            )
        )
        items.append(
            ChecklistItem(
                field_id=f"legs[{index}].departureDate",
                satisfied=leg is not None and leg.departure_date is not None,
                widget=WidgetType.DATE_PICKER,
                reason=f"Need departure date for leg {index + 1}",
                data={"legIndex": index},
            )
        )
    return items


def build_checklist(
    facts: TripFacts, min_multi_legs: int = DEFAULT_MIN_MULTI_LEGS
) -> List[ChecklistItem]:
    """
    Build the full ordered checklist for the given facts.

    Args:
        facts: Current trip facts
        min_multi_legs: Minimum number of legs a multi-city trip needs

    Returns:
        Every applicable requirement, satisfied or not, in priority order
    """
    if facts.effective_trip_type == TripType.MULTI:
        items = _multi_trip_items(facts, min_multi_legs)
    else:
        items = _single_trip_items(facts)

    items.append(
        ChecklistItem(
            field_id="travelers",
            satisfied=facts.travelers.adults >= 1,
            widget=WidgetType.TRAVELERS_SELECTOR,
            reason="Need traveler count",
        )
    )
    items.append(
        ChecklistItem(
            field_id="tripTypeConfirmed",
            satisfied=facts.trip_type_confirmed,
            widget=WidgetType.TRIP_TYPE_CONFIRM,
            reason="Confirm trip type before search",
            data={"current": facts.effective_trip_type.value},
        )
    )
    return items


def resolve(
    facts: TripFacts, min_multi_legs: int = DEFAULT_MIN_MULTI_LEGS
) -> Optional[WidgetRequest]:
    """
    Decide the next required widget.

    Returns:
        The request for the first unmet checklist entry, or None when the
        facts are complete and search can be unlocked
    """
    for item in build_checklist(facts, min_multi_legs):
        if not item.satisfied:
            return item.to_request()
    return None


def missing_fields(
    facts: TripFacts, min_multi_legs: int = DEFAULT_MIN_MULTI_LEGS
) -> List[str]:
    """Every unmet requirement in checklist order (no short-circuit)."""
    return [
        item.field_id
        for item in build_checklist(facts, min_multi_legs)
        if not item.satisfied
    ]


def progress_percent(
    facts: TripFacts, min_multi_legs: int = DEFAULT_MIN_MULTI_LEGS
) -> int:
    """
    Share of required steps already satisfied, rounded to an int.

    Returns 0 when there is nothing to count.
    """
    items = build_checklist(facts, min_multi_legs)
    if not items:
        return 0
    done = sum(1 for item in items if item.satisfied)
    return round(done * 100 / len(items))


def is_ready(facts: TripFacts, min_multi_legs: int = DEFAULT_MIN_MULTI_LEGS) -> bool:
    return resolve(facts, min_multi_legs) is None
