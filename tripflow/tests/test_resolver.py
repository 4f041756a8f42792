"""
Unit tests for the next-widget resolver.

Tests checklist priority, widget selection per trip type, multi-city leg
ordering, and the missing-fields / progress projections.
"""

from datetime import date

import pytest

from tripflow.facts.schemas import City, Leg, PendingDerived, Travelers, TripFacts, TripType
from tripflow.widgets.resolver import (
    build_checklist,
    is_ready,
    missing_fields,
    progress_percent,
    resolve,
)
from tripflow.widgets.schemas import WidgetType


# ============================================================================
# Test Fixtures
# ============================================================================


def _paris():
    return City(name="Paris", country="France", country_code="FR")


def _make_complete_facts(**overrides):
    """Facts that satisfy every checklist entry of a round trip."""
    data = {
        "trip_type": TripType.ROUNDTRIP,
        "trip_type_confirmed": True,
        "destination": _paris(),
        "departure_date": date(2025, 6, 1),
        "return_date": date(2025, 6, 8),
        "travelers": Travelers(adults=2),
    }
    data.update(overrides)
    return TripFacts(**data)


def _make_multi_facts(legs, **overrides):
    data = {
        "trip_type": TripType.MULTI,
        "trip_type_confirmed": True,
        "travelers": Travelers(adults=1),
        "legs": legs,
    }
    data.update(overrides)
    return TripFacts(**data)


# ============================================================================
# TestResolvePriority
# ============================================================================


class TestResolvePriority:
    """Tests for the ordering of the checklist."""

    def test_empty_facts_request_city_selector(self):
        """Nothing collected yet means the destination comes first."""
        request = resolve(TripFacts())
        assert request.type == WidgetType.CITY_SELECTOR
        assert request.data == {"field": "to"}

    def test_destination_dominates_travelers(self):
        """Missing destination and travelers always surfaces the city widget."""
        facts = _make_complete_facts(destination=None, travelers=Travelers())
        assert resolve(facts).type == WidgetType.CITY_SELECTOR

    def test_dates_dominate_travelers(self):
        facts = _make_complete_facts(departure_date=None, travelers=Travelers())
        assert resolve(facts).type == WidgetType.DATE_RANGE_PICKER

    def test_travelers_before_trip_type_confirmation(self):
        facts = _make_complete_facts(travelers=Travelers(), trip_type_confirmed=False)
        assert resolve(facts).type == WidgetType.TRAVELERS_SELECTOR

    def test_unconfirmed_trip_type_requests_confirmation(self):
        facts = _make_complete_facts(trip_type_confirmed=False)
        request = resolve(facts)
        assert request.type == WidgetType.TRIP_TYPE_CONFIRM
        assert request.data == {"current": "roundtrip"}

    def test_complete_facts_resolve_to_none(self):
        assert resolve(_make_complete_facts()) is None
        assert is_ready(_make_complete_facts()) is True

    def test_only_one_widget_per_resolution(self):
        """Several unmet requirements still produce a single request."""
        request = resolve(TripFacts())
        assert request.type == WidgetType.CITY_SELECTOR
        assert set(request.model_dump().keys()) == {"type", "reason", "data"}


class TestResolveDates:
    """Tests for date widget selection."""

    def test_unstated_trip_type_uses_single_date_picker(self):
        facts = TripFacts(destination=_paris())
        assert resolve(facts).type == WidgetType.DATE_PICKER

    def test_explicit_roundtrip_uses_range_picker(self):
        facts = TripFacts(destination=_paris(), trip_type=TripType.ROUNDTRIP)
        request = resolve(facts)
        assert request.type == WidgetType.DATE_RANGE_PICKER
        assert request.reason == "Need travel dates"

    def test_oneway_uses_single_date_picker(self):
        facts = TripFacts(destination=_paris(), trip_type=TripType.ONEWAY)
        assert resolve(facts).type == WidgetType.DATE_PICKER

    def test_pending_duration_uses_single_date_picker(self):
        """A duration hint will derive the return date, so one date is enough."""
        facts = TripFacts(
            destination=_paris(),
            trip_type=TripType.ROUNDTRIP,
            pending_derived=PendingDerived(trip_duration_days=7),
        )
        assert resolve(facts).type == WidgetType.DATE_PICKER

    def test_missing_return_date_with_fixed_departure(self):
        facts = _make_complete_facts(return_date=None)
        assert resolve(facts).type == WidgetType.RETURN_DATE_PICKER

    def test_unstated_trip_type_still_needs_return_date(self):
        facts = _make_complete_facts(trip_type=None, return_date=None)
        assert resolve(facts).type == WidgetType.RETURN_DATE_PICKER

    def test_oneway_never_needs_return_date(self):
        facts = _make_complete_facts(trip_type=TripType.ONEWAY, return_date=None)
        assert resolve(facts) is None

    def test_return_before_departure_is_not_rejected(self):
        """Date ordering is a validation concern, not a sequencing one."""
        facts = _make_complete_facts(return_date=date(2025, 5, 1))
        assert resolve(facts) is None


class TestResolveMultiCity:
    """Tests for per-leg evaluation of multi-city trips."""

    def test_no_legs_requests_first_leg_city(self):
        request = resolve(_make_multi_facts([]))
        assert request.type == WidgetType.CITY_SELECTOR
        assert request.data == {"field": "to", "legIndex": 0}

    def test_second_leg_requested_after_first(self):
        legs = [Leg(destination=_paris(), departure_date=date(2025, 6, 1))]
        request = resolve(_make_multi_facts(legs))
        assert request.type == WidgetType.CITY_SELECTOR
        assert request.data["legIndex"] == 1

    def test_first_incomplete_leg_wins(self):
        legs = [
            Leg(destination=_paris()),
            Leg(destination=City(name="Rome"), departure_date=date(2025, 6, 5)),
        ]
        request = resolve(_make_multi_facts(legs))
        assert request.type == WidgetType.DATE_PICKER
        assert request.data == {"legIndex": 0}

    def test_complete_legs_are_ready(self):
        legs = [
            Leg(destination=_paris(), departure_date=date(2025, 6, 1)),
            Leg(destination=City(name="Rome"), departure_date=date(2025, 6, 5)),
        ]
        assert resolve(_make_multi_facts(legs)) is None

    def test_legs_dominate_travelers(self):
        facts = _make_multi_facts([], travelers=Travelers())
        assert resolve(facts).type == WidgetType.CITY_SELECTOR

    def test_min_legs_override(self):
        legs = [Leg(destination=_paris(), departure_date=date(2025, 6, 1))]
        assert resolve(_make_multi_facts(legs), min_multi_legs=1) is None

    def test_top_level_destination_ignored_for_multi(self):
        facts = _make_multi_facts([], destination=_paris())
        assert resolve(facts).data["legIndex"] == 0


# ============================================================================
# TestProjections
# ============================================================================


class TestDeterminism:
    """The resolver is a pure function."""

    @pytest.mark.parametrize(
        "facts",
        [
            TripFacts(),
            _make_complete_facts(return_date=None),
            _make_complete_facts(),
            _make_multi_facts([Leg(destination=City(name="Oslo"))]),
        ],
    )
    def test_same_facts_same_answer(self, facts):
        before = facts.model_dump()
        assert resolve(facts) == resolve(facts)
        assert facts.model_dump() == before


class TestMissingFields:
    """Tests for the non-short-circuit missing fields projection."""

    def test_empty_roundtrip_facts(self):
        assert missing_fields(TripFacts()) == [
            "destination",
            "departureDate",
            "returnDate",
            "travelers",
            "tripTypeConfirmed",
        ]

    def test_oneway_has_no_return_date(self):
        facts = TripFacts(trip_type=TripType.ONEWAY)
        assert "returnDate" not in missing_fields(facts)

    def test_complete_facts_have_nothing_missing(self):
        assert missing_fields(_make_complete_facts()) == []

    def test_multi_lists_every_leg_field(self):
        legs = [Leg(destination=_paris())]
        assert missing_fields(_make_multi_facts(legs)) == [
            "legs[0].departureDate",
            "legs[1].destination",
            "legs[1].departureDate",
        ]

    def test_first_missing_field_matches_resolver(self):
        facts = _make_complete_facts(departure_date=None, travelers=Travelers())
        first = [i for i in build_checklist(facts) if not i.satisfied][0]
        assert first.field_id == missing_fields(facts)[0]
        assert first.widget == resolve(facts).type


class TestProgressPercent:
    """Tests for the progress projection."""

    def test_empty_facts_is_zero(self):
        assert progress_percent(TripFacts()) == 0

    def test_complete_facts_is_hundred(self):
        assert progress_percent(_make_complete_facts()) == 100

    def test_partial_progress(self):
        facts = TripFacts(destination=_paris(), travelers=Travelers(adults=1))
        # 2 of destination, departure, return, travelers, confirmation
        assert progress_percent(facts) == 40

    def test_oneway_has_fewer_steps(self):
        facts = TripFacts(
            trip_type=TripType.ONEWAY,
            destination=_paris(),
            departure_date=date(2025, 6, 1),
        )
        # 2 of destination, departure, travelers, confirmation
        assert progress_percent(facts) == 50
