"""
Planning orchestrator state machine.

TripPlanningMachine is a synchronous reducer: one handler per event
type, each either rejecting the event (status "ignored", state
untouched) or applying it. Whenever facts may have changed, the handler
hands over to the evaluation graph, which runs

    ProcessingInput -> Evaluating -> WidgetActive | ReadyToSearch

to completion before dispatch() returns. At most one widget is active at
any time: every transition out of WidgetActive clears it first.
"""

import logging
from typing import Any, Callable, Dict, List, Optional

from pydantic import BaseModel

from tripflow.facts.merge import (
    apply_city,
    apply_date_range,
    apply_departure_date,
    apply_return_date,
    apply_travelers,
    apply_trip_type_confirmation,
    apply_widget_value,
    clear_field,
)
from tripflow.facts.schemas import City, Travelers, TripFacts
from tripflow.graph.build import get_evaluation_graph
from tripflow.graph.config import DEFAULT_CONFIG, MachineConfig
from tripflow.graph.events import SELECTION_EVENT_WIDGETS, event_payload
from tripflow.graph.schemas import DispatchResult
from tripflow.graph.state import MachineStatus, OrchestratorState, create_initial_state
from tripflow.shared.logging.config import log_state_transition
from tripflow.widgets.history import WidgetHistory, make_entry
from tripflow.widgets.schemas import WidgetAction, WidgetRequest, WidgetType


logger = logging.getLogger(__name__)

# States in which new input (messages, intents, fact changes) is accepted
_INPUT_STATES = (MachineStatus.IDLE, MachineStatus.READY_TO_SEARCH)


class TripPlanningMachine:
    """
    Session-scoped orchestrator.

    All state lives on the instance; nothing is module-global, so any
    number of sessions can run side by side.
    """

    def __init__(
        self,
        session_id: Optional[str] = None,
        config: Optional[MachineConfig] = None,
        graph=None,
    ):
        self.config = config or DEFAULT_CONFIG
        self._graph = graph or get_evaluation_graph()
        self._state: OrchestratorState = create_initial_state(
            session_id, self.config.min_multi_legs
        )
        self._handlers: Dict[str, Callable[[Any], DispatchResult]] = {
            "USER_MESSAGE": self._on_user_message,
            "INTENT_RECEIVED": self._on_intent_received,
            "CITY_SELECTED": self._on_selection,
            "DATE_SELECTED": self._on_selection,
            "DATE_RANGE_SELECTED": self._on_selection,
            "TRAVELERS_SELECTED": self._on_selection,
            "TRIP_TYPE_CONFIRMED": self._on_selection,
            "WIDGET_COMPLETED": self._on_widget_completed,
            "WIDGET_DISMISSED": self._on_widget_dismissed,
            "FIELD_CLEARED": self._on_field_cleared,
            "SEARCH_TRIGGERED": self._on_search_triggered,
            "SEARCH_SUCCEEDED": self._on_search_succeeded,
            "SEARCH_FAILED": self._on_search_failed,
            "RESET": self._on_reset,
        }

    # -------------------------------------------------------------------------
    # Read access
    # -------------------------------------------------------------------------

    @property
    def session_id(self) -> Optional[str]:
        return self._state["session_id"]

    @property
    def state(self) -> OrchestratorState:
        """Shallow copy of the current state."""
        snapshot = dict(self._state)
        snapshot["history"] = list(self._state["history"])
        return snapshot  # type: ignore[return-value]

    @property
    def status(self) -> MachineStatus:
        return self._state["status"]

    @property
    def facts(self) -> TripFacts:
        return self._state["facts"]

    @property
    def active_widget(self) -> Optional[WidgetRequest]:
        return self._state["active_widget"]

    @property
    def history(self) -> WidgetHistory:
        return WidgetHistory(self._state["history"])

    @property
    def last_error(self) -> Optional[str]:
        return self._state["last_error"]

    @property
    def searches_completed(self) -> int:
        return self._state["searches_completed"]

    # -------------------------------------------------------------------------
    # Dispatch
    # -------------------------------------------------------------------------

    @property
    def _log(self) -> str:
        return f"[session={self.session_id or 'unknown'}] [graph=orchestrator] "

    def dispatch(self, event: BaseModel) -> DispatchResult:
        """
        Process one event to completion.

        Args:
            event: Any model from tripflow.graph.events

        Returns:
            DispatchResult; invalid events come back as "ignored" and
            leave the state untouched
        """
        event_type = getattr(event, "type", type(event).__name__)
        handler = self._handlers.get(event_type)
        if handler is None:
            return self._ignored(event_type, f"Unknown event type {event_type!r}")

        logger.info(
            f"{self._log}[event={event_type}] Dispatching | status={self.status.value}"
        )
        result = handler(event)
        if result.applied:
            log_state_transition(
                event_type,
                self._state,
                extra={"path": [s.value for s in result.path]},
                logger=logger,
            )
        return result

    def _ignored(self, event_type: str, reason: str) -> DispatchResult:
        logger.warning(f"{self._log}[event={event_type}] Ignored | {reason}")
        return DispatchResult(
            status="ignored",
            event_type=event_type,
            reason=reason,
            state=self.status,
            path=[],
        )

    def _applied(self, event_type: str, path: List[MachineStatus]) -> DispatchResult:
        return DispatchResult(
            status="applied",
            event_type=event_type,
            state=self.status,
            path=path,
        )

    def _evaluate(self, updates: Dict[str, Any], entry: MachineStatus) -> List[MachineStatus]:
        """
        Apply updates and run the evaluation graph from the given entry state.

        Returns:
            States visited by the graph
        """
        graph_input: Dict[str, Any] = {
            **self._state,
            **updates,
            "status": entry,
            "active_widget": None,
            "next_widget": None,
            "path": [],
        }
        result = self._graph.invoke(
            graph_input, {"recursion_limit": self.config.recursion_limit}
        )

        new_state: Dict[str, Any] = {**graph_input, **result}
        new_state["next_widget"] = None
        new_state["pending_intent"] = None
        if new_state["status"] != MachineStatus.WIDGET_ACTIVE:
            new_state["active_widget"] = None

        path = list(new_state["path"])
        new_state["path"] = []
        self._state = new_state  # type: ignore[assignment]
        return path

    def _close_active_widget(
        self, action: WidgetAction, value: Any = None, widget_type: Optional[WidgetType] = None
    ) -> Dict[str, Any]:
        """State updates that clear the active widget and record how it closed."""
        closing_type = widget_type or self._state["active_widget"].type
        return {
            "active_widget": None,
            "history": self._state["history"] + [make_entry(closing_type, action, value)],
        }

    # -------------------------------------------------------------------------
    # Input events
    # -------------------------------------------------------------------------

    def _on_user_message(self, event) -> DispatchResult:
        if self.status not in _INPUT_STATES:
            return self._ignored(
                event.type,
                f"Messages are not accepted in {self.status.value}",
            )

        path = self._evaluate(
            {"last_user_message": event.text, "pending_intent": None},
            MachineStatus.PROCESSING_INPUT,
        )
        return self._applied(event.type, path)

    def _on_intent_received(self, event) -> DispatchResult:
        if self.status not in _INPUT_STATES + (MachineStatus.WIDGET_ACTIVE,):
            return self._ignored(
                event.type, f"Intents are not accepted in {self.status.value}"
            )

        if self.status == MachineStatus.WIDGET_ACTIVE:
            # A new intent preempts the widget on screen
            logger.info(
                f"{self._log}[event={event.type}] Preempting widget "
                f"{self._state['active_widget'].type.value}"
            )

        path = self._evaluate(
            {"active_widget": None, "pending_intent": event.intent},
            MachineStatus.PROCESSING_INPUT,
        )
        return self._applied(event.type, path)

    # -------------------------------------------------------------------------
    # Widget events
    # -------------------------------------------------------------------------

    def _apply_selection(self, event, active: Optional[WidgetRequest]) -> TripFacts:
        """Merge a typed selection event into the facts (widget wins)."""
        facts = self._state["facts"]
        active_data = (active.data or {}) if active is not None else {}
        leg_picker = "legIndex" in active_data

        if event.type == "CITY_SELECTED":
            leg_index = event.leg_index
            if leg_index is None:
                leg_index = active_data.get("legIndex")
            city = City(
                name=event.city,
                country=event.country,
                country_code=event.country_code,
            )
            return apply_city(facts, city, field=event.field, leg_index=leg_index)

        if event.type == "DATE_SELECTED":
            date_type = event.date_type
            if date_type is None:
                is_return_picker = (
                    active is not None and active.type == WidgetType.RETURN_DATE_PICKER
                )
                date_type = "return" if is_return_picker else "departure"
            if date_type == "return":
                # Legs have no return date
                if leg_picker or event.leg_index is not None:
                    raise ValueError("a leg date picker only takes a departure date")
                return apply_return_date(facts, event.selected_date)
            leg_index = event.leg_index
            if leg_index is None:
                leg_index = active_data.get("legIndex")
            return apply_departure_date(facts, event.selected_date, leg_index=leg_index)

        if event.type == "DATE_RANGE_SELECTED":
            if leg_picker:
                raise ValueError(
                    f"a date range can't fill leg {active_data['legIndex']}'s departure date"
                )
            return apply_date_range(facts, event.departure, event.return_date)

        if event.type == "TRAVELERS_SELECTED":
            travelers = Travelers(
                adults=event.adults, children=event.children, infants=event.infants
            )
            return apply_travelers(facts, travelers)

        return apply_trip_type_confirmation(facts, event.trip_type)

    def _on_selection(self, event) -> DispatchResult:
        families = SELECTION_EVENT_WIDGETS[event.type]
        active = self._state["active_widget"]

        if self.status == MachineStatus.WIDGET_ACTIVE:
            if active.type not in families:
                return self._ignored(
                    event.type,
                    f"{active.type.value} is active; "
                    f"{event.type} completes {', '.join(w.value for w in families)}",
                )
        elif self.status not in _INPUT_STATES:
            return self._ignored(
                event.type, f"Selections are not accepted in {self.status.value}"
            )

        try:
            facts = self._apply_selection(event, active)
        except ValueError as e:
            return self._ignored(event.type, f"Invalid selection: {e}")

        updates: Dict[str, Any] = {"facts": facts}
        if self.status == MachineStatus.WIDGET_ACTIVE:
            updates.update(
                self._close_active_widget(WidgetAction.COMPLETED, event_payload(event))
            )

        path = self._evaluate(updates, MachineStatus.EVALUATING)
        return self._applied(event.type, path)

    def _on_widget_completed(self, event) -> DispatchResult:
        active = self._state["active_widget"]
        if self.status != MachineStatus.WIDGET_ACTIVE or active is None:
            return self._ignored(event.type, "No widget is active")
        if event.widget_type != active.type:
            return self._ignored(
                event.type,
                f"Completion for {event.widget_type.value} but {active.type.value} is active",
            )

        try:
            facts = apply_widget_value(
                self._state["facts"], active.type.value, event.value, active.data
            )
        except ValueError as e:
            return self._ignored(event.type, f"Invalid value for {active.type.value}: {e}")

        updates: Dict[str, Any] = {"facts": facts}
        updates.update(
            self._close_active_widget(
                WidgetAction.COMPLETED, event_payload(event).get("value")
            )
        )
        path = self._evaluate(updates, MachineStatus.EVALUATING)
        return self._applied(event.type, path)

    def _on_widget_dismissed(self, event) -> DispatchResult:
        active = self._state["active_widget"]
        if self.status != MachineStatus.WIDGET_ACTIVE or active is None:
            return self._ignored(event.type, "No widget is active")
        if event.widget_type != active.type:
            return self._ignored(
                event.type,
                f"Dismissal for {event.widget_type.value} but {active.type.value} is active",
            )

        # Dismissing does not satisfy the requirement; the next input re-asks
        self._state = {
            **self._state,
            **self._close_active_widget(WidgetAction.DISMISSED),
            "status": MachineStatus.IDLE,
        }
        return self._applied(event.type, [MachineStatus.IDLE])

    def _on_field_cleared(self, event) -> DispatchResult:
        if self.status not in _INPUT_STATES:
            return self._ignored(
                event.type, f"Fact changes are not accepted in {self.status.value}"
            )
        try:
            facts = clear_field(self._state["facts"], event.field)
        except ValueError as e:
            return self._ignored(event.type, str(e))

        path = self._evaluate({"facts": facts}, MachineStatus.EVALUATING)
        return self._applied(event.type, path)

    # -------------------------------------------------------------------------
    # Search events
    # -------------------------------------------------------------------------

    def _on_search_triggered(self, event) -> DispatchResult:
        if self.status != MachineStatus.READY_TO_SEARCH:
            return self._ignored(
                event.type, f"Search can't start from {self.status.value}"
            )

        self._state = {**self._state, "status": MachineStatus.SEARCHING}
        return self._applied(event.type, [MachineStatus.SEARCHING])

    def _on_search_succeeded(self, event) -> DispatchResult:
        if self.status != MachineStatus.SEARCHING:
            return self._ignored(event.type, "No search in progress")

        self._state = {
            **self._state,
            "status": MachineStatus.IDLE,
            "searches_completed": self._state["searches_completed"] + 1,
        }
        return self._applied(event.type, [MachineStatus.IDLE])

    def _on_search_failed(self, event) -> DispatchResult:
        if self.status != MachineStatus.SEARCHING:
            return self._ignored(event.type, "No search in progress")

        # Recoverable: facts and history stay, the user can retry
        logger.warning(f"{self._log}[event={event.type}] Search failed | error={event.error}")
        self._state = {
            **self._state,
            "status": MachineStatus.READY_TO_SEARCH,
            "last_error": event.error,
        }
        return self._applied(event.type, [MachineStatus.READY_TO_SEARCH])

    # -------------------------------------------------------------------------
    # Reset
    # -------------------------------------------------------------------------

    def _on_reset(self, event) -> DispatchResult:
        self._state = create_initial_state(self.session_id, self.config.min_multi_legs)
        return self._applied(event.type, [MachineStatus.IDLE])
