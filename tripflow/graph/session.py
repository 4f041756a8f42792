"""
Planning session facade.

PlanningSession is the one entry point the UI and satellite services
talk to. It owns a TripPlanningMachine, serializes event delivery through
a FIFO queue, exposes read-only projections and hands a frozen search
snapshot to the search executor when a search is triggered.
"""

import itertools
import logging
import uuid
from collections import deque
from typing import Any, Callable, Deque, Dict, List, Optional, Tuple, Union

from pydantic import BaseModel

from tripflow.facts.schemas import TripFacts
from tripflow.graph.config import DEFAULT_CONFIG, MachineConfig
from tripflow.graph.events import SearchFailedEvent, event_payload, parse_event
from tripflow.graph.machine import TripPlanningMachine
from tripflow.graph.schemas import DispatchResult, PlanningStepInfo, SessionSnapshot
from tripflow.graph.state import MachineStatus
from tripflow.graph.steps import planning_steps
from tripflow.shared.contracts.search_request import SearchRequestV1
from tripflow.shared.logging.event_logger import (
    SessionEventLogger,
    get_or_create_logger,
    remove_logger,
)
from tripflow.widgets.history import WidgetHistory
from tripflow.widgets.resolver import missing_fields, progress_percent
from tripflow.widgets.schemas import WidgetHistoryEntry, WidgetRequest, WidgetType


logger = logging.getLogger(__name__)

SnapshotListener = Callable[[SessionSnapshot], None]
SearchExecutor = Callable[[SearchRequestV1], None]


class PlanningSession:
    """
    One planning conversation.

    Events may arrive from several sources (chat stream, widgets, search
    results). submit() queues them and drains the queue one event at a
    time; an event submitted while another is being processed, e.g. by a
    listener or by the search executor, runs after it, never inside it.
    """

    def __init__(
        self,
        session_id: Optional[str] = None,
        config: Optional[MachineConfig] = None,
        search_executor: Optional[SearchExecutor] = None,
    ):
        self.session_id = session_id or str(uuid.uuid4())
        self.config = config or DEFAULT_CONFIG
        self._machine = TripPlanningMachine(self.session_id, self.config)
        self._search_executor = search_executor
        self._listeners: List[SnapshotListener] = []

        self._queue: Deque[Tuple[int, BaseModel]] = deque()
        self._tickets = itertools.count(1)
        self._draining = False

        self._event_logger: Optional[SessionEventLogger] = None
        if self.config.event_log_dir:
            self._event_logger = get_or_create_logger(
                self.session_id, self.config.event_log_dir
            )

        self._log = f"[session={self.session_id}] [graph=orchestrator] [facade=session] "
        logger.info(f"{self._log}Session opened")

    # -------------------------------------------------------------------------
    # Event submission
    # -------------------------------------------------------------------------

    def submit(self, event: Union[BaseModel, Dict[str, Any]]) -> Optional[DispatchResult]:
        """
        Queue an event and drain the queue.

        Args:
            event: An event model, or a raw payload with a "type" field

        Returns:
            The event's DispatchResult, or None when the event was queued
            behind one that is still being processed (it runs right after)

        Raises:
            pydantic.ValidationError: If a raw payload is not a valid event
        """
        if isinstance(event, dict):
            event = parse_event(event)

        ticket = next(self._tickets)
        self._queue.append((ticket, event))

        if self._draining:
            logger.info(
                f"{self._log}Queued {event.type} behind in-flight event | "
                f"queue={len(self._queue)}"
            )
            return None
        return self._drain(ticket)

    def _drain(self, wanted: int) -> Optional[DispatchResult]:
        result: Optional[DispatchResult] = None
        self._draining = True
        try:
            while self._queue:
                ticket, event = self._queue.popleft()
                try:
                    outcome = self._process(event)
                except Exception as e:
                    # The caller's own event propagates; queued ones have no caller
                    if ticket == wanted:
                        raise
                    logger.exception(f"{self._log}Queued {event.type} failed: {e}")
                    continue
                if ticket == wanted:
                    result = outcome
        finally:
            self._draining = False
            if self._queue:
                logger.warning(
                    f"{self._log}Dropping {len(self._queue)} queued event(s) "
                    f"after a failed dispatch"
                )
                self._queue.clear()
        return result

    def _process(self, event: BaseModel) -> DispatchResult:
        result = self._machine.dispatch(event)

        if self._event_logger is not None:
            self._event_logger.log_event(
                event_type=result.event_type,
                status=result.status,
                state=result.state.value,
                path=[s.value for s in result.path],
                reason=result.reason,
                payload=event_payload(event),
            )

        if not result.applied:
            return result

        if result.event_type == "SEARCH_TRIGGERED":
            self._start_search()
        self._notify()
        return result

    def _start_search(self) -> None:
        if self._search_executor is None:
            logger.info(f"{self._log}Search triggered | no executor registered")
            return

        request = self.search_request()
        try:
            self._search_executor(request)
        except Exception as e:
            # The executor failing counts as a failed search
            logger.exception(f"{self._log}Search executor raised: {e}")
            self._queue.append((next(self._tickets), SearchFailedEvent(error=str(e))))

    def _notify(self) -> None:
        if not self._listeners:
            return
        snapshot = self.snapshot()
        for listener in list(self._listeners):
            try:
                listener(snapshot)
            except Exception as e:
                logger.exception(f"{self._log}Listener {listener!r} failed: {e}")

    def subscribe(self, listener: SnapshotListener) -> Callable[[], None]:
        """
        Register a read-only observer, called after every applied event.

        Returns:
            Callable that removes the listener
        """
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def record_api_timing(
        self,
        endpoint: str,
        duration_ms: float,
        success: bool = True,
        error: Optional[str] = None,
    ) -> None:
        """Forward API timing to the event log, when one is enabled."""
        if self._event_logger is not None:
            self._event_logger.log_api_timing(endpoint, duration_ms, success, error)

    def close(self) -> None:
        """End the session and release its event logger."""
        self._listeners.clear()
        self._queue.clear()
        if self._event_logger is not None:
            remove_logger(self.session_id)
            self._event_logger = None
        logger.info(f"{self._log}Session closed")

    # -------------------------------------------------------------------------
    # Projections
    # -------------------------------------------------------------------------

    @property
    def current_state(self) -> MachineStatus:
        return self._machine.status

    @property
    def active_widget(self) -> Optional[WidgetRequest]:
        return self._machine.active_widget

    @property
    def is_ready_to_search(self) -> bool:
        return self._machine.status == MachineStatus.READY_TO_SEARCH

    @property
    def missing_fields(self) -> List[str]:
        return missing_fields(self._machine.facts, self.config.min_multi_legs)

    @property
    def progress_percent(self) -> int:
        return progress_percent(self._machine.facts, self.config.min_multi_legs)

    @property
    def history(self) -> List[WidgetHistoryEntry]:
        return list(self._machine.history.entries)

    @property
    def last_error(self) -> Optional[str]:
        return self._machine.last_error

    @property
    def facts(self) -> TripFacts:
        """Detached copy; writing to it has no effect on the session."""
        return self._machine.facts.model_copy(deep=True)

    @property
    def planning_steps(self) -> List[PlanningStepInfo]:
        return planning_steps(
            self._machine.facts,
            self._machine.searches_completed,
            self.config.min_multi_legs,
        )

    def history_summary(self) -> Dict[str, Dict[str, Any]]:
        return self._machine.history.summary()

    def has_seen(self, widget_type: WidgetType) -> bool:
        return self._machine.history.has_seen(widget_type)

    @property
    def widget_history(self) -> WidgetHistory:
        return self._machine.history

    def search_request(self) -> SearchRequestV1:
        return SearchRequestV1.from_facts(self.session_id, self._machine.facts)

    def snapshot(self) -> SessionSnapshot:
        return SessionSnapshot(
            session_id=self.session_id,
            current_state=self.current_state,
            active_widget=self.active_widget,
            is_ready_to_search=self.is_ready_to_search,
            missing_fields=self.missing_fields,
            progress_percent=self.progress_percent,
            history=self.history,
            last_error=self.last_error,
            facts=self.facts,
            planning_steps=self.planning_steps,
        )
