"""
Append-only widget history.

The orchestrator stores history as a plain list of WidgetHistoryEntry so
LangGraph can append to it; WidgetHistory is the read API on top of that
list used by the session facade and by suggestion services. It is purely
observational: nothing here feeds back into the resolver.
"""

from typing import Any, Dict, Iterable, Iterator, List, Optional, Tuple

from tripflow.widgets.schemas import WidgetAction, WidgetHistoryEntry, WidgetType


def make_entry(
    widget_type: WidgetType,
    action: WidgetAction,
    value: Optional[Any] = None,
) -> WidgetHistoryEntry:
    """Build a timestamped history entry."""
    return WidgetHistoryEntry(type=widget_type, action=action, value=value)


class WidgetHistory:
    """Read/append view over a sequence of history entries."""

    def __init__(self, entries: Optional[Iterable[WidgetHistoryEntry]] = None):
        self._entries: List[WidgetHistoryEntry] = list(entries or [])

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[WidgetHistoryEntry]:
        return iter(self._entries)

    @property
    def entries(self) -> Tuple[WidgetHistoryEntry, ...]:
        return tuple(self._entries)

    def append(self, entry: WidgetHistoryEntry) -> None:
        self._entries.append(entry)

    def _count(self, widget_type: WidgetType, action: WidgetAction) -> int:
        return sum(
            1 for e in self._entries if e.type == widget_type and e.action == action
        )

    def count_shown(self, widget_type: WidgetType) -> int:
        return self._count(widget_type, WidgetAction.SHOWN)

    def count_completed(self, widget_type: WidgetType) -> int:
        return self._count(widget_type, WidgetAction.COMPLETED)

    def count_dismissed(self, widget_type: WidgetType) -> int:
        return self._count(widget_type, WidgetAction.DISMISSED)

    def last_action(self, widget_type: WidgetType) -> Optional[WidgetAction]:
        """Most recent action recorded for a widget type, or None."""
        for entry in reversed(self._entries):
            if entry.type == widget_type:
                return entry.action
        return None

    def has_seen(self, widget_type: WidgetType) -> bool:
        """Whether the widget has been shown at least once this session."""
        return self.count_shown(widget_type) > 0

    def summary(self) -> Dict[str, Dict[str, Any]]:
        """
        Per-widget counters for suggestion and analytics consumers.

        Returns:
            {widget_type: {"shown", "completed", "dismissed", "last_action"}}
            for every widget type that appears in the history
        """
        result: Dict[str, Dict[str, Any]] = {}
        for entry in self._entries:
            key = entry.type.value
            if key not in result:
                result[key] = {
                    "shown": 0,
                    "completed": 0,
                    "dismissed": 0,
                    "last_action": None,
                }
            result[key][entry.action.value] += 1
            result[key]["last_action"] = entry.action.value
        return result
