"""Widget types, the append-only widget history and the next-widget resolver."""

from tripflow.widgets.schemas import (
    WidgetAction,
    WidgetHistoryEntry,
    WidgetRequest,
    WidgetType,
)
from tripflow.widgets.history import WidgetHistory
from tripflow.widgets.resolver import (
    build_checklist,
    is_ready,
    missing_fields,
    progress_percent,
    resolve,
)

__all__ = [
    "WidgetAction",
    "WidgetHistoryEntry",
    "WidgetRequest",
    "WidgetType",
    "WidgetHistory",
    "build_checklist",
    "is_ready",
    "missing_fields",
    "progress_percent",
    "resolve",
]
