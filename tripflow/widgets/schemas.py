"""
Schemas for chat widgets.

A WidgetRequest is the engine asking the UI to show one widget now; a
WidgetHistoryEntry is one immutable line of the audit trail.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field


class WidgetType(str, Enum):
    """Widgets the engine can request."""

    CITY_SELECTOR = "citySelector"
    DATE_PICKER = "datePicker"
    DATE_RANGE_PICKER = "dateRangePicker"
    RETURN_DATE_PICKER = "returnDatePicker"
    TRAVELERS_SELECTOR = "travelersSelector"
    TRIP_TYPE_CONFIRM = "tripTypeConfirm"


class WidgetAction(str, Enum):
    SHOWN = "shown"
    COMPLETED = "completed"
    DISMISSED = "dismissed"


class WidgetRequest(BaseModel):
    """The one widget the engine wants on screen."""

    type: WidgetType = Field(description="Widget to display")
    reason: str = Field(description="Why this widget is needed")
    data: Optional[Dict[str, Any]] = Field(
        default=None, description="Opaque widget parameters (field, legIndex, ...)"
    )


class WidgetHistoryEntry(BaseModel):
    """One line of the widget audit trail. Never mutated once written."""

    type: WidgetType
    action: WidgetAction
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    value: Optional[Any] = None

    class Config:
        frozen = True
