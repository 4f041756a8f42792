"""
Inbound events.

Every input to the orchestrator is one of these models, discriminated on
the `type` field. Field names follow the UI's camelCase wire format via
aliases; Python callers may use either spelling.
"""

from datetime import date
from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, Field, TypeAdapter

from tripflow.facts.schemas import IntentEntities, TripType
from tripflow.widgets.schemas import WidgetRequest, WidgetType


class _Event(BaseModel):
    class Config:
        populate_by_name = True
        frozen = True


class ClassifiedIntent(_Event):
    """
    Output of the external intent classifier.

    The classifier never touches TripFacts; its entities are folded in by
    the orchestrator and its widget suggestions are advisory only.
    """

    entities: IntentEntities = Field(default_factory=IntentEntities)
    widgets_suggested: List[WidgetRequest] = Field(
        default_factory=list, alias="widgetsSuggested"
    )


class UserMessageEvent(_Event):
    type: Literal["USER_MESSAGE"] = "USER_MESSAGE"
    text: str


class IntentReceivedEvent(_Event):
    type: Literal["INTENT_RECEIVED"] = "INTENT_RECEIVED"
    intent: ClassifiedIntent


class CitySelectedEvent(_Event):
    type: Literal["CITY_SELECTED"] = "CITY_SELECTED"
    city: str = Field(min_length=1)
    country: Optional[str] = None
    country_code: Optional[str] = Field(default=None, alias="countryCode")
    field: Literal["from", "to"] = "to"
    leg_index: Optional[int] = Field(default=None, ge=0, alias="legIndex")


class DateSelectedEvent(_Event):
    type: Literal["DATE_SELECTED"] = "DATE_SELECTED"
    # None lets the active widget decide (returnDatePicker -> return)
    date_type: Optional[Literal["departure", "return"]] = Field(
        default=None, alias="dateType"
    )
    selected_date: date = Field(alias="date")
    leg_index: Optional[int] = Field(default=None, ge=0, alias="legIndex")


class DateRangeSelectedEvent(_Event):
    type: Literal["DATE_RANGE_SELECTED"] = "DATE_RANGE_SELECTED"
    departure: date
    return_date: date = Field(alias="returnDate")


class TravelersSelectedEvent(_Event):
    type: Literal["TRAVELERS_SELECTED"] = "TRAVELERS_SELECTED"
    adults: int = Field(ge=0)
    children: int = Field(default=0, ge=0)
    infants: int = Field(default=0, ge=0)


class TripTypeConfirmedEvent(_Event):
    type: Literal["TRIP_TYPE_CONFIRMED"] = "TRIP_TYPE_CONFIRMED"
    trip_type: TripType = Field(alias="tripType")


class WidgetCompletedEvent(_Event):
    type: Literal["WIDGET_COMPLETED"] = "WIDGET_COMPLETED"
    widget_type: WidgetType = Field(alias="widgetType")
    value: Any = None


class WidgetDismissedEvent(_Event):
    type: Literal["WIDGET_DISMISSED"] = "WIDGET_DISMISSED"
    widget_type: WidgetType = Field(alias="widgetType")


class FieldClearedEvent(_Event):
    type: Literal["FIELD_CLEARED"] = "FIELD_CLEARED"
    field: str


class SearchTriggeredEvent(_Event):
    type: Literal["SEARCH_TRIGGERED"] = "SEARCH_TRIGGERED"


class SearchSucceededEvent(_Event):
    type: Literal["SEARCH_SUCCEEDED"] = "SEARCH_SUCCEEDED"


class SearchFailedEvent(_Event):
    type: Literal["SEARCH_FAILED"] = "SEARCH_FAILED"
    error: str


class ResetEvent(_Event):
    type: Literal["RESET"] = "RESET"


PlannerEvent = Annotated[
    Union[
        UserMessageEvent,
        IntentReceivedEvent,
        CitySelectedEvent,
        DateSelectedEvent,
        DateRangeSelectedEvent,
        TravelersSelectedEvent,
        TripTypeConfirmedEvent,
        WidgetCompletedEvent,
        WidgetDismissedEvent,
        FieldClearedEvent,
        SearchTriggeredEvent,
        SearchSucceededEvent,
        SearchFailedEvent,
        ResetEvent,
    ],
    Field(discriminator="type"),
]

# Selection events are typed widget completions; each may close any
# widget of its family
SELECTION_EVENT_WIDGETS: Dict[str, tuple] = {
    "CITY_SELECTED": (WidgetType.CITY_SELECTOR,),
    "DATE_SELECTED": (
        WidgetType.DATE_PICKER,
        WidgetType.RETURN_DATE_PICKER,
        WidgetType.DATE_RANGE_PICKER,
    ),
    "DATE_RANGE_SELECTED": (
        WidgetType.DATE_RANGE_PICKER,
        WidgetType.DATE_PICKER,
        WidgetType.RETURN_DATE_PICKER,
    ),
    "TRAVELERS_SELECTED": (WidgetType.TRAVELERS_SELECTOR,),
    "TRIP_TYPE_CONFIRMED": (WidgetType.TRIP_TYPE_CONFIRM,),
}

_EVENT_ADAPTER = TypeAdapter(PlannerEvent)


def parse_event(payload: Dict[str, Any]) -> Any:
    """
    Validate a raw event payload into its event model.

    Raises:
        pydantic.ValidationError: If the type is unknown or fields are invalid
    """
    return _EVENT_ADAPTER.validate_python(payload)


def event_payload(event: BaseModel) -> Dict[str, Any]:
    """JSON-safe payload of an event, without its type tag."""
    return event.model_dump(mode="json", by_alias=True, exclude={"type"})
