"""Teamup API operation table.

Each client method is one row in this table: an HTTP method, a path template,
the query-string layout, the envelope field holding the result, and the
operation-specific defaults merged into the caller's options.

## API Documentation

https://apidocs.teamup.com/

## Hosts

- API: https://api.teamup.com/{calendarKey}/...
- iCalendar export: https://teamup.com/{calendarKey}/events/{eventId}.ics

## Authentication

- `Teamup-Token` header carries the API key on every request
- `Teamup-Password` header is sent for password-protected calendar links

## Query Parameters

| Parameter | Format | Used by |
|-----------|--------|---------|
| lang | language code (en_GB) | all operations |
| tz | timezone name (UTC) | all operations |
| startDate, endDate | YYYY-M-D, no zero padding | events collection |
| startDate, endDate | ISO string | search |
| subcalendarId[] | repeated, one per id | events collection, search |
| query | free text | search |
| modifiedSince | Unix epoch seconds | modified-since events |
| version, redit | event version, recurrence scope | delete event |

## Response Envelopes

| Resource | Envelope field |
|----------|----------------|
| Calendar configuration | configuration |
| Events | events / event |
| Subcalendars | subcalendars / subcalendar |
| Access keys | keys / key |
| Event deletion | undo_id |

Deleting a subcalendar or access key answers 204 with an empty body.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta, timezone
from enum import Enum
from string import Formatter
from typing import Any
from urllib.parse import quote

# Recurrence scope used when deleting an event without an explicit `redit`.
DEFAULT_RECURRENCE_SCOPE = "single"

SEARCH_WINDOW_DAYS = 7
MODIFIED_SINCE_WINDOW_DAYS = 7


class Host(str, Enum):
    """Which Teamup host an operation targets."""

    API = "api"
    ICS = "ics"


class QueryStyle(str, Enum):
    """Layout of the query string for an operation."""

    BASE = "base"
    DATE_RANGE = "date_range"
    SEARCH = "search"
    MODIFIED_SINCE = "modified_since"
    DELETE_EVENT = "delete_event"


def format_date(value: date) -> str:
    """Format a date as YEAR-MONTH-DAY without zero padding."""
    return f"{value.year}-{value.month}-{value.day}"


def to_epoch_seconds(value: date) -> int:
    """Convert a date or datetime to Unix epoch seconds.

    A plain date is taken as midnight UTC. Naive datetimes are interpreted
    in local time, as `datetime.timestamp()` does.
    """
    if not isinstance(value, datetime):
        value = datetime.combine(value, time.min, tzinfo=timezone.utc)
    return int(value.timestamp())


def _base_params(options: Mapping[str, Any]) -> list[tuple[str, str]]:
    return [("lang", options["lang"]), ("tz", options["timezone"])]


def _subcalendar_params(options: Mapping[str, Any]) -> list[tuple[str, str]]:
    return [("subcalendarId[]", str(sid)) for sid in options.get("subcalendar_ids") or []]


def _date_range_params(options: Mapping[str, Any]) -> list[tuple[str, str]]:
    return (
        _base_params(options)
        + _subcalendar_params(options)
        + [
            ("startDate", format_date(options["start_date"])),
            ("endDate", format_date(options["end_date"])),
        ]
    )


def _search_params(options: Mapping[str, Any]) -> list[tuple[str, str]]:
    return (
        [("query", options["query"])]
        + _base_params(options)
        + [
            ("startDate", options["start_date"].isoformat()),
            ("endDate", options["end_date"].isoformat()),
        ]
        + _subcalendar_params(options)
    )


def _modified_since_params(options: Mapping[str, Any]) -> list[tuple[str, str]]:
    return [("modifiedSince", str(to_epoch_seconds(options["modified_since"])))] + _base_params(
        options
    )


def _delete_event_params(options: Mapping[str, Any]) -> list[tuple[str, str]]:
    return _base_params(options) + [
        ("version", options["version"]),
        ("redit", options["redit"]),
    ]


QUERY_BUILDERS: dict[QueryStyle, Callable[[Mapping[str, Any]], list[tuple[str, str]]]] = {
    QueryStyle.BASE: _base_params,
    QueryStyle.DATE_RANGE: _date_range_params,
    QueryStyle.SEARCH: _search_params,
    QueryStyle.MODIFIED_SINCE: _modified_since_params,
    QueryStyle.DELETE_EVENT: _delete_event_params,
}


def _today() -> date:
    return date.today()


def _days_from_today(days: int) -> Callable[[], date]:
    return lambda: date.today() + timedelta(days=days)


def _modified_since_default() -> datetime:
    return datetime.now(timezone.utc) - timedelta(days=MODIFIED_SINCE_WINDOW_DAYS)


@dataclass(frozen=True)
class Operation:
    """One Teamup API operation.

    Attributes:
        name: Operation name, matching the client method
        method: HTTP method
        path: Path template; placeholders name option fields
        unwrap: Envelope field holding the result, or None for the raw body
        query: Query-string layout
        required: Option fields that must be present
        defaults: Computed defaults for absent option fields
        has_body: Whether `data` is sent as the JSON body
        accepts_shorthand: Whether a bare calendar id may replace the options
        host: Which host serves the operation
        text_response: Return the body as text instead of decoded JSON
    """

    name: str
    method: str
    path: str
    unwrap: str | None = None
    query: QueryStyle = QueryStyle.BASE
    required: tuple[str, ...] = ("calendar",)
    defaults: Mapping[str, Callable[[], Any]] = field(default_factory=dict)
    has_body: bool = False
    accepts_shorthand: bool = False
    host: Host = Host.API
    text_response: bool = False

    @property
    def path_fields(self) -> list[str]:
        """Option fields substituted into the path template."""
        return [name for _, name, _, _ in Formatter().parse(self.path) if name]

    def build_path(self, options: Mapping[str, Any]) -> str:
        """Fill the path template, percent-encoding each segment."""
        return self.path.format(
            **{name: quote(str(options[name]), safe="") for name in self.path_fields}
        )

    def build_query(self, options: Mapping[str, Any]) -> list[tuple[str, str]]:
        """Build ordered query parameters; repeated keys are kept."""
        return QUERY_BUILDERS[self.query](options)


# Calendar

GET_CALENDAR_CONFIGURATION = Operation(
    name="get_calendar_configuration",
    method="GET",
    path="/{calendar}/configuration",
    unwrap="configuration",
    accepts_shorthand=True,
)

# Events

GET_EVENTS_COLLECTION = Operation(
    name="get_events_collection",
    method="GET",
    path="/{calendar}/events",
    unwrap="events",
    query=QueryStyle.DATE_RANGE,
    defaults={
        "subcalendar_ids": list,
        "start_date": _today,
        "end_date": _days_from_today(1),
    },
    accepts_shorthand=True,
)

GET_EVENT = Operation(
    name="get_event",
    method="GET",
    path="/{calendar}/events/{event}",
    unwrap="event",
    required=("calendar", "event"),
    defaults={"icf": lambda: False},
)

GET_EVENT_ICS = Operation(
    name="get_event_ics",
    method="GET",
    path="/{calendar}/events/{event}.ics",
    required=("calendar", "event"),
    host=Host.ICS,
    text_response=True,
)

CREATE_EVENT = Operation(
    name="create_event",
    method="POST",
    path="/{calendar}/events",
    unwrap="event",
    required=("calendar", "data"),
    has_body=True,
)

UPDATE_EVENT = Operation(
    name="update_event",
    method="PUT",
    path="/{calendar}/events/{event}",
    unwrap="event",
    required=("calendar", "event", "data"),
    has_body=True,
)

DELETE_EVENT = Operation(
    name="delete_event",
    method="DELETE",
    path="/{calendar}/events/{event}",
    unwrap="undo_id",
    query=QueryStyle.DELETE_EVENT,
    required=("calendar", "event", "version"),
    defaults={"redit": lambda: DEFAULT_RECURRENCE_SCOPE},
)

GET_MODIFIED_SINCE_EVENTS = Operation(
    name="get_modified_since_events",
    method="GET",
    path="/{calendar}/events",
    unwrap="events",
    query=QueryStyle.MODIFIED_SINCE,
    defaults={"modified_since": _modified_since_default},
)

SEARCH_EVENTS = Operation(
    name="search_events",
    method="GET",
    path="/{calendar}/events",
    unwrap="events",
    query=QueryStyle.SEARCH,
    required=("calendar", "query"),
    defaults={
        "subcalendar_ids": list,
        "start_date": _days_from_today(-SEARCH_WINDOW_DAYS),
        "end_date": _days_from_today(SEARCH_WINDOW_DAYS),
    },
)

GET_EVENT_HISTORY = Operation(
    name="get_event_history",
    method="GET",
    path="/{calendar}/events/{event}/history",
    required=("calendar", "event"),
)

GET_EVENT_AUX = Operation(
    name="get_event_aux",
    method="GET",
    path="/{calendar}/events/{event}/aux",
    required=("calendar", "event"),
)

# Subcalendars

GET_SUBCALENDARS_COLLECTION = Operation(
    name="get_subcalendars_collection",
    method="GET",
    path="/{calendar}/subcalendars",
    unwrap="subcalendars",
    accepts_shorthand=True,
)

GET_SUBCALENDAR = Operation(
    name="get_subcalendar",
    method="GET",
    path="/{calendar}/subcalendars/{subcalendar}",
    unwrap="subcalendar",
    required=("calendar", "subcalendar"),
)

CREATE_SUBCALENDAR = Operation(
    name="create_subcalendar",
    method="POST",
    path="/{calendar}/subcalendars",
    unwrap="subcalendar",
    required=("calendar", "data"),
    has_body=True,
)

UPDATE_SUBCALENDAR = Operation(
    name="update_subcalendar",
    method="PUT",
    path="/{calendar}/subcalendars/{subcalendar}",
    unwrap="subcalendar",
    required=("calendar", "subcalendar", "data"),
    has_body=True,
)

DELETE_SUBCALENDAR = Operation(
    name="delete_subcalendar",
    method="DELETE",
    path="/{calendar}/subcalendars/{subcalendar}",
    required=("calendar", "subcalendar"),
)

# Access keys

GET_ACCESS_KEYS_COLLECTION = Operation(
    name="get_access_keys_collection",
    method="GET",
    path="/{calendar}/keys",
    unwrap="keys",
    accepts_shorthand=True,
)

GET_ACCESS_KEY = Operation(
    name="get_access_key",
    method="GET",
    path="/{calendar}/keys/{access_key}",
    unwrap="key",
    required=("calendar", "access_key"),
)

CREATE_ACCESS_KEY = Operation(
    name="create_access_key",
    method="POST",
    path="/{calendar}/keys",
    unwrap="key",
    required=("calendar", "data"),
    has_body=True,
)

UPDATE_ACCESS_KEY = Operation(
    name="update_access_key",
    method="PUT",
    path="/{calendar}/keys/{access_key}",
    unwrap="key",
    required=("calendar", "access_key", "data"),
    has_body=True,
)

DELETE_ACCESS_KEY = Operation(
    name="delete_access_key",
    method="DELETE",
    path="/{calendar}/keys/{access_key}",
    required=("calendar", "access_key"),
)


OPERATIONS: dict[str, Operation] = {
    operation.name: operation
    for operation in (
        GET_CALENDAR_CONFIGURATION,
        GET_EVENTS_COLLECTION,
        GET_EVENT,
        GET_EVENT_ICS,
        CREATE_EVENT,
        UPDATE_EVENT,
        DELETE_EVENT,
        GET_MODIFIED_SINCE_EVENTS,
        SEARCH_EVENTS,
        GET_EVENT_HISTORY,
        GET_EVENT_AUX,
        GET_SUBCALENDARS_COLLECTION,
        GET_SUBCALENDAR,
        CREATE_SUBCALENDAR,
        UPDATE_SUBCALENDAR,
        DELETE_SUBCALENDAR,
        GET_ACCESS_KEYS_COLLECTION,
        GET_ACCESS_KEY,
        CREATE_ACCESS_KEY,
        UPDATE_ACCESS_KEY,
        DELETE_ACCESS_KEY,
    )
}
