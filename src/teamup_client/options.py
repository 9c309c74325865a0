"""Per-call options: default merging and kind validation.

Every public client method accepts a loosely typed mapping of options (or, for
calendar-level reads, a bare calendar id). Before a request is built the
options go through two steps:

1. `normalize_options()` copies the caller's mapping, applies keyword
   overrides, fills password/language/timezone from the client defaults and
   then the operation's own computed defaults (date windows, recurrence scope).
2. `validate_options()` checks each recognized field against `FIELD_KINDS`
   with a strict pydantic `TypeAdapter` per kind.

## Field Kinds

| Kind | Accepted Python values |
|------|------------------------|
| string | `str` |
| boolean | `bool` |
| integer | `int` (a `bool` is rejected) |
| date | `datetime.date` and `datetime.datetime` |
| object | `dict` with string keys |
| list[int] | `list` or `tuple` of `int` |

Fields are checked in the declaration order of `FIELD_KINDS`, so when several
fields are wrong the first one in that table is reported. Absent fields and
fields set to `None` are skipped.
"""

from __future__ import annotations

from collections.abc import Mapping
from datetime import date, datetime
from enum import Enum
from typing import TYPE_CHECKING, Any

from pydantic import (
    ConfigDict,
    StrictBool,
    StrictInt,
    StrictStr,
    TypeAdapter,
    ValidationError,
)

from teamup_client.exceptions import (
    ArgumentTypeError,
    MissingFieldError,
    TypeMismatchError,
)

if TYPE_CHECKING:
    from teamup_client.config import ClientConfig
    from teamup_client.operations import Operation


class FieldKind(str, Enum):
    """Expected kind of an option value."""

    STRING = "string"
    BOOLEAN = "boolean"
    INTEGER = "integer"
    DATE = "date"
    OBJECT = "object"
    INTEGER_LIST = "list[int]"


FIELD_KINDS: dict[str, FieldKind] = {
    # Calendar access
    "calendar": FieldKind.STRING,
    "password": FieldKind.STRING,
    "lang": FieldKind.STRING,
    "timezone": FieldKind.STRING,
    # Event listing and event data
    "subcalendar_ids": FieldKind.INTEGER_LIST,
    "start_date": FieldKind.DATE,
    "end_date": FieldKind.DATE,
    "event": FieldKind.STRING,
    "icf": FieldKind.BOOLEAN,
    "all_day": FieldKind.BOOLEAN,
    "title": FieldKind.STRING,
    "who": FieldKind.STRING,
    "location": FieldKind.STRING,
    "notes": FieldKind.STRING,
    "rrule": FieldKind.STRING,
    "data": FieldKind.OBJECT,
    "redit": FieldKind.STRING,
    "version": FieldKind.STRING,
    "modified_since": FieldKind.DATE,
    "query": FieldKind.STRING,
    # Subcalendars
    "subcalendar": FieldKind.STRING,
    "name": FieldKind.STRING,
    "active": FieldKind.BOOLEAN,
    "color": FieldKind.INTEGER,
    "overlap": FieldKind.BOOLEAN,
    # Access keys
    "access_key": FieldKind.STRING,
    "admin": FieldKind.BOOLEAN,
    "share_type": FieldKind.STRING,
    "role": FieldKind.STRING,
    "subcalendar_permissions": FieldKind.OBJECT,
    "require_password": FieldKind.BOOLEAN,
}


KIND_ADAPTERS: dict[FieldKind, TypeAdapter[Any]] = {
    FieldKind.STRING: TypeAdapter(StrictStr),
    FieldKind.BOOLEAN: TypeAdapter(StrictBool),
    FieldKind.INTEGER: TypeAdapter(StrictInt),
    # Strict date rejects datetime instances, so both are listed
    FieldKind.DATE: TypeAdapter(datetime | date, config=ConfigDict(strict=True)),
    FieldKind.OBJECT: TypeAdapter(dict[str, Any], config=ConfigDict(strict=True)),
    FieldKind.INTEGER_LIST: TypeAdapter(list[StrictInt]),
}


def describe_kind(value: Any) -> str:
    """Name the kind of a value the way validation errors report it."""
    if isinstance(value, bool):
        return FieldKind.BOOLEAN.value
    if isinstance(value, int):
        return FieldKind.INTEGER.value
    if isinstance(value, str):
        return FieldKind.STRING.value
    if isinstance(value, date):
        return FieldKind.DATE.value
    if isinstance(value, dict):
        return FieldKind.OBJECT.value
    if isinstance(value, (list, tuple)):
        item_kinds = sorted({describe_kind(item) for item in value})
        return f"list[{'|'.join(item_kinds)}]" if item_kinds else "list"
    return type(value).__name__


def matches_kind(value: Any, kind: FieldKind) -> bool:
    """Check a single value against a field kind."""
    try:
        KIND_ADAPTERS[kind].validate_python(value)
    except ValidationError:
        return False
    return True


def validate_options(options: Mapping[str, Any]) -> None:
    """Validate recognized fields of an options mapping.

    Args:
        options: Options (or a nested data payload) to check

    Raises:
        TypeMismatchError: On the first field, in `FIELD_KINDS` order,
            whose value has the wrong kind
    """
    for field, kind in FIELD_KINDS.items():
        value = options.get(field)
        if value is None:
            continue
        try:
            KIND_ADAPTERS[kind].validate_python(value)
        except ValidationError as e:
            raise TypeMismatchError(field, kind.value, describe_kind(value)) from e


def _is_missing(value: Any) -> bool:
    return value is None or value == ""


def normalize_options(
    value: str | Mapping[str, Any] | None,
    operation: Operation,
    config: ClientConfig,
    overrides: Mapping[str, Any] | None = None,
) -> dict[str, Any]:
    """Build the complete, validated options for one call.

    Args:
        value: Calendar id shorthand, an options mapping, or None
        operation: The operation the options are for
        config: Client configuration providing default password,
            language and timezone
        overrides: Keyword options applied on top of `value`

    Returns:
        A new dict; the caller's mapping is never modified

    Raises:
        ArgumentTypeError: If `value` is not an accepted type
        TypeMismatchError: If a recognized field has the wrong kind
        MissingFieldError: If a required field is absent
    """
    if value is None:
        options: dict[str, Any] = {}
    elif isinstance(value, str):
        if not operation.accepts_shorthand:
            raise ArgumentTypeError("mapping", value)
        options = {"calendar": value}
    elif isinstance(value, Mapping):
        options = dict(value)
    else:
        expected = "string or mapping" if operation.accepts_shorthand else "mapping"
        raise ArgumentTypeError(expected, value)

    if overrides:
        options.update(overrides)

    client_defaults = {
        "password": config.default_password,
        "lang": config.default_language,
        "timezone": config.default_timezone,
    }
    for field, default in client_defaults.items():
        if options.get(field) is None:
            options[field] = default

    for field, factory in operation.defaults.items():
        if options.get(field) is None:
            options[field] = factory()

    validate_options(options)

    for field in operation.required:
        if _is_missing(options.get(field)):
            raise MissingFieldError(field, operation.name)

    if operation.has_body:
        validate_options(options["data"])

    return options
