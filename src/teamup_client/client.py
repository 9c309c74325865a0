"""Async client for the Teamup Calendar API.

Every method follows the same path: normalize the caller's options against
the client defaults, validate field kinds, build one HTTP request from the
operation table, send it, and unwrap the response envelope.

## Usage

```python
async with TeamupClient(token="YOUR_API_KEY") as client:
    config = await client.get_calendar_configuration("ks1234567890")
    events = await client.get_events_collection(
        "ks1234567890",
        start_date=date(2026, 1, 1),
        end_date=date(2026, 1, 31),
        subcalendar_ids=[111, 222],
    )
```

## Error Handling

- Bad options raise `OptionsError` subclasses before anything is sent
- Network failures raise `TransportError`
- Responses with status >= 400 raise `RemoteError`, except deletes, which
  return the decoded error body

No request is retried.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

import httpx
from pydantic_core import PydanticSerializationError, to_jsonable_python

from teamup_client.config import (
    DEFAULT_API_BASE_URL,
    DEFAULT_ICS_BASE_URL,
    DEFAULT_LANGUAGE,
    DEFAULT_TIMEOUT,
    DEFAULT_TIMEZONE,
    ClientConfig,
    Settings,
    get_settings,
)
from teamup_client.envelope import decode_json, unwrap_envelope
from teamup_client.exceptions import (
    ConfigurationError,
    RemoteError,
    TransportError,
    TypeMismatchError,
)
from teamup_client.operations import (
    CREATE_ACCESS_KEY,
    CREATE_EVENT,
    CREATE_SUBCALENDAR,
    DELETE_ACCESS_KEY,
    DELETE_EVENT,
    DELETE_SUBCALENDAR,
    GET_ACCESS_KEY,
    GET_ACCESS_KEYS_COLLECTION,
    GET_CALENDAR_CONFIGURATION,
    GET_EVENT,
    GET_EVENT_AUX,
    GET_EVENT_HISTORY,
    GET_EVENT_ICS,
    GET_EVENTS_COLLECTION,
    GET_MODIFIED_SINCE_EVENTS,
    GET_SUBCALENDAR,
    GET_SUBCALENDARS_COLLECTION,
    SEARCH_EVENTS,
    UPDATE_ACCESS_KEY,
    UPDATE_EVENT,
    UPDATE_SUBCALENDAR,
    Host,
    Operation,
)
from teamup_client.options import normalize_options

logger = logging.getLogger(__name__)

TOKEN_HEADER = "Teamup-Token"
PASSWORD_HEADER = "Teamup-Password"
CHECK_ACCESS_PATH = "/check-access"
USER_AGENT = "teamup-client/0.1.0"

Options = Mapping[str, Any]

CONSTRUCTION_FIELDS = (
    "token",
    "default_password",
    "default_language",
    "default_timezone",
    "skip_token_check",
)


@dataclass(frozen=True)
class TokenCheckResult:
    """Outcome of verifying the API token."""

    valid: bool
    status_code: int
    reason: str


class TeamupClient:
    """Client for the Teamup Calendar API.

    Methods accept an options mapping and/or keyword options; keywords win
    over the mapping. Calendar-level reads also accept a bare calendar id.
    Password, language and timezone fall back to the client defaults.

    Example:
        ```python
        client = TeamupClient(token="YOUR_API_KEY", default_timezone="Europe/Oslo")

        event = await client.create_event(
            calendar="ks1234567890",
            data={"title": "Standup", "subcalendar_ids": [111]},
        )
        undo_id = await client.delete_event(
            calendar="ks1234567890", event=event["id"], version=event["version"]
        )
        await client.aclose()
        ```
    """

    def __init__(
        self,
        token: str,
        default_password: str | None = None,
        default_language: str = DEFAULT_LANGUAGE,
        default_timezone: str = DEFAULT_TIMEZONE,
        skip_token_check: bool = False,
        *,
        base_url: str = DEFAULT_API_BASE_URL,
        ics_base_url: str = DEFAULT_ICS_BASE_URL,
        timeout: float = DEFAULT_TIMEOUT,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """Initialize the client.

        No network I/O happens here. The token check runs when the client
        is entered as an async context manager, or on `verify_token()`.

        Args:
            token: Teamup API key
            default_password: Password sent when a call supplies none
            default_language: Language used when a call supplies none
            default_timezone: Timezone used when a call supplies none
            skip_token_check: Don't verify the token on context entry
            base_url: API host
            ics_base_url: Host serving iCalendar exports
            timeout: Request timeout in seconds
            transport: Custom httpx transport (mainly for tests)

        Raises:
            ConfigurationError: If token is missing or not a string
        """
        if not token or not isinstance(token, str):
            raise ConfigurationError(
                "Please provide a valid (string) API key in your initialization."
            )

        self.config = ClientConfig(
            token=token,
            default_password=default_password,
            default_language=default_language,
            default_timezone=default_timezone,
        )
        self.skip_token_check = skip_token_check
        self.base_url = base_url.rstrip("/")
        self.ics_base_url = ics_base_url.rstrip("/")
        self.timeout = timeout
        self.token_check: TokenCheckResult | None = None

        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    @classmethod
    def from_options(cls, options: Mapping[str, Any], **kwargs: Any) -> TeamupClient:
        """Create a client from a construction mapping.

        Only `token`, `default_password`, `default_language`,
        `default_timezone` and `skip_token_check` are read; other keys are
        ignored. Keyword arguments (base_url, transport, ...) pass through.
        """
        if not isinstance(options, Mapping):
            raise ConfigurationError("Client options must be a mapping")
        recognized = {k: options[k] for k in CONSTRUCTION_FIELDS if k in options}
        if "token" not in recognized:
            raise ConfigurationError(
                "Please provide a valid (string) API key in your initialization."
            )
        return cls(**recognized, **kwargs)

    @classmethod
    def from_settings(
        cls, settings: Settings | None = None, **kwargs: Any
    ) -> TeamupClient:
        """Create a client from TEAMUP_* settings."""
        settings = settings or get_settings()
        if not settings.token_configured:
            raise ConfigurationError(
                "No API key configured. Set the TEAMUP_API_TOKEN environment variable."
            )
        return cls(
            token=settings.api_token,
            default_password=settings.default_password,
            default_language=settings.default_language,
            default_timezone=settings.default_timezone,
            skip_token_check=settings.skip_token_check,
            base_url=settings.api_base_url,
            ics_base_url=settings.ics_base_url,
            timeout=settings.timeout,
            **kwargs,
        )

    async def __aenter__(self) -> TeamupClient:
        """Enter async context manager, verifying the token unless skipped."""
        self._get_client()
        if not self.skip_token_check:
            try:
                await self.verify_token()
            except TransportError as e:
                logger.warning(f"Token check could not be completed: {e}")
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        """Exit async context manager."""
        await self.aclose()

    async def aclose(self) -> None:
        """Close the underlying HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None

    def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=self.timeout,
                headers=self._get_default_headers(),
                transport=self._transport,
            )
        return self._client

    def _get_default_headers(self) -> dict[str, str]:
        """Get headers sent with every request."""
        return {
            TOKEN_HEADER: self.config.token,
            "Accept": "application/json",
            "User-Agent": USER_AGENT,
        }

    async def _send(
        self,
        method: str,
        url: str,
        params: list[tuple[str, str]] | None = None,
        headers: dict[str, str] | None = None,
        json: Any = None,
    ) -> httpx.Response:
        """Send one request, converting httpx failures to TransportError."""
        logger.debug(f"{method} {url}")
        try:
            return await self._get_client().request(
                method, url, params=params, headers=headers, json=json
            )
        except httpx.HTTPError as e:
            raise TransportError(f"{method} {url} failed: {e}") from e

    async def verify_token(self, raise_on_failure: bool = False) -> TokenCheckResult:
        """Check the API key against Teamup's check-access endpoint.

        Args:
            raise_on_failure: Raise instead of returning an invalid result

        Returns:
            TokenCheckResult, also stored on `self.token_check`

        Raises:
            RemoteError: If the token is rejected and raise_on_failure is set
            TransportError: If the request could not be made
        """
        response = await self._send("GET", f"{self.base_url}{CHECK_ACCESS_PATH}")
        result = TokenCheckResult(
            valid=response.status_code == 200,
            status_code=response.status_code,
            reason=response.reason_phrase,
        )
        self.token_check = result

        if not result.valid:
            message = (
                f"Bad API key provided. Received status code {result.status_code}; "
                f'"{result.reason}"'
            )
            if raise_on_failure:
                raise RemoteError(
                    message,
                    status_code=result.status_code,
                    reason=result.reason,
                    response_body=response.text,
                )
            logger.warning(message)

        return result

    async def _call(
        self,
        operation: Operation,
        options: str | Options | None,
        overrides: Options,
    ) -> Any:
        normalized = normalize_options(options, operation, self.config, overrides)
        return await self._dispatch(operation, normalized)

    async def _dispatch(self, operation: Operation, options: Options) -> Any:
        """Build and send the request for an operation, then unwrap it."""
        base_url = self.ics_base_url if operation.host is Host.ICS else self.base_url
        url = f"{base_url}{operation.build_path(options)}"

        headers = {}
        if options.get("password"):
            headers[PASSWORD_HEADER] = options["password"]

        body = None
        if operation.has_body:
            try:
                body = to_jsonable_python(options["data"])
            except PydanticSerializationError as e:
                raise TypeMismatchError("data", "object", "unserializable value") from e

        response = await self._send(
            operation.method,
            url,
            params=operation.build_query(options),
            headers=headers,
            json=body,
        )

        if operation.method == "DELETE":
            # Any status other than 204 hands back the decoded body, errors included
            if response.status_code == 204:
                return True
            if response.status_code >= 400:
                logger.warning(
                    f"{operation.name} answered {response.status_code}: {response.text}"
                )
            return unwrap_envelope(decode_json(response), operation.unwrap)

        if response.status_code >= 400:
            logger.error(
                f"{operation.name} failed with {response.status_code}: {response.text}"
            )
            raise RemoteError(
                f"API request failed: {response.status_code}",
                status_code=response.status_code,
                reason=response.reason_phrase,
                response_body=response.text,
            )

        if operation.text_response:
            return response.text

        return unwrap_envelope(decode_json(response), operation.unwrap)

    # Calendar

    async def get_calendar_configuration(
        self, calendar_or_options: str | Options | None = None, **options: Any
    ) -> Any:
        """Fetch a calendar's configuration.

        Args:
            calendar_or_options: Calendar id, or options with `calendar`
                and optionally `password`, `lang`, `timezone`

        Returns:
            The calendar configuration
        """
        return await self._call(GET_CALENDAR_CONFIGURATION, calendar_or_options, options)

    # Events

    async def get_events_collection(
        self, calendar_or_options: str | Options | None = None, **options: Any
    ) -> Any:
        """Fetch events in a date range.

        Args:
            calendar_or_options: Calendar id, or options with `calendar` and
                optionally `subcalendar_ids` (list of int), `start_date` and
                `end_date` (dates, default today and tomorrow)

        Returns:
            List of events
        """
        return await self._call(GET_EVENTS_COLLECTION, calendar_or_options, options)

    async def get_event(self, options: Options | None = None, **fields: Any) -> Any:
        """Fetch a single event by id.

        Args:
            options: Requires `calendar` and `event`. With `icf=True` the
                event is fetched from the iCalendar host instead.

        Returns:
            The event, or the event as iCalendar text when `icf` is set
        """
        normalized = normalize_options(options, GET_EVENT, self.config, fields)
        if normalized["icf"]:
            return await self._dispatch(GET_EVENT_ICS, normalized)
        return await self._dispatch(GET_EVENT, normalized)

    async def get_event_ics(self, options: Options | None = None, **fields: Any) -> str:
        """Fetch a single event in iCalendar format."""
        return await self.get_event(options, **{**fields, "icf": True})

    async def create_event(self, options: Options | None = None, **fields: Any) -> Any:
        """Create an event.

        Args:
            options: Requires `calendar` and `data`. `data` supports
                `subcalendar_ids`, `start_dt`, `end_dt`, `all_day`, `title`,
                `who`, `location`, `notes` and `rrule`; see
                https://apidocs.teamup.com/#event-data-structure

        Returns:
            The created event
        """
        return await self._call(CREATE_EVENT, options, fields)

    async def update_event(self, options: Options | None = None, **fields: Any) -> Any:
        """Update an event. Requires `calendar`, `event` and `data`."""
        return await self._call(UPDATE_EVENT, options, fields)

    async def delete_event(self, options: Options | None = None, **fields: Any) -> Any:
        """Delete an event.

        Args:
            options: Requires `calendar`, `event` and `version` (the event's
                latest version string). `redit` sets the recurrence scope
                (single, future or all) and defaults to single.

        Returns:
            The undo id, or True if the API answered 204; for any other
            status, including errors, the decoded response body
        """
        return await self._call(DELETE_EVENT, options, fields)

    async def get_modified_since_events(
        self, options: Options | None = None, **fields: Any
    ) -> Any:
        """Fetch events changed since `modified_since` (default: seven days ago).

        Teamup only looks back up to 30 days.
        """
        return await self._call(GET_MODIFIED_SINCE_EVENTS, options, fields)

    async def search_events(self, options: Options | None = None, **fields: Any) -> Any:
        """Search events by free text.

        Args:
            options: Requires `calendar` and `query`. `start_date` and
                `end_date` default to seven days before and after today;
                `subcalendar_ids` narrows the search.

        Returns:
            List of matching events
        """
        return await self._call(SEARCH_EVENTS, options, fields)

    async def get_event_history(self, options: Options | None = None, **fields: Any) -> Any:
        """Fetch an event's change history."""
        return await self._call(GET_EVENT_HISTORY, options, fields)

    async def get_event_aux(self, options: Options | None = None, **fields: Any) -> Any:
        """Fetch an event's auxiliary information (comments, attachments)."""
        return await self._call(GET_EVENT_AUX, options, fields)

    # Subcalendars

    async def get_subcalendars_collection(
        self, calendar_or_options: str | Options | None = None, **options: Any
    ) -> Any:
        """Fetch all subcalendars of a calendar."""
        return await self._call(GET_SUBCALENDARS_COLLECTION, calendar_or_options, options)

    async def get_subcalendar(self, options: Options | None = None, **fields: Any) -> Any:
        """Fetch a subcalendar. Requires `calendar` and `subcalendar`."""
        return await self._call(GET_SUBCALENDAR, options, fields)

    async def create_subcalendar(self, options: Options | None = None, **fields: Any) -> Any:
        """Create a subcalendar.

        Args:
            options: Requires `calendar` and `data`. `data` supports `name`,
                `active`, `color` and `overlap`.

        Returns:
            The created subcalendar
        """
        return await self._call(CREATE_SUBCALENDAR, options, fields)

    async def update_subcalendar(self, options: Options | None = None, **fields: Any) -> Any:
        """Update a subcalendar. Requires `calendar`, `subcalendar` and `data`."""
        return await self._call(UPDATE_SUBCALENDAR, options, fields)

    async def delete_subcalendar(self, options: Options | None = None, **fields: Any) -> Any:
        """Delete a subcalendar.

        Returns:
            True on 204, otherwise the decoded response body
        """
        return await self._call(DELETE_SUBCALENDAR, options, fields)

    # Access keys

    async def get_access_keys_collection(
        self, calendar_or_options: str | Options | None = None, **options: Any
    ) -> Any:
        """Fetch all access keys of a calendar."""
        return await self._call(GET_ACCESS_KEYS_COLLECTION, calendar_or_options, options)

    async def get_access_key(self, options: Options | None = None, **fields: Any) -> Any:
        """Fetch an access key. Requires `calendar` and `access_key`."""
        return await self._call(GET_ACCESS_KEY, options, fields)

    async def create_access_key(self, options: Options | None = None, **fields: Any) -> Any:
        """Create an access key.

        Args:
            options: Requires `calendar` and `data`. `data` supports `name`,
                `active`, `admin`, `share_type`, `role`,
                `subcalendar_permissions` and `require_password`.

        Returns:
            The created access key
        """
        return await self._call(CREATE_ACCESS_KEY, options, fields)

    async def update_access_key(self, options: Options | None = None, **fields: Any) -> Any:
        """Update an access key. Requires `calendar`, `access_key` and `data`."""
        return await self._call(UPDATE_ACCESS_KEY, options, fields)

    async def delete_access_key(self, options: Options | None = None, **fields: Any) -> Any:
        """Delete an access key.

        Returns:
            True on 204, otherwise the decoded response body
        """
        return await self._call(DELETE_ACCESS_KEY, options, fields)
