"""Command-line interface for the Teamup client."""

import argparse
import asyncio
import json
import logging
import sys
from dataclasses import asdict
from datetime import date
from typing import Any

from pydantic import ValidationError

from teamup_client.client import TeamupClient
from teamup_client.config import Settings, get_settings
from teamup_client.exceptions import TeamupError

logger = logging.getLogger(__name__)


def _parse_date(value: str) -> date:
    try:
        return date.fromisoformat(value)
    except ValueError:
        raise argparse.ArgumentTypeError(
            f"Invalid date '{value}', expected YYYY-MM-DD"
        ) from None


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser."""
    parser = argparse.ArgumentParser(
        prog="teamup",
        description="Teamup Calendar API client",
    )
    parser.add_argument(
        "--version",
        action="version",
        version="%(prog)s 0.1.0",
    )
    parser.add_argument(
        "--token",
        help="Teamup API key (default: TEAMUP_API_TOKEN)",
    )
    parser.add_argument(
        "--password",
        help="Calendar password (default: TEAMUP_DEFAULT_PASSWORD)",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    subparsers.add_parser("check-token", help="Verify the API key")

    configuration_parser = subparsers.add_parser(
        "configuration", help="Show a calendar's configuration"
    )
    configuration_parser.add_argument("calendar", help="Calendar id")

    # Events
    events_parser = subparsers.add_parser("events", help="List events in a date range")
    events_parser.add_argument("calendar", help="Calendar id")
    events_parser.add_argument("--start", type=_parse_date, help="Start date (YYYY-MM-DD)")
    events_parser.add_argument("--end", type=_parse_date, help="End date (YYYY-MM-DD)")
    events_parser.add_argument(
        "--subcalendar",
        type=int,
        action="append",
        dest="subcalendar_ids",
        help="Only include this subcalendar (repeatable)",
    )

    event_parser = subparsers.add_parser("event", help="Show a single event")
    event_parser.add_argument("calendar", help="Calendar id")
    event_parser.add_argument("event", help="Event id")
    event_parser.add_argument(
        "--ics", action="store_true", help="Print the event in iCalendar format"
    )

    search_parser = subparsers.add_parser("search", help="Search events")
    search_parser.add_argument("calendar", help="Calendar id")
    search_parser.add_argument("query", help="Search text")
    search_parser.add_argument("--start", type=_parse_date, help="Start date (YYYY-MM-DD)")
    search_parser.add_argument("--end", type=_parse_date, help="End date (YYYY-MM-DD)")
    search_parser.add_argument(
        "--subcalendar",
        type=int,
        action="append",
        dest="subcalendar_ids",
        help="Only search this subcalendar (repeatable)",
    )

    modified_parser = subparsers.add_parser(
        "modified", help="List events changed since a date"
    )
    modified_parser.add_argument("calendar", help="Calendar id")
    modified_parser.add_argument(
        "--since", type=_parse_date, help="Look-back date (default: 7 days ago)"
    )

    history_parser = subparsers.add_parser("history", help="Show an event's history")
    history_parser.add_argument("calendar", help="Calendar id")
    history_parser.add_argument("event", help="Event id")

    delete_parser = subparsers.add_parser("delete-event", help="Delete an event")
    delete_parser.add_argument("calendar", help="Calendar id")
    delete_parser.add_argument("event", help="Event id")
    delete_parser.add_argument("--version", required=True, dest="event_version",
                               help="Latest event version")
    delete_parser.add_argument(
        "--redit",
        choices=["single", "future", "all"],
        default="single",
        help="Recurrence scope",
    )

    # Subcalendars and access keys
    subcalendars_parser = subparsers.add_parser("subcalendars", help="List subcalendars")
    subcalendars_parser.add_argument("calendar", help="Calendar id")

    keys_parser = subparsers.add_parser("keys", help="List access keys")
    keys_parser.add_argument("calendar", help="Calendar id")

    return parser


async def run_command(args: argparse.Namespace, client: TeamupClient) -> Any:
    """Run a parsed command against a client."""
    password = {"password": args.password} if args.password else {}

    if args.command == "check-token":
        return asdict(await client.verify_token())
    if args.command == "configuration":
        return await client.get_calendar_configuration(args.calendar, **password)
    if args.command == "events":
        return await client.get_events_collection(
            args.calendar,
            start_date=args.start,
            end_date=args.end,
            subcalendar_ids=args.subcalendar_ids,
            **password,
        )
    if args.command == "event":
        return await client.get_event(
            calendar=args.calendar, event=args.event, icf=args.ics, **password
        )
    if args.command == "search":
        return await client.search_events(
            calendar=args.calendar,
            query=args.query,
            start_date=args.start,
            end_date=args.end,
            subcalendar_ids=args.subcalendar_ids,
            **password,
        )
    if args.command == "modified":
        return await client.get_modified_since_events(
            calendar=args.calendar, modified_since=args.since, **password
        )
    if args.command == "history":
        return await client.get_event_history(
            calendar=args.calendar, event=args.event, **password
        )
    if args.command == "delete-event":
        return await client.delete_event(
            calendar=args.calendar,
            event=args.event,
            version=args.event_version,
            redit=args.redit,
            **password,
        )
    if args.command == "subcalendars":
        return await client.get_subcalendars_collection(args.calendar, **password)
    if args.command == "keys":
        return await client.get_access_keys_collection(args.calendar, **password)
    raise ValueError(f"Unknown command: {args.command}")


async def _execute(args: argparse.Namespace, settings: Settings, token: str) -> Any:
    async with TeamupClient(
        token=token,
        default_password=settings.default_password,
        default_language=settings.default_language,
        default_timezone=settings.default_timezone,
        skip_token_check=True,
        base_url=settings.api_base_url,
        ics_base_url=settings.ics_base_url,
        timeout=settings.timeout,
    ) as client:
        return await run_command(args, client)


def _print_result(result: Any, raw: bool = False) -> None:
    if raw:
        print(result)
    else:
        print(json.dumps(result, indent=2, default=str))


def main(argv: list[str] | None = None) -> int:
    """Main entry point for the CLI."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 0

    try:
        settings = get_settings()
    except ValidationError as e:
        print(f"Invalid configuration: {e}", file=sys.stderr)
        return 2

    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    token = args.token or settings.api_token
    if not token:
        print(
            "No API key given. Pass --token or set TEAMUP_API_TOKEN.",
            file=sys.stderr,
        )
        return 2

    try:
        result = asyncio.run(_execute(args, settings, token))
    except TeamupError as e:
        logger.debug(f"Command '{args.command}' failed", exc_info=True)
        print(f"Error: {e}", file=sys.stderr)
        return 1

    _print_result(result, raw=args.command == "event" and args.ics)

    if args.command == "check-token" and not result["valid"]:
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
