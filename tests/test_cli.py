"""Tests for the command-line interface."""

import json
from datetime import date

import httpx
import pytest

from teamup_client import cli
from teamup_client.client import TeamupClient


@pytest.fixture
def mock_api(monkeypatch, sent_requests):
    """Route CLI clients through a mock transport; returns a setter for the handler."""
    state = {"handler": lambda request: httpx.Response(200, json={})}

    def record(request: httpx.Request) -> httpx.Response:
        sent_requests.append(request)
        return state["handler"](request)

    def factory(**kwargs) -> TeamupClient:
        return TeamupClient(transport=httpx.MockTransport(record), **kwargs)

    monkeypatch.setattr(cli, "TeamupClient", factory)

    def set_handler(handler):
        state["handler"] = handler

    return set_handler


class TestParser:
    """Tests for argument parsing."""

    def test_events_arguments(self):
        args = cli.build_parser().parse_args(
            ["events", "ks123", "--start", "2026-01-05", "--subcalendar", "3", "--subcalendar", "1"]
        )
        assert args.command == "events"
        assert args.start == date(2026, 1, 5)
        assert args.end is None
        assert args.subcalendar_ids == [3, 1]

    def test_invalid_date_rejected(self, capsys):
        """Test that a malformed date is a usage error."""
        with pytest.raises(SystemExit) as exc_info:
            cli.build_parser().parse_args(["events", "ks123", "--start", "05/01/2026"])
        assert exc_info.value.code == 2
        assert "expected YYYY-MM-DD" in capsys.readouterr().err

    def test_delete_requires_version(self):
        with pytest.raises(SystemExit):
            cli.build_parser().parse_args(["delete-event", "ks123", "ev1"])

    def test_delete_defaults_to_single(self):
        args = cli.build_parser().parse_args(["delete-event", "ks123", "ev1", "--version", "v3"])
        assert args.event_version == "v3"
        assert args.redit == "single"


class TestMain:
    """Tests for the main entry point."""

    def test_no_command_prints_help(self, capsys):
        assert cli.main([]) == 0
        assert "usage: teamup" in capsys.readouterr().out

    def test_missing_token(self, capsys, mock_api, sent_requests):
        """Test that running without a key exits with a usage code."""
        assert cli.main(["configuration", "ks123"]) == 2
        assert "TEAMUP_API_TOKEN" in capsys.readouterr().err
        assert sent_requests == []

    def test_invalid_log_level(self, monkeypatch, capsys, mock_api, sent_requests):
        """Test that a bad TEAMUP_LOG_LEVEL is reported instead of crashing."""
        monkeypatch.setenv("TEAMUP_LOG_LEVEL", "verbose")
        assert cli.main(["--token", "t", "configuration", "ks123"]) == 2
        assert "Invalid configuration" in capsys.readouterr().err
        assert sent_requests == []

    def test_string_results_printed_as_json(self, capsys, mock_api):
        """Test that only iCalendar output bypasses JSON encoding."""
        mock_api(lambda request: httpx.Response(200, json={"configuration": "plain"}))
        assert cli.main(["--token", "t", "configuration", "ks123"]) == 0
        assert capsys.readouterr().out.strip() == '"plain"'

    def test_prints_json(self, capsys, mock_api, sent_requests):
        """Test that results are printed as JSON."""
        mock_api(lambda request: httpx.Response(200, json={"events": [{"id": "1"}]}))

        assert cli.main(["--token", "cli-token", "events", "ks123", "--subcalendar", "5"]) == 0

        assert json.loads(capsys.readouterr().out) == [{"id": "1"}]
        request = sent_requests[0]
        assert request.headers["Teamup-Token"] == "cli-token"
        assert request.url.path == "/ks123/events"
        assert request.url.params.get_list("subcalendarId[]") == ["5"]

    def test_token_from_environment(self, monkeypatch, capsys, mock_api, sent_requests):
        monkeypatch.setenv("TEAMUP_API_TOKEN", "env-token")
        monkeypatch.setenv("TEAMUP_DEFAULT_PASSWORD", "pw")
        mock_api(lambda request: httpx.Response(200, json={"configuration": {"a": 1}}))

        assert cli.main(["configuration", "ks123"]) == 0
        assert json.loads(capsys.readouterr().out) == {"a": 1}
        assert sent_requests[0].headers["Teamup-Token"] == "env-token"
        assert sent_requests[0].headers["Teamup-Password"] == "pw"

    def test_ics_printed_raw(self, capsys, mock_api, sent_requests):
        ics = "BEGIN:VCALENDAR\r\nEND:VCALENDAR\r\n"
        mock_api(lambda request: httpx.Response(200, text=ics))

        assert cli.main(["--token", "t", "event", "ks123", "ev1", "--ics"]) == 0
        assert "BEGIN:VCALENDAR" in capsys.readouterr().out
        assert sent_requests[0].url.host == "teamup.com"

    def test_delete_event(self, capsys, mock_api, sent_requests):
        mock_api(lambda request: httpx.Response(200, json={"undo_id": "u9"}))

        exit_code = cli.main(
            ["--token", "t", "delete-event", "ks123", "ev1", "--version", "v2", "--redit", "all"]
        )

        assert exit_code == 0
        assert json.loads(capsys.readouterr().out) == "u9"
        params = sent_requests[0].url.params
        assert params["version"] == "v2"
        assert params["redit"] == "all"

    def test_remote_error_exit_code(self, capsys, mock_api):
        """Test that API errors print a message and exit 1."""
        mock_api(lambda request: httpx.Response(404, json={"error": {"id": "not_found"}}))

        assert cli.main(["--token", "t", "configuration", "missing"]) == 1
        assert "Error: API request failed: 404" in capsys.readouterr().err

    def test_check_token_invalid(self, capsys, mock_api, sent_requests):
        """Test that a rejected key prints the result and exits 1."""
        mock_api(lambda request: httpx.Response(401, json={}))

        assert cli.main(["--token", "bad", "check-token"]) == 1
        output = json.loads(capsys.readouterr().out)
        assert output["valid"] is False
        assert output["status_code"] == 401
        assert sent_requests[0].url.path == "/check-access"

    def test_check_token_valid(self, capsys, mock_api):
        assert cli.main(["--token", "good", "check-token"]) == 0
        assert json.loads(capsys.readouterr().out)["valid"] is True
