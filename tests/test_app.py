"""Tests for the fetches command line."""

from __future__ import annotations

import asyncio
import json

import httpx
import pytest

from fetches import Fetches, __version__
from fetches import app as app_module
from fetches.app import app
from fetches.exceptions import FetchesTimeoutError

BASE = ["--json", "--no-color", "--base-url", "https://api.test"]


@pytest.fixture
def served(monkeypatch, make_transport, isolated_config):
    """Route the CLI's client through a recording mock transport."""

    def install(handler):
        recorder = make_transport(handler)
        monkeypatch.setattr(
            "fetches.app._build_client",
            lambda config: Fetches(config, transport=recorder.transport),
        )
        return recorder

    return install


# ---------------------------------------------------------------------------
# Global options
# ---------------------------------------------------------------------------


class TestGlobalOptions:
    def test_version(self, cli_runner) -> None:
        result = cli_runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert f"fetches {__version__}" in result.output

    def test_help_lists_commands(self, cli_runner) -> None:
        result = cli_runner.invoke(app, ["--help"])
        assert result.exit_code == 0
        assert "request" in result.output
        assert "get" in result.output

    def test_config_file_supplies_base_url(self, cli_runner, served, write_json) -> None:
        recorder = served(lambda r: httpx.Response(200, json={}))
        path = write_json("cfg.json", {"base_url": "https://from-file.test"})
        result = cli_runner.invoke(app, ["--json", "--config", str(path), "get", "/ping"])
        assert result.exit_code == 0, result.output
        assert str(recorder.requests[0].url) == "https://from-file.test/ping"


# ---------------------------------------------------------------------------
# get
# ---------------------------------------------------------------------------


class TestGet:
    def test_prints_json_body(self, cli_runner, served) -> None:
        recorder = served(lambda r: httpx.Response(200, json={"id": 1, "name": "Ada"}))
        result = cli_runner.invoke(app, BASE + ["get", "/users/1", "--param", "expand=true"])
        assert result.exit_code == 0, result.output
        assert '"name": "Ada"' in result.output
        assert str(recorder.requests[0].url) == "https://api.test/users/1?expand=true"

    def test_headers_sent(self, cli_runner, served) -> None:
        recorder = served(lambda r: httpx.Response(200, json={}))
        result = cli_runner.invoke(app, BASE + ["get", "/me", "-H", "Authorization: Bearer t"])
        assert result.exit_code == 0, result.output
        assert recorder.requests[0].headers["authorization"] == "Bearer t"

    def test_include_prints_headers(self, cli_runner, served) -> None:
        served(lambda r: httpx.Response(200, json={}, headers={"x-request-id": "abc"}))
        result = cli_runner.invoke(
            app, ["--plain", "--no-color", "--base-url", "https://api.test", "get", "/x", "-i"]
        )
        assert result.exit_code == 0
        assert "HTTP 200 OK" in result.output
        assert "x-request-id: abc" in result.output

    def test_json_include_prints_envelope(self, cli_runner, served) -> None:
        served(lambda r: httpx.Response(200, json={"id": 1}, headers={"x-request-id": "abc"}))
        result = cli_runner.invoke(app, BASE + ["get", "/x", "--include"])
        assert result.exit_code == 0, result.output
        envelope = json.loads(result.output)
        assert envelope["status"] == 200
        assert envelope["headers"]["x-request-id"] == "abc"
        assert envelope["data"] == {"id": 1}

    def test_output_writes_body_to_file(self, cli_runner, served, isolated_config) -> None:
        served(lambda r: httpx.Response(200, json={"id": 1}))
        target = isolated_config / "body.json"
        result = cli_runner.invoke(app, BASE + ["get", "/x", "--output", str(target)])
        assert result.exit_code == 0, result.output
        assert json.loads(target.read_text(encoding="utf-8")) == {"id": 1}
        assert '"id"' not in result.output

    def test_malformed_header_is_usage_error(self, cli_runner, served) -> None:
        recorder = served(lambda r: httpx.Response(200))
        result = cli_runner.invoke(app, BASE + ["get", "/x", "-H", "no-colon"])
        assert result.exit_code == 2
        assert recorder.calls == 0

    def test_schema_mismatch_exit_code(self, cli_runner, served, write_json) -> None:
        served(lambda r: httpx.Response(200, json={"id": "one"}))
        schema = write_json(
            "schema.json", {"type": "object", "properties": {"id": {"type": "integer"}}}
        )
        result = cli_runner.invoke(app, BASE + ["get", "/u", "--schema", str(schema)])
        assert result.exit_code == 7
        assert "jsonschema validation failed" in result.output

    def test_schema_match(self, cli_runner, served, write_json) -> None:
        served(lambda r: httpx.Response(200, json={"id": 1}))
        schema = write_json("schema.json", {"type": "object"})
        result = cli_runner.invoke(app, BASE + ["get", "/u", "--schema", str(schema)])
        assert result.exit_code == 0, result.output


# ---------------------------------------------------------------------------
# request
# ---------------------------------------------------------------------------


class TestRequest:
    def test_post_json_data(self, cli_runner, served) -> None:
        recorder = served(lambda r: httpx.Response(201, json={"id": 9}))
        result = cli_runner.invoke(
            app, BASE + ["request", "post", "/users", "--data", '{"name": "Ada"}']
        )
        assert result.exit_code == 0, result.output
        sent = recorder.requests[0]
        assert sent.method == "POST"
        assert sent.headers["content-type"] == "application/json"
        assert json.loads(sent.content) == {"name": "Ada"}

    def test_raw_data_sent_as_text(self, cli_runner, served) -> None:
        recorder = served(lambda r: httpx.Response(200, text="ok"))
        result = cli_runner.invoke(app, BASE + ["request", "PUT", "/note", "--data", "hello"])
        assert result.exit_code == 0, result.output
        assert recorder.requests[0].content == b"hello"
        assert recorder.requests[0].headers["content-type"] == "text/plain"

    def test_status_error_exit_code(self, cli_runner, served) -> None:
        served(lambda r: httpx.Response(404, json={"error": "missing"}))
        result = cli_runner.invoke(app, BASE + ["request", "GET", "/missing"])
        assert result.exit_code == 4
        assert "HTTP Error: 404 Not Found" in result.output
        assert "missing" in result.output

    def test_retries_then_network_exit_code(self, cli_runner, served) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused")

        recorder = served(handler)
        result = cli_runner.invoke(
            app,
            BASE + ["request", "GET", "/down", "--retries", "2", "--initial-delay", "1"],
        )
        assert result.exit_code == 5
        assert recorder.calls == 3

    def test_timeout_exit_code(self, cli_runner, served) -> None:
        async def slow(request: httpx.Request) -> httpx.Response:
            await asyncio.sleep(1)
            return httpx.Response(200)

        served(slow)
        result = cli_runner.invoke(
            app, ["--json", "--base-url", "https://api.test", "--timeout", "5", "get", "/slow"]
        )
        assert result.exit_code == 6


# ---------------------------------------------------------------------------
# main entry point
# ---------------------------------------------------------------------------


class TestMain:
    def test_fetches_error_maps_to_exit_code(self, monkeypatch) -> None:
        def boom() -> None:
            raise FetchesTimeoutError("too slow")

        monkeypatch.setattr(app_module, "app", boom)
        with pytest.raises(SystemExit) as excinfo:
            app_module.main()
        assert excinfo.value.code == 6

    def test_keyboard_interrupt(self, monkeypatch) -> None:
        def interrupted() -> None:
            raise KeyboardInterrupt

        monkeypatch.setattr(app_module, "app", interrupted)
        with pytest.raises(SystemExit) as excinfo:
            app_module.main()
        assert excinfo.value.code == 130
