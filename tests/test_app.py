"""Tests for the ``powerschool`` command line."""

from __future__ import annotations

import json

import httpx
import pytest
from typer.testing import CliRunner

from powerschool_api import __version__
from powerschool_api.app import app
from powerschool_api.cache import DiskTokenCache

runner = CliRunner()


@pytest.fixture
def use_fake_client(monkeypatch: pytest.MonkeyPatch, ps):
    """Route every command to the fake server."""
    monkeypatch.setattr("powerschool_api.app._make_client", lambda settings: ps)
    return ps


@pytest.fixture
def cache_dir(monkeypatch: pytest.MonkeyPatch, tmp_path):
    monkeypatch.setattr("powerschool_api.config.get_cache_dir", lambda: tmp_path)
    return tmp_path


class TestGlobalOptions:
    def test_version(self) -> None:
        result = runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert f"powerschool {__version__}" in result.output

    def test_help_lists_commands(self) -> None:
        result = runner.invoke(app, ["--help"])
        assert result.exit_code == 0
        for command in ("auth", "clear", "table", "query"):
            assert command in result.output


# ------------------------------------------------------------------ #
# Token commands
# ------------------------------------------------------------------ #


class TestAuthCommand:
    def test_caches_token(self, use_fake_client, server, token_cache) -> None:
        result = runner.invoke(app, ["--no-color", "auth"])

        assert result.exit_code == 0
        assert "Auth token cached!" in result.output
        assert token_cache.values["powerschool_token"] == "token-1"
        assert len(server.token_requests) == 1

    def test_forces_new_token_over_cached_one(self, use_fake_client, server, token_cache) -> None:
        use_fake_client.authenticate()

        result = runner.invoke(app, ["--no-color", "auth"])

        assert result.exit_code == 0
        assert token_cache.values["powerschool_token"] == "token-2"

    def test_rejected_credentials_exit_code(self, use_fake_client, server) -> None:
        server.token_reply = httpx.Response(401, json={"error": "invalid_client"})

        result = runner.invoke(app, ["--no-color", "auth"])

        assert result.exit_code == 3
        assert "Error:" in result.output

    def test_missing_address_exit_code(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("POWERSCHOOL_ADDRESS", raising=False)

        result = runner.invoke(app, ["--no-color", "auth"])

        assert result.exit_code == 4
        assert "POWERSCHOOL_ADDRESS" in result.output


class TestClearCommand:
    def test_clears_cached_token(self, cache_dir, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("POWERSCHOOL_CACHE_KEY", raising=False)
        with DiskTokenCache(cache_dir) as cache:
            cache.put("powerschool_token", "abc", ttl=3600)

        result = runner.invoke(app, ["--no-color", "clear"])

        assert result.exit_code == 0
        assert "Auth token cache cleared!" in result.output
        with DiskTokenCache(cache_dir) as cache:
            assert cache.get("powerschool_token") is None

    def test_custom_cache_key(self, cache_dir) -> None:
        with DiskTokenCache(cache_dir) as cache:
            cache.put("powerschool_token", "keep")
            cache.put("district_token", "drop")

        result = runner.invoke(app, ["--no-color", "--cache-key", "district_token", "clear"])

        assert result.exit_code == 0
        with DiskTokenCache(cache_dir) as cache:
            assert cache.get("powerschool_token") == "keep"
            assert cache.get("district_token") is None

    def test_quiet_suppresses_message(self, cache_dir) -> None:
        result = runner.invoke(app, ["--no-color", "--quiet", "clear"])

        assert result.exit_code == 0
        assert "cleared" not in result.output


# ------------------------------------------------------------------ #
# Data commands
# ------------------------------------------------------------------ #


class TestTableCommand:
    def test_prints_records_as_json(self, use_fake_client, server) -> None:
        server.queue(
            httpx.Response(
                200,
                json={"name": "students", "record": [{"id": "1"}, {"id": "2"}]},
            )
        )

        result = runner.invoke(
            app,
            [
                "--no-color", "--json", "table", "students",
                "--projection", "id,lastfirst",
                "--q", "grade_level==5",
                "--page-size", "2",
            ],
        )

        assert result.exit_code == 0
        assert json.loads(result.stdout) == [{"id": "1"}, {"id": "2"}]
        (request,) = server.api_requests
        assert request.method == "GET"
        assert request.url.path == "/ws/schema/table/students"
        assert request.url.params["projection"] == "id,lastfirst"
        assert request.url.params["q"] == "grade_level==5"
        assert request.url.params["pagesize"] == "2"

    def test_single_record_by_id(self, use_fake_client, server) -> None:
        server.queue(
            httpx.Response(
                200,
                json={"id": 4, "name": "U_TABLE", "tables": {"u_table": {"id": "4", "column": "x"}}},
            )
        )

        result = runner.invoke(app, ["--no-color", "--json", "table", "u_table", "--id", "4"])

        assert result.exit_code == 0
        assert json.loads(result.stdout) == [{"id": "4", "column": "x"}]
        assert server.api_requests[0].url.path == "/ws/schema/table/u_table/4"
        assert server.api_requests[0].url.params["projection"] == "*"

    def test_server_error_exit_code(self, use_fake_client, server) -> None:
        server.queue(httpx.Response(500, json={"message": "Internal error"}))

        result = runner.invoke(app, ["--no-color", "table", "students"])

        assert result.exit_code == 6
        assert "HTTP 500" in result.output


class TestQueryCommand:
    def test_runs_named_query(self, use_fake_client, server) -> None:
        server.queue(httpx.Response(200, json={"name": "students", "record": [{"id": "7"}]}))

        result = runner.invoke(
            app,
            ["--no-color", "--json", "query", "com.org.product.students", "--data", '{"grade": 5}', "--page", "2"],
        )

        assert result.exit_code == 0
        assert json.loads(result.stdout) == [{"id": "7"}]
        (request,) = server.api_requests
        assert request.method == "POST"
        assert request.url.path == "/ws/schema/query/com.org.product.students"
        assert request.url.params["page"] == "2"
        assert "projection" not in request.url.params
        assert json.loads(request.content) == {"grade": "5"}

    def test_count(self, use_fake_client, server) -> None:
        server.queue(httpx.Response(200, json={"count": 12, "record": [{"id": "7"}]}))

        result = runner.invoke(app, ["--no-color", "--json", "query", "com.org.q", "--count"])

        assert result.exit_code == 0
        assert "Total records: 12" in result.output
        assert server.api_requests[0].url.params["count"] == "true"

    def test_invalid_json_data(self, use_fake_client, server) -> None:
        result = runner.invoke(app, ["--no-color", "query", "com.org.q", "--data", "{grade"])

        assert result.exit_code == 2
        assert "not valid JSON" in result.output
        assert server.requests == []

    def test_data_must_be_an_object(self, use_fake_client, server) -> None:
        result = runner.invoke(app, ["--no-color", "query", "com.org.q", "--data", "[1, 2]"])

        assert result.exit_code == 2
        assert "JSON object" in result.output
