"""End-to-end tests for the feedclient CLI through Typer's CliRunner.

The session class is swapped for one that talks to the fake backend, so
every command runs its real code path: config resolution, the durable
credential store under an isolated XDG data dir, the pipeline, and output.
"""

from __future__ import annotations

import json

import httpx
import pytest

from feedclient.app import app


@pytest.fixture
def cli_backend(monkeypatch, backend, isolated_config):
    import feedclient.session as session_module

    base = session_module.FeedSession

    class _BackendSession(base):
        def __init__(self, config=None, **kwargs):
            super().__init__(config, transport=backend.transport)

    monkeypatch.setattr(session_module, "FeedSession", _BackendSession)
    backend.route(
        "POST",
        "/auth/login",
        {
            "token": "access-0",
            "refreshToken": "refresh-0",
            "user": {"_id": "u1", "username": "ada"},
        },
        protected=False,
    )
    return backend


def _login(cli_runner) -> None:
    result = cli_runner.invoke(
        app, ["--no-color", "auth", "login", "ada@example.com", "--password", "pw"]
    )
    assert result.exit_code == 0, result.output


class TestBasics:
    def test_version(self, cli_runner) -> None:
        result = cli_runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert "feedclient 0.1.0" in result.output

    def test_no_args_shows_help(self, cli_runner) -> None:
        result = cli_runner.invoke(app, [])
        assert "auth" in result.output and "posts" in result.output


class TestAuthCommands:
    def test_login_persists_across_invocations(self, cli_runner, cli_backend) -> None:
        result = cli_runner.invoke(
            app, ["--no-color", "auth", "login", "ada@example.com", "--password", "pw"]
        )
        assert result.exit_code == 0
        assert "Logged in as ada." in result.output

        result = cli_runner.invoke(app, ["--plain", "auth", "whoami"])
        assert result.exit_code == 0
        assert "username\tada" in result.output

    def test_login_prompts_for_password(self, cli_runner, cli_backend) -> None:
        result = cli_runner.invoke(
            app, ["--no-color", "auth", "login", "ada@example.com"], input="pw\n"
        )
        assert result.exit_code == 0
        body = json.loads(cli_backend.requests[0].content)
        assert body == {"email": "ada@example.com", "password": "pw"}

    def test_whoami_logged_out(self, cli_runner, cli_backend) -> None:
        result = cli_runner.invoke(app, ["--no-color", "auth", "whoami"])
        assert result.exit_code == 1
        assert "Not logged in." in result.output

    def test_logout(self, cli_runner, cli_backend) -> None:
        cli_backend.route("POST", "/auth/logout", {"message": "ok"})
        _login(cli_runner)
        result = cli_runner.invoke(app, ["--no-color", "auth", "logout"])
        assert result.exit_code == 0
        assert cli_runner.invoke(app, ["auth", "whoami"]).exit_code == 1


class TestPostCommands:
    def test_feed_json(self, cli_runner, cli_backend) -> None:
        cli_backend.route(
            "GET", "/posts", {"posts": [{"_id": "p1", "content": "hello"}], "hasMore": False}
        )
        _login(cli_runner)
        result = cli_runner.invoke(app, ["--json", "posts", "feed", "--limit", "5"])
        assert result.exit_code == 0, result.output
        assert json.loads(result.stdout) == {
            "posts": [{"_id": "p1", "content": "hello"}],
            "hasMore": False,
        }
        assert cli_backend.requests[-1].url.params["limit"] == "5"

    def test_feed_plain_table(self, cli_runner, cli_backend) -> None:
        cli_backend.route(
            "GET",
            "/posts",
            {
                "posts": [
                    {
                        "_id": "p1",
                        "content": "hello",
                        "user": {"username": "ada"},
                        "likes": ["u2"],
                        "comments": [],
                    }
                ],
                "hasMore": True,
            },
        )
        _login(cli_runner)
        result = cli_runner.invoke(app, ["--plain", "--no-color", "posts", "feed"])
        assert result.exit_code == 0
        assert "ID\tAuthor\tContent\tLikes\tComments" in result.output
        assert "p1\tada\thello\t1\t0" in result.output
        assert "--page 2" in result.output

    def test_show_not_found(self, cli_runner, cli_backend) -> None:
        cli_backend.route("GET", "/posts/zz", {"message": "Post not found"}, status=404)
        _login(cli_runner)
        result = cli_runner.invoke(app, ["--no-color", "posts", "show", "zz"])
        assert result.exit_code == 4
        assert "HTTP 404: Post not found" in result.output

    def test_delete_with_confirmation(self, cli_runner, cli_backend) -> None:
        cli_backend.route("DELETE", "/posts/p1", {"message": "deleted"})
        _login(cli_runner)
        result = cli_runner.invoke(app, ["--no-color", "posts", "delete", "p1"], input="y\n")
        assert result.exit_code == 0
        assert cli_backend.calls("DELETE", "/posts/p1") == 1

    def test_delete_declined(self, cli_runner, cli_backend) -> None:
        _login(cli_runner)
        result = cli_runner.invoke(app, ["--no-color", "posts", "delete", "p1"], input="n\n")
        assert result.exit_code == 0
        assert cli_backend.calls("DELETE", "/posts/p1") == 0


class TestFailures:
    def test_expired_session_suggests_login(self, cli_runner, cli_backend) -> None:
        cli_backend.route("POST", "/posts/p1/like", {"likes": []})
        _login(cli_runner)
        cli_backend.valid_token = "server-side"
        cli_backend.refresh_status = 401

        result = cli_runner.invoke(app, ["--no-color", "posts", "like", "p1"])
        assert result.exit_code == 3
        assert "Session expired" in result.output
        assert "feedclient auth login" in result.output
        assert cli_runner.invoke(app, ["auth", "whoami"]).exit_code == 1

    def test_validation_error(self, cli_runner, cli_backend) -> None:
        _login(cli_runner)
        result = cli_runner.invoke(app, ["--no-color", "comments", "add", "p1", "  "])
        assert result.exit_code == 2
        assert "text: is required" in result.output

    def test_network_error(self, cli_runner, cli_backend) -> None:
        def refuse(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        cli_backend.route("GET", "/posts/p1/comments", handler=refuse)
        _login(cli_runner)
        result = cli_runner.invoke(app, ["--no-color", "comments", "list", "p1"])
        assert result.exit_code == 6
