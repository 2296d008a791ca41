"""Tests for CLI commands."""

from __future__ import annotations

import json
from collections.abc import Awaitable, Callable, Iterator
from pathlib import Path
from typing import Any, TypeVar
from unittest.mock import MagicMock, patch

import pytest
import structlog
from typer.testing import CliRunner

from superhuman_agent.actions.attachments import encode_file
from superhuman_agent.cli.main import app
from superhuman_agent.cli.utils import run
from conftest import FakeSession

T = TypeVar("T")

runner = CliRunner()


@pytest.fixture(autouse=True)
def reset_logging() -> Iterator[None]:
    """The CLI points structlog at the runner's stderr; undo that afterwards."""
    yield
    structlog.reset_defaults()


def session_runner(session: FakeSession) -> Callable[..., Any]:
    """Replacement for with_session that skips connecting."""

    def fake_with_session(
        port: int | None,
        no_auto_launch: bool,
        body: Callable[[Any], Awaitable[T]],
        json_output: bool = False,
    ) -> T:
        return run(lambda: body(session), json_output)

    return fake_with_session


class TestBasics:
    """Tests for top-level commands."""

    def test_version(self) -> None:
        """Should print the package version."""
        result = runner.invoke(app, ["version"])

        assert result.exit_code == 0
        assert "superhuman-agent v" in result.output

    def test_sub_apps_merged_at_top_level(self) -> None:
        """Commands from every module are reachable without a group prefix."""
        result = runner.invoke(app, ["--help"])

        assert result.exit_code == 0
        for name in ("draft", "reply-all", "archive", "get-labels", "download", "account"):
            assert name in result.output


class TestBulkCommands:
    """Tests for thread action commands."""

    def test_refuses_without_yes(self) -> None:
        """Several ids without --yes fail before any connection is made."""
        with_session = MagicMock()
        with patch("superhuman_agent.cli.commands.threads.with_session", with_session):
            result = runner.invoke(app, ["archive", "t1", "t2"])

        assert result.exit_code == 1
        assert "Refusing to run archive on 2 threads without --yes" in result.output
        with_session.assert_not_called()

    def test_dry_run_json(self) -> None:
        """Dry runs preview every id without connecting."""
        with_session = MagicMock()
        with patch("superhuman_agent.cli.commands.threads.with_session", with_session):
            result = runner.invoke(app, ["star", "t1", "t2", "--dry-run", "--json"])

        assert result.exit_code == 0
        data = json.loads(result.stdout)
        assert data["summary"] == {"total": 2, "successCount": 2, "failCount": 0}
        assert all(item["dryRun"] for item in data["results"])
        with_session.assert_not_called()

    def test_only_drafts(self) -> None:
        """Draft ids alone leave nothing to do."""
        result = runner.invoke(app, ["archive", "draft00ab"])

        assert result.exit_code == 1
        assert "No thread ids to act on" in result.output

    def test_confirmed_run(self, fake_session: FakeSession, gmail_thread: dict[str, Any]) -> None:
        """A confirmed run acts on every thread."""
        fake_session.on("thread.state", fake_session.ok(gmail_thread))
        fake_session.on("gmail.change_labels", fake_session.ok(True))
        fake_session.on("thread.sync_labels", fake_session.ok(True))

        with patch("superhuman_agent.cli.commands.threads.with_session", session_runner(fake_session)):
            result = runner.invoke(app, ["archive", "t1", "t2", "--yes", "--json"])

        assert result.exit_code == 0
        data = json.loads(result.stdout)
        assert data["summary"]["successCount"] == 2
        assert [item["path"] for item in data["results"]] == ["gmail:gmail.changeLabelsPerThread"] * 2
        assert len(fake_session.calls_for("gmail.change_labels")) == 2

    def test_item_failure_exits_nonzero(self, fake_session: FakeSession) -> None:
        """One failed thread fails the command."""
        fake_session.on("thread.state", fake_session.not_found("Thread t1"))

        with patch("superhuman_agent.cli.commands.threads.with_session", session_runner(fake_session)):
            result = runner.invoke(app, ["mark-read", "t1"])

        assert result.exit_code == 1
        assert "✗ t1" in result.output


class TestAccountCommands:
    """Tests for account commands."""

    def test_accounts_json(self, fake_session: FakeSession) -> None:
        """Accounts are listed with the current one marked."""
        fake_session.on("account.list", fake_session.ok(["a@example.com", "b@example.com"]))
        fake_session.on("account.current_email", fake_session.ok("b@example.com"))

        with patch("superhuman_agent.cli.commands.accounts.with_session", session_runner(fake_session)):
            result = runner.invoke(app, ["accounts", "--json"])

        assert result.exit_code == 0
        assert json.loads(result.stdout) == [
            {"email": "a@example.com", "isCurrent": False},
            {"email": "b@example.com", "isCurrent": True},
        ]

    def test_unknown_account(self, fake_session: FakeSession) -> None:
        """An out-of-range index is an actionable error."""
        fake_session.on("account.list", fake_session.ok(["a@example.com"]))
        fake_session.on("account.current_email", fake_session.ok("a@example.com"))

        with patch("superhuman_agent.cli.commands.accounts.with_session", session_runner(fake_session)):
            result = runner.invoke(app, ["account", "5"])

        assert result.exit_code == 1
        assert "ERR_ACCOUNT_NOT_FOUND" in result.output


def attachment_entry(attachment_id: str, name: str) -> dict[str, Any]:
    return {
        "id": attachment_id,
        "attachmentId": attachment_id,
        "name": name,
        "mimeType": "text/plain",
        "messageId": "m1",
        "threadId": "t1",
    }


class TestDownloadCommand:
    """Tests for attachment downloads."""

    @pytest.fixture
    def mailbox(self, fake_session: FakeSession) -> Callable[[list[dict[str, Any]]], FakeSession]:
        def serve(entries: list[dict[str, Any]]) -> FakeSession:
            fake_session.on("thread.attachments", fake_session.ok(entries))
            fake_session.on("account.kind", fake_session.ok(False))
            fake_session.on("gmail.download_attachment", fake_session.ok({"data": encode_file(b"hello"), "size": 5}))
            return fake_session

        return serve

    def test_names_cannot_leave_output_dir(self, tmp_path: Path, mailbox: Any) -> None:
        """Directory parts of a sender-supplied name are dropped."""
        session = mailbox([attachment_entry("att-1", "report.txt"), attachment_entry("att-2", "../../evil.txt")])
        output = tmp_path / "a" / "b" / "out"

        with patch("superhuman_agent.cli.commands.attachments.with_session", session_runner(session)):
            result = runner.invoke(app, ["download", "t1", "--output", str(output), "--json"])

        assert result.exit_code == 0
        assert not (tmp_path / "a" / "evil.txt").exists()
        assert (output / "evil.txt").read_bytes() == b"hello"
        assert (output / "report.txt").read_bytes() == b"hello"

    def test_unusable_name_is_refused(self, tmp_path: Path, mailbox: Any) -> None:
        """A name with nothing left after sanitising is not written."""
        session = mailbox([attachment_entry("att-1", "report.txt"), attachment_entry("att-2", "..")])

        with patch("superhuman_agent.cli.commands.attachments.with_session", session_runner(session)):
            result = runner.invoke(app, ["download", "t1", "--output", str(tmp_path / "out"), "--json"])

        assert result.exit_code == 1
        files = json.loads(result.stdout)["files"]
        assert files[0]["success"]
        assert files[1] == {"name": "..", "success": False, "error": "Unsafe attachment name: '..'"}
        assert sorted(p.name for p in tmp_path.rglob("*") if p.is_file()) == ["report.txt"]
