"""Tests for environment configuration."""

from __future__ import annotations

import pytest

from superhuman_agent.config import (
    DEFAULT_APP_PATH,
    DEFAULT_CDP_PORT,
    get_default_app_path,
    get_default_auto_launch,
    get_default_cdp_port,
    parse_boolean,
    parse_port,
)


class TestParsing:
    """Tests for value parsers."""

    @pytest.mark.parametrize(
        ("value", "expected"),
        [("9333", 9333), (" 9222 ", 9222), ("0", None), ("65536", None), ("abc", None), ("", None), (None, None)],
    )
    def test_parse_port(self, value: str | None, expected: int | None) -> None:
        """Should accept only 1-65535."""
        assert parse_port(value) == expected

    @pytest.mark.parametrize(
        ("value", "expected"),
        [("1", True), ("YES", True), (" on ", True), ("0", False), ("off", False), ("N", False), ("maybe", None)],
    )
    def test_parse_boolean(self, value: str, expected: bool | None) -> None:
        """Should recognize yes/no style flags case-insensitively."""
        assert parse_boolean(value) is expected


class TestEnvironmentDefaults:
    """Tests for env-derived defaults."""

    def test_port_defaults(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Unset or invalid port falls back to the default."""
        monkeypatch.delenv("SUPERHUMAN_CDP_PORT", raising=False)
        assert get_default_cdp_port() == DEFAULT_CDP_PORT
        monkeypatch.setenv("SUPERHUMAN_CDP_PORT", "nope")
        assert get_default_cdp_port() == DEFAULT_CDP_PORT

    def test_port_from_env(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """SUPERHUMAN_CDP_PORT overrides the default."""
        monkeypatch.setenv("SUPERHUMAN_CDP_PORT", "9444")
        assert get_default_cdp_port() == 9444

    def test_app_path(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Blank app path falls back to the default."""
        monkeypatch.setenv("SUPERHUMAN_APP_PATH", "   ")
        assert get_default_app_path() == DEFAULT_APP_PATH
        monkeypatch.setenv("SUPERHUMAN_APP_PATH", "/opt/superhuman")
        assert get_default_app_path() == "/opt/superhuman"

    def test_auto_launch(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Auto-launch is on unless explicitly disabled."""
        monkeypatch.delenv("SUPERHUMAN_AUTO_LAUNCH", raising=False)
        assert get_default_auto_launch() is True
        monkeypatch.setenv("SUPERHUMAN_AUTO_LAUNCH", "false")
        assert get_default_auto_launch() is False
        monkeypatch.setenv("SUPERHUMAN_AUTO_LAUNCH", "garbage")
        assert get_default_auto_launch() is True
