"""Tests for the configuration system."""

from __future__ import annotations

import textwrap
from typing import TYPE_CHECKING

import pytest

from ton_watcher.config.settings import (
    DEFAULT_VIEWER_URL,
    AppConfig,
    LedgerConfig,
    LogLevel,
    MetricsConfig,
    TelegramConfig,
    WatcherConfig,
    _load_yaml,
)

if TYPE_CHECKING:
    from pathlib import Path


@pytest.fixture(autouse=True)
def _isolated_cwd(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep a developer's ``.env`` out of the way."""
    monkeypatch.chdir(tmp_path)


# ---------------------------------------------------------------------------
# Defaults
# ---------------------------------------------------------------------------


class TestDefaults:
    """Verify all default values are correct."""

    def test_telegram_defaults(self) -> None:
        cfg = TelegramConfig()
        assert cfg.token == ""
        assert cfg.api_url == "https://api.telegram.org"
        assert cfg.chat_ids == []
        assert cfg.timeout == 10.0

    def test_ledger_defaults(self) -> None:
        cfg = LedgerConfig()
        assert cfg.url == "https://toncenter.com/api/v2"
        assert cfg.api_key == ""
        assert cfg.poll_interval == 3.0
        assert cfg.page_limit == 16
        assert cfg.ready_attempts == 10
        assert cfg.max_retries == 3
        assert cfg.retry_delay == 1.5

    def test_watcher_defaults(self) -> None:
        cfg = WatcherConfig()
        assert cfg.target_address == ""
        assert cfg.page_size == 15
        assert cfg.notify_history is False
        assert cfg.viewer_url == DEFAULT_VIEWER_URL == "https://tonviewer.com/transaction/"

    def test_metrics_defaults(self) -> None:
        cfg = MetricsConfig()
        assert cfg.enabled is False
        assert cfg.port == 9090

    def test_app_defaults(self) -> None:
        cfg = AppConfig()
        assert cfg.debug is False
        assert cfg.log_level == LogLevel.INFO
        assert isinstance(cfg.telegram, TelegramConfig)
        assert isinstance(cfg.ledger, LedgerConfig)

    def test_page_size_must_be_positive(self) -> None:
        with pytest.raises(ValueError, match="page_size"):
            WatcherConfig(page_size=0)


# ---------------------------------------------------------------------------
# Chat ids
# ---------------------------------------------------------------------------


class TestChatIds:
    def test_list(self) -> None:
        assert TelegramConfig(chat_ids=[1, 2]).chat_ids == [1, 2]

    def test_comma_separated(self) -> None:
        assert TelegramConfig(chat_ids="558161625, 162332155").chat_ids == [558161625, 162332155]

    def test_single_int(self) -> None:
        assert TelegramConfig(chat_ids=42).chat_ids == [42]

    def test_from_env(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("TONWATCH_TELEGRAM__CHAT_IDS", "1,-100200")
        assert TelegramConfig().chat_ids == [1, -100200]


# ---------------------------------------------------------------------------
# Environment variable override
# ---------------------------------------------------------------------------


class TestEnvOverride:
    """Verify environment variables override defaults."""

    def test_top_level_env(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("TONWATCH_DEBUG", "true")
        monkeypatch.setenv("TONWATCH_LOG_LEVEL", "WARNING")
        cfg = AppConfig()
        assert cfg.debug is True
        assert cfg.log_level == LogLevel.WARNING

    def test_nested_env_via_delimiter(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("TONWATCH_WATCHER__TARGET_ADDRESS", "EQxyz")
        monkeypatch.setenv("TONWATCH_LEDGER__POLL_INTERVAL", "0.5")
        cfg = AppConfig()
        assert cfg.watcher.target_address == "EQxyz"
        assert cfg.ledger.poll_interval == 0.5

    def test_dotenv_file(self, tmp_path: Path) -> None:
        (tmp_path / ".env").write_text("TONWATCH_METRICS__PORT=9999\n")
        assert AppConfig().metrics.port == 9999


# ---------------------------------------------------------------------------
# YAML loading
# ---------------------------------------------------------------------------


class TestYAML:
    """YAML config file loading."""

    def test_load_yaml_nonexistent(self, tmp_path: Path) -> None:
        assert _load_yaml(tmp_path / "nonexistent.yaml") == {}

    def test_load_yaml_empty_file(self, tmp_path: Path) -> None:
        f = tmp_path / "empty.yaml"
        f.write_text("")
        assert _load_yaml(f) == {}

    def test_load_yaml_non_dict(self, tmp_path: Path) -> None:
        f = tmp_path / "list.yaml"
        f.write_text("- item1\n- item2\n")
        assert _load_yaml(f) == {}

    def test_from_yaml(self, tmp_path: Path) -> None:
        f = tmp_path / "app.yaml"
        f.write_text(
            textwrap.dedent("""\
                debug: true
                telegram:
                  token: "123:abc"
                  chat_ids: [558161625, 162332155]
                watcher:
                  target_address: EQCXwWAyDG_IhRh6CzPSetvgGecywZBU3YNCawmz03Uk25RG
                  page_size: 5
            """)
        )
        cfg = AppConfig.from_yaml(f)
        assert cfg.debug is True
        assert cfg.telegram.token == "123:abc"
        assert cfg.telegram.chat_ids == [558161625, 162332155]
        assert cfg.watcher.page_size == 5
        assert cfg.watcher.target_address.startswith("EQCX")

    def test_env_overrides_yaml(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        """Env vars have higher priority than YAML values."""
        f = tmp_path / "app.yaml"
        f.write_text(
            textwrap.dedent("""\
                watcher:
                  target_address: from_yaml
                  page_size: 5
            """)
        )
        monkeypatch.setenv("TONWATCH_WATCHER__TARGET_ADDRESS", "from_env")
        cfg = AppConfig.from_yaml(f)
        assert cfg.watcher.target_address == "from_env"
        assert cfg.watcher.page_size == 5
