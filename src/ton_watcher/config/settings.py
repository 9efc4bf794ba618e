"""Application settings loaded from environment variables and config files.

Configuration is loaded from (highest priority first):
1. Environment variables (prefix: ``TONWATCH_``, nested via ``__``)
2. ``.env`` file in the working directory
3. YAML config file (``TONWATCH_CONFIG_PATH`` env var)
4. Defaults defined here
"""

from __future__ import annotations

import enum
from pathlib import Path
from typing import Annotated, Any, Self

import yaml
from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

DEFAULT_VIEWER_URL = "https://tonviewer.com/transaction/"


class LogLevel(enum.StrEnum):
    """Supported logging levels."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"


# ---------------------------------------------------------------------------
# Sub-config models
# ---------------------------------------------------------------------------


class TelegramConfig(BaseSettings):
    """Telegram Bot API transport settings."""

    model_config = SettingsConfigDict(
        env_prefix="TONWATCH_TELEGRAM__",
        case_sensitive=False,
    )

    token: str = ""
    api_url: str = "https://api.telegram.org"
    chat_ids: Annotated[list[int], NoDecode] = Field(default_factory=list)
    timeout: float = 10.0

    @field_validator("chat_ids", mode="before")
    @classmethod
    def _split_chat_ids(cls, value: Any) -> Any:
        """Accept ``"1,2,3"`` as well as a JSON / YAML list."""
        if isinstance(value, int):
            return [value]
        if isinstance(value, str):
            value = value.strip().strip("[]")
            return [int(part) for part in value.split(",") if part.strip()]
        return value


class LedgerConfig(BaseSettings):
    """toncenter HTTP API settings."""

    model_config = SettingsConfigDict(
        env_prefix="TONWATCH_LEDGER__",
        case_sensitive=False,
    )

    url: str = "https://toncenter.com/api/v2"
    api_key: str = ""
    timeout: float = 30.0
    poll_interval: float = 3.0
    page_limit: int = 16
    ready_attempts: int = 10
    ready_delay: float = 1.0
    max_retries: int = Field(default=3, ge=0)
    retry_delay: float = 1.5


class WatcherConfig(BaseSettings):
    """Watched account and listing behaviour."""

    model_config = SettingsConfigDict(
        env_prefix="TONWATCH_WATCHER__",
        case_sensitive=False,
    )

    target_address: str = ""
    page_size: int = Field(default=15, ge=1)
    notify_history: bool = False
    viewer_url: str = DEFAULT_VIEWER_URL


class MetricsConfig(BaseSettings):
    """Prometheus metrics settings."""

    model_config = SettingsConfigDict(
        env_prefix="TONWATCH_METRICS__",
        case_sensitive=False,
    )

    enabled: bool = False
    port: int = 9090


# ---------------------------------------------------------------------------
# Top-level config
# ---------------------------------------------------------------------------


def _load_yaml(path: str | Path) -> dict[str, Any]:
    """Load a YAML configuration file and return its contents as a dict.

    Returns an empty dict if the file doesn't exist or is empty.
    """
    p = Path(path)
    if not p.exists():
        return {}
    text = p.read_text(encoding="utf-8")
    data = yaml.safe_load(text)
    return data if isinstance(data, dict) else {}


class AppConfig(BaseSettings):
    """Top-level application configuration.

    Loads settings from environment variables (``TONWATCH_`` prefix),
    a ``.env`` file, an optional YAML file, and built-in defaults.
    """

    model_config = SettingsConfigDict(
        env_prefix="TONWATCH_",
        env_nested_delimiter="__",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
    )

    debug: bool = False
    log_level: LogLevel = LogLevel.INFO
    config_path: str = ""

    telegram: TelegramConfig = Field(default_factory=TelegramConfig)
    ledger: LedgerConfig = Field(default_factory=LedgerConfig)
    watcher: WatcherConfig = Field(default_factory=WatcherConfig)
    metrics: MetricsConfig = Field(default_factory=MetricsConfig)

    @model_validator(mode="before")
    @classmethod
    def _merge_yaml(cls, values: dict[str, Any]) -> dict[str, Any]:
        """Merge YAML config file contents under the env var overrides."""
        config_path = values.get("config_path", "")
        if not config_path:
            return values
        yaml_data = _load_yaml(config_path)
        # YAML values serve as defaults; env vars (already in *values*) win.
        for key, val in yaml_data.items():
            if key not in values or values[key] is None:
                values[key] = val
            elif isinstance(val, dict) and isinstance(values.get(key), dict):
                merged = {**val, **values[key]}
                values[key] = merged
        return values

    @classmethod
    def from_yaml(cls, path: str | Path) -> Self:
        """Construct ``AppConfig`` loading defaults from a YAML file.

        Environment variables still override YAML values.
        """
        return cls(config_path=str(path))
