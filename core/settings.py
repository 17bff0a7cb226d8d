"""
core/settings.py

Loads config.toml into immutable settings objects.

Lookup order for the file:
  1) explicit path argument
  2) $SENTIMENT_BOT_CONFIG
  3) ./config.toml next to the repository root
"""
from __future__ import annotations

import os
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, Optional

import toml

from signals.config import SignalConfig

CONFIG_ENV = "SENTIMENT_BOT_CONFIG"
DEFAULT_CONFIG_PATH = Path(__file__).resolve().parent.parent / "config.toml"
DEFAULT_FEED_URL = "https://c.fxssi.com/api/current-ratios"


@dataclass(frozen=True)
class Settings:
    # [telegram]
    bot_token: str = ""
    authorized_chat_id: Optional[str] = None

    # [feed]
    feed_url: str = DEFAULT_FEED_URL
    feed_timeout_seconds: float = 15.0
    feed_retries: int = 3

    # [poll]
    interval_seconds: float = 300.0
    jitter_seconds: float = 30.0

    # [server]
    host: str = "0.0.0.0"
    port: int = 8080
    alert_path: str = "/webhook/alert"

    # [storage]
    db_path: str = "bot.db"

    # [logging]
    log_file: str = "logs/sentiment_bot.log"
    log_level: str = "INFO"

    # [signals]
    signals: SignalConfig = field(default_factory=SignalConfig)

    def __post_init__(self) -> None:
        errors = []

        if not self.bot_token:
            errors.append("telegram.bot_token must be set")
        if not self.feed_url.startswith(("http://", "https://")):
            errors.append(f"feed.url must be an http(s) URL, got '{self.feed_url}'")
        if self.feed_timeout_seconds <= 0:
            errors.append(f"feed.timeout_seconds must be > 0, got {self.feed_timeout_seconds}")
        if self.feed_retries < 1:
            errors.append(f"feed.retries must be >= 1, got {self.feed_retries}")

        if self.interval_seconds <= 0:
            errors.append(f"poll.interval_seconds must be > 0, got {self.interval_seconds}")
        if self.jitter_seconds < 0:
            errors.append(f"poll.jitter_seconds must be >= 0, got {self.jitter_seconds}")
        elif self.jitter_seconds >= self.interval_seconds:
            errors.append(
                f"poll.jitter_seconds ({self.jitter_seconds}) must be < "
                f"poll.interval_seconds ({self.interval_seconds})"
            )

        if not (0 < self.port < 65536):
            errors.append(f"server.port must be in 1..65535, got {self.port}")
        if not self.alert_path.startswith("/"):
            errors.append(f"server.alert_path must start with '/', got '{self.alert_path}'")

        if errors:
            raise ValueError(
                "Invalid Settings:\n" + "\n".join(f"  • {e}" for e in errors)
            )


def _section(raw: Dict[str, Any], name: str) -> Dict[str, Any]:
    value = raw.get(name) or {}
    if not isinstance(value, dict):
        raise ValueError(f"Invalid Settings:\n  • [{name}] must be a table")
    return value


def settings_from_dict(raw: Dict[str, Any]) -> Settings:
    """Build Settings from an already-parsed TOML document."""
    telegram = _section(raw, "telegram")
    feed = _section(raw, "feed")
    poll = _section(raw, "poll")
    server = _section(raw, "server")
    storage = _section(raw, "storage")
    log = _section(raw, "logging")
    sig = dict(_section(raw, "signals"))

    interval = float(poll.get("interval_seconds", Settings.interval_seconds))

    # Bridge one missed cycle: default the alert window to two poll intervals.
    if interval > 0:
        sig.setdefault("pending_timeout_seconds", 2 * interval)
    known = {f.name for f in fields(SignalConfig)}
    unknown = sorted(set(sig) - known)
    if unknown:
        raise ValueError(
            "Invalid Settings:\n" + "\n".join(f"  • unknown key signals.{k}" for k in unknown)
        )

    chat_id = telegram.get("authorized_chat_id")

    return Settings(
        bot_token=str(telegram.get("bot_token", "")),
        authorized_chat_id=str(chat_id) if chat_id not in (None, "") else None,
        feed_url=str(feed.get("url", DEFAULT_FEED_URL)),
        feed_timeout_seconds=float(feed.get("timeout_seconds", Settings.feed_timeout_seconds)),
        feed_retries=int(feed.get("retries", Settings.feed_retries)),
        interval_seconds=interval,
        jitter_seconds=float(poll.get("jitter_seconds", Settings.jitter_seconds)),
        host=str(server.get("host", Settings.host)),
        port=int(server.get("port", Settings.port)),
        alert_path=str(server.get("alert_path", Settings.alert_path)),
        db_path=str(storage.get("db_path", Settings.db_path)),
        log_file=str(log.get("file", Settings.log_file)),
        log_level=str(log.get("level", Settings.log_level)),
        signals=SignalConfig(**sig),
    )


def load_settings(path: Optional[os.PathLike] = None) -> Settings:
    cfg_path = Path(path or os.getenv(CONFIG_ENV) or DEFAULT_CONFIG_PATH)
    if not cfg_path.exists():
        raise FileNotFoundError(f"Config file not found: {cfg_path}")
    return settings_from_dict(toml.load(cfg_path))
